"""CLI for bootstrap, sync, and user-level install.

Usage:
    rae bootstrap [--version TAG]   First-time project setup
    rae sync [TAG]                  Update project files to TAG
    rae install-user                Install tooling under $HOME only
    rae version                     Show the recorded version marker

The version defaults to $RAE_VERSION, then ``guidelines.default_version``
(``main``).
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import rae.bootstrap.marker
import rae.bootstrap.orchestrator
import rae.bootstrap.plans
import rae.config
import rae.guidelines.loader
from rae.bootstrap.steps import BootstrapReport, BootstrapStep, StepResult

logger = logging.getLogger("rae.bootstrap")


def _bootstrap_cfg(root: Path):
    import rae.bootstrap.config  # noqa: F401

    return rae.config.load("bootstrap", root)


def _target_version(explicit: str | None, root: Path) -> str:
    import rae.guidelines.config  # noqa: F401

    if explicit:
        return explicit
    env = os.environ.get("RAE_VERSION")
    if env:
        return env
    return rae.config.load("guidelines", root).default_version


def _print_step(step: BootstrapStep, result: StepResult) -> None:
    label = step.description or step.name
    print(f"==> {label}: {result.outcome.value}")


def _print_report(report: BootstrapReport) -> None:
    print()
    print(report.format_table())


def _run(steps: list[BootstrapStep], marker: Path | None, version: str) -> int:
    orchestrator = rae.bootstrap.orchestrator.BootstrapOrchestrator(
        marker_path=marker,
        version=version,
        on_step=_print_step,
    )
    try:
        report = orchestrator.run(steps)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    _print_report(report)
    return 0 if report.ok else 1


def _cmd_project(args: argparse.Namespace) -> int:
    """First-time project setup."""
    root = rae.config.project_root(Path(args.cwd))
    cfg = _bootstrap_cfg(root)
    version = _target_version(args.version, root)
    loader = rae.guidelines.loader.DocumentLoader.from_config(root, version=version)

    print(f"RAE bootstrap: version {version}")
    print(f"  project: {root}")
    steps = rae.bootstrap.plans.project_bootstrap_steps(root, version, loader, cfg=cfg)
    rc = _run(steps, root / cfg.marker_file, version)
    if rc == 0:
        print()
        print("Next steps:")
        print("  1. Edit CLAUDE.md with project-specific instructions")
        print("  2. Edit conductor/product.md with your product context")
        print("  3. Start working with 'claude' or 'gemini'")
        print("To upgrade: rae sync <tag>")
    return rc


def _cmd_sync(args: argparse.Namespace) -> int:
    """Update plugin, instructions, guidelines, and skills to a version."""
    root = rae.config.project_root(Path(args.cwd))
    cfg = _bootstrap_cfg(root)
    version = _target_version(args.tag or args.version, root)
    marker = root / cfg.marker_file
    current = rae.bootstrap.marker.read_marker(marker) or rae.bootstrap.marker.UNKNOWN

    print(f"Current version: {current}")
    print(f"Target version:  {version}")
    loader = rae.guidelines.loader.DocumentLoader.from_config(root, version=version)
    steps = rae.bootstrap.plans.sync_steps(root, version, loader, cfg=cfg)
    return _run(steps, marker, version)


def _cmd_user(args: argparse.Namespace) -> int:
    """Install tooling under $HOME; no project files are written."""
    cfg = _bootstrap_cfg(Path(args.cwd))
    print("RAE user-level install (writes under ~ only)")
    steps = rae.bootstrap.plans.user_install_steps(cfg=cfg)
    return _run(steps, None, "")


def _cmd_version(args: argparse.Namespace) -> int:
    root = rae.config.project_root(Path(args.cwd))
    marker = root / _bootstrap_cfg(root).marker_file
    current = rae.bootstrap.marker.read_marker(marker)
    if current is None:
        print(rae.bootstrap.marker.UNKNOWN)
        return 1
    print(current)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="rae",
        description="RAE bootstrap, sync, and install",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--cwd",
            default=".",
            help="Project directory (default: current directory)",
        )
        p.add_argument("-v", "--verbose", action="store_true")

    p_project = subparsers.add_parser("bootstrap", help="First-time project setup")
    _common(p_project)
    p_project.add_argument("--version", default=None, help="Version/tag to apply")

    p_sync = subparsers.add_parser("sync", help="Update to a version")
    _common(p_sync)
    p_sync.add_argument("tag", nargs="?", default=None, help="Version/tag to apply")
    p_sync.add_argument("--version", default=None, help=argparse.SUPPRESS)

    p_user = subparsers.add_parser("install-user", help="User-level install")
    _common(p_user)

    p_version = subparsers.add_parser("version", help="Show the version marker")
    _common(p_version)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command == "bootstrap":
        return _cmd_project(args)
    elif args.command == "sync":
        return _cmd_sync(args)
    elif args.command == "install-user":
        return _cmd_user(args)
    elif args.command == "version":
        return _cmd_version(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
