"""CLI for rae configuration.

Usage:
    rae config list                         Show all sections and defaults
    rae config get <section.key>            Print effective value
    rae config set [--global] <key> <value> Write a config value
    rae config reset [--global] <key>       Remove an override
    rae config show                         Dump full effective config
    rae config paths                        Show the config files consulted
    rae config edit [--global]              Open config.toml in $EDITOR
"""

from __future__ import annotations

import argparse
import dataclasses
import os
import subprocess
import sys
from pathlib import Path

import rae.config


def _ensure_registry() -> None:
    """Import all config modules so the registry is populated."""
    import rae.bootstrap.config
    import rae.guidelines.config
    import rae.hooks.config  # noqa: F401


def _split_key(key: str) -> tuple[str, str] | None:
    section, sep, field = key.partition(".")
    if not sep or not section or not field:
        print(f"Invalid key format: {key!r} (expected section.key)", file=sys.stderr)
        return None
    return section, field


def _scope_path(global_flag: bool, root: Path | None) -> Path:
    scope = "global" if global_flag else "local"
    return rae.config.config_path(scope, rae.config.project_root(root))


def cmd_list() -> int:
    """Print every registered section with field types and defaults."""
    _ensure_registry()
    for name, cls in sorted(rae.config.list_sections().items()):
        print(f"[{name}]")
        for f in dataclasses.fields(cls):
            type_name = f.type if isinstance(f.type, str) else f.type.__name__
            print(f"  {f.name}: {type_name} = {f.default!r}")
        print()
    return 0


def cmd_get(key: str, root: Path) -> int:
    _ensure_registry()
    parts = _split_key(key)
    if parts is None:
        return 1
    try:
        value = rae.config.get_effective(*parts, root)
    except (KeyError, AttributeError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(value)
    return 0


def cmd_set(key: str, value: str, *, global_flag: bool, root: Path) -> int:
    _ensure_registry()
    parts = _split_key(key)
    if parts is None:
        return 1
    scope = "global" if global_flag else "local"
    try:
        rae.config.set_value(*parts, value, scope=scope, root=root)
    except (KeyError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(f"Set {key} = {value} ({scope})")
    return 0


def cmd_reset(key: str, *, global_flag: bool, root: Path) -> int:
    parts = _split_key(key)
    if parts is None:
        return 1
    scope = "global" if global_flag else "local"
    if not rae.config.reset_value(*parts, scope=scope, root=root):
        print(f"No {scope} override for {key}")
        return 0
    print(f"Reset {key} ({scope})")
    return 0


def cmd_show(root: Path | None) -> int:
    """Dump the effective value of every key and the scope that set it."""
    _ensure_registry()
    for name in sorted(rae.config.list_sections()):
        instance, sources = rae.config.load_with_sources(name, root)
        print(f"[{name}]")
        for f in dataclasses.fields(instance):
            print(f"  {f.name} = {getattr(instance, f.name)!r}  # {sources[f.name]}")
        print()
    return 0


def cmd_paths(root: Path | None) -> int:
    """Print the TOML files merged over the defaults, lowest precedence first."""
    project = rae.config.project_root(root)
    print(f"project {project}")
    for scope in rae.config.SCOPES:
        path = rae.config.config_path(scope, project)
        state = "exists" if path.exists() else "missing"
        print(f"{scope:<7s} {state:<8s} {path}")
    return 0


def cmd_edit(*, global_flag: bool, root: Path) -> int:
    path = _scope_path(global_flag, root)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text("# rae configuration\n# See: rae config list\n")

    editor = os.environ.get("EDITOR", "vi")
    return subprocess.call([editor, str(path)])


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``rae config``."""
    parser = argparse.ArgumentParser(
        prog="rae config",
        description="RAE configuration.",
    )
    sub = parser.add_subparsers(dest="subcmd")

    def _with_path(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("--path", type=Path, default=None)
        return p

    def _with_scope(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("--global", dest="global_flag", action="store_true")
        return _with_path(p)

    sub.add_parser("list", help="Show all configurable sections")
    _with_path(sub.add_parser("get", help="Print effective value")).add_argument(
        "key", help="section.key"
    )
    p_set = _with_scope(sub.add_parser("set", help="Set a config value"))
    p_set.add_argument("key", help="section.key")
    p_set.add_argument("value", help="New value")
    _with_scope(sub.add_parser("reset", help="Remove an override")).add_argument(
        "key", help="section.key"
    )
    _with_path(sub.add_parser("show", help="Dump full effective config"))
    _with_path(sub.add_parser("paths", help="Show config file locations"))
    _with_scope(sub.add_parser("edit", help="Open config.toml in $EDITOR"))

    args = parser.parse_args(argv)

    if args.subcmd == "list":
        return cmd_list()
    elif args.subcmd == "get":
        return cmd_get(args.key, args.path)
    elif args.subcmd == "set":
        return cmd_set(
            args.key, args.value, global_flag=args.global_flag, root=args.path
        )
    elif args.subcmd == "reset":
        return cmd_reset(args.key, global_flag=args.global_flag, root=args.path)
    elif args.subcmd == "show":
        return cmd_show(args.path)
    elif args.subcmd == "paths":
        return cmd_paths(args.path)
    elif args.subcmd == "edit":
        return cmd_edit(global_flag=args.global_flag, root=args.path)

    parser.print_help()
    return 1
