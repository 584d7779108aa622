"""CLI for guideline resolution.

Usage:
    rae guidelines [--task-type T ...]   Print aggregated guidelines (default: all)
    rae guidelines list                  Show task types and their documents
    rae guidelines show <doc-id>         Print a single document
    rae guidelines sources <doc-id>      Show the precedence chain for a document

Exit codes: 0 on (partial) success, 1 if nothing could be loaded,
2 on an unknown task type.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import rae.config
import rae.errors
import rae.guidelines.context
import rae.guidelines.loader
import rae.guidelines.mapping

logger = logging.getLogger("rae.guidelines")

EXIT_EMPTY = 1
EXIT_UNKNOWN_TASK = 2


def _loader(args: argparse.Namespace) -> rae.guidelines.loader.DocumentLoader:
    root = rae.config.project_root(Path(args.cwd))
    version = args.version or os.environ.get("RAE_VERSION") or None
    return rae.guidelines.loader.DocumentLoader.from_config(root, version=version)


def _cmd_load(args: argparse.Namespace) -> int:
    """Print the aggregated context for the requested task types."""
    task_types = args.task_type or [rae.guidelines.mapping.ALL]
    builder = rae.guidelines.context.SessionContextBuilder(
        rae.guidelines.mapping.GuidelineResolver(), _loader(args)
    )
    try:
        planned = builder.plan(task_types)
    except rae.errors.UnknownTaskType as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_UNKNOWN_TASK

    context = builder.build(task_types)
    if planned and not context.entries:
        print("No guideline documents could be loaded.", file=sys.stderr)
        return EXIT_EMPTY

    sys.stdout.write(context.render(", ".join(task_types)))
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    """Print every task type with its resolved documents."""
    del args
    resolver = rae.guidelines.mapping.GuidelineResolver()
    types = resolver.task_types()
    width = max(len(t) for t in types)
    for task_type in types:
        print(f"{task_type:<{width}s}  {', '.join(resolver.resolve(task_type))}")
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    """Print one document; unavailable is fatal here."""
    try:
        document = _loader(args).load(args.doc_id)
    except rae.errors.DocumentUnavailable as exc:
        print(str(exc), file=sys.stderr)
        return 1
    logger.info("%s loaded from %s", document.doc_id, document.location)
    sys.stdout.write(document.content)
    return 0


def _cmd_sources(args: argparse.Namespace) -> int:
    """Print the precedence chain and which candidates currently exist."""
    loader = _loader(args)
    try:
        candidates = loader.candidates(args.doc_id)
    except rae.errors.DocumentUnavailable as exc:
        print(str(exc), file=sys.stderr)
        return 1
    for i, candidate in enumerate(candidates, 1):
        if candidate.kind is rae.guidelines.loader.SourceKind.REMOTE:
            state = "network"
        else:
            state = "present" if Path(candidate.location).is_file() else "absent"
        print(f"{i}. {candidate.kind.value:<8s} {state:<8s} {candidate.location}")
    return 0


def _common_args(*, subcommand: bool) -> argparse.ArgumentParser:
    """Options accepted both before and after the subcommand.

    The subcommand copy defaults to ``SUPPRESS`` so it only replaces the
    top-level value when the option is given after the subcommand.
    """

    def default(value):
        return argparse.SUPPRESS if subcommand else value

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--cwd",
        default=default("."),
        help="Project directory (default: current directory)",
    )
    common.add_argument(
        "--version",
        default=default(None),
        help="Guideline version/tag (default: $RAE_VERSION or config)",
    )
    common.add_argument(
        "-v", "--verbose", action="store_true", default=default(False)
    )
    return common


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``rae guidelines``."""
    parser = argparse.ArgumentParser(
        prog="rae guidelines",
        description="Resolve and print guideline documents.",
        parents=[_common_args(subcommand=False)],
    )
    parser.add_argument(
        "--task-type",
        action="append",
        metavar="TASK_TYPE",
        help="Task type to load (repeatable; default: all)",
    )
    sub = parser.add_subparsers(dest="subcmd")
    sub_common = _common_args(subcommand=True)

    sub.add_parser(
        "list", help="Show task types and their documents", parents=[sub_common]
    )

    p_show = sub.add_parser(
        "show", help="Print a single document", parents=[sub_common]
    )
    p_show.add_argument("doc_id")

    p_sources = sub.add_parser(
        "sources", help="Show the precedence chain", parents=[sub_common]
    )
    p_sources.add_argument("doc_id")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if args.subcmd is None:
        return _cmd_load(args)
    elif args.subcmd == "list":
        return _cmd_list(args)
    elif args.subcmd == "show":
        return _cmd_show(args)
    elif args.subcmd == "sources":
        return _cmd_sources(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
