"""SessionStart hook — inject guideline documents into the session.

Reads stdin JSON, resolves the configured session task type, loads its
guideline documents through the precedence chain, and returns them as
additionalContext. Missing documents are skipped; the hook never fails
the session.
"""

from __future__ import annotations

import json
import logging
import pathlib
import sys

import rae.config
import rae.errors
import rae.guidelines.context
import rae.guidelines.loader
import rae.guidelines.mapping

logger = logging.getLogger("rae.hooks.session_start")


def _hooks_cfg(root: pathlib.Path):
    import rae.hooks.config  # noqa: F401

    return rae.config.load("hooks", root)


def gather_context(cwd: pathlib.Path | None = None) -> str:
    """Return the rendered guideline context for the project at *cwd*."""
    root = rae.config.project_root(cwd)
    task_type = _hooks_cfg(root).session_task_type
    builder = rae.guidelines.context.SessionContextBuilder(
        rae.guidelines.mapping.GuidelineResolver(),
        rae.guidelines.loader.DocumentLoader.from_config(root),
    )
    try:
        context = builder.build(task_type)
    except rae.errors.UnknownTaskType as exc:
        logger.warning("%s", exc)
        return ""
    return context.render()


def main(hook_input: dict) -> str:
    """Run the SessionStart hook. Returns JSON output string."""
    cwd_str = hook_input.get("cwd")
    cwd = pathlib.Path(cwd_str) if cwd_str else None

    output = {
        "hookSpecificOutput": {
            "hookEventName": "SessionStart",
            "additionalContext": gather_context(cwd),
        }
    }
    return json.dumps(output)


if __name__ == "__main__":
    hook_data: dict = {}
    try:
        raw = sys.stdin.read()
        if raw:
            hook_data = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        pass

    print(main(hook_data))
