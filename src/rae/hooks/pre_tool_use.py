"""PreToolUse hook — auto-approve Bash calls to trusted CLIs.

Commands whose executable is listed in ``hooks.approve_commands``
(default: the beads CLI ``bd``) are allowed without a prompt. Everything
else goes through the normal approval flow.
"""

from __future__ import annotations

import json
import pathlib
import re

import rae.config


def _approved_commands(cwd: pathlib.Path | None) -> list[str]:
    import rae.hooks.config  # noqa: F401

    raw = rae.config.load("hooks", cwd).approve_commands
    return [c.strip() for c in raw.split(",") if c.strip()]


def is_approved(command: str, approved: list[str]) -> bool:
    """Return True if *command* is exactly, or starts with, an approved CLI."""
    for name in approved:
        if command == name or re.match(rf"{re.escape(name)}\s", command):
            return True
    return False


def main(hook_input: dict) -> str:
    """Run the PreToolUse hook. Returns JSON output string."""
    tool_input = hook_input.get("tool_input") or {}
    command = tool_input.get("command") if isinstance(tool_input, dict) else None
    cwd_str = hook_input.get("cwd")
    cwd = pathlib.Path(cwd_str) if cwd_str else None

    if hook_input.get("tool_name", "Bash") != "Bash" or not isinstance(command, str):
        return json.dumps({"hookSpecificOutput": {}})

    if not is_approved(command, _approved_commands(cwd)):
        return json.dumps({"hookSpecificOutput": {}})

    return json.dumps({
        "hookSpecificOutput": {
            "hookEventName": "PreToolUse",
            "permissionDecision": "allow",
            "permissionDecisionReason": "rae: trusted CLI",
        }
    })
