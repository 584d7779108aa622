"""Configuration for rae hooks."""

from __future__ import annotations

import dataclasses

import rae.config


@rae.config.configurable("hooks")
@dataclasses.dataclass
class HooksConfig:
    # SessionStart: task type whose guidelines are injected
    session_task_type: str = "session"

    # PreToolUse: comma-separated executables whose Bash calls are
    # auto-approved (empty string disables)
    approve_commands: str = "bd"
