"""Configuration for guideline loading."""

from __future__ import annotations

import dataclasses

import rae.config


@rae.config.configurable("guidelines")
@dataclasses.dataclass
class GuidelinesConfig:
    # Remote origin; documents live at <remote_base>/<version>/<path>
    remote_base: str = (
        "https://raw.githubusercontent.com/peabody124/reproducible_agent_environment"
    )
    default_version: str = "main"
    fetch_timeout: float = 5.0

    # Project-local overrides, relative to the project root
    override_dir: str = "guidelines"

    # Per-version cache; "~" is expanded
    cache_dir: str = "~/.cache/rae/guidelines"
