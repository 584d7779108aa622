"""Configuration for bootstrap, sync, and user-level install."""

from __future__ import annotations

import dataclasses

import rae.config


@rae.config.configurable("bootstrap")
@dataclasses.dataclass
class BootstrapConfig:
    # Raw-file origin for CLAUDE.md, GEMINI.md and skills
    repo_base: str = (
        "https://raw.githubusercontent.com/peabody124/reproducible_agent_environment"
    )
    repo_id: str = "peabody124/reproducible_agent_environment"
    plugin: str = "rae@rae-marketplace"

    # Version marker, relative to the project root
    marker_file: str = ".rae-version"

    # Bounded waits (seconds)
    command_timeout: float = 300.0
    download_timeout: float = 10.0

    # Shared skills for Gemini/MCP clients; "~" is expanded
    skills_dir: str = "~/.skillz"
