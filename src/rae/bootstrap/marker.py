"""Version marker persistence (``.rae-version``).

The marker is informational: it records which version a bootstrap or
sync pass applied and is shown by ``rae version`` and ``rae sync``.
"""

from __future__ import annotations

import pathlib

import rae.fileio

UNKNOWN = "unknown"


def read_marker(path: pathlib.Path) -> str | None:
    """Return the recorded version, or ``None`` if absent or unreadable."""
    try:
        value = path.read_text().strip()
    except OSError:
        return None
    return value or None


def write_marker(path: pathlib.Path, version: str) -> None:
    rae.fileio.write_text_atomic(path, version.strip() + "\n")


def ensure_gitignored(root: pathlib.Path, entry: str) -> bool:
    """Add *entry* to ``<root>/.gitignore`` if missing. Returns True if added."""
    gitignore = root / ".gitignore"
    if gitignore.exists():
        existing = gitignore.read_text()
        if entry in existing.splitlines():
            return False
        prefix = "" if not existing or existing.endswith("\n") else "\n"
        gitignore.write_text(existing + prefix + entry + "\n")
    else:
        gitignore.write_text(entry + "\n")
    return True


def is_gitignored(root: pathlib.Path, entry: str) -> bool:
    gitignore = root / ".gitignore"
    try:
        return entry in gitignore.read_text().splitlines()
    except OSError:
        return False
