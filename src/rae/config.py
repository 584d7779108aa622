"""Layered TOML settings for rae.

Each feature declares a dataclass section with ``@configurable``.
``load()`` builds it from the code defaults, then the user file, then the
project file; later layers win key by key.

Config files:
    ~/.config/rae/config.toml     global (user-wide)
    <project>/.rae/config.toml    local  (project-specific)

The project is the nearest ancestor of the working directory holding
``.git`` or ``.rae``. Hooks pass the assistant's ``cwd`` explicitly;
without one, ``$CLAUDE_PROJECT_DIR`` and then the process cwd are used.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import pathlib
import tomllib
import typing
from typing import Any, TypeVar

T = TypeVar("T")

logger = logging.getLogger("rae.config")

SCOPES = ("global", "local")
PROJECT_MARKERS = (".git", ".rae")

_REGISTRY: dict[str, type] = {}

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off", "")


def configurable(section: str):
    """Register a dataclass as the ``[section]`` table."""

    def decorator(cls: type[T]) -> type[T]:
        _REGISTRY[section] = cls
        return cls

    return decorator


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

def _global_path() -> pathlib.Path:
    return pathlib.Path.home() / ".config" / "rae" / "config.toml"


def config_path(scope: str, root: pathlib.Path) -> pathlib.Path:
    """Return the TOML file for *scope* (``global`` or ``local``)."""
    if scope == "global":
        return _global_path()
    if scope == "local":
        return root / ".rae" / "config.toml"
    raise ValueError(f"Unknown config scope: {scope!r} (expected global or local)")


def find_project_root(cwd: pathlib.Path) -> pathlib.Path | None:
    """Return the nearest ancestor of *cwd* holding a project marker."""
    current = cwd.resolve()
    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in PROJECT_MARKERS):
            return candidate
    return None


def project_root(cwd: pathlib.Path | None = None) -> pathlib.Path:
    """Locate the project for *cwd*, falling back to *cwd* itself."""
    if cwd is None:
        env = os.environ.get("CLAUDE_PROJECT_DIR")
        cwd = pathlib.Path(env) if env else pathlib.Path.cwd()
    found = find_project_root(cwd)
    return found if found is not None else cwd


# ---------------------------------------------------------------------------
# TOML I/O
# ---------------------------------------------------------------------------

def _read_scope(path: pathlib.Path) -> dict[str, Any]:
    """Parse one config file; missing or malformed files contribute nothing."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", path, exc)
        return {}
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("Ignoring malformed %s: %s", path, exc)
        return {}


def _write_scope(path: pathlib.Path, data: dict[str, Any]) -> None:
    import tomli_w

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(data).encode())


# ---------------------------------------------------------------------------
# Sections and values
# ---------------------------------------------------------------------------

def _section(section: str) -> tuple[type, dict[str, type]]:
    """Return the dataclass for *section* and its resolved field types."""
    cls = _REGISTRY.get(section)
    if cls is None:
        raise KeyError(f"Unknown config section: {section}")
    hints = typing.get_type_hints(cls)
    return cls, {f.name: hints.get(f.name, str) for f in dataclasses.fields(cls)}


def _parse(raw: str, target: type, key: str = "value") -> Any:
    """Convert a command-line string to the field's type."""
    if target is bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"{key}: expected a boolean, got {raw!r}")
    if target in (int, float):
        try:
            return target(raw)
        except ValueError:
            raise ValueError(
                f"{key}: expected {target.__name__}, got {raw!r}"
            ) from None
    return raw


def list_sections() -> dict[str, type]:
    """Return a copy of the registry."""
    return dict(_REGISTRY)


def load_with_sources(
    section: str,
    root: pathlib.Path | None = None,
) -> tuple[Any, dict[str, str]]:
    """Load *section* and report which scope supplied each key.

    Sources are ``default``, ``global`` or ``local``. Keys a file sets
    that the section does not declare are ignored.
    """
    cls, types = _section(section)
    root = project_root(root)

    values: dict[str, Any] = {}
    sources = {name: "default" for name in types}
    for scope in SCOPES:
        table = _read_scope(config_path(scope, root)).get(section, {})
        for key, value in table.items():
            if key not in types:
                logger.debug("Ignoring unknown key %s.%s (%s)", section, key, scope)
                continue
            values[key] = value
            sources[key] = scope
    return cls(**values), sources


def load(section: str, root: pathlib.Path | None = None) -> Any:
    """Load a config section, merging defaults → global → local."""
    return load_with_sources(section, root)[0]


def get_effective(
    section: str,
    key: str,
    root: pathlib.Path | None = None,
) -> Any:
    """Get the effective value for a single config key."""
    return getattr(load(section, root), key)


def set_value(
    section: str,
    key: str,
    value: Any,
    *,
    scope: str = "local",
    root: pathlib.Path | None = None,
) -> None:
    """Write one key to the *scope* file, parsing strings to the field type."""
    _, types = _section(section)
    if key not in types:
        raise KeyError(f"Unknown key: {section}.{key}")
    if isinstance(value, str):
        value = _parse(value, types[key], f"{section}.{key}")

    path = config_path(scope, project_root(root))
    data = _read_scope(path)
    data.setdefault(section, {})[key] = value
    _write_scope(path, data)


def reset_value(
    section: str,
    key: str,
    *,
    scope: str = "local",
    root: pathlib.Path | None = None,
) -> bool:
    """Drop an override from the *scope* file. Returns True if one existed."""
    path = config_path(scope, project_root(root))
    data = _read_scope(path)
    table = data.get(section, {})
    if key not in table:
        return False
    del table[key]
    if not table:
        del data[section]
    _write_scope(path, data)
    return True
