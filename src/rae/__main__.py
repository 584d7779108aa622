"""RAE CLI — reproducible agent environment.

Usage:
    rae guidelines [--task-type T ...]   Print guidelines for task types
    rae guidelines list|show|sources     Inspect the mapping and sources
    rae bootstrap [--version TAG]        First-time project setup
    rae sync [TAG]                       Update project files to TAG
    rae install-user                     Install tooling under $HOME only
    rae version                          Show the recorded version marker
    rae install          Register hooks in current project
    rae install --global Register hooks globally (~/.claude/settings.json)
    rae install --remove Remove hooks (add --global for global)
    rae config <cmd>     Configuration (list/get/set/reset/show/paths/edit)
    rae hook <event>     Run a hook (called by Claude Code, not users)
"""

from __future__ import annotations

import json
import pathlib
import sys

_HOOK_EVENTS = {
    "SessionStart": "rae.hooks.session_start",
    "PreToolUse": "rae.hooks.pre_tool_use",
}

_HOOK_TIMEOUTS = {
    "SessionStart": 15000,
    "PreToolUse": 3000,
}

_HOOK_MATCHERS = {
    "PreToolUse": "Bash",
}

_GLOBAL_SETTINGS = pathlib.Path.home() / ".claude" / "settings.json"


def _hook_command(event: str) -> str:
    return f"rae hook {event}"


def _is_rae_entry(entry: dict) -> bool:
    return any(
        h.get("command", "").startswith("rae hook ")
        for h in entry.get("hooks", [])
        if isinstance(h, dict)
    )


def _merge_hooks(settings: dict) -> dict:
    """Add rae's hook entries to *settings*, keeping everyone else's."""
    hooks = settings.setdefault("hooks", {})
    for event in _HOOK_EVENTS:
        entries = [e for e in hooks.get(event, []) if not _is_rae_entry(e)]
        entry: dict = {
            "hooks": [
                {
                    "type": "command",
                    "command": _hook_command(event),
                    "timeout": _HOOK_TIMEOUTS[event],
                }
            ]
        }
        if event in _HOOK_MATCHERS:
            entry["matcher"] = _HOOK_MATCHERS[event]
        entries.append(entry)
        hooks[event] = entries
    return settings


def _strip_hooks(settings: dict) -> dict:
    """Remove rae's hook entries from *settings*."""
    hooks = settings.get("hooks", {})
    for event in list(hooks):
        kept = [e for e in hooks[event] if not _is_rae_entry(e)]
        if kept:
            hooks[event] = kept
        else:
            del hooks[event]
    if "hooks" in settings and not hooks:
        del settings["hooks"]
    return settings


def _cmd_install(args: list[str]) -> int:
    """Register or remove rae hooks.

    By default writes to .claude/settings.local.json in the current
    project.  Use ``--global`` to write to ~/.claude/settings.json
    instead.
    """
    remove = "--remove" in args
    is_global = "--global" in args

    if is_global:
        settings_path = _GLOBAL_SETTINGS
    else:
        settings_path = pathlib.Path.cwd() / ".claude" / "settings.local.json"

    settings_path.parent.mkdir(parents=True, exist_ok=True)

    settings: dict = {}
    if settings_path.exists():
        try:
            settings = json.loads(settings_path.read_text())
        except json.JSONDecodeError as exc:
            print(f"Cannot parse {settings_path}: {exc}", file=sys.stderr)
            return 1

    if remove:
        _strip_hooks(settings)
        settings_path.write_text(json.dumps(settings, indent=2) + "\n")
        print("RAE hooks removed from", settings_path)
        return 0

    _merge_hooks(settings)
    settings_path.write_text(json.dumps(settings, indent=2) + "\n")
    scope = "global" if is_global else "project"
    print(f"RAE hooks registered ({scope}) in {settings_path}")
    print(f"  {len(_HOOK_EVENTS)} hooks: {', '.join(_HOOK_EVENTS)}")
    return 0


def _cmd_hook(args: list[str]) -> int:
    """Dispatch a hook event. Called by Claude Code, not users."""
    if not args:
        print("Usage: rae hook <event>", file=sys.stderr)
        print(f"Events: {', '.join(_HOOK_EVENTS)}", file=sys.stderr)
        return 1

    event = args[0]
    module_name = _HOOK_EVENTS.get(event)
    if module_name is None:
        print(f"Unknown hook event: {event}", file=sys.stderr)
        return 1

    import importlib

    module = importlib.import_module(module_name)

    hook_data: dict = {}
    try:
        raw = sys.stdin.read()
        if raw:
            hook_data = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        pass

    print(module.main(hook_data))
    return 0


def _cmd_guidelines(args: list[str]) -> int:
    import rae.guidelines.__main__

    return rae.guidelines.__main__.main(args)


def _cmd_bootstrap(command: str, args: list[str]) -> int:
    import rae.bootstrap.__main__

    return rae.bootstrap.__main__.main([command, *args])


def _cmd_config(args: list[str]) -> int:
    import rae.config_cli

    return rae.config_cli.main(args)


def main() -> None:
    args = sys.argv[1:]
    if not args:
        print(__doc__)
        sys.exit(1)

    cmd = args[0]
    rest = args[1:]

    if cmd == "guidelines":
        sys.exit(_cmd_guidelines(rest))
    elif cmd in ("bootstrap", "sync", "install-user", "version"):
        sys.exit(_cmd_bootstrap(cmd, rest))
    elif cmd == "install":
        sys.exit(_cmd_install(rest))
    elif cmd == "hook":
        sys.exit(_cmd_hook(rest))
    elif cmd == "config":
        sys.exit(_cmd_config(rest))
    else:
        print(__doc__)
        sys.exit(1)


if __name__ == "__main__":
    main()
