"""Declarative step lists for project bootstrap, sync, and user install.

Each builder returns an ordered list of ``BootstrapStep`` objects; nothing
runs until the list is handed to ``BootstrapOrchestrator.run``. Steps that
install optional tooling use ``FailurePolicy.CONTINUE``; only steps the
rest of the setup depends on abort.
"""

from __future__ import annotations

import pathlib
from typing import TYPE_CHECKING

import rae.bootstrap.actions as actions
import rae.bootstrap.marker
import rae.errors
from rae.bootstrap.steps import BootstrapStep, FailurePolicy

if TYPE_CHECKING:
    import rae.bootstrap.config
    import rae.guidelines.loader

ABORT = FailurePolicy.ABORT

BOOTSTRAP_SKILLS = (
    "deslop",
    "consult-guidelines",
    "config-improvement",
    "enforce-guidelines",
    "scaffold-repo",
)
SYNC_SKILLS = ("deslop", "consult-guidelines", "config-improvement")

OFFICIAL_PLUGINS = (
    "pyright-lsp",
    "code-review",
    "feature-dev",
    "code-simplifier",
    "plugin-dev",
)

GEMINI_EXTENSIONS = {
    "conductor": ["gemini-cli-extensions/conductor", "--auto-update"],
    "skillz": ["intellectronica/gemini-cli-skillz"],
}

CLAUDE_INSTALLER = "curl -fsSL https://claude.ai/install.sh | bash"
UV_INSTALLER = "curl -LsSf https://astral.sh/uv/install.sh | sh"
BEADS_INSTALLER = (
    "curl -fsSL https://raw.githubusercontent.com/steveyegge/beads/main/"
    "scripts/install.sh | bash"
)

CLAUDE_MD_TEMPLATE = """\
# Project Agent Instructions

<!-- Global instructions are loaded from .claude/GLOBAL_INSTRUCTIONS.md -->
<!-- Add project-specific instructions below -->

## Project Context

<!-- Describe your project here -->

## Project-Specific Commands

<!-- Add project-specific commands here -->

## Local Overrides

<!-- Document any local overrides and why they exist -->
"""

PRODUCT_MD_TEMPLATE = """\
# Product Context

## Vision

<!-- Describe the product vision -->

## Goals

<!-- List primary goals -->

## Non-Goals

<!-- What this project explicitly does NOT do -->
"""

WORKFLOW_MD_TEMPLATE = """\
# Workflow Preferences

## Development Flow

1. Understand requirements
2. Write failing test (TDD)
3. Implement minimal solution
4. Refactor and clean up
5. Run deslop before commit

## Review Checklist

- [ ] Tests pass
- [ ] Ruff format/check clean
- [ ] No slop patterns
- [ ] Atomic commits
"""


def _load_cfg(root: pathlib.Path) -> rae.bootstrap.config.BootstrapConfig:
    import rae.bootstrap.config  # noqa: F401
    import rae.config

    return rae.config.load("bootstrap", root)


def _marketplace_of(plugin: str) -> str:
    return plugin.split("@", 1)[1] if "@" in plugin else plugin


# ---------------------------------------------------------------------------
# Claude plugin helpers
# ---------------------------------------------------------------------------

def _claude_lists(needle: str, *, marketplaces: bool, timeout: float) -> bool:
    """Return True if ``claude plugin [marketplace] list`` mentions *needle*."""
    if not actions.command_available("claude"):
        return False
    argv = ["claude", "plugin", "list"]
    if marketplaces:
        argv = ["claude", "plugin", "marketplace", "list"]
    try:
        out = actions.run_command(argv, timeout=timeout)
    except rae.errors.StepExecutionFailed:
        return False
    return needle in out


def _marketplace_step(name: str, repo: str, marketplace: str, timeout: float):
    def action() -> str:
        actions.require_command("claude", name)
        actions.run_command(
            ["claude", "plugin", "marketplace", "add", repo],
            timeout=timeout,
            step=name,
        )
        return f"registered {repo}"

    return BootstrapStep(
        name,
        action,
        check=lambda: _claude_lists(marketplace, marketplaces=True, timeout=timeout),
        description=f"Register the {marketplace} marketplace",
    )


def _plugin_step(
    name: str,
    plugin: str,
    timeout: float,
    *,
    update: bool = False,
    skip_if_installed: bool = True,
):
    def action() -> str:
        actions.require_command("claude", name)
        alternatives = [["claude", "plugin", "install", plugin, "--scope", "user"]]
        if update:
            alternatives.append(["claude", "plugin", "update", plugin])
        actions.run_first(alternatives, timeout=timeout, step=name)
        return plugin

    check = None
    if skip_if_installed:
        plugin_name = plugin.split("@", 1)[0]
        check = lambda: _claude_lists(  # noqa: E731
            plugin_name, marketplaces=False, timeout=timeout
        )

    return BootstrapStep(
        name, action, check=check, description=f"Install plugin {plugin}"
    )


# ---------------------------------------------------------------------------
# Shared fetch steps
# ---------------------------------------------------------------------------

def _download_step(
    name: str,
    url: str,
    dest: pathlib.Path,
    timeout: float,
    *,
    on_failure: FailurePolicy = FailurePolicy.CONTINUE,
) -> BootstrapStep:
    return BootstrapStep(
        name,
        lambda: actions.download(url, dest, timeout=timeout, step=name),
        on_failure=on_failure,
        description=f"Fetch {url}",
    )


def _guidelines_step(
    loader: rae.guidelines.loader.DocumentLoader,
    doc_ids: list[str],
    *,
    skip_if_cached: bool,
) -> BootstrapStep:
    name = "guidelines"

    def action() -> str:
        failed: list[str] = []
        for doc_id in doc_ids:
            try:
                loader.refresh(doc_id)
            except rae.errors.DocumentUnavailable:
                failed.append(doc_id)
        if failed:
            raise rae.errors.StepExecutionFailed(
                name,
                f"{len(failed)} of {len(doc_ids)} unavailable: {', '.join(failed)}",
            )
        return f"cached {len(doc_ids)} documents"

    check = None
    if skip_if_cached and loader.cache is not None:
        cache = loader.cache
        check = lambda: all(cache.get(d) is not None for d in doc_ids)  # noqa: E731

    return BootstrapStep(
        name, action, check=check, description="Cache guideline documents"
    )


def _skills_step(
    base: str,
    skills: tuple[str, ...],
    skills_dir: pathlib.Path,
    timeout: float,
) -> BootstrapStep:
    name = "shared-skills"

    def action() -> str:
        failed: list[str] = []
        for skill in skills:
            try:
                actions.download(
                    f"{base}/skills/{skill}/SKILL.md",
                    skills_dir / skill / "SKILL.md",
                    timeout=timeout,
                    step=name,
                )
            except rae.errors.StepExecutionFailed:
                failed.append(skill)
        if failed:
            raise rae.errors.StepExecutionFailed(
                name, f"could not fetch: {', '.join(failed)}"
            )
        return f"{len(skills)} skills in {skills_dir}"

    return BootstrapStep(
        name, action, description=f"Install shared skills into {skills_dir}"
    )


def _gemini_extension_step(name: str, args: list[str], timeout: float):
    def action() -> str:
        actions.require_command("gemini", name)
        actions.run_command(
            ["gemini", "extensions", "install", *args], timeout=timeout, step=name
        )
        return args[0]

    return BootstrapStep(name, action, description=f"Install Gemini extension {args[0]}")


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

def project_bootstrap_steps(
    root: pathlib.Path,
    version: str,
    loader: rae.guidelines.loader.DocumentLoader,
    *,
    cfg: rae.bootstrap.config.BootstrapConfig | None = None,
    doc_ids: list[str] | None = None,
) -> list[BootstrapStep]:
    """First-time project setup."""
    cfg = cfg or _load_cfg(root)
    base = f"{cfg.repo_base.rstrip('/')}/{version}"
    cmd_timeout = cfg.command_timeout
    dl_timeout = cfg.download_timeout
    doc_ids = doc_ids if doc_ids is not None else loader.document_ids()
    claude_dir = root / ".claude"
    conductor_dir = root / "conductor"

    def install_claude_code() -> str:
        actions.require_command("npm", "claude-code")
        actions.run_command(
            ["npm", "install", "-g", "@anthropic-ai/claude-code"],
            timeout=cmd_timeout,
            step="claude-code",
        )
        return "installed via npm"

    def install_gemini_cli() -> str:
        actions.require_command("pip", "gemini-cli")
        actions.run_command(
            ["pip", "install", "--quiet", "gemini-cli"],
            timeout=cmd_timeout,
            step="gemini-cli",
        )
        return "installed via pip"

    return [
        BootstrapStep(
            "claude-code",
            install_claude_code,
            check=lambda: actions.command_available("claude"),
            description="Install the Claude Code CLI",
        ),
        BootstrapStep(
            "gemini-cli",
            install_gemini_cli,
            check=lambda: actions.command_available("gemini"),
            description="Install the Gemini CLI",
        ),
        _marketplace_step(
            "rae-marketplace", cfg.repo_id, _marketplace_of(cfg.plugin), cmd_timeout
        ),
        _plugin_step("rae-plugin", cfg.plugin, cmd_timeout, update=True),
        BootstrapStep(
            "directories",
            lambda: actions.make_dirs(claude_dir, conductor_dir),
            check=lambda: claude_dir.is_dir() and conductor_dir.is_dir(),
            on_failure=ABORT,
            description="Create .claude/ and conductor/",
        ),
        _download_step(
            "global-instructions",
            f"{base}/CLAUDE.md",
            claude_dir / "GLOBAL_INSTRUCTIONS.md",
            dl_timeout,
            on_failure=ABORT,
        ),
        _download_step(
            "gemini-context", f"{base}/GEMINI.md", root / ".gemini_context.md", dl_timeout
        ),
        _guidelines_step(loader, doc_ids, skip_if_cached=True),
        BootstrapStep(
            "claude-md",
            lambda: actions.write_if_missing(root / "CLAUDE.md", CLAUDE_MD_TEMPLATE),
            check=lambda: (root / "CLAUDE.md").exists(),
            description="Seed project CLAUDE.md",
        ),
        _skills_step(
            base,
            BOOTSTRAP_SKILLS,
            pathlib.Path(cfg.skills_dir).expanduser(),
            dl_timeout,
        ),
        *(
            _gemini_extension_step(f"gemini-{name}", args, cmd_timeout)
            for name, args in GEMINI_EXTENSIONS.items()
        ),
        BootstrapStep(
            "conductor-product",
            lambda: actions.write_if_missing(
                conductor_dir / "product.md", PRODUCT_MD_TEMPLATE
            ),
            check=lambda: (conductor_dir / "product.md").exists(),
            description="Seed conductor/product.md",
        ),
        BootstrapStep(
            "conductor-workflow",
            lambda: actions.write_if_missing(
                conductor_dir / "workflow.md", WORKFLOW_MD_TEMPLATE
            ),
            check=lambda: (conductor_dir / "workflow.md").exists(),
            description="Seed conductor/workflow.md",
        ),
        BootstrapStep(
            "gitignore",
            lambda: str(rae.bootstrap.marker.ensure_gitignored(root, cfg.marker_file)),
            check=lambda: rae.bootstrap.marker.is_gitignored(root, cfg.marker_file),
            description=f"Ignore {cfg.marker_file}",
        ),
    ]


def sync_steps(
    root: pathlib.Path,
    version: str,
    loader: rae.guidelines.loader.DocumentLoader,
    *,
    cfg: rae.bootstrap.config.BootstrapConfig | None = None,
    doc_ids: list[str] | None = None,
) -> list[BootstrapStep]:
    """Refresh plugin, instructions, guidelines, and skills to *version*."""
    cfg = cfg or _load_cfg(root)
    base = f"{cfg.repo_base.rstrip('/')}/{version}"
    cmd_timeout = cfg.command_timeout
    dl_timeout = cfg.download_timeout
    doc_ids = doc_ids if doc_ids is not None else loader.document_ids()
    claude_dir = root / ".claude"

    def update_plugin() -> str:
        actions.require_command("claude", "rae-plugin")
        actions.run_command(
            ["claude", "plugin", "update", cfg.plugin],
            timeout=cmd_timeout,
            step="rae-plugin",
        )
        return f"updated {cfg.plugin}"

    return [
        BootstrapStep("rae-plugin", update_plugin, description="Update the RAE plugin"),
        BootstrapStep(
            "directories",
            lambda: actions.make_dirs(claude_dir),
            check=claude_dir.is_dir,
            on_failure=ABORT,
            description="Create .claude/",
        ),
        _download_step(
            "global-instructions",
            f"{base}/CLAUDE.md",
            claude_dir / "GLOBAL_INSTRUCTIONS.md",
            dl_timeout,
            on_failure=ABORT,
        ),
        _download_step(
            "gemini-context", f"{base}/GEMINI.md", root / ".gemini_context.md", dl_timeout
        ),
        _guidelines_step(loader, doc_ids, skip_if_cached=False),
        _skills_step(
            base, SYNC_SKILLS, pathlib.Path(cfg.skills_dir).expanduser(), dl_timeout
        ),
    ]


def user_install_steps(
    *,
    cfg: rae.bootstrap.config.BootstrapConfig | None = None,
    home: pathlib.Path | None = None,
) -> list[BootstrapStep]:
    """User-level install: writes only under ``$HOME``, never the project."""
    cfg = cfg or _load_cfg(pathlib.Path.cwd())
    home = home or pathlib.Path.home()
    timeout = cfg.command_timeout
    local_bin = home / ".local" / "bin"

    def install_claude() -> str:
        actions.run_shell_pipeline(CLAUDE_INSTALLER, timeout=timeout, step="claude-code")
        actions.prepend_path(local_bin)
        actions.require_command("claude", "claude-code")
        return "installed native binary"

    def install_uv() -> str:
        actions.run_shell_pipeline(UV_INSTALLER, timeout=timeout, step="uv")
        actions.prepend_path(local_bin)
        return "installed"

    def install_pyright() -> str:
        if actions.command_available("uv"):
            actions.run_command(
                ["uv", "tool", "install", "pyright"], timeout=timeout, step="pyright"
            )
            return "installed via uv"
        if actions.command_available("pip"):
            actions.run_command(
                ["pip", "install", "pyright"], timeout=timeout, step="pyright"
            )
            return "installed via pip"
        raise rae.errors.StepExecutionFailed(
            "pyright", "neither uv nor pip found; run: pip install pyright"
        )

    def install_beads_cli() -> str:
        actions.run_shell_pipeline(BEADS_INSTALLER, timeout=timeout, step="beads-cli")
        actions.prepend_path(home / "go" / "bin")
        actions.prepend_path(local_bin)
        return "installed"

    def setup_beads_hooks() -> str:
        actions.require_command("bd", "beads-hooks")
        actions.run_command(
            ["bd", "setup", "claude"], timeout=timeout, step="beads-hooks"
        )
        return "configured"

    steps = [
        BootstrapStep(
            "claude-code",
            install_claude,
            check=lambda: actions.command_available("claude"),
            description="Install the Claude Code CLI",
        ),
        _marketplace_step(
            "rae-marketplace", cfg.repo_id, _marketplace_of(cfg.plugin), timeout
        ),
        _plugin_step(
            "rae-plugin", cfg.plugin, timeout, update=True, skip_if_installed=False
        ),
        BootstrapStep(
            "uv",
            install_uv,
            check=lambda: actions.command_available("uv"),
            description="Install uv",
        ),
        BootstrapStep(
            "pyright",
            install_pyright,
            check=lambda: actions.command_available("pyright"),
            description="Install the pyright binary",
        ),
    ]
    steps.extend(
        _plugin_step(plugin, f"{plugin}@claude-plugins-official", timeout)
        for plugin in OFFICIAL_PLUGINS
    )
    steps.extend(
        [
            BootstrapStep(
                "beads-cli",
                install_beads_cli,
                check=lambda: actions.command_available("bd"),
                description="Install the beads CLI",
            ),
            _marketplace_step(
                "beads-marketplace", "steveyegge/beads", "beads-marketplace", timeout
            ),
            _plugin_step(
                "beads-plugin",
                "beads@beads-marketplace",
                timeout,
                update=True,
                skip_if_installed=False,
            ),
            BootstrapStep(
                "beads-hooks", setup_beads_hooks, description="bd setup claude"
            ),
            _marketplace_step(
                "superpowers-marketplace",
                "obra/superpowers-marketplace",
                "superpowers-marketplace",
                timeout,
            ),
            _plugin_step(
                "superpowers-plugin", "superpowers@superpowers-marketplace", timeout
            ),
        ]
    )
    return steps
