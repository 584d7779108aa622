"""Building blocks for bootstrap step actions and checks.

Every external process and download is bounded by a timeout. Failures are
raised as ``StepExecutionFailed`` (``StepTimeout`` when the bound is hit)
so the orchestrator can apply the step's failure policy.
"""

from __future__ import annotations

import os
import pathlib
import shutil
import subprocess
from typing import TYPE_CHECKING

import httpx

import rae.errors
import rae.fileio

if TYPE_CHECKING:
    from collections.abc import Sequence


def command_available(name: str) -> bool:
    return shutil.which(name) is not None


def require_command(name: str, step: str) -> None:
    if not command_available(name):
        raise rae.errors.StepExecutionFailed(step, f"{name} not found on PATH")


def _tail(text: str, lines: int = 3) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


def run_command(
    argv: Sequence[str],
    *,
    timeout: float,
    step: str | None = None,
) -> str:
    """Run *argv* and return its stdout.

    A missing executable or non-zero exit raises ``StepExecutionFailed``;
    exceeding *timeout* raises ``StepTimeout``.
    """
    label = step or argv[0]
    try:
        result = subprocess.run(
            list(argv),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise rae.errors.StepTimeout(
            label, f"{' '.join(argv)} timed out after {timeout}s"
        ) from exc
    except (FileNotFoundError, PermissionError) as exc:
        raise rae.errors.StepExecutionFailed(label, f"{argv[0]}: {exc}") from exc
    if result.returncode != 0:
        reason = _tail(result.stderr) or _tail(result.stdout)
        raise rae.errors.StepExecutionFailed(
            label, f"exit {result.returncode}" + (f": {reason}" if reason else "")
        )
    return result.stdout


def run_first(
    alternatives: Sequence[Sequence[str]],
    *,
    timeout: float,
    step: str,
) -> str:
    """Run each argv in turn until one succeeds; return a short summary.

    Used for "install, or update if already installed".
    """
    errors: list[str] = []
    for argv in alternatives:
        try:
            run_command(argv, timeout=timeout, step=step)
        except rae.errors.StepTimeout:
            raise
        except rae.errors.StepExecutionFailed as exc:
            errors.append(exc.reason)
            continue
        return " ".join(argv[:3])
    raise rae.errors.StepExecutionFailed(step, "; ".join(errors))


def run_shell_pipeline(command: str, *, timeout: float, step: str) -> str:
    """Run a shell pipeline such as ``curl -fsSL <url> | bash``."""
    return run_command(["bash", "-c", command], timeout=timeout, step=step)


def download(
    url: str,
    dest: pathlib.Path,
    *,
    timeout: float,
    step: str,
) -> str:
    """Fetch *url* into *dest* atomically. Returns the destination path."""
    try:
        resp = httpx.get(url, timeout=timeout, follow_redirects=True)
    except httpx.TimeoutException as exc:
        raise rae.errors.StepTimeout(step, f"{url} timed out after {timeout}s") from exc
    except httpx.HTTPError as exc:
        raise rae.errors.StepExecutionFailed(step, f"{url}: {exc}") from exc
    if resp.status_code != 200:
        raise rae.errors.StepExecutionFailed(step, f"HTTP {resp.status_code} from {url}")
    rae.fileio.write_text_atomic(dest, resp.text)
    return str(dest)


def write_if_missing(path: pathlib.Path, text: str) -> str:
    """Seed *path* with *text* unless it already exists."""
    if path.exists():
        return f"{path.name} exists"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return f"created {path.name}"


def make_dirs(*paths: pathlib.Path) -> str:
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)
    return ", ".join(p.name for p in paths)


def prepend_path(directory: pathlib.Path) -> None:
    """Put *directory* first on ``PATH`` for the rest of this process."""
    entries = os.environ.get("PATH", "").split(os.pathsep)
    if str(directory) not in entries:
        os.environ["PATH"] = os.pathsep.join([str(directory), *entries])
