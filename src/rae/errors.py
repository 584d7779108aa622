"""Error taxonomy shared by the resolver, loader, and bootstrap runner.

``NetworkTimeout`` carries no state of its own; the concrete timeout
classes combine it with the failure they specialize so callers can catch
either "any timeout" or "any unavailable document".
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class RaeError(Exception):
    """Base class for all rae errors."""


class UnknownTaskType(RaeError):
    """A task-type key that is not in the guideline mapping."""

    def __init__(self, task_type: str, known: Iterable[str] = ()) -> None:
        self.task_type = task_type
        self.known = tuple(known)
        msg = f"Unknown task type: {task_type!r}"
        if self.known:
            msg += f" (known: {', '.join(self.known)})"
        super().__init__(msg)


class DocumentUnavailable(RaeError):
    """A guideline document could not be resolved from any source."""

    def __init__(self, doc_id: str, reason: str = "") -> None:
        self.doc_id = doc_id
        self.reason = reason
        msg = f"Guideline document unavailable: {doc_id}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class StepExecutionFailed(RaeError):
    """A bootstrap step's action failed."""

    def __init__(self, step: str, reason: str = "") -> None:
        self.step = step
        self.reason = reason
        msg = f"Step {step!r} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NetworkTimeout(RaeError):
    """A bounded wait (network fetch or external command) was exceeded."""


class DocumentTimeout(NetworkTimeout, DocumentUnavailable):
    """Remote fetch of a guideline document timed out."""


class StepTimeout(NetworkTimeout, StepExecutionFailed):
    """A bootstrap action exceeded its time limit."""
