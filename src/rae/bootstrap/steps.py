"""Bootstrap step model and run report."""

from __future__ import annotations

import dataclasses
import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class FailurePolicy(enum.Enum):
    CONTINUE = "continue"
    ABORT = "abort"


class StepOutcome(enum.Enum):
    """Per-step state: PENDING → CHECKED → SKIPPED | EXECUTING → SUCCEEDED | FAILED."""

    PENDING = "pending"
    CHECKED = "checked"
    SKIPPED = "skipped"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (StepOutcome.SKIPPED, StepOutcome.SUCCEEDED, StepOutcome.FAILED)


@dataclasses.dataclass(frozen=True)
class BootstrapStep:
    """One idempotent install/fetch operation.

    ``check`` returns True when the step is already satisfied; ``None``
    means the step always executes (e.g. sync refreshes).
    """

    name: str
    action: Callable[[], object]
    check: Callable[[], bool] | None = None
    on_failure: FailurePolicy = FailurePolicy.CONTINUE
    description: str = ""


@dataclasses.dataclass
class StepResult:
    name: str
    outcome: StepOutcome
    detail: str = ""


@dataclasses.dataclass
class BootstrapReport:
    results: list[StepResult] = dataclasses.field(default_factory=list)
    aborted: bool = False
    version: str | None = None
    marker_written: bool = False

    def outcomes(self) -> dict[str, StepOutcome]:
        return {r.name: r.outcome for r in self.results}

    def count(self, outcome: StepOutcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def applied(self) -> bool:
        """True if at least one step succeeded or was already satisfied."""
        return any(
            r.outcome in (StepOutcome.SUCCEEDED, StepOutcome.SKIPPED)
            for r in self.results
        )

    @property
    def ok(self) -> bool:
        return not self.aborted and self.applied

    def format_table(self) -> str:
        """Render a step → outcome summary table."""
        width = max([len("Step"), *(len(r.name) for r in self.results)])
        lines = [f"{'Step':<{width}s}  {'Outcome':<10s}  Detail", "-" * (width + 40)]
        for r in self.results:
            detail = r.detail.splitlines()[0] if r.detail else ""
            if len(detail) > 60:
                detail = detail[:58] + ".."
            lines.append(f"{r.name:<{width}s}  {r.outcome.value:<10s}  {detail}")
        lines.append("")
        summary = (
            f"{self.count(StepOutcome.SUCCEEDED)} succeeded, "
            f"{self.count(StepOutcome.SKIPPED)} skipped, "
            f"{self.count(StepOutcome.FAILED)} failed"
        )
        if self.aborted:
            summary += " (aborted)"
        lines.append(summary)
        if self.version is not None:
            state = "recorded" if self.marker_written else "not recorded"
            lines.append(f"Version {self.version}: {state}")
        return "\n".join(lines)
