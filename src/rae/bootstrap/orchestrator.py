"""Sequential, best-effort execution of bootstrap step lists.

Each step's idempotency check runs first; satisfied steps are skipped.
Failed actions follow the step's policy: ``CONTINUE`` records the failure
and moves on, ``ABORT`` stops the run.

The version marker is written only when the run was not aborted and at
least one step succeeded or was already satisfied. A run in which every
step failed leaves the previous marker untouched.
"""

from __future__ import annotations

import logging
import pathlib
from typing import TYPE_CHECKING

import rae.bootstrap.marker
import rae.errors
from rae.bootstrap.steps import (
    BootstrapReport,
    BootstrapStep,
    FailurePolicy,
    StepOutcome,
    StepResult,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger("rae.bootstrap.orchestrator")


class BootstrapOrchestrator:
    def __init__(
        self,
        *,
        marker_path: pathlib.Path | None = None,
        version: str = "main",
        on_step: Callable[[BootstrapStep, StepResult], None] | None = None,
    ) -> None:
        self.marker_path = marker_path
        self.version = version
        self._on_step = on_step

    def _is_satisfied(self, step: BootstrapStep) -> bool:
        if step.check is None:
            return False
        try:
            return bool(step.check())
        except Exception:
            logger.debug("Check for %s raised; executing", step.name, exc_info=True)
            return False

    def _execute(self, step: BootstrapStep) -> StepResult:
        result = StepResult(step.name, StepOutcome.PENDING)

        result.outcome = StepOutcome.CHECKED
        if self._is_satisfied(step):
            result.outcome = StepOutcome.SKIPPED
            result.detail = "already satisfied"
            return result

        result.outcome = StepOutcome.EXECUTING
        logger.info("Running step %s", step.name)
        try:
            value = step.action()
        except Exception as exc:
            result.outcome = StepOutcome.FAILED
            result.detail = str(exc) or type(exc).__name__
            logger.warning("Step %s failed: %s", step.name, result.detail)
            logger.debug("Step %s traceback", step.name, exc_info=True)
            return result

        result.outcome = StepOutcome.SUCCEEDED
        if isinstance(value, str):
            result.detail = value
        return result

    def run(
        self,
        steps: Iterable[BootstrapStep],
        *,
        raise_on_abort: bool = False,
    ) -> BootstrapReport:
        """Run *steps* in order and return the per-step report.

        With ``raise_on_abort`` an aborting failure is re-raised as
        ``StepExecutionFailed`` after the report has been finalized.
        """
        report = BootstrapReport(
            version=self.version if self.marker_path is not None else None
        )
        abort_result: StepResult | None = None

        for step in steps:
            result = self._execute(step)
            report.results.append(result)
            if self._on_step is not None:
                self._on_step(step, result)
            if (
                result.outcome is StepOutcome.FAILED
                and step.on_failure is FailurePolicy.ABORT
            ):
                report.aborted = True
                abort_result = result
                logger.error("Aborting after step %s", step.name)
                break

        if self.marker_path is not None and report.ok:
            try:
                rae.bootstrap.marker.write_marker(self.marker_path, self.version)
                report.marker_written = True
            except OSError as exc:
                logger.warning("Could not write %s: %s", self.marker_path, exc)

        if raise_on_abort and abort_result is not None:
            raise rae.errors.StepExecutionFailed(
                abort_result.name, abort_result.detail
            )
        return report
