"""Tests for rae.bootstrap.orchestrator — step execution and the marker."""

from __future__ import annotations

import pathlib
import unittest.mock

import pytest

import rae.errors
from rae.bootstrap.orchestrator import BootstrapOrchestrator
from rae.bootstrap.steps import BootstrapStep, FailurePolicy, StepOutcome


def _ok(detail: str = "done"):
    return unittest.mock.Mock(return_value=detail)


def _boom(reason: str = "boom"):
    return unittest.mock.Mock(
        side_effect=rae.errors.StepExecutionFailed("x", reason)
    )


@pytest.fixture
def marker(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / ".rae-version"


class TestChecks:
    def test_satisfied_step_never_executes(self) -> None:
        action = _ok()
        step = BootstrapStep("claude-code", action, check=lambda: True)
        report = BootstrapOrchestrator().run([step])
        action.assert_not_called()
        assert report.outcomes() == {"claude-code": StepOutcome.SKIPPED}

    def test_unsatisfied_step_executes(self) -> None:
        action = _ok("installed")
        report = BootstrapOrchestrator().run(
            [BootstrapStep("uv", action, check=lambda: False)]
        )
        action.assert_called_once_with()
        assert report.results[0].outcome is StepOutcome.SUCCEEDED
        assert report.results[0].detail == "installed"

    def test_no_check_always_executes(self) -> None:
        action = _ok()
        BootstrapOrchestrator().run([BootstrapStep("sync", action)])
        action.assert_called_once()

    def test_raising_check_counts_as_unsatisfied(self) -> None:
        action = _ok()

        def check() -> bool:
            raise RuntimeError("check broke")

        report = BootstrapOrchestrator().run(
            [BootstrapStep("tool-check", action, check=check)]
        )
        action.assert_called_once()
        assert report.results[0].outcome is StepOutcome.SUCCEEDED

    def test_non_string_return_has_empty_detail(self) -> None:
        report = BootstrapOrchestrator().run(
            [BootstrapStep("dirs", lambda: None)]
        )
        assert report.results[0].detail == ""


class TestFailurePolicy:
    def test_continue_failure_is_recorded_and_run_proceeds(self) -> None:
        later = _ok()
        report = BootstrapOrchestrator().run(
            [
                BootstrapStep("gemini-cli", _boom("pip missing")),
                BootstrapStep("claude-md", later),
            ]
        )
        later.assert_called_once()
        assert report.outcomes() == {
            "gemini-cli": StepOutcome.FAILED,
            "claude-md": StepOutcome.SUCCEEDED,
        }
        assert "pip missing" in report.results[0].detail
        assert not report.aborted
        assert report.ok

    def test_unexpected_exception_is_a_failure(self) -> None:
        step = BootstrapStep("weird", unittest.mock.Mock(side_effect=KeyError("k")))
        report = BootstrapOrchestrator().run([step])
        assert report.results[0].outcome is StepOutcome.FAILED

    def test_abort_failure_stops_the_run(self) -> None:
        later = _ok()
        report = BootstrapOrchestrator().run(
            [
                BootstrapStep("first", _ok()),
                BootstrapStep(
                    "directories", _boom(), on_failure=FailurePolicy.ABORT
                ),
                BootstrapStep("never", later),
            ]
        )
        later.assert_not_called()
        assert [r.name for r in report.results] == ["first", "directories"]
        assert report.aborted
        assert not report.ok

    def test_raise_on_abort(self, marker: pathlib.Path) -> None:
        orchestrator = BootstrapOrchestrator(marker_path=marker, version="v1")
        with pytest.raises(rae.errors.StepExecutionFailed) as info:
            orchestrator.run(
                [
                    BootstrapStep("ok", _ok()),
                    BootstrapStep(
                        "directories",
                        _boom("read-only"),
                        on_failure=FailurePolicy.ABORT,
                    ),
                ],
                raise_on_abort=True,
            )
        assert info.value.step == "directories"
        assert not marker.exists()

    def test_on_step_callback(self) -> None:
        seen = []
        BootstrapOrchestrator(on_step=lambda s, r: seen.append((s.name, r.outcome))).run(
            [BootstrapStep("a", _ok(), check=lambda: True), BootstrapStep("b", _ok())]
        )
        assert seen == [("a", StepOutcome.SKIPPED), ("b", StepOutcome.SUCCEEDED)]


class TestMarker:
    def test_partial_success_writes_marker(self, marker: pathlib.Path) -> None:
        report = BootstrapOrchestrator(marker_path=marker, version="v1.4").run(
            [BootstrapStep("a", _boom()), BootstrapStep("b", _ok())]
        )
        assert report.marker_written
        assert marker.read_text() == "v1.4\n"

    def test_all_skipped_writes_marker(self, marker: pathlib.Path) -> None:
        report = BootstrapOrchestrator(marker_path=marker, version="v2").run(
            [BootstrapStep("a", _ok(), check=lambda: True)]
        )
        assert report.marker_written

    def test_all_failed_keeps_previous_marker(self, marker: pathlib.Path) -> None:
        marker.write_text("v1\n")
        report = BootstrapOrchestrator(marker_path=marker, version="v2").run(
            [BootstrapStep("a", _boom()), BootstrapStep("b", _boom())]
        )
        assert not report.marker_written
        assert marker.read_text() == "v1\n"

    def test_aborted_run_writes_no_marker(self, marker: pathlib.Path) -> None:
        BootstrapOrchestrator(marker_path=marker, version="v2").run(
            [
                BootstrapStep("a", _ok()),
                BootstrapStep("b", _boom(), on_failure=FailurePolicy.ABORT),
            ]
        )
        assert not marker.exists()

    def test_empty_plan_writes_no_marker(self, marker: pathlib.Path) -> None:
        report = BootstrapOrchestrator(marker_path=marker, version="v2").run([])
        assert report.results == []
        assert not marker.exists()

    def test_marker_write_failure_is_reported(
        self, tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")
        report = BootstrapOrchestrator(
            marker_path=blocker / ".rae-version", version="v2"
        ).run([BootstrapStep("a", _ok())])
        assert report.ok
        assert not report.marker_written
        assert "Could not write" in caplog.text

    def test_no_marker_path(self) -> None:
        report = BootstrapOrchestrator().run([BootstrapStep("a", _ok())])
        assert report.version is None
        assert not report.marker_written


class TestReport:
    def test_format_table(self, marker: pathlib.Path) -> None:
        report = BootstrapOrchestrator(marker_path=marker, version="v1").run(
            [
                BootstrapStep("claude-code", _ok(), check=lambda: True),
                BootstrapStep("gemini-cli", _boom("pip not found on PATH")),
                BootstrapStep("claude-md", _ok("created CLAUDE.md")),
            ]
        )
        table = report.format_table()
        assert "claude-code  skipped" in table
        assert "pip not found on PATH" in table
        assert "1 succeeded, 1 skipped, 1 failed" in table
        assert table.endswith("Version v1: recorded")

    def test_long_detail_is_truncated(self) -> None:
        report = BootstrapOrchestrator().run(
            [BootstrapStep("a", _ok("x" * 200 + "\nsecond line"))]
        )
        row = report.format_table().splitlines()[2]
        assert row.endswith("..")
        assert "second line" not in report.format_table()

    def test_aborted_summary(self) -> None:
        report = BootstrapOrchestrator().run(
            [BootstrapStep("a", _boom(), on_failure=FailurePolicy.ABORT)]
        )
        assert "(aborted)" in report.format_table()

    def test_terminal_outcomes(self) -> None:
        assert StepOutcome.SKIPPED.terminal
        assert StepOutcome.FAILED.terminal
        assert not StepOutcome.EXECUTING.terminal
