"""Tests for rae.guidelines.context — aggregation and rendering."""

from __future__ import annotations

import logging
import unittest.mock

import pytest

import rae.errors
import rae.guidelines.context as context_mod
import rae.guidelines.mapping as mapping
from rae.guidelines.loader import GuidelineDocument, SourceKind


@pytest.fixture
def seed(cache):
    """Pre-seed the cache with ``# <id>`` bodies."""

    def _seed(*doc_ids: str) -> None:
        for doc_id in doc_ids:
            cache.put(doc_id, f"# {doc_id}\n")

    return _seed


@pytest.fixture
def builder(make_loader) -> context_mod.SessionContextBuilder:
    return context_mod.SessionContextBuilder(
        mapping.GuidelineResolver(), make_loader()
    )


def _doc(doc_id: str, content: str = "body") -> GuidelineDocument:
    return GuidelineDocument(doc_id, content, SourceKind.CACHE, f"/c/{doc_id}.md")


class TestBuild:
    def test_git_loads_two_documents_in_order(self, builder, seed) -> None:
        seed(*mapping.DOCUMENTS)
        ctx = builder.build("git")
        assert ctx.ids() == ["git-workflow", "pre-commit-checklist"]
        assert ctx.missing == []
        assert ctx.task_types == ("git",)

    def test_overlapping_task_types_are_deduplicated(self, builder, seed) -> None:
        seed(*mapping.DOCUMENTS)
        ctx = builder.build(["python", "refactor", "review"])
        assert ctx.ids() == [
            "coding-standards",
            "python-standards",
            "anti-patterns",
            "pre-commit-checklist",
        ]
        assert len(ctx.ids()) == len(set(ctx.ids()))
        # Each document is attributed to the first task type that asked for it.
        assert ctx.entries[-1].task_type == "review"

    def test_one_missing_document_is_skipped_with_warning(
        self, builder, seed, caplog: pytest.LogCaptureFixture
    ) -> None:
        wanted = mapping.TASK_GUIDELINES["session"]
        seed(*wanted[:-1])
        with caplog.at_level(logging.WARNING, logger="rae.guidelines.context"):
            ctx = builder.build("session")
        assert len(ctx) == len(wanted) - 1
        assert ctx.missing == [wanted[-1]]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert wanted[-1] in warnings[0].getMessage()

    def test_undecodable_override_is_skipped_with_one_warning(
        self, builder, seed, project, caplog: pytest.LogCaptureFixture
    ) -> None:
        seed("pre-commit-checklist")
        override = project / "guidelines" / "git-workflow.md"
        override.parent.mkdir(parents=True)
        override.write_bytes(b"\xff\xfe bad")
        with caplog.at_level(logging.WARNING, logger="rae.guidelines.context"):
            ctx = builder.build("git")
        assert ctx.ids() == ["pre-commit-checklist"]
        assert ctx.missing == ["git-workflow"]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "git-workflow" in warnings[0].getMessage()

    def test_undecodable_override_uses_cached_copy(self, builder, seed, project) -> None:
        seed("git-workflow", "pre-commit-checklist")
        override = project / "guidelines" / "git-workflow.md"
        override.parent.mkdir(parents=True)
        override.write_bytes(b"\xff\xfe bad")
        ctx = builder.build("git")
        assert ctx.ids() == ["git-workflow", "pre-commit-checklist"]
        assert ctx.entries[0].document.source is SourceKind.CACHE

    def test_timeout_is_skipped_like_any_unavailable(
        self, builder, seed
    ) -> None:
        seed("git-workflow")
        with unittest.mock.patch.object(
            builder.loader,
            "_fetch",
            side_effect=rae.errors.DocumentTimeout("pre-commit-checklist", "slow"),
        ):
            ctx = builder.build("git")
        assert ctx.ids() == ["git-workflow"]
        assert ctx.missing == ["pre-commit-checklist"]

    def test_nothing_available(self, builder) -> None:
        ctx = builder.build("git")
        assert len(ctx) == 0
        assert ctx.render() == ""

    def test_unknown_task_type_fails_before_loading(self, builder) -> None:
        with unittest.mock.patch.object(builder.loader, "load") as load:
            with pytest.raises(rae.errors.UnknownTaskType):
                builder.build(["git", "cobol"])
        load.assert_not_called()

    def test_all_loads_every_document(self, builder, seed) -> None:
        seed(*mapping.DOCUMENTS)
        assert builder.build("all").ids() == list(mapping.DOCUMENTS)


class TestPlan:
    def test_plan_is_first_seen_order(self, builder) -> None:
        assert builder.plan(["git", "review"]) == [
            ("git", "git-workflow"),
            ("git", "pre-commit-checklist"),
            ("review", "coding-standards"),
            ("review", "anti-patterns"),
        ]


class TestSessionContext:
    def test_add_rejects_duplicate_id(self) -> None:
        ctx = context_mod.SessionContext()
        assert ctx.add("git", _doc("git-workflow"))
        assert not ctx.add("review", _doc("git-workflow", "other"))
        assert len(ctx) == 1
        assert "git-workflow" in ctx

    def test_render_format(self) -> None:
        ctx = context_mod.SessionContext()
        ctx.add("git", _doc("a", "First\n\n"))
        ctx.add("git", _doc("b", "Second"))
        assert ctx.render("git") == (
            "# RAE Guidelines (git)\n\n"
            "First\n\n---\n\n"
            "Second\n\n---\n\n"
        )

    def test_render_default_label(self) -> None:
        ctx = context_mod.SessionContext()
        ctx.add("session", _doc("a"))
        assert ctx.render().startswith("# RAE Guidelines (auto-loaded)\n\n")
