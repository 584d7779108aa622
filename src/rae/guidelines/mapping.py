"""Task type → guideline document mapping.

The tables are plain data. ``DOCUMENTS`` registers every known guideline
(id → path under the remote origin) and its key order is the canonical
order used for ``all``. ``TASK_GUIDELINES`` lists, per task type, the
documents relevant to it in the order they should be read.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import rae.errors

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

ALL = "all"

DOCUMENTS: dict[str, str] = {
    "coding-standards": "guidelines/coding-standards.md",
    "python-standards": "guidelines/python-standards.md",
    "repo-structure": "guidelines/repo-structure.md",
    "git-workflow": "guidelines/git-workflow.md",
    "anti-patterns": "guidelines/anti-patterns.md",
    "pre-commit-checklist": "guidelines/pre-commit-checklist.md",
}

TASK_GUIDELINES: dict[str, tuple[str, ...]] = {
    "python": ("coding-standards", "python-standards", "anti-patterns"),
    "git": ("git-workflow", "pre-commit-checklist"),
    "refactor": ("coding-standards", "anti-patterns", "python-standards"),
    "review": ("coding-standards", "anti-patterns", "pre-commit-checklist"),
    "new-repo": ("repo-structure", "python-standards", "git-workflow"),
    # Loaded on every session start; repo-structure only matters when
    # scaffolding.
    "session": (
        "coding-standards",
        "python-standards",
        "git-workflow",
        "anti-patterns",
        "pre-commit-checklist",
    ),
}


def validate_mapping(
    tasks: Mapping[str, Sequence[str]],
    documents: Mapping[str, str],
) -> None:
    """Raise ``ValueError`` if the mapping references unknown or repeated ids."""
    if ALL in tasks:
        raise ValueError(f"{ALL!r} is derived and may not be declared")
    for task, doc_ids in tasks.items():
        if not doc_ids:
            raise ValueError(f"Task type {task!r} maps to no documents")
        if len(set(doc_ids)) != len(doc_ids):
            raise ValueError(f"Task type {task!r} lists a document twice")
        unknown = [d for d in doc_ids if d not in documents]
        if unknown:
            raise ValueError(
                f"Task type {task!r} references unknown documents: "
                f"{', '.join(unknown)}"
            )


class GuidelineResolver:
    """Resolve task types to ordered, duplicate-free document id lists."""

    def __init__(
        self,
        tasks: Mapping[str, Sequence[str]] | None = None,
        documents: Mapping[str, str] | None = None,
    ) -> None:
        self._tasks = dict(TASK_GUIDELINES if tasks is None else tasks)
        self._documents = dict(DOCUMENTS if documents is None else documents)
        validate_mapping(self._tasks, self._documents)

        referenced = {d for doc_ids in self._tasks.values() for d in doc_ids}
        self._all = tuple(d for d in self._documents if d in referenced)

    @property
    def documents(self) -> dict[str, str]:
        return dict(self._documents)

    def task_types(self) -> list[str]:
        """Return every known task type, ``all`` last."""
        return [*sorted(self._tasks), ALL]

    def resolve(self, task_type: str) -> list[str]:
        if task_type == ALL:
            return list(self._all)
        doc_ids = self._tasks.get(task_type)
        if doc_ids is None:
            raise rae.errors.UnknownTaskType(task_type, self.task_types())
        return list(doc_ids)

    def path_for(self, doc_id: str) -> str | None:
        """Return the remote-relative path of *doc_id*, or ``None``."""
        return self._documents.get(doc_id)
