"""Session context assembly — resolve, load, deduplicate, render."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

import rae.errors

if TYPE_CHECKING:
    from collections.abc import Sequence

    import rae.guidelines.loader
    import rae.guidelines.mapping

logger = logging.getLogger("rae.guidelines.context")

SEPARATOR = "\n\n---\n\n"


@dataclasses.dataclass(frozen=True)
class ContextEntry:
    doc_id: str
    task_type: str
    document: rae.guidelines.loader.GuidelineDocument


@dataclasses.dataclass
class SessionContext:
    """Ordered, duplicate-free guideline documents for one session."""

    task_types: tuple[str, ...] = ()
    entries: list[ContextEntry] = dataclasses.field(default_factory=list)
    missing: list[str] = dataclasses.field(default_factory=list)

    def __contains__(self, doc_id: object) -> bool:
        return any(e.doc_id == doc_id for e in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def ids(self) -> list[str]:
        return [e.doc_id for e in self.entries]

    def add(
        self,
        task_type: str,
        document: rae.guidelines.loader.GuidelineDocument,
    ) -> bool:
        """Append *document* unless its id is already present."""
        if document.doc_id in self:
            return False
        self.entries.append(ContextEntry(document.doc_id, task_type, document))
        return True

    def render(self, label: str = "auto-loaded") -> str:
        """Return the aggregated text blob, or ``""`` when empty."""
        if not self.entries:
            return ""
        parts = [f"# RAE Guidelines ({label})\n\n"]
        for entry in self.entries:
            parts.append(entry.document.content.rstrip("\n"))
            parts.append(SEPARATOR)
        return "".join(parts)


class SessionContextBuilder:
    """Best-effort aggregation of the documents for one or more task types."""

    def __init__(
        self,
        resolver: rae.guidelines.mapping.GuidelineResolver,
        loader: rae.guidelines.loader.DocumentLoader,
    ) -> None:
        self.resolver = resolver
        self.loader = loader

    def plan(self, task_types: str | Sequence[str]) -> list[tuple[str, str]]:
        """Return ``(task_type, doc_id)`` pairs in first-seen order.

        Resolves every task type before anything is loaded, so an unknown
        task type raises ``UnknownTaskType`` without side effects.
        """
        if isinstance(task_types, str):
            task_types = [task_types]
        seen: set[str] = set()
        pairs: list[tuple[str, str]] = []
        for task_type in task_types:
            for doc_id in self.resolver.resolve(task_type):
                if doc_id in seen:
                    continue
                seen.add(doc_id)
                pairs.append((task_type, doc_id))
        return pairs

    def build(self, task_types: str | Sequence[str]) -> SessionContext:
        if isinstance(task_types, str):
            task_types = [task_types]
        pairs = self.plan(task_types)

        context = SessionContext(task_types=tuple(task_types))
        for task_type, doc_id in pairs:
            try:
                document = self.loader.load(doc_id)
            except rae.errors.DocumentUnavailable as exc:
                logger.warning("Skipping guideline %s: %s", doc_id, exc)
                context.missing.append(doc_id)
                continue
            context.add(task_type, document)
        return context
