"""Guideline document loading through a fixed precedence chain.

Sources are consulted in order and the first readable hit wins:

1. project-local override   <project>/guidelines/<id>.md
2. local cache              ~/.cache/rae/guidelines/<version>/<id>.md
3. remote origin            <remote_base>/<version>/<path>

Remote hits are written back to the cache. The cache is an explicit
object handed to the loader so tests can supply an empty or pre-seeded one.
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import logging
import pathlib
from typing import TYPE_CHECKING

import httpx

import rae.errors
import rae.fileio
import rae.guidelines.mapping

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger("rae.guidelines.loader")


class SourceKind(enum.Enum):
    OVERRIDE = "override"
    CACHE = "cache"
    REMOTE = "remote"


@dataclasses.dataclass(frozen=True)
class Candidate:
    kind: SourceKind
    location: str


@dataclasses.dataclass(frozen=True)
class GuidelineDocument:
    doc_id: str
    content: str
    source: SourceKind
    location: str
    loaded_at: datetime.datetime = dataclasses.field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC)
    )


class DocumentCache:
    """Directory of cached guideline documents, one ``<id>.md`` per id."""

    def __init__(self, root: pathlib.Path) -> None:
        self.root = root

    def path_for(self, doc_id: str) -> pathlib.Path:
        return self.root / f"{doc_id}.md"

    def has(self, doc_id: str) -> bool:
        return self.path_for(doc_id).is_file()

    def get(self, doc_id: str) -> str | None:
        """Return cached content, or ``None`` if absent or unreadable."""
        return _read_file(self.path_for(doc_id))

    def put(self, doc_id: str, content: str) -> pathlib.Path:
        path = self.path_for(doc_id)
        rae.fileio.write_text_atomic(path, content)
        return path


def _version_dir(version: str) -> str:
    return version.replace("/", "_") or "main"


def default_cache(version: str, cache_dir: str | None = None) -> DocumentCache:
    """Return the per-version cache configured in ``[guidelines]``."""
    if cache_dir is None:
        import rae.config
        import rae.guidelines.config  # noqa: F401

        cache_dir = rae.config.load("guidelines").cache_dir
    return DocumentCache(pathlib.Path(cache_dir).expanduser() / _version_dir(version))


class DocumentLoader:
    """Load guideline documents by id."""

    def __init__(
        self,
        *,
        remote_base: str,
        version: str = "main",
        cache: DocumentCache | None = None,
        override_dir: pathlib.Path | None = None,
        timeout: float = 5.0,
        documents: Mapping[str, str] | None = None,
    ) -> None:
        self.remote_base = remote_base.rstrip("/")
        self.version = version
        self.cache = cache
        self.override_dir = override_dir
        self.timeout = timeout
        self._documents = dict(
            rae.guidelines.mapping.DOCUMENTS if documents is None else documents
        )

    @classmethod
    def from_config(
        cls,
        root: pathlib.Path,
        *,
        version: str | None = None,
        cache: DocumentCache | None = None,
    ) -> DocumentLoader:
        """Build a loader for the project at *root* from ``[guidelines]``."""
        import rae.config
        import rae.guidelines.config  # noqa: F401

        cfg = rae.config.load("guidelines", root)
        version = version or cfg.default_version
        if cache is None:
            cache = default_cache(version, cfg.cache_dir)
        return cls(
            remote_base=cfg.remote_base,
            version=version,
            cache=cache,
            override_dir=root / cfg.override_dir,
            timeout=cfg.fetch_timeout,
        )

    def document_ids(self) -> list[str]:
        return list(self._documents)

    # -- precedence chain ---------------------------------------------------

    def remote_url(self, doc_id: str) -> str:
        path = self._documents.get(doc_id)
        if path is None:
            raise rae.errors.DocumentUnavailable(doc_id, "not a known document")
        return f"{self.remote_base}/{self.version}/{path}"

    def candidates(self, doc_id: str) -> list[Candidate]:
        """Return the ordered sources consulted for *doc_id*."""
        out: list[Candidate] = []
        if self.override_dir is not None:
            path = self.override_dir / f"{doc_id}.md"
            out.append(Candidate(SourceKind.OVERRIDE, str(path)))
        if self.cache is not None:
            out.append(Candidate(SourceKind.CACHE, str(self.cache.path_for(doc_id))))
        out.append(Candidate(SourceKind.REMOTE, self.remote_url(doc_id)))
        return out

    def load(self, doc_id: str) -> GuidelineDocument:
        """Return the highest-precedence copy of *doc_id*.

        Raises ``DocumentUnavailable`` (``DocumentTimeout`` on a timed-out
        fetch) when no source yields the document.
        """
        for candidate in self.candidates(doc_id):
            if candidate.kind is SourceKind.OVERRIDE:
                content = _read_file(pathlib.Path(candidate.location))
            elif candidate.kind is SourceKind.CACHE:
                content = self.cache.get(doc_id) if self.cache else None
            else:
                return self._load_remote(doc_id, candidate.location)
            if content is not None:
                logger.debug("Loaded %s from %s", doc_id, candidate.kind.value)
                return GuidelineDocument(
                    doc_id, content, candidate.kind, candidate.location
                )
        raise rae.errors.DocumentUnavailable(doc_id, "no source available")

    def refresh(self, doc_id: str) -> GuidelineDocument:
        """Fetch *doc_id* from the remote origin and replace the cached copy."""
        return self._load_remote(doc_id, self.remote_url(doc_id))

    # -- remote -------------------------------------------------------------

    def _load_remote(self, doc_id: str, url: str) -> GuidelineDocument:
        content = self._fetch(doc_id, url)
        if self.cache is not None:
            try:
                self.cache.put(doc_id, content)
            except OSError:
                logger.debug("Cache write failed for %s", doc_id, exc_info=True)
        return GuidelineDocument(doc_id, content, SourceKind.REMOTE, url)

    def _fetch(self, doc_id: str, url: str) -> str:
        try:
            resp = httpx.get(url, timeout=self.timeout, follow_redirects=True)
        except httpx.TimeoutException as exc:
            raise rae.errors.DocumentTimeout(
                doc_id, f"timed out after {self.timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise rae.errors.DocumentUnavailable(doc_id, str(exc)) from exc
        if resp.status_code != 200:
            raise rae.errors.DocumentUnavailable(
                doc_id, f"HTTP {resp.status_code} from {url}"
            )
        return resp.text


def _read_file(path: pathlib.Path) -> str | None:
    """Return the text of *path*, or ``None`` if absent, unreadable or not UTF-8."""
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Unreadable guideline file %s", path, exc_info=True)
        return None
