"""Shared test fixtures for rae tests."""

from __future__ import annotations

import pathlib
import unittest.mock

import httpx
import pytest

import rae.guidelines.loader


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch):
    """Point $HOME at a temp dir so global config and caches stay local."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("RAE_VERSION", raising=False)
    monkeypatch.delenv("CLAUDE_PROJECT_DIR", raising=False)
    return home


@pytest.fixture(autouse=True)
def _no_network(monkeypatch: pytest.MonkeyPatch):
    """Fail any un-mocked HTTP request."""

    def _refuse(url, *args, **kwargs):
        raise httpx.ConnectError(f"network disabled in tests: {url}")

    monkeypatch.setattr(httpx, "get", _refuse)


@pytest.fixture
def project(tmp_path: pathlib.Path) -> pathlib.Path:
    """A project directory that is its own repo root."""
    root = tmp_path / "project"
    (root / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def cache(tmp_path: pathlib.Path) -> rae.guidelines.loader.DocumentCache:
    return rae.guidelines.loader.DocumentCache(tmp_path / "cache")


@pytest.fixture
def make_loader(project: pathlib.Path, cache):
    """Factory for loaders rooted at ``project`` with the temp cache."""

    def _create(**overrides) -> rae.guidelines.loader.DocumentLoader:
        kwargs = {
            "remote_base": "https://example.test/rae",
            "version": "main",
            "cache": cache,
            "override_dir": project / "guidelines",
            "timeout": 1.0,
        }
        kwargs.update(overrides)
        return rae.guidelines.loader.DocumentLoader(**kwargs)

    return _create


@pytest.fixture
def write_override(project: pathlib.Path):
    """Factory for project-local override documents."""

    def _create(doc_id: str, content: str) -> pathlib.Path:
        path = project / "guidelines" / f"{doc_id}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _create


def http_response(status_code: int = 200, text: str = "") -> unittest.mock.MagicMock:
    resp = unittest.mock.MagicMock()
    resp.status_code = status_code
    resp.text = text
    return resp


@pytest.fixture
def fake_response():
    return http_response
