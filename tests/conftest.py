"""Shared test fixtures for fsblog."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import yaml

from fsblog.cache.models import SourceCacheEntry
from fsblog.config.models import BuildOptions


@pytest.fixture(autouse=True)
def _reset_fsblog_logger():
    """The CLI reconfigures the package logger; undo it between tests."""
    yield
    logger = logging.getLogger("fsblog")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def write_doc(vault: Path):
    """Write a markdown file into the vault with the given frontmatter."""

    def _write(rel_path: str, body: str = "", **fields) -> Path:
        fields.setdefault("publish", True)
        dest = vault / rel_path
        dest.parent.mkdir(parents=True, exist_ok=True)
        header = yaml.safe_dump(fields, sort_keys=False, allow_unicode=True)
        dest.write_text(f"---\n{header}---\n{body}", encoding="utf-8")
        return dest

    return _write


@pytest.fixture
def make_options(tmp_path: Path, vault: Path):
    def _make(**overrides) -> BuildOptions:
        values = {
            "vault_dir": vault,
            "out_dir": tmp_path / "dist",
            "cache_path": tmp_path / ".cache" / "build-index.json",
        }
        values.update(overrides)
        return BuildOptions(**values)

    return _make


@pytest.fixture
def make_entry():
    """Build a SourceCacheEntry with sensible defaults."""

    def _make(**fields) -> SourceCacheEntry:
        values = {
            "mtime_ms": 1000.0,
            "size": 10,
            "raw_hash": "deadbeef",
            "publish": True,
            "body": "",
        }
        values.update(fields)
        return SourceCacheEntry(**values)

    return _make
