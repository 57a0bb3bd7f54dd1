"""Load and save the persisted build cache.

The cache file is versioned by an integer. Each readable version has an
entry in :data:`CACHE_READERS`; any other version, or a file that is not
valid JSON, is treated as an empty cache so the next build starts cold.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from fsblog.cache.models import BuildCache, RenderCacheEntry, SourceCacheEntry

logger = logging.getLogger(__name__)

CACHE_VERSION = 3
CACHE_DIR_NAME = ".cache"
CACHE_FILE_NAME = "build-index.json"


def default_cache_path(cwd: Path | None = None) -> Path:
    """Where the cache lives when BuildOptions does not override it."""
    return (cwd or Path.cwd()) / CACHE_DIR_NAME / CACHE_FILE_NAME


def empty_cache() -> BuildCache:
    return BuildCache(version=CACHE_VERSION)


def _valid_entries(raw: Any, model: type[BaseModel]) -> dict[str, Any]:
    """Validate each entry on its own, dropping the ones that fail."""
    if not isinstance(raw, dict):
        return {}
    entries: dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(value, dict):
            continue
        try:
            entries[key] = model.model_validate(value)
        except ValidationError:
            logger.debug("dropping malformed cache entry %s", key)
    return entries


def _read_v3(data: dict[str, Any]) -> BuildCache:
    raw_hashes = data.get("outputHashes")
    output_hashes = {
        path: value
        for path, value in (raw_hashes.items() if isinstance(raw_hashes, dict) else [])
        if isinstance(value, str) and value
    }
    return BuildCache(
        version=CACHE_VERSION,
        sources=_valid_entries(data.get("sources"), SourceCacheEntry),
        docs=_valid_entries(data.get("docs"), RenderCacheEntry),
        output_hashes=output_hashes,
    )


# version -> reader. Versions without a reader are never upgraded.
CACHE_READERS: dict[int, Callable[[dict[str, Any]], BuildCache]] = {
    3: _read_v3,
}


def parse_cache(raw: str) -> BuildCache:
    """Parse cache file text, falling back to an empty cache."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.info("build cache is not valid JSON (%s), starting cold", e)
        return empty_cache()

    if not isinstance(data, dict):
        logger.info("build cache is not an object, starting cold")
        return empty_cache()

    version = data.get("version")
    reader = CACHE_READERS.get(version) if isinstance(version, int) and not isinstance(version, bool) else None
    if reader is None:
        logger.info("build cache version %r is not supported, starting cold", version)
        return empty_cache()
    return reader(data)


def read_cache(path: Path) -> BuildCache:
    """Read the cache at *path*; a missing or unreadable file is empty."""
    if not path.is_file():
        return empty_cache()
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.info("could not read build cache %s: %s", path, e)
        return empty_cache()
    return parse_cache(raw)


def write_cache(path: Path, cache: BuildCache) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(cache.to_json(), encoding="utf-8")
    logger.debug("wrote build cache %s", path)
