"""Source cache: reuse parsed frontmatter and bodies of unchanged files.

A previous entry is reusable only when the file's current (mtime, size)
pair matches the stored pair exactly. Anything else means a re-read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from fsblog.cache.hashing import make_hash
from fsblog.cache.models import SourceCacheEntry
from fsblog.errors import FrontmatterError
from fsblog.vault.frontmatter import (
    DATE_KEYS,
    UPDATED_DATE_KEYS,
    FrontmatterParseError,
    parse_branch,
    parse_frontmatter,
    parse_tags,
    pick_date,
    pick_prefix,
    pick_text,
)
from fsblog.vault.walker import SourceFile
from fsblog.vault.wikilinks import extract_wiki_targets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fresh:
    entry: SourceCacheEntry


@dataclass(frozen=True)
class Stale:
    reason: Literal["mtime", "size"]


@dataclass(frozen=True)
class Absent:
    pass


LookupResult = Fresh | Stale | Absent


def lookup(previous: dict[str, SourceCacheEntry], rel_path: str, mtime_ms: float, size: int) -> LookupResult:
    """Classify the previous entry for *rel_path* against a fresh stat."""
    entry = previous.get(rel_path)
    if entry is None:
        return Absent()
    if entry.mtime_ms != mtime_ms:
        return Stale("mtime")
    if entry.size != size:
        return Stale("size")
    return Fresh(entry)


def read_source_text(path: Path) -> str:
    """Decode a markdown file as UTF-8, replacing undecodable bytes."""
    return path.read_text(encoding="utf-8", errors="replace")


def parse_source(raw: str, rel_path: str) -> SourceCacheEntry:
    """Parse raw file text into a cache entry with a zeroed stat pair.

    A leading byte order mark is dropped before parsing. Raises
    FrontmatterError when the frontmatter is not valid YAML.
    """
    raw = raw.removeprefix("\ufeff")
    try:
        fields, body = parse_frontmatter(raw)
    except FrontmatterParseError as e:
        raise FrontmatterError(rel_path, e) from e

    return SourceCacheEntry(
        mtime_ms=0,
        size=0,
        raw_hash=make_hash(raw),
        publish=fields.get("publish") is True,
        draft=fields.get("draft") is True,
        title=pick_text(fields, "title"),
        prefix=pick_prefix(fields, raw),
        date=pick_date(fields, raw, DATE_KEYS),
        updated_date=pick_date(fields, raw, UPDATED_DATE_KEYS),
        description=pick_text(fields, "description"),
        tags=parse_tags(fields.get("tags")),
        branch=parse_branch(fields.get("branch")),
        body=body,
        wiki_targets=extract_wiki_targets(body),
    )


def refresh_sources(
    previous: dict[str, SourceCacheEntry],
    files: list[SourceFile],
) -> dict[str, SourceCacheEntry]:
    """Build the source cache for exactly the paths in *files*.

    Entries for paths no longer on disk are dropped.
    """
    refreshed: dict[str, SourceCacheEntry] = {}
    reused = 0
    for source in files:
        result = lookup(previous, source.rel_path, source.mtime_ms, source.size)
        match result:
            case Fresh(entry=entry):
                reused += 1
            case Stale(reason=reason):
                logger.debug("re-reading %s (%s changed)", source.rel_path, reason)
                entry = parse_source(read_source_text(source.source_path), source.rel_path)
            case Absent():
                entry = parse_source(read_source_text(source.source_path), source.rel_path)

        refreshed[source.rel_path] = entry.model_copy(
            update={"mtime_ms": source.mtime_ms, "size": source.size}
        )

    logger.debug("source cache: %d reused, %d parsed", reused, len(files) - reused)
    return refreshed
