"""Build cache: fingerprints, persisted state and the source cache."""

from fsblog.cache.hashing import make_fingerprint, make_hash, short_hash
from fsblog.cache.models import BuildCache, RenderCacheEntry, SourceCacheEntry
from fsblog.cache.sources import Absent, Fresh, Stale, lookup, parse_source, read_source_text, refresh_sources
from fsblog.cache.store import (
    CACHE_READERS,
    CACHE_VERSION,
    default_cache_path,
    empty_cache,
    parse_cache,
    read_cache,
    write_cache,
)

__all__ = [
    "Absent",
    "BuildCache",
    "CACHE_READERS",
    "CACHE_VERSION",
    "Fresh",
    "RenderCacheEntry",
    "SourceCacheEntry",
    "Stale",
    "default_cache_path",
    "empty_cache",
    "lookup",
    "make_fingerprint",
    "make_hash",
    "parse_cache",
    "parse_source",
    "read_cache",
    "read_source_text",
    "refresh_sources",
    "short_hash",
    "write_cache",
]
