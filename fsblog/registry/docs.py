"""Document registry: one DocRecord per publishable source file."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath

from fsblog.cache.hashing import make_hash
from fsblog.cache.models import SourceCacheEntry
from fsblog.collation import collation_key
from fsblog.diagnostics import DiagnosticSink, NullSink

UNTITLED = "Untitled"

_MD_EXT_RE = re.compile(r"\.md$", re.IGNORECASE)
_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class DocRecord:
    """A published, non-draft document in the current build."""

    source_path: Path
    rel_path: str
    rel_no_ext: str
    id: str
    route: str
    content_url: str
    file_name: str
    title: str
    mtime_ms: float
    body: str
    raw_hash: str
    is_new: bool
    prefix: str | None = None
    date: str | None = None
    updated_date: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    wiki_targets: list[str] = field(default_factory=list)
    branch: str | None = None


def strip_md_ext(path: str) -> str:
    return _MD_EXT_RE.sub("", path)


def to_doc_id(rel_no_ext: str) -> str:
    """``posts/hello`` -> ``posts__hello``."""
    return rel_no_ext.replace("/", "__")


def to_route(rel_no_ext: str) -> str:
    return f"/{rel_no_ext}/"


def content_file_name(doc_id: str) -> str:
    """Content fragments are named by a hash of the id, never by route."""
    return f"{make_hash(doc_id)}.html"


def title_from_file_name(file_name: str) -> str:
    """``my-first_post.md`` -> ``My First Post``."""
    stem = strip_md_ext(file_name)
    words = re.sub(r"[-_]+", " ", stem).split()
    if not words:
        return UNTITLED
    return " ".join(word[:1].upper() + word[1:] for word in words)


def parse_date(value: str | None) -> datetime | None:
    """Parse a frontmatter date into an aware datetime.

    Date-only values are midnight UTC; date-times without an offset are
    local time. Unparseable values return None.
    """
    if not value:
        return None
    text = value.strip()
    if _DATE_ONLY_RE.match(text):
        try:
            return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)
        except ValueError:
            return None
    try:
        parsed = datetime.fromisoformat(text.replace(" ", "T", 1))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def is_new_by_date(value: str | None, threshold: datetime) -> bool:
    published = parse_date(value)
    return published is not None and published >= threshold


def to_doc_record(
    source_path: Path,
    rel_path: str,
    entry: SourceCacheEntry,
    threshold: datetime,
) -> DocRecord:
    rel_no_ext = strip_md_ext(rel_path)
    file_name = PurePosixPath(rel_path).name
    doc_id = to_doc_id(rel_no_ext)
    return DocRecord(
        source_path=source_path,
        rel_path=rel_path,
        rel_no_ext=rel_no_ext,
        id=doc_id,
        route=to_route(rel_no_ext),
        content_url=f"/content/{content_file_name(doc_id)}",
        file_name=file_name,
        title=entry.title or title_from_file_name(file_name),
        prefix=entry.prefix,
        date=entry.date,
        updated_date=entry.updated_date,
        description=entry.description,
        tags=list(entry.tags),
        mtime_ms=entry.mtime_ms,
        body=entry.body,
        raw_hash=entry.raw_hash,
        wiki_targets=list(entry.wiki_targets),
        is_new=is_new_by_date(entry.date, threshold),
        branch=entry.branch,
    )


def append_route_suffix(route: str, suffix: str) -> str:
    """Append ``-suffix`` to the last segment of *route*."""
    clean = route.strip("/")
    if not clean:
        return f"/{suffix}/"
    head, _, last = clean.rpartition("/")
    last = f"{last or 'doc'}-{suffix}"
    return f"/{head}/{last}/" if head else f"/{last}/"


def ensure_unique_routes(docs: list[DocRecord], sink: DiagnosticSink | None = None) -> None:
    """Give every doc a distinct route, in place.

    Docs claim routes in collated path order, so the first path keeps a
    contested route. Later claimants try ``-<sha1(id)[:n]>`` for n = 6, 8,
    ... up to the digest length, and fall back to ``-<id>`` with ``__``
    turned into ``-``. The loop is bounded by the digest length.
    """
    sink = sink or NullSink()
    buckets: dict[str, list[DocRecord]] = {}
    for doc in docs:
        buckets.setdefault(doc.route, []).append(doc)
    for route, bucket in buckets.items():
        if len(bucket) > 1:
            paths = [doc.rel_path for doc in bucket]
            sink.report(
                "route",
                f'Duplicate slug route "{route}" detected. Applying suffixes: {", ".join(paths)}',
                {"route": route, "paths": paths},
            )

    used: set[str] = set()
    for doc in sorted(docs, key=lambda d: collation_key(d.rel_no_ext)):
        base = doc.route
        candidate = base
        if candidate in used:
            digest = make_hash(doc.id)
            length = 6
            while candidate in used:
                if length > len(digest):
                    candidate = append_route_suffix(base, doc.id.replace("__", "-"))
                    break
                candidate = append_route_suffix(base, digest[:length])
                length += 2
        doc.route = candidate
        used.add(candidate)


def build_registry(
    sources: dict[str, SourceCacheEntry],
    vault_dir: Path,
    new_within_days: int,
    sink: DiagnosticSink | None = None,
    now: datetime | None = None,
) -> list[DocRecord]:
    """Create DocRecords for every publishable entry, with unique routes.

    The result is sorted by collated relative path.
    """
    now = now or datetime.now(timezone.utc)
    threshold = now - timedelta(days=new_within_days)
    docs = [
        to_doc_record(Path(vault_dir) / rel_path, rel_path, entry, threshold)
        for rel_path, entry in sources.items()
        if entry.publish and not entry.draft
    ]
    ensure_unique_routes(docs, sink)
    docs.sort(key=lambda d: collation_key(d.rel_no_ext))
    return docs
