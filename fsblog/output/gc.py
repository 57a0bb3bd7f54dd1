"""Remove outputs of documents that disappeared or moved."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from fsblog.cache.models import RenderCacheEntry
from fsblog.registry.docs import DocRecord, content_file_name

logger = logging.getLogger(__name__)


class GcReport(BaseModel):
    removed_ids: list[str] = Field(default_factory=list)
    moved_ids: list[str] = Field(default_factory=list)


def remove_file_if_exists(path: Path) -> bool:
    """Delete *path*. A missing file counts as success."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def remove_empty_parents(start_dir: Path, stop_dir: Path) -> None:
    """Remove *start_dir* and its ancestors while empty, never *stop_dir*."""
    stop = Path(stop_dir).resolve()
    current = Path(start_dir).resolve()
    while current != stop and stop in current.parents:
        try:
            current.rmdir()
        except FileNotFoundError:
            pass
        except OSError:
            # not empty
            return
        current = current.parent


def route_dir(out_dir: Path, route: str) -> Path:
    return Path(out_dir) / route.strip("/")


def collect_garbage(
    out_dir: Path,
    previous_docs: dict[str, RenderCacheEntry],
    current_docs: list[DocRecord],
) -> GcReport:
    """Delete files of removed docs and old route pages of moved docs.

    A removed id loses its content fragment (both the hashed name and the
    legacy ``<id>.html`` name) and its route page. A moved id only loses
    its old route page; the fragment is reused under the same name.
    """
    out_dir = Path(out_dir)
    report = GcReport()
    current_routes = {doc.id: doc.route for doc in current_docs}

    for doc_id, entry in previous_docs.items():
        current_route = current_routes.get(doc_id)
        if current_route is not None:
            if current_route != entry.route:
                old_dir = route_dir(out_dir, entry.route)
                remove_file_if_exists(old_dir / "index.html")
                remove_empty_parents(old_dir, out_dir)
                report.moved_ids.append(doc_id)
            continue

        remove_file_if_exists(out_dir / "content" / f"{doc_id}.html")
        remove_file_if_exists(out_dir / "content" / content_file_name(doc_id))
        old_dir = route_dir(out_dir, entry.route)
        remove_file_if_exists(old_dir / "index.html")
        remove_empty_parents(old_dir, out_dir)
        report.removed_ids.append(doc_id)

    if report.removed_ids or report.moved_ids:
        logger.info("gc: %d removed, %d moved", len(report.removed_ids), len(report.moved_ids))
    return report
