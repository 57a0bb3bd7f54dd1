"""The explorer tree and ``manifest.json`` consumed by the runtime."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from fsblog.collation import collation_key
from fsblog.config.models import BuildOptions
from fsblog.registry.docs import DocRecord, parse_date
from fsblog.render.shell import DEFAULT_BRANCH

RECENT_FOLDER_NAME = "Recent"
RECENT_FOLDER_PATH = "__virtual__/recent"
PINNED_FOLDER_PREFIX = "__virtual__/pinned/"


def _put_optional(node: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        node[key] = value


def file_node(doc: DocRecord) -> dict[str, Any]:
    node: dict[str, Any] = {
        "type": "file",
        "name": doc.file_name,
        "id": doc.id,
        "title": doc.title,
    }
    _put_optional(node, "prefix", doc.prefix)
    node.update(
        {
            "route": doc.route,
            "contentUrl": doc.content_url,
            "isNew": doc.is_new,
            "tags": list(doc.tags),
        }
    )
    _put_optional(node, "description", doc.description)
    _put_optional(node, "date", doc.date)
    _put_optional(node, "updatedDate", doc.updated_date)
    node["branch"] = doc.branch
    return node


def folder_node(name: str, path: str, virtual: bool = False) -> dict[str, Any]:
    node: dict[str, Any] = {"type": "folder", "name": name, "path": path}
    if virtual:
        node["virtual"] = True
    node["children"] = []
    return node


def sort_tree(nodes: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Folders before files, then by collated name, recursively."""
    nodes.sort(key=lambda n: (n["type"] != "folder", collation_key(n["name"])))
    for node in nodes:
        if node["type"] == "folder":
            sort_tree(node["children"])
    return nodes


def _recent_key(doc: DocRecord) -> tuple:
    stamp: datetime | None = parse_date(doc.updated_date) or parse_date(doc.date)
    if stamp is None:
        return (1, 0.0, collation_key(doc.rel_no_ext))
    return (0, -stamp.timestamp(), collation_key(doc.rel_no_ext))


def recent_docs(docs: list[DocRecord], limit: int) -> list[DocRecord]:
    """Newest first by updated date, else date; undated docs last."""
    return sorted(docs, key=_recent_key)[:limit]


def build_pinned_folder(docs: list[DocRecord], options: BuildOptions) -> dict[str, Any] | None:
    pinned = options.pinned_menu
    if pinned is None:
        return None
    prefix = f"{pinned.source_dir}/"
    members = sorted(
        (doc for doc in docs if doc.rel_no_ext.startswith(prefix)),
        key=lambda d: collation_key(d.rel_no_ext),
    )
    folder = folder_node(pinned.label, f"{PINNED_FOLDER_PREFIX}{pinned.source_dir}", virtual=True)
    folder["children"] = [file_node(doc) for doc in members]
    return folder


def build_tree(docs: list[DocRecord], options: BuildOptions) -> list[dict[str, Any]]:
    """Folder tree of *docs*, led by the pinned and Recent virtual folders."""
    root = folder_node("root", "")
    folders: dict[str, dict[str, Any]] = {"": root}

    for doc in docs:
        segments = doc.rel_no_ext.split("/")
        parent = root
        current_path = ""
        for segment in segments[:-1]:
            current_path = f"{current_path}/{segment}" if current_path else segment
            folder = folders.get(current_path)
            if folder is None:
                folder = folder_node(segment, current_path)
                folders[current_path] = folder
                parent["children"].append(folder)
            parent = folder
        parent["children"].append(file_node(doc))

    sort_tree(root["children"])

    recent = folder_node(RECENT_FOLDER_NAME, RECENT_FOLDER_PATH, virtual=True)
    recent["children"] = [file_node(doc) for doc in recent_docs(docs, options.recent_limit)]

    head = [recent]
    pinned = build_pinned_folder(docs, options)
    if pinned is not None:
        head.insert(0, pinned)
    return [*head, *root["children"]]


def collect_branches(docs: list[DocRecord]) -> list[str]:
    others = {doc.branch for doc in docs if doc.branch and doc.branch != DEFAULT_BRANCH}
    return [DEFAULT_BRANCH, *sorted(others, key=collation_key)]


def doc_summary(doc: DocRecord) -> dict[str, Any]:
    summary: dict[str, Any] = {"id": doc.id, "route": doc.route, "title": doc.title}
    _put_optional(summary, "prefix", doc.prefix)
    _put_optional(summary, "date", doc.date)
    _put_optional(summary, "updatedDate", doc.updated_date)
    summary["tags"] = list(doc.tags)
    _put_optional(summary, "description", doc.description)
    summary["isNew"] = doc.is_new
    summary["contentUrl"] = doc.content_url
    summary["branch"] = doc.branch
    return summary


def build_manifest(docs: list[DocRecord], tree: list[dict[str, Any]], options: BuildOptions) -> dict[str, Any]:
    """Everything the runtime needs to render the explorer.

    There is no build timestamp, so an unchanged vault yields identical bytes.
    """
    return {
        "defaultBranch": DEFAULT_BRANCH,
        "branches": collect_branches(docs),
        "ui": {
            "newWithinDays": options.new_within_days,
            "recentLimit": options.recent_limit,
        },
        "tree": tree,
        "routeMap": {doc.route: doc.id for doc in docs},
        "docs": [doc_summary(doc) for doc in docs],
    }


def manifest_to_json(manifest: dict[str, Any]) -> str:
    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"
