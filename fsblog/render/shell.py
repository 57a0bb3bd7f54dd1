"""Static HTML shell pages around pre-rendered document content."""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from fsblog.registry.docs import DocRecord, parse_date

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

DEFAULT_BRANCH = "dev"
HOME_ROUTE = "/index/"


@dataclass(frozen=True)
class ShellAssets:
    css_href: str
    js_src: str


@dataclass
class InitialView:
    """What a shell page shows before the runtime script takes over."""

    route: str
    doc_id: str
    title: str
    breadcrumb: list[tuple[str, bool]]
    prefix: str | None
    created_at: str | None
    tags: list[str]
    content_html: str
    prev: DocRecord | None = None
    next: DocRecord | None = None


def to_route_output_path(route: str) -> str:
    """``/posts/hello/`` -> ``posts/hello/index.html``."""
    clean = route.strip("/")
    return f"{clean}/index.html" if clean else "index.html"


def relative_asset_path(from_output_path: str, asset_path: str) -> str:
    from_dir = posixpath.dirname(from_output_path) or "."
    relative = posixpath.relpath(asset_path, from_dir)
    return relative or posixpath.basename(asset_path)


def assets_for_output(output_path: str, css_rel_path: str, js_rel_path: str) -> ShellAssets:
    return ShellAssets(
        css_href=relative_asset_path(output_path, css_rel_path),
        js_src=relative_asset_path(output_path, js_rel_path),
    )


def pick_home_doc(docs: list[DocRecord]) -> DocRecord | None:
    """Prefer ``/index/`` in the default branch, else the first candidate."""
    in_default = [doc for doc in docs if doc.branch is None or doc.branch == DEFAULT_BRANCH]
    candidates = in_default or docs
    for doc in candidates:
        if doc.route == HOME_ROUTE:
            return doc
    return candidates[0] if candidates else None


def format_meta_datetime(value: str | None) -> str | None:
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M")


def normalize_tags(tags: list[str]) -> list[str]:
    return [cleaned for tag in tags if (cleaned := str(tag).strip().lstrip("#"))]


def breadcrumb_items(route: str) -> list[tuple[str, bool]]:
    """``~`` followed by each route segment; the last one is current."""
    items = ["~", *[part for part in route.split("/") if part]]
    last = len(items) - 1
    return [(label, index == last and len(items) > 1) for index, label in enumerate(items)]


def build_initial_view(doc: DocRecord, docs: list[DocRecord], content_html: str) -> InitialView:
    position = next((i for i, candidate in enumerate(docs) if candidate.id == doc.id), -1)
    prev_doc = docs[position - 1] if position > 0 else None
    next_doc = docs[position + 1] if 0 <= position < len(docs) - 1 else None
    return InitialView(
        route=doc.route,
        doc_id=doc.id,
        title=doc.title,
        breadcrumb=breadcrumb_items(doc.route),
        prefix=doc.prefix,
        created_at=format_meta_datetime(doc.date),
        tags=normalize_tags(doc.tags),
        content_html=content_html,
        prev=prev_doc,
        next=next_doc,
    )


def _script_json(payload: Any) -> str:
    """JSON safe to inline in a ``<script>`` element."""
    text = json.dumps(payload, ensure_ascii=False)
    return text.replace("</", "<\\/")


class ShellRenderer:
    """Renders the app shell and 404 page from the bundled templates."""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(),
            keep_trailing_newline=True,
        )

    def render_app_shell(
        self,
        meta: dict[str, Any],
        assets: ShellAssets,
        initial_view: InitialView | None,
        manifest: dict[str, Any],
    ) -> str:
        template = self.env.get_template("app_shell.html")
        return template.render(
            meta=meta,
            assets=assets,
            view=initial_view,
            json_ld=[_script_json(block) for block in meta.get("json_ld", [])],
            manifest_json=_script_json(manifest),
        )

    def render_not_found(self, assets: ShellAssets) -> str:
        return self.env.get_template("404.html").render(assets=assets)
