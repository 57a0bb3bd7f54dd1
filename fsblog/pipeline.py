"""The incremental build: vault in, static site out."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

from fsblog.cache import (
    CACHE_VERSION,
    BuildCache,
    RenderCacheEntry,
    default_cache_path,
    make_fingerprint,
    read_cache,
    refresh_sources,
    write_cache,
)
from fsblog.config.models import BuildOptions
from fsblog.diagnostics import DiagnosticSink, LoggingSink
from fsblog.output import (
    OutputWriter,
    RuntimeAssets,
    build_manifest,
    build_tree,
    collect_garbage,
    manifest_to_json,
    remove_file_if_exists,
)
from fsblog.registry import DocRecord, LinkIndex, build_registry, content_file_name
from fsblog.render import (
    MarkdownRenderer,
    ShellRenderer,
    assets_for_output,
    build_initial_view,
    build_page_meta,
    build_robots_txt,
    build_sitemap_xml,
    pick_home_doc,
    sitemap_urls,
    to_route_output_path,
)
from fsblog.vault import walk_markdown_files

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
SEO_FILES = ("robots.txt", "sitemap.xml")


class BuildReport(BaseModel):
    """Counts from one build."""

    total_docs: int = 0
    rendered_docs: int = 0
    skipped_docs: int = 0
    written_files: int = 0
    skipped_files: int = 0
    removed_docs: int = 0
    moved_docs: int = 0


def render_fingerprint(doc: DocRecord, options: BuildOptions, signature: str) -> str:
    """Cache key for a doc's content fragment.

    Covers everything that changes the rendered HTML: the source text, the
    route, the renderer settings and where each wikilink currently points.
    """
    return make_fingerprint(
        [
            doc.raw_hash,
            doc.route,
            options.highlight_theme,
            options.image_policy,
            "wikilinks-on" if options.wikilinks else "wikilinks-off",
            signature,
        ]
    )


def build_site(
    options: BuildOptions,
    sink: DiagnosticSink | None = None,
    now: datetime | None = None,
) -> BuildReport:
    """Run one build of *options.vault_dir* into *options.out_dir*.

    Only documents whose render fingerprint changed are rendered again, and
    only files whose content changed are written. Raises FrontmatterError
    when a source cannot be parsed; nothing is written in that case.
    """
    sink = sink or LoggingSink()
    out_dir = Path(options.out_dir)
    cache_path = Path(options.cache_path) if options.cache_path else default_cache_path()

    previous = read_cache(cache_path)
    can_reuse_outputs = (out_dir / MANIFEST_FILE).is_file()
    previous_docs = previous.docs if can_reuse_outputs else {}
    previous_hashes = previous.output_hashes if can_reuse_outputs else {}

    files = walk_markdown_files(Path(options.vault_dir), options.exclude)
    sources = refresh_sources(previous.sources, files)
    docs = build_registry(sources, Path(options.vault_dir), options.new_within_days, sink=sink, now=now)
    logger.info("found %d published docs in %d sources", len(docs), len(sources))

    (out_dir / "content").mkdir(parents=True, exist_ok=True)
    gc = collect_garbage(out_dir, previous.docs, docs)

    writer = OutputWriter(out_dir, previous_hashes)
    assets = writer.write_runtime_assets()

    manifest = build_manifest(docs, build_tree(docs, options), options)
    writer.write(MANIFEST_FILE, manifest_to_json(manifest))

    renderer = MarkdownRenderer(options, sink)
    index = LinkIndex.from_docs(docs)
    next_docs: dict[str, RenderCacheEntry] = {}
    content_by_id: dict[str, str] = {}
    rendered = skipped = 0

    for doc in docs:
        signature = index.resolution_signature(doc) if options.wikilinks else ""
        fingerprint = render_fingerprint(doc, options, signature)
        content_rel = f"content/{content_file_name(doc.id)}"
        prior = previous_docs.get(doc.id)
        unchanged = (
            prior is not None
            and prior.hash == fingerprint
            and previous_hashes.get(content_rel) == fingerprint
        )
        next_docs[doc.id] = RenderCacheEntry(hash=fingerprint, route=doc.route, rel_path=doc.rel_path)

        if unchanged:
            writer.record(content_rel, fingerprint)
            skipped += 1
            existing = writer.path_for(content_rel)
            if existing.is_file():
                content_by_id[doc.id] = existing.read_text(encoding="utf-8")
            else:
                content_by_id[doc.id] = renderer.render(doc.body, index.resolver_for(doc)).html
            continue

        result = renderer.render(doc.body, index.resolver_for(doc, sink))
        for warning in result.warnings:
            sink.report("markdown", f"{doc.rel_path}: {warning}", {"doc": doc.rel_path})
        writer.write_ledgered(content_rel, result.html, fingerprint)
        content_by_id[doc.id] = result.html
        rendered += 1

    write_shell_pages(writer, docs, manifest, options, assets, content_by_id)
    write_seo_files(writer, docs, options, sink)

    write_cache(
        cache_path,
        BuildCache(
            version=CACHE_VERSION,
            sources=sources,
            docs=next_docs,
            output_hashes=writer.next_hashes,
        ),
    )

    report = BuildReport(
        total_docs=len(docs),
        rendered_docs=rendered,
        skipped_docs=skipped,
        written_files=writer.written,
        skipped_files=writer.skipped,
        removed_docs=len(gc.removed_ids),
        moved_docs=len(gc.moved_ids),
    )
    logger.info(
        "build done: %d docs, %d rendered, %d skipped, %d files written",
        report.total_docs,
        report.rendered_docs,
        report.skipped_docs,
        report.written_files,
    )
    return report


def write_shell_pages(
    writer: OutputWriter,
    docs: list[DocRecord],
    manifest: dict,
    options: BuildOptions,
    assets: RuntimeAssets,
    content_by_id: dict[str, str],
) -> None:
    shell = ShellRenderer()

    home = pick_home_doc(docs)
    home_view = build_initial_view(home, docs, content_by_id.get(home.id, "")) if home else None
    home_meta = build_page_meta("/", None, options.seo)
    for rel_path in ("_app/index.html", "index.html"):
        page_assets = assets_for_output(rel_path, assets.css_rel_path, assets.js_rel_path)
        writer.write(rel_path, shell.render_app_shell(home_meta, page_assets, home_view, manifest))

    writer.write(
        "404.html",
        shell.render_not_found(assets_for_output("404.html", assets.css_rel_path, assets.js_rel_path)),
    )

    for doc in docs:
        rel_path = to_route_output_path(doc.route)
        writer.write(
            rel_path,
            shell.render_app_shell(
                build_page_meta(doc.route, doc, options.seo),
                assets_for_output(rel_path, assets.css_rel_path, assets.js_rel_path),
                build_initial_view(doc, docs, content_by_id.get(doc.id, "")),
                manifest,
            ),
        )


def write_seo_files(
    writer: OutputWriter,
    docs: list[DocRecord],
    options: BuildOptions,
    sink: DiagnosticSink,
) -> None:
    seo = options.seo
    if seo is None:
        for name in SEO_FILES:
            remove_file_if_exists(writer.path_for(name))
        sink.report(
            "seo",
            'Skipping robots.txt and sitemap.xml generation. Add "seo.site_url" to fsblog.yaml to enable SEO artifacts.',
            {},
        )
        return

    writer.write("robots.txt", build_robots_txt(seo))
    writer.write("sitemap.xml", build_sitemap_xml(sitemap_urls(docs, seo)))


def clean_build_artifacts(out_dir: Path, cache_path: Path | None = None) -> None:
    """Remove the output directory and the build cache."""
    out_dir = Path(out_dir)
    cache_path = Path(cache_path) if cache_path else default_cache_path()
    if out_dir.exists():
        shutil.rmtree(out_dir)
        logger.info("removed %s", out_dir)
    if remove_file_if_exists(cache_path):
        logger.info("removed %s", cache_path)
    try:
        cache_path.parent.rmdir()
    except OSError:
        pass
