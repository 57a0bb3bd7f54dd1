"""End-to-end tests for the incremental build."""

from __future__ import annotations

import json
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path

import pytest

from fsblog.cache import make_hash
from fsblog.config.models import PinnedMenuOption, SeoOptions
from fsblog.diagnostics import CollectingSink
from fsblog.errors import FrontmatterError
from fsblog.pipeline import build_site, clean_build_artifacts
from fsblog.registry import content_file_name

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def build(options, sink=None):
    return build_site(options, sink=sink or CollectingSink(), now=NOW)


@pytest.fixture
def site(write_doc):
    write_doc("posts/hello.md", "Hello [[world]]\n", title="Hello", date="2024-05-30")
    write_doc("world.md", "Round.\n", title="World")


class TestFirstBuild:
    def test_renders_everything(self, site, make_options, tmp_path: Path):
        report = build(make_options())
        assert report.total_docs == 2
        assert report.rendered_docs == 2
        assert report.skipped_docs == 0

        out = tmp_path / "dist"
        for rel in ("index.html", "_app/index.html", "404.html", "manifest.json"):
            assert (out / rel).is_file(), rel
        assert (out / "posts" / "hello" / "index.html").is_file()
        assert (out / "world" / "index.html").is_file()
        assert list((out / "assets").glob("app.*.js"))
        assert list((out / "assets").glob("app.*.css"))

    def test_wikilink_points_at_route(self, site, make_options, tmp_path: Path):
        build(make_options())
        fragment = tmp_path / "dist" / "content" / content_file_name("posts__hello")
        html = fragment.read_text()
        assert 'href="/world/"' in html
        assert ">World</a>" in html

    def test_route_page_is_prerendered(self, site, make_options, tmp_path: Path):
        build(make_options())
        page = (tmp_path / "dist" / "posts" / "hello" / "index.html").read_text()
        assert 'href="/world/"' in page
        assert "../../assets/app." in page
        assert 'id="fsblog-manifest"' in page

    def test_manifest_contents(self, site, make_options, tmp_path: Path):
        build(make_options())
        manifest = json.loads((tmp_path / "dist" / "manifest.json").read_text())
        assert manifest["routeMap"] == {"/posts/hello/": "posts__hello", "/world/": "world"}
        hello = manifest["docs"][0]
        assert hello["isNew"] is True
        assert hello["contentUrl"] == f"/content/{content_file_name('posts__hello')}"
        assert manifest["tree"][0]["path"] == "__virtual__/recent"

    def test_cache_written(self, site, make_options, tmp_path: Path):
        build(make_options())
        cache = json.loads((tmp_path / ".cache" / "build-index.json").read_text())
        assert cache["version"] == 3
        assert set(cache["docs"]) == {"posts__hello", "world"}
        assert set(cache["sources"]) == {"posts/hello.md", "world.md"}


class TestIncremental:
    def test_second_build_is_a_no_op(self, site, make_options, tmp_path: Path):
        options = make_options()
        build(options)
        cache_before = (tmp_path / ".cache" / "build-index.json").read_bytes()
        manifest_before = (tmp_path / "dist" / "manifest.json").read_bytes()

        report = build(options)
        assert report.rendered_docs == 0
        assert report.skipped_docs == 2
        assert report.written_files == 0
        assert (tmp_path / ".cache" / "build-index.json").read_bytes() == cache_before
        assert (tmp_path / "dist" / "manifest.json").read_bytes() == manifest_before

    def test_touch_without_edit_renders_nothing(self, site, make_options, vault: Path):
        options = make_options()
        build(options)
        target = vault / "world.md"
        stat = target.stat()
        os.utime(target, (stat.st_atime + 60, stat.st_mtime + 60))

        report = build(options)
        assert report.rendered_docs == 0
        assert report.written_files == 0

    def test_edit_renders_only_that_doc(self, site, write_doc, make_options):
        options = make_options()
        build(options)
        write_doc("world.md", "Flat.\n", title="World")

        report = build(options)
        assert report.rendered_docs == 1
        assert report.skipped_docs == 1

    def test_deleting_link_target_rerenders_linker(self, site, make_options, vault: Path, tmp_path: Path):
        options = make_options()
        build(options)
        world_fragment = tmp_path / "dist" / "content" / content_file_name("world")
        assert world_fragment.is_file()

        (vault / "world.md").unlink()
        sink = CollectingSink()
        report = build(options, sink)

        assert report.total_docs == 1
        assert report.rendered_docs == 1
        assert report.removed_docs == 1
        assert not world_fragment.exists()
        assert not (tmp_path / "dist" / "world").exists()

        html = (tmp_path / "dist" / "content" / content_file_name("posts__hello")).read_text()
        assert "/world/" not in html
        messages = [d.message for d in sink.of_kind("markdown")]
        assert "posts/hello.md: Unresolved wikilink: world" in messages

    def test_adding_link_target_rerenders_linker(self, write_doc, make_options, tmp_path: Path):
        write_doc("a.md", "See [[b]]\n")
        options = make_options()
        build(options)

        write_doc("b.md", "B body\n")
        report = build(options)
        assert report.rendered_docs == 2
        html = (tmp_path / "dist" / "content" / content_file_name("a")).read_text()
        assert 'href="/b/"' in html

    def test_moved_doc_loses_old_route_page(self, site, make_options, vault: Path, tmp_path: Path):
        options = make_options()
        build(options)
        (vault / "archive").mkdir()
        (vault / "world.md").rename(vault / "archive" / "world.md")

        report = build(options)
        assert report.removed_docs == 1
        assert report.rendered_docs == 2
        html = (tmp_path / "dist" / "content" / content_file_name("posts__hello")).read_text()
        assert 'href="/archive/world/"' in html
        assert not (tmp_path / "dist" / "world" / "index.html").exists()
        assert (tmp_path / "dist" / "archive" / "world" / "index.html").is_file()

    def test_retitled_link_target_does_not_rerender_linker(self, site, write_doc, make_options, tmp_path: Path):
        options = make_options()
        build(options)
        write_doc("world.md", "Round.\n", title="Planet")

        report = build(options)
        assert report.rendered_docs == 1
        assert report.skipped_docs == 1
        html = (tmp_path / "dist" / "content" / content_file_name("posts__hello")).read_text()
        assert ">World</a>" in html
        manifest = json.loads((tmp_path / "dist" / "manifest.json").read_text())
        assert {d["id"]: d["title"] for d in manifest["docs"]}["world"] == "Planet"

    def test_missing_fragment_is_recovered_in_memory(self, site, make_options, tmp_path: Path):
        build(make_options())
        (tmp_path / "dist" / "content" / content_file_name("posts__hello")).unlink()

        # a changed manifest forces every shell page to be rewritten
        report = build(make_options(recent_limit=1))
        assert report.rendered_docs == 0
        assert report.skipped_docs == 2
        page = (tmp_path / "dist" / "posts" / "hello" / "index.html").read_text()
        assert 'href="/world/"' in page

    def test_wiped_output_forces_full_render(self, site, make_options, tmp_path: Path):
        options = make_options()
        build(options)
        shutil.rmtree(tmp_path / "dist")

        report = build(options)
        assert report.rendered_docs == 2
        assert (tmp_path / "dist" / "content" / content_file_name("world")).is_file()

    def test_changed_theme_rerenders(self, site, make_options):
        build(make_options())
        report = build(make_options(highlight_theme="monokai"))
        assert report.rendered_docs == 2


class TestSelection:
    def test_drafts_and_unpublished_are_skipped(self, write_doc, make_options, tmp_path: Path):
        write_doc("keep.md", "x")
        write_doc("draft.md", "x", draft=True)
        write_doc("private.md", "x", publish=False)

        report = build(make_options())
        assert report.total_docs == 1
        assert not (tmp_path / "dist" / "draft").exists()
        assert not (tmp_path / "dist" / "private").exists()

    def test_exclude_patterns(self, write_doc, make_options):
        write_doc("keep.md", "x")
        write_doc("templates/daily.md", "x")
        write_doc(".obsidian/plugin.md", "x")

        report = build(make_options(exclude=[".obsidian/**", "templates/**"]))
        assert report.total_docs == 1

    def test_pinned_menu_in_tree(self, write_doc, make_options, tmp_path: Path):
        write_doc("guides/setup.md", "x")
        write_doc("other.md", "x")

        build(make_options(pinned_menu=PinnedMenuOption(label="Guides", source_dir="guides")))
        manifest = json.loads((tmp_path / "dist" / "manifest.json").read_text())
        pinned = manifest["tree"][0]
        assert pinned["path"] == "__virtual__/pinned/guides"
        assert pinned["name"] == "Guides"
        assert [c["id"] for c in pinned["children"]] == ["guides__setup"]

    def test_byte_order_mark_is_ignored(self, vault: Path, make_options):
        (vault / "bom.md").write_text("\ufeff---\npublish: true\n---\nhi\n", encoding="utf-8")
        report = build(make_options())
        assert report.total_docs == 1

    def test_undecodable_bytes_do_not_abort(self, vault: Path, make_options, tmp_path: Path):
        (vault / "bad.md").write_bytes(b"---\npublish: true\n---\ncaf\xe9\n")
        report = build(make_options())
        assert report.total_docs == 1
        html = (tmp_path / "dist" / "content" / content_file_name("bad")).read_text()
        assert "caf\ufffd" in html


class TestFailures:
    def test_frontmatter_error_writes_nothing(self, write_doc, make_options, vault: Path, tmp_path: Path):
        write_doc("ok.md", "x")
        (vault / "broken.md").write_text("---\ntitle: [oops\n---\nbody\n")

        with pytest.raises(FrontmatterError) as exc_info:
            build(make_options())
        assert exc_info.value.rel_path == "broken.md"
        assert not (tmp_path / "dist").exists()
        assert not (tmp_path / ".cache" / "build-index.json").exists()


class TestSeoArtifacts:
    def test_written_with_site_url(self, site, make_options, tmp_path: Path):
        seo = SeoOptions(site_url="https://example.com", path_base="/blog")
        build(make_options(seo=seo))
        robots = (tmp_path / "dist" / "robots.txt").read_text()
        sitemap = (tmp_path / "dist" / "sitemap.xml").read_text()
        assert "Sitemap: https://example.com/blog/sitemap.xml" in robots
        assert "<loc>https://example.com/blog/world/</loc>" in sitemap
        page = (tmp_path / "dist" / "world" / "index.html").read_text()
        assert 'rel="canonical" href="https://example.com/blog/world/"' in page

    def test_removed_without_site_url(self, site, make_options, tmp_path: Path):
        build(make_options(seo=SeoOptions(site_url="https://example.com")))
        assert (tmp_path / "dist" / "robots.txt").exists()

        sink = CollectingSink()
        build(make_options(), sink)
        assert not (tmp_path / "dist" / "robots.txt").exists()
        assert not (tmp_path / "dist" / "sitemap.xml").exists()
        assert len(sink.of_kind("seo")) == 1


def test_clean_build_artifacts(site, make_options, tmp_path: Path):
    options = make_options()
    build(options)
    clean_build_artifacts(options.out_dir, options.cache_path)
    assert not (tmp_path / "dist").exists()
    assert not (tmp_path / ".cache").exists()


def test_route_collisions_are_stable_across_builds(write_doc, make_options, vault: Path, tmp_path: Path):
    write_doc("note.md", "lower")
    write_doc("note.MD", "upper")
    if len(list(vault.iterdir())) != 2:
        pytest.skip("case-insensitive filesystem")
    options = make_options()

    first_sink = CollectingSink()
    build(options, first_sink)
    first = json.loads((tmp_path / "dist" / "manifest.json").read_text())

    second_sink = CollectingSink()
    build(options, second_sink)
    second = json.loads((tmp_path / "dist" / "manifest.json").read_text())

    suffixed = f"/note-{make_hash('note')[:6]}/"
    assert sorted(first["routeMap"]) == ["/note/", suffixed]
    assert [d["route"] for d in second["docs"]] == [d["route"] for d in first["docs"]]
    assert len(first_sink.of_kind("route")) == 1
    assert len(second_sink.of_kind("route")) == 1
    assert (tmp_path / "dist" / "note" / "index.html").is_file()
    assert (tmp_path / "dist" / suffixed.strip("/") / "index.html").is_file()
