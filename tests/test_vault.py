"""Tests for vault reading: frontmatter, wikilink extraction and the walker."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import pytest

from fsblog.vault import (
    FrontmatterParseError,
    build_excluder,
    extract_wiki_targets,
    normalize_wiki_target,
    parse_frontmatter,
    walk_markdown_files,
)
from fsblog.vault.frontmatter import (
    DATE_KEYS,
    UPDATED_DATE_KEYS,
    extract_frontmatter_scalar,
    normalize_frontmatter_date,
    parse_branch,
    parse_tags,
    pick_date,
    pick_prefix,
)
from fsblog.vault.wikilinks import split_wiki_inner


# ── Frontmatter ──────────────────────────────────────────────────────


def test_parse_frontmatter_splits_body():
    fields, body = parse_frontmatter("---\ntitle: Hi\n---\n# Body\n")
    assert fields == {"title": "Hi"}
    assert body == "# Body\n"


def test_no_frontmatter_is_all_body():
    fields, body = parse_frontmatter("# Just text\n")
    assert fields == {}
    assert body == "# Just text\n"


def test_non_mapping_frontmatter_is_empty():
    fields, _ = parse_frontmatter("---\n- a\n- b\n---\nbody")
    assert fields == {}


def test_invalid_yaml_raises():
    with pytest.raises(FrontmatterParseError):
        parse_frontmatter("---\nkey: [oops\n---\n")


def test_scalar_literal_strips_quotes():
    raw = "---\ndate: \"2024-03-01T09:30\"\nnote: |\n  block\n---\n"
    assert extract_frontmatter_scalar(raw, "date") == "2024-03-01T09:30"
    assert extract_frontmatter_scalar(raw, "note") is None
    assert extract_frontmatter_scalar(raw, "missing") is None


def test_pick_date_prefers_literal_text():
    raw = "---\ndate: 2024-03-01T09:30:00+09:00\n---\n"
    fields, _ = parse_frontmatter(raw)
    assert pick_date(fields, raw, DATE_KEYS) == "2024-03-01T09:30:00+09:00"


def test_pick_date_falls_back_through_keys():
    raw = "---\nlastModified: 2024-05-05\n---\n"
    fields, _ = parse_frontmatter(raw)
    assert pick_date(fields, raw, UPDATED_DATE_KEYS) == "2024-05-05"
    assert pick_date(fields, raw, DATE_KEYS) is None


def test_normalize_parsed_dates():
    assert normalize_frontmatter_date(date(2024, 1, 2)) == "2024-01-02T00:00:00"
    assert normalize_frontmatter_date(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"
    assert normalize_frontmatter_date("  ") is None
    assert normalize_frontmatter_date(None) is None


def test_pick_prefix_number_from_yaml():
    assert pick_prefix({"prefix": 12}, "") == "12"
    assert pick_prefix({"prefix": True}, "") is None


def test_parse_tags_and_branch():
    assert parse_tags(["a", 1, "  ", " b "]) == ["a", "1", "b"]
    assert parse_tags("a, b") == []
    assert parse_branch(" Main ") == "main"
    assert parse_branch("   ") is None
    assert parse_branch(3) is None


# ── Wikilinks ────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("World", "world"),
        ("./notes/Alpha.md", "notes/alpha"),
        ("/notes/alpha", "notes/alpha"),
        ("notes\\alpha.MD", "notes/alpha"),
        ("  spaced  ", "spaced"),
    ],
)
def test_normalize_wiki_target(raw: str, expected: str):
    assert normalize_wiki_target(raw) == expected


def test_split_wiki_inner_label():
    assert split_wiki_inner("target|Label") == ("target", "Label")
    assert split_wiki_inner("target") == ("target", None)
    assert split_wiki_inner("a|b|c") == ("a", "b")


def test_extract_skips_embeds_and_dedupes():
    text = "[[Beta]] [[alpha|A]] ![[image.png]] [[beta]] [[ ]]"
    assert extract_wiki_targets(text) == ["alpha", "beta"]


def test_extract_sorted_case_insensitively():
    assert extract_wiki_targets("[[zeta]] [[Alpha]] [[beta]]") == ["alpha", "beta", "zeta"]


# ── Walker ───────────────────────────────────────────────────────────


def _touch(root: Path, rel: str, text: str = "x") -> None:
    dest = root / rel
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(text)


def test_walk_finds_markdown_only(tmp_path: Path):
    _touch(tmp_path, "a.md")
    _touch(tmp_path, "notes/b.MD")
    _touch(tmp_path, "notes/image.png")
    found = walk_markdown_files(tmp_path, [])
    assert [f.rel_path for f in found] == ["a.md", "notes/b.MD"]


def test_walk_records_stat(tmp_path: Path):
    _touch(tmp_path, "a.md", "hello")
    (found,) = walk_markdown_files(tmp_path, [])
    stat = (tmp_path / "a.md").stat()
    assert found.size == 5
    assert found.mtime_ms == stat.st_mtime_ns / 1_000_000
    assert found.source_path == tmp_path / "a.md"


def test_walk_honours_excludes(tmp_path: Path):
    _touch(tmp_path, ".obsidian/workspace.md")
    _touch(tmp_path, "templates/t.md")
    _touch(tmp_path, "keep.md")
    _touch(tmp_path, "drafts.tmp.md")
    found = walk_markdown_files(tmp_path, [".obsidian/**", "templates/**", "*.tmp.md"])
    assert [f.rel_path for f in found] == ["keep.md"]


def test_excluder_matches_directory_with_slash():
    is_excluded = build_excluder([".obsidian/**"])
    assert is_excluded(".obsidian", True)
    assert not is_excluded(".obsidian", False)
    assert not is_excluded("", True)
