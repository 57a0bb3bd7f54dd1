"""Markdown discovery under the vault root."""

from __future__ import annotations

import fnmatch
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SourceFile:
    """A discovered markdown file with the stat pair the source cache keys on."""

    source_path: Path
    rel_path: str
    mtime_ms: float
    size: int


def build_excluder(patterns: list[str]) -> Callable[[str, bool], bool]:
    """Return ``is_excluded(rel_path, is_dir)`` for glob *patterns*.

    Patterns are matched with fnmatch against the POSIX relative path. A
    directory is also tested with a trailing slash so ``.obsidian/**``
    excludes the ``.obsidian`` directory itself.
    """
    compiled = [p for p in patterns if p]

    def is_excluded(rel_path: str, is_dir: bool) -> bool:
        if not rel_path:
            return False
        normalized = rel_path[2:] if rel_path.startswith("./") else rel_path
        with_slash = f"{normalized}/" if is_dir and not normalized.endswith("/") else normalized
        return any(
            fnmatch.fnmatchcase(normalized, pattern) or fnmatch.fnmatchcase(with_slash, pattern)
            for pattern in compiled
        )

    return is_excluded


def walk_markdown_files(vault_dir: Path, exclude: list[str]) -> list[SourceFile]:
    """Find every ``*.md`` file under *vault_dir* that is not excluded."""
    vault_dir = Path(vault_dir)
    is_excluded = build_excluder(exclude)
    found: list[SourceFile] = []

    def _walk(directory: Path) -> None:
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            rel = entry.relative_to(vault_dir).as_posix()
            is_dir = entry.is_dir()
            if is_excluded(rel, is_dir):
                continue
            if is_dir:
                _walk(entry)
            elif entry.is_file() and entry.name.lower().endswith(".md"):
                stat = entry.stat()
                found.append(SourceFile(
                    source_path=entry,
                    rel_path=rel,
                    mtime_ms=stat.st_mtime_ns / 1_000_000,
                    size=stat.st_size,
                ))

    _walk(vault_dir)
    return found
