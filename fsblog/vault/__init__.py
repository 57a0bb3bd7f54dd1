"""Vault reading: file discovery, frontmatter and cross-reference parsing."""

from fsblog.vault.frontmatter import FrontmatterParseError, parse_frontmatter
from fsblog.vault.walker import SourceFile, build_excluder, walk_markdown_files
from fsblog.vault.wikilinks import extract_wiki_targets, normalize_wiki_target

__all__ = [
    "FrontmatterParseError",
    "SourceFile",
    "build_excluder",
    "extract_wiki_targets",
    "normalize_wiki_target",
    "parse_frontmatter",
    "walk_markdown_files",
]
