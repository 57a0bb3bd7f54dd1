"""Cross-reference (``[[wikilink]]``) extraction."""

from __future__ import annotations

import re

from fsblog.collation import collation_key

_WIKILINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
_MD_EXT_RE = re.compile(r"\.md$", re.IGNORECASE)


def normalize_wiki_target(target: str) -> str:
    """Case-fold a reference and strip path prefixes and the ``.md`` extension."""
    value = target.strip().replace("\\", "/")
    if value.startswith("./"):
        value = value[2:]
    if value.startswith("/"):
        value = value[1:]
    return _MD_EXT_RE.sub("", value).lower()


def split_wiki_inner(inner: str) -> tuple[str, str | None]:
    """``target|label`` -> (target, label or None)."""
    parts = inner.split("|")
    label = parts[1].strip() if len(parts) > 1 else ""
    return parts[0].strip(), label or None


def extract_wiki_targets(markdown: str) -> list[str]:
    """Collect normalised targets of every non-embed wikilink in *markdown*.

    ``![[...]]`` embeds are skipped. The result is deduplicated and sorted.
    """
    targets: set[str] = set()
    for match in _WIKILINK_RE.finditer(markdown):
        start = match.start()
        if start > 0 and markdown[start - 1] == "!":
            continue
        inner = match.group(1).strip()
        if not inner:
            continue
        target, _label = split_wiki_inner(inner)
        normalized = normalize_wiki_target(target)
        if normalized:
            targets.add(normalized)
    return sorted(targets, key=collation_key)
