"""YAML frontmatter parsing.

Date-like fields prefer the literal text written in the frontmatter block
over YAML's parsed value, because YAML turns ``2024-01-01T09:00`` into a
datetime and any re-serialisation would shift it between time zones.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

import yaml

_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
_BLOCK_RE = re.compile(r"\A---\s*\r?\n(.*?)\r?\n---", re.DOTALL)

DATE_KEYS = ("date", "createdDate")
UPDATED_DATE_KEYS = ("updatedDate", "modifiedDate", "lastModified")


class FrontmatterParseError(ValueError):
    """The frontmatter block is not valid YAML."""


def parse_frontmatter(raw: str) -> tuple[dict[str, Any], str]:
    """Split *raw* into (fields, body).

    Text without a leading ``---`` block has no fields and is all body.
    Raises FrontmatterParseError when the block is not valid YAML.
    """
    match = _FRONTMATTER_RE.match(raw)
    if match is None:
        return {}, raw
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise FrontmatterParseError(str(e)) from e
    if not isinstance(data, dict):
        data = {}
    return data, raw[match.end():]


def extract_frontmatter_scalar(raw: str, key: str) -> str | None:
    """Return the literal value of a top-level ``key: value`` line, unquoted."""
    block = _BLOCK_RE.match(raw)
    if block is None:
        return None
    line = re.search(rf"^{re.escape(key)}:\s*(.+?)\s*$", block.group(1), re.MULTILINE)
    if line is None:
        return None

    value = line.group(1).strip()
    if not value or value in ("|", ">"):
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1].strip()
    return value or None


def _local_iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%S")


def normalize_frontmatter_date(value: Any) -> str | None:
    """Render a YAML-parsed date-ish value as local ``YYYY-MM-DDTHH:MM:SS``."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return _local_iso(value)
    if isinstance(value, date):
        return _local_iso(datetime(value.year, value.month, value.day))
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        try:
            return _local_iso(datetime.fromtimestamp(value / 1000))
        except (OverflowError, OSError, ValueError):
            return None
    return None


def pick_date(fields: dict[str, Any], raw: str, keys: tuple[str, ...]) -> str | None:
    """Pick the first date among *keys*, literal text first."""
    for key in keys:
        literal = extract_frontmatter_scalar(raw, key)
        if literal:
            return literal
    for key in keys:
        normalized = normalize_frontmatter_date(fields.get(key))
        if normalized:
            return normalized
    return None


def pick_prefix(fields: dict[str, Any], raw: str) -> str | None:
    literal = extract_frontmatter_scalar(raw, "prefix")
    if literal:
        return literal
    value = fields.get("prefix")
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        return str(value)
    return None


def pick_text(fields: dict[str, Any], key: str) -> str | None:
    value = fields.get(key)
    if isinstance(value, str):
        return value.strip() or None
    return None


def parse_tags(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [s for s in (str(item).strip() for item in value) if s]


def parse_branch(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip().lower() or None
