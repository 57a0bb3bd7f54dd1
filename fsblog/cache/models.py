"""Persisted cache schema.

Field names are snake_case in Python and camelCase on disk so the cache
file keeps the layout older builds wrote.
"""

from __future__ import annotations

import json
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_optional_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _clean_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [s for s in (str(item).strip() for item in value) if s]


class _CacheModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SourceCacheEntry(_CacheModel):
    """Parsed state of one source file, keyed by its vault-relative path."""

    mtime_ms: float = Field(alias="mtimeMs")
    size: int
    raw_hash: str = Field(alias="rawHash", min_length=1)
    publish: bool = False
    draft: bool = False
    title: str | None = None
    prefix: str | None = None
    date: str | None = None
    updated_date: str | None = Field(default=None, alias="updatedDate")
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    branch: str | None = None
    body: str
    wiki_targets: list[str] = Field(default_factory=list, alias="wikiTargets")

    @field_validator("mtime_ms", mode="before")
    @classmethod
    def _finite_mtime(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValueError("mtimeMs must be a finite number")
        return value

    @field_validator("size", mode="before")
    @classmethod
    def _finite_size(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValueError("size must be a finite number")
        return int(value)

    @field_validator("publish", "draft", mode="before")
    @classmethod
    def _strict_true(cls, value: Any) -> bool:
        return value is True

    @field_validator("title", "prefix", "date", "updated_date", "description", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        return _clean_optional_str(value)

    @field_validator("tags", "wiki_targets", mode="before")
    @classmethod
    def _text_list(cls, value: Any) -> list[str]:
        return _clean_str_list(value)

    @field_validator("branch", mode="before")
    @classmethod
    def _branch(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        return value.strip().lower() or None

    @field_validator("body", mode="before")
    @classmethod
    def _body_is_text(cls, value: Any) -> Any:
        if not isinstance(value, str):
            raise ValueError("body must be a string")
        return value


class RenderCacheEntry(_CacheModel):
    """Render fingerprint recorded for one document id."""

    hash: str = Field(min_length=1)
    route: str = Field(min_length=1)
    rel_path: str = Field(alias="relPath", min_length=1)


class BuildCache(_CacheModel):
    """Everything one build persists for the next."""

    version: int
    sources: dict[str, SourceCacheEntry] = Field(default_factory=dict)
    docs: dict[str, RenderCacheEntry] = Field(default_factory=dict)
    output_hashes: dict[str, str] = Field(default_factory=dict, alias="outputHashes")

    def to_json(self) -> str:
        """Serialize with stable key order and a trailing newline."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
