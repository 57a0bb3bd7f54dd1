from __future__ import annotations

from pathlib import Path
from typing import Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

ImagePolicy = Literal["keep", "omit-local"]

DEFAULT_EXCLUDE = [".obsidian/**"]


class PinnedMenuOption(BaseModel):
    label: str = Field(min_length=1)
    source_dir: str = Field(min_length=1)

    @field_validator("source_dir")
    @classmethod
    def _strip_slashes(cls, value: str) -> str:
        cleaned = value.strip().replace("\\", "/").strip("/")
        if not cleaned:
            raise ValueError("source_dir must name a vault directory")
        return cleaned


class SeoOptions(BaseModel):
    site_url: str
    path_base: str = ""
    site_name: str | None = None
    default_title: str | None = None
    default_description: str | None = None
    locale: str | None = None
    twitter_card: Literal["summary", "summary_large_image"] | None = None
    twitter_site: str | None = None
    twitter_creator: str | None = None
    default_social_image: str | None = None
    default_og_image: str | None = None
    default_twitter_image: str | None = None

    @field_validator("site_url")
    @classmethod
    def _origin_only(cls, value: str) -> str:
        raw = value.strip()
        if not raw:
            raise ValueError('"seo.site_url" must be a non-empty absolute URL origin (for example: "https://example.com")')
        parts = urlsplit(raw)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError('"seo.site_url" must use http:// or https://')
        if parts.path not in ("", "/") or parts.query or parts.fragment or parts.username or parts.password:
            raise ValueError(
                '"seo.site_url" must be an origin only, without path, query, hash, or credentials '
                '(for example: "https://example.com")'
            )
        return f"{parts.scheme}://{parts.netloc.lower()}"

    @field_validator("path_base")
    @classmethod
    def _normalize_path_base(cls, value: str) -> str:
        cleaned = value.strip().replace("\\", "/").strip("/")
        return f"/{cleaned}" if cleaned else ""

    @field_validator(
        "site_name",
        "default_title",
        "default_description",
        "locale",
        "twitter_site",
        "twitter_creator",
        "default_social_image",
        "default_og_image",
        "default_twitter_image",
    )
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class BuildOptions(BaseModel):
    """Everything the build pipeline needs, already resolved."""

    vault_dir: Path
    out_dir: Path
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    new_within_days: int = Field(default=7, ge=0)
    recent_limit: int = Field(default=5, ge=0)
    pinned_menu: PinnedMenuOption | None = None
    wikilinks: bool = True
    image_policy: ImagePolicy = "omit-local"
    gfm: bool = True
    highlight_theme: str = "github-dark"
    seo: SeoOptions | None = None
    cache_path: Path | None = None


# -- config file schema ----------------------------------------------------


class UIConfig(BaseModel):
    new_within_days: int = Field(default=7, ge=0)
    recent_limit: int = Field(default=5, ge=0)


class HighlightConfig(BaseModel):
    theme: str = "github-dark"


class MarkdownConfig(BaseModel):
    wikilinks: bool = True
    images: ImagePolicy = "omit-local"
    gfm: bool = True
    highlight: HighlightConfig = Field(default_factory=HighlightConfig)


class FsblogConfig(BaseModel):
    vault_dir: str = "."
    out_dir: str = "dist"
    exclude: list[str] = Field(default_factory=list)
    ui: UIConfig = Field(default_factory=UIConfig)
    markdown: MarkdownConfig = Field(default_factory=MarkdownConfig)
    pinned_menu: PinnedMenuOption | None = None
    seo: SeoOptions | None = None
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

    @field_validator("seo", mode="before")
    @classmethod
    def _seo_off_without_site_url(cls, value: object) -> object:
        """A ``seo`` block without ``site_url`` turns SEO off."""
        if isinstance(value, dict) and value.get("site_url") is None:
            return None
        return value
