"""Canonical URLs, social meta and crawler files (robots.txt, sitemap.xml)."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote, urljoin, urlsplit

from fsblog.collation import collation_key
from fsblog.config.models import SeoOptions
from fsblog.registry.docs import DocRecord

DEFAULT_SITE_TITLE = "File-System Blog"
DEFAULT_SITE_DESCRIPTION = "File-system style static blog with markdown explorer UI."

_POST_PATH_RE = re.compile(r"(^|/)posts?/", re.IGNORECASE)
_MULTI_SLASH_RE = re.compile(r"/+")
_URL_SAFE = "/%:@!$&'()*+,;=-._~"


def normalize_route(route: str) -> str:
    trimmed = route.strip()
    if not trimmed or trimmed == "/":
        return "/"
    no_query = re.split(r"[?#]", trimmed, maxsplit=1)[0]
    prefixed = no_query if no_query.startswith("/") else f"/{no_query}"
    return _MULTI_SLASH_RE.sub("/", prefixed) or "/"


def build_canonical_url(route: str, seo: SeoOptions) -> str:
    pathname = _MULTI_SLASH_RE.sub("/", f"{seo.path_base}{normalize_route(route)}") or "/"
    return urljoin(f"{seo.site_url}/", quote(pathname, safe=_URL_SAFE))


def escape_xml(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def to_absolute_image(value: str | None, seo: SeoOptions) -> str | None:
    """Absolute URLs pass through; root-relative paths join the site origin."""
    if not value:
        return None
    parts = urlsplit(value)
    if parts.scheme and parts.netloc:
        return value
    if not value.startswith("/"):
        return None
    return urljoin(f"{seo.site_url}/", value)


def build_structured_data(route: str, doc: DocRecord | None, seo: SeoOptions | None) -> list[dict[str, str]]:
    """JSON-LD for a page: WebSite for the root, BlogPosting or Article for docs."""
    canonical = build_canonical_url(route, seo) if seo else None
    site_name = (seo.site_name or seo.default_title) if seo else None
    if doc is None:
        website = {
            "@context": "https://schema.org",
            "@type": "WebSite",
            "name": site_name or DEFAULT_SITE_TITLE,
        }
        if canonical:
            website["url"] = canonical
        return [website]

    article = {
        "@context": "https://schema.org",
        "@type": "BlogPosting" if _POST_PATH_RE.search(doc.rel_no_ext) else "Article",
        "headline": doc.title,
    }
    if canonical:
        article["url"] = canonical
    if doc.date:
        article["datePublished"] = doc.date
    return [article]


def build_page_meta(route: str, doc: DocRecord | None, seo: SeoOptions | None) -> dict[str, Any]:
    """Values for the ``<head>`` of a shell page."""
    default_title = (seo.default_title if seo else None) or DEFAULT_SITE_TITLE
    default_description = (seo.default_description if seo else None) or DEFAULT_SITE_DESCRIPTION
    description = doc.description.strip() if doc and doc.description and doc.description.strip() else None
    canonical = build_canonical_url(route, seo) if seo else None
    title = doc.title if doc else default_title

    social = og_image = twitter_image = None
    if seo:
        social = to_absolute_image(seo.default_social_image, seo)
        og_image = to_absolute_image(seo.default_og_image, seo)
        twitter_image = to_absolute_image(seo.default_twitter_image, seo)

    return {
        "title": title,
        "description": description,
        "canonical_url": canonical,
        "og_type": "article" if doc else "website",
        "og_site_name": seo.site_name if seo else None,
        "og_locale": seo.locale if seo else None,
        "og_description": description or default_description,
        "og_image": og_image or social,
        "twitter_card": (seo.twitter_card if seo else None) or "summary",
        "twitter_site": seo.twitter_site if seo else None,
        "twitter_creator": seo.twitter_creator if seo else None,
        "twitter_image": twitter_image or social,
        "json_ld": build_structured_data(route, doc, seo),
    }


def build_sitemap_xml(urls: list[str]) -> str:
    entries = "\n".join(f"  <url><loc>{escape_xml(url)}</loc></url>" for url in urls)
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            entries,
            "</urlset>",
            "",
        ]
    )


def build_robots_txt(seo: SeoOptions) -> str:
    sitemap_url = build_canonical_url("/sitemap.xml", seo)
    return "\n".join(["User-agent: *", "Allow: /", f"Sitemap: {sitemap_url}", ""])


def sitemap_urls(docs: list[DocRecord], seo: SeoOptions) -> list[str]:
    routes = sorted({"/", *(doc.route for doc in docs)}, key=collation_key)
    return [build_canonical_url(route, seo) for route in routes]
