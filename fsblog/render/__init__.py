from .markdown import MarkdownRenderer, RenderResult, preprocess_markdown, resolve_highlight_style
from .seo import (
    build_canonical_url,
    build_page_meta,
    build_robots_txt,
    build_sitemap_xml,
    build_structured_data,
    sitemap_urls,
)
from .shell import (
    InitialView,
    ShellAssets,
    ShellRenderer,
    assets_for_output,
    build_initial_view,
    pick_home_doc,
    to_route_output_path,
)

__all__ = [
    "InitialView",
    "MarkdownRenderer",
    "RenderResult",
    "ShellAssets",
    "ShellRenderer",
    "assets_for_output",
    "build_canonical_url",
    "build_initial_view",
    "build_page_meta",
    "build_robots_txt",
    "build_sitemap_xml",
    "build_structured_data",
    "pick_home_doc",
    "preprocess_markdown",
    "resolve_highlight_style",
    "sitemap_urls",
    "to_route_output_path",
]
