"""Document registry and cross-reference resolution."""

from fsblog.registry.docs import (
    DocRecord,
    build_registry,
    content_file_name,
    ensure_unique_routes,
    parse_date,
    title_from_file_name,
    to_doc_id,
    to_route,
)
from fsblog.registry.resolver import LinkIndex, Resolution, WikiResolver

__all__ = [
    "DocRecord",
    "LinkIndex",
    "Resolution",
    "WikiResolver",
    "build_registry",
    "content_file_name",
    "ensure_unique_routes",
    "parse_date",
    "title_from_file_name",
    "to_doc_id",
    "to_route",
]
