from .loader import DEFAULT_CONFIG_TEMPLATE, load_config, resolve_build_options
from .models import (
    BuildOptions,
    FsblogConfig,
    HighlightConfig,
    MarkdownConfig,
    PinnedMenuOption,
    SeoOptions,
    UIConfig,
)

__all__ = [
    "BuildOptions",
    "DEFAULT_CONFIG_TEMPLATE",
    "FsblogConfig",
    "HighlightConfig",
    "MarkdownConfig",
    "PinnedMenuOption",
    "SeoOptions",
    "UIConfig",
    "load_config",
    "resolve_build_options",
]
