"""fsblog - file-system style static blog generator for markdown vaults."""

from fsblog.config import BuildOptions, FsblogConfig, load_config, resolve_build_options
from fsblog.errors import ConfigError, FrontmatterError, FsblogError
from fsblog.pipeline import BuildReport, build_site, clean_build_artifacts

__version__ = "0.1.0"

__all__ = [
    "BuildOptions",
    "BuildReport",
    "ConfigError",
    "FrontmatterError",
    "FsblogConfig",
    "FsblogError",
    "build_site",
    "clean_build_artifacts",
    "load_config",
    "resolve_build_options",
]
