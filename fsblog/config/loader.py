"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from fsblog.config.models import DEFAULT_EXCLUDE, BuildOptions, FsblogConfig
from fsblog.errors import ConfigError


def load_config(cli_path: str | None = None) -> FsblogConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./fsblog.yaml"),
        Path.home() / ".fsblog" / "config.yaml",
    ]

    if cli_path and not Path(cli_path).exists():
        raise ConfigError(f"Config file not found: {cli_path}")

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return FsblogConfig(**raw)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
            except (TypeError, ValidationError) as e:
                raise ConfigError(f"Invalid config in {path}: {e}") from e

    return FsblogConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def resolve_build_options(
    config: FsblogConfig,
    *,
    vault_dir: str | None = None,
    out_dir: str | None = None,
    exclude: list[str] | None = None,
    new_within_days: int | None = None,
    recent_limit: int | None = None,
    cwd: Path | None = None,
) -> BuildOptions:
    """Merge defaults, the config file and CLI overrides into BuildOptions.

    CLI values win over config values. Exclude patterns from all three
    sources are merged in order without duplicates.
    """
    cwd = cwd or Path.cwd()
    merged_exclude = list(dict.fromkeys([*DEFAULT_EXCLUDE, *config.exclude, *(exclude or [])]))
    try:
        return BuildOptions(
            vault_dir=(cwd / (vault_dir or config.vault_dir)).resolve(),
            out_dir=(cwd / (out_dir or config.out_dir)).resolve(),
            exclude=merged_exclude,
            new_within_days=new_within_days if new_within_days is not None else config.ui.new_within_days,
            recent_limit=recent_limit if recent_limit is not None else config.ui.recent_limit,
            pinned_menu=config.pinned_menu,
            wikilinks=config.markdown.wikilinks,
            image_policy=config.markdown.images,
            gfm=config.markdown.gfm,
            highlight_theme=config.markdown.highlight.theme,
            seo=config.seo,
            cache_path=cwd / ".cache" / "build-index.json",
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid build options: {e}") from e


# Default YAML template for `fsblog config init`
DEFAULT_CONFIG_TEMPLATE = """\
# fsblog.yaml

vault_dir: "."                 # markdown vault root
out_dir: "dist"
exclude:
  - ".obsidian/**"
  # - "templates/**"

ui:
  new_within_days: 7           # NEW badge window
  recent_limit: 5              # items in the Recent folder

markdown:
  wikilinks: true
  images: "omit-local"         # keep | omit-local
  gfm: true
  highlight:
    theme: "github-dark"       # any Pygments style name

# Pinned virtual folder at the top of the tree
# pinned_menu:
#   label: "Guides"
#   source_dir: "guides"

# SEO artifacts (robots.txt, sitemap.xml, canonical/OG tags)
# seo:
#   site_url: "https://example.com"
#   path_base: ""
#   site_name: "My Blog"
#   twitter_card: "summary"     # summary | summary_large_image

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
