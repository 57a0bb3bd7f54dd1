"""Exception types raised by the build pipeline."""

from __future__ import annotations


class FsblogError(Exception):
    """Base class for fatal build errors."""


class FrontmatterError(FsblogError):
    """A source file's YAML frontmatter could not be parsed.

    Aborts the whole build; the message names the offending file.
    """

    def __init__(self, rel_path: str, cause: Exception) -> None:
        self.rel_path = rel_path
        self.cause = cause
        super().__init__(f"Frontmatter parse failed: {rel_path}\n{cause}")


class ConfigError(FsblogError, ValueError):
    """Invalid configuration value."""
