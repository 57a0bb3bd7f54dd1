"""Diagnostic sinks for build warnings.

Components never log warnings directly; they report to a sink passed in by
the caller so tests can capture exactly what a build emitted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class Diagnostic:
    """One reported warning."""

    kind: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class DiagnosticSink(Protocol):
    """Receiver for recoverable build warnings."""

    def report(self, kind: str, message: str, context: dict[str, Any] | None = None) -> None: ...


class LoggingSink:
    """Forwards diagnostics to ``logging`` under ``fsblog.<kind>``."""

    def report(self, kind: str, message: str, context: dict[str, Any] | None = None) -> None:
        logging.getLogger(f"fsblog.{kind}").warning("[%s] %s", kind, message)


class CollectingSink:
    """Keeps every diagnostic in memory."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def report(self, kind: str, message: str, context: dict[str, Any] | None = None) -> None:
        self.diagnostics.append(Diagnostic(kind=kind, message=message, context=dict(context or {})))

    def of_kind(self, kind: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]


class NullSink:
    def report(self, kind: str, message: str, context: dict[str, Any] | None = None) -> None:
        return None
