"""Resolve ``[[wikilink]]`` targets against the document registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Protocol

from fsblog.diagnostics import DiagnosticSink
from fsblog.registry.docs import DocRecord
from fsblog.vault.wikilinks import normalize_wiki_target


@dataclass(frozen=True)
class Resolution:
    route: str
    label: str


class WikiResolver(Protocol):
    """What the markdown renderer needs to turn a target into a link."""

    def resolve(self, target: str) -> Resolution | None: ...


@dataclass
class LinkIndex:
    """Lookup tables over the registry: full path and filename stem."""

    by_path: dict[str, DocRecord] = field(default_factory=dict)
    by_stem: dict[str, list[DocRecord]] = field(default_factory=dict)

    @classmethod
    def from_docs(cls, docs: list[DocRecord]) -> LinkIndex:
        index = cls()
        for doc in docs:
            index.by_path[doc.rel_no_ext.lower()] = doc
            stem = PurePosixPath(doc.rel_no_ext).name.lower()
            index.by_stem.setdefault(stem, []).append(doc)
        return index

    def resolve(
        self,
        target: str,
        current: DocRecord,
        sink: DiagnosticSink | None = None,
    ) -> Resolution | None:
        """Resolve *target* as written in *current*.

        An exact path match wins. Targets without a ``/`` fall back to the
        stem table, which must hold exactly one doc. Ambiguous stems are
        reported to *sink* when one is given.
        """
        normalized = normalize_wiki_target(target)
        if not normalized:
            return None

        direct = self.by_path.get(normalized)
        if direct is not None:
            return Resolution(route=direct.route, label=direct.title)

        if "/" in normalized:
            return None

        matches = self.by_stem.get(normalized, [])
        if len(matches) == 1:
            return Resolution(route=matches[0].route, label=matches[0].title)

        if sink is not None and len(matches) > 1:
            candidates = [doc.rel_path for doc in matches]
            sink.report(
                "wikilink",
                f'Duplicate target "{target}" in {current.rel_path}. Candidates: {", ".join(candidates)}',
                {"target": target, "doc": current.rel_path, "candidates": candidates},
            )
        return None

    def resolver_for(self, doc: DocRecord, sink: DiagnosticSink | None = None) -> WikiResolver:
        return _DocResolver(self, doc, sink)

    def resolution_signature(self, doc: DocRecord) -> str:
        """Summarise how every target in *doc* resolves right now.

        Resolved silently; the same targets are reported during rendering.
        """
        segments = []
        for target in doc.wiki_targets:
            resolved = self.resolve(target, doc)
            segments.append(f"{target}->{resolved.route if resolved else 'null'}")
        return "|".join(segments)


@dataclass
class _DocResolver:
    index: LinkIndex
    doc: DocRecord
    sink: DiagnosticSink | None

    def resolve(self, target: str) -> Resolution | None:
        return self.index.resolve(target, self.doc, self.sink)
