"""Markdown -> HTML rendering with wikilink and local image handling."""

from __future__ import annotations

import re
import xml.etree.ElementTree as etree
from dataclasses import dataclass, field
from html import escape
from typing import Any

import markdown
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from fsblog.config.models import BuildOptions
from fsblog.diagnostics import DiagnosticSink
from fsblog.registry.resolver import WikiResolver
from fsblog.vault.wikilinks import split_wiki_inner

FALLBACK_STYLE = "default"

_EMBED_RE = re.compile(r"!\[\[([^\]]+)\]\]")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_WIKILINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
_IMAGE_PATH_RE = re.compile(r"\.(png|jpe?g|gif|webp|svg|bmp|ico|avif)$", re.IGNORECASE)
_REMOTE_RE = re.compile(r"^((https?:)?//|data:|mailto:)", re.IGNORECASE)
_EXTERNAL_HREF_RE = re.compile(r"^https?://", re.IGNORECASE)
_FENCE_RE = re.compile(
    r"^(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^`\n]*?)[ \t]*\n(?P<code>.*?)(?<=\n)(?P=fence)[ \t]*$",
    re.MULTILINE | re.DOTALL,
)


@dataclass
class RenderResult:
    html: str
    warnings: list[str] = field(default_factory=list)


def is_remote_url(value: str) -> bool:
    return bool(_REMOTE_RE.match(value))


def _escape_label(text: str) -> str:
    return text.replace("[", "").replace("]", "")


def preprocess_markdown(
    text: str,
    resolver: WikiResolver,
    image_policy: str,
    wikilinks: bool,
) -> tuple[str, list[str]]:
    """Rewrite embeds, local images and wikilinks into plain markdown."""
    warnings: list[str] = []

    def _embed(m: re.Match) -> str:
        target, label = split_wiki_inner(m.group(1))
        if image_policy == "omit-local":
            warnings.append(f"Local image omitted: {target}")
            return f"*(image omitted: {label or target})*"
        return f"![{_escape_label(label or target)}]({target})"

    def _image(m: re.Match) -> str:
        alt, src = m.group(1), m.group(2).strip()
        if image_policy != "omit-local" or is_remote_url(src):
            return m.group(0)
        warnings.append(f"Local image omitted: {src}")
        return f"*(image omitted: {alt or src})*"

    def _wikilink(m: re.Match) -> str:
        target, label = split_wiki_inner(m.group(1))
        if not target:
            return ""
        if _IMAGE_PATH_RE.search(target):
            warnings.append(f"Unresolved wikilink (looks like image): {target}")
            return label or target
        resolved = resolver.resolve(target)
        if resolved is None:
            warnings.append(f"Unresolved wikilink: {target}")
            return label or target
        return f"[{_escape_label(label or resolved.label)}]({resolved.route})"

    output = _EMBED_RE.sub(_embed, text)
    output = _IMAGE_RE.sub(_image, output)
    if wikilinks:
        output = _WIKILINK_RE.sub(_wikilink, output)
    return output, warnings


class _ExternalLinkTreeprocessor(Treeprocessor):
    def run(self, root: etree.Element) -> None:
        for link in root.iter("a"):
            if _EXTERNAL_HREF_RE.match(link.get("href", "")):
                link.set("target", "_blank")
                link.set("rel", "noopener noreferrer")


class ExternalLinkExtension(Extension):
    """Open absolute http(s) links in a new tab."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.treeprocessors.register(_ExternalLinkTreeprocessor(md), "external_links", 5)


def render_code_block(code: str, info: str, formatter: HtmlFormatter) -> str:
    """Highlight *code* and wrap it with a header and a copy button.

    The fence info string is ``lang [file name]``. The header shows the file
    name when given, else the language.
    """
    parts = info.split()
    lang = parts[0].lower() if parts else "text"
    file_name = " ".join(parts[1:])
    try:
        lexer = get_lexer_by_name(lang)
    except ClassNotFound:
        lexer = TextLexer()

    return (
        '<div class="code-block"><div class="code-header">'
        '<div class="code-dots"><span class="dot dot-red"></span>'
        '<span class="dot dot-yellow"></span><span class="dot dot-green"></span></div>'
        f'<span class="code-filename">{escape(file_name or lang)}</span>'
        f'<button class="code-copy" title="Copy code" data-code="{escape(code)}">'
        '<span class="code-copy-label">Copy</span></button></div>'
        f"{highlight(code, lexer, formatter)}</div>"
    )


class _CodeFencePreprocessor(Preprocessor):
    def __init__(self, md: markdown.Markdown, style: str) -> None:
        super().__init__(md)
        self.formatter = HtmlFormatter(noclasses=True, style=style)

    def run(self, lines: list[str]) -> list[str]:
        text = "\n".join(lines)
        while True:
            m = _FENCE_RE.search(text)
            if m is None:
                break
            html = render_code_block(m.group("code"), m.group("info"), self.formatter)
            placeholder = self.md.htmlStash.store(html)
            text = f"{text[:m.start()]}\n{placeholder}\n{text[m.end():]}"
        return text.split("\n")


class CodeFenceExtension(Extension):
    """Fenced code blocks highlighted with a Pygments style."""

    def __init__(self, style: str, **kwargs: Any) -> None:
        self.style = style
        super().__init__(**kwargs)

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.registerExtension(self)
        md.preprocessors.register(_CodeFencePreprocessor(md, self.style), "code_fence", 25)


def resolve_highlight_style(name: str, sink: DiagnosticSink | None = None) -> str:
    """Return *name* if Pygments knows it, else the fallback style."""
    try:
        get_style_by_name(name)
    except ClassNotFound:
        if sink is not None:
            sink.report(
                "markdown",
                f'Unknown highlight theme "{name}", using "{FALLBACK_STYLE}"',
                {"theme": name},
            )
        return FALLBACK_STYLE
    return name


class MarkdownRenderer:
    """Renders a document body given a resolver for its wikilinks."""

    def __init__(self, options: BuildOptions, sink: DiagnosticSink | None = None) -> None:
        self.options = options
        self.style = resolve_highlight_style(options.highlight_theme, sink)
        extensions: list = [CodeFenceExtension(self.style), "pymdownx.magiclink", ExternalLinkExtension()]
        if options.gfm:
            extensions += ["tables", "pymdownx.tilde"]
        self._md = markdown.Markdown(
            extensions=extensions,
            extension_configs={
                "pymdownx.tilde": {"subscript": False},
            },
        )

    def render(self, text: str, resolver: WikiResolver) -> RenderResult:
        preprocessed, warnings = preprocess_markdown(
            text,
            resolver,
            self.options.image_policy,
            self.options.wikilinks,
        )
        html = self._md.reset().convert(preprocessed)
        return RenderResult(html=html, warnings=warnings)
