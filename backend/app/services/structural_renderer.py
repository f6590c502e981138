from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal

from bs4 import NavigableString, Tag
from bs4.element import PageElement, PreformattedString

SegmentKind = Literal["heading", "paragraph", "list_item", "quote", "code_block", "inline_run"]
SpanKind = Literal["bold", "italic", "code"]

PARAGRAPH_SEPARATOR = "\n\n"
BULLET_MARKER = "• "
QUOTE_MARKER = "> "
CODE_FENCE = "```"
HEADING_MAX_CHARS = 100

SILENT_TAGS: frozenset[str] = frozenset(
    {"script", "style", "noscript", "template", "head", "iframe", "svg"}
)
HEADING_TAG_PATTERN = re.compile(r"^h[1-6]$")
FENCED_BLOCK_PATTERN = re.compile(r"(```\n.*?\n```)", re.DOTALL)
INLINE_MARKUP_PATTERN = re.compile(
    r"\*\*(?P<bold>.+?)\*\*"
    r"|`(?P<code>[^`\n]+)`"
    r"|\*(?P<italic>[^\s*](?:[^*\n]*[^\s*])?)\*"
)
BULLET_LINE_PATTERN = re.compile(r"^(?:•|-)\s+")


@dataclass(frozen=True)
class EmphasisSpan:
    kind: SpanKind
    start: int
    end: int


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    text: str
    spans: tuple[EmphasisSpan, ...] = ()


@dataclass(frozen=True)
class StructuredDocument:
    """
    Reading-order sequence of typed text segments.

    The markup string produced by `render_element` and the segment view are
    interchangeable: `from_text` recovers segments from the separator
    convention and `to_text` rebuilds the markup deterministically.
    """

    segments: tuple[Segment, ...] = field(default_factory=tuple)

    @classmethod
    def from_text(cls, text: str) -> StructuredDocument:
        segments: list[Segment] = []
        for block in split_blocks(text):
            segments.extend(_segments_for_block(block))
        return cls(segments=tuple(segments))

    def to_text(self) -> str:
        blocks: list[str] = []
        previous_kind: SegmentKind | None = None
        for segment in self.segments:
            rendered = _segment_markup(segment)
            if segment.kind == "list_item" and previous_kind == "list_item" and blocks:
                blocks[-1] = f"{blocks[-1]}\n{rendered}"
            else:
                blocks.append(rendered)
            previous_kind = segment.kind
        if not blocks:
            return ""
        return PARAGRAPH_SEPARATOR.join(blocks) + PARAGRAPH_SEPARATOR


def render_element(element: PageElement) -> str:
    return normalize_structured_text(_render_node(element))


def render_document(element: PageElement) -> StructuredDocument:
    return StructuredDocument.from_text(render_element(element))


def normalize_structured_text(raw: str) -> str:
    parts = FENCED_BLOCK_PATTERN.split(raw)
    normalized: list[str] = []
    for index, part in enumerate(parts):
        if index % 2 == 1:
            normalized.append(f"\n\n{part}\n\n")
            continue
        compact = re.sub(r"[ \t\r\f\v]+", " ", part)
        compact = re.sub(r" *\n *", "\n", compact)
        normalized.append(compact)
    pieces = FENCED_BLOCK_PATTERN.split("".join(normalized))
    text = "".join(
        piece if index % 2 == 1 else re.sub(r"\n{3,}", PARAGRAPH_SEPARATOR, piece)
        for index, piece in enumerate(pieces)
    )
    text = text.lstrip()
    return re.sub(r" +$", "", text)


def split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    for index, part in enumerate(FENCED_BLOCK_PATTERN.split(text)):
        if index % 2 == 1:
            blocks.append(part)
            continue
        blocks.extend(block.strip("\n") for block in re.split(r"\n{2,}", part))
    return [block for block in blocks if block.strip()]


def looks_like_heading(line: str) -> bool:
    stripped = line.strip()
    if not stripped or "\n" in stripped:
        return False
    if len(stripped) >= HEADING_MAX_CHARS or "." in stripped:
        return False
    return not (BULLET_LINE_PATTERN.match(stripped) or stripped.startswith(">"))


def parse_inline_markup(text: str) -> tuple[str, tuple[EmphasisSpan, ...]]:
    plain_parts: list[str] = []
    spans: list[EmphasisSpan] = []
    cursor = 0
    offset = 0
    for match in INLINE_MARKUP_PATTERN.finditer(text):
        leading = text[cursor : match.start()]
        plain_parts.append(leading)
        offset += len(leading)
        kind: SpanKind
        if match.group("bold") is not None:
            kind, inner = "bold", match.group("bold")
        elif match.group("code") is not None:
            kind, inner = "code", match.group("code")
        else:
            kind, inner = "italic", match.group("italic")
        plain_parts.append(inner)
        spans.append(EmphasisSpan(kind=kind, start=offset, end=offset + len(inner)))
        offset += len(inner)
        cursor = match.end()
    plain_parts.append(text[cursor:])
    return "".join(plain_parts), tuple(spans)


def _render_node(node: PageElement) -> str:
    leaf = _render_leaf(node)
    if leaf is not None:
        return leaf
    assert isinstance(node, Tag)
    # explicit stack so deeply nested markup cannot exhaust the interpreter stack
    stack: list[tuple[Tag, Iterator[PageElement], list[str]]] = [(node, iter(node.children), [])]
    while True:
        tag, children, parts = stack[-1]
        child = next(children, None)
        if child is not None:
            leaf = _render_leaf(child)
            if leaf is None:
                assert isinstance(child, Tag)
                stack.append((child, iter(child.children), []))
            else:
                parts.append(leaf)
            continue
        stack.pop()
        rendered = _wrap_tag(tag, "".join(parts))
        if not stack:
            return rendered
        stack[-1][2].append(rendered)


def _render_leaf(node: PageElement) -> str | None:
    """Render nodes that need no child walk; `None` means descend into the tag."""
    if isinstance(node, PreformattedString):
        return ""
    if isinstance(node, NavigableString):
        raw = str(node)
        stripped = " ".join(raw.split())
        if not stripped:
            return ""
        leading = " " if raw[:1].isspace() else ""
        return f"{leading}{stripped} "
    if not isinstance(node, Tag):
        return ""

    name = (node.name or "").lower()
    if name in SILENT_TAGS:
        return ""
    if name == "br":
        return "\n"
    if name == "code":
        inner = " ".join(node.get_text().split())
        return f"`{inner}`" if inner else ""
    if name == "pre":
        code = node.get_text().strip("\n")
        if not code.strip():
            return ""
        return f"\n\n{CODE_FENCE}\n{code}\n{CODE_FENCE}\n\n"
    return None


def _wrap_tag(node: Tag, children_text: str) -> str:
    name = (node.name or "").lower()
    inner = children_text.strip()
    if HEADING_TAG_PATTERN.match(name):
        return f"\n\n{inner}\n\n" if inner else ""
    if name == "p":
        return f"{inner}\n\n" if inner else ""
    if name in {"ul", "ol"}:
        return f"\n{children_text}\n" if inner else ""
    if name == "li":
        return f"{BULLET_MARKER}{inner}\n" if inner else ""
    if name == "blockquote":
        if not inner:
            return ""
        quoted = "\n".join(
            f"{QUOTE_MARKER}{line.strip()}" if line.strip() else QUOTE_MARKER.strip()
            for line in inner.splitlines()
        )
        return f"\n\n{quoted}\n\n"
    if name in {"b", "strong"}:
        return f"**{inner}**" if inner else ""
    if name in {"i", "em"}:
        return f"*{inner}*" if inner else ""
    # containers and unknown elements splice their children without markers
    return children_text


def _segments_for_block(block: str) -> list[Segment]:
    if block.startswith(f"{CODE_FENCE}\n") and block.endswith(f"\n{CODE_FENCE}"):
        code = block[len(CODE_FENCE) + 1 : -(len(CODE_FENCE) + 1)]
        return [Segment(kind="code_block", text=code)]

    lines = block.split("\n")
    if all(BULLET_LINE_PATTERN.match(line) for line in lines):
        items: list[Segment] = []
        for line in lines:
            text, spans = parse_inline_markup(BULLET_LINE_PATTERN.sub("", line, count=1))
            items.append(Segment(kind="list_item", text=text, spans=spans))
        return items

    if all(line.startswith(">") for line in lines):
        unquoted = "\n".join(re.sub(r"^>\s?", "", line) for line in lines)
        text, spans = parse_inline_markup(unquoted)
        return [Segment(kind="quote", text=text, spans=spans)]

    text, spans = parse_inline_markup(block)
    if looks_like_heading(block) and not spans:
        return [Segment(kind="heading", text=text)]
    if "\n" in block:
        return [Segment(kind="inline_run", text=text, spans=spans)]
    return [Segment(kind="paragraph", text=text, spans=spans)]


def _segment_markup(segment: Segment) -> str:
    if segment.kind == "code_block":
        return f"{CODE_FENCE}\n{segment.text}\n{CODE_FENCE}"
    body = _apply_spans(segment.text, segment.spans)
    if segment.kind == "list_item":
        return f"{BULLET_MARKER}{body}"
    if segment.kind == "quote":
        return "\n".join(
            f"{QUOTE_MARKER}{line}" if line else QUOTE_MARKER.strip() for line in body.split("\n")
        )
    return body


def _apply_spans(text: str, spans: tuple[EmphasisSpan, ...]) -> str:
    markers = {"bold": "**", "italic": "*", "code": "`"}
    parts: list[str] = []
    cursor = 0
    for span in sorted(spans, key=lambda item: item.start):
        marker = markers[span.kind]
        parts.append(text[cursor : span.start])
        parts.append(f"{marker}{text[span.start : span.end]}{marker}")
        cursor = span.end
    parts.append(text[cursor:])
    return "".join(parts)
