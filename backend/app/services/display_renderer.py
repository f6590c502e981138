from __future__ import annotations

import re
from html import escape, unescape

from backend.app.services.structural_renderer import BULLET_LINE_PATTERN, looks_like_heading

PLACEHOLDER_PATTERN = re.compile(r"\x00(\d+)\x00")
ESCAPED_FENCED_BLOCK_PATTERN = re.compile(r"```\n(.*?)\n```", re.DOTALL)
INLINE_CODE_PATTERN = re.compile(r"`([^`\n]+)`")
BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*")
ITALIC_PATTERN = re.compile(r"(?<![*\w])\*(?![\s*])([^*\n]+?)(?<!\s)\*(?![*\w])")
EXPLICIT_HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*)$")
BLANK_LINE_PATTERN = re.compile(r"\n[ \t]*\n")
ESCAPED_QUOTE_PATTERN = re.compile(r"^&gt;\s?")
HEURISTIC_HEADING_LEVEL = 2


def to_display_markup(text: str) -> str:
    """
    Convert structured text into HTML that is safe to inject into a page.

    The whole input is escaped before any tag is emitted, so every `<`, `>`
    and `&` in the output belongs to markup produced here. Code is lifted
    into placeholders first so emphasis markers inside code stay literal.
    """
    escaped = escape(text.replace("\x00", ""), quote=True)
    fragments: list[str] = []
    block_tokens: set[str] = set()

    def stash(fragment: str) -> str:
        fragments.append(fragment)
        return f"\x00{len(fragments) - 1}\x00"

    def stash_block(fragment: str) -> str:
        token = stash(fragment)
        block_tokens.add(token)
        return f"\n\n{token}\n\n"

    escaped = ESCAPED_FENCED_BLOCK_PATTERN.sub(
        lambda match: stash_block(f"<pre><code>{match.group(1)}</code></pre>"),
        escaped.replace("\r\n", "\n"),
    )
    escaped = INLINE_CODE_PATTERN.sub(
        lambda match: stash(f"<code>{match.group(1)}</code>"),
        escaped,
    )
    escaped = BOLD_PATTERN.sub(r"<strong>\1</strong>", escaped)
    escaped = ITALIC_PATTERN.sub(r"<em>\1</em>", escaped)

    rendered: list[str] = []
    blocks = BLANK_LINE_PATTERN.split(escaped)
    for position, block in enumerate(blocks):
        block = block.strip()
        if not block:
            continue
        if block in block_tokens:
            rendered.append(block)
            continue
        followed_by_blank = position < len(blocks) - 1
        rendered.extend(_render_block(block, followed_by_blank=followed_by_blank))

    html = "\n".join(rendered)
    return PLACEHOLDER_PATTERN.sub(lambda match: fragments[int(match.group(1))], html)


def _render_block(block: str, *, followed_by_blank: bool) -> list[str]:
    lines = [line.strip() for line in block.split("\n")]
    if len(lines) == 1 and followed_by_blank and _is_heuristic_heading(lines[0]):
        level = HEURISTIC_HEADING_LEVEL
        return [f"<h{level}>{lines[0]}</h{level}>"]

    output: list[str] = []
    paragraph: list[str] = []
    bullets: list[str] = []
    quotes: list[str] = []

    def flush_paragraph() -> None:
        if paragraph:
            output.append(f"<p>{'<br>'.join(paragraph)}</p>")
            paragraph.clear()

    def flush_bullets() -> None:
        if bullets:
            items = "".join(f"<li>{item}</li>" for item in bullets)
            output.append(f"<ul>{items}</ul>")
            bullets.clear()

    def flush_quotes() -> None:
        if quotes:
            output.append(f"<blockquote>{'<br>'.join(quotes)}</blockquote>")
            quotes.clear()

    for line in lines:
        if not line:
            continue
        heading_match = EXPLICIT_HEADING_PATTERN.match(line)
        if heading_match is not None:
            flush_paragraph()
            flush_bullets()
            flush_quotes()
            level = len(heading_match.group(1))
            output.append(f"<h{level}>{heading_match.group(2).strip()}</h{level}>")
            continue
        if BULLET_LINE_PATTERN.match(line):
            flush_paragraph()
            flush_quotes()
            bullets.append(BULLET_LINE_PATTERN.sub("", line, count=1))
            continue
        if ESCAPED_QUOTE_PATTERN.match(line):
            flush_paragraph()
            flush_bullets()
            quotes.append(ESCAPED_QUOTE_PATTERN.sub("", line, count=1))
            continue
        flush_bullets()
        flush_quotes()
        paragraph.append(line)

    flush_paragraph()
    flush_bullets()
    flush_quotes()
    return output


def _is_heuristic_heading(line: str) -> bool:
    # tags or placeholders mean the line carried inline markup
    if "<" in line or "\x00" in line or EXPLICIT_HEADING_PATTERN.match(line):
        return False
    return looks_like_heading(unescape(line))
