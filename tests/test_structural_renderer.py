from __future__ import annotations

from bs4 import BeautifulSoup

from backend.app.services.structural_renderer import (
    EmphasisSpan,
    Segment,
    StructuredDocument,
    looks_like_heading,
    parse_inline_markup,
    render_document,
    render_element,
)


def _render(html: str) -> str:
    return render_element(BeautifulSoup(html, "html.parser"))


def test_headings_and_paragraphs_become_blocks() -> None:
    assert _render("<h1>Title</h1><p>Hello world.</p>") == "Title\n\nHello world.\n\n"


def test_lists_get_bullet_markers() -> None:
    assert _render("<ul><li>One</li><li>Two</li></ul>") == "• One\n• Two\n\n"


def test_inline_emphasis_markers() -> None:
    html = "<p>Use <strong>bold</strong> and <em>soft</em> with <code>x = 1</code>.</p>"

    assert _render(html) == "Use **bold** and *soft* with `x = 1`.\n\n"


def test_blockquote_lines_are_quoted() -> None:
    assert _render("<blockquote><p>Quoted line.</p></blockquote>") == "> Quoted line.\n\n"


def test_preformatted_block_keeps_indentation() -> None:
    html = "<pre>def f():\n    return 1</pre><p>After.</p>"

    assert _render(html) == "```\ndef f():\n    return 1\n```\n\nAfter.\n\n"


def test_line_breaks_become_single_newlines() -> None:
    assert _render("<p>Line one<br>Line two</p>") == "Line one\nLine two\n\n"


def test_containers_splice_children_and_silent_tags_vanish() -> None:
    html = (
        "<section><div><p>First.</p></div><script>var x = 1;</script>"
        "<style>p {}</style><span>Inline <a href='#'>link</a></span></section>"
    )

    assert _render(html) == "First.\n\nInline link"


def test_empty_nodes_contribute_nothing() -> None:
    assert _render("<div>   </div><p> </p><ul><li></li></ul>") == ""


def test_rendering_is_total_over_unknown_elements() -> None:
    html = "<custom-widget><table><tr><td>Cell</td></tr></table></custom-widget>"

    assert _render(html) == "Cell"


def test_structured_document_round_trips_the_markup() -> None:
    text = "Title\n\nHello world.\n\n• One\n• Two\n\n> Quote here.\n\n```\ncode\n```\n\n"

    document = StructuredDocument.from_text(text)

    assert [segment.kind for segment in document.segments] == [
        "heading",
        "paragraph",
        "list_item",
        "list_item",
        "quote",
        "code_block",
    ]
    assert document.segments[2].text == "One"
    assert document.segments[5].text == "code"
    assert document.to_text() == text


def test_segments_carry_emphasis_spans() -> None:
    document = StructuredDocument.from_text("Use **bold** and `code` here.")

    assert document.segments == (
        Segment(
            kind="paragraph",
            text="Use bold and code here.",
            spans=(
                EmphasisSpan(kind="bold", start=4, end=8),
                EmphasisSpan(kind="code", start=13, end=17),
            ),
        ),
    )
    assert document.to_text() == "Use **bold** and `code` here.\n\n"


def test_multi_line_blocks_are_inline_runs() -> None:
    document = StructuredDocument.from_text("Line one.\nLine two.")

    assert document.segments == (Segment(kind="inline_run", text="Line one.\nLine two."),)


def test_render_document_follows_reading_order() -> None:
    html = "<article><h2>Intro</h2><p>First <i>point</i>.</p><ol><li>Step</li></ol></article>"

    document = render_document(BeautifulSoup(html, "html.parser"))

    assert [segment.kind for segment in document.segments] == ["heading", "paragraph", "list_item"]
    assert document.segments[1].spans == (EmphasisSpan(kind="italic", start=6, end=11),)


def test_parse_inline_markup_ignores_lone_asterisks() -> None:
    assert parse_inline_markup("2 * 3 = 6") == ("2 * 3 = 6", ())


def test_heading_heuristic() -> None:
    assert looks_like_heading("Short heading")
    assert not looks_like_heading("Ends with a period.")
    assert not looks_like_heading("x" * 100)
    assert not looks_like_heading("• bullet")
    assert not looks_like_heading("> quote")
    assert not looks_like_heading("two\nlines")


def test_deeply_nested_markup_renders_without_recursion() -> None:
    html = "<article>" + "<div>" * 1000 + "<p>Deep <b>text</b>.</p>" + "</div>" * 1000 + "</article>"

    assert _render(html) == "Deep **text**.\n\n"
