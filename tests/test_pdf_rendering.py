from __future__ import annotations

from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch

from notes_ops.document_model import build
from notes_ops.markup_parser import parse
from notes_ops.render_pdf import (
    PageGeometry,
    Segment,
    layout_pages,
    pdf_font_name,
    pdf_glyph,
    render_notes_pdf,
    render_pdf,
    wrap_segments,
)
from notes_ops.style_profile import DEFAULT_STYLE_PROFILE

REPORT = (
    "### Jane Doe, VP Ops, Acme Co\n"
    "**Key Takeaways:**\n"
    "- The client values responsiveness.\n"
    "**Discussion:**\n"
    "***How is the partnership going?***\n"
    "- It has been strong overall.\n"
)


def _char_measure(text: str, _font: str, _size: float) -> float:
    return float(len(text))


def _geometry() -> PageGeometry:
    return PageGeometry(letter[0], letter[1], inch)


def test_greedy_wrap_respects_width() -> None:
    segments = [Segment("aaa bbb ccc dddd e", "Helvetica", 11)]
    lines = wrap_segments(segments, 7, _char_measure)
    assert [[s.text for s in line] for line in lines] == [["aaa bbb"], ["ccc"], ["dddd e"]]


def test_overlong_word_gets_own_line() -> None:
    lines = wrap_segments([Segment("a " + "x" * 20 + " b", "Helvetica", 11)], 5, _char_measure)
    assert [line[0].text for line in lines] == ["a", "x" * 20, "b"]


def test_wrap_keeps_font_changes_within_line() -> None:
    segments = [
        Segment("Score:", "Helvetica-Bold", 11),
        Segment("7 (out of 10)", "Helvetica", 11),
    ]
    (line,) = wrap_segments(segments, 100, _char_measure)
    assert [(s.text, s.font_name) for s in line] == [
        ("Score:", "Helvetica-Bold"),
        (" 7 (out of 10)", "Helvetica"),
    ]


def test_font_variants() -> None:
    styled = build(parse(REPORT), DEFAULT_STYLE_PROFILE)
    header_run = styled[1].runs[0]
    question_run = styled[4].runs[0]
    assert pdf_font_name(header_run) == "Helvetica-Bold"
    assert pdf_font_name(question_run) == "Helvetica-BoldOblique"
    assert pdf_font_name(styled[0].runs[0]) == "Helvetica"


def test_takeaway_glyph_differs_from_discussion_glyph() -> None:
    assert pdf_glyph("➤", "takeaway_bullet") == "»"
    assert pdf_glyph("•", "discussion_bullet") == "•"
    assert pdf_glyph("", "quant_bullet") == "•"

    pages = layout_pages(build(parse(REPORT), DEFAULT_STYLE_PROFILE), _geometry())
    glyphs = [
        line.segments[0].text
        for line in pages[0].lines
        if len(line.segments) == 1 and line.segments[0].text in {"»", "•"}
    ]
    assert glyphs == ["»", "•"]


def test_bullet_text_indented_past_glyph() -> None:
    pages = layout_pages(build(parse(REPORT), DEFAULT_STYLE_PROFILE), _geometry())
    lines = pages[0].lines
    glyph_line = next(line for line in lines if line.segments[0].text == "»")
    body_line = next(
        line for line in lines if line.segments[0].text.startswith("The client values")
    )
    assert glyph_line.x == inch + 0.25 * inch
    assert body_line.x == inch + 0.5 * inch
    assert glyph_line.y == body_line.y


def test_pagination_starts_new_page_within_margins() -> None:
    markup = "**Discussion:**\n" + "\n".join(f"- Point number {i} was raised." for i in range(120))
    geometry = _geometry()
    pages = layout_pages(build(parse(markup), DEFAULT_STYLE_PROFILE), geometry)
    assert len(pages) > 1
    for page in pages:
        assert page.lines
        for line in page.lines:
            assert geometry.bottom <= line.y <= geometry.top
    first_body = [line for line in pages[1].lines if line.x == inch + 0.5 * inch][0]
    assert first_body.y > geometry.top - 20


def test_long_block_wraps_across_lines() -> None:
    markup = "**Discussion:**\n- " + " ".join(["responsiveness"] * 80)
    pages = layout_pages(build(parse(markup), DEFAULT_STYLE_PROFILE), _geometry())
    body_lines = [line for line in pages[0].lines if line.x == inch + 0.5 * inch]
    assert len(body_lines) > 5
    ys = [line.y for line in body_lines]
    assert ys == sorted(ys, reverse=True)


def test_render_pdf_bytes() -> None:
    data = render_notes_pdf(REPORT, title="Jane Doe")
    assert data.startswith(b"%PDF")
    assert data.rstrip().endswith(b"%%EOF")


def test_render_pdf_is_deterministic_and_handles_empty_input() -> None:
    styled = build(parse(REPORT), DEFAULT_STYLE_PROFILE)
    assert render_pdf(styled) == render_pdf(styled)
    assert render_pdf([]).startswith(b"%PDF")
