from __future__ import annotations

from io import BytesIO
from typing import Iterable

from docx import Document
from docx.enum.text import WD_BREAK
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor
from docx.text.paragraph import Paragraph

from notes_ops.document_model import StyledBlock, StyledRun, build
from notes_ops.markup_parser import parse
from notes_ops.style_profile import DEFAULT_STYLE_PROFILE, HANGING_INDENT_INCHES, StyleProfile

DEFAULT_MARGIN_INCHES = 1.0
TITLE_STYLE = "Heading 2"

# (space_before_pt, space_after_pt) per style key
_SPACING = {
    "title": (8.0, 4.0),
    "section_header": (12.0, 6.0),
    "discussion_question": (10.0, 4.0),
    "quant_category": (8.0, 2.0),
    "takeaway_bullet": (0.0, 6.0),
    "discussion_bullet": (0.0, 4.0),
    "quant_bullet": (0.0, 2.0),
    "plain": (0.0, 0.0),
}


def render_notes_docx(
    markup_text: str,
    profile: StyleProfile = DEFAULT_STYLE_PROFILE,
    *,
    margins_inches: float = DEFAULT_MARGIN_INCHES,
    page_break_first: bool = False,
    question_resets_section: bool = True,
) -> bytes:
    blocks = parse(markup_text, question_resets_section=question_resets_section)
    return render_docx(
        build(blocks, profile),
        margins_inches=margins_inches,
        page_break_first=page_break_first,
    )


def render_docx(
    styled_blocks: Iterable[StyledBlock],
    margins_inches: float = DEFAULT_MARGIN_INCHES,
    *,
    page_break_first: bool = False,
) -> bytes:
    """Render styled blocks as a Word document, one paragraph per block."""
    doc = Document()
    _apply_page_margins(doc, margins_inches)
    _clear_body(doc)

    if page_break_first:
        doc.add_paragraph().add_run().add_break(WD_BREAK.PAGE)

    for styled in styled_blocks:
        _add_block_paragraph(doc, styled)

    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def _apply_page_margins(doc: Document, margins_inches: float) -> None:
    margin = Inches(margins_inches)
    for section in doc.sections:
        section.top_margin = margin
        section.bottom_margin = margin
        section.left_margin = margin
        section.right_margin = margin


def _clear_body(doc: Document) -> None:
    # The default template may ship an empty leading paragraph.
    for paragraph in list(doc.paragraphs):
        element = paragraph._p
        parent = element.getparent()
        if parent is not None:
            parent.remove(element)


def _style_exists(doc: Document, name: str) -> bool:
    try:
        doc.styles[name]
    except KeyError:
        return False
    return True


def _add_block_paragraph(doc: Document, styled: StyledBlock) -> Paragraph:
    paragraph = doc.add_paragraph()
    if styled.style_key == "title" and _style_exists(doc, TITLE_STYLE):
        paragraph.style = TITLE_STYLE

    before, after = _SPACING.get(styled.style_key, (0.0, 0.0))
    fmt = paragraph.paragraph_format
    fmt.space_before = Pt(before)
    fmt.space_after = Pt(after)

    if styled.is_bullet:
        indent = styled.indent_inches if styled.indent_inches is not None else 0.5
        fmt.left_indent = Inches(indent)
        fmt.first_line_indent = -Inches(HANGING_INDENT_INCHES)
        fmt.tab_stops.add_tab_stop(Inches(indent))

    for index, run_spec in enumerate(styled.runs):
        text = run_spec.text
        if styled.is_bullet and index == 0:
            text = f"{text}\t"
        _add_styled_run(paragraph, run_spec, text)
    return paragraph


def _add_styled_run(paragraph: Paragraph, run_spec: StyledRun, text: str) -> None:
    if not text:
        return
    run = paragraph.add_run(text)
    font = run.font
    font.name = run_spec.font
    # East Asian and complex-script fallbacks otherwise keep the theme font.
    r_fonts = run._element.get_or_add_rPr().get_or_add_rFonts()
    r_fonts.set(qn("w:eastAsia"), run_spec.font)
    r_fonts.set(qn("w:cs"), run_spec.font)
    font.size = Pt(run_spec.size_pt)
    font.bold = run_spec.bold
    font.italic = run_spec.italic
    font.underline = run_spec.underline
    if run_spec.color_hex:
        font.color.rgb = RGBColor.from_string(run_spec.color_hex)
