from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import Callable, Iterable

from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from notes_ops.document_model import StyledBlock, StyledRun, build
from notes_ops.markup_parser import parse
from notes_ops.style_profile import DEFAULT_STYLE_PROFILE, HANGING_INDENT_INCHES, StyleProfile

# Colours from the style profile are not applied here: the standard PDF fonts
# are drawn in a single fill colour, and emphasis comes from font variants.

DEFAULT_MARGIN_INCHES = 1.0
LINE_HEIGHT_FACTOR = 1.25
TAKEAWAY_PDF_GLYPH = "»"
BULLET_PDF_GLYPH = "•"
UNDERLINE_OFFSET_PT = 1.5

# (space_before_pt, space_after_pt) per style key
_SPACING = {
    "title": (8.0, 6.0),
    "section_header": (12.0, 6.0),
    "discussion_question": (10.0, 4.0),
    "quant_category": (8.0, 2.0),
    "takeaway_bullet": (0.0, 6.0),
    "discussion_bullet": (0.0, 4.0),
    "quant_bullet": (0.0, 2.0),
    "plain": (0.0, 4.0),
}

_FONT_FAMILIES = {
    "helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "times": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "courier": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
}

MeasureFn = Callable[[str, str, float], float]


@dataclass
class Segment:
    text: str
    font_name: str
    size_pt: float
    underline: bool = False


@dataclass
class PositionedLine:
    x: float
    y: float
    segments: list[Segment] = field(default_factory=list)


@dataclass
class PageLayout:
    lines: list[PositionedLine] = field(default_factory=list)


@dataclass(frozen=True)
class PageGeometry:
    width: float
    height: float
    margin: float

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def top(self) -> float:
        return self.height - self.margin

    @property
    def bottom(self) -> float:
        return self.margin


def pdf_font_name(run: StyledRun) -> str:
    family = run.font.strip().lower()
    if family.startswith("times"):
        variants = _FONT_FAMILIES["times"]
    elif family.startswith(("courier", "consolas")):
        variants = _FONT_FAMILIES["courier"]
    else:
        variants = _FONT_FAMILIES["helvetica"]
    return variants[(2 if run.italic else 0) + (1 if run.bold else 0)]


def pdf_glyph(glyph: str, style_key: str) -> str:
    fallback = TAKEAWAY_PDF_GLYPH if style_key == "takeaway_bullet" else BULLET_PDF_GLYPH
    if not glyph:
        return fallback
    try:
        glyph.encode("cp1252")
    except UnicodeEncodeError:
        return fallback
    return glyph


def string_width(text: str, font_name: str, size_pt: float) -> float:
    return pdfmetrics.stringWidth(text, font_name, size_pt)


def wrap_segments(
    segments: list[Segment], max_width: float, measure: MeasureFn = string_width
) -> list[list[Segment]]:
    """Greedy word-wrap of mixed-font text into lines no wider than max_width.

    A single word wider than max_width gets a line of its own.
    """
    words: list[tuple[str, Segment]] = []
    for segment in segments:
        for word in segment.text.split():
            words.append((word, segment))

    lines: list[list[Segment]] = []
    current: list[Segment] = []
    width = 0.0
    for word, source in words:
        space = measure(" ", source.font_name, source.size_pt) if current else 0.0
        word_width = measure(word, source.font_name, source.size_pt)
        if current and width + space + word_width > max_width:
            lines.append(current)
            current = []
            width = 0.0
            space = 0.0
        text = f" {word}" if space else word
        if current and _same_face(current[-1], source):
            current[-1] = Segment(
                current[-1].text + text, source.font_name, source.size_pt, source.underline
            )
        else:
            current.append(Segment(text, source.font_name, source.size_pt, source.underline))
        width += space + word_width
    if current:
        lines.append(current)
    return lines


def _same_face(left: Segment, right: Segment) -> bool:
    return (
        left.font_name == right.font_name
        and left.size_pt == right.size_pt
        and left.underline == right.underline
    )


def layout_pages(
    styled_blocks: Iterable[StyledBlock],
    geometry: PageGeometry,
    measure: MeasureFn = string_width,
) -> list[PageLayout]:
    pages = [PageLayout()]
    cursor = geometry.top

    for styled in styled_blocks:
        before, after = _SPACING.get(styled.style_key, (0.0, 0.0))
        glyph_segment, text_x, lines, line_height = _block_lines(styled, geometry, measure)
        if not lines and glyph_segment is None:
            continue

        block_height = before + line_height * max(1, len(lines))
        fits_on_fresh_page = block_height <= geometry.top - geometry.bottom
        if cursor - block_height < geometry.bottom and fits_on_fresh_page and pages[-1].lines:
            pages.append(PageLayout())
            cursor = geometry.top
        if cursor < geometry.top:
            cursor -= before

        for index, line in enumerate(lines or [[]]):
            if cursor - line_height < geometry.bottom and pages[-1].lines:
                pages.append(PageLayout())
                cursor = geometry.top
            cursor -= line_height
            baseline = cursor + (line_height - _line_size(line, styled)) / 2
            if index == 0 and glyph_segment is not None:
                glyph_x = text_x - HANGING_INDENT_INCHES * inch
                pages[-1].lines.append(PositionedLine(glyph_x, baseline, [glyph_segment]))
            if line:
                pages[-1].lines.append(PositionedLine(text_x, baseline, line))
        cursor -= after

    return pages


def _block_lines(
    styled: StyledBlock, geometry: PageGeometry, measure: MeasureFn
) -> tuple[Segment | None, float, list[list[Segment]], float]:
    runs = list(styled.runs)
    glyph_segment = None
    text_x = geometry.margin
    if styled.is_bullet and runs:
        glyph_run = runs.pop(0)
        glyph_segment = Segment(
            pdf_glyph(glyph_run.text, styled.style_key),
            pdf_font_name(glyph_run),
            glyph_run.size_pt,
        )
        indent = styled.indent_inches if styled.indent_inches is not None else 0.5
        text_x = geometry.margin + indent * inch

    segments = [
        Segment(run.text, pdf_font_name(run), run.size_pt, run.underline)
        for run in runs
        if run.text.strip()
    ]
    max_width = geometry.content_width - (text_x - geometry.margin)
    lines = wrap_segments(segments, max_width, measure)
    size = max((run.size_pt for run in styled.runs), default=11.0)
    return glyph_segment, text_x, lines, size * LINE_HEIGHT_FACTOR


def _line_size(line: list[Segment], styled: StyledBlock) -> float:
    if line:
        return max(segment.size_pt for segment in line)
    return max((run.size_pt for run in styled.runs), default=11.0)


def render_pdf(
    styled_blocks: Iterable[StyledBlock],
    page_width: float = letter[0],
    page_height: float = letter[1],
    margin_inches: float = DEFAULT_MARGIN_INCHES,
    *,
    title: str | None = None,
) -> bytes:
    geometry = PageGeometry(page_width, page_height, margin_inches * inch)
    pages = layout_pages(styled_blocks, geometry)

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(page_width, page_height), invariant=1)
    if title:
        pdf.setTitle(title)
    for page in pages:
        for line in page.lines:
            _draw_line(pdf, line)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def render_notes_pdf(
    markup_text: str,
    profile: StyleProfile = DEFAULT_STYLE_PROFILE,
    *,
    margin_inches: float = DEFAULT_MARGIN_INCHES,
    question_resets_section: bool = True,
    title: str | None = None,
) -> bytes:
    blocks = parse(markup_text, question_resets_section=question_resets_section)
    return render_pdf(build(blocks, profile), margin_inches=margin_inches, title=title)


def _draw_line(pdf: canvas.Canvas, line: PositionedLine) -> None:
    x = line.x
    for segment in line.segments:
        pdf.setFont(segment.font_name, segment.size_pt)
        pdf.drawString(x, line.y, segment.text)
        width = string_width(segment.text, segment.font_name, segment.size_pt)
        if segment.underline:
            underline_y = line.y - UNDERLINE_OFFSET_PT
            pdf.setLineWidth(max(0.5, segment.size_pt / 20))
            pdf.line(x, underline_y, x + width, underline_y)
        x += width
