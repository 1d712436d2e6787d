from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from notes_ops.markup_parser import (
    Block,
    BlockKind,
    BulletRole,
    Section,
    remove_trailing_period,
    strip_emphasis,
)
from notes_ops.style_profile import BlockStyle, StyleProfile

SECTION_LABELS = {
    Section.TAKEAWAYS: "Key Takeaways:",
    Section.DISCUSSION: "Discussion:",
    Section.QUANTITATIVE: "Quantitative Questions:",
}
ROLE_LABELS = {
    BulletRole.SCORE: "Score: ",
    BulletRole.REASON: "Reason: ",
}


@dataclass(frozen=True)
class StyledRun:
    text: str
    font: str
    size_pt: float
    bold: bool = False
    italic: bool = False
    underline: bool = False
    color_hex: str | None = None


@dataclass(frozen=True)
class StyledBlock:
    """Runs for one block, plus the layout hints a renderer needs."""

    style_key: str
    runs: tuple[StyledRun, ...] = field(default_factory=tuple)
    indent_inches: float | None = None
    is_bullet: bool = False

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


def make_run(text: str, style: BlockStyle, **overrides) -> StyledRun:
    attrs = {
        "font": style.font,
        "size_pt": style.size_pt,
        "bold": style.bold,
        "italic": style.italic,
        "underline": style.underline,
        "color_hex": style.color_hex,
    }
    attrs.update(overrides)
    return StyledRun(text=text, **attrs)


def build(blocks: Iterable[Block], profile: StyleProfile) -> list[StyledBlock]:
    return [build_block(block, profile) for block in blocks]


def build_block(block: Block, profile: StyleProfile) -> StyledBlock:
    if block.kind is BlockKind.TITLE:
        return _single("title", block.text, profile)
    if block.kind is BlockKind.SECTION_HEADER:
        label = SECTION_LABELS.get(block.section, block.text)
        return _single("section_header", label, profile)
    if block.kind is BlockKind.DISCUSSION_QUESTION:
        return _single("discussion_question", strip_emphasis(block.text), profile)
    if block.kind is BlockKind.QUANT_CATEGORY:
        return _single("quant_category", strip_emphasis(block.text), profile)
    if block.kind is BlockKind.BULLET:
        return _bullet(block, profile)
    return _single("plain", strip_emphasis(block.text), profile)


def _single(style_key: str, text: str, profile: StyleProfile) -> StyledBlock:
    style = profile.style_for(style_key)
    return StyledBlock(style_key=style_key, runs=(make_run(text, style),))


def _bullet(block: Block, profile: StyleProfile) -> StyledBlock:
    if block.section is Section.QUANTITATIVE:
        style_key = "quant_bullet"
    elif block.section is Section.TAKEAWAYS:
        style_key = "takeaway_bullet"
    else:
        style_key = "discussion_bullet"
    style = profile.style_for(style_key)

    # Glyph and label runs never inherit emphasis from the bullet style.
    runs = [make_run(style.bullet_glyph or "", style, bold=False, italic=False, underline=False)]
    body = remove_trailing_period(block.text)
    label = ROLE_LABELS.get(block.role) if block.role else None
    if label:
        runs.append(make_run(label, style, bold=True, italic=False, underline=False))
    runs.append(make_run(body, style))
    return StyledBlock(
        style_key=style_key,
        runs=tuple(runs),
        indent_inches=style.indent_inches,
        is_bullet=True,
    )
