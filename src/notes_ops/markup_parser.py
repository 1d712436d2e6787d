from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

TITLE_WINDOW_LINES = 3
DEFAULT_SCALE = 10
KNOWN_QUANT_CATEGORIES = (
    "Overall Satisfaction",
    "Quality, Accuracy",
    "Quality, Timeliness",
    "Innovative Thinking",
    "Quality of Account",
    "Net Promoter",
    "Ease of Doing Business",
    "Breadth of Capabilities",
)

_HEADING_RE = re.compile(r"^#{1,6}\s+")
_BULLET_RE = re.compile(r"^(?:-|•|\*)\s+(.*)$")
_BULLET_PREFIXES = ("- ", "• ", "* ")
_QUESTION_PREFIXES = ("***", "**_", "_**")
_TAKEAWAYS_RE = re.compile(r"^key\s+takeaways\s*:?$", re.IGNORECASE)
_DISCUSSION_RE = re.compile(r"^discussion(?:\s+(?:summary|notes))?\s*:?$", re.IGNORECASE)
_QUANT_KEYWORD_RE = re.compile(r"Question|Score|rate", re.IGNORECASE)
_LABEL_RE = re.compile(
    r"^\*{0,2}(?P<label>score|reason)\*{0,2}\s*:\s*\*{0,2}\s*(?P<value>.*)$",
    re.IGNORECASE,
)
_SCALE_RE = re.compile(r"out\s+of\s+(\d+)", re.IGNORECASE)
_EMPHASIS_RE = re.compile(r"\*+|__|(?<!\w)_|_(?!\w)")
_TRAILING_PERIOD_RE = re.compile(r"\.\s*$")


class BlockKind(str, Enum):
    TITLE = "title"
    SECTION_HEADER = "section_header"
    DISCUSSION_QUESTION = "discussion_question"
    QUANT_CATEGORY = "quant_category"
    BULLET = "bullet"
    PLAIN = "plain"


class Section(str, Enum):
    TAKEAWAYS = "takeaways"
    DISCUSSION = "discussion"
    QUANTITATIVE = "quantitative"


class BulletRole(str, Enum):
    SCORE = "score"
    REASON = "reason"
    PLAIN = "plain"


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    text: str
    section: Section | None = None
    role: BulletRole | None = None
    scale: int | None = None


@dataclass(frozen=True)
class ParserState:
    section: Section | None = None
    category: str | None = None
    seen_roles: frozenset[BulletRole] = frozenset()
    last_kind: BlockKind | None = None


def strip_emphasis(text: str) -> str:
    return _EMPHASIS_RE.sub("", text).strip()


def strip_heading(text: str) -> str:
    return _HEADING_RE.sub("", text).strip()


def remove_trailing_period(text: str) -> str:
    return _TRAILING_PERIOD_RE.sub("", text).strip()


def parse(text: str, *, question_resets_section: bool = True) -> list[Block]:
    """Classify each non-empty line of a notes report into a Block.

    Never raises: any line no rule claims becomes a PLAIN block.
    """
    lines = (text or "").strip().splitlines()
    state = ParserState()
    blocks: list[Block] = []
    for index, raw in enumerate(lines):
        line = raw.strip()
        if not line or line == "---":
            continue
        state, block = _classify(state, index, line, question_resets_section)
        blocks.append(block)
        state = replace(state, last_kind=block.kind)
    return blocks


def _classify(
    state: ParserState, index: int, line: str, question_resets_section: bool
) -> tuple[ParserState, Block]:
    label = _label_text(line)
    if _is_title_line(state, index, line, label):
        return state, Block(BlockKind.TITLE, strip_emphasis(strip_heading(line)))
    if _TAKEAWAYS_RE.match(label):
        return _enter_section(Section.TAKEAWAYS, label)
    if _DISCUSSION_RE.match(label):
        return _enter_section(Section.DISCUSSION, label)
    if _is_quant_header(line):
        return _enter_section(Section.QUANTITATIVE, label)
    if line.startswith(_QUESTION_PREFIXES):
        section = state.section
        if question_resets_section and section is Section.QUANTITATIVE:
            section = Section.DISCUSSION
        new_state = replace(state, section=section, category=None, seen_roles=frozenset())
        return new_state, Block(BlockKind.DISCUSSION_QUESTION, strip_emphasis(line))
    if state.section is Section.QUANTITATIVE and _is_quant_category(line):
        name = strip_emphasis(line)
        new_state = replace(state, category=name, seen_roles=frozenset())
        return new_state, Block(BlockKind.QUANT_CATEGORY, name)
    if line.startswith(_BULLET_PREFIXES):
        return _classify_bullet(state, line)
    # anything unclaimed is plain text
    return state, Block(BlockKind.PLAIN, label)


def _label_text(line: str) -> str:
    return strip_emphasis(strip_heading(line))


def _is_section_label(line: str, label: str) -> bool:
    return bool(
        _TAKEAWAYS_RE.match(label) or _DISCUSSION_RE.match(label) or _is_quant_header(line)
    )


def _is_title_line(state: ParserState, index: int, line: str, label: str) -> bool:
    if state.last_kind is BlockKind.TITLE:
        return False
    if _is_section_label(line, label):
        return False
    if _HEADING_RE.match(line):
        return True
    if index >= TITLE_WINDOW_LINES or "," not in line:
        return False
    return not line.startswith(("-", "*", "•"))


def _is_quant_header(line: str) -> bool:
    return "Quantitative" in line and bool(_QUANT_KEYWORD_RE.search(line))


def _is_quant_category(line: str) -> bool:
    if line.startswith("**") and line.endswith("**"):
        if "Score" in line or "Reason" in line:
            return False
        return bool(strip_emphasis(line))
    if line.startswith(("-", "•", "*")):
        return False
    return any(name in line for name in KNOWN_QUANT_CATEGORIES)


def _enter_section(section: Section, label: str) -> tuple[ParserState, Block]:
    return ParserState(section=section), Block(BlockKind.SECTION_HEADER, label, section=section)


def _classify_bullet(state: ParserState, line: str) -> tuple[ParserState, Block]:
    match = _BULLET_RE.match(line)
    body = match.group(1).strip() if match else line[2:].strip()
    if state.section is not Section.QUANTITATIVE:
        text = remove_trailing_period(strip_emphasis(body))
        return state, Block(BlockKind.BULLET, text, section=state.section)

    labelled = _LABEL_RE.match(body)
    if labelled:
        role = BulletRole(labelled.group("label").lower())
        if role not in state.seen_roles:
            value = remove_trailing_period(strip_emphasis(labelled.group("value")))
            scale = None
            if role is BulletRole.SCORE:
                scale_match = _SCALE_RE.search(body)
                if scale_match:
                    scale = int(scale_match.group(1)) or DEFAULT_SCALE
            new_state = replace(state, seen_roles=state.seen_roles | {role})
            return new_state, Block(
                BlockKind.BULLET, value, section=Section.QUANTITATIVE, role=role, scale=scale
            )
    text = remove_trailing_period(strip_emphasis(body))
    return state, Block(
        BlockKind.BULLET, text, section=Section.QUANTITATIVE, role=BulletRole.PLAIN
    )
