from __future__ import annotations

import re

from pydantic import BaseModel, Field

from notes_ops.markup_parser import DEFAULT_SCALE

_HEADING_RE = re.compile(r"^#{1,6}\s+")
_SCALE_RE = re.compile(r"out\s+of\s+(\d+)", re.IGNORECASE)
_SCORE_BULLET_RE = re.compile(r"^(?:[-•*]\s+)?\*{0,2}score\*{0,2}\s*:", re.IGNORECASE)


class QuantCategoryField(BaseModel):
    name: str
    scale: int = Field(default=DEFAULT_SCALE, ge=1)


class RespondentInfo(BaseModel):
    name: str = ""
    role: str = ""
    company: str = ""


def _is_bold_only(line: str) -> bool:
    return (
        line.startswith("**")
        and line.endswith("**")
        and not line.startswith("***")
        and len(line) > 4
    )


def _mentions_label(line: str) -> bool:
    return "Score" in line or "Reason" in line


def extract_categories(text: str) -> list[QuantCategoryField]:
    """Collect the quantitative categories that have a score, with their scales."""
    categories: list[QuantCategoryField] = []
    in_quant = False
    current: str | None = None

    for raw in (text or "").splitlines():
        line = raw.strip()
        if not in_quant:
            if "Quantitative" in line and ("**" in line or _HEADING_RE.match(line)):
                in_quant = True
            continue

        if line.startswith("**") and line.endswith(":**") and not _mentions_label(line):
            break
        if line.startswith("***"):
            current = None
            continue
        if _is_bold_only(line) and not _mentions_label(line):
            current = line.strip("*").strip()
            continue
        if current and _SCORE_BULLET_RE.match(line):
            scale = DEFAULT_SCALE
            match = _SCALE_RE.search(line)
            if match:
                scale = int(match.group(1)) or DEFAULT_SCALE
            categories.append(QuantCategoryField(name=current, scale=scale))
            current = None

    return categories


def extract_respondent(text: str) -> RespondentInfo:
    """Read "Name, Role, Company" from the first heading line."""
    for raw in (text or "").splitlines():
        line = raw.strip()
        if not _HEADING_RE.match(line):
            continue
        title = _HEADING_RE.sub("", line).replace("**", "").strip()
        parts = [part.strip() for part in title.split(",")]
        return RespondentInfo(
            name=parts[0],
            role=parts[1] if len(parts) > 1 else "",
            # company names may contain commas
            company=", ".join(parts[2:]),
        )
    return RespondentInfo()
