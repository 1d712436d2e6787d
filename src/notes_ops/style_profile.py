from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

TAKEAWAY_GLYPH = "➤"
BULLET_GLYPH = "•"
HANGING_INDENT_INCHES = 0.25


class BlockStyle(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    font: str = Field(default="Calibri", min_length=1)
    size_pt: float = Field(default=11.0, gt=0)
    bold: bool = False
    italic: bool = False
    underline: bool = False
    color_hex: str | None = None
    bullet_glyph: str | None = None
    indent_inches: float | None = Field(default=None, ge=0)

    @field_validator("color_hex")
    @classmethod
    def _normalize_color(cls, value: str | None) -> str | None:
        if value is None:
            return None
        color = value.strip().lstrip("#").upper()
        if not color:
            return None
        if len(color) != 6 or any(ch not in "0123456789ABCDEF" for ch in color):
            raise ValueError(f"color_hex must be six hex digits, got {value!r}")
        return color


class StyleProfile(BaseModel):
    """Typography for each kind of block in a notes document."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: BlockStyle = BlockStyle(font="Aptos", size_pt=14, color_hex="0F4761")
    section_header: BlockStyle = BlockStyle(bold=True, underline=True)
    takeaway_bullet: BlockStyle = BlockStyle(bullet_glyph=TAKEAWAY_GLYPH, indent_inches=0.5)
    discussion_question: BlockStyle = BlockStyle(bold=True, italic=True)
    discussion_bullet: BlockStyle = BlockStyle(bullet_glyph=BULLET_GLYPH, indent_inches=0.5)
    quant_category: BlockStyle = BlockStyle(bold=True)
    quant_bullet: BlockStyle = BlockStyle(bullet_glyph=BULLET_GLYPH, indent_inches=0.5)
    plain: BlockStyle = BlockStyle()

    def style_for(self, key: str) -> BlockStyle:
        if key not in type(self).model_fields:
            raise KeyError(f"Unknown style key: {key}")
        return getattr(self, key)


DEFAULT_STYLE_PROFILE = StyleProfile()


def style_profile_from_dict(payload: dict[str, Any]) -> StyleProfile:
    """Overlay a partial mapping (key -> style attributes) onto the default profile."""
    merged = DEFAULT_STYLE_PROFILE.model_dump()
    for key, overrides in payload.items():
        if key not in merged:
            raise ValueError(f"Unknown style key in profile: {key}")
        if not isinstance(overrides, dict):
            raise ValueError(f"Style entry for {key} must be an object")
        merged[key] = {**merged[key], **overrides}
    return StyleProfile.model_validate(merged)


def load_style_profile(path: Path | None) -> StyleProfile:
    if path is None:
        return DEFAULT_STYLE_PROFILE
    if not path.exists():
        raise FileNotFoundError(f"Style profile not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Style profile is not valid JSON: {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Style profile must be a JSON object: {path}")
    try:
        return style_profile_from_dict(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid style profile {path}:\n{exc}") from exc
