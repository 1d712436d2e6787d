from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from notes_ops.style_profile import (
    DEFAULT_STYLE_PROFILE,
    BlockStyle,
    load_style_profile,
    style_profile_from_dict,
)


def test_default_profile_table() -> None:
    p = DEFAULT_STYLE_PROFILE
    expected = {
        "title": ("Aptos", 14, False, False, False, None, None),
        "section_header": ("Calibri", 11, True, False, True, None, None),
        "takeaway_bullet": ("Calibri", 11, False, False, False, "➤", 0.5),
        "discussion_question": ("Calibri", 11, True, True, False, None, None),
        "discussion_bullet": ("Calibri", 11, False, False, False, "•", 0.5),
        "quant_bullet": ("Calibri", 11, False, False, False, "•", 0.5),
        "quant_category": ("Calibri", 11, True, False, False, None, None),
    }
    for key, row in expected.items():
        style = p.style_for(key)
        actual = (
            style.font,
            style.size_pt,
            style.bold,
            style.italic,
            style.underline,
            style.bullet_glyph,
            style.indent_inches,
        )
        assert actual == row, key


def test_profile_is_immutable() -> None:
    with pytest.raises(ValidationError):
        DEFAULT_STYLE_PROFILE.title = BlockStyle()


def test_unknown_style_key() -> None:
    with pytest.raises(KeyError):
        DEFAULT_STYLE_PROFILE.style_for("footer")


def test_partial_override_merges_onto_default() -> None:
    profile = style_profile_from_dict(
        {"title": {"font": "Georgia", "color_hex": "#1f3864"}, "takeaway_bullet": {"bullet_glyph": "-"}}
    )
    assert profile.title.font == "Georgia"
    assert profile.title.size_pt == 14
    assert profile.title.color_hex == "1F3864"
    assert profile.takeaway_bullet.bullet_glyph == "-"
    assert profile.takeaway_bullet.indent_inches == 0.5
    assert profile.section_header == DEFAULT_STYLE_PROFILE.section_header


def test_load_style_profile(tmp_path: Path) -> None:
    assert load_style_profile(None) is DEFAULT_STYLE_PROFILE

    path = tmp_path / "profile.json"
    path.write_text(json.dumps({"section_header": {"size_pt": 12}}), encoding="utf-8")
    assert load_style_profile(path).section_header.size_pt == 12

    with pytest.raises(FileNotFoundError):
        load_style_profile(tmp_path / "missing.json")


@pytest.mark.parametrize(
    "payload",
    [
        {"footer": {"font": "Arial"}},
        {"title": {"size_pt": -1}},
        {"title": {"color_hex": "blue"}},
        {"title": "Arial"},
    ],
)
def test_invalid_profiles_rejected(tmp_path: Path, payload: dict) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(ValueError):
        load_style_profile(path)
