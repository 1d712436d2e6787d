from __future__ import annotations

from notes_ops.markup_parser import BulletRole, parse
from notes_ops.quant_extract import (
    QuantCategoryField,
    RespondentInfo,
    extract_categories,
    extract_respondent,
)

REPORT = (
    "### Jane Doe, VP Ops, Acme Co\n"
    "\n"
    "**Key Takeaways:**\n"
    "- Strong partnership.\n"
    "\n"
    "***Quantitative Questions: How would you rate Acme?***\n"
    "\n"
    "**Overall Satisfaction**\n"
    "- **Score:** 7 (out of 10)\n"
    "- **Reason:** good fit\n"
    "\n"
    "**Net Promoter**\n"
    "- **Score:** 4 (out of 5)\n"
    "- **Reason:** would recommend to peers\n"
    "\n"
    "**Breadth of Capabilities**\n"
    "- **Reason:** no score given\n"
    "\n"
    "**Discussion:**\n"
    "**Ignored Category**\n"
    "- **Score:** 9\n"
)


def test_round_trip_single_category() -> None:
    text = (
        "**Quantitative Questions:**\n"
        "**Overall Satisfaction**\n"
        "- **Score:** 7 (out of 10)\n"
        "- **Reason:** good fit\n"
    )
    assert extract_categories(text) == [QuantCategoryField(name="Overall Satisfaction", scale=10)]


def test_categories_with_scales_stop_at_next_section() -> None:
    categories = [c.model_dump() for c in extract_categories(REPORT)]
    assert categories == [
        {"name": "Overall Satisfaction", "scale": 10},
        {"name": "Net Promoter", "scale": 5},
    ]


def test_default_scale_when_missing() -> None:
    text = "**Quantitative Scores**\n**Ease of Doing Business**\n- Score: 3\n"
    assert extract_categories(text) == [QuantCategoryField(name="Ease of Doing Business", scale=10)]


def test_no_quant_section() -> None:
    assert extract_categories("### A, B, C\n**Overall Satisfaction**\n- **Score:** 7\n") == []
    assert extract_categories("") == []


def test_respondent_round_trip() -> None:
    info = extract_respondent("### Jane Doe, VP Ops, Acme Co\n...")
    assert info == RespondentInfo(name="Jane Doe", role="VP Ops", company="Acme Co")


def test_respondent_company_keeps_commas() -> None:
    info = extract_respondent("### Sam Lee, CFO, Widgets, Inc.\n")
    assert info.company == "Widgets, Inc."


def test_respondent_partial_and_missing() -> None:
    assert extract_respondent("### Jane Doe\n") == RespondentInfo(name="Jane Doe")
    assert extract_respondent("No heading here\n- bullet\n") == RespondentInfo()
    assert extract_respondent("") == RespondentInfo()


def test_zero_scale_falls_back_to_default_in_parser_and_extractor() -> None:
    text = "**Quantitative Questions**\n**Net Promoter**\n- **Score:** 6 (out of 0)\n"
    assert extract_categories(text) == [QuantCategoryField(name="Net Promoter", scale=10)]
    (score,) = [block for block in parse(text) if block.role is BulletRole.SCORE]
    assert score.scale == 10
