from __future__ import annotations

from notes_ops.document_model import StyledBlock, build
from notes_ops.markup_parser import Block, BlockKind, BulletRole, Section, parse
from notes_ops.style_profile import DEFAULT_STYLE_PROFILE


def _build_one(block: Block) -> StyledBlock:
    return build([block], DEFAULT_STYLE_PROFILE)[0]


def test_one_styled_block_per_block() -> None:
    blocks = parse("### A, B, C\n**Key Takeaways:**\n- One.\n- Two.\nTrailing text\n")
    styled = build(blocks, DEFAULT_STYLE_PROFILE)
    assert len(styled) == len(blocks)


def test_takeaway_bullet_runs() -> None:
    styled = _build_one(Block(BlockKind.BULLET, "We love the support team.", Section.TAKEAWAYS))
    assert styled.style_key == "takeaway_bullet"
    assert styled.is_bullet
    assert styled.indent_inches == 0.5
    glyph, body = styled.runs
    assert glyph.text == "➤"
    assert body.text == "We love the support team"
    assert body.font == "Calibri"
    assert body.size_pt == 11


def test_bullet_normalization_through_parser() -> None:
    blocks = parse("**Discussion:**\n- We love the support team.\n")
    styled = build(blocks, DEFAULT_STYLE_PROFILE)
    assert styled[1].runs[-1].text == "We love the support team"
    assert styled[1].runs[0].text == "•"


def test_score_bullet_expands_to_three_runs() -> None:
    block = Block(
        BlockKind.BULLET, "7 (out of 10).", Section.QUANTITATIVE, BulletRole.SCORE, scale=10
    )
    styled = _build_one(block)
    assert styled.style_key == "quant_bullet"
    glyph, label, value = styled.runs
    assert glyph.text == "•"
    assert not glyph.bold
    assert label.text == "Score: "
    assert label.bold
    assert value.text == "7 (out of 10)"
    assert not value.bold


def test_reason_label() -> None:
    block = Block(BlockKind.BULLET, "good fit", Section.QUANTITATIVE, BulletRole.REASON)
    assert [run.text for run in _build_one(block).runs] == ["•", "Reason: ", "good fit"]


def test_plain_quant_bullet_has_two_runs() -> None:
    block = Block(BlockKind.BULLET, "side note", Section.QUANTITATIVE, BulletRole.PLAIN)
    assert [run.text for run in _build_one(block).runs] == ["•", "side note"]


def test_section_header_uses_canonical_label() -> None:
    blocks = parse("### Key Takeaways\n**Discussion Summary:**\n***Quantitative Questions: rate us***\n")
    labels = [styled.text for styled in build(blocks, DEFAULT_STYLE_PROFILE)]
    assert labels == ["Key Takeaways:", "Discussion:", "Quantitative Questions:"]
    header = build(blocks, DEFAULT_STYLE_PROFILE)[0].runs[0]
    assert header.bold and header.underline and not header.italic


def test_title_question_category_styles() -> None:
    title = _build_one(Block(BlockKind.TITLE, "Jane Doe, VP Ops, Acme Co")).runs[0]
    assert (title.font, title.size_pt, title.bold) == ("Aptos", 14, False)
    assert title.color_hex == "0F4761"

    question = _build_one(Block(BlockKind.DISCUSSION_QUESTION, "How is it going?")).runs[0]
    assert question.bold and question.italic
    assert question.text == "How is it going?"

    category = _build_one(Block(BlockKind.QUANT_CATEGORY, "Overall Satisfaction")).runs[0]
    assert category.bold and not category.italic


def test_plain_strips_emphasis() -> None:
    styled = _build_one(Block(BlockKind.PLAIN, "**Note:** *see* attached"))
    assert styled.style_key == "plain"
    assert styled.runs[0].text == "Note: see attached"
    assert not styled.runs[0].bold
