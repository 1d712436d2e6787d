from __future__ import annotations

import argparse
import json
from io import BytesIO
from pathlib import Path
from typing import Any

from docx import Document
from docx.oxml.ns import qn


def summarize_docx_runs(source: str | Path | bytes) -> dict[str, Any]:
    if isinstance(source, bytes):
        doc = Document(BytesIO(source))
        label = f"<{len(source)} bytes>"
    else:
        doc = Document(str(source))
        label = str(source)
    summary: dict[str, Any] = {
        "docx_path": label,
        "total_runs": 0,
        "bold_runs": 0,
        "italic_runs": 0,
        "underline_runs": 0,
        "fonts": [],
        "page_break_paragraphs": [],
        "paragraph_text": [],
    }

    fonts: set[str] = set()
    for index, paragraph in enumerate(doc.paragraphs):
        summary["paragraph_text"].append(paragraph.text)
        if _has_page_break(paragraph):
            summary["page_break_paragraphs"].append(index)
        for run in paragraph.runs:
            summary["total_runs"] += 1
            if bool(run.bold):
                summary["bold_runs"] += 1
            if bool(run.italic):
                summary["italic_runs"] += 1
            if bool(run.underline):
                summary["underline_runs"] += 1
            if run.font.name:
                fonts.add(run.font.name)
    summary["fonts"] = sorted(fonts)
    return summary


def _has_page_break(paragraph) -> bool:
    for br in paragraph._p.iter(qn("w:br")):
        if br.get(qn("w:type")) == "page":
            return True
    return False


def assert_run_thresholds(
    summary: dict[str, Any],
    *,
    min_bold: int = 0,
    min_italic: int = 0,
    min_underline: int = 0,
) -> None:
    failures: list[str] = []
    for key, minimum in (
        ("bold_runs", min_bold),
        ("italic_runs", min_italic),
        ("underline_runs", min_underline),
    ):
        if summary.get(key, 0) < minimum:
            failures.append(f"{key}={summary.get(key, 0)} is below required minimum {minimum}")
    if failures:
        raise AssertionError("; ".join(failures))


def assert_expected_substrings(summary: dict[str, Any], expected: list[str]) -> None:
    if not expected:
        return
    haystack = "\n".join(summary.get("paragraph_text", []))
    missing = [snippet for snippet in expected if snippet not in haystack]
    if missing:
        raise AssertionError(f"Missing expected substrings: {missing}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Dump and assert notes DOCX run styling.")
    parser.add_argument("docx_path", help="Path to .docx file")
    parser.add_argument("--min-bold", type=int, default=0, help="Minimum bold runs required")
    parser.add_argument(
        "--min-italic", type=int, default=0, help="Minimum italic runs required"
    )
    parser.add_argument(
        "--min-underline", type=int, default=0, help="Minimum underlined runs required"
    )
    parser.add_argument(
        "--expect-substring",
        action="append",
        default=[],
        help="Substring expected in rendered paragraph text (repeatable)",
    )
    args = parser.parse_args()

    summary = summarize_docx_runs(args.docx_path)
    print(json.dumps(summary, indent=2, ensure_ascii=True))

    try:
        assert_run_thresholds(
            summary,
            min_bold=args.min_bold,
            min_italic=args.min_italic,
            min_underline=args.min_underline,
        )
        assert_expected_substrings(summary, args.expect_substring)
    except AssertionError as exc:
        print(f"ASSERTION FAILED: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
