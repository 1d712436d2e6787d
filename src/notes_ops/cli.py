from __future__ import annotations

import argparse
import json
from pathlib import Path

from notes_ops.config import (
    get_master_dir,
    get_output_dir,
    get_page_margin_inches,
    get_question_resets_section,
    get_style_profile_path,
)
from notes_ops.errors import NotesOpsError
from notes_ops.io_helpers import export_filename, updated_filename, write_bytes_atomic
from notes_ops.master_doc import FileMasterStore, append_to_master, create_master
from notes_ops.merge_docx import append
from notes_ops.quant_extract import extract_categories, extract_respondent
from notes_ops.render_docx import render_notes_docx
from notes_ops.render_pdf import render_notes_pdf
from notes_ops.style_profile import StyleProfile, load_style_profile


def _add_render_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="Path to the markdown notes report")
    parser.add_argument(
        "--style-profile",
        default=None,
        help="JSON style profile (default: NOTES_STYLE_PROFILE_PATH env or built-in)",
    )
    parser.add_argument(
        "--margin",
        type=float,
        default=None,
        help="Page margin in inches (default: NOTES_PAGE_MARGIN_INCHES env or 1.0)",
    )
    parser.add_argument(
        "--question-resets-section",
        default=None,
        action=argparse.BooleanOptionalAction,
        help="Treat bullets after a question in the quantitative section as discussion "
        "bullets (default: NOTES_QUESTION_RESETS_SECTION env or True).",
    )


def _add_master_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--doc-id", required=True, help="Master document id")
    parser.add_argument(
        "--master-dir",
        default=None,
        help="Directory holding master documents (default: NOTES_MASTER_DIR env or ./masters)",
    )
    parser.add_argument("--by", default="", help="User recorded as author of this change")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="notes-ops")
    subparsers = parser.add_subparsers(dest="command", required=True)

    docx_parser = subparsers.add_parser("render-docx", help="Render notes as a Word document")
    _add_render_options(docx_parser)
    docx_parser.add_argument(
        "--output",
        default=None,
        help="Output .docx path (default: Name_Role_Company_Notes_<date>.docx)",
    )

    pdf_parser = subparsers.add_parser("render-pdf", help="Render notes as a PDF")
    _add_render_options(pdf_parser)
    pdf_parser.add_argument("--output", default=None, help="Output .pdf path")

    append_parser = subparsers.add_parser(
        "append", help="Append notes to an existing Word document on a new page"
    )
    _add_render_options(append_parser)
    append_parser.add_argument("--existing", required=True, help="Existing .docx to extend")
    append_parser.add_argument(
        "--output",
        default=None,
        help="Output .docx path (default: <existing>_updated.docx)",
    )

    extract_parser = subparsers.add_parser(
        "extract", help="Print respondent and quantitative categories as JSON"
    )
    extract_parser.add_argument("input", help="Path to the markdown notes report")

    create_parser = subparsers.add_parser("master-create", help="Start a master document")
    _add_render_options(create_parser)
    _add_master_options(create_parser)

    master_parser = subparsers.add_parser(
        "master-append", help="Append notes to a stored master document"
    )
    _add_render_options(master_parser)
    _add_master_options(master_parser)
    master_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds allowed for loading and saving the master document",
    )

    args = parser.parse_args(argv)

    try:
        return _run(args)
    except (NotesOpsError, FileNotFoundError, FileExistsError, ValueError) as exc:
        raise SystemExit(f"ERROR: {exc}")


def _run(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    markup_text = input_path.read_text(encoding="utf-8")

    if args.command == "extract":
        payload = {
            "respondent": extract_respondent(markup_text).model_dump(),
            "categories": [c.model_dump() for c in extract_categories(markup_text)],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    profile = _resolve_profile(args.style_profile)
    margin = args.margin if args.margin is not None else get_page_margin_inches()
    resets = args.question_resets_section
    if resets is None:
        resets = get_question_resets_section()

    if args.command == "render-docx":
        data = render_notes_docx(
            markup_text, profile, margins_inches=margin, question_resets_section=resets
        )
        out_path = _resolve_output(args.output, export_filename(extract_respondent(markup_text)))
        write_bytes_atomic(out_path, data)
        print(f"Saved: {out_path}")
        return 0

    if args.command == "render-pdf":
        respondent = extract_respondent(markup_text)
        data = render_notes_pdf(
            markup_text,
            profile,
            margin_inches=margin,
            question_resets_section=resets,
            title=respondent.name or None,
        )
        default_name = export_filename(respondent)[: -len(".docx")] + ".pdf"
        out_path = _resolve_output(args.output, default_name)
        write_bytes_atomic(out_path, data)
        print(f"Saved: {out_path}")
        return 0

    if args.command == "append":
        existing_path = Path(args.existing)
        if not existing_path.exists():
            raise FileNotFoundError(f"Existing document not found: {existing_path}")
        merged = append(
            existing_path.read_bytes(),
            markup_text,
            profile,
            margins_inches=margin,
            question_resets_section=resets,
        )
        out_path = (
            Path(args.output)
            if args.output
            else existing_path.with_name(updated_filename(existing_path))
        )
        write_bytes_atomic(out_path, merged)
        print(f"Saved: {out_path}")
        return 0

    store = FileMasterStore(_resolve_master_dir(args.master_dir))
    if args.command == "master-create":
        count = create_master(
            store,
            args.doc_id,
            markup_text,
            profile,
            created_by=args.by,
            margins_inches=margin,
            question_resets_section=resets,
        )
        print(f"Created master document {args.doc_id} ({count} note)")
        return 0

    if args.command == "master-append":
        count = append_to_master(
            store,
            args.doc_id,
            markup_text,
            profile,
            appended_by=args.by,
            timeout=args.timeout,
            margins_inches=margin,
            question_resets_section=resets,
        )
        print(f"Appended to master document {args.doc_id} ({count} notes)")
        return 0

    return 2


def _resolve_profile(path_arg: str | None) -> StyleProfile:
    if path_arg:
        return load_style_profile(Path(path_arg))
    return load_style_profile(get_style_profile_path())


def _resolve_output(path_arg: str | None, default_name: str) -> Path:
    if path_arg:
        return Path(path_arg)
    return (get_output_dir() or Path(".")) / default_name


def _resolve_master_dir(path_arg: str | None) -> Path:
    if path_arg:
        return Path(path_arg)
    return get_master_dir() or Path("masters")


if __name__ == "__main__":
    raise SystemExit(main())
