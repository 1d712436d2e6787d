from __future__ import annotations

import zipfile
from copy import deepcopy
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Sequence

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.ns import qn
from lxml import etree

from notes_ops.errors import FormatMismatch
from notes_ops.render_docx import DEFAULT_MARGIN_INCHES, render_notes_docx
from notes_ops.style_profile import DEFAULT_STYLE_PROFILE, StyleProfile

_SECT_PR = qn("w:sectPr")


@dataclass
class ExtractedSections:
    """Body content of one Word document, in order, minus its final sectPr."""

    document: Any
    elements: list[Any] = field(default_factory=list)


def open_docx(data: bytes) -> Any:
    if not data:
        raise FormatMismatch("Document bytes are empty", byte_length=0)
    try:
        return Document(BytesIO(data))
    except (
        PackageNotFoundError,
        zipfile.BadZipFile,
        etree.XMLSyntaxError,
        KeyError,
        ValueError,
    ) as exc:
        raise FormatMismatch(
            f"Bytes are not a Word document container ({len(data)} bytes): {exc}",
            byte_length=len(data),
        ) from exc


def extract_sections(data: bytes) -> ExtractedSections:
    doc = open_docx(data)
    body = doc.element.body
    elements = [child for child in body.iterchildren() if child.tag != _SECT_PR]
    return ExtractedSections(document=doc, elements=elements)


def join(groups: Sequence[ExtractedSections]) -> bytes:
    """Concatenate documents into the first one, keeping its content as-is."""
    if not groups:
        raise ValueError("join() needs at least one document")
    base = groups[0].document
    body = base.element.body
    sect_pr = body.find(_SECT_PR)
    for group in groups[1:]:
        for element in group.elements:
            copied = deepcopy(element)
            if sect_pr is not None:
                sect_pr.addprevious(copied)
            else:
                body.append(copied)

    buffer = BytesIO()
    base.save(buffer)
    return buffer.getvalue()


def merge_documents(existing_bytes: bytes, new_bytes: bytes) -> bytes:
    return join([extract_sections(existing_bytes), extract_sections(new_bytes)])


def append(
    existing_bytes: bytes,
    new_markup_text: str,
    profile: StyleProfile = DEFAULT_STYLE_PROFILE,
    *,
    margins_inches: float = DEFAULT_MARGIN_INCHES,
    question_resets_section: bool = True,
) -> bytes:
    """Add a newly rendered report after the existing document, on a new page."""
    existing = extract_sections(existing_bytes)
    new_bytes = render_notes_docx(
        new_markup_text,
        profile,
        margins_inches=margins_inches,
        page_break_first=True,
        question_resets_section=question_resets_section,
    )
    return join([existing, extract_sections(new_bytes)])
