from __future__ import annotations

import json
import re
from datetime import date
from pathlib import Path
from typing import Any

from notes_ops.quant_extract import RespondentInfo

_INVALID_FILENAME_CHARS_RE = re.compile(r'[/\\?%*:|"<>]')


def write_bytes_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(data)
    tmp_path.replace(path)


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    content = json.dumps(payload, indent=2, ensure_ascii=False)
    write_bytes_atomic(path, content.encode("utf-8"))


def sanitize_filename(value: str | None) -> str:
    if not value or not value.strip():
        return "Unknown"
    return _INVALID_FILENAME_CHARS_RE.sub("_", value.strip())


def export_filename(respondent: RespondentInfo, on_date: date | None = None) -> str:
    stamp = (on_date or date.today()).isoformat()
    parts = [
        sanitize_filename(respondent.name),
        sanitize_filename(respondent.role),
        sanitize_filename(respondent.company),
    ]
    return f"{'_'.join(parts)}_Notes_{stamp}.docx"


def updated_filename(original: str | Path) -> str:
    name = Path(original).name
    stem = name[:-5] if name.lower().endswith(".docx") else name
    return f"{stem}_updated.docx"
