from __future__ import annotations

import os
from pathlib import Path

STYLE_PROFILE_PATH_ENV = "NOTES_STYLE_PROFILE_PATH"
QUESTION_RESETS_SECTION_ENV = "NOTES_QUESTION_RESETS_SECTION"
PAGE_MARGIN_INCHES_ENV = "NOTES_PAGE_MARGIN_INCHES"
OUTPUT_DIR_ENV = "NOTES_OUTPUT_DIR"
MASTER_DIR_ENV = "NOTES_MASTER_DIR"

DEFAULT_PAGE_MARGIN_INCHES = 1.0


def _get_env_path(name: str) -> Path | None:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    return Path(value)


def _get_env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    return value.lower() in {"1", "true", "yes", "y", "on"}


def get_style_profile_path() -> Path | None:
    return _get_env_path(STYLE_PROFILE_PATH_ENV)


def get_output_dir() -> Path | None:
    return _get_env_path(OUTPUT_DIR_ENV)


def get_master_dir() -> Path | None:
    return _get_env_path(MASTER_DIR_ENV)


def get_question_resets_section(default: bool = True) -> bool:
    return _get_env_bool(QUESTION_RESETS_SECTION_ENV, default)


def get_page_margin_inches(default: float = DEFAULT_PAGE_MARGIN_INCHES) -> float:
    value = os.getenv(PAGE_MARGIN_INCHES_ENV, "").strip()
    if not value:
        return default
    try:
        margin = float(value.replace(",", "."))
    except ValueError:
        raise SystemExit(f"ERROR: {PAGE_MARGIN_INCHES_ENV} must be a number, got {value!r}")
    if margin < 0:
        raise SystemExit(f"ERROR: {PAGE_MARGIN_INCHES_ENV} must not be negative")
    return margin
