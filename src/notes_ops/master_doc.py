"""Append-only master documents.

A master document accumulates one rendered report per append. Each append is
a read-merge-write of the whole document followed by a counter update, so
appends to the same document must not interleave. Within a process they are
serialized by a per-document lock. Across processes ``FileMasterStore.save``
holds a ``<id>.lock`` file while it checks the expected ``append_count`` and
writes, so a writer that loaded a stale count is rejected. If the metadata
write fails the previous document bytes are put back.
"""

from __future__ import annotations

import json
import os
import re
import threading
import time
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Protocol

from notes_ops.errors import (
    AppendCancelled,
    FormatMismatch,
    MasterAppendError,
    StaleMasterDocument,
)
from notes_ops.io_helpers import write_bytes_atomic, write_json_atomic
from notes_ops.merge_docx import append
from notes_ops.render_docx import DEFAULT_MARGIN_INCHES, render_notes_docx
from notes_ops.style_profile import DEFAULT_STYLE_PROFILE, StyleProfile

_DOC_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
LOCK_WAIT_SECONDS = 30.0
LOCK_POLL_SECONDS = 0.05


@dataclass(frozen=True)
class MasterDocumentState:
    doc_id: str
    data: bytes
    append_count: int


class MasterDocumentStore(Protocol):
    def create(self, doc_id: str, data: bytes, *, created_by: str = "") -> MasterDocumentState:
        ...

    def load(self, doc_id: str, *, timeout: float | None = None) -> MasterDocumentState:
        ...

    def save(
        self,
        doc_id: str,
        data: bytes,
        *,
        expected_count: int,
        appended_by: str = "",
        timeout: float | None = None,
    ) -> int:
        ...


class FileMasterStore:
    """Master documents on local disk: ``<id>.docx`` plus ``<id>.json`` metadata."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def docx_path(self, doc_id: str) -> Path:
        return self.root / f"{_check_doc_id(doc_id)}.docx"

    def meta_path(self, doc_id: str) -> Path:
        return self.root / f"{_check_doc_id(doc_id)}.json"

    def lock_path(self, doc_id: str) -> Path:
        return self.root / f"{_check_doc_id(doc_id)}.lock"

    def create(self, doc_id: str, data: bytes, *, created_by: str = "") -> MasterDocumentState:
        docx_path = self.docx_path(doc_id)
        if docx_path.exists():
            raise FileExistsError(f"Master document already exists: {doc_id}")
        now = _utc_now()
        meta = {
            "doc_id": doc_id,
            "created_by": created_by,
            "created_at": now,
            "updated_at": now,
            "last_appended_by": created_by,
            "append_count": 1,
            "file_size_bytes": len(data),
        }
        write_bytes_atomic(docx_path, data)
        write_json_atomic(self.meta_path(doc_id), meta)
        return MasterDocumentState(doc_id=doc_id, data=data, append_count=1)

    def load(self, doc_id: str, *, timeout: float | None = None) -> MasterDocumentState:
        docx_path = self.docx_path(doc_id)
        if not docx_path.exists():
            raise FileNotFoundError(f"Master document not found: {doc_id}")
        meta = self._read_meta(doc_id)
        return MasterDocumentState(
            doc_id=doc_id,
            data=docx_path.read_bytes(),
            append_count=int(meta.get("append_count") or 0),
        )

    def save(
        self,
        doc_id: str,
        data: bytes,
        *,
        expected_count: int,
        appended_by: str = "",
        timeout: float | None = None,
    ) -> int:
        with _file_lock(self.lock_path(doc_id), timeout):
            meta = self._read_meta(doc_id)
            current = int(meta.get("append_count") or 0)
            if current != expected_count:
                raise StaleMasterDocument(doc_id, expected_count, current)
            meta.update(
                {
                    "updated_at": _utc_now(),
                    "last_appended_by": appended_by,
                    "append_count": current + 1,
                    "file_size_bytes": len(data),
                }
            )
            docx_path = self.docx_path(doc_id)
            previous = docx_path.read_bytes()
            write_bytes_atomic(docx_path, data)
            try:
                write_json_atomic(self.meta_path(doc_id), meta)
            except BaseException:
                write_bytes_atomic(docx_path, previous)
                raise
            return current + 1

    def _read_meta(self, doc_id: str) -> dict:
        meta_path = self.meta_path(doc_id)
        if not meta_path.exists():
            return {}
        try:
            payload = json.loads(meta_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise OSError(f"Corrupt metadata for master document {doc_id}: {exc}") from exc
        return payload if isinstance(payload, dict) else {}


# entries drop out once no caller holds the lock
_LOCKS: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
_LOCKS_GUARD = threading.Lock()


def document_lock(doc_id: str) -> threading.Lock:
    with _LOCKS_GUARD:
        lock = _LOCKS.get(doc_id)
        if lock is None:
            lock = threading.Lock()
            _LOCKS[doc_id] = lock
        return lock


def create_master(
    store: MasterDocumentStore,
    doc_id: str,
    markup_text: str,
    profile: StyleProfile = DEFAULT_STYLE_PROFILE,
    *,
    created_by: str = "",
    margins_inches: float = DEFAULT_MARGIN_INCHES,
    question_resets_section: bool = True,
) -> int:
    data = render_notes_docx(
        markup_text,
        profile,
        margins_inches=margins_inches,
        question_resets_section=question_resets_section,
    )
    with document_lock(doc_id):
        return store.create(doc_id, data, created_by=created_by).append_count


def append_to_master(
    store: MasterDocumentStore,
    doc_id: str,
    markup_text: str,
    profile: StyleProfile = DEFAULT_STYLE_PROFILE,
    *,
    appended_by: str = "",
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    margins_inches: float = DEFAULT_MARGIN_INCHES,
    question_resets_section: bool = True,
) -> int:
    """Append a rendered report to a stored master document.

    Returns the new append count. The stored document is only replaced once
    the merge has fully succeeded; on any failure it is left untouched.
    ``timeout`` (seconds) and ``cancel`` apply to the load and save legs.
    """
    deadline = time.monotonic() + timeout if timeout is not None else None
    with document_lock(doc_id):
        _check_deadline(doc_id, deadline, cancel, "load")
        try:
            state = store.load(doc_id, timeout=_remaining(deadline))
        except (OSError, TimeoutError) as exc:
            raise MasterAppendError(
                f"Could not load master document: {exc}", doc_id=doc_id
            ) from exc

        try:
            merged = append(
                state.data,
                markup_text,
                profile,
                margins_inches=margins_inches,
                question_resets_section=question_resets_section,
            )
        except FormatMismatch as exc:
            raise MasterAppendError(
                f"Master document is not a Word document: {exc}",
                doc_id=doc_id,
                existing_bytes=len(state.data),
            ) from exc

        _check_deadline(doc_id, deadline, cancel, "save", len(state.data), len(merged))
        try:
            return store.save(
                doc_id,
                merged,
                expected_count=state.append_count,
                appended_by=appended_by,
                timeout=_remaining(deadline),
            )
        except (OSError, TimeoutError) as exc:
            raise MasterAppendError(
                f"Could not save master document: {exc}",
                doc_id=doc_id,
                existing_bytes=len(state.data),
                new_bytes=len(merged),
            ) from exc


def _check_deadline(
    doc_id: str,
    deadline: float | None,
    cancel: threading.Event | None,
    leg: str,
    existing_bytes: int | None = None,
    new_bytes: int | None = None,
) -> None:
    if cancel is not None and cancel.is_set():
        raise AppendCancelled(f"Append to {doc_id} cancelled before {leg}")
    if deadline is not None and time.monotonic() >= deadline:
        raise MasterAppendError(
            f"Timed out before {leg}",
            doc_id=doc_id,
            existing_bytes=existing_bytes,
            new_bytes=new_bytes,
        )


@contextmanager
def _file_lock(path: Path, timeout: float | None = None) -> Iterator[None]:
    path.parent.mkdir(parents=True, exist_ok=True)
    wait = LOCK_WAIT_SECONDS if timeout is None else timeout
    deadline = time.monotonic() + wait
    while True:
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            break
        except FileExistsError:
            if time.monotonic() >= deadline:
                raise TimeoutError(f"Lock file still held after {wait:.1f}s: {path}")
            time.sleep(LOCK_POLL_SECONDS)
    try:
        with os.fdopen(fd, "w", encoding="ascii") as handle:
            handle.write(str(os.getpid()))
        yield
    finally:
        path.unlink(missing_ok=True)


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def _check_doc_id(doc_id: str) -> str:
    if not _DOC_ID_RE.match(doc_id or ""):
        raise ValueError(f"Invalid master document id: {doc_id!r}")
    return doc_id


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
