from __future__ import annotations


class NotesOpsError(Exception):
    """Base class for errors raised by notes_ops."""


class FormatMismatch(NotesOpsError):
    def __init__(self, message: str, *, byte_length: int | None = None) -> None:
        super().__init__(message)
        self.byte_length = byte_length


class AppendCancelled(NotesOpsError):
    pass


class StaleMasterDocument(NotesOpsError):
    def __init__(self, doc_id: str, expected_count: int, actual_count: int) -> None:
        super().__init__(
            f"Master document {doc_id} changed during append "
            f"(expected append_count={expected_count}, found {actual_count})"
        )
        self.doc_id = doc_id
        self.expected_count = expected_count
        self.actual_count = actual_count


class MasterAppendError(NotesOpsError):
    """Append to a master document failed; the stored document is unchanged."""

    def __init__(
        self,
        message: str,
        *,
        doc_id: str,
        existing_bytes: int | None = None,
        new_bytes: int | None = None,
    ) -> None:
        details = [f"doc_id={doc_id}"]
        if existing_bytes is not None:
            details.append(f"existing_bytes={existing_bytes}")
        if new_bytes is not None:
            details.append(f"new_bytes={new_bytes}")
        super().__init__(f"{message} ({', '.join(details)})")
        self.doc_id = doc_id
        self.existing_bytes = existing_bytes
        self.new_bytes = new_bytes
