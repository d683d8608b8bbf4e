from __future__ import annotations

from enum import Enum


class ViolationReason(str, Enum):
    MISSING_REQUIRED = "missing_required"
    UNKNOWN_FIELD = "unknown_field"
    DUPLICATE_ANSWER = "duplicate_answer"
    TYPE_MISMATCH = "type_mismatch"
    PATTERN_MISMATCH = "pattern_mismatch"
    FORM_CLOSED = "form_closed"


class CoercionError(ValueError):
    def __init__(self, message: str, reason: ViolationReason = ViolationReason.TYPE_MISMATCH) -> None:
        super().__init__(message)
        self.reason = reason


class FormSchemaError(ValueError):
    """Raised when a form document cannot be turned into a usable schema."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "invalid form document")
        self.errors = errors


class SubmissionDocumentError(ValueError):
    pass
