"""Submission validation.

``validate`` checks a candidate answer set against a form schema and returns
either :class:`Accepted` with normalized answers or :class:`Rejected` with the
violations found. It never raises for bad input and never touches storage:
persisting the submission and bumping the response count are up to the
caller once it holds an ``Accepted`` result.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Iterable, Mapping

from formbuilder.config import EMAIL_PATTERN, PHONE_PATTERN, URL_PATTERN
from formbuilder.errors import CoercionError, ViolationReason
from formbuilder.models import (
    Accepted,
    Answer,
    Field,
    FormSchema,
    FormSettings,
    Rejected,
    ValidationKind,
    ValidationResult,
    Violation,
)
from formbuilder.registry import coerce, is_empty, is_multi_valued, is_option_bounded
from formbuilder.utils import ensure_aware, now_utc
from formbuilder.visibility import active_fields

logger = logging.getLogger(__name__)

RawAnswers = Mapping[str, Any] | Iterable[Any] | None

_CHECK_ORDER = {
    ViolationReason.FORM_CLOSED: 0,
    ViolationReason.DUPLICATE_ANSWER: 1,
    ViolationReason.UNKNOWN_FIELD: 1,
    ViolationReason.MISSING_REQUIRED: 2,
    ViolationReason.TYPE_MISMATCH: 3,
    ViolationReason.PATTERN_MISMATCH: 3,
}


def answer_pairs(raw_answers: RawAnswers) -> list[tuple[str, Any]]:
    """Flatten the accepted input shapes into ``(field_id, value)`` pairs, duplicates kept."""
    if raw_answers is None:
        return []
    if isinstance(raw_answers, Mapping):
        return [(str(key), value) for key, value in raw_answers.items()]
    if isinstance(raw_answers, (str, bytes)) or not isinstance(raw_answers, Iterable):
        return [("", raw_answers)]
    pairs: list[tuple[str, Any]] = []
    for item in raw_answers:
        if isinstance(item, Answer):
            pairs.append((item.field_id, item.value))
        elif isinstance(item, Mapping):
            field_id = item.get("fieldId", item.get("field_id"))
            pairs.append(("" if field_id is None else str(field_id), item.get("value")))
        elif isinstance(item, (str, bytes)):
            pairs.append(("", item))
        else:
            try:
                field_id, value = item
            except (TypeError, ValueError):
                pairs.append(("", item))
                continue
            pairs.append((str(field_id), value))
    return pairs


def form_closed_violation(
    settings: FormSettings, now: datetime, submissions_so_far: int
) -> Violation | None:
    if settings.expiration_date is not None and ensure_aware(now) > ensure_aware(
        settings.expiration_date
    ):
        return Violation(
            None, ViolationReason.FORM_CLOSED, "This form is no longer accepting responses"
        )
    if settings.max_submissions is not None and submissions_so_far >= settings.max_submissions:
        return Violation(None, ViolationReason.FORM_CLOSED, "Maximum number of submissions reached")
    return None


def _option_problem(field: Field, value: Any) -> str | None:
    allowed = field.option_values
    values = value if isinstance(value, list) else [value]
    invalid = [item for item in values if item not in allowed]
    if invalid:
        return f'Invalid option for field "{field.label}": {", ".join(map(str, invalid))}'
    return None


def _pattern_problem(field: Field, value: str) -> str | None:
    if field.min_length is not None and len(value) < field.min_length:
        return f'Field "{field.label}" must be at least {field.min_length} characters'
    if field.max_length is not None and len(value) > field.max_length:
        return f'Field "{field.label}" must be at most {field.max_length} characters'

    kind = field.validation
    if kind is ValidationKind.EMAIL and not EMAIL_PATTERN.search(value):
        return f'Invalid email format for field "{field.label}"'
    if kind is ValidationKind.PHONE and not PHONE_PATTERN.match(value):
        return f'Invalid phone number for field "{field.label}"'
    if kind is ValidationKind.URL and not URL_PATTERN.match(value):
        return f'Invalid URL for field "{field.label}"'
    if kind is ValidationKind.CUSTOM and field.validation_pattern:
        try:
            matched = re.fullmatch(field.validation_pattern, value) is not None
        except re.error:
            logger.warning(
                "Skipping invalid validation pattern on field %s: %r",
                field.id,
                field.validation_pattern,
            )
            return None
        if not matched:
            return f'Field "{field.label}" does not match the required format'
    return None


def _empty_value(field: Field, value: Any) -> Any:
    if is_multi_valued(field.type):
        return []
    if isinstance(value, str):
        return ""
    return None


def validate(
    schema: FormSchema,
    raw_answers: RawAnswers,
    now: datetime | None = None,
    submissions_so_far: int = 0,
    *,
    collect_all: bool = True,
) -> ValidationResult:
    closed = form_closed_violation(schema.settings, now or now_utc(), submissions_so_far)
    if closed is not None:
        logger.debug("Form %s is closed: %s", schema.id, closed.message)
        return Rejected((closed,))

    fields = schema.field_map
    violations: list[Violation] = []
    answers: dict[str, Any] = {}
    seen: set[str] = set()

    for field_id, value in answer_pairs(raw_answers):
        if field_id in seen:
            violations.append(
                Violation(
                    field_id,
                    ViolationReason.DUPLICATE_ANSWER,
                    f"Field ID {field_id} answered more than once",
                )
            )
            continue
        seen.add(field_id)
        if field_id not in fields:
            violations.append(
                Violation(field_id, ViolationReason.UNKNOWN_FIELD, f"Invalid field ID: {field_id}")
            )
            continue
        answers[field_id] = value

    active = active_fields(schema, answers)
    normalized: list[Answer] = []

    for field in fields.values():
        if field.id not in active:
            continue
        value = answers.get(field.id)

        if not is_empty(value):
            try:
                value = coerce(field.type, value)
            except CoercionError as exc:
                violations.append(
                    Violation(field.id, exc.reason, f'Invalid value for field "{field.label}": {exc}')
                )
                continue

        if is_empty(value):
            if field.required:
                violations.append(
                    Violation(
                        field.id,
                        ViolationReason.MISSING_REQUIRED,
                        f'Field "{field.label}" is required',
                    )
                )
            elif field.id in answers:
                normalized.append(Answer(field.id, _empty_value(field, value)))
            continue

        if is_option_bounded(field.type):
            problem = _option_problem(field, value)
            if problem:
                violations.append(Violation(field.id, ViolationReason.TYPE_MISMATCH, problem))
                continue

        if isinstance(value, str):
            problem = _pattern_problem(field, value)
            if problem:
                violations.append(Violation(field.id, ViolationReason.PATTERN_MISMATCH, problem))
                continue

        normalized.append(Answer(field.id, value))

    if violations:
        violations.sort(key=lambda item: _CHECK_ORDER[item.reason])
        if not collect_all:
            violations = violations[:1]
        logger.debug(
            "Submission for form %s rejected with %d violation(s)", schema.id, len(violations)
        )
        return Rejected(tuple(violations))
    return Accepted(tuple(normalized))
