from __future__ import annotations

import csv
from datetime import date, datetime
from typing import IO, Any, Iterable, Iterator

from formbuilder.config import NOT_ANSWERED_TEXT
from formbuilder.models import FormSchema, Submission
from formbuilder.utils import to_iso


class _NotAnswered:
    """Marks a field the submission has no answer for, unlike an empty string."""

    _instance: _NotAnswered | None = None

    def __new__(cls) -> _NotAnswered:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_ANSWERED"

    def __bool__(self) -> bool:
        return False


NOT_ANSWERED = _NotAnswered()


def export_headers(schema: FormSchema) -> list[str]:
    return ["Submission ID", "Submitted At"] + [field.label or field.id for field in schema.fields]


def submission_row(schema: FormSchema, submission: Submission) -> tuple[Any, ...]:
    answers = submission.answer_map()
    values = []
    for field in schema.fields:
        value = answers.get(field.id)
        values.append(NOT_ANSWERED if value is None else value)
    return (submission.id, submission.submitted_at, *values)


def project_rows(schema: FormSchema, submissions: Iterable[Submission]) -> Iterator[tuple[Any, ...]]:
    for submission in submissions:
        yield submission_row(schema, submission)


def value_to_text(value: Any, not_answered_text: str = NOT_ANSWERED_TEXT) -> str:
    if value is NOT_ANSWERED:
        return not_answered_text
    if isinstance(value, (list, tuple)):
        return ", ".join(
            value_to_text(item, not_answered_text) for item in value if item is not None
        )
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def csv_headers_and_rows(
    schema: FormSchema,
    submissions: Iterable[Submission],
    not_answered_text: str = NOT_ANSWERED_TEXT,
) -> tuple[list[str], list[list[str]]]:
    headers = export_headers(schema)
    rows = [
        [value_to_text(value, not_answered_text) for value in row]
        for row in project_rows(schema, submissions)
    ]
    return headers, rows


def write_csv(
    schema: FormSchema,
    submissions: Iterable[Submission],
    fp: IO[str],
    delimiter: str = ",",
    not_answered_text: str = NOT_ANSWERED_TEXT,
) -> int:
    headers, rows = csv_headers_and_rows(schema, submissions, not_answered_text)
    writer = csv.writer(fp, delimiter=delimiter)
    writer.writerow(headers)
    writer.writerows(rows)
    return len(rows)
