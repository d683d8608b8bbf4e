from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

import orjson

from formbuilder.errors import SubmissionDocumentError
from formbuilder.models import Accepted, Answer, FormSchema, Submission
from formbuilder.utils import loads_json, new_ulid, now_utc, parse_dt, to_iso
from formbuilder.validator import answer_pairs


def parse_submission_document(document: Mapping[str, Any]) -> Submission:
    """Read a stored submission.

    Understands both ``answers``/``respondentId`` and the older
    ``responses``/``respondent`` spelling.
    """
    if not isinstance(document, Mapping):
        raise SubmissionDocumentError("submission must be an object")
    submitted_at = parse_dt(document.get("submittedAt", document.get("submitted_at")))
    if submitted_at is None:
        raise SubmissionDocumentError("submission needs a valid submittedAt timestamp")
    raw_answers = document.get("answers", document.get("responses"))
    respondent = document.get("respondentId", document.get("respondent"))
    return Submission(
        id=str(document.get("id", document.get("_id", ""))),
        form_id=str(document.get("formId", document.get("form", ""))),
        answers=tuple(Answer(field_id, value) for field_id, value in answer_pairs(raw_answers)),
        submitted_at=submitted_at,
        respondent_id=None if respondent in (None, "") else str(respondent),
    )


def load_submissions(source: Any) -> list[Submission]:
    if isinstance(source, (str, bytes)):
        try:
            source = loads_json(source) or []
        except orjson.JSONDecodeError:
            raise SubmissionDocumentError("submissions document is not valid JSON") from None
    if isinstance(source, Mapping):
        source = source.get("submissions", source.get("responses", []))
    if not isinstance(source, list):
        raise SubmissionDocumentError("expected a list of submissions")
    submissions: list[Submission] = []
    for index, item in enumerate(source):
        try:
            submissions.append(parse_submission_document(item))
        except SubmissionDocumentError as exc:
            raise SubmissionDocumentError(f"submission {index}: {exc}") from None
    return submissions


def build_submission(
    schema: FormSchema,
    result: Accepted,
    *,
    respondent_id: str | None = None,
    submitted_at: datetime | None = None,
    submission_id: str | None = None,
) -> Submission:
    if not isinstance(result, Accepted):
        raise TypeError("only an Accepted validation result can become a submission")
    return Submission(
        id=submission_id or new_ulid(),
        form_id=schema.id,
        answers=result.answers,
        submitted_at=submitted_at or now_utc(),
        respondent_id=respondent_id,
    )


def submission_to_document(submission: Submission) -> dict[str, Any]:
    document: dict[str, Any] = {
        "id": submission.id,
        "formId": submission.form_id,
        "answers": [answer.as_dict() for answer in submission.answers],
        "submittedAt": to_iso(submission.submitted_at),
    }
    if submission.respondent_id:
        document["respondentId"] = submission.respondent_id
    return document
