from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from formbuilder.models import Answer, Field, FormSchema, FormSettings, Option, Submission
from formbuilder.registry import FieldType

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def options(*values: str) -> tuple[Option, ...]:
    return tuple(Option(value=value, label=value.upper()) for value in values)


def make_schema(*fields: Field, **settings: Any) -> FormSchema:
    return FormSchema(id="form-1", fields=tuple(fields), settings=FormSettings(**settings))


def make_submission(
    submission_id: str, answers: dict[str, Any], submitted_at: datetime = NOW
) -> Submission:
    return Submission(
        id=submission_id,
        form_id="form-1",
        answers=tuple(Answer(key, value) for key, value in answers.items()),
        submitted_at=submitted_at,
    )


@pytest.fixture
def survey_document() -> dict[str, Any]:
    return {
        "id": "form-1",
        "title": "Team survey",
        "fields": [
            {"id": "name", "type": "text", "label": "Name", "required": True},
            {"id": "email", "type": "email", "label": "Email"},
            {
                "id": "likes",
                "type": "radio",
                "label": "Do you like it?",
                "required": True,
                "options": [{"value": "yes", "label": "Yes"}, {"value": "no", "label": "No"}],
            },
            {
                "id": "why",
                "type": "textarea",
                "label": "Why?",
                "required": True,
                "conditionalLogic": {
                    "conditionFieldId": "likes",
                    "conditionValue": "yes",
                    "action": "show",
                },
            },
            {
                "id": "colors",
                "type": "checkbox",
                "label": "Colors",
                "options": [
                    {"value": "red", "label": "Red"},
                    {"value": "blue", "label": "Blue"},
                ],
            },
            {"id": "score", "type": "rating", "label": "Score"},
        ],
        "settings": {"maxSubmissions": 10, "submitButtonText": "Send"},
    }


@pytest.fixture
def choice_field() -> Field:
    return Field(id="q1", type=FieldType.DROPDOWN, label="Pick", options=options("a", "b"))
