from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from datetime import date, datetime
from enum import Enum
from functools import cached_property
from typing import Any, Union

from formbuilder.config import DEFAULT_SUBMIT_TEXT
from formbuilder.errors import ViolationReason
from formbuilder.registry import FieldType


class RuleAction(str, Enum):
    SHOW = "show"
    HIDE = "hide"


class ValidationKind(str, Enum):
    NONE = "none"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Option:
    value: str
    label: str


@dataclass(frozen=True)
class ConditionalRule:
    condition_field_id: str
    condition_value: str
    action: RuleAction = RuleAction.SHOW


@dataclass(frozen=True)
class Field:
    id: str
    type: FieldType
    label: str
    required: bool = False
    placeholder: str | None = None
    description: str | None = None
    options: tuple[Option, ...] = ()
    default_value: str | None = None
    conditional_logic: ConditionalRule | None = None
    validation: ValidationKind = ValidationKind.NONE
    validation_pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None

    @property
    def option_values(self) -> set[str]:
        return {option.value for option in self.options}


@dataclass(frozen=True)
class FormSettings:
    max_submissions: int | None = None
    expiration_date: datetime | None = None
    require_login: bool = False
    shuffle_fields: bool = False
    submit_button_text: str = DEFAULT_SUBMIT_TEXT
    allow_edit_after_submit: bool = False
    collect_email: bool = False
    enable_progress_bar: bool = True
    custom_thank_you_message: str | None = None


@dataclass(frozen=True)
class FormSchema:
    id: str
    fields: tuple[Field, ...]
    settings: FormSettings = dc_field(default_factory=FormSettings)
    title: str = ""
    description: str = ""

    @cached_property
    def field_map(self) -> dict[str, Field]:
        mapping: dict[str, Field] = {}
        for item in self.fields:
            mapping.setdefault(item.id, item)
        return mapping

    def get_field(self, field_id: str) -> Field | None:
        return self.field_map.get(field_id)


@dataclass(frozen=True)
class Answer:
    field_id: str
    value: Any

    def as_dict(self) -> dict[str, Any]:
        return {"fieldId": self.field_id, "value": self.value}


@dataclass(frozen=True)
class Submission:
    id: str
    form_id: str
    answers: tuple[Answer, ...]
    submitted_at: datetime
    respondent_id: str | None = None

    def answer_map(self) -> dict[str, Any]:
        mapping: dict[str, Any] = {}
        for answer in self.answers:
            mapping.setdefault(answer.field_id, answer.value)
        return mapping


@dataclass(frozen=True)
class Violation:
    field_id: str | None
    reason: ViolationReason
    message: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {"fieldId": self.field_id, "reason": self.reason.value, "message": self.message}


@dataclass(frozen=True)
class Accepted:
    answers: tuple[Answer, ...]

    accepted = True

    def answer_map(self) -> dict[str, Any]:
        return {answer.field_id: answer.value for answer in self.answers}

    def as_dict(self) -> dict[str, Any]:
        return {"status": "accepted", "answers": [answer.as_dict() for answer in self.answers]}


@dataclass(frozen=True)
class Rejected:
    violations: tuple[Violation, ...]

    accepted = False

    def reasons_for(self, field_id: str | None) -> list[ViolationReason]:
        return [item.reason for item in self.violations if item.field_id == field_id]

    def as_dict(self) -> dict[str, Any]:
        return {"status": "rejected", "violations": [item.as_dict() for item in self.violations]}


ValidationResult = Union[Accepted, Rejected]


@dataclass(frozen=True)
class DateCount:
    date: date
    count: int


@dataclass(frozen=True)
class FieldAnalytics:
    field_id: str
    label: str
    type: FieldType
    total_responses: int
    value_counts: dict[str, int]

    def as_dict(self) -> dict[str, Any]:
        return {
            "fieldLabel": self.label,
            "type": FieldType(self.type).value,
            "totalResponses": self.total_responses,
            "valueCounts": dict(self.value_counts),
        }


@dataclass(frozen=True)
class AnalyticsReport:
    total_responses: int
    responses_by_date: tuple[DateCount, ...]
    field_analytics: dict[str, FieldAnalytics]

    def as_dict(self) -> dict[str, Any]:
        return {
            "totalResponses": self.total_responses,
            "responsesByDate": [
                {"date": item.date.isoformat(), "count": item.count}
                for item in self.responses_by_date
            ],
            "fieldAnalytics": {
                field_id: entry.as_dict() for field_id, entry in self.field_analytics.items()
            },
        }

