from __future__ import annotations

from formbuilder.aggregate import aggregate
from formbuilder.models import (
    Accepted,
    AnalyticsReport,
    Answer,
    ConditionalRule,
    Field,
    FormSchema,
    FormSettings,
    Option,
    Rejected,
    RuleAction,
    Submission,
    ValidationResult,
    Violation,
)
from formbuilder.errors import ViolationReason
from formbuilder.registry import FieldType
from formbuilder.schema import check_form_schema, load_form_schema
from formbuilder.validator import validate
from formbuilder.visibility import active_fields

__version__ = "0.1.0"

__all__ = [
    "Accepted",
    "AnalyticsReport",
    "Answer",
    "ConditionalRule",
    "Field",
    "FieldType",
    "FormSchema",
    "FormSettings",
    "Option",
    "Rejected",
    "RuleAction",
    "Submission",
    "ValidationResult",
    "Violation",
    "ViolationReason",
    "active_fields",
    "aggregate",
    "check_form_schema",
    "load_form_schema",
    "validate",
]
