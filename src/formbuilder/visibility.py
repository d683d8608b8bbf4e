"""Conditional visibility.

A field's rule looks at exactly one other answer. Evaluation is a single pass
over the field list: whether the referenced field is itself visible does not
matter, so chains are never followed and cyclic rules cannot recurse.
"""
from __future__ import annotations

from typing import Any, Mapping

from formbuilder.models import Field, FormSchema, RuleAction
from formbuilder.registry import is_empty


def answer_matches(value: Any, expected: str) -> bool:
    if is_empty(value):
        return False
    if isinstance(value, (list, tuple)):
        return any(str(item) == expected for item in value)
    if isinstance(value, bool):
        return str(value).lower() == expected.lower()
    return str(value) == expected


def is_field_active(field: Field, answers: Mapping[str, Any]) -> bool:
    rule = field.conditional_logic
    if rule is None:
        return True
    matched = answer_matches(answers.get(rule.condition_field_id), rule.condition_value)
    if rule.action is RuleAction.SHOW:
        return matched
    return not matched


def active_fields(schema: FormSchema, answers: Mapping[str, Any]) -> set[str]:
    return {field.id for field in schema.fields if is_field_active(field, answers)}
