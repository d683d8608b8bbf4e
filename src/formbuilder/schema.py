from __future__ import annotations

import re
from typing import Any

import orjson
from jsonschema import Draft7Validator

from formbuilder.config import DEFAULT_SUBMIT_TEXT, FIELD_ID_PATTERN
from formbuilder.errors import FormSchemaError
from formbuilder.models import (
    ConditionalRule,
    Field,
    FormSchema,
    FormSettings,
    Option,
    RuleAction,
    ValidationKind,
)
from formbuilder.registry import FieldType, is_option_bounded
from formbuilder.utils import loads_json, parse_dt, to_iso

_NULLABLE_STRING = {"type": ["string", "null"]}
_NULLABLE_COUNT = {"type": ["integer", "null"], "minimum": 0}
_SCALAR = {"type": ["string", "number", "boolean"]}

FORM_DOCUMENT_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["fields"],
    "properties": {
        "id": {"type": ["string", "integer"]},
        "_id": {"type": ["string", "integer"]},
        "title": _NULLABLE_STRING,
        "description": _NULLABLE_STRING,
        "fields": {"type": "array", "items": {"$ref": "#/definitions/field"}},
        "settings": {"anyOf": [{"$ref": "#/definitions/settings"}, {"type": "null"}]},
    },
    "definitions": {
        "option": {
            "type": "object",
            "required": ["value"],
            "properties": {
                "value": {"type": ["string", "number"]},
                "label": _NULLABLE_STRING,
            },
        },
        "rule": {
            "type": "object",
            "properties": {
                "conditionFieldId": _NULLABLE_STRING,
                "conditionField": _NULLABLE_STRING,
                "conditionValue": {"type": ["string", "number", "boolean", "null"]},
                "action": {"enum": [action.value for action in RuleAction] + [None]},
            },
        },
        "field": {
            "type": "object",
            "required": ["id", "type", "label"],
            "properties": {
                "id": {"type": "string"},
                "type": {"enum": [field_type.value for field_type in FieldType]},
                "label": {"type": "string"},
                "placeholder": _NULLABLE_STRING,
                "description": _NULLABLE_STRING,
                "required": {"type": "boolean"},
                "validation": {"enum": [kind.value for kind in ValidationKind] + [None]},
                "validationPattern": _NULLABLE_STRING,
                "minLength": _NULLABLE_COUNT,
                "maxLength": _NULLABLE_COUNT,
                "options": {"type": "array", "items": {"$ref": "#/definitions/option"}},
                "defaultValue": {"anyOf": [_SCALAR, {"type": "null"}]},
                "conditionalLogic": {"anyOf": [{"$ref": "#/definitions/rule"}, {"type": "null"}]},
            },
        },
        "settings": {
            "type": "object",
            "properties": {
                "maxSubmissions": {"type": ["integer", "null"]},
                "expirationDate": _NULLABLE_STRING,
                "requireLogin": {"type": "boolean"},
                "shuffleFields": {"type": "boolean"},
                "submitButtonText": _NULLABLE_STRING,
                "allowEditAfterSubmit": {"type": "boolean"},
                "collectEmail": {"type": "boolean"},
                "enableProgressBar": {"type": "boolean"},
                "customThankYouMessage": _NULLABLE_STRING,
            },
        },
    },
}

_DOCUMENT_VALIDATOR = Draft7Validator(FORM_DOCUMENT_SCHEMA)


def _error_location(path: Any) -> str:
    parts = [str(part) for part in path]
    return "/".join(parts) if parts else "document"


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _build_rule(raw: dict[str, Any] | None) -> ConditionalRule | None:
    if not raw:
        return None
    target = str(raw.get("conditionFieldId") or raw.get("conditionField") or "").strip()
    if not target:
        return None
    value = raw.get("conditionValue")
    if isinstance(value, bool):
        value = "true" if value else "false"
    return ConditionalRule(
        condition_field_id=target,
        condition_value="" if value is None else str(value),
        action=RuleAction(raw.get("action") or RuleAction.SHOW.value),
    )


def _build_field(raw: dict[str, Any]) -> Field:
    options = tuple(
        Option(value=str(item["value"]), label=str(item.get("label") or item["value"]))
        for item in raw.get("options") or []
    )
    default_value = raw.get("defaultValue")
    return Field(
        id=raw["id"].strip(),
        type=FieldType(raw["type"]),
        label=raw["label"].strip(),
        required=bool(raw.get("required")),
        placeholder=_optional_text(raw.get("placeholder")),
        description=_optional_text(raw.get("description")),
        options=options,
        default_value=None if default_value is None else str(default_value),
        conditional_logic=_build_rule(raw.get("conditionalLogic")),
        validation=ValidationKind(raw.get("validation") or ValidationKind.NONE.value),
        validation_pattern=_optional_text(raw.get("validationPattern")),
        min_length=raw.get("minLength"),
        max_length=raw.get("maxLength"),
    )


def _build_settings(raw: dict[str, Any] | None, errors: list[str]) -> FormSettings:
    raw = raw or {}
    expiration_raw = raw.get("expirationDate")
    expiration_date = parse_dt(expiration_raw)
    if expiration_raw not in (None, "") and expiration_date is None:
        errors.append(f"settings/expirationDate: not a valid timestamp ({expiration_raw})")
    return FormSettings(
        max_submissions=raw.get("maxSubmissions"),
        expiration_date=expiration_date,
        require_login=bool(raw.get("requireLogin")),
        shuffle_fields=bool(raw.get("shuffleFields")),
        submit_button_text=_optional_text(raw.get("submitButtonText")) or DEFAULT_SUBMIT_TEXT,
        allow_edit_after_submit=bool(raw.get("allowEditAfterSubmit")),
        collect_email=bool(raw.get("collectEmail")),
        enable_progress_bar=bool(raw.get("enableProgressBar", True)),
        custom_thank_you_message=_optional_text(raw.get("customThankYouMessage")),
    )


def parse_form_document(document: Any) -> tuple[FormSchema | None, list[str]]:
    """Build a :class:`FormSchema` from a camelCase form document.

    Returns the schema (``None`` when the document shape is unusable) and the
    list of problems found, shape errors first, then authoring errors.
    """
    errors = [
        f"{_error_location(error.absolute_path)}: {error.message}"
        for error in sorted(
            _DOCUMENT_VALIDATOR.iter_errors(document),
            key=lambda err: [str(part) for part in err.absolute_path],
        )
    ]
    if errors:
        return None, errors

    form_id = document.get("id", document.get("_id", ""))
    settings = _build_settings(document.get("settings"), errors)
    schema = FormSchema(
        id=str(form_id),
        fields=tuple(_build_field(raw) for raw in document["fields"]),
        settings=settings,
        title=str(document.get("title") or ""),
        description=str(document.get("description") or ""),
    )
    errors.extend(check_form_schema(schema))
    return schema, errors


def load_form_schema(source: Any) -> FormSchema:
    if isinstance(source, (str, bytes)):
        try:
            source = loads_json(source)
        except orjson.JSONDecodeError:
            raise FormSchemaError(["Form document is not valid JSON"]) from None
    schema, errors = parse_form_document(source)
    if errors or schema is None:
        raise FormSchemaError(errors)
    return schema


def find_conditional_cycles(schema: FormSchema) -> list[list[str]]:
    fields = schema.field_map
    edges: dict[str, str] = {}
    for field_id, field in fields.items():
        rule = field.conditional_logic
        if rule and rule.condition_field_id in fields and rule.condition_field_id != field_id:
            edges[field_id] = rule.condition_field_id

    cycles: list[list[str]] = []
    reported: set[frozenset[str]] = set()
    done: set[str] = set()
    for start in fields:
        path: list[str] = []
        position: dict[str, int] = {}
        node = start
        while node in edges and node not in done and node not in position:
            position[node] = len(path)
            path.append(node)
            node = edges[node]
        if node in position:
            cycle = path[position[node]:]
            key = frozenset(cycle)
            if key not in reported:
                reported.add(key)
                cycles.append(cycle)
        done.update(path)
    return cycles


def check_form_schema(schema: FormSchema) -> list[str]:
    """Authoring-time checks for a schema before it is stored.

    The validator assumes a well-formed schema and never runs these itself.
    """
    errors: list[str] = []
    field_ids = {field.id for field in schema.fields}
    seen: set[str] = set()

    for index, field in enumerate(schema.fields, start=1):
        loc = f"field {index} ({field.id})"
        if not field.label.strip():
            errors.append(f"{loc}: label is required")
        if not FIELD_ID_PATTERN.match(field.id):
            errors.append(f"{loc}: id may only contain letters, digits, '_' and '-'")
        if field.id in seen:
            errors.append(f"{loc}: duplicate field id")
        seen.add(field.id)

        if is_option_bounded(field.type):
            if not field.options:
                errors.append(f"{loc}: {field.type.value} fields need at least one option")
            values = [option.value for option in field.options]
            duplicates = sorted({value for value in values if values.count(value) > 1})
            if duplicates:
                errors.append(f"{loc}: duplicate option values ({', '.join(duplicates)})")
        elif field.options:
            errors.append(f"{loc}: options are only allowed on dropdown, radio and checkbox fields")

        rule = field.conditional_logic
        if rule is not None:
            if rule.condition_field_id == field.id:
                errors.append(f"{loc}: conditional logic cannot reference the field itself")
            elif rule.condition_field_id not in field_ids:
                errors.append(
                    f"{loc}: conditional logic references unknown field {rule.condition_field_id}"
                )

        if field.validation is ValidationKind.CUSTOM:
            if not field.validation_pattern:
                errors.append(f"{loc}: custom validation needs a pattern")
            else:
                try:
                    re.compile(field.validation_pattern)
                except re.error as exc:
                    errors.append(f"{loc}: invalid validation pattern ({exc})")
        if (
            field.min_length is not None
            and field.max_length is not None
            and field.min_length > field.max_length
        ):
            errors.append(f"{loc}: minLength is greater than maxLength")

    for cycle in find_conditional_cycles(schema):
        errors.append(f"conditional logic forms a cycle: {' -> '.join(cycle + cycle[:1])}")

    if schema.settings.max_submissions is not None and schema.settings.max_submissions < 0:
        errors.append("settings/maxSubmissions: must not be negative")

    return errors


def _rule_to_document(rule: ConditionalRule | None) -> dict[str, Any] | None:
    if rule is None:
        return None
    return {
        "conditionFieldId": rule.condition_field_id,
        "conditionValue": rule.condition_value,
        "action": rule.action.value,
    }


def form_to_document(schema: FormSchema) -> dict[str, Any]:
    settings = schema.settings
    return {
        "id": schema.id,
        "title": schema.title,
        "description": schema.description,
        "fields": [
            {
                "id": field.id,
                "type": field.type.value,
                "label": field.label,
                "placeholder": field.placeholder,
                "description": field.description,
                "required": field.required,
                "validation": field.validation.value,
                "validationPattern": field.validation_pattern,
                "minLength": field.min_length,
                "maxLength": field.max_length,
                "options": [{"value": item.value, "label": item.label} for item in field.options],
                "defaultValue": field.default_value,
                "conditionalLogic": _rule_to_document(field.conditional_logic),
            }
            for field in schema.fields
        ],
        "settings": {
            "maxSubmissions": settings.max_submissions,
            "expirationDate": to_iso(settings.expiration_date) if settings.expiration_date else None,
            "requireLogin": settings.require_login,
            "shuffleFields": settings.shuffle_fields,
            "submitButtonText": settings.submit_button_text,
            "allowEditAfterSubmit": settings.allow_edit_after_submit,
            "collectEmail": settings.collect_email,
            "enableProgressBar": settings.enable_progress_bar,
            "customThankYouMessage": settings.custom_thank_you_message,
        },
    }
