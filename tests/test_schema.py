from __future__ import annotations

from datetime import datetime, timezone

import orjson
import pytest

from conftest import make_schema, options
from formbuilder.errors import FormSchemaError
from formbuilder.models import ConditionalRule, Field, RuleAction, ValidationKind
from formbuilder.registry import FieldType
from formbuilder.schema import (
    check_form_schema,
    find_conditional_cycles,
    form_to_document,
    load_form_schema,
    parse_form_document,
)


def test_parse_survey_document(survey_document):
    schema, errors = parse_form_document(survey_document)
    assert errors == []
    assert schema.id == "form-1"
    assert schema.title == "Team survey"
    assert [field.id for field in schema.fields] == ["name", "email", "likes", "why", "colors", "score"]
    assert schema.field_map is schema.field_map
    likes = schema.get_field("likes")
    assert likes.type is FieldType.RADIO
    assert likes.option_values == {"yes", "no"}
    why = schema.get_field("why")
    assert why.conditional_logic == ConditionalRule("likes", "yes", RuleAction.SHOW)
    assert schema.settings.max_submissions == 10
    assert schema.settings.submit_button_text == "Send"
    assert schema.settings.enable_progress_bar is True


def test_shape_errors_are_reported_by_path(survey_document):
    survey_document["fields"][0]["type"] = "signature"
    del survey_document["fields"][1]["label"]
    schema, errors = parse_form_document(survey_document)
    assert schema is None
    assert len(errors) == 2
    assert errors[0].startswith("fields/0/type:")
    assert errors[1].startswith("fields/1:")


def test_legacy_rule_spelling_and_empty_rule():
    schema = load_form_schema(
        {
            "_id": "abc",
            "fields": [
                {"id": "a", "type": "text", "label": "A", "conditionalLogic": {}},
                {
                    "id": "b",
                    "type": "text",
                    "label": "B",
                    "conditionalLogic": {"conditionField": "a", "conditionValue": 1, "action": "hide"},
                },
            ],
        }
    )
    assert schema.id == "abc"
    assert schema.get_field("a").conditional_logic is None
    assert schema.get_field("b").conditional_logic == ConditionalRule("a", "1", RuleAction.HIDE)


def test_load_from_json_text(survey_document):
    schema = load_form_schema(orjson.dumps(survey_document))
    assert len(schema.fields) == 6
    with pytest.raises(FormSchemaError) as excinfo:
        load_form_schema("{not json")
    assert excinfo.value.errors == ["Form document is not valid JSON"]


def test_expiration_date_is_parsed():
    schema = load_form_schema(
        {"id": "f", "fields": [], "settings": {"expirationDate": "2024-06-01T00:00:00Z"}}
    )
    assert schema.settings.expiration_date == datetime(2024, 6, 1, tzinfo=timezone.utc)
    with pytest.raises(FormSchemaError):
        load_form_schema({"id": "f", "fields": [], "settings": {"expirationDate": "soon"}})


def test_authoring_errors():
    schema = make_schema(
        Field(id="a", type=FieldType.DROPDOWN, label="A"),
        Field(id="a", type=FieldType.TEXT, label=" "),
        Field(id="c", type=FieldType.TEXT, label="C", options=options("x")),
        Field(id="d", type=FieldType.RADIO, label="D", options=options("x", "x")),
        Field(id="e", type=FieldType.TEXT, label="E", conditional_logic=ConditionalRule("e", "1")),
        Field(id="f", type=FieldType.TEXT, label="F", conditional_logic=ConditionalRule("zz", "1")),
        Field(id="g", type=FieldType.TEXT, label="G", validation=ValidationKind.CUSTOM, validation_pattern="(["),
        Field(id="h", type=FieldType.TEXT, label="H", min_length=5, max_length=2),
        Field(id="bad id", type=FieldType.TEXT, label="I"),
        max_submissions=-1,
    )
    errors = "\n".join(check_form_schema(schema))
    assert "dropdown fields need at least one option" in errors
    assert "label is required" in errors
    assert "duplicate field id" in errors
    assert "options are only allowed" in errors
    assert "duplicate option values (x)" in errors
    assert "cannot reference the field itself" in errors
    assert "references unknown field zz" in errors
    assert "invalid validation pattern" in errors
    assert "minLength is greater than maxLength" in errors
    assert "id may only contain" in errors
    assert "maxSubmissions: must not be negative" in errors


def test_cycles_are_detected_once():
    def rule_on(target):
        return ConditionalRule(target, "x")

    schema = make_schema(
        Field(id="a", type=FieldType.TEXT, label="A", conditional_logic=rule_on("b")),
        Field(id="b", type=FieldType.TEXT, label="B", conditional_logic=rule_on("c")),
        Field(id="c", type=FieldType.TEXT, label="C", conditional_logic=rule_on("a")),
        Field(id="d", type=FieldType.TEXT, label="D", conditional_logic=rule_on("a")),
    )
    cycles = find_conditional_cycles(schema)
    assert len(cycles) == 1
    assert set(cycles[0]) == {"a", "b", "c"}
    assert any("forms a cycle" in message for message in check_form_schema(schema))


def test_chains_without_cycles_pass(survey_document):
    schema = load_form_schema(survey_document)
    assert find_conditional_cycles(schema) == []
    assert check_form_schema(schema) == []


def test_document_round_trip(survey_document):
    schema = load_form_schema(survey_document)
    assert load_form_schema(form_to_document(schema)) == schema
