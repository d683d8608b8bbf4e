from __future__ import annotations

import sys
from datetime import date, datetime, time

import pytest

from formbuilder.errors import CoercionError, ViolationReason
from formbuilder.registry import (
    FIELD_TYPES,
    Cardinality,
    FieldType,
    cardinality,
    coerce,
    is_empty,
    is_multi_valued,
    is_option_bounded,
)


def test_every_field_type_has_a_row():
    assert set(FIELD_TYPES) == set(FieldType)


@pytest.mark.parametrize(
    "field_type, expected",
    [
        (FieldType.TEXT, Cardinality.SCALAR),
        (FieldType.RATING, Cardinality.SCALAR),
        (FieldType.CHECKBOX, Cardinality.MULTI),
        (FieldType.DROPDOWN, Cardinality.ONE_OF_OPTIONS),
        (FieldType.RADIO, Cardinality.ONE_OF_OPTIONS),
    ],
)
def test_cardinality(field_type, expected):
    assert cardinality(field_type) is expected


def test_only_choice_types_are_option_bounded():
    bounded = {field_type for field_type in FieldType if is_option_bounded(field_type)}
    assert bounded == {FieldType.DROPDOWN, FieldType.RADIO, FieldType.CHECKBOX}
    assert is_option_bounded("checkbox")
    assert is_multi_valued(FieldType.CHECKBOX)
    assert not is_multi_valued(FieldType.DROPDOWN)


@pytest.mark.parametrize("value", [None, "", "   ", [], ()])
def test_is_empty(value):
    assert is_empty(value)


@pytest.mark.parametrize("value", [0, False, "x", ["a"]])
def test_is_not_empty(value):
    assert not is_empty(value)


@pytest.mark.parametrize(
    "raw, expected",
    [(3, 3), (2.5, 2.5), ("42", 42), (" -7 ", -7), ("1.25", 1.25), ("1e3", 1000.0)],
)
def test_number_coercion(raw, expected):
    assert coerce(FieldType.NUMBER, raw) == expected


@pytest.mark.parametrize(
    "raw", ["abc", "nan", "inf", float("inf"), True, [1], "1_000", "0x10", "\u0661\u0662", "1e999"]
)
def test_number_rejects(raw):
    with pytest.raises(CoercionError) as excinfo:
        coerce(FieldType.NUMBER, raw)
    assert excinfo.value.reason is ViolationReason.TYPE_MISMATCH


def test_number_with_too_many_digits_is_not_finite():
    with pytest.raises(CoercionError) as excinfo:
        coerce(FieldType.NUMBER, "9" * 5000 + ".5")
    assert excinfo.value.reason is ViolationReason.TYPE_MISMATCH


@pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits"), reason="int() has no digit limit before 3.11"
)
def test_integer_string_past_the_int_digit_limit():
    with pytest.raises(CoercionError) as excinfo:
        coerce(FieldType.NUMBER, "9" * 5000)
    assert excinfo.value.reason is ViolationReason.TYPE_MISMATCH


def test_email_is_loose_on_purpose():
    assert coerce(FieldType.EMAIL, " a@b.co ") == "a@b.co"
    assert coerce(FieldType.EMAIL, "weird+tag@sub.example.museum") == "weird+tag@sub.example.museum"


def test_email_without_domain_is_a_pattern_mismatch():
    with pytest.raises(CoercionError) as excinfo:
        coerce(FieldType.EMAIL, "someone@")
    assert excinfo.value.reason is ViolationReason.PATTERN_MISMATCH


def test_email_non_string_is_a_type_mismatch():
    with pytest.raises(CoercionError) as excinfo:
        coerce(FieldType.EMAIL, 12)
    assert excinfo.value.reason is ViolationReason.TYPE_MISMATCH


def test_text_stringifies_numbers_but_not_bools():
    assert coerce(FieldType.TEXT, 5) == "5"
    with pytest.raises(CoercionError):
        coerce(FieldType.TEXT, True)
    with pytest.raises(CoercionError):
        coerce(FieldType.TEXTAREA, {"a": 1})


def test_date_and_time_normalize_to_iso():
    assert coerce(FieldType.DATE, "2024-02-29") == "2024-02-29"
    assert coerce(FieldType.DATE, date(2024, 1, 2)) == "2024-01-02"
    assert coerce(FieldType.DATE, datetime(2024, 1, 2, 10, 30)) == "2024-01-02"
    assert coerce(FieldType.TIME, "09:30") == "09:30:00"
    assert coerce(FieldType.TIME, time(18, 5, 7)) == "18:05:07"
    with pytest.raises(CoercionError):
        coerce(FieldType.DATE, "2024-02-30")
    with pytest.raises(CoercionError):
        coerce(FieldType.TIME, "25:00")


def test_rating_range():
    assert coerce(FieldType.RATING, 5) == 5
    assert coerce(FieldType.RATING, "3") == 3
    assert coerce(FieldType.RATING, 4.0) == 4
    for raw in (0, 6, 2.5, "x", True, "\u0663", "9" * 5000):
        with pytest.raises(CoercionError):
            coerce(FieldType.RATING, raw)


def test_checkbox_wraps_scalars_and_drops_duplicates():
    assert coerce(FieldType.CHECKBOX, "a") == ["a"]
    assert coerce(FieldType.CHECKBOX, ["a", "b", "a", ""]) == ["a", "b"]
    assert coerce(FieldType.CHECKBOX, [1, 2]) == ["1", "2"]


@pytest.mark.parametrize(
    "field_type, raw",
    [
        (FieldType.TEXT, "hello"),
        (FieldType.NUMBER, "3.50"),
        (FieldType.NUMBER, "12"),
        (FieldType.EMAIL, " x@y.io"),
        (FieldType.PHONE, 5551234),
        (FieldType.DATE, datetime(2023, 12, 31, 23, 59)),
        (FieldType.TIME, "07:15"),
        (FieldType.DROPDOWN, 2),
        (FieldType.RADIO, "b"),
        (FieldType.CHECKBOX, ["b", "a", "b"]),
        (FieldType.FILE, "upload-1"),
        (FieldType.RATING, "4"),
    ],
)
def test_coercion_is_idempotent(field_type, raw):
    once = coerce(field_type, raw)
    assert coerce(field_type, once) == once
