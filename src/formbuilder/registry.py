"""Field type registry.

Every field type is one row in ``FIELD_TYPES``: its value cardinality, whether
answers are bounded by the field's option list, and the coercer that turns a
raw answer into its normalized form. The functions below are pure lookups on
that table.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable, NamedTuple

from formbuilder.config import EMAIL_PATTERN, RATING_MAX, RATING_MIN
from formbuilder.errors import CoercionError, ViolationReason

_INT_PATTERN = re.compile(r"^[+-]?\d+$", re.ASCII)
_DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    TIME = "time"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"
    RATING = "rating"


class Cardinality(str, Enum):
    SCALAR = "scalar"
    MULTI = "multi"
    ONE_OF_OPTIONS = "one_of_options"


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _type_name(raw: Any) -> str:
    return type(raw).__name__


def _coerce_string(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        raise CoercionError(f"expected a string, got {_type_name(raw)}")
    if isinstance(raw, (int, float)):
        return str(raw)
    raise CoercionError(f"expected a string, got {_type_name(raw)}")


def _coerce_number(raw: Any) -> int | float:
    if isinstance(raw, bool):
        raise CoercionError("expected a number, got bool")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise CoercionError("number must be finite")
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if not _DECIMAL_PATTERN.match(text):
            raise CoercionError(f"not a number: {raw!r}")
        if _INT_PATTERN.match(text):
            try:
                return int(text)
            except ValueError:
                # too many digits for int(); float() turns them into inf
                pass
        value = float(text)
        if not math.isfinite(value):
            raise CoercionError("number must be finite")
        return value
    raise CoercionError(f"expected a number, got {_type_name(raw)}")


def _coerce_email(raw: Any) -> str:
    if not isinstance(raw, str):
        raise CoercionError(f"expected an email address, got {_type_name(raw)}")
    text = raw.strip()
    if not EMAIL_PATTERN.search(text):
        raise CoercionError(f"not an email address: {raw!r}", ViolationReason.PATTERN_MISMATCH)
    return text


def _coerce_date(raw: Any) -> str:
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    if isinstance(raw, str):
        try:
            return date.fromisoformat(raw.strip()).isoformat()
        except ValueError:
            raise CoercionError(f"not a date (YYYY-MM-DD): {raw!r}") from None
    raise CoercionError(f"expected a date, got {_type_name(raw)}")


def _coerce_time(raw: Any) -> str:
    if isinstance(raw, datetime):
        raw = raw.time()
    if isinstance(raw, time):
        return raw.isoformat(timespec="seconds")
    if isinstance(raw, str):
        try:
            return time.fromisoformat(raw.strip()).isoformat(timespec="seconds")
        except ValueError:
            raise CoercionError(f"not a time (HH:MM): {raw!r}") from None
    raise CoercionError(f"expected a time, got {_type_name(raw)}")


def _coerce_rating(raw: Any) -> int:
    if isinstance(raw, bool):
        raise CoercionError("expected a rating, got bool")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    elif isinstance(raw, str) and _INT_PATTERN.match(raw.strip()):
        try:
            raw = int(raw.strip())
        except ValueError:
            raise CoercionError(f"rating must be between {RATING_MIN} and {RATING_MAX}") from None
    if not isinstance(raw, int):
        raise CoercionError(f"expected a whole-number rating, got {raw!r}")
    if not RATING_MIN <= raw <= RATING_MAX:
        raise CoercionError(f"rating must be between {RATING_MIN} and {RATING_MAX}")
    return raw


def _coerce_multi(raw: Any) -> list[str]:
    items = list(raw) if isinstance(raw, (list, tuple)) else [raw]
    result: list[str] = []
    for item in items:
        if item is None or item == "":
            continue
        value = _coerce_string(item)
        if value not in result:
            result.append(value)
    return result


class FieldTypeSpec(NamedTuple):
    cardinality: Cardinality
    option_bounded: bool
    coercer: Callable[[Any], Any]


FIELD_TYPES: dict[FieldType, FieldTypeSpec] = {
    FieldType.TEXT: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_string),
    FieldType.TEXTAREA: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_string),
    FieldType.NUMBER: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_number),
    FieldType.EMAIL: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_email),
    FieldType.PHONE: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_string),
    FieldType.DATE: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_date),
    FieldType.TIME: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_time),
    FieldType.DROPDOWN: FieldTypeSpec(Cardinality.ONE_OF_OPTIONS, True, _coerce_string),
    FieldType.CHECKBOX: FieldTypeSpec(Cardinality.MULTI, True, _coerce_multi),
    FieldType.RADIO: FieldTypeSpec(Cardinality.ONE_OF_OPTIONS, True, _coerce_string),
    FieldType.FILE: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_string),
    FieldType.RATING: FieldTypeSpec(Cardinality.SCALAR, False, _coerce_rating),
}


def cardinality(field_type: FieldType | str) -> Cardinality:
    return FIELD_TYPES[FieldType(field_type)].cardinality


def is_option_bounded(field_type: FieldType | str) -> bool:
    return FIELD_TYPES[FieldType(field_type)].option_bounded


def is_multi_valued(field_type: FieldType | str) -> bool:
    return cardinality(field_type) is Cardinality.MULTI


def coerce(field_type: FieldType | str, raw: Any) -> Any:
    """Normalize ``raw`` for ``field_type`` or raise :class:`CoercionError`."""
    return FIELD_TYPES[FieldType(field_type)].coercer(raw)
