from __future__ import annotations

import os
import re

FIELD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

RATING_MIN = 1
RATING_MAX = 5

DEFAULT_SUBMIT_TEXT = "Submit"
NOT_ANSWERED_TEXT = "Not answered"

# Loose on purpose: "something@something.something", not RFC 5322.
EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9 ().-]{5,}[0-9]$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)

_TRUE_VALUES = {"1", "true", "on", "yes"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


class Settings:
    def __init__(self) -> None:
        self.timezone = os.getenv("FORMBUILDER_TIMEZONE", "UTC").strip() or "UTC"
        self.not_answered_text = os.getenv("FORMBUILDER_NOT_ANSWERED", NOT_ANSWERED_TEXT)
        self.collect_all = _env_bool("FORMBUILDER_COLLECT_ALL", True)
        self.log_level = os.getenv("FORMBUILDER_LOG_LEVEL", "WARNING").upper()
