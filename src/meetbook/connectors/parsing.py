"""Turn raw prompt text into typed arguments.

Blank input means "not supplied" and parses to None; the manager then
decides whether that is an error.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from meetbook.storage.codec import DATE_FORMAT

DAY_FORMAT = "%Y/%m/%d"

_ID_SEPARATORS = re.compile(r"[\s,;]+")


def blank_to_none(text: str | None) -> str | None:
    if text is None or not text.strip():
        return None
    return text


def parse_datetime(text: str | None) -> datetime | None:
    """Parse ``yyyy/MM/dd HH:mm:ss``."""
    text = blank_to_none(text)
    if text is None:
        return None
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT)
    except ValueError:
        raise ValueError(f"Date format incorrect: {text!r} (expected yyyy/MM/dd HH:mm:ss)") from None


def parse_day(text: str | None) -> date | None:
    """Parse ``yyyy/MM/dd``."""
    text = blank_to_none(text)
    if text is None:
        return None
    try:
        return datetime.strptime(text.strip(), DAY_FORMAT).date()
    except ValueError:
        raise ValueError(f"Date format incorrect: {text!r} (expected yyyy/MM/dd)") from None


def parse_id(text: str | None) -> int | None:
    text = blank_to_none(text)
    if text is None:
        return None
    try:
        return int(text.strip())
    except ValueError:
        raise ValueError(f"Not a number: {text!r}") from None


def parse_id_list(text: str | None) -> list[int] | None:
    """Parse ids separated by commas, semicolons and/or whitespace."""
    text = blank_to_none(text)
    if text is None:
        return None
    ids = []
    for token in _ID_SEPARATORS.split(text.strip()):
        if token:
            ids.append(parse_id(token))
    return ids
