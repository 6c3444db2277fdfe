"""
Timeframe syntax per timeline mode.

Validates period strings before they are committed and composes them from
structured fields (day, month, year, hour, minute, second), so staged edits
can be held as plain values until the caller confirms them.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

from timeline_builder.core.errors import PeriodValidationError
from timeline_builder.core.models import TimeframeMode

PERIOD_PATTERNS: Dict[TimeframeMode, re.Pattern] = {
    TimeframeMode.DATE: re.compile(r"^\d{2}/\d{2}/\d{4,}$"),
    TimeframeMode.DATE_MY: re.compile(r"^\d{2}/\d{4,}$"),
    TimeframeMode.DATETIME: re.compile(r"^\d{2}/\d{2}/\d{4,} \d{2}:\d{2}$"),
    TimeframeMode.HOUR: re.compile(r"^\d{2}:\d{2}:\d{2}$"),
    TimeframeMode.HOUR2: re.compile(r"^\d{2}:\d{2}$"),
}

FORMAT_EXAMPLES: Dict[TimeframeMode, str] = {
    TimeframeMode.DATE: "DD/MM/YYYY (e.g. 04/02/3520)",
    TimeframeMode.DATE_MY: "MM/YYYY (e.g. 05/1920)",
    TimeframeMode.DATETIME: "DD/MM/YYYY HH:MM (e.g. 31/12/1999 23:59)",
    TimeframeMode.HOUR: "HH:MM:SS (e.g. 22:33:49)",
    TimeframeMode.HOUR2: "HH:MM (e.g. 12:25)",
}


def is_valid_period(mode: TimeframeMode, value: str) -> bool:
    """Free text and empty values always pass."""
    value = (value or "").strip()
    pattern = PERIOD_PATTERNS.get(mode)
    if not value or pattern is None:
        return True
    return bool(pattern.match(value))


def validate_period(mode: TimeframeMode, value: str) -> str:
    """Return the trimmed period, or raise ``PeriodValidationError``."""
    if not is_valid_period(mode, value):
        raise PeriodValidationError(mode.value, value, FORMAT_EXAMPLES[mode])
    return (value or "").strip()


def _pad(value: Optional[object]) -> str:
    text = "" if value is None else str(value).strip()
    return text.zfill(2) if text else "00"


def compose_period(
    mode: TimeframeMode,
    *,
    day: Optional[object] = None,
    month: Optional[object] = None,
    year: Optional[object] = None,
    hour: Optional[object] = None,
    minute: Optional[object] = None,
    second: Optional[object] = None,
) -> str:
    """Build a period string for ``mode`` from structured fields.

    Two-digit fields are zero-padded; the year is kept as entered. In free
    mode there is nothing to compose and an empty string is returned.
    """
    year_text = "" if year is None else str(year).strip()
    if mode == TimeframeMode.DATE:
        return f"{_pad(day)}/{_pad(month)}/{year_text}"
    if mode == TimeframeMode.DATE_MY:
        return f"{_pad(month)}/{year_text}"
    if mode == TimeframeMode.DATETIME:
        return f"{_pad(day)}/{_pad(month)}/{year_text} {_pad(hour)}:{_pad(minute)}"
    if mode == TimeframeMode.HOUR:
        return f"{_pad(hour)}:{_pad(minute)}:{_pad(second)}"
    if mode == TimeframeMode.HOUR2:
        return f"{_pad(hour)}:{_pad(minute)}"
    return ""
