"""Formatting and id helpers shared by the chart store and the shell."""

import uuid
from datetime import datetime

EMPTY_VALUE = "—"


def generate_id() -> str:
    """Fresh opaque unique id for patients and entries."""
    return str(uuid.uuid4())


def _parse(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def format_date(value: str) -> str:
    """'1985-03-15' -> 'Mar 15, 1985'. Unparseable input is returned as-is."""
    if not value:
        return EMPTY_VALUE
    parsed = _parse(value)
    if parsed is None:
        return value
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_datetime(value: str) -> str:
    """'2024-01-02T09:30' -> 'Jan 2, 2024, 09:30 AM'."""
    if not value:
        return EMPTY_VALUE
    parsed = _parse(value)
    if parsed is None:
        return value
    return f"{parsed:%b} {parsed.day}, {parsed.year}, {parsed:%I:%M %p}"


def calculate_bmi(weight_kg: str, height_cm: str) -> str:
    """BMI to one decimal, or '' when weight or height is missing/zero."""
    try:
        weight = float(weight_kg)
        height = float(height_cm) / 100
    except (TypeError, ValueError):
        return ""
    if not weight or height <= 0:
        return ""
    return f"{weight / (height * height):.1f}"


def truncate(text: str, length: int = 40) -> str:
    if not text:
        return ""
    return text[:length] + "…" if len(text) > length else text
