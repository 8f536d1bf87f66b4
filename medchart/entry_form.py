"""Entry form logic: validation, computed fields and display values for module records."""

from medchart.helpers import (
    EMPTY_VALUE,
    calculate_bmi,
    format_date,
    format_datetime,
    truncate,
)
from medchart.modules import FieldDefinition, FieldType, ModuleDefinition


def _format_number(value: float) -> str:
    return f"{value:g}"


def validate_entry(module: ModuleDefinition, values: dict[str, str]) -> list[str]:
    """Return error messages for the submitted values; empty list means valid.

    Required fields must be non-blank. Optional fields are only checked when
    they carry a value.
    """
    errors = []
    for field in module.fields:
        value = (values.get(field.key) or "").strip()
        if not value:
            if field.required:
                errors.append(f"{field.label} is required")
            continue
        if field.computed:
            continue

        if field.type == FieldType.SELECT and value not in field.options:
            errors.append(f"{field.label} must be one of: {', '.join(field.options)}")
        elif field.type == FieldType.NUMBER:
            try:
                number = float(value)
            except ValueError:
                errors.append(f"{field.label} must be a number")
                continue
            too_low = field.min is not None and number < field.min
            too_high = field.max is not None and number > field.max
            if too_low or too_high:
                if field.min is not None and field.max is not None:
                    errors.append(
                        f"{field.label} must be between {_format_number(field.min)} "
                        f"and {_format_number(field.max)}"
                    )
                elif too_low:
                    errors.append(f"{field.label} must be at least {_format_number(field.min)}")
                else:
                    errors.append(f"{field.label} must be at most {_format_number(field.max)}")
    return errors


def apply_computed_fields(module: ModuleDefinition, values: dict[str, str]) -> dict[str, str]:
    """Return a copy of values with derived fields filled in (BMI for vital signs)."""
    updated = dict(values)
    if module.key == "vital_signs":
        updated["bmi"] = calculate_bmi(values.get("weight", ""), values.get("height", ""))
    return updated


def edit_form_values(module: ModuleDefinition, record: dict[str, str]) -> dict[str, str]:
    """Values to pre-fill an edit form: one per schema field, '' when absent."""
    values = {}
    for field in module.fields:
        value = record.get(field.key)
        values[field.key] = "" if value is None else str(value)
    return values


def display_value(field: FieldDefinition, value: str | None, full: bool = False) -> str:
    """Value as shown in a table cell, or in the detail view when full is set."""
    if value is None or value == "":
        return EMPTY_VALUE
    value = str(value)
    if field.type == FieldType.DATE:
        return format_date(value)
    if field.type == FieldType.DATETIME:
        return format_datetime(value)
    if field.type == FieldType.TEXTAREA and not full:
        return truncate(value, 50)
    return value
