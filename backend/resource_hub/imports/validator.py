"""Row validator / coercer.

Turns raw string rows into typed records, collecting every problem as data on
the row's ImportResult. Nothing in here raises for bad input: one broken row
never stops the others from being checked.
"""
import logging
import math
import re
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from resource_hub.imports.catalog import Catalog, FieldDefinition, FieldFormat, FieldType
from resource_hub.schemas.imports import (
    FieldCoercionWarning,
    ImportResult,
    RowValidationError,
    ValidationSummary,
)

logger = logging.getLogger(__name__)

# Header line + 1-based counting: data row 0 is line 2 of the file
ROW_NUMBER_OFFSET = 2

TRUE_VALUES = frozenset({"true", "1", "yes"})
DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ─── Coercion helpers ───

def split_multi(value: str) -> list[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def parse_number(value: str) -> float | None:
    cleaned = value.strip().replace(",", "").lstrip("$").rstrip("%").strip()
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_flag(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def looks_like_date(value: str) -> bool:
    for fmt in DATE_FORMATS:
        try:
            datetime.strptime(value, fmt)
            return True
        except ValueError:
            pass
    return False


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def _option_matches(field: FieldDefinition, token: str) -> bool:
    lowered = token.lower()
    return any(lowered in (o.value.lower(), o.label.lower()) for o in field.options)


def coerce_value(field: FieldDefinition, raw: str) -> tuple[Any, str | None]:
    """Convert one raw cell for ``field``. Returns (value, warning message or None)."""
    value = raw.strip()

    if field.type == FieldType.multi_select:
        tokens = split_multi(value)
        unknown = [t for t in tokens if field.options and not _option_matches(field, t)]
        if unknown:
            return tokens, f"Unrecognised {field.label} value(s): {', '.join(unknown)}"
        return tokens, None

    if field.type == FieldType.number:
        number = parse_number(value)
        if number is None and value:
            return None, f"Could not read {field.label} as a number: '{value}'"
        return number, None

    if field.type == FieldType.checkbox:
        return parse_flag(value), None

    if field.type == FieldType.date and value and not looks_like_date(value):
        return value, f"Unrecognised date for {field.label}: '{value}'"

    if field.type == FieldType.select and value and field.options and not _option_matches(field, value):
        return value, f"'{value}' is not a listed {field.label} option"

    return value, None


# ─── Row validation ───

def validate_row(
    catalog: Catalog,
    mapping: Mapping[str, str],
    row: Mapping[str, str],
    index: int,
) -> ImportResult:
    result = ImportResult(row=index + ROW_NUMBER_OFFSET)

    for field in catalog:
        column = mapping.get(field.name)
        raw = row.get(column) if column else None

        value: Any = None
        if raw is not None:
            value, warning = coerce_value(field, raw)
            if warning:
                result.warnings.append(FieldCoercionWarning(field=field.name, message=warning))
            if not _is_empty(value):
                result.data[field.name] = value

        if field.required and _is_empty(value):
            result.errors.append(
                RowValidationError(field=field.name, message=f"Missing required field: {field.label}")
            )

    # Cross-field format checks on populated values
    for field in catalog:
        value = result.data.get(field.name)
        if not isinstance(value, str) or not value:
            continue
        if field.format == FieldFormat.url and not is_valid_url(value):
            result.errors.append(
                RowValidationError(field=field.name, message=f"Invalid URL format: {field.label}")
            )
        elif field.format == FieldFormat.email and not is_valid_email(value):
            result.errors.append(
                RowValidationError(field=field.name, message=f"Invalid email format: {field.label}")
            )

    result.valid = not result.errors
    return result


def validate_rows(
    catalog: Catalog,
    mapping: Mapping[str, str],
    rows: Sequence[Mapping[str, str]],
) -> list[ImportResult]:
    """Validate every row in file order. One ImportResult per input row."""
    results = [validate_row(catalog, mapping, row, idx) for idx, row in enumerate(rows)]
    summary = summarize(results)
    logger.info(
        "Validated %d rows: %d valid, %d invalid",
        summary.total, summary.valid, summary.invalid,
    )
    return results


def summarize(results: Sequence[ImportResult]) -> ValidationSummary:
    valid = sum(1 for r in results if r.valid)
    return ValidationSummary(total=len(results), valid=valid, invalid=len(results) - valid)
