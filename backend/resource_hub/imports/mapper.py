"""Column mapper: best-effort initial field → column assignment.

auto_map only produces an initial value. The mapping itself belongs to the
import session and is edited there; nothing in this module mutates it.
"""
import difflib
import re
from collections.abc import Sequence

from resource_hub.imports.catalog import Catalog
from resource_hub.imports.errors import MappingError

# Minimum similarity for a fuzzy column suggestion
SUGGESTION_MIN_RATIO = 0.80

_NON_LETTERS = re.compile(r"[^a-z]")


def normalize(value: str) -> str:
    return _NON_LETTERS.sub("", value.lower())


def auto_map(catalog: Catalog, headers: Sequence[str]) -> dict[str, str]:
    """Map each field to the first header whose normalized text equals the
    field's normalized name (or, failing that, its normalized label)."""
    normalized = [(normalize(h), h) for h in headers]
    mapping: dict[str, str] = {}
    for field in catalog:
        for key in (normalize(field.name), normalize(field.label)):
            if not key:
                continue
            match = next((h for n, h in normalized if n == key), None)
            if match is not None:
                mapping[field.name] = match
                break
    return mapping


def suggest_columns(
    catalog: Catalog,
    headers: Sequence[str],
    mapping: dict[str, str],
) -> dict[str, str]:
    """Fuzzy hints for unmapped fields among headers nobody uses yet.

    Suggestions are returned for display only and never written into the mapping.
    """
    taken = set(mapping.values())
    free = [h for h in headers if h not in taken]
    suggestions: dict[str, str] = {}
    for field in catalog:
        if field.name in mapping:
            continue
        best: str | None = None
        best_ratio = 0.0
        for header in free:
            for key in (normalize(field.name), normalize(field.label)):
                ratio = difflib.SequenceMatcher(None, key, normalize(header)).ratio()
                if ratio > best_ratio:
                    best_ratio = ratio
                    best = header
        if best is not None and best_ratio >= SUGGESTION_MIN_RATIO:
            suggestions[field.name] = best
    return suggestions


def check_mapping_entry(catalog: Catalog, headers: Sequence[str], field_name: str, header: str | None) -> None:
    """Raise MappingError unless field_name is in the catalog and header is a real column."""
    if field_name not in {f.name for f in catalog}:
        raise MappingError(f"Unknown field: '{field_name}'")
    if header is not None and header not in headers:
        raise MappingError(f"Unknown column: '{header}'")
