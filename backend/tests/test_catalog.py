"""Tests for the field catalog registry."""
import json

import pytest
from pydantic import ValidationError

from resource_hub.imports.catalog import (
    DEFAULT_CATALOGS,
    CatalogRegistry,
    FieldDefinition,
    FieldType,
)
from resource_hub.imports.errors import UnknownResourceTypeError


def test_default_catalogs_share_base_fields():
    for resource_type, catalog in DEFAULT_CATALOGS.items():
        names = [f.name for f in catalog]
        assert names[:3] == ["title", "url", "summary"], resource_type
        assert names[-2:] == ["tags", "image_url"], resource_type
        assert len(names) == len(set(names)), resource_type
        assert catalog[0].required


def test_get_unknown_resource_type():
    registry = CatalogRegistry()
    assert "grants" in registry
    with pytest.raises(UnknownResourceTypeError, match="Unknown resource type: 'widgets'"):
        registry.get("widgets")


def test_replace_swaps_table_but_not_held_catalogs():
    registry = CatalogRegistry()
    held = registry.get("grants")

    registry.replace({"seeds": (FieldDefinition(name="title", label="Title", required=True),)})

    assert registry.resource_types() == ["seeds"]
    assert "grants" not in registry
    assert held == DEFAULT_CATALOGS["grants"]


def test_replace_rejects_duplicate_field_names():
    registry = CatalogRegistry()
    dup = (FieldDefinition(name="title", label="Title"), FieldDefinition(name="title", label="Name"))
    with pytest.raises(ValueError, match="Duplicate field names"):
        registry.replace({"seeds": dup})
    assert "grants" in registry


def test_load_file(tmp_path):
    path = tmp_path / "catalogs.json"
    path.write_text(json.dumps({
        "seeds": [
            {"name": "title", "label": "Title", "required": True, "base": True},
            {"name": "germination_days", "label": "Germination Days", "type": "number"},
            {"name": "organic", "label": "Organic", "type": "checkbox"},
        ],
    }))
    registry = CatalogRegistry()
    registry.load_file(path)

    catalog = registry.get("seeds")
    assert [f.name for f in catalog] == ["title", "germination_days", "organic"]
    assert catalog[1].type == FieldType.number


def test_load_file_rejects_bad_field_type(tmp_path):
    path = tmp_path / "catalogs.json"
    path.write_text(json.dumps({"seeds": [{"name": "title", "label": "Title", "type": "colour"}]}))
    registry = CatalogRegistry()

    with pytest.raises(ValidationError):
        registry.load_file(path)
    assert "grants" in registry
