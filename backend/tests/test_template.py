"""Tests for import template generation."""
import pytest

from resource_hub.imports.catalog import DEFAULT_CATALOGS
from resource_hub.imports.mapper import auto_map
from resource_hub.imports.parser import parse_text
from resource_hub.imports.template import generate_template, sample_value, template_filename
from resource_hub.imports.validator import validate_rows


@pytest.mark.parametrize("resource_type", sorted(DEFAULT_CATALOGS))
def test_template_parses_back_to_catalog_labels(resource_type):
    catalog = DEFAULT_CATALOGS[resource_type]
    parsed = parse_text(generate_template(catalog))

    assert parsed.headers == tuple(f.label for f in catalog)
    assert parsed.row_count == 1


def test_sample_row_content():
    catalog = DEFAULT_CATALOGS["grants"]
    row = parse_text(generate_template(catalog)).rows[0]

    assert row["Title"] == "Sample Resource Title"
    assert row["URL"] == "https://example.com"
    assert row["Tags"] == "tag1, tag2, tag3"
    assert row["Granting Agency"] == "[Required Granting Agency]"
    assert row["Deadline"] == "[Optional Deadline]"


def test_template_text_layout():
    text = generate_template(DEFAULT_CATALOGS["learning"])
    header, sample = text.rstrip("\n").split("\n")

    assert header.startswith("Title,URL,Summary,Course Type,")
    assert sample.startswith('"Sample Resource Title","https://example.com"')
    assert text.endswith("\n")


def test_sample_value_for_required_field():
    title = DEFAULT_CATALOGS["grants"][0]
    assert sample_value(title) == "Sample Resource Title"


def test_template_filename():
    assert template_filename("tax-incentives") == "tax-incentives-template.csv"


@pytest.mark.parametrize("resource_type", sorted(DEFAULT_CATALOGS))
def test_template_example_row_passes_validation(resource_type):
    catalog = DEFAULT_CATALOGS[resource_type]
    parsed = parse_text(generate_template(catalog))
    mapping = auto_map(catalog, parsed.headers)

    assert set(mapping) == {f.name for f in catalog}
    [result] = validate_rows(catalog, mapping, parsed.rows)
    assert result.valid, result.error_messages


def test_url_and_email_fields_get_well_formed_samples():
    row = parse_text(generate_template(DEFAULT_CATALOGS["universities"])).rows[0]

    assert row["Image URL"] == "https://example.com"
    assert row["Contact Email"] == "contact@example.com"
