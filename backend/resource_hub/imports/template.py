"""Example import file for a catalog: one header line plus one sample row."""
from resource_hub.imports.catalog import Catalog, FieldDefinition, FieldFormat

SAMPLE_VALUES = {
    "title": "Sample Resource Title",
    "summary": "Brief description",
    "tags": "tag1, tag2, tag3",
}

# URL/email columns get a well-formed sample so the example row validates
FORMAT_SAMPLES = {
    FieldFormat.url: "https://example.com",
    FieldFormat.email: "contact@example.com",
}


def template_filename(resource_type: str) -> str:
    return f"{resource_type}-template.csv"


def sample_value(field: FieldDefinition) -> str:
    if field.name in SAMPLE_VALUES:
        return SAMPLE_VALUES[field.name]
    if field.format is not None:
        return FORMAT_SAMPLES[field.format]
    if field.required:
        return f"[Required {field.label}]"
    return f"[Optional {field.label}]"


def _quote(value: str) -> str:
    # Plain wrap, no escaping: labels and samples never contain quotes
    return f'"{value}"'


def generate_template(catalog: Catalog) -> str:
    header = ",".join(f.label for f in catalog)
    sample = ",".join(_quote(sample_value(f)) for f in catalog)
    return f"{header}\n{sample}\n"
