"""Tests for the delimited text parser."""
import pytest

from resource_hub.imports.errors import FileFormatError
from resource_hub.imports.parser import (
    EMPTY_FILE_MESSAGE,
    detect_delimiter,
    parse_text,
    parse_upload,
)


def test_returns_one_row_per_data_line_in_order():
    text = "Title,URL\nFirst,https://a.example\nSecond,https://b.example\nThird,\n"
    parsed = parse_text(text)

    assert parsed.headers == ("Title", "URL")
    assert parsed.row_count == 3
    assert [r["Title"] for r in parsed.rows] == ["First", "Second", "Third"]
    assert parsed.rows[2]["URL"] == ""


def test_blank_lines_are_discarded():
    text = "\n\nTitle,City\n\nA,Austin\n   \nB,Boston\n\n"
    parsed = parse_text(text)

    assert parsed.headers == ("Title", "City")
    assert [r["City"] for r in parsed.rows] == ["Austin", "Boston"]


def test_tab_anywhere_selects_tab_delimiter():
    assert detect_delimiter("a\tb\nc,d") == "\t"
    assert detect_delimiter("a,b\nc,d") == ","

    parsed = parse_text("Title\tTags\nGreenhouse, basics\ta, b\n")
    assert parsed.delimiter == "\t"
    assert parsed.rows[0]["Title"] == "Greenhouse, basics"
    assert parsed.rows[0]["Tags"] == "a, b"


def test_cells_are_trimmed_and_one_quote_layer_stripped():
    parsed = parse_text("Title, Summary \n  'Quoted' , \"Double\"  \n")

    assert parsed.headers == ("Title", "Summary")
    assert parsed.rows[0]["Title"] == "Quoted"
    assert parsed.rows[0]["Summary"] == "Double"


def test_quoted_cell_keeps_embedded_delimiter():
    parsed = parse_text('Title,Tags,URL\nSeed guide,"a, b ,c",https://x.example\n')

    assert parsed.rows[0]["Tags"] == "a, b ,c"
    assert parsed.rows[0]["URL"] == "https://x.example"


def test_short_rows_fill_missing_cells_with_empty_string():
    parsed = parse_text("A,B,C\n1\n")
    assert dict(parsed.rows[0]) == {"A": "1", "B": "", "C": ""}


def test_rows_are_read_only():
    parsed = parse_text("A\n1\n")
    with pytest.raises(TypeError):
        parsed.rows[0]["A"] = "2"  # type: ignore[index]


def test_duplicate_and_blank_headers_get_distinct_names():
    parsed = parse_text("Name,Name,\nx,y,z\n")
    assert parsed.headers == ("Name", "Name (2)", "Column 3")
    assert parsed.rows[0]["Name (2)"] == "y"


def test_columns_carry_first_row_sample():
    parsed = parse_text("Title,City\nFirst,Austin\nSecond,Boston\n")
    columns = parsed.columns()

    assert [(c.index, c.header, c.sample) for c in columns] == [
        (0, "Title", "First"),
        (1, "City", "Austin"),
    ]


@pytest.mark.parametrize("text", ["", "\n\n   \n", "Title,URL\n", "Title,URL\n\n\n", ",,\nx,y,z\n"])
def test_empty_or_header_only_file_is_rejected(text):
    with pytest.raises(FileFormatError) as exc_info:
        parse_text(text)
    assert EMPTY_FILE_MESSAGE in str(exc_info.value)


def test_upload_strips_bom_and_rejects_non_utf8():
    parsed = parse_upload(b"\xef\xbb\xbfTitle\nA\n")
    assert parsed.headers == ("Title",)

    with pytest.raises(FileFormatError):
        parse_upload(b"Title\n\xff\xfe\xfa\n")


def test_unbalanced_quote_does_not_swallow_the_rest_of_the_line():
    parsed = parse_text('Title,URL,Summary\n"abc,https://x.com,sum\n')

    assert dict(parsed.rows[0]) == {"Title": "abc", "URL": "https://x.com", "Summary": "sum"}


def test_balanced_quotes_still_protect_embedded_delimiter():
    parsed = parse_text('Title,Summary\n"Say ""hi"", then go",done\n')
    assert parsed.rows[0]["Summary"] == "done"
