"""Delimited text parser: raw upload → header list + ordered raw rows."""
import csv
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from resource_hub.imports.errors import FileFormatError
from resource_hub.schemas.imports import ColumnInfo

logger = logging.getLogger(__name__)

EMPTY_FILE_MESSAGE = "The file appears to be empty or invalid"

_QUOTE_CHARS = "\"'"

RawRow = Mapping[str, str]


@dataclass(frozen=True)
class ParsedFile:
    headers: tuple[str, ...]
    rows: tuple[RawRow, ...]
    delimiter: str

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def columns(self) -> list[ColumnInfo]:
        """Header list with the first data row's value as a sample."""
        first = self.rows[0] if self.rows else {}
        return [
            ColumnInfo(index=i, header=h, sample=first.get(h, ""))
            for i, h in enumerate(self.headers)
        ]


def detect_delimiter(text: str) -> str:
    return "\t" if "\t" in text else ","


def _clean_cell(value: str) -> str:
    value = value.strip()
    if value and value[0] in _QUOTE_CHARS:
        value = value[1:]
    if value and value[-1] in _QUOTE_CHARS:
        value = value[:-1]
    return value


def _split_line(line: str, delimiter: str) -> list[str]:
    # One physical line is one record; quoted delimiters stay inside their cell.
    if line.count('"') % 2:
        # Unbalanced quote: csv would swallow the rest of the line into one cell
        return [_clean_cell(cell) for cell in line.split(delimiter)]
    reader = csv.reader([line], delimiter=delimiter, skipinitialspace=True)
    return [_clean_cell(cell) for cell in next(reader, [])]


def _unique_headers(raw: list[str]) -> tuple[str, ...]:
    seen: dict[str, int] = {}
    headers: list[str] = []
    for idx, header in enumerate(raw):
        name = header or f"Column {idx + 1}"
        if name in seen:
            seen[name] += 1
            name = f"{name} ({seen[name]})"
        else:
            seen[name] = 1
        headers.append(name)
    return tuple(headers)


def parse_text(text: str) -> ParsedFile:
    """Parse comma- or tab-delimited text.

    Raises:
        FileFormatError: no header line, only blank headers, or no data rows.
    """
    delimiter = detect_delimiter(text)
    lines = [ln for ln in text.splitlines() if ln.strip()]
    if not lines:
        raise FileFormatError(EMPTY_FILE_MESSAGE)

    try:
        header_cells = _split_line(lines[0], delimiter)
        if not any(header_cells):
            raise FileFormatError(EMPTY_FILE_MESSAGE)
        headers = _unique_headers(header_cells)

        rows: list[RawRow] = []
        for line in lines[1:]:
            values = _split_line(line, delimiter)
            row = {h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)}
            rows.append(MappingProxyType(row))
    except csv.Error as exc:
        raise FileFormatError(f"{EMPTY_FILE_MESSAGE}: {exc}") from exc

    if not rows:
        raise FileFormatError(EMPTY_FILE_MESSAGE)

    logger.info(
        "Parsed upload: %d columns, %d data rows (delimiter=%r)",
        len(headers), len(rows), delimiter,
    )
    return ParsedFile(headers=headers, rows=tuple(rows), delimiter=delimiter)


def parse_upload(content: bytes) -> ParsedFile:
    """Decode an uploaded file as UTF-8 (BOM tolerated) and parse it."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FileFormatError("Unable to decode file. Use UTF-8 encoding.") from exc
    return parse_text(text)
