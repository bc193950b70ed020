"""Parsing and validation of the semicolon-delimited update CSV."""

from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..constants.config import DEFAULT_CSV_DELIMITER, URL_COLUMN
from ..exceptions import (
    ConfigError,
    DuplicateHeaderField,
    EmptyCsvFile,
    IdentifierExtractionError,
    MissingUrlColumn,
    UnknownHeaderField,
)
from ..models.episode import EpisodeUpdateRequest, FieldUpdate
from ..models.field import FieldSchema
from .identifiers import extract_episode_id


def strip_line(line: str) -> str:
    """Remove carriage returns and the trailing newline (Windows line endings)."""
    return line.replace("\r", "").rstrip("\n")


def parse_record(line: str, delimiter: str = DEFAULT_CSV_DELIMITER) -> Optional[list[str]]:
    """
    Split one CSV line into its raw values.

    Args:
        line: Raw line, with or without a line terminator
        delimiter: Column delimiter

    Returns:
        List of values index-aligned with the header, or None for an empty line
    """
    line = strip_line(line)
    if not line:
        return None
    return line.split(delimiter)


def validate_header(
    line: str,
    schema: FieldSchema,
    delimiter: str = DEFAULT_CSV_DELIMITER,
) -> list[str]:
    """
    Validate the header row and return the update fields in column order.

    Args:
        line: Raw header line
        schema: Registry of known fields
        delimiter: Column delimiter

    Returns:
        Field names for columns 1..N

    Raises:
        MissingUrlColumn: If the first column is not 'url'
        UnknownHeaderField: If a column is not a known field
        DuplicateHeaderField: If a field column appears twice
    """
    columns = strip_line(line).split(delimiter)
    # A header ending in the delimiter ("url;title;") has no extra column
    if len(columns) > 1 and columns[-1] == "":
        columns.pop()

    if columns[0] != URL_COLUMN:
        raise MissingUrlColumn(columns[0])

    fields: list[str] = []
    for column in columns[1:]:
        if not schema.is_known_field(column):
            raise UnknownHeaderField(column)
        if column in fields:
            raise DuplicateHeaderField(column)
        fields.append(column)

    return fields


def read_csv_lines(path: str | Path) -> list[str]:
    """
    Read the CSV file into lines, tolerating a missing final newline.

    Raises:
        ConfigError: If the file is not valid UTF-8
        EmptyCsvFile: If the file has no header line
    """
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            content = f.read()
    except UnicodeDecodeError as e:
        raise ConfigError(f"CSV file '{path}' is not valid UTF-8: {e}") from e
    if not strip_line(content):
        raise EmptyCsvFile(str(path))
    # Carriage returns are stripped per line, so only split on \n
    return content.split("\n")


def iter_data_rows(
    lines: Sequence[str],
    delimiter: str = DEFAULT_CSV_DELIMITER,
) -> Iterator[tuple[int, list[str]]]:
    """Yield (line_number, values) for every non-empty line after the header."""
    for line_number, line in enumerate(lines[1:], start=2):
        values = parse_record(line, delimiter)
        if values is None:
            continue
        yield line_number, values


def build_update_request(
    episode_id: str,
    fields: Sequence[str],
    values: Sequence[str],
) -> EpisodeUpdateRequest:
    """
    Pair header fields with the row values that are not empty.

    Values beyond the header are ignored; missing trailing values count as empty.

    Args:
        episode_id: Identifier resolved from the url column
        fields: Update fields from the header (columns 1..N)
        values: All row values (column 0 is the url)
    """
    updates = []
    for index, field in enumerate(fields, start=1):
        value = values[index] if index < len(values) else ""
        if value:
            updates.append(FieldUpdate(field=field, value=value))
    return EpisodeUpdateRequest(episode_id=episode_id, updates=tuple(updates))


def load_csv(
    path: str | Path,
    schema: FieldSchema,
    delimiter: str = DEFAULT_CSV_DELIMITER,
) -> tuple[list[str], list[tuple[int, list[str]]]]:
    """
    Read the CSV file and validate its header.

    Returns:
        Tuple of (update fields, data rows as (line_number, values))

    Raises:
        ConfigError: If the file does not exist
        HeaderValidationError: If the header is invalid
    """
    if not Path(path).is_file():
        raise ConfigError(f"CSV file '{path}' not found")

    lines = read_csv_lines(path)
    fields = validate_header(lines[0], schema, delimiter)
    return fields, list(iter_data_rows(lines, delimiter))


def check_rows(
    fields: Sequence[str],
    rows: Sequence[tuple[int, list[str]]],
    schema: FieldSchema,
) -> int:
    """
    Validate every data row without contacting the API.

    Returns:
        Number of rows that would be sent (rows without a url are not counted)

    Raises:
        IdentifierExtractionError: If a url has no episode ID
        FieldValidationError: If a value does not match its field
    """
    checked = 0
    for _, values in rows:
        url = values[0]
        if not url:
            continue
        episode_id = extract_episode_id(url)
        if not episode_id:
            raise IdentifierExtractionError(url)
        request = build_update_request(episode_id, fields, values)
        for update in request.updates:
            schema.validate(update.field, update.value)
        checked += 1
    return checked
