"""
Record parser for delimited policy exports.

Turns the raw upload payload into header-keyed rows with trimmed values.
"""

import csv
import io
from typing import Dict, Iterator, Union

class MalformedInputError(ValueError):
    """Raised when the payload cannot be read as delimited text."""

def _decode(payload: Union[str, bytes]) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"Payload is not valid UTF-8: {e}") from e

def parse_records(payload: Union[str, bytes], delimiter: str = ",") -> Iterator[Dict[str, str]]:
    """
    Parse delimited text into rows keyed by the header line.

    Args:
        payload: Raw CSV text (or UTF-8 bytes)
        delimiter: Field delimiter

    Yields:
        One dict per non-blank data row, values trimmed. Short rows are
        padded with empty strings, surplus cells are dropped.

    Raises:
        MalformedInputError: On undecodable bytes or unterminated quotes
    """
    text = _decode(payload).lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)

    try:
        # Blank lines before the header are skipped like any other blank row
        header = next((cells for cells in reader if any(cell.strip() for cell in cells)), None)
        if header is None:
            return
        columns = [name.strip() for name in header]

        for cells in reader:
            values = [cell.strip() for cell in cells]
            if not any(values):
                continue
            values += [""] * (len(columns) - len(values))
            yield dict(zip(columns, values))
    except csv.Error as e:
        raise MalformedInputError(f"Malformed delimited text at line {reader.line_num}: {e}") from e
