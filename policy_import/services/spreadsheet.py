"""
Spreadsheet conversion for uploads.

Converts the first worksheet of an .xlsx workbook to CSV text so it can go
through the same parser as a CSV upload.
"""

import csv
import io
from datetime import date, datetime
from typing import Any, List

import openpyxl

def _cell_text(value: Any) -> str:
    """Render a cell value the way it would appear in a CSV export."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

def workbook_to_csv(data: bytes) -> str:
    """
    Convert an .xlsx workbook to CSV text.

    Args:
        data: Raw workbook bytes

    Returns:
        CSV text of the first worksheet, leading and trailing empty rows dropped
    """
    workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows: List[List[str]] = [
            [_cell_text(value) for value in row]
            for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()

    while rows and not any(rows[-1]):
        rows.pop()
    start = next((i for i, row in enumerate(rows) if any(row)), len(rows))
    rows = rows[start:]

    out = io.StringIO()
    csv.writer(out, lineterminator="\n").writerows(rows)
    return out.getvalue()
