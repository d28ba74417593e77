"""
Dependencies for upload handling.
"""

from fastapi import HTTPException, UploadFile, status
import os

from policy_import.services.jobs import ImportJobRegistry, import_registry
from policy_import.services.spreadsheet import workbook_to_csv

# Upload size limit (bytes), 10 MB by default
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

ALLOWED_EXTENSIONS = (".csv", ".xlsx")

def get_import_registry() -> ImportJobRegistry:
    """Registry that owns running imports."""
    return import_registry

async def read_upload_as_csv(file: UploadFile) -> str:
    """
    Read an uploaded CSV or XLSX file and return its content as CSV text.

    Raises HTTPException for unsupported, oversized or unreadable files.
    """
    filename = file.filename or ""
    extension = os.path.splitext(filename)[1].lower()
    if extension == ".xls":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Legacy .xls workbooks are not supported, save the sheet as .xlsx or CSV"
        )
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV and XLSX files are allowed"
        )

    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {MAX_UPLOAD_BYTES} bytes"
        )

    if extension == ".xlsx":
        try:
            return workbook_to_csv(data)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Could not read workbook: {e}"
            ) from e

    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File is not valid UTF-8: {e.reason}"
        ) from e
