"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

SPREADSHEET_EXTENSIONS = (".csv", ".xlsx")

SPREADSHEET_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def get_spreadsheet_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV or .xlsx workbook by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_spreadsheet_filename = filename.endswith(SPREADSHEET_EXTENSIONS)
    is_spreadsheet_content_type = content_type in SPREADSHEET_CONTENT_TYPES

    if not is_spreadsheet_filename and not is_spreadsheet_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only .csv and .xlsx files are allowed.",
        )

    return file
