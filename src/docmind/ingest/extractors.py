"""Text extractors — spreadsheets locally, everything else through the vision model."""

from __future__ import annotations

import csv
import io
import mimetypes
from pathlib import Path

from pydantic import BaseModel

from docmind.errors import ExtractionError
from docmind.llm import ModelClient

SPREADSHEET_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


class UploadedFile(BaseModel):
    """Raw bytes of a file handed to the ingestion pipeline."""

    name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path, mime_type: str | None = None) -> UploadedFile:
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            mime_type=mime_type or guessed or "application/octet-stream",
            data=path.read_bytes(),
        )


def is_spreadsheet(name: str, mime_type: str) -> bool:
    """True for Excel files, judged by extension or declared MIME type."""
    mime = mime_type.lower()
    return (
        Path(name).suffix.lower() in SPREADSHEET_SUFFIXES
        or "spreadsheet" in mime
        or "excel" in mime
    )


# ---------------------------------------------------------------------------
# Spreadsheets
# ---------------------------------------------------------------------------

def _sheet_text(title: str, rows) -> str | None:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if v is None else v for v in row])
    text = buf.getvalue()
    if not text.strip(",\n "):
        return None
    return f"--- Sheet: {title} ---\n{text}\n"


def _xlsx_sheets(data: bytes) -> list[str | None]:
    from openpyxl import load_workbook

    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        return [
            _sheet_text(sheet.title, sheet.iter_rows(values_only=True))
            for sheet in workbook.worksheets
        ]
    finally:
        workbook.close()


def _xls_cell(value):
    # xlrd reports every number as a float
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _xls_sheets(data: bytes) -> list[str | None]:
    import xlrd

    book = xlrd.open_workbook(file_contents=data, on_demand=True)
    try:
        return [
            _sheet_text(
                sheet.name,
                ([_xls_cell(v) for v in sheet.row_values(i)] for i in range(sheet.nrows)),
            )
            for sheet in book.sheets()
        ]
    finally:
        book.release_resources()


def extract_spreadsheet(data: bytes) -> str:
    """Render every non-blank sheet as CSV under a ``--- Sheet: name ---`` header.

    Legacy BIFF workbooks (``.xls``) are recognised by their OLE header and
    read with xlrd; everything else goes through openpyxl.
    """
    reader = _xls_sheets if data[:8] == OLE_MAGIC else _xlsx_sheets
    try:
        sheets = reader(data)
    except Exception as e:
        raise ExtractionError(f"Could not read the spreadsheet: {e}") from e

    return "\n".join(s for s in sheets if s)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

async def extract(file: UploadedFile, client: ModelClient) -> str:
    """Extract text from *file*.

    Raises:
        ExtractionError: if extraction fails or yields no text.
    """
    if is_spreadsheet(file.name, file.mime_type):
        text = extract_spreadsheet(file.data)
    else:
        text = await client.extract_text(file.data, file.mime_type)

    if not text.strip():
        raise ExtractionError(f"No text could be extracted from {file.name}")
    return text
