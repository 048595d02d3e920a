"""
Upload reader — turns an uploaded spreadsheet into a header row plus data rows.

Reads the first sheet of the upload and returns it as plain Python lists so
the column mapper never sees a workbook object. Supported formats:
  - .xlsx — openpyxl, computed values (data_only)
  - .xls  — xlrd
  - .csv  — pandas, every cell kept as text, ragged rows allowed

The first row is the header. Rows where every cell is blank are dropped and
counted. Trailing blank header columns are trimmed along with their cells.

Problems are reported in FileReadResult.errors rather than raised, so the UI
can show them next to the upload widget.

Public API:
    read_upload(filename, content) → FileReadResult
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

import openpyxl
import pandas as pd
import xlrd

from config.column_mapping import SUPPORTED_EXTENSIONS
from processing.records import cell_to_text

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Data class
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class FileReadResult:
    """Complete result of reading one uploaded file."""

    headers: list[str] = field(default_factory=list)
    rows: list[list] = field(default_factory=list)
    sheet_name: str = ""
    skipped_rows: int = 0
    """Number of all-blank data rows dropped."""
    errors: list[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return not self.errors and bool(self.rows)


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def read_upload(filename: str, content: bytes) -> FileReadResult:
    """
    Read an uploaded spreadsheet into headers and raw rows.

    Args:
        filename: Original upload name; its extension selects the reader.
        content: Raw file bytes.

    Returns:
        FileReadResult with headers, non-blank data rows, and any errors.
    """
    result = FileReadResult()
    extension = Path(filename).suffix.lower()

    if extension not in SUPPORTED_EXTENSIONS:
        error_message = (
            f"'{filename}' is not a supported spreadsheet "
            f"({', '.join(SUPPORTED_EXTENSIONS)})"
        )
        logger.error(error_message)
        result.errors.append(error_message)
        return result

    # ------------------------------------------------------------------
    # 1. Read the raw table from the first sheet
    # ------------------------------------------------------------------
    try:
        if extension == ".xlsx":
            sheet_name, table = _read_xlsx(content)
        elif extension == ".xls":
            sheet_name, table = _read_xls(content)
        else:
            sheet_name, table = _read_csv(content)
    except Exception as exc:
        error_message = f"Cannot read file '{filename}': {exc}"
        logger.error(error_message)
        result.errors.append(error_message)
        return result

    result.sheet_name = sheet_name
    logger.info(f"Read {len(table)} rows from sheet '{sheet_name}' of '{filename}'")

    if len(table) < 2:
        error_message = f"'{filename}' is empty or has no data rows"
        logger.error(error_message)
        result.errors.append(error_message)
        return result

    # ------------------------------------------------------------------
    # 2. Header row, trimmed to the last labelled column
    # ------------------------------------------------------------------
    headers = [cell_to_text(cell) for cell in table[0]]
    width = _header_width(headers)
    result.headers = headers[:width]

    # ------------------------------------------------------------------
    # 3. Data rows, dropping all-blank ones
    # ------------------------------------------------------------------
    for row in table[1:]:
        cells = list(row[:width]) if width else list(row)
        if _is_blank_row(cells):
            result.skipped_rows += 1
            continue
        result.rows.append(cells)

    if not result.rows:
        error_message = f"'{filename}' is empty or has no data rows"
        logger.error(error_message)
        result.errors.append(error_message)
        return result

    logger.info(
        f"Finished reading '{filename}': {len(result.headers)} columns, "
        f"{len(result.rows)} data rows, {result.skipped_rows} blank rows skipped"
    )
    return result


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _read_xlsx(content: bytes) -> tuple[str, list[list]]:
    """Read the first worksheet of an .xlsx workbook as value rows."""
    workbook = openpyxl.load_workbook(
        io.BytesIO(content), data_only=True, read_only=True
    )
    try:
        worksheet = workbook.worksheets[0]
        table = [list(row) for row in worksheet.iter_rows(values_only=True)]
        return worksheet.title, table
    finally:
        workbook.close()


def _read_xls(content: bytes) -> tuple[str, list[list]]:
    """Read the first sheet of a legacy .xls workbook as value rows."""
    book = xlrd.open_workbook(file_contents=content)
    sheet = book.sheet_by_index(0)
    table = [sheet.row_values(index) for index in range(sheet.nrows)]
    return sheet.name, table


def _read_csv(content: bytes) -> tuple[str, list[list]]:
    """
    Read a CSV upload with every cell as text and no NA guessing.

    Rows may differ in length. The frame is sized to the widest row so a
    data row longer than the header is kept, and short rows are padded
    with "".
    """
    text = content.decode("utf-8-sig")
    width = max((len(row) for row in csv.reader(io.StringIO(text))), default=0)
    if width == 0:
        return "CSV", []

    dataframe = pd.read_csv(
        io.StringIO(text),
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
    )
    return "CSV", dataframe.fillna("").values.tolist()


def _header_width(headers: list[str]) -> int:
    """Index just past the last non-blank header cell."""
    for index in range(len(headers) - 1, -1, -1):
        if headers[index]:
            return index + 1
    return 0


def _is_blank_row(cells: list) -> bool:
    """True when every cell is None or whitespace."""
    return all(cell_to_text(cell) == "" for cell in cells)
