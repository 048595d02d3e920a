"""
Column mapper — guesses which spreadsheet column holds each component field.

The component import reduces every uploaded row to four canonical fields
(Name, Type, Description, Quantity). Header text is arbitrary, so the
mapping is a best guess the user can override before committing:

  1. detect_mapping   — regex scan of the headers, first match wins per field
  2. apply_mapping    — project raw rows through the mapping
  3. build_preview    — bound what the UI renders
  4. commit           — drop rows with no Name, refuse an empty batch

One header may satisfy several fields; each field claims it independently.
If nothing looks like a name, column 0 is used as the Name column.

All state for one upload lives in an ImportSession owned by the caller and
replaced wholesale when a new file is uploaded.

Public API:
    detect_mapping(headers) → dict[str, int]
    apply_mapping(rows, headers, mapping) → list[MappedRecord]
    build_preview(records, limit) → (list[MappedRecord], int)
    commit(records) → CommitBatch
    start_session(filename, headers, rows) → ImportSession
    open_upload(filename, content) → (ImportSession | None, list[str])
    submit_batch(batch, client) → int
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Protocol

from config.column_mapping import (
    CANONICAL_FIELDS,
    DESCRIPTION,
    FIELD_PATTERNS,
    FIELD_PAYLOAD_KEYS,
    NAME,
    QUANTITY,
    TYPE,
    UNMAPPED,
)
from processing.file_reader import read_upload
from processing.records import cell_to_text, parse_quantity

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════

class ImportFlowError(Exception):
    """Base class for failures that stop the current import attempt."""


class NoDataRowsError(ImportFlowError):
    """The uploaded sheet has a header but no non-empty data rows."""


class EmptyBatchError(ImportFlowError):
    """Every mapped row has an empty Name, so there is nothing to import."""


class ComponentSink(Protocol):
    """Anything that can persist a batch of component payloads."""

    def bulk_add_components(self, records: list[dict]) -> int: ...


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MappedRecord:
    """One raw row projected onto the canonical fields."""

    name: str = ""
    type: str = ""
    description: str = ""
    quantity: int = 0

    @property
    def is_valid(self) -> bool:
        """A record is importable only when it has a Name."""
        return self.name != ""

    def to_payload(self) -> dict:
        """Wire form expected by the bulkAddComponents action."""
        return {
            FIELD_PAYLOAD_KEYS[NAME]: self.name,
            FIELD_PAYLOAD_KEYS[TYPE]: self.type,
            FIELD_PAYLOAD_KEYS[DESCRIPTION]: self.description,
            FIELD_PAYLOAD_KEYS[QUANTITY]: self.quantity,
        }


@dataclass
class CommitBatch:
    """Records accepted for import plus how many were filtered out."""

    records: list[MappedRecord] = field(default_factory=list)
    rejected_count: int = 0

    @property
    def accepted_count(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def payload(self) -> list[dict]:
        return [record.to_payload() for record in self.records]


@dataclass
class ImportSession:
    """
    Everything known about one uploaded file, from parse to commit.

    The mapping is never patched in place: set_field builds a new dict, and
    records() regenerates every MappedRecord from the raw rows each call.
    """

    filename: str
    headers: list[str]
    rows: list[list]
    mapping: dict[str, int]

    def set_field(self, field_name: str, column: int) -> None:
        """Point one canonical field at *column* (UNMAPPED to skip it)."""
        if field_name not in CANONICAL_FIELDS:
            raise KeyError(f"Unknown field '{field_name}'")
        new_mapping = dict(self.mapping)
        new_mapping[field_name] = column if column >= 0 else UNMAPPED
        self.mapping = new_mapping
        logger.debug(f"Mapping for '{self.filename}' set: {field_name} → {column}")

    def records(self) -> list[MappedRecord]:
        return apply_mapping(self.rows, self.headers, self.mapping)

    def column_label(self, column: int) -> str:
        """Dropdown label for a column: its header, or "Column N" if blank."""
        if 0 <= column < len(self.headers) and self.headers[column]:
            return self.headers[column]
        return f"Column {column + 1}"


def _compile_patterns(
    pairs: list[tuple[str, str]],
) -> dict[str, list[re.Pattern]]:
    compiled: dict[str, list[re.Pattern]] = {name: [] for name in CANONICAL_FIELDS}
    for field_name, pattern in pairs:
        compiled.setdefault(field_name, []).append(
            re.compile(pattern, re.IGNORECASE)
        )
    return compiled


# Compiled once: field → patterns in priority order.
_DEFAULT_PATTERNS: dict[str, list[re.Pattern]] = _compile_patterns(FIELD_PATTERNS)


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def detect_mapping(
    headers: list,
    patterns: list[tuple[str, str]] | None = None,
) -> dict[str, int]:
    """
    Guess the column index of each canonical field from header text.

    Headers are scanned left to right. For each header, every field that is
    still unmapped tests its patterns in order; the first header that
    matches any of them claims the field for good. A header can therefore
    end up mapped to more than one field.

    Non-string headers are treated as blank. If no header matched Name,
    Name falls back to column 0, even when *headers* is empty.

    Args:
        headers: Header cells in column order.
        patterns: Optional ordered (field, regex) pairs replacing
            FIELD_PATTERNS.

    Returns:
        Dict with all four canonical fields; unmapped fields are UNMAPPED.
    """
    compiled = (
        _DEFAULT_PATTERNS if patterns is None else _compile_patterns(patterns)
    )
    mapping: dict[str, int] = {name: UNMAPPED for name in CANONICAL_FIELDS}

    for index, header in enumerate(headers):
        text = header.strip() if isinstance(header, str) else ""

        for field_name in CANONICAL_FIELDS:
            if mapping[field_name] != UNMAPPED:
                continue
            if any(pattern.search(text) for pattern in compiled.get(field_name, [])):
                mapping[field_name] = index
                logger.debug(f"Header '{text}' (column {index}) → {field_name}")

    if mapping[NAME] == UNMAPPED:
        mapping[NAME] = 0
        logger.info("No name-like header found; using column 0 as Name")

    logger.info(
        "Column detection complete: "
        + ", ".join(f"{name}={mapping[name]}" for name in CANONICAL_FIELDS)
    )
    return mapping


def apply_mapping(
    rows: list[list],
    headers: list,
    mapping: dict[str, int],
) -> list[MappedRecord]:
    """
    Project raw rows onto the canonical fields.

    A field whose index is unmapped, negative, or past the end of the row
    or of *headers* reads as "" (0 for Quantity); with no headers every
    field is blank. Cells are trimmed text; Quantity is the non-negative
    integer parsed from the cell. Inputs are not modified.

    Args:
        rows: Raw data rows aligned with *headers*.
        headers: Header cells (only used to bound the mapping).
        mapping: Field → column index, as from detect_mapping.

    Returns:
        One MappedRecord per input row, in order.
    """
    width = len(headers)

    def _cell(row: list, field_name: str) -> object:
        column = mapping.get(field_name, UNMAPPED)
        if column is None or column < 0 or column >= min(width, len(row)):
            return None
        return row[column]

    return [
        MappedRecord(
            name=cell_to_text(_cell(row, NAME)),
            type=cell_to_text(_cell(row, TYPE)),
            description=cell_to_text(_cell(row, DESCRIPTION)),
            quantity=parse_quantity(_cell(row, QUANTITY)),
        )
        for row in rows
    ]


def build_preview(
    records: list[MappedRecord],
    limit: int,
) -> tuple[list[MappedRecord], int]:
    """Return the first *limit* records and how many were left out."""
    limit = max(limit, 0)
    visible = records[:limit]
    return visible, len(records) - len(visible)


def commit(records: list[MappedRecord]) -> CommitBatch:
    """
    Keep only records with a Name.

    The returned batch may be empty; submit_batch refuses to send it.
    """
    accepted = [record for record in records if record.is_valid]
    batch = CommitBatch(records=accepted, rejected_count=len(records) - len(accepted))
    logger.info(
        f"Commit batch: {batch.accepted_count} accepted, "
        f"{batch.rejected_count} rejected (empty Name)"
    )
    return batch


def start_session(filename: str, headers: list, rows: list[list]) -> ImportSession:
    """
    Open a mapping session for a freshly parsed upload.

    Rows whose cells are all blank are dropped. The mapping starts from
    detect_mapping.

    Raises:
        NoDataRowsError: if no data rows remain.
    """
    header_texts = [cell_to_text(header) for header in headers]
    data_rows = [
        list(row) for row in rows
        if any(cell_to_text(cell) != "" for cell in row)
    ]

    if not data_rows:
        raise NoDataRowsError(f"'{filename}' is empty or has no data rows")

    session = ImportSession(
        filename=filename,
        headers=header_texts,
        rows=data_rows,
        mapping=detect_mapping(header_texts),
    )
    logger.info(
        f"Import session for '{filename}': {len(header_texts)} columns, "
        f"{len(data_rows)} data rows"
    )
    return session


def open_upload(filename: str, content: bytes) -> tuple[ImportSession | None, list[str]]:
    """
    Read an uploaded file and open a mapping session on it.

    Returns (session, errors). The session is None whenever errors is
    non-empty; the caller keeps the errors for as long as the same upload
    stays selected.
    """
    read_result = read_upload(filename, content)
    if read_result.errors:
        return None, list(read_result.errors)

    try:
        session = start_session(filename, read_result.headers, read_result.rows)
    except NoDataRowsError as exc:
        logger.error(str(exc))
        return None, [str(exc)]
    return session, []


def submit_batch(batch: CommitBatch, client: ComponentSink) -> int:
    """
    Send an accepted batch to the store.

    Returns the number of components the store reports as added, which can
    be lower than the number sent. Nothing is retried.

    Raises:
        EmptyBatchError: if the batch has no records; the client is not called.
    """
    if batch.is_empty:
        raise EmptyBatchError("No valid components found")

    added_count = client.bulk_add_components(batch.payload())
    if added_count < batch.accepted_count:
        logger.info(
            f"Store added {added_count} of {batch.accepted_count} submitted components"
        )
    return added_count
