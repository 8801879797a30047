"""
process_transactions.py
-----------------------
Read an uploaded statement export, pre-fill the column mapping and turn the
confirmed mapping into a batch of canonical ``TransactionRecord`` objects.

The flow is split in two so the user can review the mapping:

    parsed = parse_csv(uploaded_file)
    mapping = suggest_mapping(parsed.fields)   # user edits, then confirms
    batch = build_batch(parsed, mapping)
"""

from __future__ import annotations

import csv
import io
import re
import time
import uuid
from datetime import date
from typing import IO, Dict, List, Optional, Union

import pandas as pd

from logging_setup import get_logger
from models import (
    CANONICAL_FIELDS,
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    IMPORT_ACCOUNT,
    FieldMapping,
    ParsedUpload,
    ParseError,
    TransactionRecord,
)

logger = get_logger("yoy_finance.process_transactions")

# Delimiters tried when sniffing the upload.
DELIMITERS = ",;\t|"
SNIFF_LINES = 20

_AMOUNT_NOISE = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:[0-9]+\.?[0-9]*|\.[0-9]+)")

Source = Union[bytes, str, IO[bytes], IO[str]]


def _decode(source: Source) -> str:
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, (bytes, bytearray)):
        try:
            return bytes(source).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"File is not UTF-8 text: {exc}") from exc
    if isinstance(source, str):
        return source.lstrip("\ufeff")
    raise ParseError(f"Unsupported upload type: {type(source).__name__}")


def _sniff_delimiter(text: str) -> str:
    sample = "\n".join(line for line in text.splitlines()[:SNIFF_LINES] if line.strip())
    try:
        return csv.Sniffer().sniff(sample, delimiters=DELIMITERS).delimiter
    except csv.Error:
        return ","


def parse_csv(source: Source) -> ParsedUpload:
    """Parse delimited text into headers plus raw string rows.

    Blank lines are skipped. Every value is kept as the raw string found in
    the file, headers included. A header-only file parses successfully with
    zero rows. When a header repeats, rows carry the first such column.
    """

    text = _decode(source)
    if not text.strip():
        raise ParseError("File is empty; a header row is required.")

    delimiter = _sniff_delimiter(text)
    try:
        # header=None so pandas does not rename duplicate headers.
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError, csv.Error) as exc:
        raise ParseError(f"Could not read delimited text: {exc}") from exc

    if df.empty:
        raise ParseError("No header row found.")
    df = df.fillna("")
    fields = [str(col) for col in df.iloc[0]]

    rows = []
    for values in df.iloc[1:].itertuples(index=False):
        row: Dict[str, str] = {}
        for name, value in zip(fields, values):
            row.setdefault(name, str(value))
        rows.append(row)
    logger.info("Parsed upload: %d columns, %d rows (delimiter %r)", len(fields), len(rows), delimiter)
    return ParsedUpload(fields=fields, rows=rows)


def infer_column(fields: List[str], name: str) -> str:
    for col in fields:
        if name in col.lower():
            return col
    return fields[0]


def suggest_mapping(fields: List[str]) -> FieldMapping:
    """Pre-fill a mapping by substring match on the lowercased headers.

    Only a suggestion for the mapping form; nothing is imported until the
    user confirms it.
    """

    if not fields:
        raise ParseError("Cannot suggest a mapping without headers.")
    return FieldMapping(**{name: infer_column(fields, name) for name in CANONICAL_FIELDS})


def parse_amount(raw: object) -> Optional[float]:
    """Absolute value of the leading number in ``raw``, ignoring symbols."""

    cleaned = _AMOUNT_NOISE.sub("", str(raw if raw is not None else ""))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    return abs(float(match.group(0)))


def _parse_date(raw: str) -> Optional[date]:
    ts = pd.to_datetime(raw, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def _cell(row: Dict[str, str], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


def normalize_row(
    row: Dict[str, str],
    mapping: FieldMapping,
    *,
    batch_id: str,
    index: int,
    today: Optional[date] = None,
) -> Optional[TransactionRecord]:
    """Build one record from a raw row, or ``None`` when the row is skipped.

    Rows are skipped when the amount is missing, non-numeric or zero, or when
    a date is present but unreadable. Blank dates fall back to ``today``.
    """

    amount = parse_amount(_cell(row, mapping.amount))
    if not amount:
        return None

    raw_date = _cell(row, mapping.date)
    if raw_date:
        txn_date = _parse_date(raw_date)
        if txn_date is None:
            logger.debug("Skipping row %d: unreadable date %r", index, raw_date)
            return None
    else:
        txn_date = today or date.today()

    return TransactionRecord(
        id=f"txn-{batch_id}-{index}",
        date=txn_date,
        description=_cell(row, mapping.description) or DEFAULT_DESCRIPTION,
        amount=amount,
        category=_cell(row, mapping.category) or DEFAULT_CATEGORY,
        account=IMPORT_ACCOUNT,
    )


def new_batch_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def build_batch(
    parsed: ParsedUpload,
    mapping: FieldMapping,
    *,
    today: Optional[date] = None,
) -> List[TransactionRecord]:
    """Normalize every parsed row with the confirmed mapping."""

    batch_id = new_batch_id()
    batch = []
    for i, row in enumerate(parsed.rows):
        record = normalize_row(row, mapping, batch_id=batch_id, index=i, today=today)
        if record is not None:
            batch.append(record)

    skipped = len(parsed.rows) - len(batch)
    logger.info("Normalized batch %s: %d kept, %d skipped", batch_id, len(batch), skipped)
    return batch
