"""CSV parsing for published Google Sheets exports.

Exports are read as plain text and split with a quote-aware splitter rather
than a strict CSV reader: rows are often ragged, and some exports arrive with
every row collapsed onto one line. The latter is handled by
``repair_single_line``, a best-effort fallback that only runs when the text
has no line breaks at all.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List

logger = logging.getLogger(__name__)

RawRecord = Dict[str, str]

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_ROW_BOUNDARY = re.compile(r"(?=\d{4}-\d{2}-\d{2})")
_COLLAPSED_ROW = re.compile(r"^(\d{4}-\d{2}-\d{2}),([^,]*),(.*)$")
_FIELD_SEPARATORS = re.compile(r"\s*,\s*|\s+")


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def needs_single_line_repair(text: str) -> bool:
    return "\n" not in text and DATE_PATTERN.search(text) is not None


def repair_single_line(text: str) -> str:
    """Rebuild row boundaries for an export collapsed onto a single line.

    Assumes every data row starts with a ``YYYY-MM-DD`` date followed by the
    zone field, and that the remaining numeric fields are space separated.
    Input that breaks those assumptions comes back degraded, never raises.
    """
    match = DATE_PATTERN.search(text)
    if match is None or match.start() == 0:
        return text

    header = text[: match.start()].strip().rstrip(",").strip()
    data_section = text[match.start():]
    rows: List[str] = []
    for chunk in _ROW_BOUNDARY.split(data_section):
        chunk = chunk.strip().rstrip(",").strip()
        if not chunk:
            continue
        row_match = _COLLAPSED_ROW.match(chunk)
        if row_match:
            date, zone, rest = row_match.groups()
            rest = _FIELD_SEPARATORS.sub(",", rest.strip())
            chunk = f"{date},{zone.strip()},{rest}"
        rows.append(chunk)

    logger.debug("single-line CSV repaired into %d data rows", len(rows))
    return "\n".join([header] + rows)


def split_csv_line(line: str) -> List[str]:
    """Split one line on commas outside double quotes; quotes are dropped and fields trimmed."""
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    fields.append("".join(current).strip())
    return fields


def parse_csv(text: str) -> List[RawRecord]:
    if not text:
        return []
    normalized = normalize_line_endings(text.lstrip("\ufeff"))
    if needs_single_line_repair(normalized):
        normalized = repair_single_line(normalized)

    lines = normalized.split("\n")
    if not lines or not lines[0].strip():
        return []

    headers = [h.replace('"', "").strip() for h in split_csv_line(lines[0])]
    records: List[RawRecord] = []
    for line in lines[1:]:
        if not line.strip():
            continue
        values = split_csv_line(line)
        record: RawRecord = {}
        for idx, header in enumerate(headers):
            record[header] = values[idx] if idx < len(values) else ""
        records.append(record)
    return records
