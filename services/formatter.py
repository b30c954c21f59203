"""Serialise query results."""

from __future__ import annotations

import csv
import io
from typing import Iterable, List

from models.records import ObservationRecord
from storage.resource_store import Representation

CSV_CONTENT_TYPE = "text/csv"
BOOLEAN_CONTENT_TYPE = "application/json"
FIELD_SEPARATOR = ", "


def format_csv(identifier: str, records: Iterable[ObservationRecord]) -> Representation:
    """One ``timestamp, value, unit`` line per record, sorted timestamp first.

    Fields are joined without quoting, so a unit IRI containing a comma cannot
    be read back by ``parse_csv``.
    """
    ordered = sorted(records, key=ObservationRecord.sort_key)
    lines = [
        FIELD_SEPARATOR.join((record.timestamp, record.value, record.unit or ""))
        for record in ordered
    ]
    return Representation.from_text(identifier, "\n".join(lines), CSV_CONTENT_TYPE)


def format_boolean(identifier: str, result: bool) -> Representation:
    return Representation.from_text(identifier, "true" if result else "false", BOOLEAN_CONTENT_TYPE)


def parse_csv(text: str) -> List[ObservationRecord]:
    """Read records back from ``format_csv`` output."""
    records: List[ObservationRecord] = []
    reader = csv.reader(io.StringIO(text), skipinitialspace=True)
    for row in reader:
        if not row:
            continue
        if len(row) != 3:
            raise ValueError(f"Expected 3 fields per line, got {len(row)}: {row!r}")
        timestamp, value, unit = row
        records.append(ObservationRecord(timestamp=timestamp, value=value, unit=unit or None))
    return records
