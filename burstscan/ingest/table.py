"""Tab-delimited event table reader.

The header row names the columns; order does not matter and extra columns
are ignored.  Blank lines are skipped.  Malformed rows raise ValueError
with the offending line number.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from burstscan.domain.record import EventRecord

EXPERIMENT_NAME_COL = "Sample_ID"
EXPERIMENT_TOTAL_TIME_COL = "Total_time"
SITE_ID_COL = "Site_ID"
REL_TIME_COL = "Relative_time"
CENTROID_X_COL = "Centroid_X"
CENTROID_Y_COL = "Centroid_Y"

COLUMN_FIELDS = {
    EXPERIMENT_NAME_COL: "experiment_name",
    EXPERIMENT_TOTAL_TIME_COL: "total_time",
    SITE_ID_COL: "site_id",
    REL_TIME_COL: "relative_time",
    CENTROID_X_COL: "centroid_x",
    CENTROID_Y_COL: "centroid_y",
}


def parse_event_table(lines: Iterable[str]) -> list[EventRecord]:
    """Parse header + rows into validated EventRecords."""
    reader = csv.reader((line.rstrip("\r\n") for line in lines), delimiter="\t")
    header = next(reader, None)
    if header is None:
        raise ValueError("Event table is empty")
    header = [h.strip() for h in header]
    missing = set(COLUMN_FIELDS) - set(header)
    if missing:
        raise ValueError(f"Event table missing columns: {sorted(missing)}")
    index = {col: header.index(col) for col in COLUMN_FIELDS}

    records: list[EventRecord] = []
    for line_number, row in enumerate(reader, start=2):
        if not any(field.strip() for field in row):
            continue
        if len(row) < len(header):
            raise ValueError(f"Line {line_number}: expected {len(header)} fields, got {len(row)}")
        values = {field: row[index[col]].strip() for col, field in COLUMN_FIELDS.items()}
        try:
            records.append(EventRecord.model_validate(values))
        except ValidationError as exc:
            raise ValueError(f"Line {line_number}: {exc}") from exc
    return records


def read_event_table(path: str | Path) -> list[EventRecord]:
    with open(path, newline="") as handle:
        return parse_event_table(handle)
