# File: /inline_db/engine/csv_import.py | Version: 1.0 | Title: Bulk CSV import pipeline
"""
CSV text -> entries, as a small state machine:

    NO_FILE -> PARSED -> MAPPED -> IMPORTING -> DONE | FAILED

The pipeline is a client of the Entry Store: rows are handed one at a time to a
``create_entry`` callback. A row the callback rejects is recorded as an
``ImportRowFailure`` and the run continues; rows already created stay created.
Any other error stops the run in FAILED with a partial report whose summary
reads "N of M imported, error: ...".
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from inline_db.core.errors import CsvParseError, ImportRowFailure, InlineDbError, InvalidEntryProperties
from inline_db.engine.values import CellValue, coerce_value
from inline_db.schemas.columns import Column

logger = logging.getLogger(__name__)

CreateEntry = Callable[[Dict[str, CellValue]], Any]
ProgressCallback = Callable[[int, int], None]


class ImportState(str, Enum):
    NO_FILE = "NO_FILE"
    PARSED = "PARSED"
    MAPPED = "MAPPED"
    IMPORTING = "IMPORTING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class ImportReport:
    created: int
    total: int
    failures: List[ImportRowFailure] = field(default_factory=list)
    state: ImportState = ImportState.DONE
    error: Optional[str] = None

    @property
    def summary(self) -> str:
        text = f"{self.created} of {self.total} imported"
        return f"{text}, error: {self.error}" if self.error else text


def parse_csv(text: str) -> tuple:
    """Return ``(headers, rows)``. Blank lines are skipped and cells trimmed."""
    try:
        records = [
            [cell.strip() for cell in record]
            for record in csv.reader(io.StringIO(text))
            if any(cell.strip() for cell in record)
        ]
    except csv.Error as exc:
        raise CsvParseError(f"Malformed CSV: {exc}")

    if len(records) < 2:
        raise CsvParseError("CSV must have at least a header row and one data row")

    headers = records[0]
    width = len(headers)
    rows = [(r + [""] * width)[:width] for r in records[1:]]
    return headers, rows


def auto_map(headers: Sequence[str], columns: Sequence[Column]) -> Dict[str, Optional[str]]:
    """Match headers to writable columns by case-insensitive name; the rest map to skip."""
    by_name = {c.name.strip().casefold(): c.id for c in columns if not c.is_computed}
    return {h: by_name.get(h.strip().casefold()) for h in headers}


class ImportSession:
    def __init__(self, columns: Sequence[Column]) -> None:
        self.columns = list(columns)
        self.state = ImportState.NO_FILE
        self.headers: List[str] = []
        self.rows: List[List[str]] = []
        self.mapping: Dict[str, Optional[str]] = {}

    def load(self, text: str) -> None:
        self.headers, self.rows = parse_csv(text)
        self.mapping = {}
        self.state = ImportState.PARSED

    def auto_map(self) -> Dict[str, Optional[str]]:
        self._require(ImportState.PARSED, ImportState.MAPPED)
        self.mapping = auto_map(self.headers, self.columns)
        self.state = ImportState.MAPPED
        return self.mapping

    def set_mapping(self, mapping: Mapping[str, Optional[str]]) -> None:
        """Override the mapping for the given headers; ``None`` means skip."""
        self._require(ImportState.PARSED, ImportState.MAPPED)
        if self.state is ImportState.PARSED:
            self.mapping = {h: None for h in self.headers}
        writable = {c.id for c in self.columns if not c.is_computed}
        for header, column_id in mapping.items():
            if header not in self.mapping:
                raise InvalidEntryProperties(f"Unknown CSV header '{header}'")
            if column_id is not None and column_id not in writable:
                raise InvalidEntryProperties(
                    f"Column '{column_id}' is not an importable column",
                    detail={"header": header},
                )
            self.mapping[header] = column_id
        self.state = ImportState.MAPPED

    def build_properties(self, row: Sequence[str]) -> Dict[str, CellValue]:
        by_id = {c.id: c for c in self.columns}
        props: Dict[str, CellValue] = {}
        for header, cell in zip(self.headers, row):
            column_id = self.mapping.get(header)
            if column_id is None:
                continue
            props[column_id] = coerce_value(by_id[column_id], cell)
        return props

    def run(
        self, create_entry: CreateEntry, on_progress: Optional[ProgressCallback] = None
    ) -> ImportReport:
        self._require(ImportState.MAPPED)
        self.state = ImportState.IMPORTING
        report = ImportReport(created=0, total=len(self.rows), state=ImportState.IMPORTING)

        for index, row in enumerate(self.rows):
            try:
                create_entry(self.build_properties(row))
                report.created += 1
            except ImportRowFailure as failure:
                report.failures.append(failure)
            except InlineDbError as exc:
                report.failures.append(ImportRowFailure(index, exc.message))
            except Exception as exc:
                # Rows already created stay created; the rest are not attempted
                logger.exception("import stopped at row %d of %d", index, report.total)
                report.error = str(exc) or type(exc).__name__
                report.failures.append(ImportRowFailure(index, report.error))
                self.state = report.state = ImportState.FAILED
                return report
            if on_progress is not None:
                on_progress(index + 1, report.total)

        self.state = report.state = ImportState.DONE
        logger.info(
            "import finished: %s (%d failed)", report.summary, len(report.failures)
        )
        return report

    def _require(self, *states: ImportState) -> None:
        if self.state not in states:
            raise InlineDbError(
                f"Import is in state {self.state.value}; expected one of "
                + ", ".join(s.value for s in states)
            )
