"""Bulk CSV import of employee records.

A run decodes and validates the whole input first, releases the input, then
persists the valid rows one at a time. Bad rows and refused inserts end up in
the ImportReport; only an unreadable input or one without a single valid row
fails the run.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from dataclasses import dataclass, field

from roster.core.config import settings
from roster.models.employee import EmployeeFields
from roster.models.imports import ImportFailure, ImportReport
from roster.services.csv_decoder import CsvDecodeError, RawRow, decode_rows
from roster.services.import_source import ImportSource, ImportSourceError
from roster.services.record_store import RecordStore, record_store

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "position", "department")
MISSING_FIELDS_ERROR = "Missing required fields"
NO_VALID_RECORDS_ERROR = "The uploaded CSV file is empty or contains no valid employee records."
UNKNOWN_ROW = "unknown"


class ImportPipelineError(Exception):
    pass


@dataclass(frozen=True)
class Candidate:
    line: int
    fields: EmployeeFields


@dataclass
class ImportTally:
    total_records: int = 0
    imported_count: int = 0
    validation_failures: list[ImportFailure] = field(default_factory=list)
    persistence_failures: list[ImportFailure] = field(default_factory=list)

    def rejected(self, line: int, error: str) -> None:
        self.validation_failures.append(ImportFailure(row=line, error=error))

    def queued(self) -> None:
        self.total_records += 1

    def imported(self) -> None:
        self.imported_count += 1

    def refused(self, error: str) -> None:
        self.persistence_failures.append(ImportFailure(row=UNKNOWN_ROW, error=error))

    def to_report(self) -> ImportReport:
        failed_rows = [*self.validation_failures, *self.persistence_failures]
        return ImportReport(
            total_records=self.total_records,
            imported_count=self.imported_count,
            failed_count=len(failed_rows),
            failed_rows=failed_rows,
        )


def validate_row(row: RawRow) -> EmployeeFields | None:
    """Trimmed employee fields, or None when a required field is missing or blank."""
    values = {key: (row.get(key) or "").strip() for key in REQUIRED_FIELDS}
    if not all(values.values()):
        return None

    photo_url = (row.get("photoUrl") or "").strip() or None
    return EmployeeFields(photo_url=photo_url, **values)


def _error_message(err: Exception) -> str:
    # SQLAlchemy wraps the driver error; its message is the useful part
    orig = getattr(err, "orig", None)
    return str(orig if orig is not None else err)


class ImportPipeline:
    def __init__(
        self,
        store: RecordStore,
        encoding: str = "utf-8-sig",
        delimiter: str = ",",
    ) -> None:
        self.store = store
        self.encoding = encoding
        self.delimiter = delimiter

    async def run(self, source: ImportSource) -> ImportReport:
        tally = ImportTally()
        candidates = await self._collect(source, tally)

        if not candidates:
            logger.warning("Import of %s rejected: no valid records", source.name)
            raise ImportPipelineError(NO_VALID_RECORDS_ERROR)

        for candidate in candidates:
            try:
                await self.store.create_employee(candidate.fields)
            except Exception as e:
                message = _error_message(e)
                logger.warning("Line %d of %s not imported: %s", candidate.line, source.name, message)
                tally.refused(message)
            else:
                tally.imported()

        report = tally.to_report()
        logger.info(
            "Imported %s: %d of %d records, %d failed",
            source.name,
            report.imported_count,
            report.total_records,
            report.failed_count,
        )
        return report

    async def _collect(self, source: ImportSource, tally: ImportTally) -> list[Candidate]:
        candidates: list[Candidate] = []
        try:
            async with (
                aclosing(source.chunks()) as chunks,
                aclosing(decode_rows(chunks, self.encoding, self.delimiter)) as rows,
            ):
                async for row in rows:
                    fields = validate_row(row)
                    if fields is None:
                        tally.rejected(row.line, MISSING_FIELDS_ERROR)
                        continue
                    candidates.append(Candidate(line=row.line, fields=fields))
                    tally.queued()
        except (CsvDecodeError, ImportSourceError, OSError) as e:
            logger.error("Import of %s aborted: %s", source.name, e)
            raise ImportPipelineError(str(e)) from e
        finally:
            await source.release()
        return candidates


import_pipeline = ImportPipeline(
    record_store,
    encoding=settings.IMPORT_ENCODING,
    delimiter=settings.IMPORT_DELIMITER,
)
