"""Import Job Runner — streams a stored CSV through the row validator and
commits valid rows in atomic batches.

Guarantees:
  * rows are attributed in file order, 1-based, header excluded, blank
    records keeping their number;
  * a rejected row (or a failed user lookup) never stops the job, nor does
    an unexpected error while validating one row;
  * a failed batch is retried once, then every row in it is marked
    ``storage_error`` and the job moves on;
  * an unreadable file aborts the job with a single job-level error;
  * any other unexpected error aborts the job with the outcomes recorded
    so far intact;
  * cancellation (in-process event or the stored flag) is honoured
    between batches;
  * the stored upload is deleted however the run ends.
"""

from __future__ import annotations

import asyncio
import csv
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Optional, TextIO

from winx.config import settings
from winx.imports.errors import (
    Cancelled,
    FileReadError,
    ImportFailure,
    RowRejected,
    StorageError,
)
from winx.imports.files import UploadStore
from winx.imports.gateway import EmployeeGateway
from winx.imports.schemas import EmployeeRecord, ImportSummary
from winx.imports.validator import RowValidator

logger = logging.getLogger(__name__)

BATCH_INSERT_ATTEMPTS = 2

Batch = list[tuple[int, EmployeeRecord]]
ProgressHook = Callable[[ImportSummary], Awaitable[None]]


@dataclass(frozen=True)
class _RunControl:
    cancel_event: Optional[asyncio.Event] = None
    job_id: Optional[str] = None
    on_batch: Optional[ProgressHook] = None


def iter_rows(handle: TextIO) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(row_number, cells)`` lazily after the header.

    Every record after the header takes a number; blank records are not
    yielded. Decoding and CSV syntax errors surface as ``FileReadError``.
    """
    reader = csv.reader(handle)
    try:
        next(reader, None)
        for row_number, cells in enumerate(reader, start=1):
            if any(cell.strip() for cell in cells):
                yield row_number, cells
    except (csv.Error, UnicodeDecodeError, OSError) as exc:
        raise FileReadError(f"Upload could not be read: {exc}") from exc


def _unexpected(exc: Exception, where: str) -> ImportFailure:
    if isinstance(exc, ImportFailure):
        return exc
    return ImportFailure(f"{where} failed unexpectedly ({exc.__class__.__name__}).")


class ImportJobRunner:

    def __init__(
        self,
        gateway: EmployeeGateway,
        store: UploadStore,
        *,
        batch_size: Optional[int] = None,
        validator: Optional[RowValidator] = None,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.batch_size = batch_size or settings.IMPORT_BATCH_SIZE
        self.validator = validator or RowValidator(gateway)

    async def run(
        self,
        file_ref: str,
        company_id: int,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        job_id: Optional[str] = None,
        summary: Optional[ImportSummary] = None,
        on_batch: Optional[ProgressHook] = None,
    ) -> ImportSummary:
        """Process *file_ref* for *company_id* and return its summary.

        With a *job_id* the stored cancel flag of that job is honoured as
        well as *cancel_event*. *summary* is filled in place, so a caller
        keeps every recorded outcome even if the run is interrupted;
        *on_batch* receives it after each committed batch.
        """
        if summary is None:
            summary = ImportSummary()
        try:
            await self._consume(file_ref, company_id, summary, _RunControl(
                cancel_event=cancel_event, job_id=job_id, on_batch=on_batch,
            ))
        finally:
            self.store.delete(file_ref)

        logger.info(
            "Import of %s for company %s finished: %s (rows=%d succeeded=%d failed=%d)",
            file_ref,
            company_id,
            summary.status.value,
            summary.total_rows,
            summary.succeeded,
            summary.failed,
        )
        return summary

    async def _consume(
        self,
        file_ref: str,
        company_id: int,
        summary: ImportSummary,
        control: _RunControl,
    ) -> None:
        batch: Batch = []
        claimed: set[int] = set()
        try:
            if await self._cancel_requested(control):
                summary.finish_with(Cancelled("Import cancelled before any row was read."))
                return

            with self.store.open_for_read(file_ref) as handle:
                for row_number, cells in iter_rows(handle):
                    summary.total_rows += 1
                    try:
                        record = await self.validator.validate(
                            cells, company_id, claimed_user_ids=claimed,
                        )
                    except (RowRejected, StorageError) as exc:
                        summary.record_failure(row_number, exc)
                        continue
                    except Exception as exc:
                        logger.exception("Row %d of %s could not be validated", row_number, file_ref)
                        summary.record_failure(row_number, _unexpected(exc, f"Validating row {row_number}"))
                        continue

                    claimed.add(record.user_id)
                    batch.append((row_number, record))
                    if len(batch) < self.batch_size:
                        continue

                    await self._flush(batch, summary, claimed)
                    batch = []
                    if control.on_batch is not None:
                        await control.on_batch(summary)
                    if await self._cancel_requested(control):
                        summary.finish_with(
                            Cancelled(f"Import cancelled after row {row_number}; remaining rows were not read."),
                        )
                        return

            if batch:
                await self._flush(batch, summary, claimed)
        except FileReadError as exc:
            logger.error("Import of %s aborted: %s", file_ref, exc.detail)
            self._settle_pending(batch, summary, exc)
        except Exception as exc:
            logger.exception("Import of %s stopped", file_ref)
            self._settle_pending(batch, summary, _unexpected(exc, "Import"))

    @staticmethod
    def _settle_pending(batch: Batch, summary: ImportSummary, failure: ImportFailure) -> None:
        """Close the job on *failure*; rows validated but not committed fail with it."""
        for row_number, _ in batch:
            if row_number not in summary.errors and row_number not in summary.succeeded_rows:
                summary.record_failure(row_number, failure)
        summary.finish_with(failure)

    async def _cancel_requested(self, control: _RunControl) -> bool:
        if control.cancel_event is not None and control.cancel_event.is_set():
            return True
        if control.job_id is not None:
            return await self.gateway.cancel_requested(control.job_id)
        return False

    async def _flush(self, batch: Batch, summary: ImportSummary, claimed: set[int]) -> None:
        """Insert one batch, retrying once; record the outcome of every row."""
        records = [record for _, record in batch]
        failure: Optional[StorageError] = None
        for attempt in range(1, BATCH_INSERT_ATTEMPTS + 1):
            try:
                await self.gateway.insert_batch(records)
            except StorageError as exc:
                failure = exc
                logger.warning(
                    "Batch of %d rows (first row %d) failed, attempt %d/%d: %s",
                    len(batch), batch[0][0], attempt, BATCH_INSERT_ATTEMPTS, exc.detail,
                )
                continue
            for row_number, _ in batch:
                summary.record_success(row_number)
            return

        for row_number, record in batch:
            summary.record_failure(row_number, failure)
            claimed.discard(record.user_id)
