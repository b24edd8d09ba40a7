"""Job Dispatcher — an asyncio queue drained by a pool of worker tasks.

``submit()`` records the job and returns as soon as it is queued; the HTTP
request that uploaded the file never waits for the import. Workers share
nothing with request handlers except the queue and the database.

The ``employee_imports`` row is the source of truth for a job:

  * a worker claims a job by moving it from ``queued`` to ``running`` in one
    conditional update, so a job closed meanwhile (e.g. cancelled from
    another process) is never started;
  * progress is stored after every committed batch;
  * a finished row is never written again;
  * ``recover()`` re-queues ``queued`` jobs left by a previous run and
    closes ``running`` ones it finds as ``aborted``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from winx.common.constants import FINISHED_IMPORT_STATUSES, ImportStatus
from winx.imports.errors import FileReadError, ImportFailure
from winx.imports.files import UploadStore
from winx.imports.gateway import EmployeeGateway
from winx.imports.models import EmployeeImport
from winx.imports.runner import ImportJobRunner
from winx.imports.schemas import ImportSummary

logger = logging.getLogger(__name__)

UNFINISHED_IMPORT_STATUSES = (ImportStatus.queued, ImportStatus.running)


@dataclass
class QueuedImport:
    job_id: str
    file_ref: str
    company_id: int
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    summary: ImportSummary = field(default_factory=ImportSummary)
    started: bool = False


class ImportDispatcher:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: UploadStore,
        *,
        workers: int = 1,
        batch_size: Optional[int] = None,
    ) -> None:
        self.session_factory = session_factory
        self.store = store
        self.runner = ImportJobRunner(
            EmployeeGateway(session_factory), store, batch_size=batch_size,
        )
        self._worker_count = workers
        self._queue: asyncio.Queue[QueuedImport] = asyncio.Queue()
        self._pending: dict[str, QueuedImport] = {}
        self._workers: list[asyncio.Task] = []

    # ── Lifecycle ───────────────────────────────────────────────────

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._work(index), name=f"import-worker-{index}")
            for index in range(self._worker_count)
        ]
        logger.info("Started %d import worker(s)", self._worker_count)

    async def stop(self) -> None:
        """Cancel the workers; queued jobs stay ``queued`` for the next ``recover()``."""
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        await self._queue.join()

    async def recover(self) -> int:
        """Pick up the jobs a previous run left unfinished; returns how many were re-queued.

        A ``queued`` job whose upload is still stored goes back on the queue.
        A ``running`` job was interrupted mid-file and is closed as
        ``aborted`` with the progress it had stored; a ``queued`` job whose
        upload is gone is closed the same way.
        """
        async with self.session_factory() as session:
            result = await session.execute(
                select(EmployeeImport)
                .where(EmployeeImport.status.in_(UNFINISHED_IMPORT_STATUSES))
                .order_by(EmployeeImport.created_at, EmployeeImport.id),
            )
            jobs = result.scalars().all()

        requeued = 0
        for job in jobs:
            if job.id in self._pending:
                continue
            if job.status == ImportStatus.queued and self.store.exists(job.file_ref):
                self._enqueue(QueuedImport(job.id, job.file_ref, job.company_id))
                requeued += 1
                continue

            if job.status == ImportStatus.running:
                failure = ImportFailure(
                    "Import was interrupted by a restart; rows committed before it are kept.",
                )
            else:
                failure = FileReadError(f"Upload {job.file_ref!r} is no longer stored.")
            summary = (
                ImportSummary.model_validate(job.summary) if job.summary else ImportSummary()
            )
            summary.finish_with(failure)
            self.store.delete(job.file_ref)
            await self._settle(job.id, summary, ImportStatus.aborted)
            logger.warning("Closed unfinished import %s: %s", job.id, failure.detail)

        if jobs:
            logger.info("Recovered %d unfinished import(s), %d re-queued", len(jobs), requeued)
        return requeued

    # ── Submission / cancellation ───────────────────────────────────

    async def submit(
        self,
        file_ref: str,
        company_id: int,
        *,
        original_filename: Optional[str] = None,
    ) -> str:
        """Record a queued import and hand it to the workers; returns the job id."""
        async with self.session_factory() as session:
            job = EmployeeImport(
                company_id=company_id,
                file_ref=file_ref,
                original_filename=original_filename,
                status=ImportStatus.queued,
            )
            session.add(job)
            await session.commit()
            job_id = job.id

        self._enqueue(QueuedImport(job_id=job_id, file_ref=file_ref, company_id=company_id))
        logger.info("Queued import %s for company %s (%s)", job_id, company_id, file_ref)
        return job_id

    def cancel(self, job_id: str) -> bool:
        """Flag a queued or running job; False if this dispatcher does not hold it."""
        queued = self._pending.get(job_id)
        if queued is None:
            return False
        queued.cancel_event.set()
        logger.info("Cancellation requested for import %s", job_id)
        return True

    def _enqueue(self, queued: QueuedImport) -> None:
        self._pending[queued.job_id] = queued
        self._queue.put_nowait(queued)

    # ── Workers ─────────────────────────────────────────────────────

    async def _work(self, index: int) -> None:
        while True:
            queued = await self._queue.get()
            try:
                await self._execute(queued)
            except asyncio.CancelledError:
                if queued.started:
                    await self._close(
                        queued, ImportFailure("Import was interrupted by a shutdown."),
                    )
                raise
            except Exception:
                # Keep the worker alive; settle the upload and the job row
                logger.exception("Import %s crashed in worker %d", queued.job_id, index)
                self.store.delete(queued.file_ref)
                await self._close(
                    queued, ImportFailure("Import stopped by an unexpected error."),
                )
            finally:
                self._pending.pop(queued.job_id, None)
                self._queue.task_done()

    async def _execute(self, queued: QueuedImport) -> None:
        if not await self._claim(queued.job_id):
            await self._skip(queued)
            return
        queued.started = True

        async def store_progress(summary: ImportSummary) -> None:
            await self._store_progress(queued.job_id, summary)

        summary = await self.runner.run(
            queued.file_ref,
            queued.company_id,
            cancel_event=queued.cancel_event,
            job_id=queued.job_id,
            summary=queued.summary,
            on_batch=store_progress,
        )
        await self._settle(queued.job_id, summary, summary.status)

    async def _claim(self, job_id: str) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                update(EmployeeImport)
                .where(
                    EmployeeImport.id == job_id,
                    EmployeeImport.status == ImportStatus.queued,
                )
                .values(status=ImportStatus.running, started_at=datetime.now(timezone.utc)),
            )
            await session.commit()
        return result.rowcount == 1

    async def _skip(self, queued: QueuedImport) -> None:
        """The job left ``queued`` before this worker got to it."""
        async with self.session_factory() as session:
            status = await session.scalar(
                select(EmployeeImport.status).where(EmployeeImport.id == queued.job_id),
            )
        if status is None or status in FINISHED_IMPORT_STATUSES:
            self.store.delete(queued.file_ref)
        logger.info("Skipped import %s (status %s)", queued.job_id, status)

    async def _store_progress(self, job_id: str, summary: ImportSummary) -> None:
        try:
            await self._write(
                job_id,
                total_rows=summary.total_rows,
                succeeded=summary.succeeded,
                failed=summary.failed,
                summary=summary.model_dump(mode="json"),
            )
        except SQLAlchemyError:
            # The run goes on; the final write carries the same numbers
            logger.warning("Could not store progress of import %s", job_id, exc_info=True)

    async def _close(self, queued: QueuedImport, failure: ImportFailure) -> None:
        queued.summary.finish_with(failure)
        try:
            await self._settle(queued.job_id, queued.summary, ImportStatus.aborted)
        except SQLAlchemyError:
            logger.exception("Could not record the failure of import %s", queued.job_id)

    async def _settle(self, job_id: str, summary: ImportSummary, status: ImportStatus) -> None:
        """Store the final state of a job that is still unfinished."""
        await self._write(
            job_id,
            status=status,
            total_rows=summary.total_rows,
            succeeded=summary.succeeded,
            failed=summary.failed,
            summary=summary.model_dump(mode="json"),
            finished_at=datetime.now(timezone.utc),
        )

    async def _write(self, job_id: str, **values) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(EmployeeImport)
                .where(
                    EmployeeImport.id == job_id,
                    EmployeeImport.status.in_(UNFINISHED_IMPORT_STATUSES),
                )
                .values(**values),
            )
            await session.commit()
