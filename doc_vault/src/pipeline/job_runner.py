from __future__ import annotations

import asyncio
from typing import Dict, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.document_repository import DocumentRepository
from db.models import DocumentStatus
from doc_vault.exception.custom_exception import DocumentVaultException
from doc_vault.logger import GLOBAL_LOGGER as log
from doc_vault.src.document_ingestion.extractor import ContentExtractor
from doc_vault.src.document_insights.insight_generator import InsightGenerator
from doc_vault.utils.file_io import LocalStorage


class ProcessingPipeline:
    """
    Runs extraction + insight generation for uploaded documents.

    Jobs are plain asyncio tasks on the running loop: `enqueue` returns at once
    and the job drives QUEUED -> PROCESSING -> COMPLETED | FAILED on its own.
    Every status write uses its own short-lived session. Nothing raised inside
    a job escapes it; failures end up as FAILED plus a log line.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        documents: DocumentRepository,
        storage: LocalStorage,
        extractor: ContentExtractor,
        generator: InsightGenerator,
        job_timeout_seconds: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self._documents = documents
        self._storage = storage
        self._extractor = extractor
        self._generator = generator
        self._job_timeout = job_timeout_seconds

        self._tasks: Set[asyncio.Task] = set()
        self._in_flight: Set[str] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def enqueue(self, document_id: str) -> Optional[asyncio.Task]:
        """Schedule a job for `document_id` without waiting for it."""
        if document_id in self._in_flight:
            log.warning("Job already in flight, ignoring | document_id=%s", document_id)
            return None

        self._in_flight.add(document_id)
        task = asyncio.create_task(
            self._run_claimed(document_id), name=f"document-job-{document_id}"
        )
        # keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        log.info("Queued job | document_id=%s", document_id)
        return task

    async def run_job(self, document_id: str) -> None:
        """Run one job inline. Same guarantees as an enqueued job."""
        if document_id in self._in_flight:
            log.warning("Job already in flight, ignoring | document_id=%s", document_id)
            return
        self._in_flight.add(document_id)
        await self._run_claimed(document_id)

    async def _run_claimed(self, document_id: str) -> None:
        try:
            try:
                storage_path = await self._claim(document_id)
            except Exception as e:
                log.error(
                    "Could not claim document, left for startup recovery | document_id=%s | error=%s",
                    document_id,
                    str(e),
                    exc_info=True,
                )
                return
            if storage_path is None:
                return

            # the timeout covers the work only: a claimed document is always PROCESSING
            if self._job_timeout:
                await asyncio.wait_for(
                    self._process(document_id, storage_path), timeout=self._job_timeout
                )
            else:
                await self._process(document_id, storage_path)
        except asyncio.TimeoutError:
            log.error(
                "Job timed out | document_id=%s | timeout_s=%s", document_id, self._job_timeout
            )
            await self._mark_failed(document_id)
        except asyncio.CancelledError:
            log.warning("Job cancelled | document_id=%s", document_id)
            raise
        except Exception as e:
            log.error(
                "Failed job | document_id=%s | error=%s", document_id, str(e), exc_info=True
            )
            await self._mark_failed(document_id)
        finally:
            self._in_flight.discard(document_id)

    async def _claim(self, document_id: str) -> Optional[str]:
        """Move a QUEUED document to PROCESSING. Returns its storage key, or None to skip."""
        async with self._session_factory() as db:
            doc = await self._documents.get_document_by_id(db, document_id)
            if doc is None:
                log.warning("Document not found, job aborted | document_id=%s", document_id)
                return None
            if doc.status != DocumentStatus.QUEUED.value:
                log.warning(
                    "Document not queued, job skipped | document_id=%s | status=%s",
                    document_id,
                    doc.status,
                )
                return None
            storage_path = doc.storage_path
            await self._documents.update_status(db, document_id, DocumentStatus.PROCESSING)
        return storage_path

    async def _process(self, document_id: str, storage_path: str) -> None:
        # 1. Extract
        location = self._storage.physical_path(storage_path)
        text = await self._extractor.extract_text(location)
        if not text.strip():
            log.warning("No text extracted, marking FAILED | document_id=%s", document_id)
            await self._mark_failed(document_id)
            return

        # 2. Analyze
        insights = await self._generator.generate_insights(text)

        # 3. Save results (content + COMPLETED in one write)
        async with self._session_factory() as db:
            await self._documents.save_results(
                db, document_id, insights.summary, insights.markdown
            )
        log.info("Completed job | document_id=%s", document_id)

    async def _mark_failed(self, document_id: str) -> None:
        try:
            async with self._session_factory() as db:
                await self._documents.update_status(db, document_id, DocumentStatus.FAILED)
        except Exception as e:
            log.error(
                "Could not mark document as FAILED | document_id=%s | error=%s",
                document_id,
                str(e),
                exc_info=True,
            )

    async def recover_pending(self) -> Dict[str, int]:
        """
        Startup recovery for jobs lost with the previous process:
        PROCESSING documents are marked FAILED, QUEUED ones are re-enqueued.
        """
        failed = 0
        async with self._session_factory() as db:
            stalled = await self._documents.list_documents_by_status(
                db, DocumentStatus.PROCESSING
            )
            for doc in stalled:
                try:
                    await self._documents.update_status(db, doc.id, DocumentStatus.FAILED)
                    failed += 1
                except DocumentVaultException as e:
                    log.error(
                        "Recovery could not fail document | document_id=%s | error=%s",
                        doc.id,
                        str(e),
                    )
            queued = await self._documents.list_documents_by_status(db, DocumentStatus.QUEUED)
            queued_ids = [doc.id for doc in queued]

        requeued = sum(1 for doc_id in queued_ids if self.enqueue(doc_id) is not None)
        log.info("Pipeline recovery done | failed=%d | requeued=%d", failed, requeued)
        return {"failed": failed, "requeued": requeued}

    async def drain(self) -> None:
        """Wait until every scheduled job has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self, grace_seconds: float = 10) -> None:
        if not self._tasks:
            return
        log.info("Pipeline shutting down | pending=%d", len(self._tasks))
        _, still_running = await asyncio.wait(set(self._tasks), timeout=grace_seconds)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            log.warning("Cancelled unfinished jobs | count=%d", len(still_running))
