from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from db.database import create_engine, create_session_factory, init_db
from db.document_repository import DocumentRepository
from db.folder_repository import FolderRepository
from db.models import Folder
from db.path_resolver import PathResolver
from doc_vault.logger import GLOBAL_LOGGER as log
from doc_vault.src.document_ingestion.extractor import ContentExtractor
from doc_vault.src.document_insights.insight_generator import InsightGenerator
from doc_vault.src.pipeline.job_runner import ProcessingPipeline
from doc_vault.utils.file_io import LocalStorage
from doc_vault.utils.settings import AppSettings


@dataclass
class ServiceContainer:
    """Everything the routes and the pipeline share, built once per process."""

    settings: AppSettings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    storage: LocalStorage
    folders: FolderRepository
    resolver: PathResolver
    documents: DocumentRepository
    extractor: ContentExtractor
    generator: InsightGenerator
    pipeline: ProcessingPipeline

    async def initialize(self) -> Folder:
        """Create tables and the root folder. Safe to call repeatedly."""
        await init_db(self.engine)
        async with self.session_factory() as db:
            return await self.folders.ensure_root(db)

    async def close(self) -> None:
        await self.pipeline.shutdown(self.settings.pipeline.shutdown_grace_seconds)
        await self.engine.dispose()
        log.info("Service container closed")


def build_container(
    settings: AppSettings, generator: Optional[InsightGenerator] = None
) -> ServiceContainer:
    engine = create_engine(settings.database.url, echo=settings.database.echo)
    session_factory = create_session_factory(engine)

    storage = LocalStorage(settings.storage.upload_dir)
    folders = FolderRepository()
    resolver = PathResolver()
    documents = DocumentRepository(folders, resolver)
    extractor = ContentExtractor()
    generator = generator or InsightGenerator(settings.insights)

    pipeline = ProcessingPipeline(
        session_factory=session_factory,
        documents=documents,
        storage=storage,
        extractor=extractor,
        generator=generator,
        job_timeout_seconds=settings.pipeline.job_timeout_seconds,
    )

    log.info("Service container built | insights_mode=%s", generator.mode)
    return ServiceContainer(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        storage=storage,
        folders=folders,
        resolver=resolver,
        documents=documents,
        extractor=extractor,
        generator=generator,
        pipeline=pipeline,
    )
