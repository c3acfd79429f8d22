# tests/conftest.py
import io
from pathlib import Path

import pytest
import pytest_asyncio

from db.database import create_engine, create_session_factory, init_db
from db.document_repository import DocumentRepository
from db.folder_repository import FolderRepository
from db.path_resolver import PathResolver
from doc_vault.src.document_ingestion.extractor import ContentExtractor
from doc_vault.src.document_insights.insight_generator import InsightGenerator
from doc_vault.src.pipeline.job_runner import ProcessingPipeline
from doc_vault.utils.file_io import LocalStorage
from doc_vault.utils.settings import (
    AppSettings,
    DatabaseSettings,
    InsightSettings,
    PipelineSettings,
    StorageSettings,
)


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    """File-backed SQLite + temp upload dir, mock insights without delay."""
    return AppSettings(
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'vault.db'}"),
        storage=StorageSettings(upload_dir=tmp_path / "uploads"),
        insights=InsightSettings(mock_delay_seconds=0),
        pipeline=PipelineSettings(job_timeout_seconds=5, shutdown_grace_seconds=1),
    )


@pytest_asyncio.fixture
async def engine(settings):
    eng = create_engine(settings.database.url)
    await init_db(eng)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def folders() -> FolderRepository:
    return FolderRepository()


@pytest.fixture
def resolver() -> PathResolver:
    return PathResolver()


@pytest.fixture
def documents(folders, resolver) -> DocumentRepository:
    return DocumentRepository(folders, resolver)


@pytest_asyncio.fixture
async def root_id(session_factory, folders) -> str:
    # plain id: ORM instances may be expired by later rollbacks in a shared session
    async with session_factory() as session:
        root = await folders.ensure_root(session)
        return root.id


@pytest.fixture
def storage(settings) -> LocalStorage:
    return LocalStorage(settings.storage.upload_dir)


@pytest.fixture
def generator(settings) -> InsightGenerator:
    return InsightGenerator(settings.insights)


@pytest.fixture
def make_pipeline(session_factory, documents, storage):
    """Build a pipeline, optionally with a substitute generator or timeout."""

    def _make(generator, job_timeout_seconds=5):
        return ProcessingPipeline(
            session_factory=session_factory,
            documents=documents,
            storage=storage,
            extractor=ContentExtractor(),
            generator=generator,
            job_timeout_seconds=job_timeout_seconds,
        )

    return _make


@pytest.fixture
def pipeline(make_pipeline, generator) -> ProcessingPipeline:
    return make_pipeline(generator)


@pytest.fixture
def store_upload(storage, session_factory, documents, root_id):
    """Write bytes to storage and register a QUEUED document for them."""

    async def _store(
        content: bytes,
        relative_path: str = "notes.txt",
        mime_type: str = "text/plain",
    ):
        name = Path(relative_path).name
        key, written = await storage.save_upload(name, io.BytesIO(content))
        async with session_factory() as session:
            doc = await documents.create_document(
                session,
                original_name=name,
                storage_path=key,
                mime_type=mime_type,
                size=written,
                parent_folder_id=root_id,
                relative_path=relative_path,
            )
        return doc.id

    return _store
