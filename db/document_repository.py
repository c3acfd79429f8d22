from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from doc_vault.exception.custom_exception import (
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from doc_vault.logger import GLOBAL_LOGGER as log

from .folder_repository import Breadcrumb, FolderRepository
from .models import Document, DocumentStatus
from .path_resolver import PathResolver

# QUEUED -> PROCESSING -> {COMPLETED | FAILED}; terminal states have no exits
ALLOWED_TRANSITIONS = {
    DocumentStatus.QUEUED: {DocumentStatus.PROCESSING},
    DocumentStatus.PROCESSING: {DocumentStatus.COMPLETED, DocumentStatus.FAILED},
    DocumentStatus.COMPLETED: set(),
    DocumentStatus.FAILED: set(),
}


@dataclass
class DocumentDetails:
    document: Document
    breadcrumbs: List[Breadcrumb] = field(default_factory=list)


def directory_of(relative_path: str) -> str:
    """
    "Data/2024/file.pdf" -> "Data/2024"
    "file.pdf"           -> "."
    """
    return str(PurePosixPath(relative_path or ".").parent)


class DocumentRepository:
    """
    Repository providing create / read / status operations for documents.
    """

    def __init__(self, folders: FolderRepository, resolver: PathResolver):
        self.folders = folders
        self.resolver = resolver

    async def create_document(
        self,
        db: AsyncSession,
        *,
        original_name: str,
        storage_path: str,
        mime_type: str,
        size: int,
        parent_folder_id: str,
        relative_path: str,
    ) -> Document:
        # 1. validate the drop target (accepts the "root" sentinel)
        parent_id = await self.folders.resolve_folder_id(db, parent_folder_id)

        # 2. strip the filename and materialize the directory chain
        final_folder_id = await self.resolver.resolve(db, directory_of(relative_path), parent_id)

        # 3. insert the document in QUEUED state
        doc = Document(
            original_name=original_name,
            storage_path=storage_path,
            mime_type=mime_type,
            size=size,
            folder_id=final_folder_id,
            status=DocumentStatus.QUEUED.value,
        )
        db.add(doc)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise DatabaseError(f"Failed to create document '{original_name}'", e) from e

        log.info(
            "Document created | document_id=%s | folder_id=%s | name=%s",
            doc.id,
            final_folder_id,
            original_name,
        )
        return doc

    async def get_document_by_id(self, db: AsyncSession, document_id: str) -> Optional[Document]:
        return await db.get(Document, document_id)

    async def get_document_details(self, db: AsyncSession, document_id: str) -> DocumentDetails:
        doc = await self.get_document_by_id(db, document_id)
        if doc is None:
            raise NotFoundError(f"Document not found: {document_id}")
        breadcrumbs = await self.folders.get_breadcrumbs(db, doc.folder_id)
        return DocumentDetails(document=doc, breadcrumbs=breadcrumbs)

    async def list_documents_by_status(
        self, db: AsyncSession, status: DocumentStatus
    ) -> List[Document]:
        out = await db.execute(
            select(Document).where(Document.status == status.value).order_by(Document.created_at)
        )
        return list(out.scalars().all())

    async def _load_for_update(self, db: AsyncSession, document_id: str) -> Document:
        doc = await db.get(Document, document_id, populate_existing=True)
        if doc is None:
            raise NotFoundError(f"Document not found: {document_id}")
        return doc

    @staticmethod
    def _check_transition(doc: Document, target: DocumentStatus) -> None:
        current = DocumentStatus(doc.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise ValidationError(
                f"Illegal status transition {current.value} -> {target.value} "
                f"for document {doc.id}"
            )

    async def _commit(self, db: AsyncSession, doc: Document, action: str) -> Document:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise DatabaseError(f"Failed to {action} for document {doc.id}", e) from e
        await db.refresh(doc)
        return doc

    async def update_status(
        self, db: AsyncSession, document_id: str, status: DocumentStatus
    ) -> Document:
        status = DocumentStatus(status)
        doc = await self._load_for_update(db, document_id)
        self._check_transition(doc, status)

        doc.status = status.value
        doc = await self._commit(db, doc, "update status")
        log.info("Document status updated | document_id=%s | status=%s", document_id, status.value)
        return doc

    async def save_results(
        self, db: AsyncSession, document_id: str, summary: str, markdown: str
    ) -> Document:
        """Store generated content and mark COMPLETED in the same write."""
        doc = await self._load_for_update(db, document_id)
        self._check_transition(doc, DocumentStatus.COMPLETED)

        doc.summary = summary
        doc.markdown = markdown
        doc.status = DocumentStatus.COMPLETED.value
        doc = await self._commit(db, doc, "save results")
        log.info("Document results saved | document_id=%s", document_id)
        return doc
