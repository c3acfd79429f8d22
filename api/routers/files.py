from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from api.dependencies import get_container
from db.database import get_db
from db.models import Document
from doc_vault.container import ServiceContainer
from doc_vault.exception.custom_exception import NotFoundError
from doc_vault.logger import GLOBAL_LOGGER as log

router = APIRouter()


async def _load_file(db, container: ServiceContainer, document_id: str):
    doc: Document | None = await container.documents.get_document_by_id(db, document_id)
    if doc is None:
        raise NotFoundError(f"Document not found: {document_id}")

    path = container.storage.physical_path(doc.storage_path)
    if not path.is_file():
        log.error(
            "Stored file missing | document_id=%s | key=%s", document_id, doc.storage_path
        )
        raise NotFoundError(f"File content missing for document {document_id}")
    return doc, path


@router.get("/files/{document_id}/download", name="download_file")
async def download_file(
    document_id: str,
    db=Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    doc, path = await _load_file(db, container, document_id)
    return FileResponse(
        path,
        media_type=doc.mime_type,
        filename=doc.original_name,
        content_disposition_type="attachment",
    )


@router.get("/files/{document_id}/preview", name="preview_file")
async def preview_file(
    document_id: str,
    db=Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    doc, path = await _load_file(db, container, document_id)
    return FileResponse(
        path,
        media_type=doc.mime_type,
        filename=doc.original_name,
        content_disposition_type="inline",
    )
