from fastapi import APIRouter, Depends, Request

from api.dependencies import get_container
from api.schemas import BreadcrumbOut, DocumentDetailsOut, ErrorOut
from db.database import get_db
from doc_vault.container import ServiceContainer

router = APIRouter()


@router.get(
    "/api/documents/{document_id}",
    response_model=DocumentDetailsOut,
    responses={404: {"model": ErrorOut}},
)
async def get_document(
    document_id: str,
    request: Request,
    db=Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    """Document metadata + generated content + links for the viewer. Storage key stays private."""
    details = await container.documents.get_document_details(db, document_id)
    doc = details.document

    return DocumentDetailsOut(
        id=doc.id,
        original_name=doc.original_name,
        folder_id=doc.folder_id,
        mime_type=doc.mime_type,
        size=doc.size,
        status=doc.status,
        summary=doc.summary,
        markdown=doc.markdown,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
        breadcrumbs=[BreadcrumbOut(id=b.id, name=b.name) for b in details.breadcrumbs],
        preview_url=str(request.url_for("preview_file", document_id=doc.id)),
        download_url=str(request.url_for("download_file", document_id=doc.id)),
    )
