from fastapi import APIRouter, Depends, Request

from api.dependencies import get_container
from api.schemas import (
    BreadcrumbOut,
    DocumentListItem,
    ErrorOut,
    FolderContentsOut,
    FolderOut,
)
from db.database import get_db
from doc_vault.container import ServiceContainer

router = APIRouter()


def _folder_out(folder) -> FolderOut:
    return FolderOut(
        id=folder.id,
        name=folder.name,
        parent_id=folder.parent_id,
        created_at=folder.created_at,
    )


@router.get(
    "/api/folders/{folder_id}",
    response_model=FolderContentsOut,
    responses={404: {"model": ErrorOut}},
)
async def get_folder(
    folder_id: str,
    request: Request,
    db=Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    """
    Folder navigation: metadata, breadcrumbs, sub-folders and documents.
    `root` selects the root folder.
    """
    contents = await container.folders.get_folder_contents(db, folder_id)

    documents = [
        DocumentListItem(
            id=d.id,
            original_name=d.original_name,
            status=d.status,
            mime_type=d.mime_type,
            size=d.size,
            created_at=d.created_at,
            download_url=str(request.url_for("download_file", document_id=d.id)),
        )
        for d in contents.documents
    ]

    return FolderContentsOut(
        metadata=_folder_out(contents.folder),
        breadcrumbs=[BreadcrumbOut(id=b.id, name=b.name) for b in contents.breadcrumbs],
        folders=[_folder_out(f) for f in contents.folders],
        documents=documents,
    )
