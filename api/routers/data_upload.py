import mimetypes
from pathlib import PurePosixPath
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.dependencies import get_container
from api.schemas import ErrorOut, UploadAccepted
from db.database import get_db
from doc_vault.container import ServiceContainer
from doc_vault.exception.custom_exception import ValidationError
from doc_vault.logger import GLOBAL_LOGGER as log

router = APIRouter()


def _detect_mime_type(upload: UploadFile) -> str:
    if upload.content_type:
        return upload.content_type
    mime, _ = mimetypes.guess_type(upload.filename or "")
    return mime or "application/octet-stream"


@router.post(
    "/api/documents",
    status_code=202,
    response_model=UploadAccepted,
    responses={400: {"model": ErrorOut}, 404: {"model": ErrorOut}},
)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    file_path: Optional[str] = Form(None, alias="filePath"),
    parent_folder_id: Optional[str] = Form(None, alias="parentFolderId"),
    db=Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    """
    Upload endpoint:
      - Stores the bytes under a generated storage key
      - Materializes the folders of `filePath` below `parentFolderId`
      - Creates a QUEUED document and hands it to the pipeline
    Responds as soon as the document row exists; processing continues in the background.
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")
    if not file_path:
        raise ValidationError("filePath is required")
    if not parent_folder_id:
        raise ValidationError("parentFolderId is required")

    original_name = PurePosixPath(file.filename).name
    storage_key, written = await container.storage.save_upload(original_name, file.file)

    try:
        doc = await container.documents.create_document(
            db,
            original_name=original_name,
            storage_path=storage_key,
            mime_type=_detect_mime_type(file),
            size=file.size if file.size is not None else written,
            parent_folder_id=parent_folder_id,
            relative_path=file_path,
        )
    except Exception:
        container.storage.discard(storage_key)
        raise

    container.pipeline.enqueue(doc.id)

    log.info(
        "Upload accepted | document_id=%s | file_path=%s | parent_folder_id=%s",
        doc.id,
        file_path,
        parent_folder_id,
    )
    return UploadAccepted(message="Upload accepted", document_id=doc.id)
