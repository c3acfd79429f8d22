from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class BreadcrumbOut(CamelModel):
    id: str
    name: str


class FolderOut(CamelModel):
    id: str
    name: str
    parent_id: Optional[str] = None
    created_at: datetime


class DocumentListItem(CamelModel):
    id: str
    original_name: str
    status: str
    mime_type: str
    size: int
    created_at: datetime
    download_url: Optional[str] = None


class FolderContentsOut(CamelModel):
    metadata: FolderOut
    breadcrumbs: List[BreadcrumbOut]
    folders: List[FolderOut]
    documents: List[DocumentListItem]


class DocumentDetailsOut(CamelModel):
    id: str
    original_name: str
    folder_id: str
    mime_type: str
    size: int
    status: str
    summary: Optional[str] = None
    markdown: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    breadcrumbs: List[BreadcrumbOut]
    preview_url: str
    download_url: str


class UploadAccepted(CamelModel):
    message: str
    document_id: str


class ErrorOut(BaseModel):
    error: str
    message: str
