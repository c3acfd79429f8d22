import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from doc_vault.exception.custom_exception import DatabaseError, NotFoundError
from doc_vault.logger import GLOBAL_LOGGER as log

from .models import ROOT_FOLDER_NAME, Document, Folder

ROOT_SENTINEL = "root"


@dataclass
class Breadcrumb:
    id: str
    name: str


@dataclass
class FolderContents:
    folder: Folder
    breadcrumbs: List[Breadcrumb] = field(default_factory=list)
    folders: List[Folder] = field(default_factory=list)
    documents: List[Document] = field(default_factory=list)


class FolderRepository:
    """
    Read side of the folder tree plus root initialization.
    Non-root folders are only ever created by the PathResolver.
    """

    def __init__(self):
        self._root_lock = asyncio.Lock()

    async def ensure_root(self, db: AsyncSession) -> Folder:
        """Return the root folder, creating it on first call."""
        async with self._root_lock:
            root = await self._find_root(db)
            if root is not None:
                log.info("Root folder already exists | folder_id=%s", root.id)
                return root

            root = Folder(name=ROOT_FOLDER_NAME, parent_id=None)
            db.add(root)
            try:
                await db.commit()
            except IntegrityError:
                # another process created it between our read and write
                await db.rollback()
                root = await self._find_root(db)
                if root is None:
                    raise DatabaseError("Root folder creation conflicted but no root exists")
                return root
            except SQLAlchemyError as e:
                await db.rollback()
                raise DatabaseError("Failed to create root folder", e) from e

            log.info("Created root folder | folder_id=%s", root.id)
            return root

    async def _find_root(self, db: AsyncSession) -> Optional[Folder]:
        out = await db.execute(
            select(Folder)
            .where(Folder.parent_id.is_(None))
            .order_by(Folder.created_at)
            .limit(1)
        )
        return out.scalar_one_or_none()

    async def get_root(self, db: AsyncSession) -> Folder:
        root = await self._find_root(db)
        if root is None:
            raise NotFoundError("Root folder not found; the vault was not initialized")
        return root

    async def get_folder(self, db: AsyncSession, folder_id: str) -> Optional[Folder]:
        return await db.get(Folder, folder_id)

    async def resolve_folder_id(self, db: AsyncSession, folder_id: Optional[str]) -> str:
        """
        Map a caller-supplied folder selector to a real id. `None` and the
        "root" sentinel select the root; anything else must exist.
        """
        if folder_id is None or folder_id == ROOT_SENTINEL:
            return (await self.get_root(db)).id
        if await self.get_folder(db, folder_id) is None:
            raise NotFoundError(f"Folder not found: {folder_id}")
        return folder_id

    async def get_breadcrumbs(self, db: AsyncSession, folder_id: str) -> List[Breadcrumb]:
        """
        Walks up the tree from the given folder to the root.
        Returns root first. A missing ancestor (or a cycle) ends the walk.
        """
        breadcrumbs: List[Breadcrumb] = []
        seen: set[str] = set()
        current_id: Optional[str] = folder_id

        while current_id and current_id not in seen:
            seen.add(current_id)
            folder = await db.get(Folder, current_id)
            if folder is None:
                log.warning(
                    "Breadcrumb walk stopped at missing folder | folder_id=%s | start=%s",
                    current_id,
                    folder_id,
                )
                break
            breadcrumbs.append(Breadcrumb(id=folder.id, name=folder.name))
            current_id = folder.parent_id

        breadcrumbs.reverse()
        return breadcrumbs

    async def get_folder_contents(
        self, db: AsyncSession, folder_id: Optional[str]
    ) -> FolderContents:
        """
        Folder metadata, breadcrumbs, immediate sub-folders and documents,
        both ordered by name ascending.
        """
        resolved_id = await self.resolve_folder_id(db, folder_id)
        folder = await db.get(Folder, resolved_id)

        children = await db.execute(
            select(Folder).where(Folder.parent_id == resolved_id).order_by(Folder.name.asc())
        )
        documents = await db.execute(
            select(Document)
            .where(Document.folder_id == resolved_id)
            .order_by(Document.original_name.asc(), Document.created_at.asc())
        )

        contents = FolderContents(
            folder=folder,
            breadcrumbs=await self.get_breadcrumbs(db, resolved_id),
            folders=list(children.scalars().all()),
            documents=list(documents.scalars().all()),
        )
        log.info(
            "Listed folder contents | folder_id=%s | folders=%d | documents=%d",
            resolved_id,
            len(contents.folders),
            len(contents.documents),
        )
        return contents
