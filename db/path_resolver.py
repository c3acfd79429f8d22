import asyncio
import weakref
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from doc_vault.exception.custom_exception import (
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from doc_vault.logger import GLOBAL_LOGGER as log

from .models import Folder


def split_virtual_path(virtual_path: str) -> List[str]:
    """
    "Data/2024/Logs" -> ["Data", "2024", "Logs"]
    "." / "" / "///" -> []
    """
    segments = [s for s in (virtual_path or "").split("/") if s and s != "."]
    if ".." in segments:
        raise ValidationError(f"Virtual path may not contain '..': {virtual_path!r}")
    return segments


class PathResolver:
    """
    Materializes a virtual directory path as a chain of Folder rows.

    Find-or-create is serialized per parent folder with an asyncio lock, and
    the (name, parent_id) unique constraint backs it up: a conflicting insert
    is rolled back and the existing row re-read. One instance must be shared
    by every caller in the process for the lock to mean anything.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, parent_id: str) -> asyncio.Lock:
        lock = self._locks.get(parent_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[parent_id] = lock
        return lock

    async def _find_child(
        self, db: AsyncSession, name: str, parent_id: str
    ) -> Optional[Folder]:
        out = await db.execute(
            select(Folder).where(Folder.name == name, Folder.parent_id == parent_id)
        )
        return out.scalar_one_or_none()

    async def _find_or_create(self, db: AsyncSession, name: str, parent_id: str) -> str:
        lock = self._lock_for(parent_id)
        async with lock:
            existing = await self._find_child(db, name, parent_id)
            if existing is not None:
                return existing.id

            folder = Folder(name=name, parent_id=parent_id)
            db.add(folder)
            try:
                # commit per segment so concurrent sessions see the row once the lock is released
                await db.commit()
            except IntegrityError:
                await db.rollback()
                existing = await self._find_child(db, name, parent_id)
                if existing is None:
                    raise DatabaseError(
                        f"Folder '{name}' conflicted under {parent_id} but could not be re-read"
                    )
                log.info(
                    "Folder created concurrently, reusing | name=%s | parent_id=%s",
                    name,
                    parent_id,
                )
                return existing.id
            except SQLAlchemyError as e:
                await db.rollback()
                raise DatabaseError(f"Failed to create folder '{name}'", e) from e

            log.info(
                "Folder created | folder_id=%s | name=%s | parent_id=%s",
                folder.id,
                name,
                parent_id,
            )
            return folder.id

    async def resolve(self, db: AsyncSession, virtual_path: str, start_folder_id: str) -> str:
        """
        Walk `virtual_path` below `start_folder_id`, creating missing folders,
        and return the id of the last one (or `start_folder_id` for an empty path).
        """
        segments = split_virtual_path(virtual_path)

        if await db.get(Folder, start_folder_id) is None:
            raise NotFoundError(f"Start folder not found: {start_folder_id}")

        cursor = start_folder_id
        for segment in segments:
            cursor = await self._find_or_create(db, segment, cursor)

        log.debug(
            "Resolved virtual path | path=%s | start=%s | folder_id=%s",
            virtual_path,
            start_folder_id,
            cursor,
        )
        return cursor
