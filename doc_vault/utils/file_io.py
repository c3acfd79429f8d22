from __future__ import annotations

import re
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO

from doc_vault.exception.custom_exception import FileSystemError
from doc_vault.logger import GLOBAL_LOGGER as log
from doc_vault.utils.thread_pool import run_sync

_SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


class LocalStorage:
    """
    Keeps uploaded bytes under a single managed directory.

    Storage keys are opaque to the rest of the system: callers persist the key
    and hand it back to `physical_path` when they need the bytes.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        log.info("Storage ready | root=%s", str(self.root))

    @staticmethod
    def _generate_key(filename: str) -> str:
        extension = Path(filename).suffix.lower()
        # keep only well-formed extensions, they help previews pick a viewer
        if not _SAFE_EXTENSION.match(extension):
            extension = ""
        return f"{uuid.uuid4().hex}{extension}"

    def physical_path(self, storage_key: str) -> Path:
        """Resolve a storage key to an absolute path inside the storage root."""
        if not storage_key or "\x00" in storage_key:
            raise FileSystemError(f"Invalid storage key: {storage_key!r}")

        candidate = (self.root / storage_key).resolve()
        if candidate == self.root or not candidate.is_relative_to(self.root):
            log.warning("Rejected storage key outside root | key=%s", storage_key)
            raise FileSystemError(f"Storage key resolves outside storage root: {storage_key!r}")
        return candidate

    def _write(self, storage_key: str, data: BinaryIO) -> int:
        target = self.physical_path(storage_key)
        try:
            with open(target, "wb") as f:
                shutil.copyfileobj(data, f)
            return target.stat().st_size
        except OSError as e:
            raise FileSystemError(f"Failed to write {storage_key}", e) from e

    async def save_upload(self, filename: str, data: BinaryIO) -> tuple[str, int]:
        """
        Persist an uploaded stream under a freshly generated key.
        Returns (storage_key, bytes_written).
        """
        key = self._generate_key(filename)
        written = await run_sync(self._write, key, data)
        log.info("File stored | uploaded=%s | key=%s | bytes=%d", filename, key, written)
        return key, written

    def discard(self, storage_key: str) -> None:
        """Remove stored bytes whose metadata never made it to the database."""
        try:
            self.physical_path(storage_key).unlink(missing_ok=True)
            log.info("Discarded stored file | key=%s", storage_key)
        except (OSError, FileSystemError) as e:
            log.error("Failed to discard stored file | key=%s | error=%s", storage_key, str(e))
