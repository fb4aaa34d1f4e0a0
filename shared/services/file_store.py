"""
Process-wide store of processed files.

Built once at application start-up and handed to request handlers. Each entry
is replaced as a whole, so concurrent readers see either the old or the new
StoredFile and never a half-written one.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from shared.config.settings import StorageSettings
from shared.models.files import StoredFile
from shared.services.file_cache import FileCache
from shared.utils.app_logger import get_logger

logger = get_logger(__name__)


class FileStore:
    """In-memory file id -> StoredFile mapping with an optional disk cache behind it"""

    def __init__(self, cache: Optional[FileCache] = None):
        self._files: Dict[str, StoredFile] = {}
        self._cache = cache

    @classmethod
    def from_settings(cls, storage: StorageSettings) -> "FileStore":
        cache = FileCache(storage.file_cache_dir) if storage.file_cache_enabled else None
        return cls(cache=cache)

    @property
    def cache(self) -> Optional[FileCache]:
        return self._cache

    def put(self, file_id: str, stored: StoredFile) -> None:
        self._files[file_id] = stored
        if self._cache is not None:
            self._cache.set(file_id, stored)
        logger.info(f"Stored file {file_id} ({len(self._files)} in memory)")

    def get(self, file_id: str) -> Optional[StoredFile]:
        stored = self._files.get(file_id)
        if stored is not None:
            return stored
        if self._cache is None:
            return None

        cached = self._cache.get(file_id)
        if cached is not None:
            self._files[file_id] = cached
            logger.info(f"Restored file {file_id} from disk cache")
        return cached

    def has(self, file_id: str) -> bool:
        if file_id in self._files:
            return True
        return self._cache is not None and self._cache.has(file_id)

    def list(self) -> List[str]:
        ids = set(self._files)
        if self._cache is not None:
            ids.update(self._cache.list())
        return sorted(ids)

    def delete(self, file_id: str) -> bool:
        removed = self._files.pop(file_id, None) is not None
        if self._cache is not None:
            removed = self._cache.delete(file_id) or removed
        return removed

    def size(self) -> int:
        return len(self.list())
