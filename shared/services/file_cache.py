"""
Best-effort on-disk cache of processed files.

One JSON document per file id. Every failure is logged and treated as a miss;
the cache never fails the in-memory operation it backs.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote, unquote

from pydantic import ValidationError

from shared.models.files import StoredFile
from shared.utils.app_logger import get_logger

logger = get_logger(__name__)

_SUFFIX = ".json"


class FileCache:
    """JSON file cache rooted at `cache_dir`"""

    def __init__(self, cache_dir: str = ".cache"):
        self.cache_dir = Path(cache_dir)

    def _path(self, file_id: str) -> Path:
        # Percent-encode so ids containing path separators stay inside cache_dir
        return self.cache_dir / f"{quote(file_id, safe='')}{_SUFFIX}"

    def set(self, file_id: str, data: StoredFile) -> bool:
        tmp_name = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            payload = data.model_dump_json(indent=2)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.cache_dir, suffix=".tmp", delete=False
            ) as fh:
                tmp_name = fh.name
                fh.write(payload)
            os.replace(tmp_name, self._path(file_id))
            logger.info(f"💾 Cached file {file_id} at {self._path(file_id)}")
            return True
        except OSError as e:
            logger.error(f"❌ Failed to write cache entry for {file_id}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError as cleanup_error:
                    logger.warning(f"Could not remove temp cache file {tmp_name}: {cleanup_error}")
            return False

    def get(self, file_id: str) -> Optional[StoredFile]:
        path = self._path(file_id)
        try:
            if not path.exists():
                logger.debug(f"Cache miss for {file_id}")
                return None
            return StoredFile.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, ValueError) as e:
            logger.error(f"❌ Failed to read cache entry for {file_id}: {e}")
            return None

    def has(self, file_id: str) -> bool:
        try:
            return self._path(file_id).exists()
        except OSError as e:
            logger.error(f"❌ Failed to stat cache entry for {file_id}: {e}")
            return False

    def list(self) -> List[str]:
        try:
            if not self.cache_dir.exists():
                return []
            return sorted(
                unquote(p.name[: -len(_SUFFIX)])
                for p in self.cache_dir.iterdir()
                if p.is_file() and p.name.endswith(_SUFFIX)
            )
        except OSError as e:
            logger.error(f"❌ Failed to list cache directory {self.cache_dir}: {e}")
            return []

    def delete(self, file_id: str) -> bool:
        path = self._path(file_id)
        try:
            if path.exists():
                path.unlink()
                logger.info(f"🗑️ Removed cache entry {file_id}")
                return True
            return False
        except OSError as e:
            logger.error(f"❌ Failed to delete cache entry for {file_id}: {e}")
            return False

    def clear(self) -> int:
        removed = 0
        for file_id in self.list():
            if self.delete(file_id):
                removed += 1
        logger.info(f"🧹 Cache cleared ({removed} entries)")
        return removed
