"""
Blob storage strategies using Strategy Pattern.

Payloads (uploaded files, pasted text bodies) live here, decoupled from the
metadata store:
- Local: files under a root directory, one file per key
- Memory: development/testing
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from share_app.errors import StorageFailureError

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """
    Abstract base class for blob stores.

    Keys are relative, slash-separated names such as "files/<id>-report.pdf"
    or "text/<id>.txt". The store has no notion of content type; that lives
    on the metadata record.
    """

    @abstractmethod
    async def put(self, key: str, data: bytes) -> None:
        """Store an object, replacing any previous one"""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Retrieve an object. Returns None if not found."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete an object. Returns True if it existed."""
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> List[str]:
        """List stored keys (used to reconcile orphaned payloads)"""
        pass


class LocalBlobStore(BlobStore):
    """
    Filesystem implementation.

    Objects are stored as files under root_dir, mirroring the key path.
    Writes go to a temp file first and are moved into place, so a reader
    never sees a half-written payload.
    """

    def __init__(self, root_dir: str):
        self.root = Path(root_dir).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise ValueError(f"Blob key escapes storage root: {key!r}")
        return path

    def _fail(self, operation: str, key: str, error: Exception):
        logger.exception("Blob %s failed for key %r", operation, key)
        return StorageFailureError(f"Blob {operation} failed: {error}")

    async def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(data)
                os.replace(tmp_name, path)
            except OSError:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise self._fail("put", key, e) from e

    async def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise self._fail("get", key, e) from e

    async def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise self._fail("delete", key, e) from e

    async def keys(self, prefix: str = "") -> List[str]:
        try:
            found = [
                p.relative_to(self.root).as_posix()
                for p in self.root.rglob("*")
                if p.is_file() and not p.name.startswith(".upload-")
            ]
        except OSError as e:
            raise self._fail("scan", prefix, e) from e
        return sorted(k for k in found if k.startswith(prefix))


class InMemoryBlobStore(BlobStore):
    """
    In-memory implementation using Python dict.

    Not persistent, not shared between processes. Used in tests and
    development.
    """

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}

    async def put(self, key: str, data: bytes) -> None:
        self._blobs[key] = bytes(data)

    async def get(self, key: str) -> Optional[bytes]:
        return self._blobs.get(key)

    async def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None

    async def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._blobs if k.startswith(prefix))
