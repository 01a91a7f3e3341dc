"""
Metadata store strategies using Strategy Pattern.
Allows switching between different key-value backends (SQL, Redis, In-Memory).

The metadata store is a flat namespace of JSON strings addressed by prefixed
keys. Each backend maps its own faults to StorageFailureError so callers never
see raw infrastructure exceptions.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from redis.exceptions import RedisError
from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from share_app.errors import StorageFailureError
from share_app.models.kv_entry import KVEntry

logger = logging.getLogger(__name__)


class MetadataStore(ABC):
    """
    Abstract base class for metadata stores.

    This is the Strategy Pattern interface - services are written against it
    and never know which backend is configured.

    All methods are async because most backends involve I/O.
    TTLs are in seconds; None means the key never expires on its own.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or None if absent/expired"""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Write a value, overwriting whatever was there"""
        pass

    @abstractmethod
    async def add(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """
        Write a value only if the key is absent (atomic create-if-absent).

        Returns:
            True if the key was created, False if it already existed
        """
        pass

    @abstractmethod
    async def replace(self, key: str, value: str) -> bool:
        """
        Overwrite a value only if the key is still present (set-if-present).

        The key's TTL, if any, is left as it was.

        Returns:
            True if the key was updated, False if it no longer exists
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if deleted, False if key didn't exist
        """
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> List[str]:
        """Return all live keys starting with prefix"""
        pass

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None


class RedisMetadataStore(MetadataStore):
    """
    Redis implementation.

    - SET NX gives a real atomic create-if-absent, SET XX the matching
      set-if-present used for counter writes
    - native TTLs (EX) for the listing index and daily counters
    - SCAN instead of KEYS so large namespaces don't block the server

    Keys of a non-empty namespace are stored as "{namespace}:{key}".
    """

    def __init__(self, redis_client, namespace: str = ""):
        """
        Initialize Redis metadata store.

        Args:
            redis_client: Redis client instance (redis.Redis)
            namespace: Key prefix isolating this store from others
        """
        self.redis = redis_client
        self.namespace = namespace
        self._prefix = f"{namespace}:" if namespace else ""

    def _fail(self, operation: str, key: str, error: Exception):
        logger.exception("Redis %s failed for key %r", operation, key)
        return StorageFailureError(f"Redis {operation} failed: {error}")

    async def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(self._prefix + key)
        except RedisError as e:
            raise self._fail("get", key, e) from e
        return value.decode("utf-8") if value is not None else None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        try:
            self.redis.set(self._prefix + key, value, ex=ttl)
        except RedisError as e:
            raise self._fail("set", key, e) from e

    async def add(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        try:
            return bool(self.redis.set(self._prefix + key, value, ex=ttl, nx=True))
        except RedisError as e:
            raise self._fail("add", key, e) from e

    async def replace(self, key: str, value: str) -> bool:
        try:
            return bool(self.redis.set(self._prefix + key, value, xx=True, keepttl=True))
        except RedisError as e:
            raise self._fail("replace", key, e) from e

    async def delete(self, key: str) -> bool:
        try:
            return bool(self.redis.delete(self._prefix + key))
        except RedisError as e:
            raise self._fail("delete", key, e) from e

    async def keys(self, prefix: str = "") -> List[str]:
        pattern = self._prefix + prefix + "*"
        try:
            raw_keys = list(self.redis.scan_iter(match=pattern, count=500))
        except RedisError as e:
            raise self._fail("scan", prefix, e) from e

        strip = len(self._prefix)
        return [
            (k.decode("utf-8") if isinstance(k, bytes) else k)[strip:]
            for k in raw_keys
        ]


class SQLMetadataStore(MetadataStore):
    """
    SQL implementation on top of a single kv_entries table (SQLAlchemy).

    Pros:
    - Zero extra infrastructure (SQLite by default)
    - Persistent
    - Primary key insert gives atomic create-if-absent

    Cons:
    - Prefix scans are LIKE queries
    - TTL is enforced at read time (expired rows are filtered, then deleted lazily)

    Timestamps are stored as naive UTC.
    """

    def __init__(self, session_factory, namespace: str = ""):
        """
        Args:
            session_factory: Factory for creating database sessions
            namespace: Value of the namespace column for this store
        """
        self.session_factory = session_factory
        self.namespace = namespace

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def _expiry(self, ttl: Optional[int]) -> Optional[datetime]:
        return self._now() + timedelta(seconds=ttl) if ttl else None

    def _live(self, now: datetime):
        return or_(KVEntry.expires_at.is_(None), KVEntry.expires_at > now)

    def _fail(self, operation: str, key: str, error: Exception):
        logger.exception("SQL %s failed for key %r", operation, key)
        return StorageFailureError(f"SQL {operation} failed: {error}")

    async def get(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            entry = db.execute(
                select(KVEntry).where(
                    KVEntry.namespace == self.namespace,
                    KVEntry.key == key,
                    self._live(self._now()),
                )
            ).scalar_one_or_none()
            return entry.value if entry else None
        except SQLAlchemyError as e:
            raise self._fail("get", key, e) from e
        finally:
            db.close()

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        db = self.session_factory()
        try:
            db.merge(KVEntry(
                namespace=self.namespace,
                key=key,
                value=value,
                expires_at=self._expiry(ttl),
            ))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise self._fail("set", key, e) from e
        finally:
            db.close()

    async def add(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        db = self.session_factory()
        try:
            # An expired row does not count as present
            db.execute(
                delete(KVEntry).where(
                    KVEntry.namespace == self.namespace,
                    KVEntry.key == key,
                    KVEntry.expires_at.is_not(None),
                    KVEntry.expires_at <= self._now(),
                )
            )
            db.add(KVEntry(
                namespace=self.namespace,
                key=key,
                value=value,
                expires_at=self._expiry(ttl),
            ))
            db.commit()
            return True
        except IntegrityError:
            db.rollback()
            return False
        except SQLAlchemyError as e:
            db.rollback()
            raise self._fail("add", key, e) from e
        finally:
            db.close()

    async def replace(self, key: str, value: str) -> bool:
        db = self.session_factory()
        try:
            result = db.execute(
                update(KVEntry)
                .where(
                    KVEntry.namespace == self.namespace,
                    KVEntry.key == key,
                    self._live(self._now()),
                )
                .values(value=value)
            )
            db.commit()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            db.rollback()
            raise self._fail("replace", key, e) from e
        finally:
            db.close()

    async def delete(self, key: str) -> bool:
        db = self.session_factory()
        try:
            result = db.execute(
                delete(KVEntry).where(
                    KVEntry.namespace == self.namespace,
                    KVEntry.key == key,
                )
            )
            db.commit()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            db.rollback()
            raise self._fail("delete", key, e) from e
        finally:
            db.close()

    async def keys(self, prefix: str = "") -> List[str]:
        db = self.session_factory()
        try:
            rows = db.execute(
                select(KVEntry.key).where(
                    KVEntry.namespace == self.namespace,
                    KVEntry.key.startswith(prefix, autoescape=True),
                    self._live(self._now()),
                )
            ).scalars().all()
            return list(rows)
        except SQLAlchemyError as e:
            raise self._fail("scan", prefix, e) from e
        finally:
            db.close()


class InMemoryMetadataStore(MetadataStore):
    """
    In-memory implementation using Python dict.

    Pros:
    - Very fast (no network overhead)
    - Simple (no external dependencies)
    - Good for development and testing

    Cons:
    - Not distributed (each process has its own namespace)
    - Lost on restart

    TTLs are honoured lazily on access.
    Note: Async for interface consistency, but operations are instant.
    """

    def __init__(self, namespace: str = ""):
        self.namespace = namespace
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    def _alive(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        _, expires = entry
        if expires is not None and expires <= time.time():
            del self._data[key]
            return False
        return True

    @staticmethod
    def _expiry(ttl: Optional[int]) -> Optional[float]:
        return time.time() + ttl if ttl else None

    async def get(self, key: str) -> Optional[str]:
        return self._data[key][0] if self._alive(key) else None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        self._data[key] = (value, self._expiry(ttl))

    async def add(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        # No await between check and write, so this is atomic on the event loop
        if self._alive(key):
            return False
        self._data[key] = (value, self._expiry(ttl))
        return True

    async def replace(self, key: str, value: str) -> bool:
        if not self._alive(key):
            return False
        self._data[key] = (value, self._data[key][1])
        return True

    async def delete(self, key: str) -> bool:
        if self._alive(key):
            del self._data[key]
            return True
        return False

    async def keys(self, prefix: str = "") -> List[str]:
        return [k for k in list(self._data) if k.startswith(prefix) and self._alive(k)]
