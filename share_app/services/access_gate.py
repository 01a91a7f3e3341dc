"""
Access Gate shared by the link, file and text services.

Every payload read goes through ContentService.admit(), which applies the
checks in a fixed order:

    existence -> expiration -> password -> payload presence -> counter

Checking the password before expiry would tell a caller whether an expired
record still exists, so the order must not change.

The expiry predicate here is the same one the admin cleanup sweep uses.
"""

import hashlib
import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple, Type

from pydantic import ValidationError

from share_app.blobs.strategies import BlobStore
from share_app.errors import (
    CorruptRecordError,
    ExpiredError,
    InvalidInputError,
    NotFoundError,
    PasswordIncorrectError,
    PasswordRequiredError,
    StorageFailureError,
)
from share_app.metadata.strategies import MetadataStore
from share_app.models.records import Record

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_expires_at(expiration_days: Optional[int], now: datetime) -> Optional[datetime]:
    """
    Fixed expiry instant for a new record.

    None or 0 days means the record never expires.
    """
    if expiration_days is None or expiration_days == 0:
        return None
    if expiration_days < 0:
        raise InvalidInputError("expirationDays must be a positive number of days")
    return now + timedelta(days=expiration_days)


def is_expired(record: Record, now: datetime) -> bool:
    return record.expires_at is not None and now >= record.expires_at


def hash_password(password: str) -> str:
    """One-way SHA-256 hex digest; the password itself is never stored."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    if stored_hash is None:
        return False
    return hmac.compare_digest(hash_password(password), stored_hash)


class ContentService:
    """
    Base class for the three content services.

    Subclasses declare:
        kind: key prefix of their records ("url", "file", "text")
        label: human name used in error messages
        record_class: pydantic record model
        counter_field: attribute bumped on every successful read

    and override _payload_key() / _extra_keys() where they have a payload or
    companion keys.
    """

    kind: str = ""
    label: str = ""
    record_class: Type[Record] = Record
    counter_field: str = ""

    def __init__(
        self,
        metadata: MetadataStore,
        blobs: Optional[BlobStore] = None,
        clock: Clock = utcnow,
    ):
        """
        Args:
            metadata: Metadata store holding records and password hashes
            blobs: Blob store for payloads (None for links)
            clock: Returns the current UTC time (injected for tests)
        """
        self.metadata = metadata
        self.blobs = blobs
        self.clock = clock

    # Keys

    def _record_key(self, identifier: str) -> str:
        return f"{self.kind}:{identifier}"

    def _password_key(self, identifier: str) -> str:
        return f"{self.kind}:{identifier}:password"

    def _payload_key(self, record: Record) -> Optional[str]:
        return None

    def _extra_keys(self, record: Record) -> List[str]:
        return []

    # Persistence

    async def find(self, identifier: str) -> Optional[Record]:
        """Load a record without any gate checks (None if absent)."""
        raw = await self.metadata.get(self._record_key(identifier))
        if raw is None:
            return None
        try:
            return self.record_class.from_json(raw)
        except ValidationError as e:
            logger.error("Unreadable %s record %s: %s", self.kind, identifier, e)
            raise CorruptRecordError(f"Corrupt {self.kind} record {identifier}") from e

    async def _is_free(self, identifier: str) -> bool:
        return not await self.metadata.exists(self._record_key(identifier))

    async def _save(self, record: Record) -> None:
        await self.metadata.set(self._record_key(self._identifier(record)), record.to_json())

    async def _store_new(
        self,
        record: Record,
        payload: Optional[bytes] = None,
        password: Optional[str] = None,
    ) -> None:
        """
        Persist a new record: payload, then password hash, then metadata.

        The two stores share no transaction. If a later write fails the earlier
        ones are undone so no unreachable payload is left behind.
        """
        payload_key = self._payload_key(record)
        if payload_key is not None:
            await self.blobs.put(payload_key, payload)

        try:
            if password:
                await self.metadata.set(self._password_key(record.id), hash_password(password))
            await self._save(record)
        except StorageFailureError:
            logger.error("Metadata write failed for %s %s, rolling back payload", self.kind, record.id)
            await self._rollback(record, payload_key)
            raise

    async def _rollback(self, record: Record, payload_key: Optional[str]) -> None:
        try:
            if payload_key is not None:
                await self.blobs.delete(payload_key)
            await self.metadata.delete(self._password_key(record.id))
        except StorageFailureError:
            # Left for the orphan reconciliation in the admin sweep
            logger.error("Rollback incomplete for %s %s", self.kind, record.id)

    async def purge(self, record: Record) -> None:
        """
        Remove a record and everything hanging off it.

        Payload first, metadata last: if this is interrupted the record is
        still there, and a read with the payload missing returns not-found.
        """
        payload_key = self._payload_key(record)
        if payload_key is not None:
            await self.blobs.delete(payload_key)
        if getattr(record, "has_password", False):
            await self.metadata.delete(self._password_key(record.id))
        for key in self._extra_keys(record):
            await self.metadata.delete(key)
        await self.metadata.delete(self._record_key(self._identifier(record)))

    def _identifier(self, record: Record) -> str:
        return record.id

    # Gate steps

    async def _load(self, identifier: str) -> Record:
        record = await self.find(identifier)
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        return record

    async def _check_expiry(self, record: Record) -> None:
        if is_expired(record, self.clock()):
            await self.purge(record)
            logger.info("Lazily expired %s %s", self.kind, self._identifier(record))
            raise ExpiredError(f"{self.label} has expired")

    async def _check_password(self, record: Record, password: Optional[str]) -> None:
        if not getattr(record, "has_password", False):
            return
        if not password:
            raise PasswordRequiredError("Password required")
        stored_hash = await self.metadata.get(self._password_key(record.id))
        if not verify_password(password, stored_hash):
            raise PasswordIncorrectError("Incorrect password")

    async def _read_payload(self, record: Record) -> Optional[bytes]:
        payload_key = self._payload_key(record)
        if payload_key is None:
            return None
        payload = await self.blobs.get(payload_key)
        if payload is None:
            logger.warning("%s %s has metadata but no payload", self.kind, record.id)
            raise NotFoundError(f"{self.label} not found in storage")
        return payload

    async def _bump_counter(self, record: Record) -> None:
        # Read-modify-write on the copy loaded in step one. Concurrent readers
        # can overwrite each other's increment; counts are approximate.
        # The write only lands if the record is still there, so a read racing
        # a delete or sweep cannot bring the record back.
        setattr(record, self.counter_field, getattr(record, self.counter_field) + 1)
        key = self._record_key(self._identifier(record))
        if not await self.metadata.replace(key, record.to_json()):
            logger.info("%s %s was removed during the read", self.kind, self._identifier(record))
            raise NotFoundError(f"{self.label} not found")

    # Public operations

    async def admit(
        self,
        identifier: str,
        password: Optional[str] = None,
    ) -> Tuple[Record, Optional[bytes]]:
        """Run the full gate and return the record (counter bumped) and payload."""
        record = await self._load(identifier)
        await self._check_expiry(record)
        await self._check_password(record, password)
        payload = await self._read_payload(record)
        await self._bump_counter(record)
        return record, payload

    async def info(self, identifier: str) -> Record:
        """Metadata only: existence and expiry, no password, no counter."""
        record = await self._load(identifier)
        await self._check_expiry(record)
        return record

    async def delete(self, identifier: str) -> None:
        record = await self._load(identifier)
        await self.purge(record)
        logger.info("Deleted %s %s", self.kind, identifier)
