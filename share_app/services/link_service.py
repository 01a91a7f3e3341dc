import logging
import math
import re
from datetime import timedelta
from typing import Dict, List, Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

from share_app.errors import ConflictError, InvalidInputError, StorageFailureError
from share_app.metadata.strategies import MetadataStore
from share_app.models.records import UrlRecord
from share_app.services.access_gate import ContentService, Clock, compute_expires_at, is_expired, utcnow
from share_app.services.id_factory import IdentifierFactory, IdentifierKind
from share_app.services.id_strategies import IdentifierStrategy

logger = logging.getLogger(__name__)

_http_url = TypeAdapter(HttpUrl)

CUSTOM_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
LIST_PREFIX = "list:"
CLICKS_PREFIX = "clicks:"


class LinkService(ContentService):
    """
    Short links: url:{code} records plus a list:{id} listing index.

    The target address is the payload and is stored inline on the record.
    Daily click counts go to a separate analytics namespace with a retention
    TTL, independent of the main clicks counter.
    """

    kind = "url"
    label = "URL"
    record_class = UrlRecord
    counter_field = "clicks"

    def __init__(
        self,
        metadata: MetadataStore,
        analytics: MetadataStore,
        clock: Clock = utcnow,
        id_strategy: Optional[IdentifierStrategy] = None,
        analytics_retention_days: int = 30,
    ):
        """
        Args:
            metadata: Record namespace
            analytics: Namespace for daily click counters
            clock: Current UTC time
            id_strategy: Short code generator (default from factory)
            analytics_retention_days: TTL of each daily counter
        """
        super().__init__(metadata, blobs=None, clock=clock)
        self.analytics = analytics
        self.id_strategy = id_strategy or IdentifierFactory.create_strategy(IdentifierKind.SHORT_CODE)
        self.analytics_retention_days = analytics_retention_days

    def _identifier(self, record: UrlRecord) -> str:
        return record.short_code

    def _extra_keys(self, record: UrlRecord) -> List[str]:
        return [f"{LIST_PREFIX}{record.id}"]

    @staticmethod
    def _validate_address(address: Optional[str]) -> None:
        if not address or not isinstance(address, str):
            raise InvalidInputError("Invalid URL provided", code="invalid_address")
        try:
            _http_url.validate_python(address)
        except ValidationError:
            raise InvalidInputError("Invalid URL provided", code="invalid_address")

    async def create(
        self,
        address: str,
        custom_code: Optional[str] = None,
        expiration_days: Optional[int] = None,
    ) -> UrlRecord:
        """
        Create a short link.

        Process:
        1. Validate the address (http/https only) and the custom code
        2. Claim the code with an atomic create-if-absent write
           (custom: conflict if taken; generated: redraw on collision)
        3. Write the listing index entry, expiring together with the link

        The address is stored exactly as given, so the redirect goes back
        to the caller's own string.
        """
        self._validate_address(address)

        custom_code = custom_code.strip() if custom_code else None
        if custom_code and not CUSTOM_CODE_PATTERN.match(custom_code):
            raise InvalidInputError(
                "Custom code may only contain letters, digits, '-' and '_' (max 64)",
                code="invalid_code",
            )

        now = self.clock()
        expires_at = compute_expires_at(expiration_days, now)
        created_ms = int(now.timestamp() * 1000)

        def build(code: str) -> UrlRecord:
            return UrlRecord(
                id=f"{created_ms}-{code}",
                original_url=address,
                short_code=code,
                clicks=0,
                created_at=now,
                expires_at=expires_at,
            )

        async def claim(code: str) -> bool:
            return await self.metadata.add(self._record_key(code), build(code).to_json())

        if custom_code:
            if not await claim(custom_code) and not await self._reclaim_expired(custom_code, claim):
                raise ConflictError("Custom code already exists")
            code = custom_code
        else:
            code = await self.id_strategy.generate_unique(claim)

        record = build(code)
        try:
            await self.metadata.set(
                f"{LIST_PREFIX}{record.id}",
                record.to_json(),
                ttl=self._index_ttl(record),
            )
        except StorageFailureError:
            logger.error("Listing index write failed for %s, removing link", code)
            await self.metadata.delete(self._record_key(code))
            raise

        logger.info("Created link %s -> %s", code, address)
        return record

    async def _reclaim_expired(self, code: str, claim) -> bool:
        """A code held by an expired, not yet swept link is free to take."""
        existing = await self.find(code)
        if existing is None or not is_expired(existing, self.clock()):
            return False
        await self.purge(existing)
        logger.info("Purged expired link %s before reusing its code", code)
        return await claim(code)

    def _index_ttl(self, record: UrlRecord) -> Optional[int]:
        if record.expires_at is None:
            return None
        remaining = (record.expires_at - self.clock()).total_seconds()
        return max(1, math.ceil(remaining))

    async def resolve(self, code: str) -> UrlRecord:
        """
        Resolve a short code for redirection.

        Same gate as any other read (links have no password and no blob),
        then the coarse daily counter is bumped in the analytics namespace.
        """
        record, _ = await self.admit(code)
        await self._record_daily_click(code)
        return record

    def _clicks_key(self, day: str, code: str) -> str:
        return f"{CLICKS_PREFIX}{day}:{code}"

    async def _record_daily_click(self, code: str) -> None:
        key = self._clicks_key(self.clock().date().isoformat(), code)
        try:
            current = int(await self.analytics.get(key) or 0)
            await self.analytics.set(
                key,
                str(current + 1),
                ttl=self.analytics_retention_days * 86400,
            )
        except StorageFailureError:
            # Analytics are best-effort; the redirect itself already succeeded
            logger.warning("Daily click counter not updated for %s", code)

    async def daily_clicks(self, code: str, days: int = 7) -> List[Dict]:
        """
        Clicks per day for the last ``days`` days (oldest first).

        Days older than the retention window have no counters, so the range
        is capped there.
        """
        await self.info(code)
        days = max(1, min(days, self.analytics_retention_days))
        today = self.clock().date()

        result = []
        for offset in range(days - 1, -1, -1):
            day = (today - timedelta(days=offset)).isoformat()
            count = await self.analytics.get(self._clicks_key(day, code))
            result.append({"date": day, "clicks": int(count or 0)})
        return result
