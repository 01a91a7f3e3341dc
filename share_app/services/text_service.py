import logging
from typing import Optional, Tuple

from share_app.blobs.strategies import BlobStore
from share_app.errors import InvalidInputError, TooLargeError
from share_app.metadata.strategies import MetadataStore
from share_app.models.records import TextRecord
from share_app.services.access_gate import ContentService, Clock, compute_expires_at, utcnow
from share_app.services.id_factory import IdentifierFactory, IdentifierKind
from share_app.services.id_strategies import IdentifierStrategy

logger = logging.getLogger(__name__)


class TextService(ContentService):
    """Pasted text: text:{id} metadata, body in the blob store as text/{id}.txt"""

    kind = "text"
    label = "Text"
    record_class = TextRecord
    counter_field = "views"

    def __init__(
        self,
        metadata: MetadataStore,
        blobs: BlobStore,
        max_text_size: int,
        clock: Clock = utcnow,
        id_strategy: Optional[IdentifierStrategy] = None,
    ):
        super().__init__(metadata, blobs=blobs, clock=clock)
        self.max_text_size = max_text_size
        self.id_strategy = id_strategy or IdentifierFactory.create_strategy(IdentifierKind.CONTENT_ID)

    payload_prefix = "text/"

    def _payload_key(self, record: TextRecord) -> str:
        return f"{self.payload_prefix}{record.id}.txt"

    def identifier_from_payload_key(self, key: str) -> str:
        name = key[len(self.payload_prefix):]
        return name[:-len(".txt")] if name.endswith(".txt") else name

    async def create(
        self,
        content: Optional[str],
        content_type: Optional[str] = "text/plain",
        expiration_days: Optional[int] = None,
        password: Optional[str] = None,
    ) -> TextRecord:
        if not content or not content.strip():
            raise InvalidInputError("Content cannot be empty", code="empty_content")

        if len(content) > self.max_text_size:
            raise TooLargeError(
                f"Content too large. Maximum length is {self.max_text_size} characters"
            )

        now = self.clock()
        expires_at = compute_expires_at(expiration_days, now)

        text_id = await self.id_strategy.generate_unique(self._is_free)
        record = TextRecord(
            id=text_id,
            content_type=content_type or "text/plain",
            size=len(content),
            views=0,
            created_at=now,
            expires_at=expires_at,
            has_password=bool(password),
        )

        await self._store_new(record, payload=content.encode("utf-8"), password=password)
        logger.info("Stored text %s (%d chars)", text_id, record.size)
        return record

    async def fetch(self, text_id: str, password: Optional[str] = None) -> Tuple[TextRecord, str]:
        """Gate the read and return the record (views bumped) and the body."""
        record, payload = await self.admit(text_id, password)
        return record, payload.decode("utf-8")
