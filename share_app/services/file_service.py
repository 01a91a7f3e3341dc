import logging
import mimetypes
import os
import re
from typing import Optional, Tuple

from share_app.blobs.strategies import BlobStore
from share_app.errors import InvalidInputError, TooLargeError
from share_app.metadata.strategies import MetadataStore
from share_app.models.records import FileRecord
from share_app.services.access_gate import ContentService, Clock, compute_expires_at, utcnow
from share_app.services.id_factory import IdentifierFactory, IdentifierKind
from share_app.services.id_strategies import IdentifierStrategy

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
MAX_STORED_NAME_LENGTH = 100


def sanitize_filename(name: Optional[str]) -> str:
    """Reduce an uploaded name to a safe blob-key component."""
    base = os.path.basename((name or "").replace("\\", "/"))
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", base).strip("._")
    return cleaned[:MAX_STORED_NAME_LENGTH] or "file"


def format_size(num_bytes: int) -> str:
    """Human-readable size for limit messages (10MB, 512KB, 100 bytes)."""
    for unit, factor in (("MB", 1024 * 1024), ("KB", 1024)):
        if num_bytes >= factor:
            return f"{num_bytes / factor:g}{unit}"
    return f"{num_bytes} bytes"


def guess_content_type(filename: str, declared: Optional[str] = None) -> str:
    if declared:
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


class FileService(ContentService):
    """
    Uploaded files.

    Metadata under file:{id}, payload in the blob store under
    files/{id}-{sanitized name}, optional password hash under
    file:{id}:password.
    """

    kind = "file"
    label = "File"
    record_class = FileRecord
    counter_field = "downloads"

    def __init__(
        self,
        metadata: MetadataStore,
        blobs: BlobStore,
        max_file_size: int,
        clock: Clock = utcnow,
        id_strategy: Optional[IdentifierStrategy] = None,
    ):
        super().__init__(metadata, blobs=blobs, clock=clock)
        self.max_file_size = max_file_size
        self.id_strategy = id_strategy or IdentifierFactory.create_strategy(IdentifierKind.CONTENT_ID)

    payload_prefix = "files/"

    def _payload_key(self, record: FileRecord) -> str:
        return f"{self.payload_prefix}{record.filename}"

    def identifier_from_payload_key(self, key: str) -> str:
        return key[len(self.payload_prefix):].split("-", 1)[0]

    def check_size(self, size: int) -> None:
        """Reject a payload over the limit (also called before the body is read)."""
        if size > self.max_file_size:
            raise TooLargeError(f"File too large. Maximum size is {format_size(self.max_file_size)}")

    async def upload(
        self,
        data: Optional[bytes],
        filename: Optional[str],
        content_type: Optional[str] = None,
        expiration_days: Optional[int] = None,
        password: Optional[str] = None,
    ) -> FileRecord:
        """
        Store an uploaded file.

        Raises:
            InvalidInputError: no file given (code "missing_file")
            TooLargeError: larger than max_file_size
        """
        if data is None:
            raise InvalidInputError("No file provided", code="missing_file")

        self.check_size(len(data))

        now = self.clock()
        expires_at = compute_expires_at(expiration_days, now)
        original_name = filename or "file"

        file_id = await self.id_strategy.generate_unique(self._is_free)
        record = FileRecord(
            id=file_id,
            filename=f"{file_id}-{sanitize_filename(original_name)}",
            original_name=original_name,
            content_type=guess_content_type(original_name, content_type),
            size=len(data),
            downloads=0,
            created_at=now,
            expires_at=expires_at,
            has_password=bool(password),
        )

        await self._store_new(record, payload=data, password=password)
        logger.info("Stored file %s (%d bytes)", file_id, record.size)
        return record

    async def download(self, file_id: str, password: Optional[str] = None) -> Tuple[FileRecord, bytes]:
        """Gate the read and return the record (downloads bumped) and bytes."""
        return await self.admit(file_id, password)
