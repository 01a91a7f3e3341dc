"""
Admin aggregator: corpus-wide stats, paginated listings and the expiry sweep.

Everything here is a full scan of the metadata namespace. That is fine for
low-frequency administrative calls; nothing on a hot path goes through it.
Deletions always go through the owning service's purge(), so the admin view
removes exactly what the service itself would.
"""

import logging
import math
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from share_app.errors import CorruptRecordError, InvalidInputError
from share_app.models.records import Record
from share_app.services.access_gate import ContentService, Clock, is_expired, utcnow
from share_app.services.file_service import FileService
from share_app.services.link_service import LIST_PREFIX, LinkService
from share_app.services.text_service import TextService

logger = logging.getLogger(__name__)


class ContentKind(str, Enum):
    """Kinds exposed by the admin listing"""
    URLS = "urls"
    FILES = "files"
    TEXTS = "texts"


class AdminService:
    def __init__(
        self,
        links: LinkService,
        files: FileService,
        texts: TextService,
        clock: Clock = utcnow,
        max_page_limit: int = 100,
    ):
        self.links = links
        self.files = files
        self.texts = texts
        self.clock = clock
        self.max_page_limit = max_page_limit
        # All three services share one record namespace
        self.metadata = links.metadata
        self._by_prefix: Dict[str, ContentService] = {
            links.kind: links,
            files.kind: files,
            texts.kind: texts,
        }
        self._by_kind: Dict[ContentKind, ContentService] = {
            ContentKind.URLS: links,
            ContentKind.FILES: files,
            ContentKind.TEXTS: texts,
        }

    def _owner(self, key: str) -> Tuple[Optional[ContentService], str]:
        """
        Map a primary record key to (service, identifier).

        Link codes may contain anything the custom code pattern allows
        ("password" included), so the whole remainder is the code. File and
        text ids never contain ":", so a colon there marks a companion key
        such as file:{id}:password.
        """
        if ":" not in key:
            return None, ""
        prefix, identifier = key.split(":", 1)
        service = self._by_prefix.get(prefix)
        if service is None or (service is not self.links and ":" in identifier):
            return None, ""
        return service, identifier

    async def _load(self, service: ContentService, identifier: str) -> Optional[Record]:
        try:
            return await service.find(identifier)
        except CorruptRecordError:
            logger.warning("Skipping unreadable %s record %s", service.kind, identifier)
            return None

    async def stats(self) -> Dict[str, int]:
        """Counts and counter sums per kind, plus total stored file bytes."""
        totals = {
            "total_urls": 0,
            "total_clicks": 0,
            "total_files": 0,
            "total_downloads": 0,
            "total_texts": 0,
            "total_views": 0,
            "storage_used": 0,
        }

        for key in await self.metadata.keys():
            service, identifier = self._owner(key)
            if service is None:
                continue
            record = await self._load(service, identifier)
            if record is None:
                continue

            if service is self.links:
                totals["total_urls"] += 1
                totals["total_clicks"] += record.clicks
            elif service is self.files:
                totals["total_files"] += 1
                totals["total_downloads"] += record.downloads
                totals["storage_used"] += record.size
            else:
                totals["total_texts"] += 1
                totals["total_views"] += record.views

        return totals

    async def list_items(self, kind: ContentKind, page: int = 1, limit: int = 50) -> Dict:
        """
        One page of records of a kind.

        total, total_pages and the page slice all come from the same sorted key
        snapshot. Records deleted after the snapshot are skipped, so a page
        can be short under concurrent deletes but never disagrees with total.
        """
        if page < 1 or limit < 1:
            raise InvalidInputError("page and limit must be positive")
        limit = min(limit, self.max_page_limit)

        if kind == ContentKind.URLS:
            keys = sorted(await self.metadata.keys(LIST_PREFIX))
        else:
            service = self._by_kind[kind]
            keys = sorted(
                k for k in await self.metadata.keys(f"{service.kind}:")
                if self._owner(k)[0] is service
            )

        total = len(keys)
        start = (page - 1) * limit
        items: List[Record] = []
        for key in keys[start:start + limit]:
            record = await self._load_listed(kind, key)
            if record is not None:
                items.append(record)

        return {
            "items": items,
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        }

    async def _load_listed(self, kind: ContentKind, key: str) -> Optional[Record]:
        if kind != ContentKind.URLS:
            service, identifier = self._owner(key)
            return await self._load(service, identifier)

        # Index entries carry the code; the live record holds current clicks
        raw = await self.metadata.get(key)
        if raw is None:
            return None
        try:
            entry = self.links.record_class.from_json(raw)
        except ValidationError:
            logger.warning("Skipping unreadable listing entry %s", key)
            return None
        return await self._load(self.links, entry.short_code)

    async def delete(self, kind: ContentKind, identifier: str) -> None:
        await self._by_kind[kind].delete(identifier)

    async def cleanup(self, reconcile_orphans: bool = False) -> Dict[str, int]:
        """
        Active sweep: purge every record whose expiry has passed.

        Uses the same predicate and the same purge as the lazy path in the
        Access Gate. With reconcile_orphans, payloads that no record points
        to (left by an interrupted create/delete) are removed as well.
        """
        now = self.clock()
        removed = 0

        for key in await self.metadata.keys():
            service, identifier = self._owner(key)
            if service is None:
                continue
            record = await self._load(service, identifier)
            if record is None or not is_expired(record, now):
                continue
            await service.purge(record)
            removed += 1

        orphans = await self._remove_orphans() if reconcile_orphans else 0

        logger.info("Cleanup removed %d expired items, %d orphaned payloads", removed, orphans)
        return {"removed_count": removed, "orphans_removed": orphans}

    async def _remove_orphans(self) -> int:
        """
        Delete blobs without a record.

        A payload is written before its metadata, so a create that is in
        flight at this moment can lose its payload; only run this when the
        store is quiet.
        """
        orphans = 0
        for service in (self.files, self.texts):
            for blob_key in await service.blobs.keys(service.payload_prefix):
                identifier = service.identifier_from_payload_key(blob_key)
                if identifier and await self.metadata.exists(f"{service.kind}:{identifier}"):
                    continue
                await service.blobs.delete(blob_key)
                orphans += 1
        return orphans
