from datetime import datetime
from typing import Optional

from share_app.models.records import FileRecord
from share_app.schemas.base import CamelModel, share_page_url


class FileResponse(CamelModel):
    """Upload result and file info (never includes the bytes)"""
    id: str
    filename: str
    size: int
    content_type: str
    downloads: int
    created_at: datetime
    expires_at: Optional[datetime] = None
    has_password: bool
    download_url: str
    share_url: Optional[str] = None

    @classmethod
    def from_record(cls, record: FileRecord, origin: str) -> "FileResponse":
        return cls(
            id=record.id,
            filename=record.original_name,
            size=record.size,
            content_type=record.content_type,
            downloads=record.downloads,
            created_at=record.created_at,
            expires_at=record.expires_at,
            has_password=record.has_password,
            download_url=f"{origin}/api/v1/files/{record.id}",
            share_url=share_page_url(f"/f/{record.id}"),
        )
