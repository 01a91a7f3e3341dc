from datetime import datetime
from typing import Optional

from pydantic import Field

from share_app.models.records import TextRecord
from share_app.schemas.base import CamelModel, share_page_url


class TextCreate(CamelModel):
    content: str = Field(..., description="Text to share")
    content_type: Optional[str] = Field("text/plain", description="MIME type served on raw reads")
    expiration_days: Optional[int] = Field(None, description="Days until the text expires (0 = never)")
    password: Optional[str] = Field(None, description="Optional password required to read")


class TextResponse(CamelModel):
    id: str
    content_type: str
    size: int
    views: int
    created_at: datetime
    expires_at: Optional[datetime] = None
    has_password: bool
    view_url: str
    raw_url: str
    share_url: Optional[str] = None

    @classmethod
    def from_record(cls, record: TextRecord, origin: str, **extra) -> "TextResponse":
        view_url = f"{origin}/api/v1/text/{record.id}"
        return cls(
            id=record.id,
            content_type=record.content_type,
            size=record.size,
            views=record.views,
            created_at=record.created_at,
            expires_at=record.expires_at,
            has_password=record.has_password,
            view_url=view_url,
            raw_url=f"{view_url}?raw=true",
            share_url=share_page_url(f"/t/{record.id}"),
            **extra,
        )


class TextContentResponse(TextResponse):
    content: str
