from datetime import datetime
from typing import List, Optional

from pydantic import Field

from share_app.models.records import UrlRecord
from share_app.schemas.base import CamelModel


class LinkCreate(CamelModel):
    # Plain str: address validation happens in the service (400, not 422)
    url: str = Field(..., description="The target address to shorten")
    custom_code: Optional[str] = Field(None, description="Requested short code")
    expiration_days: Optional[int] = Field(None, description="Days until the link expires (0 = never)")


class LinkResponse(CamelModel):
    id: str
    original_url: str
    short_code: str
    short_url: str
    clicks: int
    created_at: datetime
    expires_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: UrlRecord, origin: str) -> "LinkResponse":
        return cls(
            id=record.id,
            original_url=record.original_url,
            short_code=record.short_code,
            short_url=f"{origin}/s/{record.short_code}",
            clicks=record.clicks,
            created_at=record.created_at,
            expires_at=record.expires_at,
        )


class DailyClicks(CamelModel):
    date: str
    clicks: int


class LinkAnalytics(CamelModel):
    short_code: str
    days: List[DailyClicks]
