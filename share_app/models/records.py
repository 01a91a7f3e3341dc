"""
Record shapes persisted as JSON in the metadata store.

Field names are stored camelCase (originalUrl, shortCode, expiresAt, ...) so
records stay readable by anything else scanning the namespace.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Common base: identity, timestamps and JSON (de)serialization"""

    id: str
    created_at: datetime
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: str):
        return cls.model_validate_json(raw)


class UrlRecord(Record):
    original_url: str
    short_code: str
    clicks: int = 0


class FileRecord(Record):
    filename: str  # stored name, blob key is files/{filename}
    original_name: str
    content_type: str
    size: int
    downloads: int = 0
    has_password: bool = False


class TextRecord(Record):
    content_type: str = "text/plain"
    size: int
    views: int = 0
    has_password: bool = False
