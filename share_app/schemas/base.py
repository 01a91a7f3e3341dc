from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from share_app.config import settings


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (shortCode, expiresAt, ...)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    message: str


def share_page_url(path: str) -> Optional[str]:
    """Link to the front-end share page, when a front-end is configured."""
    if not settings.frontend_url:
        return None
    return f"{settings.frontend_url.rstrip('/')}{path}"
