from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from share_app.dependencies import get_text_service
from share_app.schemas.base import MessageResponse
from share_app.schemas.text import TextContentResponse, TextCreate, TextResponse
from share_app.services.text_service import TextService

router = APIRouter(prefix="/text", tags=["text"])


def _origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


@router.post("/", response_model=TextResponse, status_code=status.HTTP_201_CREATED)
async def create_text(
    text_data: TextCreate,
    request: Request,
    text_service: TextService = Depends(get_text_service)
):
    record = await text_service.create(
        text_data.content,
        content_type=text_data.content_type,
        expiration_days=text_data.expiration_days,
        password=text_data.password,
    )
    return TextResponse.from_record(record, _origin(request))


@router.get("/{text_id}", response_model=TextContentResponse)
async def fetch_text(
    text_id: str,
    request: Request,
    password: Optional[str] = None,
    raw: bool = False,
    text_service: TextService = Depends(get_text_service)
):
    """
    Read a text.

    raw=true returns the body alone with its stored content type;
    otherwise JSON with content and metadata.
    """
    record, content = await text_service.fetch(text_id, password)
    if raw:
        return Response(
            content=content,
            media_type=record.content_type,
            headers={"Cache-Control": "private, no-cache"},
        )
    return TextContentResponse.from_record(record, _origin(request), content=content)


@router.get("/{text_id}/info", response_model=TextResponse)
async def get_text_info(
    text_id: str,
    request: Request,
    text_service: TextService = Depends(get_text_service)
):
    """Text metadata without the body; not counted as a view"""
    record = await text_service.info(text_id)
    return TextResponse.from_record(record, _origin(request))


@router.delete("/{text_id}", response_model=MessageResponse)
async def delete_text(
    text_id: str,
    text_service: TextService = Depends(get_text_service)
):
    await text_service.delete(text_id)
    return MessageResponse(message="Text deleted successfully")
