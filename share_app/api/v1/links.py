from fastapi import APIRouter, Depends, Query, Request, status

from share_app.dependencies import get_link_service
from share_app.schemas.base import MessageResponse
from share_app.schemas.link import LinkAnalytics, LinkCreate, LinkResponse
from share_app.services.link_service import LinkService

router = APIRouter(prefix="/urls", tags=["urls"])


def _origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


@router.post("/", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
async def create_link(
    link_data: LinkCreate,
    request: Request,
    link_service: LinkService = Depends(get_link_service)
):
    """Create a short link (custom code optional)"""
    record = await link_service.create(
        link_data.url,
        custom_code=link_data.custom_code,
        expiration_days=link_data.expiration_days,
    )
    return LinkResponse.from_record(record, _origin(request))


@router.get("/{code}", response_model=LinkResponse)
async def get_link_info(
    code: str,
    request: Request,
    link_service: LinkService = Depends(get_link_service)
):
    """Link metadata; does not count as a click"""
    record = await link_service.info(code)
    return LinkResponse.from_record(record, _origin(request))


@router.get("/{code}/analytics", response_model=LinkAnalytics)
async def get_link_analytics(
    code: str,
    days: int = Query(7, ge=1),
    link_service: LinkService = Depends(get_link_service)
):
    """Daily click counts for the last `days` days"""
    daily = await link_service.daily_clicks(code, days=days)
    return LinkAnalytics(short_code=code, days=daily)


@router.delete("/{code}", response_model=MessageResponse)
async def delete_link(
    code: str,
    link_service: LinkService = Depends(get_link_service)
):
    await link_service.delete(code)
    return MessageResponse(message="URL deleted successfully")
