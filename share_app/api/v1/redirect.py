from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from share_app.dependencies import get_link_service
from share_app.services.link_service import LinkService

router = APIRouter(tags=["redirect"])


@router.get("/s/{code}")
async def redirect_to_target(
    code: str,
    link_service: LinkService = Depends(get_link_service)
):
    """
    Redirect to the link's target.

    Flow:
    1. Access gate (existence, expiry; expired links are purged here)
    2. clicks += 1 on the record, +1 on today's analytics counter
    3. 302 to the stored address
    """
    record = await link_service.resolve(code)
    return RedirectResponse(url=record.original_url, status_code=status.HTTP_302_FOUND)
