from fastapi import APIRouter, Depends, Query, Request

from share_app.config import settings
from share_app.dependencies import get_admin_service, require_admin
from share_app.schemas.admin import AdminPage, AdminStats, CleanupResult
from share_app.schemas.base import MessageResponse
from share_app.schemas.file import FileResponse
from share_app.schemas.link import LinkResponse
from share_app.schemas.text import TextResponse
from share_app.services.admin_service import AdminService, ContentKind

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

_RESPONSE_FOR_KIND = {
    ContentKind.URLS: LinkResponse,
    ContentKind.FILES: FileResponse,
    ContentKind.TEXTS: TextResponse,
}


@router.get("/stats", response_model=AdminStats)
async def get_stats(admin_service: AdminService = Depends(get_admin_service)):
    """Totals across the whole corpus (full scan)"""
    return AdminStats(**await admin_service.stats())


@router.post("/cleanup", response_model=CleanupResult)
async def cleanup_expired(
    reconcile_orphans: bool = Query(False, alias="reconcileOrphans"),
    admin_service: AdminService = Depends(get_admin_service)
):
    """Remove every expired item (and optionally orphaned payloads)"""
    result = await admin_service.cleanup(reconcile_orphans=reconcile_orphans)
    return CleanupResult(
        message=f"Cleanup completed. Removed {result['removed_count']} expired items.",
        **result,
    )


@router.get("/{kind}", response_model=AdminPage)
async def list_items(
    kind: ContentKind,
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.admin_default_page_limit, ge=1),
    admin_service: AdminService = Depends(get_admin_service)
):
    """Paginated listing of one kind; limit is capped server-side"""
    result = await admin_service.list_items(kind, page=page, limit=limit)
    origin = str(request.base_url).rstrip("/")
    response_class = _RESPONSE_FOR_KIND[kind]
    result["items"] = [response_class.from_record(r, origin) for r in result["items"]]
    return AdminPage(**result)


@router.delete("/{kind}/{identifier}", response_model=MessageResponse)
async def delete_item(
    kind: ContentKind,
    identifier: str,
    admin_service: AdminService = Depends(get_admin_service)
):
    """Delete through the owning service (same path as the public delete)"""
    await admin_service.delete(kind, identifier)
    return MessageResponse(message="Item deleted successfully")
