from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import Response

from share_app.dependencies import get_file_service
from share_app.schemas.base import MessageResponse
from share_app.schemas.file import FileResponse
from share_app.services.file_service import FileService

router = APIRouter(prefix="/files", tags=["files"])


def _origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def _content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.post("/upload", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    request: Request,
    file: Optional[UploadFile] = File(None),
    expiration_days: Optional[int] = Form(None, alias="expirationDays"),
    password: Optional[str] = Form(None),
    file_service: FileService = Depends(get_file_service)
):
    """Upload a file (multipart form: file, expirationDays, password)"""
    data = None
    if file is not None:
        if file.size is not None:
            file_service.check_size(file.size)
        # One byte past the limit is enough for the service to reject it
        data = await file.read(file_service.max_file_size + 1)
    record = await file_service.upload(
        data,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        expiration_days=expiration_days,
        password=password,
    )
    return FileResponse.from_record(record, _origin(request))


@router.get("/{file_id}")
async def download_file(
    file_id: str,
    password: Optional[str] = None,
    file_service: FileService = Depends(get_file_service)
):
    """Download the file bytes (password as query parameter if protected)"""
    record, data = await file_service.download(file_id, password)
    return Response(
        content=data,
        media_type=record.content_type,
        headers={
            "Content-Disposition": _content_disposition(record.original_name),
            "Cache-Control": "private, no-cache",
        },
    )


@router.get("/{file_id}/info", response_model=FileResponse)
async def get_file_info(
    file_id: str,
    request: Request,
    file_service: FileService = Depends(get_file_service)
):
    """File metadata without the bytes; no password needed, not a download"""
    record = await file_service.info(file_id)
    return FileResponse.from_record(record, _origin(request))


@router.delete("/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: str,
    file_service: FileService = Depends(get_file_service)
):
    await file_service.delete(file_id)
    return MessageResponse(message="File deleted successfully")
