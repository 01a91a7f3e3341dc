"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the metadata stores and the blob
store, and builds the services on top of them per request.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (override the store or clock dependencies)
- Flexible (swap implementations via config)
"""

import hmac
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from share_app.blobs.factory import BlobStoreFactory, BlobBackend
from share_app.blobs.strategies import BlobStore
from share_app.config import settings
from share_app.metadata.factory import MetadataStoreFactory, MetadataBackend
from share_app.metadata.strategies import MetadataStore
from share_app.services.access_gate import Clock, utcnow
from share_app.services.admin_service import AdminService
from share_app.services.file_service import FileService
from share_app.services.link_service import LinkService
from share_app.services.text_service import TextService

ANALYTICS_NAMESPACE = "analytics"


@lru_cache()
def get_metadata_store() -> MetadataStore:
    """Record namespace (singleton, backend from settings)."""
    backend = MetadataBackend(settings.metadata_backend)
    return MetadataStoreFactory.create(backend)


@lru_cache()
def get_analytics_store() -> MetadataStore:
    """Daily click counters, kept apart from the records."""
    backend = MetadataBackend(settings.metadata_backend)
    return MetadataStoreFactory.create(backend, namespace=ANALYTICS_NAMESPACE)


@lru_cache()
def get_blob_store() -> BlobStore:
    backend = BlobBackend(settings.blob_backend)
    return BlobStoreFactory.create(backend)


def get_clock() -> Clock:
    return utcnow


def get_link_service(
    metadata: MetadataStore = Depends(get_metadata_store),
    analytics: MetadataStore = Depends(get_analytics_store),
    clock: Clock = Depends(get_clock),
) -> LinkService:
    return LinkService(
        metadata=metadata,
        analytics=analytics,
        clock=clock,
        analytics_retention_days=settings.analytics_retention_days,
    )


def get_file_service(
    metadata: MetadataStore = Depends(get_metadata_store),
    blobs: BlobStore = Depends(get_blob_store),
    clock: Clock = Depends(get_clock),
) -> FileService:
    return FileService(
        metadata=metadata,
        blobs=blobs,
        max_file_size=settings.max_file_size,
        clock=clock,
    )


def get_text_service(
    metadata: MetadataStore = Depends(get_metadata_store),
    blobs: BlobStore = Depends(get_blob_store),
    clock: Clock = Depends(get_clock),
) -> TextService:
    return TextService(
        metadata=metadata,
        blobs=blobs,
        max_text_size=settings.max_text_size,
        clock=clock,
    )


def get_admin_service(
    links: LinkService = Depends(get_link_service),
    files: FileService = Depends(get_file_service),
    texts: TextService = Depends(get_text_service),
    clock: Clock = Depends(get_clock),
) -> AdminService:
    return AdminService(
        links=links,
        files=files,
        texts=texts,
        clock=clock,
        max_page_limit=settings.admin_max_page_limit,
    )


def require_admin(authorization: Optional[str] = Header(None)) -> None:
    """
    Shared-secret check for every admin route.

    Raised as HTTPException ({"detail": ...}) so it can never be mistaken
    for a store error ({"error", "code"}).
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[len("Bearer "):]
    if not hmac.compare_digest(token.encode("utf-8"), settings.admin_password.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
