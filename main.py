import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from share_app.config import settings
from share_app.database.connection import engine, Base
from share_app.errors import ShareStoreError, StorageFailureError
from share_app.logging_config import setup_logging
from share_app.api.v1 import admin, files, links, redirect, texts

# Import models to ensure they're registered with Base
from share_app.models import KVEntry

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Create database tables (kv_entries for the "sql" metadata backend)
if settings.metadata_backend == "sql":
    Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Ephemeral sharing of links, files and text snippets",
    debug=settings.debug
)


@app.exception_handler(ShareStoreError)
async def share_store_error_handler(request: Request, exc: ShareStoreError):
    """One stable status + code per error kind; storage details stay server-side"""
    message = exc.message
    if isinstance(exc, StorageFailureError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
        message = exc.public_message
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message, "code": exc.code},
    )


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "environment": settings.environment}


######## Include routers
app.include_router(links.router, prefix="/api/v1")
app.include_router(files.router, prefix="/api/v1")
app.include_router(texts.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
