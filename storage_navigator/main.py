# Main application entry point

import logging

from fastapi import Depends, FastAPI, HTTPException, Response
import uvicorn

from storage_navigator import __version__
from storage_navigator.api.routes import router
from storage_navigator.common.logging_config import setup_logging
from storage_navigator.common.metrics import get_metrics, get_metrics_content_type
from storage_navigator.common.middleware import RequestTrackingMiddleware
from storage_navigator.config.settings import Settings, get_settings
from storage_navigator.storage.adapter import StorageError
from storage_navigator.storage.factory import create_storage_adapter

settings = get_settings()
setup_logging(settings.log_level, json_format=settings.log_json)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Storage Navigator API",
    description="Browse and download files across local, FTP, SFTP, S3, fsspec and archive storage",
    version=__version__,
)

app.add_middleware(RequestTrackingMiddleware)

# Include API routes
app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Storage Navigator API",
        "version": __version__,
        "backend": get_settings().storage_backend,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint (alias for /live)"""
    return {"status": "healthy"}


@app.get("/live")
async def liveness():
    """Liveness check endpoint"""
    return {"status": "alive"}


@app.get("/ready")
def readiness(current: Settings = Depends(get_settings)):
    """Readiness check: the backend is reachable and the root location exists"""
    try:
        with create_storage_adapter(current) as adapter:
            root_exists = adapter.exists(current.root_path)
    except (StorageError, ValueError) as e:
        logger.warning(f"Readiness check failed: {e}")
        return {"status": "not_ready", "storage": "unavailable"}

    return {
        "status": "ready" if root_exists else "not_ready",
        "storage": "connected" if root_exists else "root_missing",
    }


@app.get("/metrics")
async def metrics(current: Settings = Depends(get_settings)):
    """Prometheus metrics endpoint"""
    if not current.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics are disabled")
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


if __name__ == "__main__":
    uvicorn.run(
        "storage_navigator.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
    )
