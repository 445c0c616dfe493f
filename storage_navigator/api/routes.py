# API routes

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, HTTPException, Query
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from storage_navigator.common.logging_config import get_request_id, request_id_scope
from storage_navigator.config.browser import InvalidConfiguration
from storage_navigator.config.settings import Settings, get_settings
from storage_navigator.navigation.actions import (
    FormActionSource,
    InvalidNavigationRequest,
    NavigationRequest,
)
from storage_navigator.navigation.navigator import (
    NavigatorError,
    PathOutsideRoot,
    StorageNavigator,
)
from storage_navigator.navigation.renderers import JsonRenderer
from storage_navigator.storage.adapter import (
    BackendUnavailable,
    DownloadStream,
    ListingUnavailable,
    NotFound,
    StorageAdapter,
    StorageError,
)
from storage_navigator.storage.factory import create_storage_adapter

logger = logging.getLogger(__name__)

router = APIRouter()

NAVIGATION_ERRORS = (StorageError, NavigatorError, InvalidNavigationRequest, InvalidConfiguration)


def get_storage_adapter(settings: Settings = Depends(get_settings)) -> StorageAdapter:
    """
    Build a fresh adapter for one request.

    Not a generator dependency: downloads stream after the endpoint returns,
    so each endpoint closes the adapter itself once the response is done.
    """
    try:
        return create_storage_adapter(settings)
    except BackendUnavailable as e:
        logger.error(f"Storage backend unavailable: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))


def to_http_error(error: Exception) -> HTTPException:
    """Map a navigation failure to the matching HTTP status."""
    if isinstance(error, NotFound):
        status_code = 404
    elif isinstance(error, PathOutsideRoot):
        status_code = 403
    elif isinstance(error, (ListingUnavailable, BackendUnavailable)):
        status_code = 502
    elif isinstance(error, InvalidNavigationRequest):
        status_code = 400
    else:
        # InvalidRoot and InvalidConfiguration are server misconfiguration
        status_code = 500

    log = logger.warning if status_code < 500 else logger.error
    log(
        f"Navigation failed: {error}",
        extra={"extra_fields": {"error_type": type(error).__name__, "status_code": status_code}},
    )
    return HTTPException(status_code=status_code, detail=str(error))


def build_navigator(adapter: StorageAdapter, settings: Settings) -> StorageNavigator:
    return StorageNavigator(
        adapter,
        JsonRenderer(),
        root_path=settings.root_path,
        config=settings.browser_config(),
        enforce_root_confinement=settings.enforce_root_confinement,
    )


def download_response(stream: DownloadStream, adapter: StorageAdapter) -> StreamingResponse:
    """Stream a download; the stream and adapter are closed once it is sent."""
    headers = {"Content-Disposition": f'attachment; filename="{quote(stream.filename)}"'}
    if stream.size is not None:
        headers["Content-Length"] = str(stream.size)

    # The body is sent after the middleware has cleared the request id
    request_id = get_request_id()

    def chunks():
        iterator = iter(stream)
        while True:
            with request_id_scope(request_id):
                chunk = next(iterator, None)
            if chunk is None:
                return
            yield chunk

    def release() -> None:
        with request_id_scope(request_id):
            stream.close()
            adapter.close()

    return StreamingResponse(
        chunks(),
        media_type=stream.mime_type or "application/octet-stream",
        headers=headers,
        background=BackgroundTask(release),
    )


@router.get("/browse")
def browse(
    path: Optional[str] = Query(None, description="Location to list; root when omitted"),
    adapter: StorageAdapter = Depends(get_storage_adapter),
    settings: Settings = Depends(get_settings),
):
    """
    List a location as JSON.

    - **path**: Location to list. Must stay inside the configured root.
    """
    try:
        navigator = build_navigator(adapter, settings)
        request = NavigationRequest.change_path(path) if path else NavigationRequest.none()
        return navigator.handle(request)
    except NAVIGATION_ERRORS as e:
        raise to_http_error(e)
    finally:
        adapter.close()


@router.post("/browse")
def navigate(
    action: Optional[str] = Form(None),
    path: Optional[str] = Form(None),
    file: Optional[str] = Form(None),
    adapter: StorageAdapter = Depends(get_storage_adapter),
    settings: Settings = Depends(get_settings),
):
    """
    Handle a navigation form submission.

    - **action**: 'changePath' or 'downloadFile'; anything else shows the root
    - **path**: Directory to change to (changePath)
    - **file**: File to download (downloadFile)

    Returns the listing as JSON, or the file as an attachment.
    """
    streaming = False
    try:
        navigator = build_navigator(adapter, settings)
        result = navigator.display(FormActionSource({"action": action, "path": path, "file": file}))
        if isinstance(result, DownloadStream):
            streaming = True
            return download_response(result, adapter)
        return result
    except NAVIGATION_ERRORS as e:
        raise to_http_error(e)
    finally:
        if not streaming:
            adapter.close()
