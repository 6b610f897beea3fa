"""HTTP discovery endpoint: a fixed, read-only route table over DiscoveryProvider."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger

from prismgl import __version__
from prismgl.api.discovery import CONTENT_TYPE, DiscoveryProvider
from prismgl.plugins.core.types import ArtifactKind, RendererInfo
from prismgl.utils.exceptions import (
    ErrorCategory,
    NotFoundError,
    PrismGLError,
    ReadOnlyError,
    classify_exception,
    sanitize_error_message,
)

_MUTATING_METHODS = ["POST", "PUT", "PATCH", "DELETE"]
_STREAM_CHUNK = 64 * 1024


def _iter_handle(handle: BinaryIO) -> Iterator[bytes]:
    with handle:
        while True:
            chunk = handle.read(_STREAM_CHUNK)
            if not chunk:
                break
            yield chunk


def classify_http_status(exc: Exception) -> int:
    """Map exception to appropriate HTTP status code."""
    if isinstance(exc, ReadOnlyError):
        return 405
    _, category, _ = classify_exception(exc)
    category_to_status = {
        ErrorCategory.VALIDATION: 400,
        ErrorCategory.NOT_FOUND: 404,
        ErrorCategory.PERMISSION: 403,
        ErrorCategory.RETRYABLE: 503,
    }
    return category_to_status.get(category, 500)


def create_discovery_app(install_dir: Path, provider: DiscoveryProvider | None = None) -> FastAPI:
    """Build the discovery app serving the artifacts staged in install_dir."""
    provider = provider or DiscoveryProvider(install_dir)
    app = FastAPI(
        title="PrismGL Discovery",
        description="Read-only discovery endpoint for PrismGL renderer hosts",
        version=__version__,
    )
    app.state.provider = provider

    @app.exception_handler(PrismGLError)
    async def prismgl_exception_handler(request: Request, exc: PrismGLError):
        status_code = classify_http_status(exc)
        content = exc.to_dict()
        if isinstance(exc, ReadOnlyError):
            content["affected"] = 0
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        code, _, _ = classify_exception(exc)
        sanitized = sanitize_error_message(str(exc))
        logger.exception("Unhandled discovery exception [{}]: {}", code, sanitized)
        return JSONResponse(
            status_code=500,
            content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred", "code": code},
        )

    @app.get("/renderer_info")
    async def renderer_info() -> dict:
        info = provider.query_info()
        logger.debug("Discovery info query served")
        return {"columns": list(RendererInfo.COLUMNS), "rows": [info.row()]}

    def _file_response(kind: ArtifactKind) -> StreamingResponse:
        # The handle is opened once, so a concurrent replace cannot change what is streamed.
        handle = provider.open_artifact(kind)
        return StreamingResponse(
            _iter_handle(handle),
            media_type=CONTENT_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{kind.filename}"'},
        )

    # Plain def: the blocking open runs in the threadpool.
    @app.get("/library")
    def open_library() -> StreamingResponse:
        return _file_response(ArtifactKind.LIBRARY)

    @app.get("/config")
    def open_config() -> StreamingResponse:
        return _file_response(ArtifactKind.MANIFEST)

    @app.get("/type/{path:path}")
    async def get_type(path: str) -> dict:
        return {"type": provider.get_type(path)}

    @app.api_route("/{path:path}", methods=_MUTATING_METHODS)
    async def reject_mutation(path: str, request: Request):
        operation = {"POST": "insert", "DELETE": "delete"}.get(request.method, "update")
        if operation == "insert":
            provider.insert(path)
        elif operation == "delete":
            provider.delete(path)
        else:
            provider.update(path)

    @app.get("/{path:path}")
    async def unknown_route(path: str):
        raise NotFoundError("route", "/" + path)

    return app
