"""Host-side client for the discovery endpoint."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from prismgl.api.discovery import parse_artifact_kind
from prismgl.plugins.core.types import ArtifactKind, RendererInfo
from prismgl.utils.exceptions import NotFoundError, PrismGLError, ValidationError
from prismgl.utils.helpers import atomic_write_bytes

DEFAULT_DISCOVERY_URL = "http://127.0.0.1:18790"


class DiscoveryClient:
    """Queries a running discovery endpoint and downloads staged artifacts."""

    def __init__(self, base_url: str = DEFAULT_DISCOVERY_URL, *, timeout: float = 10.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DiscoveryClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def query_info(self) -> RendererInfo:
        response = self._client.get("/renderer_info")
        self._raise_for_error(response, "renderer_info")
        payload = response.json()
        columns = payload.get("columns") or []
        rows = payload.get("rows") or []
        if not rows or list(columns) != list(RendererInfo.COLUMNS):
            raise ValidationError("Unexpected renderer_info payload", field="rows")
        return RendererInfo(**dict(zip(columns, rows[0])))

    def fetch_artifact(self, kind: str | ArtifactKind, dest: Path) -> Path:
        """Download an artifact to dest (atomic replace); NotFoundError when not staged, ValidationError for an unknown kind."""
        artifact = parse_artifact_kind(kind)
        response = self._client.get(f"/{artifact.value}")
        self._raise_for_error(response, artifact.value)
        dest = Path(dest)
        atomic_write_bytes(dest, response.content)
        logger.info("Fetched {} ({} bytes) to {}", artifact.filename, len(response.content), dest)
        return dest

    @staticmethod
    def _raise_for_error(response: httpx.Response, resource: str) -> None:
        if response.status_code == 404:
            raise NotFoundError("artifact", resource)
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise PrismGLError(
                str(body.get("message") or f"discovery request failed ({response.status_code})"),
                code=str(body.get("error") or "HTTP_ERROR"),
                details={"status_code": response.status_code},
            )
