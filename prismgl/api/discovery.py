"""Read-only discovery surface queried by host launchers.

Answers one fixed info row and hands out read-only handles to the staged
library and manifest. Every mutating operation is rejected; configuration
only changes through the installer and preference store.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, BinaryIO

from loguru import logger

from prismgl.plugins.core.types import (
    ArtifactKind,
    OpenGLInfo,
    RendererIdentity,
    RendererInfo,
)
from prismgl.utils.exceptions import NotFoundError, ReadOnlyError, ValidationError
from prismgl.utils.helpers import open_read_only

CONTENT_TYPE = "application/octet-stream"


def parse_artifact_kind(value: str | ArtifactKind) -> ArtifactKind:
    if isinstance(value, ArtifactKind):
        return value
    text = str(value or "").strip().lower().lstrip("/")
    if text in ("manifest", "config.json"):
        text = ArtifactKind.MANIFEST.value
    try:
        return ArtifactKind(text)
    except ValueError as e:
        raise ValidationError(f"Unknown artifact kind: {value}", field="kind") from e


class DiscoveryProvider:
    """In-process implementation of the discovery contract for one install directory."""

    def __init__(
        self,
        install_dir: Path,
        *,
        identity: RendererIdentity | None = None,
        opengl: OpenGLInfo | None = None,
    ):
        self.install_dir = Path(install_dir).expanduser()
        self._info = RendererInfo.from_identity(identity or RendererIdentity(), opengl or OpenGLInfo())

    def query_info(self, *_args: Any, **_kwargs: Any) -> RendererInfo:
        """Return the fixed info row. Projection/selection/sort arguments are ignored."""
        return self._info

    def artifact_path(self, kind: str | ArtifactKind) -> Path:
        """Path of a staged artifact; NotFoundError when it has not been staged."""
        artifact = parse_artifact_kind(kind)
        path = self.install_dir / artifact.filename
        if not path.is_file():
            raise NotFoundError("artifact", artifact.filename)
        return path

    def open_artifact(self, kind: str | ArtifactKind) -> BinaryIO:
        """Open a staged artifact read-only."""
        path = self.artifact_path(kind)
        try:
            handle = open_read_only(path)
        except FileNotFoundError as e:
            raise NotFoundError("artifact", path.name) from e
        logger.debug("Opened {} for discovery read", path)
        return handle

    def get_type(self, *_args: Any) -> str:
        return CONTENT_TYPE

    def insert(self, *_args: Any, **_kwargs: Any) -> None:
        self._reject("insert")

    def update(self, *_args: Any, **_kwargs: Any) -> int:
        self._reject("update")
        return 0

    def delete(self, *_args: Any, **_kwargs: Any) -> int:
        self._reject("delete")
        return 0

    def _reject(self, operation: str) -> None:
        logger.warning("Rejected {} through read-only discovery interface", operation)
        raise ReadOnlyError(operation)
