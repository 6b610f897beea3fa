"""Shared plugin types and contracts."""

from .contracts import NativeRuntime
from .types import (
    LIBRARY_FILENAME,
    MANIFEST_FILENAME,
    ArtifactKind,
    Compatibility,
    InstallResult,
    InstallStatus,
    OpenGLInfo,
    RenderBackend,
    RendererConfig,
    RendererIdentity,
    RendererInfo,
    RendererManifest,
    clamp_resolution_scale,
    clamp_target_fps,
)

__all__ = [
    "LIBRARY_FILENAME",
    "MANIFEST_FILENAME",
    "ArtifactKind",
    "Compatibility",
    "InstallResult",
    "InstallStatus",
    "NativeRuntime",
    "OpenGLInfo",
    "RenderBackend",
    "RendererConfig",
    "RendererIdentity",
    "RendererInfo",
    "RendererManifest",
    "clamp_resolution_scale",
    "clamp_target_fps",
]
