"""Types shared by the manifest codec, installer, runtime bridge and discovery surface."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

LIBRARY_FILENAME = "libPrismGL.so"
MANIFEST_FILENAME = "config.json"

MIN_RESOLUTION_SCALE = 0.25
MAX_RESOLUTION_SCALE = 1.0
MIN_TARGET_FPS = 1
MAX_TARGET_FPS = 240

DEFAULT_TARGET_FPS = 60
DEFAULT_RESOLUTION_SCALE = 1.0


class RenderBackend(str, Enum):
    """Backend the native runtime renders through."""
    OPENGL = "opengl"
    VULKAN = "vulkan"

    @classmethod
    def from_flag(cls, vulkan: bool) -> "RenderBackend":
        return cls.VULKAN if vulkan else cls.OPENGL


class ArtifactKind(str, Enum):
    """Staged artifacts a host can open; values are the discovery route names."""
    LIBRARY = "library"
    MANIFEST = "config"

    @property
    def filename(self) -> str:
        return LIBRARY_FILENAME if self is ArtifactKind.LIBRARY else MANIFEST_FILENAME


class InstallStatus(str, Enum):
    """Outcome of an install run."""
    INSTALLED = "installed"
    LIBRARY_MISSING = "library_missing"
    FAILED = "failed"

    @property
    def label(self) -> str:
        return {
            InstallStatus.INSTALLED: "Installed and ready",
            InstallStatus.LIBRARY_MISSING: "Installed, library missing",
            InstallStatus.FAILED: "Installation failed",
        }[self]


def clamp_resolution_scale(value: Any, default: float = DEFAULT_RESOLUTION_SCALE) -> float:
    """Clamp into [0.25, 1.0]; non-numeric or NaN input falls back to default."""
    try:
        scale = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(scale):
        return default
    return min(MAX_RESOLUTION_SCALE, max(MIN_RESOLUTION_SCALE, scale))


def clamp_target_fps(value: Any, default: int = DEFAULT_TARGET_FPS) -> int:
    """Clamp into 1..240; non-numeric input falls back to default."""
    try:
        fps = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return min(MAX_TARGET_FPS, max(MIN_TARGET_FPS, fps))


@dataclass(slots=True)
class RendererConfig:
    """The user-controlled rendering settings (the configuration record)."""

    target_fps: int = DEFAULT_TARGET_FPS
    resolution_scale: float = DEFAULT_RESOLUTION_SCALE
    shader_cache: bool = True
    draw_call_batching: bool = True
    adaptive_resolution: bool = True
    async_texture_loading: bool = True
    backend: RenderBackend = RenderBackend.VULKAN
    debug_mode: bool = False

    def normalized(self) -> "RendererConfig":
        """Copy with every field coerced into its documented domain."""
        return RendererConfig(
            target_fps=clamp_target_fps(self.target_fps),
            resolution_scale=clamp_resolution_scale(self.resolution_scale),
            shader_cache=bool(self.shader_cache),
            draw_call_batching=bool(self.draw_call_batching),
            adaptive_resolution=bool(self.adaptive_resolution),
            async_texture_loading=bool(self.async_texture_loading),
            backend=RenderBackend(self.backend),
            debug_mode=bool(self.debug_mode),
        )

    @property
    def vulkan(self) -> bool:
        return self.backend is RenderBackend.VULKAN

    def native_args(self) -> tuple[bool, bool, bool, bool, bool, float]:
        """Ordered parameter tuple for the native configuration call."""
        return (
            self.shader_cache,
            self.draw_call_batching,
            self.adaptive_resolution,
            self.async_texture_loading,
            self.vulkan,
            self.resolution_scale,
        )


@dataclass(slots=True, frozen=True)
class RendererIdentity:
    name: str = "PrismGL"
    version: str = "1.0.0"
    description: str = "High-performance OpenGL 4.x to GLES 3.x renderer"
    library: str = LIBRARY_FILENAME


@dataclass(slots=True, frozen=True)
class OpenGLInfo:
    version: str = "4.6"
    glsl_version: str = "460"


def _default_launchers() -> tuple[str, ...]:
    return ("PojavLauncher", "Zalith Launcher", "Amethyst Launcher")


def _default_mods() -> tuple[str, ...]:
    return ("Sodium", "Iris Shaders", "Create", "JourneyMap", "OptiFine")


@dataclass(slots=True, frozen=True)
class Compatibility:
    """Descriptive compatibility metadata; reported to hosts, never used to gate behavior."""

    min_gles_version: str = "3.2"
    supported_launchers: tuple[str, ...] = field(default_factory=_default_launchers)
    supported_mods: tuple[str, ...] = field(default_factory=_default_mods)


@dataclass(slots=True)
class RendererManifest:
    """Decoded manifest document."""

    identity: RendererIdentity = field(default_factory=RendererIdentity)
    opengl: OpenGLInfo = field(default_factory=OpenGLInfo)
    config: RendererConfig = field(default_factory=RendererConfig)
    compatibility: Compatibility = field(default_factory=Compatibility)


@dataclass(slots=True, frozen=True)
class RendererInfo:
    """The fixed single-row answer of the discovery info query."""

    name: str
    version: str
    library: str
    gl_version: str
    description: str

    COLUMNS = ("name", "version", "library", "gl_version", "description")

    @classmethod
    def from_identity(cls, identity: RendererIdentity, opengl: OpenGLInfo) -> "RendererInfo":
        return cls(
            name=identity.name,
            version=identity.version,
            library=identity.library,
            gl_version=opengl.version,
            description=identity.description,
        )

    def row(self) -> list[str]:
        return [self.name, self.version, self.library, self.gl_version, self.description]


@dataclass(slots=True)
class InstallResult:
    """Which artifacts an install run actually staged."""

    status: InstallStatus
    target_dir: Path
    manifest_path: Path | None = None
    library_path: Path | None = None
    abi: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not InstallStatus.FAILED

    @property
    def fully_installed(self) -> bool:
        return self.status is InstallStatus.INSTALLED

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "status": self.status.value,
            "target_dir": str(self.target_dir),
            "manifest_path": str(self.manifest_path) if self.manifest_path else None,
            "library_path": str(self.library_path) if self.library_path else None,
            "abi": self.abi,
            "error": self.error,
        }
