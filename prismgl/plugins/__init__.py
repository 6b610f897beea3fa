"""Renderer plugin artifacts: manifest codec, installer and native runtime bridge."""

from .core.contracts import NativeRuntime
from .core.types import ArtifactKind, InstallResult, InstallStatus, RendererConfig, RendererManifest
from .installer import install
from .manifest import decode_manifest, encode_manifest, read_manifest, write_manifest
from .native.runtime import RuntimeBridge, RuntimeState

__all__ = [
    "ArtifactKind",
    "InstallResult",
    "InstallStatus",
    "NativeRuntime",
    "RendererConfig",
    "RendererManifest",
    "RuntimeBridge",
    "RuntimeState",
    "decode_manifest",
    "encode_manifest",
    "install",
    "read_manifest",
    "write_manifest",
]
