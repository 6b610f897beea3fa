"""Manifest codec: renderer self-description <-> config.json document.

The document shape (top-level name/version/description/library, nested
opengl, optimizations and compatibility) is read by launchers as-is; field
names and nesting must not change. The extra ``runtime`` section carries the
record fields launchers do not know about.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from prismgl.plugins.core.types import (
    MANIFEST_FILENAME,
    Compatibility,
    OpenGLInfo,
    RenderBackend,
    RendererConfig,
    RendererIdentity,
    RendererManifest,
    clamp_resolution_scale,
    clamp_target_fps,
)
from prismgl.utils.exceptions import MalformedManifestError
from prismgl.utils.helpers import atomic_write_text

__all__ = [
    "MANIFEST_FILENAME",
    "encode_manifest",
    "decode_manifest",
    "read_manifest",
    "write_manifest",
]


def encode_manifest(
    config: RendererConfig,
    identity: RendererIdentity | None = None,
    compatibility: Compatibility | None = None,
    opengl: OpenGLInfo | None = None,
) -> str:
    """Encode to a deterministic JSON document (stable field order, 2-space indent)."""
    identity = identity or RendererIdentity()
    compatibility = compatibility or Compatibility()
    opengl = opengl or OpenGLInfo()
    cfg = config.normalized()
    document: dict[str, Any] = {
        "name": identity.name,
        "version": identity.version,
        "description": identity.description,
        "library": identity.library,
        "opengl": {
            "version": opengl.version,
            "glsl_version": opengl.glsl_version,
        },
        "optimizations": {
            "shader_cache": cfg.shader_cache,
            "draw_call_batching": cfg.draw_call_batching,
            "adaptive_resolution": cfg.adaptive_resolution,
            "async_texture_loading": cfg.async_texture_loading,
            "resolution_scale": cfg.resolution_scale,
        },
        "compatibility": {
            "min_gles_version": compatibility.min_gles_version,
            "supported_launchers": list(compatibility.supported_launchers),
            "supported_mods": list(compatibility.supported_mods),
        },
        "runtime": {
            "target_fps": cfg.target_fps,
            "backend": cfg.backend.value,
            "debug_mode": cfg.debug_mode,
        },
    }
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def decode_manifest(document: str | bytes, source: str | None = None) -> RendererManifest:
    """
    Decode a manifest document. Every field is optional: a missing or
    mistyped field takes its default. Raises MalformedManifestError only when
    the text is not a JSON object.
    """
    try:
        data = json.loads(document)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedManifestError(f"invalid JSON: {exc}", source=source) from exc
    if not isinstance(data, dict):
        raise MalformedManifestError("manifest root must be an object", source=source)

    identity_defaults = RendererIdentity()
    identity = RendererIdentity(
        name=_read_str(data, "name", identity_defaults.name),
        version=_read_str(data, "version", identity_defaults.version),
        description=_read_str(data, "description", identity_defaults.description),
        library=_read_str(data, "library", identity_defaults.library),
    )

    gl = _read_section(data, "opengl")
    gl_defaults = OpenGLInfo()
    opengl = OpenGLInfo(
        version=_read_str(gl, "version", gl_defaults.version),
        glsl_version=_read_str(gl, "glsl_version", gl_defaults.glsl_version),
    )

    opts = _read_section(data, "optimizations")
    runtime = _read_section(data, "runtime")
    defaults = RendererConfig()
    config = RendererConfig(
        target_fps=_read_fps(runtime, "target_fps", defaults.target_fps),
        resolution_scale=_read_scale(opts, "resolution_scale", defaults.resolution_scale),
        shader_cache=_read_bool(opts, "shader_cache", defaults.shader_cache),
        draw_call_batching=_read_bool(opts, "draw_call_batching", defaults.draw_call_batching),
        adaptive_resolution=_read_bool(opts, "adaptive_resolution", defaults.adaptive_resolution),
        async_texture_loading=_read_bool(opts, "async_texture_loading", defaults.async_texture_loading),
        backend=_read_backend(runtime, "backend", defaults.backend),
        debug_mode=_read_bool(runtime, "debug_mode", defaults.debug_mode),
    )

    compat = _read_section(data, "compatibility")
    compat_defaults = Compatibility()
    compatibility = Compatibility(
        min_gles_version=_read_str(compat, "min_gles_version", compat_defaults.min_gles_version),
        supported_launchers=_read_str_list(compat, "supported_launchers", compat_defaults.supported_launchers),
        supported_mods=_read_str_list(compat, "supported_mods", compat_defaults.supported_mods),
    )

    return RendererManifest(identity=identity, opengl=opengl, config=config, compatibility=compatibility)


def read_manifest(path: Path) -> RendererManifest:
    """Read and decode a manifest file. OSError propagates; callers decide the fallback."""
    raw = Path(path).read_bytes()
    manifest = decode_manifest(raw, source=str(path))
    logger.debug("Manifest loaded from {}", path)
    return manifest


def write_manifest(
    target_dir: Path,
    config: RendererConfig,
    identity: RendererIdentity | None = None,
    compatibility: Compatibility | None = None,
) -> Path:
    """Encode and atomically replace target_dir/config.json; never merges with the old file."""
    path = Path(target_dir) / MANIFEST_FILENAME
    atomic_write_text(path, encode_manifest(config, identity=identity, compatibility=compatibility))
    logger.info("Manifest written to {}", path)
    return path


def _read_section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("Manifest section '{}' is not an object; using defaults", key)
        return {}
    return value


def _read_str(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value
    if value is not None:
        logger.warning("Manifest field '{}' is not a non-empty string; using default", key)
    return default


def _read_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    if isinstance(value, bool):
        return value
    if value is not None:
        logger.warning("Manifest field '{}' is not a boolean; using default", key)
    return default


def _read_scale(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return clamp_resolution_scale(value, default=default)
    if value is not None:
        logger.warning("Manifest field '{}' is not a number; using default", key)
    return default


def _read_fps(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return clamp_target_fps(value, default=default)
    if value is not None:
        logger.warning("Manifest field '{}' is not an integer; using default", key)
    return default


def _read_backend(data: dict[str, Any], key: str, default: RenderBackend) -> RenderBackend:
    value = data.get(key)
    if isinstance(value, str):
        try:
            return RenderBackend(value.strip().lower())
        except ValueError:
            pass
    if value is not None:
        logger.warning("Manifest field '{}' is not a known backend; using default", key)
    return default


def _read_str_list(data: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = data.get(key)
    if isinstance(value, list):
        return tuple(item for item in value if isinstance(item, str))
    if value is not None:
        logger.warning("Manifest field '{}' is not an array; using default", key)
    return default
