"""Stage the native library and manifest into the shared install directory.

Each step is idempotent and re-runnable. Every write goes through a
temporary sibling that is renamed into place, so a host reading the
directory concurrently never sees a truncated artifact.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from loguru import logger

from prismgl.infra.device_abi import supported_abis
from prismgl.plugins.core.types import (
    LIBRARY_FILENAME,
    MANIFEST_FILENAME,
    Compatibility,
    InstallResult,
    InstallStatus,
    RendererConfig,
    RendererIdentity,
)
from prismgl.plugins.manifest import write_manifest
from prismgl.utils.exceptions import ArtifactMissingError, sanitize_error_message
from prismgl.utils.helpers import atomic_copy_file, ensure_dir


def default_native_lib_dir() -> Path:
    """Per-ABI library tree shipped with the package: native/libs/<abi>/libPrismGL.so."""
    return Path(__file__).resolve().parent.parent / "native" / "libs"


def resolve_library_source(native_lib_dir: Path, abis: Sequence[str]) -> tuple[str, Path]:
    """
    Return (abi, path) of the library for the primary ABI.

    Only the first entry of the preference list is considered. Raises
    ArtifactMissingError when there is no primary ABI or no file for it.
    """
    if not abis:
        raise ArtifactMissingError("<none>", str(native_lib_dir))
    abi = abis[0]
    source = Path(native_lib_dir) / abi / LIBRARY_FILENAME
    if not source.is_file():
        raise ArtifactMissingError(abi, str(source))
    return abi, source


def stage_library(target_dir: Path, native_lib_dir: Path, abis: Sequence[str]) -> tuple[str, Path]:
    """Copy the primary-ABI library into target_dir, overwriting any prior copy."""
    abi, source = resolve_library_source(native_lib_dir, abis)
    dest = Path(target_dir) / LIBRARY_FILENAME
    size = atomic_copy_file(source, dest)
    logger.info("Staged {} ({} bytes, abi={}) to {}", LIBRARY_FILENAME, size, abi, dest)
    return abi, dest


def install(
    target_dir: Path,
    config: RendererConfig,
    *,
    native_lib_dir: Path | None = None,
    abis: Sequence[str] | None = None,
    identity: RendererIdentity | None = None,
    compatibility: Compatibility | None = None,
) -> InstallResult:
    """
    Install the renderer artifacts into target_dir.

    A missing library is not fatal: the manifest is still written and the
    result status is LIBRARY_MISSING. Only a failure to create the directory
    or write the manifest yields FAILED. Nothing here raises for I/O errors.
    """
    target_dir = Path(target_dir).expanduser()
    lib_root = Path(native_lib_dir).expanduser() if native_lib_dir else default_native_lib_dir()
    abi_list = list(abis) if abis is not None else supported_abis()

    try:
        ensure_dir(target_dir)
    except OSError as e:
        logger.error("Cannot create install directory {}: {}", target_dir, sanitize_error_message(str(e)))
        return InstallResult(status=InstallStatus.FAILED, target_dir=target_dir, error=f"IO_ERROR: {e}")

    library_path: Path | None = None
    abi: str | None = abi_list[0] if abi_list else None
    library_error: str | None = None
    try:
        abi, library_path = stage_library(target_dir, lib_root, abi_list)
    except ArtifactMissingError as e:
        library_error = e.code
        logger.warning("{}; continuing with manifest-only install", e.message)
    except OSError as e:
        library_error = f"IO_ERROR: {e}"
        logger.warning("Failed to stage native library: {}", sanitize_error_message(str(e)))

    try:
        manifest_path = write_manifest(target_dir, config, identity=identity, compatibility=compatibility)
    except OSError as e:
        logger.error("Failed to write manifest in {}: {}", target_dir, sanitize_error_message(str(e)))
        return InstallResult(
            status=InstallStatus.FAILED,
            target_dir=target_dir,
            library_path=library_path,
            abi=abi,
            error=f"IO_ERROR: {e}",
        )

    status = InstallStatus.INSTALLED if library_path is not None else InstallStatus.LIBRARY_MISSING
    logger.info("Install finished in {}: {}", target_dir, status.label)
    return InstallResult(
        status=status,
        target_dir=target_dir,
        manifest_path=manifest_path,
        library_path=library_path,
        abi=abi,
        error=library_error,
    )


def installed_artifacts(target_dir: Path) -> dict[str, Path | None]:
    """Report which artifacts are currently staged in target_dir."""
    target_dir = Path(target_dir).expanduser()
    out: dict[str, Path | None] = {}
    for name in (LIBRARY_FILENAME, MANIFEST_FILENAME):
        path = target_dir / name
        out[name] = path if path.is_file() else None
    return out
