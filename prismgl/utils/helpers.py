"""Path helpers and the atomic-replace writer used for every staged artifact."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import BinaryIO

_COPY_CHUNK = 1024 * 1024


def ensure_dir(path: Path) -> Path:
    """Create directory if absent; concurrent creators never fail on 'already exists'."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def _temp_sibling(dest: Path) -> tuple[BinaryIO, Path]:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=str(dest.parent))
    return os.fdopen(fd, "wb"), Path(tmp_name)


def _fsync_dir(directory: Path) -> None:
    # Directory fsync is unsupported on some platforms (Windows); the rename is still atomic.
    try:
        fd = os.open(str(directory), os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def atomic_write_bytes(dest: Path, data: bytes) -> Path:
    """
    Write data to dest through a temporary sibling and rename it into place.

    Readers of dest only ever observe the previous complete file or the new
    complete file. The temporary file is removed on every failure path.
    """
    dest = Path(dest)
    ensure_dir(dest.parent)
    handle, tmp_path = _temp_sibling(dest)
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, dest)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    _fsync_dir(dest.parent)
    return dest


def atomic_write_text(dest: Path, text: str, encoding: str = "utf-8") -> Path:
    """Text variant of atomic_write_bytes."""
    return atomic_write_bytes(dest, text.encode(encoding))


def atomic_copy_stream(source: BinaryIO, dest: Path) -> int:
    """Copy a readable binary stream into dest atomically; returns the byte count."""
    dest = Path(dest)
    ensure_dir(dest.parent)
    handle, tmp_path = _temp_sibling(dest)
    total = 0
    try:
        with handle:
            while True:
                chunk = source.read(_COPY_CHUNK)
                if not chunk:
                    break
                handle.write(chunk)
                total += len(chunk)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, dest)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    _fsync_dir(dest.parent)
    return total


def atomic_copy_file(source: Path, dest: Path) -> int:
    """Copy source byte-for-byte to dest atomically, overwriting any prior copy."""
    with open(source, "rb") as src:
        return atomic_copy_stream(src, dest)


def open_read_only(path: Path) -> BinaryIO:
    """Open path for reading only; the returned handle cannot write."""
    return open(path, "rb")
