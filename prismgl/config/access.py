"""Process-local config cache keyed by file path and PRISMGL_* environment."""

from __future__ import annotations

import os
import threading
from pathlib import Path

from loguru import logger

from prismgl.config.loader import get_config_path, load_config
from prismgl.config.schema import Config

ENV_PREFIX = "PRISMGL_"

_lock = threading.RLock()
_cache: dict[tuple[str, tuple[tuple[str, str], ...]], Config] = {}


def _resolved(config_path: Path | None) -> str:
    return str(Path(config_path or get_config_path()).expanduser().resolve())


def _env_fingerprint() -> tuple[tuple[str, str], ...]:
    return tuple(sorted((k, v) for k, v in os.environ.items() if k.startswith(ENV_PREFIX)))


def get_config(*, config_path: Path | None = None, force_reload: bool = False) -> Config:
    """
    Return the cached Config for config_path (default ~/.prismgl/config.json).

    An entry is reused only while the PRISMGL_* environment is unchanged, so
    overrides set after the first load are picked up.
    """
    path = _resolved(config_path)
    key = (path, _env_fingerprint())
    with _lock:
        cached = None if force_reload else _cache.get(key)
        if cached is None:
            cached = load_config(Path(path))
            for stale in [k for k in _cache if k[0] == path]:
                del _cache[stale]
            _cache[key] = cached
            logger.debug("Config loaded from {}", path)
        return cached


def clear_config_cache(*, config_path: Path | None = None) -> None:
    """Drop the entries for one config file, or every entry when no path is given."""
    with _lock:
        if config_path is None:
            _cache.clear()
            return
        path = _resolved(config_path)
        for stale in [k for k in _cache if k[0] == path]:
            del _cache[stale]
