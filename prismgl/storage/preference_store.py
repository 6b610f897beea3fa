"""SQLite-backed preference store: the source of truth for renderer settings."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from prismgl.plugins.core.types import (
    DEFAULT_RESOLUTION_SCALE,
    MAX_RESOLUTION_SCALE,
    MIN_RESOLUTION_SCALE,
    RenderBackend,
    RendererConfig,
    clamp_target_fps,
)
from prismgl.utils.exceptions import ValidationError
from prismgl.utils.helpers import ensure_dir

def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off", ""):
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


def _to_scale(value: Any) -> float:
    scale = float(value)
    if scale != scale:
        raise ValueError("resolution_scale cannot be NaN")
    return min(MAX_RESOLUTION_SCALE, max(MIN_RESOLUTION_SCALE, scale))


def _to_fps(value: Any) -> int:
    return clamp_target_fps(int(float(value)))


@dataclass(frozen=True, slots=True)
class PreferenceKey:
    name: str
    default: Any
    coerce: Callable[[Any], Any]


PREFERENCE_KEYS: dict[str, PreferenceKey] = {
    key.name: key
    for key in (
        PreferenceKey("target_fps", 60, _to_fps),
        PreferenceKey("resolution_scale", DEFAULT_RESOLUTION_SCALE, _to_scale),
        PreferenceKey("shader_cache", True, _to_bool),
        PreferenceKey("draw_call_batching", True, _to_bool),
        PreferenceKey("adaptive_resolution", True, _to_bool),
        PreferenceKey("async_loading", True, _to_bool),
        PreferenceKey("vulkan", True, _to_bool),
        PreferenceKey("debug_mode", False, _to_bool),
    )
}


def scale_from_slider(percent: int) -> float:
    """Map a 0..100 slider position linearly onto the 0.25..1.0 render scale."""
    pct = min(100, max(0, int(percent)))
    return MIN_RESOLUTION_SCALE + (pct / 100.0) * (MAX_RESOLUTION_SCALE - MIN_RESOLUTION_SCALE)


def slider_from_scale(scale: float) -> int:
    """Inverse of scale_from_slider, rounded to the nearest slider step."""
    span = MAX_RESOLUTION_SCALE - MIN_RESOLUTION_SCALE
    pct = round((_to_scale(scale) - MIN_RESOLUTION_SCALE) / span * 100)
    return int(min(100, max(0, pct)))


class PreferenceStore:
    """
    Durable key/value settings over a closed key set.

    Every set() commits before returning (synchronous=FULL), so a crash right
    after the call does not lose the write. Missing keys read as their
    default; the store is never observed empty.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        ensure_dir(self.db_path.parent)
        self._init_db()

    @classmethod
    def default(cls) -> "PreferenceStore":
        return cls(Path.home() / ".prismgl" / "state" / "preferences.db")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=10.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=FULL;")
        return conn

    def _init_db(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS preferences (
                        key TEXT PRIMARY KEY,
                        value_json TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                    """
                )
        finally:
            conn.close()

    @staticmethod
    def _key(key: str) -> PreferenceKey:
        spec = PREFERENCE_KEYS.get(key)
        if spec is None:
            raise ValidationError(f"Unknown preference key: {key}", field=key)
        return spec

    def get(self, key: str) -> Any:
        spec = self._key(key)
        conn = self._connect()
        try:
            row = conn.execute("SELECT value_json FROM preferences WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return spec.default
        try:
            return spec.coerce(json.loads(row["value_json"]))
        except (ValueError, TypeError) as e:
            logger.warning("Stored preference {} is unreadable ({}); using default", key, e)
            return spec.default

    def _coerce(self, key: str, value: Any) -> Any:
        spec = self._key(key)
        try:
            return spec.coerce(value)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid value for {key}: {value!r} ({e})", field=key) from e

    def _write(self, values: dict[str, Any]) -> None:
        now = _utc_now()
        conn = self._connect()
        try:
            with conn:
                conn.executemany(
                    """
                    INSERT INTO preferences(key, value_json, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json,
                                                   updated_at = excluded.updated_at
                    """,
                    [(key, json.dumps(stored), now) for key, stored in values.items()],
                )
        finally:
            conn.close()
        for key, stored in values.items():
            logger.debug("Preference {} = {!r}", key, stored)

    def set(self, key: str, value: Any) -> Any:
        """Persist value (coerced to the key's type); returns the stored value."""
        stored = self._coerce(key, value)
        self._write({key: stored})
        return stored

    def update(self, values: dict[str, Any]) -> dict[str, Any]:
        """Set several keys atomically: all values are validated, then committed together."""
        stored = {key: self._coerce(key, value) for key, value in values.items()}
        if stored:
            self._write(stored)
        return stored

    def reset(self) -> None:
        """Clear every key back to its default in one transaction."""
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM preferences")
        finally:
            conn.close()
        logger.info("Preferences reset to defaults")

    def all(self) -> dict[str, Any]:
        return {key: self.get(key) for key in PREFERENCE_KEYS}

    def snapshot(self) -> RendererConfig:
        """Build the configuration record from the current preference values."""
        values = self.all()
        return RendererConfig(
            target_fps=values["target_fps"],
            resolution_scale=values["resolution_scale"],
            shader_cache=values["shader_cache"],
            draw_call_batching=values["draw_call_batching"],
            adaptive_resolution=values["adaptive_resolution"],
            async_texture_loading=values["async_loading"],
            backend=RenderBackend.from_flag(values["vulkan"]),
            debug_mode=values["debug_mode"],
        )

    # Typed accessors mirroring the settings screen.

    @property
    def target_fps(self) -> int:
        return self.get("target_fps")

    @property
    def resolution_scale(self) -> float:
        return self.get("resolution_scale")

    @property
    def shader_cache_enabled(self) -> bool:
        return self.get("shader_cache")

    @property
    def async_loading_enabled(self) -> bool:
        return self.get("async_loading")

    @property
    def vulkan_enabled(self) -> bool:
        return self.get("vulkan")

    @property
    def debug_mode_enabled(self) -> bool:
        return self.get("debug_mode")
