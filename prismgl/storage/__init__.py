"""Persistent storage for prismgl."""

from prismgl.storage.preference_store import (
    PREFERENCE_KEYS,
    PreferenceStore,
    scale_from_slider,
    slider_from_scale,
)

__all__ = ["PREFERENCE_KEYS", "PreferenceStore", "scale_from_slider", "slider_from_scale"]
