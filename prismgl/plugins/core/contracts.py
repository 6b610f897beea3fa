"""Call boundary of the native rendering runtime."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class NativeRuntime(Protocol):
    """Process-wide native renderer, consumed only through these calls."""

    def init(self, cache_dir: str) -> bool: ...
    def shutdown(self) -> None: ...
    def set_config(
        self,
        shader_cache: bool,
        draw_call_batching: bool,
        adaptive_resolution: bool,
        async_texture_loading: bool,
        vulkan_backend: bool,
        resolution_scale: float,
    ) -> None: ...
    def set_target_fps(self, fps: int) -> None: ...
    def get_device_profile(self) -> str: ...
    def get_frame_time(self) -> float: ...
    def get_resolution_scale(self) -> float: ...
