"""Runtime bridge: pushes the configuration record into the native renderer.

The native runtime is process-wide state inside the shared library. It is
wrapped in an explicitly owned RuntimeBridge with a small lifecycle, so
independent bridges (and fake runtimes) can coexist in tests.
"""

from __future__ import annotations

import ctypes
import threading
from enum import Enum
from pathlib import Path

from loguru import logger

from prismgl.plugins.core.contracts import NativeRuntime
from prismgl.plugins.core.types import RendererConfig
from prismgl.utils.exceptions import NotInitializedError, NotFoundError


class RuntimeState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SHUTTING_DOWN = "shutting_down"


class RuntimeBridge:
    """Lifecycle-checked passthrough to a NativeRuntime."""

    def __init__(self, runtime: NativeRuntime):
        self._runtime = runtime
        self._state = RuntimeState.UNINITIALIZED
        self._lock = threading.RLock()

    @property
    def state(self) -> RuntimeState:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state is RuntimeState.INITIALIZED

    def initialize(self, cache_dir: str | Path) -> bool:
        """Uninitialized -> Initialized. Returns False (state unchanged) when native init fails."""
        with self._lock:
            if self._state is RuntimeState.INITIALIZED:
                return True
            if self._state is RuntimeState.SHUTTING_DOWN:
                raise NotInitializedError("initialize", self._state.value)
            ok = bool(self._runtime.init(str(cache_dir)))
            if not ok:
                logger.warning("Native runtime init failed (cache_dir={})", cache_dir)
                return False
            self._state = RuntimeState.INITIALIZED
            logger.info("Native runtime initialized (cache_dir={})", cache_dir)
            return True

    def shutdown(self) -> None:
        """Initialized -> ShuttingDown -> Uninitialized. No-op when not initialized."""
        with self._lock:
            if self._state is not RuntimeState.INITIALIZED:
                return
            self._state = RuntimeState.SHUTTING_DOWN
            try:
                self._runtime.shutdown()
            finally:
                self._state = RuntimeState.UNINITIALIZED
            logger.info("Native runtime shut down")

    def _require_initialized(self, operation: str) -> None:
        if self._state is not RuntimeState.INITIALIZED:
            raise NotInitializedError(operation, self._state.value)

    def apply(self, config: RendererConfig) -> None:
        """Forward the record to the native runtime as one configuration call."""
        with self._lock:
            self._require_initialized("apply")
            cfg = config.normalized()
            self._runtime.set_config(*cfg.native_args())
            self._runtime.set_target_fps(cfg.target_fps)
            logger.debug("Applied renderer config to native runtime: {}", cfg)

    def query_device_profile(self) -> str:
        with self._lock:
            self._require_initialized("query_device_profile")
            return self._runtime.get_device_profile()

    def query_frame_time(self) -> float:
        with self._lock:
            self._require_initialized("query_frame_time")
            return float(self._runtime.get_frame_time())

    def query_resolution_scale(self) -> float:
        with self._lock:
            self._require_initialized("query_resolution_scale")
            return float(self._runtime.get_resolution_scale())


class PrismGLConfigStruct(ctypes.Structure):
    """Mirror of the native PrismGLConfig struct."""

    _fields_ = [
        ("shader_cache_enabled", ctypes.c_bool),
        ("draw_call_batching", ctypes.c_bool),
        ("adaptive_resolution", ctypes.c_bool),
        ("async_texture_loading", ctypes.c_bool),
        ("vulkan_backend", ctypes.c_bool),
        ("resolution_scale", ctypes.c_float),
        ("max_cached_shaders", ctypes.c_int),
        ("gpu_vendor", ctypes.c_int),
        ("cache_dir", ctypes.c_char * 512),
    ]


class CtypesNativeRuntime:
    """NativeRuntime backed by the shipped shared library, loaded with ctypes."""

    def __init__(self, library_path: str | Path):
        path = Path(library_path)
        if not path.is_file():
            raise NotFoundError("native library", str(path))
        self.library_path = path
        self._lib = ctypes.CDLL(str(path))
        self._bind()

    def _bind(self) -> None:
        lib = self._lib
        lib.prismgl_init.argtypes = [ctypes.c_char_p]
        lib.prismgl_init.restype = ctypes.c_bool
        lib.prismgl_shutdown.argtypes = []
        lib.prismgl_shutdown.restype = None
        lib.prismgl_get_config.argtypes = []
        lib.prismgl_get_config.restype = ctypes.POINTER(PrismGLConfigStruct)
        lib.prismgl_get_gpu_name.argtypes = []
        lib.prismgl_get_gpu_name.restype = ctypes.c_char_p
        lib.prismgl_set_resolution_scale.argtypes = [ctypes.c_float]
        lib.prismgl_set_resolution_scale.restype = None
        lib.prismgl_get_resolution_scale.argtypes = []
        lib.prismgl_get_resolution_scale.restype = ctypes.c_float
        self._set_target_fps = getattr(lib, "prismgl_set_target_fps", None)
        if self._set_target_fps is not None:
            self._set_target_fps.argtypes = [ctypes.c_int]
            self._set_target_fps.restype = None
        self._get_frame_time = getattr(lib, "prismgl_get_frame_time", None)
        if self._get_frame_time is not None:
            self._get_frame_time.argtypes = []
            self._get_frame_time.restype = ctypes.c_float

    def init(self, cache_dir: str) -> bool:
        return bool(self._lib.prismgl_init(cache_dir.encode("utf-8")))

    def shutdown(self) -> None:
        self._lib.prismgl_shutdown()

    def set_config(
        self,
        shader_cache: bool,
        draw_call_batching: bool,
        adaptive_resolution: bool,
        async_texture_loading: bool,
        vulkan_backend: bool,
        resolution_scale: float,
    ) -> None:
        cfg = self._lib.prismgl_get_config().contents
        cfg.shader_cache_enabled = shader_cache
        cfg.draw_call_batching = draw_call_batching
        cfg.adaptive_resolution = adaptive_resolution
        cfg.async_texture_loading = async_texture_loading
        cfg.vulkan_backend = vulkan_backend
        cfg.resolution_scale = resolution_scale

    def set_target_fps(self, fps: int) -> None:
        if self._set_target_fps is None:
            logger.debug("Native library has no prismgl_set_target_fps; target fps not forwarded")
            return
        self._set_target_fps(int(fps))

    def get_device_profile(self) -> str:
        raw = self._lib.prismgl_get_gpu_name()
        return raw.decode("utf-8", errors="replace") if raw else "unknown"

    def get_frame_time(self) -> float:
        if self._get_frame_time is None:
            return 0.0
        return float(self._get_frame_time())

    def get_resolution_scale(self) -> float:
        return float(self._lib.prismgl_get_resolution_scale())


def load_native_runtime(library_path: str | Path) -> RuntimeBridge:
    """Bind the shared library at library_path and wrap it in a fresh bridge."""
    return RuntimeBridge(CtypesNativeRuntime(library_path))
