"""Tests for the runtime bridge lifecycle and native call forwarding."""

from __future__ import annotations

import ctypes
import os
from pathlib import Path

import pytest

from prismgl.plugins.core.contracts import NativeRuntime
from prismgl.plugins.core.types import RenderBackend, RendererConfig
from prismgl.plugins.native import runtime as native_runtime
from prismgl.plugins.native.runtime import (
    CtypesNativeRuntime,
    PrismGLConfigStruct,
    RuntimeBridge,
    RuntimeState,
    load_native_runtime,
)
from prismgl.utils.exceptions import NotFoundError, NotInitializedError


def test_fake_runtime_satisfies_protocol(fake_runtime) -> None:
    assert isinstance(fake_runtime, NativeRuntime)


def test_initialize_apply_shutdown(fake_runtime, tmp_path: Path) -> None:
    bridge = RuntimeBridge(fake_runtime)
    assert bridge.state is RuntimeState.UNINITIALIZED

    assert bridge.initialize(tmp_path / "cache") is True
    assert bridge.initialized
    bridge.apply(RendererConfig(target_fps=45, resolution_scale=0.5, backend=RenderBackend.OPENGL))
    bridge.shutdown()

    assert bridge.state is RuntimeState.UNINITIALIZED
    assert fake_runtime.names() == ["init", "set_config", "set_target_fps", "shutdown"]
    assert fake_runtime.calls[1] == ("set_config", True, True, True, True, False, 0.5)
    assert fake_runtime.calls[2] == ("set_target_fps", 45)


def test_apply_before_initialize_raises(fake_runtime) -> None:
    bridge = RuntimeBridge(fake_runtime)
    with pytest.raises(NotInitializedError) as exc_info:
        bridge.apply(RendererConfig())
    assert exc_info.value.details["operation"] == "apply"
    assert fake_runtime.calls == []


def test_queries_require_initialization(fake_runtime) -> None:
    bridge = RuntimeBridge(fake_runtime)
    for query in (bridge.query_device_profile, bridge.query_frame_time, bridge.query_resolution_scale):
        with pytest.raises(NotInitializedError):
            query()


def test_apply_after_shutdown_raises(fake_runtime, tmp_path: Path) -> None:
    bridge = RuntimeBridge(fake_runtime)
    bridge.initialize(tmp_path)
    bridge.shutdown()
    with pytest.raises(NotInitializedError):
        bridge.apply(RendererConfig())


def test_failed_native_init_leaves_bridge_uninitialized(runtime_factory, tmp_path: Path) -> None:
    bridge = RuntimeBridge(runtime_factory(init_ok=False))
    assert bridge.initialize(tmp_path) is False
    assert bridge.state is RuntimeState.UNINITIALIZED


def test_initialize_twice_is_a_no_op(fake_runtime, tmp_path: Path) -> None:
    bridge = RuntimeBridge(fake_runtime)
    bridge.initialize(tmp_path)
    bridge.initialize(tmp_path)
    assert fake_runtime.names() == ["init"]


def test_shutdown_when_uninitialized_is_a_no_op(fake_runtime) -> None:
    RuntimeBridge(fake_runtime).shutdown()
    assert fake_runtime.calls == []


def test_apply_clamps_out_of_range_record(fake_runtime, tmp_path: Path) -> None:
    bridge = RuntimeBridge(fake_runtime)
    bridge.initialize(tmp_path)
    bridge.apply(RendererConfig(target_fps=1000, resolution_scale=4.0))
    assert bridge.query_resolution_scale() == 1.0
    assert fake_runtime.fps == 240


def test_queries_forward_to_runtime(fake_runtime, tmp_path: Path) -> None:
    bridge = RuntimeBridge(fake_runtime)
    bridge.initialize(tmp_path)
    assert bridge.query_device_profile() == "Adreno (TM) 740"
    assert bridge.query_frame_time() == pytest.approx(16.6)


def test_two_bridges_are_independent(runtime_factory, tmp_path: Path) -> None:
    first, second = runtime_factory(), runtime_factory()
    a, b = RuntimeBridge(first), RuntimeBridge(second)
    a.initialize(tmp_path)
    assert a.initialized and not b.initialized
    with pytest.raises(NotInitializedError):
        b.apply(RendererConfig())


def test_load_native_runtime_missing_library(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        load_native_runtime(tmp_path / "libPrismGL.so")


# --- ctypes binding ---


class _Symbol:
    """Stand-in for a ctypes function pointer: callable, accepts argtypes/restype."""

    def __init__(self, fn):
        self.fn = fn
        self.argtypes = None
        self.restype = None

    def __call__(self, *args):
        return self.fn(*args)


class _FakeLibrary:
    def __init__(self, gpu_name: bytes | None = b"Mali-G715", with_optional: bool = False):
        self.config = PrismGLConfigStruct()
        self.calls: list[tuple] = []
        self.scale = 1.0
        self.prismgl_init = _Symbol(lambda cache_dir: self.calls.append(("init", cache_dir)) or True)
        self.prismgl_shutdown = _Symbol(lambda: self.calls.append(("shutdown",)))
        self.prismgl_get_config = _Symbol(lambda: ctypes.pointer(self.config))
        self.prismgl_get_gpu_name = _Symbol(lambda: gpu_name)
        self.prismgl_set_resolution_scale = _Symbol(lambda scale: setattr(self, "scale", scale))
        self.prismgl_get_resolution_scale = _Symbol(lambda: self.scale)
        if with_optional:
            self.prismgl_set_target_fps = _Symbol(lambda fps: self.calls.append(("set_target_fps", fps)))
            self.prismgl_get_frame_time = _Symbol(lambda: 0.016)


@pytest.fixture
def fake_library_file(tmp_path: Path) -> Path:
    path = tmp_path / "libPrismGL.so"
    path.write_bytes(b"\x7fELF")
    return path


def _bind(monkeypatch: pytest.MonkeyPatch, path: Path, library: _FakeLibrary) -> CtypesNativeRuntime:
    monkeypatch.setattr(native_runtime.ctypes, "CDLL", lambda name: library)
    return CtypesNativeRuntime(path)


def test_ctypes_binding_declares_signatures(monkeypatch: pytest.MonkeyPatch, fake_library_file: Path) -> None:
    library = _FakeLibrary()
    _bind(monkeypatch, fake_library_file, library)
    assert library.prismgl_init.argtypes == [ctypes.c_char_p]
    assert library.prismgl_init.restype is ctypes.c_bool
    assert library.prismgl_set_resolution_scale.argtypes == [ctypes.c_float]
    assert library.prismgl_get_resolution_scale.restype is ctypes.c_float


def test_ctypes_set_config_writes_native_struct(monkeypatch: pytest.MonkeyPatch, fake_library_file: Path) -> None:
    library = _FakeLibrary()
    runtime = _bind(monkeypatch, fake_library_file, library)

    runtime.set_config(False, True, False, True, False, 0.25)

    cfg = library.config
    assert cfg.shader_cache_enabled is False
    assert cfg.draw_call_batching is True
    assert cfg.adaptive_resolution is False
    assert cfg.async_texture_loading is True
    assert cfg.vulkan_backend is False
    assert cfg.resolution_scale == pytest.approx(0.25)


def test_ctypes_init_encodes_cache_dir(monkeypatch: pytest.MonkeyPatch, fake_library_file: Path) -> None:
    library = _FakeLibrary()
    runtime = _bind(monkeypatch, fake_library_file, library)
    assert runtime.init("/data/cache") is True
    runtime.shutdown()
    assert library.calls == [("init", b"/data/cache"), ("shutdown",)]


def test_ctypes_device_profile_decodes_gpu_name(monkeypatch: pytest.MonkeyPatch, fake_library_file: Path) -> None:
    assert _bind(monkeypatch, fake_library_file, _FakeLibrary()).get_device_profile() == "Mali-G715"
    assert _bind(monkeypatch, fake_library_file, _FakeLibrary(gpu_name=None)).get_device_profile() == "unknown"


def test_ctypes_optional_symbols_absent(monkeypatch: pytest.MonkeyPatch, fake_library_file: Path) -> None:
    library = _FakeLibrary()
    runtime = _bind(monkeypatch, fake_library_file, library)
    runtime.set_target_fps(90)
    assert runtime.get_frame_time() == 0.0
    assert library.calls == []


def test_ctypes_optional_symbols_present(monkeypatch: pytest.MonkeyPatch, fake_library_file: Path) -> None:
    library = _FakeLibrary(with_optional=True)
    runtime = _bind(monkeypatch, fake_library_file, library)
    runtime.set_target_fps(90)
    assert runtime.get_frame_time() == pytest.approx(0.016)
    assert library.calls == [("set_target_fps", 90)]
    assert library.prismgl_get_frame_time.restype is ctypes.c_float


def test_bridge_over_ctypes_binding(monkeypatch: pytest.MonkeyPatch, fake_library_file: Path, tmp_path: Path) -> None:
    library = _FakeLibrary()
    monkeypatch.setattr(native_runtime.ctypes, "CDLL", lambda name: library)
    bridge = load_native_runtime(fake_library_file)

    assert bridge.initialize(tmp_path / "cache")
    bridge.apply(RendererConfig(resolution_scale=0.3, backend=RenderBackend.OPENGL))

    assert library.config.resolution_scale == pytest.approx(0.3)
    assert library.config.vulkan_backend is False
    assert bridge.query_device_profile() == "Mali-G715"


@pytest.mark.requires_native
def test_real_library_round_trip(tmp_path: Path) -> None:
    library = os.environ.get("PRISMGL_NATIVE_LIB")
    if not library:
        pytest.skip("PRISMGL_NATIVE_LIB is not set")
    bridge = load_native_runtime(library)
    assert bridge.initialize(tmp_path / "cache")
    try:
        bridge.apply(RendererConfig(resolution_scale=0.5))
        assert isinstance(bridge.query_device_profile(), str)
        assert bridge.query_frame_time() >= 0.0
    finally:
        bridge.shutdown()
