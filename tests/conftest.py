"""Pytest hooks and fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from prismgl.config.access import clear_config_cache
from prismgl.storage.preference_store import PreferenceStore


def pytest_configure(config):
    """Register custom markers (also in pyproject.toml)."""
    config.addinivalue_line(
        "markers",
        "requires_native: needs a real libPrismGL.so for the host ABI (skipped in CI)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip requires_native tests when running in CI (no native build available)."""
    if os.environ.get("CI") != "true":
        return
    skip = pytest.mark.skip(reason="Requires native libPrismGL.so (skipped in CI)")
    for item in items:
        if "requires_native" in item.keywords:
            item.add_marker(skip)


class RecordingRuntime:
    """NativeRuntime fake that records every call it receives."""

    def __init__(self, init_ok: bool = True, gpu: str = "Adreno (TM) 740"):
        self.init_ok = init_ok
        self.gpu = gpu
        self.calls: list[tuple] = []
        self.scale = 1.0
        self.fps = 0

    def init(self, cache_dir: str) -> bool:
        self.calls.append(("init", cache_dir))
        return self.init_ok

    def shutdown(self) -> None:
        self.calls.append(("shutdown",))

    def set_config(self, shader_cache, draw_call_batching, adaptive_resolution, async_texture_loading, vulkan_backend, resolution_scale) -> None:
        self.calls.append(
            ("set_config", shader_cache, draw_call_batching, adaptive_resolution, async_texture_loading, vulkan_backend, resolution_scale)
        )
        self.scale = resolution_scale

    def set_target_fps(self, fps: int) -> None:
        self.calls.append(("set_target_fps", fps))
        self.fps = fps

    def get_device_profile(self) -> str:
        return self.gpu

    def get_frame_time(self) -> float:
        return 16.6

    def get_resolution_scale(self) -> float:
        return self.scale

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_runtime() -> RecordingRuntime:
    return RecordingRuntime()


@pytest.fixture
def runtime_factory() -> type[RecordingRuntime]:
    return RecordingRuntime


@pytest.fixture
def store(tmp_path: Path) -> PreferenceStore:
    return PreferenceStore(tmp_path / "state" / "preferences.db")


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    return tmp_path / "PrismGL"


@pytest.fixture
def native_lib_dir(tmp_path: Path) -> Path:
    """Per-ABI library tree with a fake arm64-v8a build."""
    root = tmp_path / "native-libs"
    (root / "arm64-v8a").mkdir(parents=True)
    (root / "arm64-v8a" / "libPrismGL.so").write_bytes(b"\x7fELF" + b"\x00" * 60 + b"prismgl")
    return root


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """HOME pointed at tmp_path so ~/.prismgl and ~/PrismGL resolve inside the test dir."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("PRISMGL_"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield home
    clear_config_cache()
