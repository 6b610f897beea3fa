"""Tests for the apply sequence keeping store, manifest and runtime convergent."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from prismgl.plugins.core.types import InstallStatus, RenderBackend
from prismgl.plugins.manifest import read_manifest
from prismgl.plugins.native.runtime import RuntimeBridge
from prismgl.services.sync_service import RendererSyncService
from prismgl.storage.preference_store import PreferenceStore
from prismgl.utils.exceptions import NotInitializedError, ValidationError


@pytest.fixture
def bridge(fake_runtime, tmp_path: Path) -> RuntimeBridge:
    bridge = RuntimeBridge(fake_runtime)
    bridge.initialize(tmp_path / "cache")
    return bridge


def test_apply_converges_store_manifest_and_runtime(store: PreferenceStore, install_dir: Path, bridge, fake_runtime) -> None:
    service = RendererSyncService(store, install_dir, bridge=bridge)

    result = service.apply({"target_fps": 30, "vulkan": False, "resolution_scale": 0.5})

    assert result.ok
    assert result.runtime_applied is True
    assert store.get("target_fps") == 30
    manifest = read_manifest(install_dir / "config.json")
    assert manifest.config == store.snapshot() == result.config
    assert manifest.config.backend is RenderBackend.OPENGL
    assert fake_runtime.calls[-2] == ("set_config", True, True, True, True, False, 0.5)
    assert fake_runtime.calls[-1] == ("set_target_fps", 30)


def test_apply_without_changes_regenerates_manifest(store: PreferenceStore, install_dir: Path) -> None:
    install_dir.mkdir(parents=True)
    (install_dir / "config.json").write_text('{"name": "Stale", "optimizations": {"shader_cache": false}}', encoding="utf-8")

    result = RendererSyncService(store, install_dir).apply()

    assert result.runtime_applied is False
    doc = json.loads((install_dir / "config.json").read_text(encoding="utf-8"))
    assert doc["name"] == "PrismGL"
    assert doc["optimizations"]["shader_cache"] is True


def test_invalid_change_writes_nothing(store: PreferenceStore, install_dir: Path, bridge, fake_runtime) -> None:
    service = RendererSyncService(store, install_dir, bridge=bridge)
    with pytest.raises(ValidationError):
        service.apply({"fov": 110})
    assert not (install_dir / "config.json").exists()
    assert fake_runtime.names() == ["init"]


def test_uninitialized_bridge_propagates_after_persisting(store: PreferenceStore, install_dir: Path, fake_runtime) -> None:
    service = RendererSyncService(store, install_dir, bridge=RuntimeBridge(fake_runtime))
    with pytest.raises(NotInitializedError):
        service.apply({"debug_mode": True})
    assert store.get("debug_mode") is True
    assert read_manifest(install_dir / "config.json").config.debug_mode is True


def test_reset_rewrites_defaults(store: PreferenceStore, install_dir: Path) -> None:
    service = RendererSyncService(store, install_dir)
    service.apply({"target_fps": 144})
    result = service.reset()
    assert result.config.target_fps == 60
    assert read_manifest(install_dir / "config.json").config.target_fps == 60


def test_install_stages_and_pushes_current_preferences(
    store: PreferenceStore, install_dir: Path, native_lib_dir: Path, bridge, fake_runtime
) -> None:
    store.set("target_fps", 120)
    service = RendererSyncService(store, install_dir, bridge=bridge, native_lib_dir=native_lib_dir, abis=["arm64-v8a"])

    result = service.install()

    assert result.status is InstallStatus.INSTALLED
    assert read_manifest(install_dir / "config.json").config.target_fps == 120
    assert ("set_target_fps", 120) in fake_runtime.calls


def test_apply_scale_below_half_reaches_manifest_and_runtime(
    store: PreferenceStore, install_dir: Path, bridge, fake_runtime
) -> None:
    service = RendererSyncService(store, install_dir, bridge=bridge)

    result = service.apply({"resolution_scale": 0.25})

    assert result.ok
    assert read_manifest(install_dir / "config.json").config.resolution_scale == 0.25
    assert fake_runtime.calls[-2][-1] == 0.25

    service.apply({"resolution_scale": 0.3})
    assert read_manifest(install_dir / "config.json").config.resolution_scale == 0.3
    assert fake_runtime.calls[-2][-1] == 0.3


def test_bad_value_in_multi_key_apply_keeps_store_and_manifest_in_step(
    store: PreferenceStore, install_dir: Path, bridge, fake_runtime
) -> None:
    service = RendererSyncService(store, install_dir, bridge=bridge)
    service.apply()
    calls_before = list(fake_runtime.calls)

    with pytest.raises(ValidationError):
        service.apply({"target_fps": 30, "shader_cache": "maybe"})

    assert store.get("target_fps") == 60
    assert read_manifest(install_dir / "config.json").config.target_fps == 60
    assert fake_runtime.calls == calls_before


def test_manifest_write_failure_skips_runtime(store: PreferenceStore, tmp_path: Path, bridge, fake_runtime) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    service = RendererSyncService(store, blocker / "PrismGL", bridge=bridge)

    result = service.apply({"target_fps": 30})

    assert not result.ok
    assert result.error.startswith("IO_ERROR")
    assert result.runtime_applied is False
    assert store.get("target_fps") == 30
    assert fake_runtime.names() == ["init"]
