"""CLI tests: install/status/config commands against an isolated HOME."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from prismgl.cli.commands import app
from prismgl.storage.preference_store import PreferenceStore

runner = CliRunner()


@pytest.fixture
def cli_home(isolated_home: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("PRISMGL_LOGGING__FILE", "false")
    monkeypatch.setenv("PRISMGL_RUNTIME__AUTO_INITIALIZE", "false")
    monkeypatch.setenv("PRISMGL_RUNTIME__ABIS", '["arm64-v8a"]')
    return isolated_home


def _manifest(home: Path) -> dict:
    return json.loads((home / "PrismGL" / "config.json").read_text(encoding="utf-8"))


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "prismgl v1.0.0" in result.stdout


def test_install_without_library_is_partial(cli_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRISMGL_PATHS__NATIVE_LIB_DIR", str(cli_home / "no-libs"))
    result = runner.invoke(app, ["install"])
    assert result.exit_code == 0, result.stdout
    assert "Installed, library missing" in result.stdout
    assert _manifest(cli_home)["name"] == "PrismGL"


def test_install_with_library_and_target(cli_home: Path, native_lib_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRISMGL_PATHS__NATIVE_LIB_DIR", str(native_lib_dir))
    target = cli_home / "elsewhere"
    result = runner.invoke(app, ["install", "--target", str(target)])
    assert result.exit_code == 0, result.stdout
    assert "Installed and ready" in result.stdout
    assert (target / "libPrismGL.so").is_file()
    assert (target / "config.json").is_file()


def test_install_failure_exits_1(cli_home: Path) -> None:
    blocker = cli_home / "blocker"
    blocker.write_text("x", encoding="utf-8")
    result = runner.invoke(app, ["install", "--target", str(blocker / "PrismGL")])
    assert result.exit_code == 1
    assert "Installation failed" in result.stdout


def test_status_reports_not_installed_then_installed(cli_home: Path, native_lib_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRISMGL_PATHS__NATIVE_LIB_DIR", str(native_lib_dir))
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0, result.stdout
    assert "Not Installed" in result.stdout

    assert runner.invoke(app, ["install"]).exit_code == 0
    result = runner.invoke(app, ["status"])
    assert "Installed and Ready" in result.stdout
    assert "60 fps" in result.stdout


def test_status_reports_partial_install(cli_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRISMGL_PATHS__NATIVE_LIB_DIR", str(cli_home / "no-libs"))
    assert runner.invoke(app, ["install"]).exit_code == 0

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0, result.stdout
    assert "Installed, library missing" in result.stdout
    assert "Not Installed" not in result.stdout
    assert "Installed and Ready" not in result.stdout


def test_status_survives_corrupt_manifest(cli_home: Path) -> None:
    (cli_home / "PrismGL").mkdir()
    (cli_home / "PrismGL" / "config.json").write_text("{broken", encoding="utf-8")
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0, result.stdout
    assert "unreadable" in result.stdout


def test_config_set_persists_and_rewrites_manifest(cli_home: Path) -> None:
    result = runner.invoke(app, ["config", "set", "target_fps", "30"])
    assert result.exit_code == 0, result.stdout
    assert _manifest(cli_home)["runtime"]["target_fps"] == 30
    store = PreferenceStore(cli_home / ".prismgl" / "state" / "preferences.db")
    assert store.get("target_fps") == 30


def test_config_set_unknown_key_exits_1(cli_home: Path) -> None:
    result = runner.invoke(app, ["config", "set", "fov", "90"])
    assert result.exit_code == 1
    assert not (cli_home / "PrismGL" / "config.json").exists()


def test_config_scale_and_reset(cli_home: Path) -> None:
    result = runner.invoke(app, ["config", "scale", "0"])
    assert result.exit_code == 0, result.stdout
    assert "0.25x" in result.stdout
    assert _manifest(cli_home)["optimizations"]["resolution_scale"] == 0.25

    result = runner.invoke(app, ["config", "scale", "50"])
    assert "(50%)" in result.stdout
    assert _manifest(cli_home)["optimizations"]["resolution_scale"] == 0.625

    result = runner.invoke(app, ["config", "reset"])
    assert result.exit_code == 0, result.stdout
    assert _manifest(cli_home)["optimizations"]["resolution_scale"] == 1.0


def test_config_show_json(cli_home: Path) -> None:
    runner.invoke(app, ["config", "set", "vulkan", "false"])
    result = runner.invoke(app, ["config", "show", "--json"])
    assert result.exit_code == 0, result.stdout
    values = json.loads(result.stdout)
    assert values["vulkan"] is False
    assert values["target_fps"] == 60
