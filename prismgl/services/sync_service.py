"""Keep preferences, the on-disk manifest and the native runtime convergent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from loguru import logger

from prismgl.plugins.core.types import InstallResult, RendererConfig
from prismgl.plugins.installer import install
from prismgl.plugins.manifest import write_manifest
from prismgl.plugins.native.runtime import RuntimeBridge
from prismgl.storage.preference_store import PreferenceStore
from prismgl.utils.exceptions import sanitize_error_message


@dataclass(slots=True)
class ApplyResult:
    """Outcome of one apply sequence."""

    config: RendererConfig
    changed: dict[str, Any] = field(default_factory=dict)
    manifest_path: Path | None = None
    runtime_applied: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.manifest_path is not None and self.error is None


class RendererSyncService:
    """
    Owns the apply sequence: persist -> rewrite manifest -> push to runtime.

    The manifest is always regenerated from the store's current values, never
    merged with what is on disk. The runtime is only touched after every
    store write has committed. Blocking file I/O; call off latency-sensitive
    threads.
    """

    def __init__(
        self,
        store: PreferenceStore,
        install_dir: Path,
        *,
        bridge: RuntimeBridge | None = None,
        native_lib_dir: Path | None = None,
        abis: Sequence[str] | None = None,
    ):
        self.store = store
        self.install_dir = Path(install_dir).expanduser()
        self.bridge = bridge
        self.native_lib_dir = native_lib_dir
        self.abis = list(abis) if abis else None

    def current(self) -> RendererConfig:
        return self.store.snapshot()

    def install(self) -> InstallResult:
        """Full install (library + manifest) from current preferences, then push to runtime."""
        config = self.store.snapshot()
        result = install(
            self.install_dir,
            config,
            native_lib_dir=self.native_lib_dir,
            abis=self.abis,
        )
        if result.ok:
            self._push_to_runtime(config)
        return result

    def apply(self, changes: Mapping[str, Any] | None = None) -> ApplyResult:
        """
        Persist changes (if any), then rewrite the manifest and push the record
        into the runtime. Unknown keys or invalid values raise ValidationError
        before anything is written. When the manifest cannot be rewritten the
        runtime is left untouched and the result carries the error.
        NotInitializedError from an attached but uninitialized bridge propagates.
        """
        changed = self.store.update(dict(changes)) if changes else {}
        config = self.store.snapshot()
        result = ApplyResult(config=config, changed=changed)
        try:
            result.manifest_path = write_manifest(self.install_dir, config)
        except OSError as e:
            result.error = f"IO_ERROR: {e}"
            logger.error("Manifest rewrite failed in {}: {}", self.install_dir, sanitize_error_message(str(e)))
            return result
        result.runtime_applied = self._push_to_runtime(config)
        return result

    def reset(self) -> ApplyResult:
        """Reset every preference to its default and re-apply."""
        self.store.reset()
        return self.apply()

    def _push_to_runtime(self, config: RendererConfig) -> bool:
        if self.bridge is None:
            logger.debug("No native runtime attached; skipping runtime apply")
            return False
        self.bridge.apply(config)
        return True
