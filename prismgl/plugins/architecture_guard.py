"""Static check that the discovery surface stays read-only.

The provider and server modules may read staged artifacts but must never
reach the installer, the manifest writer, the preference store, the sync
service or the native runtime, and must not pull in the atomic writers.
"""

from __future__ import annotations

import ast
from pathlib import Path

READ_ONLY_MODULES = (
    "api/discovery.py",
    "api/server.py",
)

_FORBIDDEN_IMPORT_PREFIXES = (
    "prismgl.plugins.installer",
    "prismgl.plugins.manifest",
    "prismgl.plugins.native",
    "prismgl.services",
    "prismgl.storage",
)

_FORBIDDEN_NAMES = frozenset(
    {
        "install",
        "stage_library",
        "write_manifest",
        "atomic_write_bytes",
        "atomic_write_text",
        "atomic_copy_stream",
        "atomic_copy_file",
    }
)


def _is_forbidden_module(module: str) -> bool:
    return any(module == prefix or module.startswith(prefix + ".") for prefix in _FORBIDDEN_IMPORT_PREFIXES)


def collect_read_only_violations(package_root: Path) -> list[str]:
    """Return violations where discovery-surface modules import a write path."""
    root = package_root.resolve()
    violations: list[str] = []
    for rel_path in READ_ONLY_MODULES:
        file_path = root / rel_path
        if not file_path.is_file():
            continue
        try:
            tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
        except SyntaxError as exc:
            violations.append(f"{rel_path}:0 parse-error: {exc}")
            continue
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    name = str(alias.name or "")
                    if _is_forbidden_module(name):
                        violations.append(f"{rel_path}:{node.lineno} forbidden-import: {name}")
            elif isinstance(node, ast.ImportFrom):
                module = str(node.module or "")
                if node.level == 0 and _is_forbidden_module(module):
                    violations.append(f"{rel_path}:{node.lineno} forbidden-import-from: {module}")
                if node.level > 0 and any(part in module for part in ("installer", "manifest", "native", "services", "storage")):
                    violations.append(f"{rel_path}:{node.lineno} forbidden-relative-import-from: {module}")
                for alias in node.names:
                    if alias.name in _FORBIDDEN_NAMES:
                        violations.append(f"{rel_path}:{node.lineno} forbidden-name: {alias.name}")
    return violations
