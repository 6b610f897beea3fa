"""Check that the prismgl discovery surface never imports a write path."""

from __future__ import annotations

import sys
from pathlib import Path

from prismgl.plugins.architecture_guard import collect_read_only_violations


def main() -> int:
    repo_root = Path(__file__).resolve().parents[1]
    package_root = repo_root / "prismgl"
    violations = collect_read_only_violations(package_root=package_root)
    if not violations:
        print("read-only-boundary-check: ok")
        return 0
    print("read-only-boundary-check: violations detected", file=sys.stderr)
    for row in violations:
        print(f"- {row}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
