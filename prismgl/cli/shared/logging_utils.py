"""Loguru helpers for consistent file logging in CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_SINK_IDS: dict[str, int] = {}


def configure_console_logging(level: str = "WARNING") -> None:
    """Replace loguru's default stderr sink so CLI output stays readable; file sinks are kept."""
    previous = _SINK_IDS.pop("<console>", 0)
    try:
        logger.remove(previous)
    except ValueError:
        pass
    _SINK_IDS["<console>"] = logger.add(sys.stderr, level=level.upper(), backtrace=False, diagnose=False)


def ensure_rotating_log_file(name: str, level: str = "INFO", log_dir: Path | None = None) -> Path:
    """Ensure a rotating log sink for the given command name."""
    log_dir = Path(log_dir).expanduser() if log_dir else Path.home() / ".prismgl" / "logs"
    log_path = log_dir / f"{name}.log"
    if str(log_path) in _SINK_IDS:
        return log_path
    log_dir.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        str(log_path),
        level=level.upper(),
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[str(log_path)] = sink_id
    return log_path
