"""Read and write ~/.prismgl/config.json (camelCase on disk, snake_case in the model)."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from prismgl.config.schema import Config
from prismgl.utils.helpers import atomic_write_text

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def get_config_path() -> Path:
    return Path.home() / ".prismgl" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load the config file, or defaults (with PRISMGL_* overrides) when it does not exist.

    Raises ValueError naming the file when it is not a JSON object or does not
    validate; the file is never rewritten here.
    """
    path = Path(config_path or get_config_path()).expanduser()
    if not path.exists():
        return Config()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("config root must be a JSON object")
        return Config.model_validate(convert_keys(data))
    except ValueError as e:
        raise ValueError(
            f"Failed to load config from {path}: {e}. "
            "Fix the file or remove it to regenerate defaults."
        ) from e


def save_config(config: Config, config_path: Path | None = None) -> Path:
    """Atomically write config as camelCase JSON and drop its cache entry."""
    from prismgl.config.access import clear_config_cache

    path = Path(config_path or get_config_path()).expanduser()
    atomic_write_text(path, json.dumps(convert_to_camel(config.model_dump()), indent=2) + "\n")
    clear_config_cache(config_path=path)
    logger.info("Config saved to {}", path)
    return path


def _rename_keys(data: Any, rename: Callable[[str], str]) -> Any:
    if isinstance(data, dict):
        return {rename(k): _rename_keys(v, rename) for k, v in data.items()}
    if isinstance(data, list):
        return [_rename_keys(item, rename) for item in data]
    return data


def convert_keys(data: Any) -> Any:
    """camelCase keys -> snake_case, recursively."""
    return _rename_keys(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    """snake_case keys -> camelCase, recursively."""
    return _rename_keys(data, snake_to_camel)


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)
