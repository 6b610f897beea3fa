"""Configuration module for prismgl."""

from prismgl.config.loader import load_config, save_config, get_config_path
from prismgl.config.schema import Config
from prismgl.config.access import get_config, clear_config_cache

__all__ = ["Config", "load_config", "save_config", "get_config_path", "get_config", "clear_config_cache"]
