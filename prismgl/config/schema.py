"""Configuration schema using Pydantic.

Application settings (paths, discovery endpoint, runtime binding, logging),
persisted to ~/.prismgl/config.json. Renderer preferences chosen by the user
live in the preference store, not here.
"""

from pathlib import Path

from pydantic import BaseModel, Field, ConfigDict
from pydantic_settings import BaseSettings

from prismgl.plugins.core.types import LIBRARY_FILENAME


class PathsConfig(BaseModel):
    """Filesystem locations."""
    data_dir: str = "~/.prismgl"
    install_dir: str = "~/PrismGL"  # Shared directory launchers read config.json / libPrismGL.so from
    preferences_db: str = ""  # Empty = <data_dir>/state/preferences.db
    native_lib_dir: str = ""  # Root of <abi>/libPrismGL.so tree; empty = bundled native/libs
    cache_dir: str = ""  # Shader cache dir passed to native init; empty = <data_dir>/cache


class DiscoveryConfig(BaseModel):
    """Discovery endpoint bind address."""
    host: str = "127.0.0.1"
    port: int = 18790


class RuntimeConfig(BaseModel):
    """Native runtime binding."""
    library_path: str = ""  # Empty = <install_dir>/libPrismGL.so
    abis: list[str] = Field(default_factory=list)  # Override ABI preference order
    auto_initialize: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: bool = True  # Rotating file sink under <data_dir>/logs


class Config(BaseSettings):
    """Root configuration for prismgl."""
    paths: PathsConfig = Field(default_factory=PathsConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def data_path(self) -> Path:
        return Path(self.paths.data_dir).expanduser()

    @property
    def install_path(self) -> Path:
        return Path(self.paths.install_dir).expanduser()

    @property
    def preferences_db_path(self) -> Path:
        if self.paths.preferences_db:
            return Path(self.paths.preferences_db).expanduser()
        return self.data_path / "state" / "preferences.db"

    @property
    def cache_path(self) -> Path:
        if self.paths.cache_dir:
            return Path(self.paths.cache_dir).expanduser()
        return self.data_path / "cache"

    @property
    def native_lib_path(self) -> Path | None:
        return Path(self.paths.native_lib_dir).expanduser() if self.paths.native_lib_dir else None

    @property
    def runtime_library_path(self) -> Path:
        if self.runtime.library_path:
            return Path(self.runtime.library_path).expanduser()
        return self.install_path / LIBRARY_FILENAME

    @property
    def logs_path(self) -> Path:
        return self.data_path / "logs"

    model_config = ConfigDict(
        env_prefix="PRISMGL_",
        env_nested_delimiter="__"
    )
