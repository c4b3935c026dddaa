"""Configuration management for debugport.

Loads settings from a YAML configuration file with environment variable
overrides. Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/debugport.yaml")

DEFAULT_SCRIPT_URL = "https://registry.npmmirror.com/@gkd-kit/inspect/latest/files/dist/server.js"


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8888, ge=0, le=65535, description="Initial listen port")
    script_url: str = Field(default=DEFAULT_SCRIPT_URL)
    startup_timeout: float = Field(default=5.0, gt=0)
    log_level: str = Field(default="warning", description="uvicorn's own log level")


class StorageConfig(BaseModel):
    data_dir: Path = Field(default=Path("data"))

    @property
    def snapshot_dir(self) -> Path:
        return self.data_dir / "snapshots"

    @property
    def screenshot_dir(self) -> Path:
        return self.data_dir / "screenshots"

    @property
    def subscription_dir(self) -> Path:
        return self.data_dir / "subscriptions"

    @property
    def preferences_file(self) -> Path:
        return self.data_dir / "preferences.json"


class EngineConfig(BaseModel):
    base_url: str = Field(default="http://localhost:8765")
    timeout: float = Field(default=10.0, gt=0)


class PolicyConfig(BaseModel):
    auto_clear_memory_subs: bool = Field(
        default=True, description="Delete the ephemeral rule set when the server stops"
    )
    follow_interval: float = Field(default=1.0, gt=0, description="Preferences file poll interval")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for debugport.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "DEBUGPORT_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; environment must still win.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)

