"""
Configuration loading with schema validation.

settings.yaml values may reference environment variables as ``${VAR}`` or
``${VAR:default}``; a .env file in the working directory is loaded first.
The resulting Settings object is frozen and read once at startup.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import ConfigError

DEFAULT_CONFIG_DIR = Path(os.getenv("CATALOG_CONFIG_DIR", "config"))

# bcrypt accepts log2 cost factors in this range only
MIN_SALT_ROUNDS = 4
MAX_SALT_ROUNDS = 31


class AppSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "Library Catalog"
    environment: str = "development"
    debug: bool = False


class DatabaseSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = "sqlite:///data/catalog.db"
    echo: bool = False


class AuthSettings(BaseModel):
    """Token secret and password cost factor"""

    model_config = ConfigDict(frozen=True)

    secret: str = ""
    salt_rounds: int = 12
    token_ttl_minutes: int = Field(default=7 * 24 * 60, gt=0)
    algorithm: str = "HS256"

    @field_validator("salt_rounds")
    @classmethod
    def _check_rounds(cls, value: int) -> int:
        if not MIN_SALT_ROUNDS <= value <= MAX_SALT_ROUNDS:
            raise ValueError(
                f"salt_rounds must be between {MIN_SALT_ROUNDS} and {MAX_SALT_ROUNDS}"
            )
        return value


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    format: str = "console"


class ServerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 5001


class Settings(BaseModel):
    """Main configuration model"""

    model_config = ConfigDict(frozen=True)

    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    def is_production(self) -> bool:
        return self.app.environment.strip().lower() == "production"


class ConfigLoader:
    """Load and parse configuration files"""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        load_dotenv()

    def _substitute_env_vars(self, value: Any, context: str = "") -> Any:
        """Recursively substitute environment variables in config values"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                env_value = os.getenv(var_expr)
                if env_value is None:
                    error_msg = f"Environment variable {var_expr} not found"
                    if context:
                        error_msg += f" (context: {context})"
                    raise ConfigError(error_msg)
                return env_value
        elif isinstance(value, dict):
            return {
                k: self._substitute_env_vars(v, context=f"{context}.{k}" if context else k)
                for k, v in value.items()
            }
        elif isinstance(value, list):
            return [
                self._substitute_env_vars(item, context=f"{context}[{i}]" if context else f"[{i}]")
                for i, item in enumerate(value)
            ]
        return value

    def load_settings(self) -> Settings:
        """Load application settings, falling back to defaults without a file"""
        settings_path = self.config_dir / "settings.yaml"
        if not settings_path.exists():
            return Settings()

        with open(settings_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}

        config = self._substitute_env_vars(raw_config)
        try:
            return Settings(**config)
        except ValueError as e:
            raise ConfigError(f"Invalid settings in {settings_path}: {e}") from e


def load_settings(config_dir: Optional[Path] = None) -> Settings:
    return ConfigLoader(config_dir).load_settings()
