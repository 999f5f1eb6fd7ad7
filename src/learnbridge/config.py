"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (LEARNBRIDGE__CANVAS__API_KEY=...)
  2. learnbridge.yaml       (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. Canvas tools explain how to configure
themselves when no API key is set, and Gradescope tools are disabled unless
both email and password are present.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from learnbridge import __version__

DEFAULT_CANVAS_BASE_URL = "https://canvas.asu.edu"
DEFAULT_GRADESCOPE_BASE_URL = "https://www.gradescope.com"


def _find_config_file() -> str | None:
    """Return the path of the first learnbridge.yaml found, or None."""
    candidates = [
        Path("learnbridge.yaml"),
        Path(platformdirs.user_config_dir("learnbridge")) / "learnbridge.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8080
    auth_enabled: bool = False
    auth_key: str = ""


class CanvasSettings(BaseModel):
    base_url: str = DEFAULT_CANVAS_BASE_URL
    api_key: SecretStr = SecretStr("")
    per_page: int = 100
    max_pages: int = 10


class GradescopeSettings(BaseModel):
    base_url: str = DEFAULT_GRADESCOPE_BASE_URL
    email: str | None = None
    password: SecretStr | None = None

    @property
    def configured(self) -> bool:
        """Email and password are only usable together."""
        return bool(self.email) and self.password is not None and bool(
            self.password.get_secret_value()
        )


class CacheSettings(BaseModel):
    ttl_seconds: float = 300.0


class HttpSettings(BaseModel):
    timeout_seconds: float = 30.0
    user_agent: str = f"learnbridge/{__version__}"


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: LEARNBRIDGE__SERVER__PORT=9090
        env_prefix="LEARNBRIDGE__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    debug: bool = False
    server: ServerSettings = ServerSettings()
    canvas: CanvasSettings = CanvasSettings()
    gradescope: GradescopeSettings = GradescopeSettings()
    cache: CacheSettings = CacheSettings()
    http: HttpSettings = HttpSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else self.logging.level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
