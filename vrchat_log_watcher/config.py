import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

_CONFIG_PATH = os.getenv("VRCHAT_LOG_WATCHER_CONFIG", "config.toml")
_ENV_PATH = os.getenv("VRCHAT_LOG_WATCHER_ENV", ".env")


class WatchSettings(BaseModel):
    """Tuning passed through to watchfiles.awatch."""

    debounce_ms: int = 200
    step_ms: int = 50
    force_polling: Optional[bool] = None
    poll_delay_ms: int = 300

    def awatch_kwargs(self) -> dict:
        return {
            "debounce": self.debounce_ms,
            "step": self.step_ms,
            "force_polling": self.force_polling,
            "poll_delay_ms": self.poll_delay_ms,
        }


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VRCHAT_LOG_WATCHER_",
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
        extra="ignore",
    )

    # Directory holding output_log_*.txt, resolved per platform when unset
    log_dir: Optional[Path] = None
    log_file_prefix: str = "output_log_"

    log_level: str = "INFO"
    # Handlers attached to the package logger at import
    console_logging: bool = False
    logs_dir: Optional[Path] = None

    watch: WatchSettings = Field(default_factory=WatchSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: init args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
