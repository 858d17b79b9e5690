from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cardwise.application.settings_resolver import resolve_deck_settings
from cardwise.domain.constants import DEFAULT_DAY_RESET_HOUR
from cardwise.domain.settings import DeckSettings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def config_files() -> list[Path]:
    """Candidate config files, highest priority first."""
    # Resolved at call time so HOME can be redirected
    return [
        Path.home() / ".config/cardwise/config.toml",
        Path.home() / ".cardwise.toml",
    ]


def find_config_file() -> Path | None:
    for f in config_files():
        if f.exists():
            return f
    return None


class AppConfig(BaseSettings):
    """
    Process-level configuration for cardwise.
    Supports loading from:
    1. Environment variables (CARDWISE_*)
    2. Config file (~/.config/cardwise/config.toml or ~/.cardwise.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CARDWISE_",
        extra="ignore",
    )

    # Study day
    day_reset_hour: int = Field(default=DEFAULT_DAY_RESET_HOUR, ge=0, le=23)
    timezone: str | None = None  # IANA name; local zone when unset

    # Engine-wide defaults merged under every deck's own settings
    deck_defaults: dict[str, Any] = Field(default_factory=dict)

    # Logging
    log_level: LogLevel = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = find_config_file()

        # Earlier sources win: CLI overrides, then env, then the file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        else:
            return (
                init_settings,
                env_settings,
            )

    @field_validator("timezone", mode="before")
    @classmethod
    def check_timezone(cls, v: Any) -> str | None:
        if not v:
            return None
        try:
            ZoneInfo(str(v))
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return str(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("deck_defaults", mode="after")
    @classmethod
    def check_deck_defaults(cls, v: dict[str, Any]) -> dict[str, Any]:
        resolve_deck_settings(v)
        return v

    def tzinfo(self) -> tzinfo:
        if self.timezone:
            return ZoneInfo(self.timezone)
        return datetime.now().astimezone().tzinfo

    def deck_defaults_settings(self) -> DeckSettings:
        return resolve_deck_settings(self.deck_defaults)

    def now(self) -> datetime:
        return datetime.now(self.tzinfo())


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cardwise/config.toml (if exists)
    3. Environment variables (CARDWISE_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
