from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain import constants as c
from cadence.domain.scheduling.models import EaseFactorChange, SchedulingConfig

CONFIG_FILES = [
    Path.home() / ".config/cadence/config.toml",
    Path.home() / ".cadence.toml",
]


class AppConfig(BaseSettings):
    """
    Configuration model for cadence.
    Supports loading from:
    1. Environment variables (CADENCE_*)
    2. Config file (~/.config/cadence/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        extra="ignore",
    )

    # Storage
    backend: Literal["yaml", "memory"] = "yaml"
    deck_path: Path = Field(default_factory=lambda: Path.cwd() / "deck.yaml")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/cadence/logs")

    # Server
    host: str = "127.0.0.1"
    port: int = 8787

    verbose: int = 1

    # Scheduling
    learning_steps: list[int] = Field(default_factory=lambda: list(c.DEFAULT_LEARNING_STEPS))
    graduating_interval: int = c.DEFAULT_GRADUATING_INTERVAL
    easy_interval: int = c.DEFAULT_EASY_INTERVAL
    again_multiplier: float = c.DEFAULT_AGAIN_MULTIPLIER
    hard_multiplier: float = c.DEFAULT_HARD_MULTIPLIER
    easy_multiplier: float = c.DEFAULT_EASY_MULTIPLIER
    min_ease_factor: float = c.MIN_EASE_FACTOR
    max_ease_factor: float = c.MAX_EASE_FACTOR
    default_ease_factor: float = c.DEFAULT_EASE_FACTOR
    ease_delta_again: float = c.EASE_DELTA_AGAIN
    ease_delta_hard: float = c.EASE_DELTA_HARD
    ease_delta_good: float = c.EASE_DELTA_GOOD
    ease_delta_easy: float = c.EASE_DELTA_EASY

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

        # First existing file wins
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        # Earlier sources take priority: CLI overrides > env > TOML
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("deck_path", "log_dir", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    def scheduling_config(self) -> SchedulingConfig:
        """
        Build the immutable SchedulingConfig used by the engine.

        Raises:
            ConfigurationError: If the configured values are inconsistent.
        """
        return SchedulingConfig(
            learning_steps=tuple(self.learning_steps),
            graduating_interval=self.graduating_interval,
            easy_interval=self.easy_interval,
            again_multiplier=self.again_multiplier,
            hard_multiplier=self.hard_multiplier,
            easy_multiplier=self.easy_multiplier,
            min_ease_factor=self.min_ease_factor,
            max_ease_factor=self.max_ease_factor,
            ease_factor_change=EaseFactorChange(
                again=self.ease_delta_again,
                hard=self.ease_delta_hard,
                good=self.ease_delta_good,
                easy=self.ease_delta_easy,
            ),
            default_ease_factor=self.default_ease_factor,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes None for options the user did not set
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
