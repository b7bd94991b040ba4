from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from keyrecall.domain import constants

from .scheduler import SchedulingPolicy


def config_files() -> list[Path]:
    """Candidate config files, most specific first."""
    return [
        Path.home() / ".config/keyrecall/config.toml",
        Path.home() / ".keyrecall.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for keyrecall.
    Supports loading from:
    1. Environment variables (KEYRECALL_*)
    2. Config file (~/.config/keyrecall/config.toml)
    3. Manual overrides (CLI / HTTP)
    """

    model_config = SettingsConfigDict(
        env_prefix="KEYRECALL_",
        extra="ignore",
    )

    # Storage
    storage: Literal["json", "memory"] = "json"
    data_file: Path = Field(
        default_factory=lambda: Path.home() / ".config/keyrecall/review_state.json"
    )
    catalog_file: Path | None = None

    # Scheduling policy
    initial_ease: float = constants.INITIAL_EASE_FACTOR
    min_ease: float = constants.MIN_EASE_FACTOR
    again_ease_penalty: float = constants.AGAIN_EASE_PENALTY
    hard_ease_penalty: float = constants.HARD_EASE_PENALTY
    easy_ease_bonus: float = constants.EASY_EASE_BONUS
    relearn_interval_days: int = constants.RELEARN_INTERVAL_DAYS
    hard_interval_factor: float = constants.HARD_INTERVAL_FACTOR
    easy_interval_factor: float = constants.EASY_INTERVAL_FACTOR
    first_good_interval_days: int = constants.FIRST_GOOD_INTERVAL_DAYS
    first_easy_interval_days: int = constants.FIRST_EASY_INTERVAL_DAYS

    # Sessions & statistics
    default_max_items: int = Field(default=constants.DEFAULT_MAX_ITEMS, ge=0)
    mastery_repetitions: int = Field(default=constants.MASTERY_REPETITIONS, ge=1)
    history_limit: int = Field(default=constants.DEFAULT_HISTORY_LIMIT, ge=0)

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

        # Find the first existing file
        toml_file = None
        for f in config_files():
            if f.exists():
                toml_file = f
                break

        # Earlier sources win
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

    @field_validator("data_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @field_validator("catalog_file", mode="before")
    @classmethod
    def resolve_catalog(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    def scheduling_policy(self) -> SchedulingPolicy:
        """
        Build the scheduler policy from the configured constants.

        Raises:
            ValueError: If the constants are inconsistent (e.g. floor below 1.0).
        """
        return SchedulingPolicy(
            initial_ease=self.initial_ease,
            min_ease=self.min_ease,
            again_ease_penalty=self.again_ease_penalty,
            hard_ease_penalty=self.hard_ease_penalty,
            easy_ease_bonus=self.easy_ease_bonus,
            relearn_interval_days=self.relearn_interval_days,
            hard_interval_factor=self.hard_interval_factor,
            easy_interval_factor=self.easy_interval_factor,
            first_good_interval_days=self.first_good_interval_days,
            first_easy_interval_days=self.first_easy_interval_days,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/keyrecall/config.toml (if exists)
    3. Environment variables (KEYRECALL_*)
    4. cli_overrides (None values are ignored)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
