"""Settings of the engine.

Operations that accept a policy (how to resolve name collisions,
how to handle values that split in too many parts, ...) fall back
to these settings when the policy is not explicitly provided.

Settings are read from environment variables prefixed by ``TIDYPYGROUND_``,
for example::

    TIDYPYGROUND_SEPARATE_EXTRA=drop
    TIDYPYGROUND_JOIN_SUFFIXES='[".left", ".right"]'
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Main configuration for the engine."""

    model_config = SettingsConfigDict(
        env_prefix="TIDYPYGROUND_",
        case_sensitive=False,
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Log level of the engine loggers"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    join_suffixes: tuple[str, str] = Field(
        default=("_x", "_y"),
        description="Suffixes appended to colliding columns in mutating joins",
    )
    names_sep: str = Field(
        default="_", description="Separator of the column names built by pivot_wider"
    )
    separate_extra: Literal["error", "drop", "merge"] = Field(
        default="error", description="What separate does with excess parts"
    )
    separate_fill: Literal["right", "left", "error"] = Field(
        default="right", description="Where separate pads missing parts"
    )
    bind_cols_names_repair: Literal["unique", "error"] = Field(
        default="unique", description="How bind_cols handles duplicate column names"
    )


@lru_cache
def get_settings() -> EngineSettings:
    """Get the global settings instance."""
    return EngineSettings()
