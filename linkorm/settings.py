from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from linkorm.errors import ConfigurationError

SUPPORTED_DIALECTS = ("sqlite",)


class Settings(BaseSettings):
    APP_NAME: str = "LinkORM"

    # Database
    DIALECT: str = "sqlite"
    DATABASE_PATH: str = ":memory:"
    ECHO_SQL: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="LINKORM_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DIALECT")
    @classmethod
    def _check_dialect(cls, value: str) -> str:
        value = value.lower()
        if value not in SUPPORTED_DIALECTS:
            raise ValueError(f"Unsupported dialect '{value}', expected one of {SUPPORTED_DIALECTS}")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        return value.upper()


def load_settings(**overrides) -> Settings:
    """
    Build the settings from the environment (and ``.env``), turning pydantic
    validation failures into a ConfigurationError naming the offending fields.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = [str(err["loc"][0]) for err in e.errors() if err.get("loc")]
        raise ConfigurationError(
            f"Invalid LinkORM configuration: {', '.join(fields)}", invalid_fields=fields
        ) from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
