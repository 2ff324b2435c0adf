"""
Application-wide settings.
"""
from typing import List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines settings shared by every part of the library: environment,
    logging and language defaults.
    """
    PROJECT_NAME: str = "passreset"
    VERSION: str = "0.1.0"
    APP_ENV: str = Field(
        default="development",
        pattern="^(development|test|staging|production)$",
    )

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    DEFAULT_LANGUAGE: str = "en"
    SUPPORTED_LANGUAGES: Union[str, List[str]] = Field(default=["en", "es"])

    @field_validator("SUPPORTED_LANGUAGES", mode="before")
    @classmethod
    def split_languages(cls, value: Union[str, List[str]]) -> List[str]:
        """Accepts a comma separated string from the environment."""
        if isinstance(value, str):
            return [lang.strip() for lang in value.split(",") if lang.strip()]
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {value}")
        return level
