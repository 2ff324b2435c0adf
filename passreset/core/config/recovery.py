"""
Credential recovery settings: token lifetimes, code format and cooldown.
"""
from datetime import timedelta

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class RecoverySettings(BaseSettings):
    """
    Defines the knobs of the forgot-password flow.

    Security Note:
        - SHORT_CODE_LENGTH below 6 makes online guessing within the code's
          lifetime realistic; keep the TTL short if you lower it.
        - LONG_TOKEN_BYTES is the entropy of emailed deep-link keys; 32 bytes
          yields 43 URL-safe characters.
    """
    SHORT_CODE_LENGTH: int = Field(default=6, ge=4, le=12)
    SHORT_CODE_TTL_MINUTES: int = Field(default=10, ge=1)
    LONG_TOKEN_TTL_MINUTES: int = Field(default=10, ge=1)
    LONG_TOKEN_BYTES: int = Field(default=32, ge=16)
    SEND_COOLDOWN_SECONDS: int = Field(default=60, ge=1)

    RESET_BASE_URL: str = "http://localhost:8080"
    RESET_PATH: str = "/oauth/password/reset_page"

    BCRYPT_WORK_FACTOR: int = Field(default=12, ge=4, le=31)

    @field_validator("RESET_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def short_code_ttl(self) -> timedelta:
        return timedelta(minutes=self.SHORT_CODE_TTL_MINUTES)

    @property
    def long_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.LONG_TOKEN_TTL_MINUTES)

    @property
    def send_cooldown(self) -> timedelta:
        return timedelta(seconds=self.SEND_COOLDOWN_SECONDS)
