"""User records as seen by the recovery flow.

The flow does not own user persistence; ``User`` is the shape the injected
user directory returns and accepts back. ``UserSummary`` is the sanitized
projection the flow hands to its callers.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class User(BaseModel):
    """An account that may recover its password.

    Attributes:
        id: Directory identifier of the user.
        login_name: Login name, also used by the ``not_username`` policy rule.
        real_name: Display name used in notifications.
        email: Recovery identity (normalized to lower case).
        organization_id: Organization whose password policy applies.
        hashed_password: Current password digest. Never leaves the flow.
        is_ldap: True when authentication is delegated to an external provider.
        is_enabled: Disabled accounts are reported as not found.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: int
    login_name: str = Field(min_length=1)
    real_name: Optional[str] = None
    email: str
    organization_id: int
    hashed_password: Optional[str] = Field(default=None, repr=False)
    is_ldap: bool = False
    is_enabled: bool = True

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def display_name(self) -> str:
        return self.real_name or self.login_name

    @property
    def is_delegated(self) -> bool:
        return self.is_ldap

    def to_summary(self) -> "UserSummary":
        return UserSummary(id=self.id, login_name=self.login_name, email=self.email)


class UserSummary(BaseModel):
    """Sanitized account data safe to return to the caller."""

    model_config = ConfigDict(frozen=True)

    id: int
    login_name: str
    email: str
