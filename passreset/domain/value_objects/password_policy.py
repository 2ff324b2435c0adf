"""Password policy value objects.

``PasswordPolicy`` is the organization-scoped rule set a new password must
satisfy. ``PolicyResult`` is what the validator returns instead of raising:
either ``PolicyResult.ok()`` or a violation naming the first rule that
failed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class PolicyViolationReason(str, Enum):
    """Rules a candidate password can fail, in evaluation order."""

    # General format
    EMPTY = "empty"
    TOO_LONG = "too_long"
    ILLEGAL_CHARACTERS = "illegal_characters"
    # Organization policy
    LENGTH = "length"
    MAX_LENGTH = "max_length"
    DIGITS = "digits"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    SPECIAL_CHARACTERS = "special_characters"
    CONTAINS_USERNAME = "contains_username"
    PATTERN = "pattern"
    RECENTLY_USED = "recently_used"

    @property
    def message_key(self) -> str:
        """Localization key for this reason."""
        return f"password_policy_{self.value}"


@dataclass(frozen=True)
class PasswordPolicy:
    """Organization password policy.

    Counts of ``0`` disable the corresponding rule, as does ``max_length=0``.
    ``not_recent_count`` is how many previous passwords may not be reused.
    """

    organization_id: int
    enabled: bool = True
    min_length: int = 0
    max_length: int = 0
    digits_count: int = 0
    lowercase_count: int = 0
    uppercase_count: int = 0
    special_count: int = 0
    not_username: bool = False
    regular_expression: Optional[str] = None
    not_recent_count: int = 0

    def __post_init__(self) -> None:
        counts = (
            self.min_length,
            self.max_length,
            self.digits_count,
            self.lowercase_count,
            self.uppercase_count,
            self.special_count,
            self.not_recent_count,
        )
        if any(count < 0 for count in counts):
            raise ValueError("Password policy counts cannot be negative")
        if self.max_length and self.max_length < self.min_length:
            raise ValueError("Password policy max_length is smaller than min_length")


@dataclass(frozen=True)
class UserContext:
    """What the validator may know about the account besides the candidate.

    Attributes:
        login_name: Account login name, for the ``not_username`` rule.
        recent_password_hashes: Most recent digests first.
    """

    login_name: str
    recent_password_hashes: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PolicyResult:
    """Tagged validation result."""

    violation: Optional[PolicyViolationReason] = None

    @classmethod
    def ok(cls) -> "PolicyResult":
        return cls()

    @classmethod
    def violated(cls, reason: PolicyViolationReason) -> "PolicyResult":
        return cls(violation=reason)

    @property
    def is_ok(self) -> bool:
        return self.violation is None

    def __bool__(self) -> bool:
        return self.is_ok
