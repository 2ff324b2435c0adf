"""Recovery Token Value Object.

A recovery token is the proof a user presents to show they received an
out-of-band message. Two purposes exist:

- ``SHORT``: a numeric code the user types into the app (e.g. ``"042917"``).
- ``LONG``: a URL-safe key embedded in an emailed deep link.

Both are generated with the ``secrets`` module. Short codes are only strong
enough to survive online guessing inside their validity window, which is
why the window stays short; long keys carry at least 128 bits of entropy.
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import ClassVar, Optional


class TokenPurpose(str, Enum):
    """What a recovery token is used for; each purpose has its own slot."""

    SHORT = "short"
    LONG = "long"


@dataclass(frozen=True)
class RecoveryToken:
    """Recovery proof token value object.

    Attributes:
        value: The secret presented by the user.
        identity: Normalized email the token is bound to.
        purpose: ``TokenPurpose.SHORT`` or ``TokenPurpose.LONG``.
        issued_at: Timezone-aware issuance timestamp.
        ttl: Lifetime of the token.
    """

    value: str
    identity: str
    purpose: TokenPurpose
    ttl: timedelta
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    DEFAULT_CODE_LENGTH: ClassVar[int] = 6
    DEFAULT_KEY_BYTES: ClassVar[int] = 32
    MIN_KEY_BYTES: ClassVar[int] = 16

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Token value cannot be empty")
        if not self.identity:
            raise ValueError("Token identity cannot be empty")
        if self.ttl <= timedelta(0):
            raise ValueError("Token ttl must be positive")
        if not self.issued_at.tzinfo:
            raise ValueError("Token issue time must be timezone aware")

    @staticmethod
    def generate_code(length: int = DEFAULT_CODE_LENGTH) -> str:
        """Generate a zero-padded numeric code of ``length`` digits."""
        if length < 1:
            raise ValueError("Code length must be positive")
        return str(secrets.randbelow(10 ** length)).zfill(length)

    @staticmethod
    def generate_key(num_bytes: int = DEFAULT_KEY_BYTES) -> str:
        """Generate an unguessable URL-safe key."""
        if num_bytes < RecoveryToken.MIN_KEY_BYTES:
            raise ValueError(f"Keys need at least {RecoveryToken.MIN_KEY_BYTES} bytes of entropy")
        return secrets.token_urlsafe(num_bytes)

    @classmethod
    def issue(
        cls,
        identity: str,
        purpose: TokenPurpose,
        ttl: timedelta,
        code_length: int = DEFAULT_CODE_LENGTH,
        key_bytes: int = DEFAULT_KEY_BYTES,
    ) -> "RecoveryToken":
        """Create a fresh token for ``identity`` with a newly generated value."""
        if purpose is TokenPurpose.SHORT:
            value = cls.generate_code(code_length)
        else:
            value = cls.generate_key(key_bytes)
        return cls(value=value, identity=identity, purpose=purpose, ttl=ttl)

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + self.ttl

    def is_expired(self, current_time: Optional[datetime] = None) -> bool:
        check_time = current_time or datetime.now(timezone.utc)
        return check_time >= self.expires_at

    def mask_for_logging(self) -> str:
        """Short codes are fully masked; long keys keep an 8 character prefix."""
        if self.purpose is TokenPurpose.SHORT:
            return "*" * len(self.value)
        return f"{self.value[:8]}..."

    def __repr__(self) -> str:
        return (
            f"RecoveryToken(purpose={self.purpose.value!r}, value={self.mask_for_logging()!r}, "
            f"expires_at={self.expires_at.isoformat()!r})"
        )


def tokens_match(stored: str, candidate: str) -> bool:
    """Constant-time comparison that accepts any unicode candidate."""
    return secrets.compare_digest(stored.encode("utf-8"), candidate.encode("utf-8"))
