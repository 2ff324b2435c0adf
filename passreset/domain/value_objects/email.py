"""A Value Object representing the email address that selects a recovery target.

Recovery identities are compared and stored in their normalized form, so two
requests for ``Alice@Example.com`` and ``alice@example.com`` share one token
slot and one cooldown.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from structlog import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Email:
    """An immutable, self-validating email address.

    This Value Object enforces on instantiation:
    - A conventional ``local@domain.tld`` format.
    - A reasonable length.
    - Lower-case normalization with surrounding whitespace removed.

    Attributes:
        value: The normalized email address.
    """

    value: str

    MAX_LENGTH: ClassVar[int] = 254
    MIN_LENGTH: ClassVar[int] = 5
    EMAIL_PATTERN: ClassVar[re.Pattern] = re.compile(
        r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    )

    def __post_init__(self):
        """Performs validation and normalization after initialization."""
        if not isinstance(self.value, str):
            raise TypeError("Email value must be a string.")

        normalized_value = self.value.strip().lower()
        object.__setattr__(self, "value", normalized_value)

        self._validate_length(normalized_value)
        self._validate_format(normalized_value)

    def _validate_length(self, value: str) -> None:
        if not (self.MIN_LENGTH <= len(value) <= self.MAX_LENGTH):
            raise ValueError(
                f"Email length must be between {self.MIN_LENGTH} and {self.MAX_LENGTH} characters."
            )

    def _validate_format(self, value: str) -> None:
        if not self.EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format.")

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Returns True if ``value`` would construct a valid Email."""
        try:
            cls(value)
        except (TypeError, ValueError):
            return False
        return True

    def mask_for_logging(self) -> str:
        """Returns a masked version of the email for safe logging.

        Example: 'us**@e*****.com'
        """
        return mask_email(self.value)

    def __str__(self) -> str:
        return self.value


def mask_email(value: str) -> str:
    """Masks an email-like string, tolerating malformed input."""
    if not value or "@" not in value:
        return "***"
    local, domain_part = value.split("@", 1)
    masked_local = f"{local[:2]}{'*' * max(len(local) - 2, 0)}"
    masked_domain = f"{domain_part[:1]}{'*' * max(len(domain_part) - 2, 0)}{domain_part[-1:]}"
    return f"{masked_local}@{masked_domain}"
