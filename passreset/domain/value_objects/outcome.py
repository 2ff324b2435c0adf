"""Result envelope returned by every recovery flow step.

Callers branch on ``RecoveryOutcome`` only; user-input failures are never
raised. Error codes are stable strings that double as localization keys.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from passreset.domain.entities.user import UserSummary
from passreset.domain.value_objects.password_policy import PolicyViolationReason


class RecoveryErrorCode(str, Enum):
    """Stable error codes reported by the recovery flow."""

    INVALID_EMAIL_FORMAT = "invalid_email_format"
    ACCOUNT_NOT_FOUND = "account_not_found"
    DELEGATED_ACCOUNT_UNSUPPORTED = "delegated_account_unsupported"
    THROTTLED = "throttled"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    POLICY_VIOLATION = "policy_violation"
    UPDATE_FAILED = "update_failed"


class RecoveryState(str, Enum):
    """States of the recovery state machine, carried in log records."""

    IDLE = "idle"
    IDENTITY_CHECKED = "identity_checked"
    THROTTLED = "throttled"
    ISSUED = "issued"
    VERIFIED = "verified"
    UPDATED = "updated"
    NOTIFIED = "notified"


@dataclass(frozen=True)
class RecoveryOutcome:
    """Result of a recovery flow step.

    Attributes:
        success: Whether the step succeeded.
        error_code: Stable failure code, ``None`` on success.
        data: Sanitized account summary when the step resolved an account.
        disable_remaining_seconds: Cooldown left when ``THROTTLED``.
        violation: Failed rule when ``POLICY_VIOLATION``.
        message: Rendered message when the flow has a localizer.
    """

    success: bool
    error_code: Optional[RecoveryErrorCode] = None
    data: Optional[UserSummary] = None
    disable_remaining_seconds: Optional[int] = None
    violation: Optional[PolicyViolationReason] = None
    message: Optional[str] = None

    @classmethod
    def succeeded(cls, data: Optional[UserSummary] = None) -> "RecoveryOutcome":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error_code: RecoveryErrorCode, **kwargs) -> "RecoveryOutcome":
        return cls(success=False, error_code=error_code, **kwargs)

    @classmethod
    def throttled(cls, remaining_seconds: int) -> "RecoveryOutcome":
        return cls.failed(RecoveryErrorCode.THROTTLED, disable_remaining_seconds=remaining_seconds)

    @classmethod
    def policy_violation(cls, reason: PolicyViolationReason) -> "RecoveryOutcome":
        return cls.failed(RecoveryErrorCode.POLICY_VIOLATION, violation=reason)

    @property
    def message_key(self) -> Optional[str]:
        """Most specific localization key for this outcome."""
        if self.violation is not None:
            return self.violation.message_key
        if self.error_code is not None:
            return self.error_code.value
        return None

    def with_message(self, message: Optional[str]) -> "RecoveryOutcome":
        return replace(self, message=message)
