"""Domain value objects."""

from .email import Email
from .outcome import RecoveryErrorCode, RecoveryOutcome, RecoveryState
from .password_policy import PasswordPolicy, PolicyResult, PolicyViolationReason, UserContext
from .recovery_token import RecoveryToken, TokenPurpose, tokens_match
from .throttle_entry import ThrottleEntry

__all__ = [
    "Email",
    "PasswordPolicy",
    "PolicyResult",
    "PolicyViolationReason",
    "RecoveryErrorCode",
    "RecoveryOutcome",
    "RecoveryState",
    "RecoveryToken",
    "ThrottleEntry",
    "TokenPurpose",
    "UserContext",
    "tokens_match",
]
