"""Password policy validation.

General format rules plus the organization policy, checked in a fixed order.
"""

import re
import string
from typing import Optional

import structlog

from passreset.domain.interfaces.collaborators import IPasswordEncoder
from passreset.domain.value_objects.password_policy import (
    PasswordPolicy,
    PolicyResult,
    PolicyViolationReason,
    UserContext,
)

logger = structlog.get_logger(__name__)


class PasswordPolicyValidator:
    """Validates candidate passwords against general format rules and an
    organization's password policy.

    Checks run in a fixed order and the first failure is returned, so the
    same candidate always yields the same reason:

    1. general format (empty, too long, illegal characters)
    2. minimum and maximum length
    3. digits, lowercase, uppercase, special character counts
    4. username containment
    5. custom regular expression
    6. reuse of a recent password

    The validator never raises for a rejected password and has no side
    effects beyond logging.
    """

    MAX_LENGTH = 128
    SPECIAL_CHARS = frozenset(string.punctuation)

    def __init__(self, encoder: Optional[IPasswordEncoder] = None):
        self._encoder = encoder

    def validate(
        self,
        password: str,
        user: UserContext,
        policy: Optional[PasswordPolicy] = None,
    ) -> PolicyResult:
        """Validates ``password`` for ``user`` under ``policy``.

        Args:
            password: The candidate plaintext password.
            user: Login name and recent password digests of the account.
            policy: Organization policy; ``None`` or a disabled policy only
                applies the general format rules.

        Returns:
            PolicyResult: ``ok`` or the first violated rule.
        """
        reason = self._check_format(password)
        if reason is None and policy is not None and policy.enabled:
            reason = self._check_policy(password, user, policy)

        if reason is None:
            return PolicyResult.ok()
        logger.debug("Password rejected by policy", reason=reason.value)
        return PolicyResult.violated(reason)

    def _check_format(self, password: str) -> Optional[PolicyViolationReason]:
        if not password:
            return PolicyViolationReason.EMPTY
        if len(password) > self.MAX_LENGTH:
            return PolicyViolationReason.TOO_LONG
        if any(ch.isspace() or not ch.isprintable() for ch in password):
            return PolicyViolationReason.ILLEGAL_CHARACTERS
        return None

    def _check_policy(
        self, password: str, user: UserContext, policy: PasswordPolicy
    ) -> Optional[PolicyViolationReason]:
        if len(password) < policy.min_length:
            return PolicyViolationReason.LENGTH
        if policy.max_length and len(password) > policy.max_length:
            return PolicyViolationReason.MAX_LENGTH

        if sum(ch.isdigit() for ch in password) < policy.digits_count:
            return PolicyViolationReason.DIGITS
        if sum(ch.islower() for ch in password) < policy.lowercase_count:
            return PolicyViolationReason.LOWERCASE
        if sum(ch.isupper() for ch in password) < policy.uppercase_count:
            return PolicyViolationReason.UPPERCASE
        if sum(ch in self.SPECIAL_CHARS for ch in password) < policy.special_count:
            return PolicyViolationReason.SPECIAL_CHARACTERS

        if policy.not_username and user.login_name and user.login_name.lower() in password.lower():
            return PolicyViolationReason.CONTAINS_USERNAME

        if policy.regular_expression and not self._matches_pattern(password, policy):
            return PolicyViolationReason.PATTERN

        if policy.not_recent_count and self._recently_used(password, user, policy.not_recent_count):
            return PolicyViolationReason.RECENTLY_USED
        return None

    def _matches_pattern(self, password: str, policy: PasswordPolicy) -> bool:
        try:
            return re.search(policy.regular_expression, password) is not None
        except re.error as e:
            # Invalid organization patterns are skipped.
            logger.error(
                "Invalid password policy pattern",
                organization_id=policy.organization_id,
                error=str(e),
            )
            return True

    def _recently_used(self, password: str, user: UserContext, count: int) -> bool:
        if self._encoder is None:
            return False
        return any(
            self._encoder.verify(password, digest)
            for digest in user.recent_password_hashes[:count]
        )
