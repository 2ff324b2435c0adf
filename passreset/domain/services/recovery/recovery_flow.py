"""Password Recovery Flow.

This domain service drives the forgot-password state machine:

    IDLE -> IDENTITY_CHECKED -> THROTTLED | ISSUED -> VERIFIED -> UPDATED -> NOTIFIED

Every step returns a ``RecoveryOutcome``. User-input failures (bad email,
wrong code, weak password, cooldown) are outcomes; infrastructure failures
(``StoreUnavailableError``, ``DirectoryUnavailableError``) propagate to the
caller unchanged. Notifications are best effort and never fail a step.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from passreset.domain.entities.user import User
from passreset.domain.interfaces.collaborators import (
    ILocalizer,
    INotificationGateway,
    IPasswordEncoder,
    IPasswordHistory,
    IPasswordPolicyRepository,
    IUserDirectory,
    NotificationEvent,
)
from passreset.domain.interfaces.throttle import IThrottle
from passreset.domain.interfaces.token_store import ITokenStore
from passreset.domain.services.policy.password_policy_validator import PasswordPolicyValidator
from passreset.domain.value_objects.email import Email, mask_email
from passreset.domain.value_objects.outcome import (
    RecoveryErrorCode,
    RecoveryOutcome,
    RecoveryState,
)
from passreset.domain.value_objects.password_policy import PasswordPolicy, UserContext
from passreset.domain.value_objects.recovery_token import TokenPurpose

logger = structlog.get_logger(__name__)

DEFAULT_TOKEN_TTL = timedelta(minutes=10)
DEFAULT_RESET_PATH = "/oauth/password/reset_page"


class PasswordRecoveryFlow:
    """Service orchestrating password recovery for users who forgot their password.

    This service is responsible for:
    - Checking that an email selects an account eligible for local reset
    - Throttling and issuing short codes and deep-link tokens
    - Verifying proofs without consuming them
    - Applying a policy-checked password change and consuming the proof
    - Dispatching best-effort notifications

    The service holds no per-request state; one instance serves concurrent
    requests for any number of identities.
    """

    def __init__(
        self,
        user_directory: IUserDirectory,
        token_store: ITokenStore,
        throttle: IThrottle,
        notification_gateway: INotificationGateway,
        password_encoder: IPasswordEncoder,
        policy_repository: Optional[IPasswordPolicyRepository] = None,
        password_history: Optional[IPasswordHistory] = None,
        policy_validator: Optional[PasswordPolicyValidator] = None,
        localizer: Optional[ILocalizer] = None,
        short_code_ttl: timedelta = DEFAULT_TOKEN_TTL,
        long_token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        reset_base_url: str = "",
        reset_path: str = DEFAULT_RESET_PATH,
    ):
        """Initialize with required collaborators.

        Args:
            user_directory: Lookup and persistence of user records
            token_store: Owner of recovery tokens
            throttle: Per-identity send cooldown
            notification_gateway: Outbound mail and site messages
            password_encoder: One-way password hashing
            policy_repository: Organization password policies, optional
            password_history: Previously used digests, optional
            policy_validator: Validator to use, defaults to one bound to the encoder
            localizer: Renders outcome messages when given
            short_code_ttl: Lifetime of in-app codes
            long_token_ttl: Lifetime of emailed deep links
            reset_base_url: Public base URL of the reset page
            reset_path: Path of the reset page, the key is appended to it
        """
        self._user_directory = user_directory
        self._token_store = token_store
        self._throttle = throttle
        self._notification_gateway = notification_gateway
        self._password_encoder = password_encoder
        self._policy_repository = policy_repository
        self._password_history = password_history
        self._policy_validator = policy_validator or PasswordPolicyValidator(password_encoder)
        self._localizer = localizer
        self._short_code_ttl = short_code_ttl
        self._long_token_ttl = long_token_ttl
        self._reset_url_prefix = f"{reset_base_url.rstrip('/')}/{reset_path.strip('/')}"

        logger.info(
            "PasswordRecoveryFlow initialized",
            short_code_ttl_seconds=int(short_code_ttl.total_seconds()),
            long_token_ttl_seconds=int(long_token_ttl.total_seconds()),
            policy_repository_enabled=policy_repository is not None,
            password_history_enabled=password_history is not None,
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def check_identity(self, email: str, language: Optional[str] = None) -> RecoveryOutcome:
        """Checks that ``email`` selects an account eligible for local reset.

        Returns:
            RecoveryOutcome: success with the account summary, or one of
            ``INVALID_EMAIL_FORMAT``, ``ACCOUNT_NOT_FOUND``,
            ``DELEGATED_ACCOUNT_UNSUPPORTED``.

        Raises:
            DirectoryUnavailableError: If the user directory cannot be reached.
        """
        outcome, _ = await self._check_identity(email)
        return self._render(outcome, language)

    async def check_disabled(self, email: str, language: Optional[str] = None) -> RecoveryOutcome:
        """Reports whether sending is currently throttled for ``email``.

        Returns:
            RecoveryOutcome: ``THROTTLED`` with the remaining seconds, or success.
        """
        identity = self._normalize(email)
        if identity is None:
            return self._render(RecoveryOutcome.failed(RecoveryErrorCode.INVALID_EMAIL_FORMAT), language)

        remaining = await self._throttle.is_disabled(identity)
        if remaining is not None:
            return self._render(RecoveryOutcome.throttled(remaining), language)
        return RecoveryOutcome.succeeded()

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    async def request_code(self, email: str, language: Optional[str] = None) -> RecoveryOutcome:
        """Sends a short verification code to the account's mailbox.

        The code itself is never part of the outcome.

        Returns:
            RecoveryOutcome: success with the account summary, an identity
            failure, or ``THROTTLED``.

        Raises:
            StoreUnavailableError: If the token store or throttle is unreachable.
            DirectoryUnavailableError: If the user directory cannot be reached.
        """
        outcome, user = await self._begin_issuance(email)
        if user is None:
            return self._render(outcome, language)

        token = await self._token_store.issue(user.email, TokenPurpose.SHORT, self._short_code_ttl)
        logger.info(
            "Recovery code issued",
            state=RecoveryState.ISSUED.value,
            user_id=user.id,
            email=mask_email(user.email),
            expires_at=token.expires_at.isoformat(),
        )

        await self._notify(
            NotificationEvent.FORGOT_PASSWORD,
            [{"email": user.email}],
            {"userName": user.login_name, "verifyCode": token.value},
        )
        return outcome

    async def request_link(self, email: str, language: Optional[str] = None) -> RecoveryOutcome:
        """Sends a reset deep link to the account's mailbox.

        The link embeds a random key that the token store maps back to the
        email; the email itself never appears in the URL.

        Raises:
            StoreUnavailableError: If the token store or throttle is unreachable.
            DirectoryUnavailableError: If the user directory cannot be reached.
        """
        outcome, user = await self._begin_issuance(email)
        if user is None:
            return self._render(outcome, language)

        token = await self._token_store.issue(user.email, TokenPurpose.LONG, self._long_token_ttl)
        logger.info(
            "Recovery link issued",
            state=RecoveryState.ISSUED.value,
            user_id=user.id,
            email=mask_email(user.email),
            token_prefix=token.mask_for_logging(),
            expires_at=token.expires_at.isoformat(),
        )

        await self._notify(
            NotificationEvent.FORGOT_PASSWORD,
            [{"email": user.email}],
            {"userName": user.login_name, "redirectUrl": self.build_reset_url(token.value)},
        )
        return outcome

    def build_reset_url(self, key: str) -> str:
        return f"{self._reset_url_prefix}/{key}"

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def verify_code(
        self, email: str, code: str, language: Optional[str] = None
    ) -> RecoveryOutcome:
        """Checks a short code without consuming it.

        Returns:
            RecoveryOutcome: success, or ``INVALID_OR_EXPIRED_TOKEN`` for any
            kind of mismatch.
        """
        identity = self._normalize(email)
        if identity is None or not await self._verify_proof(TokenPurpose.SHORT, identity, code):
            return self._render(self._invalid_token(), language)

        logger.info(
            "Recovery code verified",
            state=RecoveryState.VERIFIED.value,
            email=mask_email(identity),
        )
        return RecoveryOutcome.succeeded()

    async def resolve_link(self, key: str, language: Optional[str] = None) -> RecoveryOutcome:
        """Resolves a deep-link key to the account it was issued for.

        Used to render the reset page; the key stays valid.
        """
        identity = await self._token_store.resolve_identity(key) if key else None
        if identity is None:
            return self._render(self._invalid_token(), language)

        outcome, _ = await self._check_identity(identity)
        return self._render(outcome, language)

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    async def reset_password(
        self,
        email: Optional[str],
        proof: str,
        new_password: str,
        purpose: TokenPurpose = TokenPurpose.SHORT,
        language: Optional[str] = None,
    ) -> RecoveryOutcome:
        """Sets a new password for the account proven by ``proof``.

        The proof is re-verified, the candidate is validated against the
        organization policy, and only then is anything written. The proof is
        revoked as soon as the directory confirms the update; the password
        history and the notification that follow are best effort.

        Args:
            email: Account email. Optional for long tokens, whose key
                resolves the identity; when given it must match.
            proof: Short code or deep-link key.
            new_password: Candidate plaintext password.
            purpose: Which kind of proof ``proof`` is.
            language: Language for the rendered message.

        Returns:
            RecoveryOutcome: success with the account summary, or one of
            ``INVALID_EMAIL_FORMAT``, ``INVALID_OR_EXPIRED_TOKEN``, an identity failure,
            ``POLICY_VIOLATION`` or ``UPDATE_FAILED``.

        Raises:
            StoreUnavailableError: If the token store is unreachable.
            DirectoryUnavailableError: If the user directory cannot be reached.
        """
        if email and self._normalize(email) is None:
            return self._render(RecoveryOutcome.failed(RecoveryErrorCode.INVALID_EMAIL_FORMAT), language)

        identity = await self._proof_identity(email, proof, purpose)
        if identity is None or not await self._verify_proof(purpose, identity, proof):
            return self._render(self._invalid_token(), language)

        outcome, user = await self._check_identity(identity)
        if user is None:
            return self._render(outcome, language)

        policy = await self._load_policy(user)
        context = await self._user_context(user, policy)
        result = self._policy_validator.validate(new_password, context, policy)
        if not result:
            logger.info(
                "Password reset rejected by policy",
                state=RecoveryState.VERIFIED.value,
                user_id=user.id,
                reason=result.violation.value,
            )
            return self._render(RecoveryOutcome.policy_violation(result.violation), language)

        digest = self._password_encoder.hash(new_password)
        updated = await self._user_directory.update(user.model_copy(update={"hashed_password": digest}))
        if updated is None:
            logger.warning(
                "Password reset not applied, user record changed",
                user_id=user.id,
                email=mask_email(identity),
            )
            return self._render(RecoveryOutcome.failed(RecoveryErrorCode.UPDATE_FAILED), language)

        revoked = await self._token_store.revoke(purpose, identity, expected=proof)
        await self._record_history(updated, digest)
        logger.info(
            "Password reset completed",
            state=RecoveryState.UPDATED.value,
            user_id=updated.id,
            purpose=purpose.value,
            proof_revoked=revoked,
        )

        await self._notify(
            NotificationEvent.PASSWORD_CHANGED,
            [{"id": updated.id}],
            {"userName": updated.display_name},
        )
        return RecoveryOutcome.succeeded(updated.to_summary())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _check_identity(self, email: str) -> Tuple[RecoveryOutcome, Optional[User]]:
        identity = self._normalize(email)
        if identity is None:
            logger.info("Recovery requested with malformed email")
            return RecoveryOutcome.failed(RecoveryErrorCode.INVALID_EMAIL_FORMAT), None

        user = await self._user_directory.find_by_email(identity)
        if user is None or not user.is_enabled:
            logger.info("Recovery requested for unknown account", email=mask_email(identity))
            return RecoveryOutcome.failed(RecoveryErrorCode.ACCOUNT_NOT_FOUND), None

        if user.is_delegated:
            logger.info("Recovery requested for delegated account", user_id=user.id)
            return RecoveryOutcome.failed(RecoveryErrorCode.DELEGATED_ACCOUNT_UNSUPPORTED), None

        logger.debug(
            "Recovery identity checked",
            state=RecoveryState.IDENTITY_CHECKED.value,
            user_id=user.id,
        )
        return RecoveryOutcome.succeeded(user.to_summary()), user

    async def _begin_issuance(self, email: str) -> Tuple[RecoveryOutcome, Optional[User]]:
        """Identity check followed by the atomic throttle check-and-mark."""
        outcome, user = await self._check_identity(email)
        if user is None:
            return outcome, None

        remaining = await self._throttle.acquire(user.email)
        if remaining is not None:
            logger.info(
                "Recovery send throttled",
                state=RecoveryState.THROTTLED.value,
                user_id=user.id,
                remaining_seconds=remaining,
            )
            return RecoveryOutcome.throttled(remaining), None
        return outcome, user

    async def _proof_identity(
        self, email: Optional[str], proof: str, purpose: TokenPurpose
    ) -> Optional[str]:
        identity = self._normalize(email) if email else None
        if purpose is TokenPurpose.SHORT or not proof:
            return identity

        resolved = await self._token_store.resolve_identity(proof)
        if resolved is None or (email and identity != resolved):
            return None
        return resolved

    async def _verify_proof(self, purpose: TokenPurpose, identity: str, proof: str) -> bool:
        if not proof:
            return False
        is_valid = await self._token_store.verify(purpose, identity, proof)
        if not is_valid:
            # Same event for wrong, expired and unknown proofs.
            logger.info(
                "Recovery proof rejected",
                purpose=purpose.value,
                email=mask_email(identity),
            )
        return is_valid

    async def _load_policy(self, user: User) -> Optional[PasswordPolicy]:
        if self._policy_repository is None:
            return None
        return await self._policy_repository.get_by_organization(user.organization_id)

    async def _user_context(self, user: User, policy: Optional[PasswordPolicy]) -> UserContext:
        count = policy.not_recent_count if policy is not None and policy.enabled else 0
        digests: List[str] = []
        if count:
            if user.hashed_password:
                digests.append(user.hashed_password)
            if self._password_history is not None:
                for digest in await self._password_history.recent(user.id, count):
                    if digest not in digests:
                        digests.append(digest)
        return UserContext(login_name=user.login_name, recent_password_hashes=tuple(digests[:count]))

    async def _record_history(self, user: User, digest: str) -> None:
        """Best effort: the password is already changed and the proof consumed."""
        if self._password_history is None:
            return
        try:
            await self._password_history.record(user.id, digest)
        except Exception as e:
            logger.warning(
                "Password history not recorded",
                user_id=user.id,
                error=str(e),
                error_code=getattr(e, "code", None),
            )

    async def _notify(
        self,
        event_code: NotificationEvent,
        targets: Sequence[Dict[str, Any]],
        params: Dict[str, Any],
    ) -> None:
        try:
            await self._notification_gateway.send(event_code, targets, params)
        except Exception as e:
            logger.warning(
                "Recovery notification failed",
                event_code=event_code.value,
                error=str(e),
                error_code=getattr(e, "code", None),
            )
            return
        logger.debug(
            "Recovery notification sent",
            state=RecoveryState.NOTIFIED.value,
            event_code=event_code.value,
        )

    def _render(self, outcome: RecoveryOutcome, language: Optional[str]) -> RecoveryOutcome:
        if self._localizer is None or outcome.message_key is None:
            return outcome
        return outcome.with_message(self._localizer.message(outcome.message_key, language))

    @staticmethod
    def _invalid_token() -> RecoveryOutcome:
        return RecoveryOutcome.failed(RecoveryErrorCode.INVALID_OR_EXPIRED_TOKEN)

    @staticmethod
    def _normalize(email: Optional[str]) -> Optional[str]:
        if not email:
            return None
        try:
            return Email(email).value
        except (TypeError, ValueError):
            return None
