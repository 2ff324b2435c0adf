"""Unit tests for PasswordRecoveryFlow.

Collaborators are mocked so each test pins down one decision of the flow:
which outcome is returned, what is written and what is left untouched.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from passreset.core.exceptions import (
    DirectoryUnavailableError,
    NotificationError,
    StoreUnavailableError,
)
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
from passreset.domain.services.recovery.recovery_flow import PasswordRecoveryFlow
from passreset.domain.value_objects.outcome import RecoveryErrorCode
from passreset.domain.value_objects.password_policy import PasswordPolicy, PolicyViolationReason
from passreset.domain.value_objects.recovery_token import RecoveryToken, TokenPurpose
from tests.factories import create_fake_user

EMAIL = "alice@example.com"


@pytest.fixture
def user():
    return create_fake_user(id=7, email=EMAIL, login_name="alice", real_name="Alice", hashed_password="old-digest")


@pytest.fixture
def user_directory(user):
    directory = Mock(spec=IUserDirectory)
    directory.find_by_email = AsyncMock(return_value=user)
    directory.update = AsyncMock(side_effect=lambda updated: updated)
    return directory


@pytest.fixture
def token_store():
    store = Mock(spec=ITokenStore)
    store.issue = AsyncMock(
        side_effect=lambda identity, purpose, ttl: RecoveryToken.issue(identity, purpose, ttl)
    )
    store.verify = AsyncMock(return_value=True)
    store.revoke = AsyncMock(return_value=True)
    store.resolve_identity = AsyncMock(return_value=EMAIL)
    return store


@pytest.fixture
def throttle():
    throttle = Mock(spec=IThrottle)
    throttle.acquire = AsyncMock(return_value=None)
    throttle.is_disabled = AsyncMock(return_value=None)
    throttle.mark_sent = AsyncMock()
    return throttle


@pytest.fixture
def gateway():
    gateway = Mock(spec=INotificationGateway)
    gateway.send = AsyncMock()
    return gateway


@pytest.fixture
def encoder():
    encoder = Mock(spec=IPasswordEncoder)
    encoder.hash.side_effect = lambda plaintext: f"hash:{plaintext}"
    encoder.verify.side_effect = lambda plaintext, digest: digest == f"hash:{plaintext}"
    return encoder


@pytest.fixture
def policy_repository():
    repository = Mock(spec=IPasswordPolicyRepository)
    repository.get_by_organization = AsyncMock(
        return_value=PasswordPolicy(organization_id=1, min_length=8)
    )
    return repository


@pytest.fixture
def flow(user_directory, token_store, throttle, gateway, encoder, policy_repository):
    return PasswordRecoveryFlow(
        user_directory=user_directory,
        token_store=token_store,
        throttle=throttle,
        notification_gateway=gateway,
        password_encoder=encoder,
        policy_repository=policy_repository,
        short_code_ttl=timedelta(minutes=10),
        long_token_ttl=timedelta(minutes=15),
        reset_base_url="https://id.example.com/",
    )


class TestCheckIdentity:
    @pytest.mark.asyncio
    async def test_valid_account(self, flow, user):
        outcome = await flow.check_identity("  Alice@Example.com ")
        assert outcome.success
        assert outcome.data == user.to_summary()

    @pytest.mark.asyncio
    async def test_malformed_email_does_not_reach_directory(self, flow, user_directory):
        outcome = await flow.check_identity("not-an-email")
        assert outcome.error_code is RecoveryErrorCode.INVALID_EMAIL_FORMAT
        user_directory.find_by_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_account(self, flow, user_directory):
        user_directory.find_by_email.return_value = None
        outcome = await flow.check_identity("u@example.com")
        assert outcome.error_code is RecoveryErrorCode.ACCOUNT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_disabled_account_reported_as_not_found(self, flow, user_directory):
        user_directory.find_by_email.return_value = create_fake_user(email=EMAIL, is_enabled=False)
        outcome = await flow.check_identity(EMAIL)
        assert outcome.error_code is RecoveryErrorCode.ACCOUNT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_delegated_account(self, flow, user_directory):
        user_directory.find_by_email.return_value = create_fake_user(email=EMAIL, is_ldap=True)
        outcome = await flow.check_identity(EMAIL)
        assert outcome.error_code is RecoveryErrorCode.DELEGATED_ACCOUNT_UNSUPPORTED

    @pytest.mark.asyncio
    async def test_directory_failure_propagates(self, flow, user_directory):
        user_directory.find_by_email.side_effect = DirectoryUnavailableError()
        with pytest.raises(DirectoryUnavailableError):
            await flow.check_identity(EMAIL)


class TestCheckDisabled:
    @pytest.mark.asyncio
    async def test_not_throttled(self, flow):
        assert (await flow.check_disabled(EMAIL)).success

    @pytest.mark.asyncio
    async def test_throttled_reports_remaining_seconds(self, flow, throttle):
        throttle.is_disabled.return_value = 37
        outcome = await flow.check_disabled("ALICE@example.com")
        assert outcome.error_code is RecoveryErrorCode.THROTTLED
        assert outcome.disable_remaining_seconds == 37
        throttle.is_disabled.assert_awaited_once_with(EMAIL)
        throttle.acquire.assert_not_called()


class TestRequestCode:
    @pytest.mark.asyncio
    async def test_issues_code_and_notifies(self, flow, token_store, gateway, user):
        outcome = await flow.request_code(EMAIL)

        assert outcome.success
        assert outcome.data == user.to_summary()
        token_store.issue.assert_awaited_once_with(EMAIL, TokenPurpose.SHORT, timedelta(minutes=10))
        event_code, targets, params = gateway.send.await_args.args
        assert event_code is NotificationEvent.FORGOT_PASSWORD
        assert targets == [{"email": EMAIL}]
        assert params["userName"] == "alice"
        assert len(params["verifyCode"]) == 6

    @pytest.mark.asyncio
    async def test_code_never_in_outcome(self, flow, gateway):
        outcome = await flow.request_code(EMAIL)
        code = gateway.send.await_args.args[2]["verifyCode"]
        assert code not in repr(outcome)

    @pytest.mark.asyncio
    async def test_throttled_issues_nothing(self, flow, throttle, token_store, gateway):
        throttle.acquire.return_value = 42
        outcome = await flow.request_code(EMAIL)

        assert outcome.error_code is RecoveryErrorCode.THROTTLED
        assert outcome.disable_remaining_seconds == 42
        token_store.issue.assert_not_called()
        gateway.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_account_consumes_no_cooldown(self, flow, user_directory, throttle):
        user_directory.find_by_email.return_value = None
        outcome = await flow.request_code(EMAIL)
        assert outcome.error_code is RecoveryErrorCode.ACCOUNT_NOT_FOUND
        throttle.acquire.assert_not_called()

    @pytest.mark.asyncio
    async def test_notification_failure_still_succeeds(self, flow, gateway, token_store):
        gateway.send.side_effect = NotificationError("smtp down")
        outcome = await flow.request_code(EMAIL)
        assert outcome.success
        token_store.issue.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, flow, token_store):
        token_store.issue.side_effect = StoreUnavailableError()
        with pytest.raises(StoreUnavailableError):
            await flow.request_code(EMAIL)


class TestRequestLink:
    @pytest.mark.asyncio
    async def test_link_embeds_random_key_not_email(self, flow, token_store, gateway):
        outcome = await flow.request_link(EMAIL)

        assert outcome.success
        token_store.issue.assert_awaited_once_with(EMAIL, TokenPurpose.LONG, timedelta(minutes=15))
        url = gateway.send.await_args.args[2]["redirectUrl"]
        assert url.startswith("https://id.example.com/oauth/password/reset_page/")
        assert EMAIL not in url
        assert "alice" not in url.rsplit("/", 1)[1]

    def test_build_reset_url(self, flow):
        assert flow.build_reset_url("abc") == "https://id.example.com/oauth/password/reset_page/abc"


class TestVerifyCode:
    @pytest.mark.asyncio
    async def test_valid_code_is_not_consumed(self, flow, token_store):
        outcome = await flow.verify_code(EMAIL, "123456")
        assert outcome.success
        assert outcome.data is None
        token_store.verify.assert_awaited_once_with(TokenPurpose.SHORT, EMAIL, "123456")
        token_store.revoke.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, code", [(EMAIL, ""), ("bad-email", "123456")])
    async def test_missing_inputs(self, flow, token_store, email, code):
        outcome = await flow.verify_code(email, code)
        assert outcome.error_code is RecoveryErrorCode.INVALID_OR_EXPIRED_TOKEN
        token_store.verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_mismatch(self, flow, token_store):
        token_store.verify.return_value = False
        outcome = await flow.verify_code(EMAIL, "000000")
        assert outcome.error_code is RecoveryErrorCode.INVALID_OR_EXPIRED_TOKEN


class TestResolveLink:
    @pytest.mark.asyncio
    async def test_known_key(self, flow, user):
        outcome = await flow.resolve_link("some-key")
        assert outcome.success
        assert outcome.data == user.to_summary()

    @pytest.mark.asyncio
    async def test_unknown_key(self, flow, token_store):
        token_store.resolve_identity.return_value = None
        outcome = await flow.resolve_link("unknown")
        assert outcome.error_code is RecoveryErrorCode.INVALID_OR_EXPIRED_TOKEN


class TestResetPassword:
    @pytest.mark.asyncio
    async def test_success_updates_revokes_and_notifies(
        self, flow, user_directory, token_store, gateway, user
    ):
        outcome = await flow.reset_password(EMAIL, "123456", "LongEnough#1")

        assert outcome.success
        assert outcome.data == user.to_summary()
        updated = user_directory.update.await_args.args[0]
        assert updated.hashed_password == "hash:LongEnough#1"
        token_store.revoke.assert_awaited_once_with(TokenPurpose.SHORT, EMAIL, expected="123456")
        gateway.send.assert_awaited_once_with(
            NotificationEvent.PASSWORD_CHANGED, [{"id": 7}], {"userName": "Alice"}
        )

    @pytest.mark.asyncio
    async def test_invalid_proof_writes_nothing(self, flow, token_store, user_directory, gateway):
        token_store.verify.return_value = False
        outcome = await flow.reset_password(EMAIL, "000000", "LongEnough#1")

        assert outcome.error_code is RecoveryErrorCode.INVALID_OR_EXPIRED_TOKEN
        user_directory.update.assert_not_called()
        token_store.revoke.assert_not_called()
        gateway.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_policy_violation_keeps_token(self, flow, token_store, user_directory):
        outcome = await flow.reset_password(EMAIL, "123456", "Sh0rt")

        assert outcome.error_code is RecoveryErrorCode.POLICY_VIOLATION
        assert outcome.violation is PolicyViolationReason.LENGTH
        user_directory.update.assert_not_called()
        token_store.revoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_failed_keeps_token(self, flow, user_directory, token_store, gateway):
        user_directory.update.side_effect = None
        user_directory.update.return_value = None

        outcome = await flow.reset_password(EMAIL, "123456", "LongEnough#1")

        assert outcome.error_code is RecoveryErrorCode.UPDATE_FAILED
        token_store.revoke.assert_not_called()
        gateway.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_account_disappeared_after_issue(self, flow, user_directory):
        user_directory.find_by_email.return_value = None
        outcome = await flow.reset_password(EMAIL, "123456", "LongEnough#1")
        assert outcome.error_code is RecoveryErrorCode.ACCOUNT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_long_proof_resolves_identity(self, flow, token_store):
        outcome = await flow.reset_password(None, "deep-key", "LongEnough#1", purpose=TokenPurpose.LONG)

        assert outcome.success
        token_store.resolve_identity.assert_awaited_once_with("deep-key")
        token_store.revoke.assert_awaited_once_with(TokenPurpose.LONG, EMAIL, expected="deep-key")

    @pytest.mark.asyncio
    async def test_long_proof_for_other_email_is_rejected(self, flow, token_store, user_directory):
        outcome = await flow.reset_password(
            "mallory@example.com", "deep-key", "LongEnough#1", purpose=TokenPurpose.LONG
        )
        assert outcome.error_code is RecoveryErrorCode.INVALID_OR_EXPIRED_TOKEN
        user_directory.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_notification_failure_after_update_still_succeeds(self, flow, gateway, token_store):
        gateway.send.side_effect = RuntimeError("gateway exploded")
        outcome = await flow.reset_password(EMAIL, "123456", "LongEnough#1")
        assert outcome.success
        token_store.revoke.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reuse_of_current_password_rejected(self, flow, policy_repository, user_directory):
        policy_repository.get_by_organization.return_value = PasswordPolicy(
            organization_id=1, not_recent_count=1
        )
        user_directory.find_by_email.return_value = create_fake_user(
            email=EMAIL, hashed_password="hash:Same#Pass1"
        )

        outcome = await flow.reset_password(EMAIL, "123456", "Same#Pass1")

        assert outcome.violation is PolicyViolationReason.RECENTLY_USED

    @pytest.mark.asyncio
    async def test_history_is_consulted_and_recorded(
        self, user_directory, token_store, throttle, gateway, encoder, policy_repository
    ):
        history = Mock(spec=IPasswordHistory)
        history.recent = AsyncMock(return_value=["hash:Older#Pass1"])
        history.record = AsyncMock()
        policy_repository.get_by_organization.return_value = PasswordPolicy(
            organization_id=1, not_recent_count=3
        )
        flow = PasswordRecoveryFlow(
            user_directory=user_directory,
            token_store=token_store,
            throttle=throttle,
            notification_gateway=gateway,
            password_encoder=encoder,
            policy_repository=policy_repository,
            password_history=history,
        )

        rejected = await flow.reset_password(EMAIL, "123456", "Older#Pass1")
        accepted = await flow.reset_password(EMAIL, "123456", "Brand#New1")

        assert rejected.violation is PolicyViolationReason.RECENTLY_USED
        assert accepted.success
        history.recent.assert_awaited_with(7, 3)
        history.record.assert_awaited_once_with(7, "hash:Brand#New1")


class TestLocalizedMessages:
    @pytest.mark.asyncio
    async def test_failure_messages_are_rendered(
        self, user_directory, token_store, throttle, gateway, encoder
    ):
        localizer = Mock(spec=ILocalizer)
        localizer.message.side_effect = lambda code, language=None: f"[{language}] {code}"
        flow = PasswordRecoveryFlow(
            user_directory=user_directory,
            token_store=token_store,
            throttle=throttle,
            notification_gateway=gateway,
            password_encoder=encoder,
            localizer=localizer,
        )
        user_directory.find_by_email.return_value = None

        outcome = await flow.request_code(EMAIL, language="es")

        assert outcome.message == "[es] account_not_found"

    @pytest.mark.asyncio
    async def test_success_has_no_message(self, flow):
        outcome = await flow.request_code(EMAIL)
        assert outcome.message is None


class TestResetPasswordAfterCommit:
    @pytest.fixture
    def history(self):
        history = Mock(spec=IPasswordHistory)
        history.recent = AsyncMock(return_value=[])
        history.record = AsyncMock(side_effect=DirectoryUnavailableError("history table locked"))
        return history

    @pytest.fixture
    def flow_with_history(self, user_directory, token_store, throttle, gateway, encoder, history):
        return PasswordRecoveryFlow(
            user_directory=user_directory,
            token_store=token_store,
            throttle=throttle,
            notification_gateway=gateway,
            password_encoder=encoder,
            password_history=history,
        )

    @pytest.mark.asyncio
    async def test_history_failure_does_not_leave_proof_live(
        self, flow_with_history, token_store, gateway, history
    ):
        outcome = await flow_with_history.reset_password(EMAIL, "123456", "LongEnough#1")

        assert outcome.success
        token_store.revoke.assert_awaited_once_with(TokenPurpose.SHORT, EMAIL, expected="123456")
        history.record.assert_awaited_once_with(7, "hash:LongEnough#1")
        gateway.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_proof_revoked_before_history_is_written(
        self, flow_with_history, token_store, history
    ):
        calls = []
        token_store.revoke.side_effect = lambda *args, **kwargs: calls.append("revoke") or True
        history.record.side_effect = lambda *args: calls.append("record")

        await flow_with_history.reset_password(EMAIL, "123456", "LongEnough#1")

        assert calls == ["revoke", "record"]


class TestResetPasswordEmailFormat:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("purpose", [TokenPurpose.SHORT, TokenPurpose.LONG])
    async def test_malformed_email_reported_before_proof_lookup(self, flow, token_store, purpose):
        outcome = await flow.reset_password("not-an-email", "123456", "LongEnough#1", purpose=purpose)

        assert outcome.error_code is RecoveryErrorCode.INVALID_EMAIL_FORMAT
        token_store.resolve_identity.assert_not_called()
        token_store.verify.assert_not_called()
