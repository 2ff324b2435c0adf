from passreset.domain.entities.user import UserSummary
from passreset.domain.value_objects.outcome import RecoveryErrorCode, RecoveryOutcome
from passreset.domain.value_objects.password_policy import PolicyViolationReason
from passreset.domain.value_objects.throttle_entry import ThrottleEntry


class TestRecoveryOutcome:
    def test_success_carries_summary(self):
        summary = UserSummary(id=1, login_name="alice", email="alice@example.com")
        outcome = RecoveryOutcome.succeeded(summary)
        assert outcome.success
        assert outcome.error_code is None
        assert outcome.data == summary
        assert outcome.message_key is None

    def test_throttled_carries_remaining_seconds(self):
        outcome = RecoveryOutcome.throttled(42)
        assert not outcome.success
        assert outcome.error_code is RecoveryErrorCode.THROTTLED
        assert outcome.disable_remaining_seconds == 42
        assert outcome.message_key == "throttled"

    def test_policy_violation_message_key_is_reason_specific(self):
        outcome = RecoveryOutcome.policy_violation(PolicyViolationReason.DIGITS)
        assert outcome.error_code is RecoveryErrorCode.POLICY_VIOLATION
        assert outcome.violation is PolicyViolationReason.DIGITS
        assert outcome.message_key == "password_policy_digits"

    def test_with_message_returns_copy(self):
        outcome = RecoveryOutcome.failed(RecoveryErrorCode.ACCOUNT_NOT_FOUND)
        rendered = outcome.with_message("No account")
        assert rendered.message == "No account"
        assert outcome.message is None


class TestThrottleEntry:
    def test_remaining_rounds_up(self):
        entry = ThrottleEntry(identity="u@example.com", cooldown_until=100.0)
        assert entry.remaining_seconds(40.2) == 60
        assert entry.remaining_seconds(99.9) == 1

    def test_elapsed_entry_is_inactive(self):
        entry = ThrottleEntry(identity="u@example.com", cooldown_until=100.0)
        assert not entry.is_active(100.0)
        assert entry.remaining_seconds(100.0) is None
