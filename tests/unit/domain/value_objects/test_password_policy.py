import pytest

from passreset.domain.value_objects.password_policy import (
    PasswordPolicy,
    PolicyResult,
    PolicyViolationReason,
)


class TestPasswordPolicy:
    def test_defaults_disable_every_rule(self):
        policy = PasswordPolicy(organization_id=1)
        assert policy.enabled
        assert policy.min_length == 0
        assert policy.max_length == 0
        assert policy.regular_expression is None

    def test_rejects_negative_counts(self):
        with pytest.raises(ValueError):
            PasswordPolicy(organization_id=1, digits_count=-1)

    def test_rejects_max_below_min(self):
        with pytest.raises(ValueError):
            PasswordPolicy(organization_id=1, min_length=10, max_length=8)


class TestPolicyResult:
    def test_ok_is_truthy(self):
        result = PolicyResult.ok()
        assert result
        assert result.is_ok
        assert result.violation is None

    def test_violation_is_falsy(self):
        result = PolicyResult.violated(PolicyViolationReason.LENGTH)
        assert not result
        assert result.violation is PolicyViolationReason.LENGTH

    def test_message_key(self):
        assert PolicyViolationReason.RECENTLY_USED.message_key == "password_policy_recently_used"
