from .password_policy_validator import PasswordPolicyValidator

__all__ = ["PasswordPolicyValidator"]
