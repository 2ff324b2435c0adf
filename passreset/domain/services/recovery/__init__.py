"""Password Recovery Domain Services.

Orchestration of the forgot-password workflow: identity check, throttled
issuance, proof verification and the policy-checked password update.
"""

from .recovery_flow import PasswordRecoveryFlow

__all__ = ["PasswordRecoveryFlow"]
