"""Credential recovery for forgotten passwords.

Issues short-lived, single-use proof tokens (numeric codes and emailed
deep links), throttles issuance per identity, and applies policy-checked
password changes through injected collaborators.
"""

__version__ = "0.1.0"
