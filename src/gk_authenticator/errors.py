"""Failures raised by the OTP engine and the account store."""

from __future__ import annotations

from typing import Optional


class AuthenticatorError(RuntimeError):
    """Base class for every failure surfaced to the command layer."""

    def __init__(self, message: str, account: Optional[str] = None):
        super().__init__(message)
        self.account = account


class InvalidKey(AuthenticatorError):
    """Raised when a secret is not valid unpadded Base32."""


class DuplicateAccount(AuthenticatorError):
    """Raised when adding an account whose name is already stored."""


class AccountNotFound(AuthenticatorError):
    """Raised when operating on an account name that is not stored."""


class CorruptStore(AuthenticatorError):
    """Raised when the backing file cannot be read or parsed."""


class PersistenceFailure(AuthenticatorError):
    """Raised when writing the store back to disk fails."""


class InvalidAccountName(AuthenticatorError):
    """Raised when an account name is empty."""
