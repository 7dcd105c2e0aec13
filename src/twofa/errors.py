"""Error taxonomy for the two-factor core.

Wrong codes are not errors: they come back as ``is_valid=False`` results.
These exceptions cover malformed input, corrupt stored secrets and RNG
failures, so callers can tell them apart from ordinary failed attempts.
No message ever carries a secret, key or code value.
"""

from __future__ import annotations


class TwoFactorError(Exception):
    """Base exception for the two-factor core."""

    def __init__(self, message: str, code: str = "TWO_FACTOR_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidEncoding(TwoFactorError, ValueError):
    """Raised when a string is not valid base32."""

    def __init__(self, message: str = "Invalid base32 encoding") -> None:
        super().__init__(message, "INVALID_ENCODING")


class InvalidFormat(TwoFactorError, ValueError):
    """Raised when a submitted TOTP or backup code is not well-formed."""

    def __init__(self, message: str = "Invalid code format") -> None:
        super().__init__(message, "INVALID_FORMAT")


class InvalidSecret(TwoFactorError):
    """Raised when a stored secret cannot be decoded (data corruption)."""

    def __init__(self, message: str = "Stored secret is invalid") -> None:
        super().__init__(message, "INVALID_SECRET")


class EntropySourceFailure(TwoFactorError):
    """Raised when the OS cryptographic RNG is unavailable."""

    def __init__(self, message: str = "Secure random source unavailable") -> None:
        super().__init__(message, "ENTROPY_SOURCE_FAILURE")


InsufficientEntropy = EntropySourceFailure


class EnrollmentError(TwoFactorError):
    """Raised when a lifecycle transition is not allowed from the current state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "ENROLLMENT_ERROR")
