"""
Typed errors raised by the OTP engine.

Every error derives from :class:`OTPError`, itself a ``ValueError``, so code
that already guards OTP calls with ``except ValueError`` keeps working.
"""


class OTPError(ValueError):
    """Base class for all OTP engine errors."""


class InvalidSecret(OTPError):
    """The Base32 secret is empty or decodes to zero bytes."""


class UnsupportedAlgorithm(OTPError):
    """An HMAC algorithm tag outside SHA1 / SHA256 / SHA512."""

    def __init__(self, algorithm: object) -> None:
        super().__init__(
            f"Unsupported algorithm '{algorithm}'. Supported: SHA1, SHA256, SHA512."
        )
        self.algorithm = algorithm


class UnsupportedAccountType(OTPError):
    """No generator is registered for the account's OTP type."""

    def __init__(self, otp_type: object) -> None:
        super().__init__(f"Unsupported account type '{otp_type}'.")
        self.otp_type = otp_type


class InvalidUri(OTPError):
    """An ``otpauth://`` URI could not be parsed."""
