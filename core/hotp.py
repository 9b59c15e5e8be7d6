"""
HOTP (HMAC-based One-Time Password) implementation following RFC 4226.
"""

from core.crypto import Algorithm, constant_time_compare
from core.models import DEFAULT_ALGORITHM, DEFAULT_DIGITS, Code
from core.otp import truncate
from core.utils import decode_secret, validate_digits


def generate_hotp(
    secret: str,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = DEFAULT_ALGORITHM,
) -> Code:
    """
    Generate an HOTP code.

    The counter is never advanced here; the caller persists and increments it
    after a successful use.

    Args:
        secret:    Base32 secret.
        counter:   Synchronisation counter value.
        digits:    Number of OTP digits (6, 7 or 8).
        algorithm: HMAC algorithm.

    Returns:
        :class:`Code` carrying the zero-padded OTP and the echoed counter.
    """
    validate_digits(digits)
    algorithm = Algorithm.parse(algorithm)
    secret_bytes = decode_secret(secret)
    return Code(code=truncate(secret_bytes, counter, digits, algorithm), counter=counter)


def validate_hotp(
    token: str,
    secret: str,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = DEFAULT_ALGORITHM,
) -> bool:
    """Return True if *token* is the code for exactly ``counter``."""
    expected = generate_hotp(secret, counter, digits, algorithm).code
    return constant_time_compare(token.strip(), expected)
