"""
TOTP (Time-based One-Time Password) implementation following RFC 6238.

Produces codes identical to Google Authenticator. The current time is always
supplied by the caller; nothing here reads the system clock.
"""

from core.crypto import Algorithm, constant_time_compare
from core.models import DEFAULT_ALGORITHM, DEFAULT_DIGITS, DEFAULT_PERIOD, Code
from core.otp import truncate
from core.utils import Timestamp, decode_secret, to_unix_seconds, validate_digits, validate_period


def totp_counter(now: Timestamp, period: int = DEFAULT_PERIOD) -> int:
    """Return the RFC 6238 time step ``floor(now / period)``."""
    validate_period(period)
    return to_unix_seconds(now) // period


def remaining_seconds(period: int, now: Timestamp) -> int:
    """
    Return seconds until the current TOTP window expires.

    A window that has just started reports the full ``period``, never 0.
    """
    validate_period(period)
    return period - (to_unix_seconds(now) % period)


def generate_totp(
    secret: str,
    now: Timestamp,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = DEFAULT_ALGORITHM,
) -> Code:
    """
    Generate a TOTP code.

    Args:
        secret:    Base32 secret.
        now:       Unix timestamp or datetime supplied by the caller.
        period:    Time step in seconds (default 30).
        digits:    Number of digits in the OTP (default 6).
        algorithm: HMAC algorithm (default SHA1 for GA compatibility).

    Returns:
        :class:`Code` with the OTP, remaining seconds and progress fraction.
    """
    validate_digits(digits)
    algorithm = Algorithm.parse(algorithm)
    secret_bytes = decode_secret(secret)

    counter = totp_counter(now, period)
    remaining = remaining_seconds(period, now)
    return Code(
        code=truncate(secret_bytes, counter, digits, algorithm),
        remaining_time=remaining,
        progress=remaining / period,
    )


def validate_totp(
    token: str,
    secret: str,
    now: Timestamp,
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_PERIOD,
    algorithm: Algorithm = DEFAULT_ALGORITHM,
    window: int = 1,
) -> bool:
    """
    Validate a TOTP token within ±``window`` time steps.

    Args:
        token:     Token to validate.
        secret:    Base32 secret.
        now:       Unix timestamp or datetime supplied by the caller.
        digits:    Expected number of digits.
        period:    Time step in seconds.
        algorithm: HMAC algorithm.
        window:    Allowed skew in steps (default 1).

    Returns:
        True if the token is valid within the window.
    """
    validate_digits(digits)
    algorithm = Algorithm.parse(algorithm)
    secret_bytes = decode_secret(secret)
    counter = totp_counter(now, period)

    for step in range(-window, window + 1):
        if counter + step < 0:
            continue
        expected = truncate(secret_bytes, counter + step, digits, algorithm)
        if constant_time_compare(token.strip(), expected):
            return True
    return False
