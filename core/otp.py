"""
HMAC-based truncation shared by every generator (RFC 4226 §5).
"""

import struct

from core.crypto import Algorithm, hmac_digest
from core.exceptions import InvalidSecret

MAX_COUNTER = 2**64 - 1


def counter_bytes(counter: int) -> bytes:
    """Serialise ``counter`` as 8 big-endian bytes."""
    if not 0 <= counter <= MAX_COUNTER:
        raise ValueError("Counter must be an unsigned 64-bit integer.")
    return struct.pack(">Q", counter)


def dynamic_truncate(secret_bytes: bytes, counter: int, algorithm: Algorithm) -> int:
    """
    Hash the counter and extract the 31-bit dynamic-truncation value.

    Args:
        secret_bytes: Raw decoded secret.
        counter:      Moving factor (HOTP counter or TOTP time step).
        algorithm:    HMAC algorithm.

    Returns:
        Integer in ``[0, 2**31)``.

    Raises:
        InvalidSecret:        If ``secret_bytes`` is empty.
        UnsupportedAlgorithm: If ``algorithm`` is not SHA1 / SHA256 / SHA512.
    """
    if not secret_bytes:
        raise InvalidSecret("Secret must contain at least one byte.")
    digest = hmac_digest(secret_bytes, counter_bytes(counter), algorithm)

    # Low nibble of the last byte indexes the full digest, whatever its size
    offset = digest[-1] & 0x0F
    return (
        (digest[offset] & 0x7F) << 24
        | (digest[offset + 1] & 0xFF) << 16
        | (digest[offset + 2] & 0xFF) << 8
        | (digest[offset + 3] & 0xFF)
    )


def render_decimal(value: int, digits: int) -> str:
    """Reduce ``value`` modulo ``10**digits`` and zero-pad it."""
    return str(value % (10**digits)).zfill(digits)


def truncate(
    secret_bytes: bytes,
    counter: int,
    digits: int,
    algorithm: Algorithm,
) -> str:
    """
    Core HOTP computation.

    Args:
        secret_bytes: Raw decoded secret.
        counter:      8-byte counter value.
        digits:       Number of OTP digits.
        algorithm:    HMAC algorithm.

    Returns:
        Zero-padded OTP string.
    """
    return render_decimal(dynamic_truncate(secret_bytes, counter, algorithm), digits)
