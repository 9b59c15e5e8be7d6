"""
Utility helpers for the OTP engine.
"""

import base64
import math
import secrets
import unicodedata
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

from core.exceptions import InvalidSecret

# ── Constants ────────────────────────────────────────────────────────────────

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
SECRET_SIZE = 20        # 160-bit secret, the RFC 4226 recommendation
VALID_DIGITS = (6, 7, 8)

_BASE32_VALUES = {ch: i for i, ch in enumerate(BASE32_ALPHABET)}

Timestamp = Union[int, float, datetime]


# ── Base32 ────────────────────────────────────────────────────────────────────

def normalize_secret(secret: str) -> str:
    """
    Normalise a base32 secret: strip whitespace and dashes, uppercase, drop padding.

    Args:
        secret: Raw user-supplied secret string.

    Returns:
        Uppercase, unpadded base32 string.
    """
    secret = "".join(secret.split()).upper().replace("-", "")
    return secret.rstrip("=")


def decode_secret(secret: str) -> bytes:
    """
    Decode a base32-encoded secret string to raw bytes.

    Decoding is lenient the way authenticator apps are: whitespace is removed,
    case is ignored and any character outside the RFC 4648 alphabet (stray
    ``=`` padding included) is skipped. Bits left over after the last full
    byte are discarded.

    Args:
        secret: Base32 secret text.

    Returns:
        Raw key bytes (never empty).

    Raises:
        InvalidSecret: If no complete byte can be decoded.
    """
    buffer = 0
    bits = 0
    out = bytearray()
    for ch in "".join(secret.split()).upper():
        value = _BASE32_VALUES.get(ch)
        if value is None:
            continue
        buffer = (buffer << 5) | value
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
            buffer &= (1 << bits) - 1

    if not out:
        raise InvalidSecret("Secret does not contain any valid base32 data.")
    return bytes(out)


def encode_secret(raw: bytes) -> str:
    """Encode raw bytes as a base32 string (no padding)."""
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def is_valid_secret(secret: str) -> bool:
    """Return True if *secret* decodes to at least one key byte."""
    try:
        decode_secret(secret)
    except InvalidSecret:
        return False
    return True


def generate_secret(length: int = SECRET_SIZE) -> str:
    """Return a cryptographically random base32 secret of ``length`` bytes."""
    if length < 1:
        raise ValueError("Secret length must be at least 1 byte.")
    return encode_secret(secrets.token_bytes(length))


def estimate_secret_strength(secret: str) -> Tuple[int, str]:
    """
    Score a base32 secret by its length, for display next to an account.

    Each of the thresholds 16, 20, 24 and 32 characters adds 25 points.

    Returns:
        ``(score, rating)`` with score in 0..100 and rating one of
        ``weak``, ``fair``, ``good`` or ``strong``.
    """
    length = len(normalize_secret(secret))
    score = sum(25 for threshold in (16, 20, 24, 32) if length >= threshold)

    if score < 25:
        rating = "weak"
    elif score < 50:
        rating = "fair"
    elif score < 75:
        rating = "good"
    else:
        rating = "strong"
    return score, rating


# ── URI helpers ───────────────────────────────────────────────────────────────

def sanitise_label(text: str) -> str:
    """Remove control characters and limit label length."""
    text = unicodedata.normalize("NFC", text)
    text = "".join(ch for ch in text if unicodedata.category(ch)[0] != "C")
    return text[:128].strip()


# ── Time helpers ──────────────────────────────────────────────────────────────

def to_unix_seconds(now: Timestamp) -> int:
    """
    Floor a caller-supplied instant to whole Unix seconds.

    Naive datetimes are taken to be UTC.

    Raises:
        ValueError: If the instant is not finite or is before the Unix epoch.
    """
    if isinstance(now, datetime):
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.timestamp()
    if not math.isfinite(now):
        raise ValueError("Timestamp must be a finite number.")
    seconds = math.floor(now)
    if seconds < 0:
        raise ValueError("Timestamp must not be before the Unix epoch.")
    return seconds


# ── Formatting ────────────────────────────────────────────────────────────────

def format_otp(code: str, group: Optional[int] = None) -> str:
    """
    Format an OTP code with spaces for readability.

    Example::

        >>> format_otp("123456")
        "123 456"
        >>> format_otp("12345678", group=3)
        "123 456 78"

    Args:
        code:  Code string.
        group: Grouping size; by default the code is split at its midpoint.

    Returns:
        Spaced OTP string.
    """
    if group is None:
        group = max(1, math.ceil(len(code) / 2))
    return " ".join(code[i : i + group] for i in range(0, len(code), group))


# ── Validation ────────────────────────────────────────────────────────────────

def validate_digits(digits: int) -> None:
    if digits not in VALID_DIGITS:
        raise ValueError("Digits must be 6, 7 or 8.")


def validate_period(period: int) -> None:
    if period < 1:
        raise ValueError("Period must be a positive number of seconds.")
