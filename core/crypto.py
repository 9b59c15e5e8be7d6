"""
Cryptographic primitives for the OTP engine.

MAC             : HMAC-SHA1 / HMAC-SHA256 / HMAC-SHA512 (``cryptography``)
Comparison      : constant-time byte comparison
"""

from enum import Enum

from cryptography.hazmat.primitives import constant_time, hashes, hmac

from core.exceptions import UnsupportedAlgorithm


class Algorithm(str, Enum):
    """Supported HMAC algorithms."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @classmethod
    def parse(cls, value: object) -> "Algorithm":
        """
        Coerce an algorithm tag (enum member or case-insensitive string).

        Raises:
            UnsupportedAlgorithm: For any tag outside SHA1 / SHA256 / SHA512.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper().replace("-", ""))
            except ValueError:
                pass
        raise UnsupportedAlgorithm(value)


# ── Constants ────────────────────────────────────────────────────────────────

_ALG_MAP: dict[Algorithm, type[hashes.HashAlgorithm]] = {
    Algorithm.SHA1: hashes.SHA1,
    Algorithm.SHA256: hashes.SHA256,
    Algorithm.SHA512: hashes.SHA512,
}

DIGEST_SIZES: dict[Algorithm, int] = {
    Algorithm.SHA1: 20,
    Algorithm.SHA256: 32,
    Algorithm.SHA512: 64,
}


# ── HMAC ──────────────────────────────────────────────────────────────────────

def hmac_digest(key: bytes, msg: bytes, algorithm: Algorithm) -> bytes:
    """
    Compute ``HMAC(algorithm, key, msg)``.

    Args:
        key:       Raw secret bytes.
        msg:       Message to authenticate (the 8-byte OTP counter).
        algorithm: Digest algorithm.

    Returns:
        Digest of 20, 32 or 64 bytes depending on ``algorithm``.

    Raises:
        UnsupportedAlgorithm: If ``algorithm`` is not a known tag.
    """
    hash_cls = _ALG_MAP[Algorithm.parse(algorithm)]
    mac = hmac.HMAC(key, hash_cls())
    mac.update(msg)
    return mac.finalize()


def constant_time_compare(a: str, b: str) -> bool:
    """Return True if *a* == *b* in constant time (timing-safe)."""
    return constant_time.bytes_eq(a.encode(), b.encode())
