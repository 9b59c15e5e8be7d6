"""
Steam Guard codes: Steam's TOTP variant with a 5-character alphabet.

Also converts the Steam mobile authenticator export into an account.
"""

import base64
import binascii
import logging
from typing import Any, Mapping

from core.crypto import Algorithm, constant_time_compare
from core.exceptions import InvalidSecret
from core.models import Account, Code, OTPType
from core.otp import dynamic_truncate
from core.totp import remaining_seconds, totp_counter
from core.utils import Timestamp, decode_secret, encode_secret

logger = logging.getLogger(__name__)

STEAM_ALPHABET = "23456789BCDFGHJKMNPQRTVWXY"
STEAM_PERIOD = 30
STEAM_CODE_LENGTH = 5
STEAM_ISSUER = "Steam"


def render_steam(value: int) -> str:
    """
    Render a truncated HMAC value with Steam's alphabet.

    The least significant base-26 digit comes first, as Steam clients emit it.
    """
    chars = []
    for _ in range(STEAM_CODE_LENGTH):
        value, index = divmod(value, len(STEAM_ALPHABET))
        chars.append(STEAM_ALPHABET[index])
    return "".join(chars)


def generate_steam(secret: str, now: Timestamp) -> Code:
    """
    Generate a Steam Guard code.

    Args:
        secret: Base32 shared secret.
        now:    Unix timestamp or datetime supplied by the caller.

    Returns:
        :class:`Code` with the 5-character code and window timing.
    """
    secret_bytes = decode_secret(secret)
    counter = totp_counter(now, STEAM_PERIOD)
    remaining = remaining_seconds(STEAM_PERIOD, now)
    return Code(
        code=render_steam(dynamic_truncate(secret_bytes, counter, Algorithm.SHA1)),
        remaining_time=remaining,
        progress=remaining / STEAM_PERIOD,
    )


def validate_steam(token: str, secret: str, now: Timestamp, window: int = 1) -> bool:
    """Validate a Steam Guard code within ±``window`` time steps."""
    secret_bytes = decode_secret(secret)
    counter = totp_counter(now, STEAM_PERIOD)
    token = token.strip().upper()
    for step in range(-window, window + 1):
        if counter + step < 0:
            continue
        value = dynamic_truncate(secret_bytes, counter + step, Algorithm.SHA1)
        if constant_time_compare(token, render_steam(value)):
            return True
    return False


def import_steam_mobile(data: Mapping[str, Any]) -> Account:
    """
    Convert a Steam mobile authenticator export (``.maFile``) to an account.

    Args:
        data: Mapping with at least ``shared_secret`` (base64) and
              ``account_name``.

    Returns:
        Steam :class:`Account` with the secret re-encoded as base32.

    Raises:
        ValueError:    If a required field is missing.
        InvalidSecret: If ``shared_secret`` is not valid base64.
    """
    shared_secret = data.get("shared_secret")
    account_name = data.get("account_name")
    if not shared_secret or not account_name:
        raise ValueError("Steam export requires 'shared_secret' and 'account_name'.")

    try:
        raw = base64.b64decode(shared_secret, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidSecret(f"Invalid Steam shared secret: {exc}") from exc
    if not raw:
        raise InvalidSecret("Steam shared secret is empty.")

    logger.debug("Imported Steam mobile authenticator export.")
    return Account(
        secret=encode_secret(raw),
        otp_type=OTPType.STEAM,
        algorithm=Algorithm.SHA1,
        digits=STEAM_CODE_LENGTH,
        period=STEAM_PERIOD,
        issuer=STEAM_ISSUER,
        account_name=str(account_name),
    )
