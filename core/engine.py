"""
Single entry point that turns an :class:`Account` into a :class:`Code`.

Platform shells (desktop, extension, web) call :func:`generate_code` on their
own timer; the engine itself is pure and thread-safe.
"""

from typing import Optional

from core.crypto import Algorithm
from core.hotp import generate_hotp, validate_hotp
from core.models import Account, Code, OTPType
from core.steam import generate_steam, validate_steam
from core.totp import generate_totp, validate_totp
from core.utils import Timestamp, format_otp


def _require_now(otp_type: OTPType, now: Optional[Timestamp]) -> Timestamp:
    if now is None:
        raise ValueError(f"A timestamp is required to generate {otp_type.value} codes.")
    return now


def generate_code(account: Account, now: Optional[Timestamp] = None) -> Code:
    """
    Generate the current code for *account*.

    Args:
        account: Account to generate for. It is never modified.
        now:     Caller's clock (Unix timestamp or datetime); required for
                 TOTP and Steam accounts, ignored for HOTP.

    Returns:
        :class:`Code` for the account.

    Raises:
        UnsupportedAccountType: If ``account.otp_type`` is unknown.
        UnsupportedAlgorithm:   If ``account.algorithm`` is unknown.
        InvalidSecret:          If the secret decodes to zero bytes.
    """
    otp_type = OTPType.parse(account.otp_type)

    if otp_type is OTPType.HOTP:
        return generate_hotp(
            account.secret,
            account.counter,
            account.digits,
            Algorithm.parse(account.algorithm),
        )
    if otp_type is OTPType.TOTP:
        return generate_totp(
            account.secret,
            _require_now(otp_type, now),
            period=account.period,
            digits=account.digits,
            algorithm=Algorithm.parse(account.algorithm),
        )
    return generate_steam(account.secret, _require_now(otp_type, now))


def verify_code(
    account: Account,
    token: str,
    now: Optional[Timestamp] = None,
    window: int = 1,
) -> bool:
    """
    Check *token* against *account*.

    Time-based accounts accept ±``window`` steps of clock skew. HOTP accounts
    only accept the code for the current counter; look-ahead resynchronisation
    is left to the server.
    """
    otp_type = OTPType.parse(account.otp_type)

    if otp_type is OTPType.HOTP:
        return validate_hotp(
            token,
            account.secret,
            account.counter,
            account.digits,
            Algorithm.parse(account.algorithm),
        )
    if otp_type is OTPType.TOTP:
        return validate_totp(
            token,
            account.secret,
            _require_now(otp_type, now),
            digits=account.digits,
            period=account.period,
            algorithm=Algorithm.parse(account.algorithm),
            window=window,
        )
    return validate_steam(token, account.secret, _require_now(otp_type, now), window)


def format_code(account: Account, code: str) -> str:
    """Format *code* for display; Steam codes are already short and stay as-is."""
    if OTPType.parse(account.otp_type) is OTPType.STEAM:
        return code
    return format_otp(code)
