"""
Value types exchanged with the OTP engine.

Both types live only for the duration of one call; storage and lifecycle of
accounts belong to the caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from core.crypto import Algorithm
from core.exceptions import UnsupportedAccountType

# ── Defaults ──────────────────────────────────────────────────────────────────

DEFAULT_DIGITS = 6
DEFAULT_PERIOD = 30
DEFAULT_ALGORITHM = Algorithm.SHA1


class OTPType(str, Enum):
    """Kinds of one-time password an account can produce."""

    TOTP = "totp"
    HOTP = "hotp"
    STEAM = "steam"

    @classmethod
    def parse(cls, value: object) -> "OTPType":
        """Coerce an enum member or case-insensitive string, else raise."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnsupportedAccountType(value)


@dataclass(frozen=True)
class Account:
    """A single OTP account as supplied by the caller's account store."""

    secret: str                 # base32 text
    otp_type: Union[OTPType, str] = OTPType.TOTP
    algorithm: Union[Algorithm, str] = DEFAULT_ALGORITHM
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD      # TOTP / Steam only
    counter: int = 0                  # HOTP only
    issuer: str = ""
    account_name: str = ""


@dataclass(frozen=True)
class Code:
    """A generated code plus the timing metadata a countdown UI needs."""

    code: str
    remaining_time: Optional[int] = None    # seconds left in the window
    progress: Optional[float] = None        # remaining_time / period
    counter: Optional[int] = None           # echoed for HOTP

    def __str__(self) -> str:
        return self.code
