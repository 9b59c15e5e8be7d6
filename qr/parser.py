"""
Parse and build otpauth:// URIs as defined by the Google Authenticator Key URI Format.

Reference: https://github.com/google/google-authenticator/wiki/Key-Uri-Format

Steam accounts are read from ``otpauth://steam/...`` or from a TOTP URI carrying
``encoder=steam``, and written as the latter.
"""

import logging
import re
import urllib.parse

from core.crypto import Algorithm
from core.exceptions import InvalidUri
from core.models import DEFAULT_DIGITS, DEFAULT_PERIOD, Account, OTPType
from core.otp import MAX_COUNTER
from core.steam import STEAM_CODE_LENGTH, STEAM_PERIOD
from core.utils import decode_secret, normalize_secret, sanitise_label, validate_digits, validate_period

logger = logging.getLogger(__name__)

SCHEME = "otpauth"

# Percent sign not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _unquote(text: str, what: str) -> str:
    if _BAD_ESCAPE.search(text):
        raise InvalidUri(f"Malformed percent-encoding in {what}.")
    try:
        return urllib.parse.unquote(text, errors="strict")
    except UnicodeDecodeError as exc:
        raise InvalidUri(f"Malformed percent-encoding in {what}.") from exc


def _parse_query(query: str) -> dict[str, str]:
    if _BAD_ESCAPE.search(query):
        raise InvalidUri("Malformed percent-encoding in query string.")
    try:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True, errors="strict")
    except UnicodeDecodeError as exc:
        raise InvalidUri("Malformed percent-encoding in query string.") from exc
    # First occurrence wins
    params: dict[str, str] = {}
    for key, value in pairs:
        params.setdefault(key.lower(), value)
    return params


def _int_param(params: dict[str, str], name: str, default: int) -> int:
    raw = params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidUri(f"'{name}' must be an integer.") from exc


def parse_otpauth_uri(uri: str) -> Account:
    """
    Parse and validate an ``otpauth://`` URI.

    When the issuer appears both as the label prefix and as the ``issuer``
    query parameter, the query parameter wins. Unknown parameters are ignored.

    Args:
        uri: Full otpauth URI string.

    Returns:
        Populated :class:`Account`.

    Raises:
        InvalidUri:           If the URI is malformed or contains invalid values.
        UnsupportedAlgorithm: If the ``algorithm`` parameter is not supported.
        InvalidSecret:        If the secret contains no base32 data.
    """
    uri = uri.strip()

    parsed = urllib.parse.urlparse(uri)

    if parsed.scheme.lower() != SCHEME:
        raise InvalidUri(f"Expected '{SCHEME}' scheme, got '{parsed.scheme}'.")

    type_name = parsed.netloc.lower()
    if type_name not in (OTPType.TOTP.value, OTPType.HOTP.value, OTPType.STEAM.value):
        raise InvalidUri(f"Unknown OTP type '{type_name}'. Expected totp or hotp.")
    otp_type = OTPType(type_name)

    # Label is the path component (strip leading slash)
    raw_label = _unquote(parsed.path.lstrip("/"), "label")
    if not raw_label:
        raise InvalidUri("Missing label in otpauth URI.")

    params = _parse_query(parsed.query)

    # Extract issuer and account from label  "Issuer:AccountName".
    # A query issuer that prefixes the label is removed whole, so issuers
    # containing ':' split correctly.
    query_issuer = params.get("issuer")
    if query_issuer is not None and raw_label.startswith(query_issuer + ":"):
        label_issuer = query_issuer
        account_name = raw_label[len(query_issuer) + 1 :]
    elif ":" in raw_label:
        label_issuer, account_name = raw_label.split(":", 1)
    else:
        label_issuer = ""
        account_name = raw_label

    label_issuer = sanitise_label(label_issuer)
    account_name = sanitise_label(account_name)

    # Secret (required)
    raw_secret = params.get("secret", "")
    if not raw_secret:
        raise InvalidUri("Missing 'secret' parameter in otpauth URI.")
    secret = normalize_secret(raw_secret)
    decode_secret(secret)

    # Issuer – prefer the query param; fall back to label prefix
    issuer = sanitise_label(params.get("issuer", label_issuer).strip())

    if otp_type is OTPType.TOTP and params.get("encoder", "").lower() == OTPType.STEAM.value:
        otp_type = OTPType.STEAM

    algorithm = Algorithm.parse(params.get("algorithm") or Algorithm.SHA1.value)

    # Period (TOTP) / Counter (HOTP)
    period = DEFAULT_PERIOD
    counter = 0

    if otp_type is OTPType.STEAM:
        digits = STEAM_CODE_LENGTH
        period = STEAM_PERIOD
    else:
        digits = _int_param(params, "digits", DEFAULT_DIGITS)
        try:
            validate_digits(digits)
        except ValueError as exc:
            raise InvalidUri(str(exc)) from exc

    if otp_type is OTPType.TOTP:
        period = _int_param(params, "period", DEFAULT_PERIOD)
        try:
            validate_period(period)
        except ValueError as exc:
            raise InvalidUri(str(exc)) from exc
    elif otp_type is OTPType.HOTP:
        counter = _int_param(params, "counter", 0)
        if not 0 <= counter <= MAX_COUNTER:
            raise InvalidUri("'counter' must be an unsigned 64-bit integer.")

    logger.debug(
        "Parsed otpauth URI: type=%s algorithm=%s digits=%d",
        otp_type.value,
        algorithm.value,
        digits,
    )
    return Account(
        secret=secret,
        otp_type=otp_type,
        algorithm=algorithm,
        digits=digits,
        period=period,
        counter=counter,
        issuer=issuer,
        account_name=account_name,
    )


def build_otpauth_uri(account: Account) -> str:
    """
    Build an otpauth:// URI from an account.

    Query parameters are written in the order ``secret``, ``issuer`` (only when
    set), ``algorithm``, ``digits``, then ``period`` for time-based accounts or
    ``counter`` for HOTP. Steam accounts are written as TOTP with
    ``encoder=steam`` appended.

    Issuer and account name are cleaned with :func:`sanitise_label`, the same
    normalisation :func:`parse_otpauth_uri` applies.

    Raises:
        InvalidUri: If the account name is empty, or contains ':' while no
            issuer is set (the label could not be split back unambiguously).
    """
    otp_type = OTPType.parse(account.otp_type)
    algorithm = Algorithm.parse(account.algorithm)

    issuer = sanitise_label(account.issuer)
    account_name = sanitise_label(account.account_name)
    if not account_name:
        raise InvalidUri("An account name is required to build an otpauth URI.")
    if not issuer and ":" in account_name:
        raise InvalidUri("Account name may not contain ':' without an issuer.")

    label = f"{issuer}:{account_name}" if issuer else account_name
    params: dict = {"secret": normalize_secret(account.secret)}
    if issuer:
        params["issuer"] = issuer

    if otp_type is OTPType.STEAM:
        params["algorithm"] = Algorithm.SHA1.value
        params["digits"] = str(STEAM_CODE_LENGTH)
        params["period"] = str(STEAM_PERIOD)
        params["encoder"] = OTPType.STEAM.value
        uri_type = OTPType.TOTP.value
    else:
        params["algorithm"] = algorithm.value
        params["digits"] = str(account.digits)
        if otp_type is OTPType.TOTP:
            params["period"] = str(account.period)
        else:
            params["counter"] = str(account.counter)
        uri_type = otp_type.value

    query = urllib.parse.urlencode(params, quote_via=urllib.parse.quote)
    label_encoded = urllib.parse.quote(label, safe="")
    return f"{SCHEME}://{uri_type}/{label_encoded}?{query}"
