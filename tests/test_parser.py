"""Tests for qr.parser."""

import dataclasses
import urllib.parse

import pytest

from core.crypto import Algorithm
from core.exceptions import InvalidSecret, InvalidUri, UnsupportedAlgorithm
from core.models import Account, OTPType
from qr.parser import build_otpauth_uri, parse_otpauth_uri


# ── Valid TOTP URIs ───────────────────────────────────────────────────────────

def test_parse_basic_totp() -> None:
    uri = "otpauth://totp/Example%3Aalice%40example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"
    result = parse_otpauth_uri(uri)
    assert result.otp_type is OTPType.TOTP
    assert result.account_name == "alice@example.com"
    assert result.issuer == "Example"
    assert result.secret == "JBSWY3DPEHPK3PXP"
    assert result.algorithm == Algorithm.SHA1
    assert result.digits == 6
    assert result.period == 30
    assert result.counter == 0


def test_parse_totp_with_sha256() -> None:
    uri = (
        "otpauth://totp/Issuer%3Auser?secret=JBSWY3DPEHPK3PXP"
        "&algorithm=SHA256&digits=8&period=60"
    )
    result = parse_otpauth_uri(uri)
    assert result.algorithm == Algorithm.SHA256
    assert result.digits == 8
    assert result.period == 60


def test_parse_totp_seven_digits() -> None:
    result = parse_otpauth_uri("otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&digits=7")
    assert result.digits == 7


def test_parse_totp_no_issuer_in_uri() -> None:
    uri = "otpauth://totp/myaccount?secret=JBSWY3DPEHPK3PXP"
    result = parse_otpauth_uri(uri)
    assert result.account_name == "myaccount"
    assert result.issuer == ""


def test_parse_totp_issuer_from_label() -> None:
    uri = "otpauth://totp/GitHub%3Ajohn?secret=JBSWY3DPEHPK3PXP"
    result = parse_otpauth_uri(uri)
    assert result.issuer == "GitHub"
    assert result.account_name == "john"


def test_parse_literal_colon_in_label() -> None:
    result = parse_otpauth_uri("otpauth://totp/ACME:jane%20doe?secret=JBSWY3DPEHPK3PXP")
    assert result.issuer == "ACME"
    assert result.account_name == "jane doe"


def test_query_issuer_wins_over_label() -> None:
    uri = "otpauth://totp/OldName%3Ajohn?secret=JBSWY3DPEHPK3PXP&issuer=NewName"
    assert parse_otpauth_uri(uri).issuer == "NewName"


def test_parse_case_insensitive_scheme_and_type() -> None:
    result = parse_otpauth_uri("OTPAUTH://TOTP/acc?secret=jbswy3dpehpk3pxp")
    assert result.otp_type is OTPType.TOTP
    assert result.secret == "JBSWY3DPEHPK3PXP"


def test_parse_secret_with_padding_and_spaces() -> None:
    result = parse_otpauth_uri("otpauth://totp/acc?secret=JBSW%20Y3DP%20EHPK%203PXP%3D%3D")
    assert result.secret == "JBSWY3DPEHPK3PXP"


def test_parse_ignores_unknown_parameters() -> None:
    uri = "otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&image=https%3A%2F%2Fx%2Fy.png&foo=bar"
    assert parse_otpauth_uri(uri).secret == "JBSWY3DPEHPK3PXP"


def test_parse_lowercase_algorithm() -> None:
    uri = "otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&algorithm=sha512"
    assert parse_otpauth_uri(uri).algorithm == Algorithm.SHA512


def test_parse_ignores_counter_for_totp() -> None:
    uri = "otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&counter=9"
    assert parse_otpauth_uri(uri).counter == 0


# ── Valid HOTP URIs ───────────────────────────────────────────────────────────

def test_parse_hotp() -> None:
    uri = "otpauth://hotp/Example%3Aeve?secret=JBSWY3DPEHPK3PXP&counter=5"
    result = parse_otpauth_uri(uri)
    assert result.otp_type is OTPType.HOTP
    assert result.counter == 5


def test_parse_hotp_default_counter() -> None:
    result = parse_otpauth_uri("otpauth://hotp/acc?secret=JBSWY3DPEHPK3PXP")
    assert result.counter == 0


def test_parse_hotp_ignores_period() -> None:
    result = parse_otpauth_uri("otpauth://hotp/acc?secret=JBSWY3DPEHPK3PXP&period=60")
    assert result.period == 30


def test_parse_hotp_max_counter() -> None:
    uri = f"otpauth://hotp/acc?secret=JBSWY3DPEHPK3PXP&counter={2**64 - 1}"
    assert parse_otpauth_uri(uri).counter == 2**64 - 1


# ── Steam ─────────────────────────────────────────────────────────────────────

def test_parse_steam_type() -> None:
    result = parse_otpauth_uri("otpauth://steam/Steam%3Agaben?secret=JBSWY3DPEHPK3PXP")
    assert result.otp_type is OTPType.STEAM
    assert result.digits == 5
    assert result.period == 30


def test_parse_steam_encoder() -> None:
    uri = "otpauth://totp/Steam%3Agaben?secret=JBSWY3DPEHPK3PXP&issuer=Steam&encoder=steam&digits=5"
    result = parse_otpauth_uri(uri)
    assert result.otp_type is OTPType.STEAM
    assert result.issuer == "Steam"


# ── Error cases ───────────────────────────────────────────────────────────────

def test_parse_wrong_scheme() -> None:
    with pytest.raises(InvalidUri, match="scheme"):
        parse_otpauth_uri("http://totp/acc?secret=ABC")


def test_parse_unknown_type() -> None:
    with pytest.raises(InvalidUri, match="OTP type"):
        parse_otpauth_uri("otpauth://motp/acc?secret=JBSWY3DPEHPK3PXP")


def test_parse_missing_secret() -> None:
    with pytest.raises(InvalidUri, match="secret"):
        parse_otpauth_uri("otpauth://totp/acc")


def test_parse_empty_secret() -> None:
    with pytest.raises(InvalidUri, match="secret"):
        parse_otpauth_uri("otpauth://totp/acc?secret=")


def test_parse_secret_without_base32_data() -> None:
    with pytest.raises(InvalidSecret):
        parse_otpauth_uri("otpauth://totp/acc?secret=0189")


def test_parse_missing_label() -> None:
    with pytest.raises(InvalidUri, match="label"):
        parse_otpauth_uri("otpauth://totp/?secret=JBSWY3DPEHPK3PXP")


def test_parse_invalid_algorithm() -> None:
    with pytest.raises(UnsupportedAlgorithm, match="algorithm"):
        parse_otpauth_uri("otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&algorithm=MD5")


@pytest.mark.parametrize("digits", ["5", "9", "six", "6.0"])
def test_parse_invalid_digits(digits: str) -> None:
    with pytest.raises(InvalidUri):
        parse_otpauth_uri(f"otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&digits={digits}")


@pytest.mark.parametrize("period", ["0", "-30", "thirty"])
def test_parse_invalid_period(period: str) -> None:
    with pytest.raises(InvalidUri):
        parse_otpauth_uri(f"otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&period={period}")


@pytest.mark.parametrize("counter", ["-1", str(2**64), "abc"])
def test_parse_invalid_counter(counter: str) -> None:
    with pytest.raises(InvalidUri, match="counter"):
        parse_otpauth_uri(f"otpauth://hotp/acc?secret=JBSWY3DPEHPK3PXP&counter={counter}")


@pytest.mark.parametrize(
    "uri",
    [
        "otpauth://totp/acc%ZZ?secret=JBSWY3DPEHPK3PXP",
        "otpauth://totp/acc%FF?secret=JBSWY3DPEHPK3PXP",
        "otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&issuer=%E2%28",
        "otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&issuer=50%",
    ],
)
def test_parse_malformed_percent_encoding(uri: str) -> None:
    with pytest.raises(InvalidUri, match="percent"):
        parse_otpauth_uri(uri)


def test_invalid_uri_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_otpauth_uri("not a uri")


# ── Builder ───────────────────────────────────────────────────────────────────

def test_build_totp_uri_layout() -> None:
    account = Account(
        secret="jbsw y3dp ehpk 3pxp",
        issuer="Example Co",
        account_name="alice@example.com",
    )
    uri = build_otpauth_uri(account)
    assert uri == (
        "otpauth://totp/Example%20Co%3Aalice%40example.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=Example%20Co&algorithm=SHA1&digits=6&period=30"
    )


def test_build_hotp_uri() -> None:
    account = Account(
        secret="JBSWY3DPEHPK3PXP",
        otp_type=OTPType.HOTP,
        account_name="bob",
        counter=10,
    )
    uri = build_otpauth_uri(account)
    assert uri.startswith("otpauth://hotp/bob?")
    assert "counter=10" in uri
    assert "period" not in uri
    assert "issuer" not in uri


def test_build_steam_uri() -> None:
    account = Account(
        secret="JBSWY3DPEHPK3PXP",
        otp_type=OTPType.STEAM,
        issuer="Steam",
        account_name="gaben",
    )
    uri = build_otpauth_uri(account)
    params = dict(urllib.parse.parse_qsl(urllib.parse.urlparse(uri).query))
    assert uri.startswith("otpauth://totp/")
    assert params["encoder"] == "steam"
    assert params["digits"] == "5"


_ROUNDTRIP_ACCOUNTS = [
    Account(secret="JBSWY3DPEHPK3PXP", issuer="Example", account_name="alice@example.com"),
    Account(secret="JBSWY3DPEHPK3PXP", account_name="no-issuer"),
    Account(
        secret="GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ",
        otp_type=OTPType.TOTP,
        algorithm=Algorithm.SHA512,
        digits=8,
        period=60,
        issuer="Bank & Trust",
        account_name="jane doe+1@example.com",
    ),
    Account(
        secret="MZXW6YTBOI",
        otp_type=OTPType.HOTP,
        algorithm=Algorithm.SHA256,
        digits=7,
        counter=2**40,
        issuer="Yubi/Key",
        account_name="über?user#1",
    ),
    Account(
        secret="JBSWY3DPEHPK3PXP",
        otp_type=OTPType.STEAM,
        digits=5,
        issuer="Steam",
        account_name="gaben",
    ),
]


@pytest.mark.parametrize("account", _ROUNDTRIP_ACCOUNTS)
def test_build_parse_roundtrip(account: Account) -> None:
    assert parse_otpauth_uri(build_otpauth_uri(account)) == account


_LABEL_EDGE_ACCOUNTS = [
    Account(secret="JBSWY3DPEHPK3PXP", issuer="ACME: EU", account_name="bob"),
    Account(secret="JBSWY3DPEHPK3PXP", issuer="ACME", account_name="user:1"),
    Account(secret="JBSWY3DPEHPK3PXP", issuer="a:b:c", account_name="d:e"),
]


@pytest.mark.parametrize("account", _LABEL_EDGE_ACCOUNTS)
def test_roundtrip_colons_in_issuer_or_account_name(account: Account) -> None:
    assert parse_otpauth_uri(build_otpauth_uri(account)) == account


def test_roundtrip_normalises_names_like_parser() -> None:
    account = Account(secret="JBSWY3DPEHPK3PXP", issuer="  Example ", account_name=" bob ")
    parsed = parse_otpauth_uri(build_otpauth_uri(account))
    assert parsed == dataclasses.replace(account, issuer="Example", account_name="bob")


def test_roundtrip_truncates_long_names_like_parser() -> None:
    account = Account(secret="JBSWY3DPEHPK3PXP", issuer="Example", account_name="x" * 200)
    parsed = parse_otpauth_uri(build_otpauth_uri(account))
    assert parsed.account_name == "x" * 128
    assert parse_otpauth_uri(build_otpauth_uri(parsed)) == parsed


@pytest.mark.parametrize(
    "account",
    [
        Account(secret="JBSWY3DPEHPK3PXP"),
        Account(secret="JBSWY3DPEHPK3PXP", issuer="Example", account_name="   "),
        Account(secret="JBSWY3DPEHPK3PXP", account_name="user:1"),
    ],
)
def test_build_rejects_unsplittable_label(account: Account) -> None:
    with pytest.raises(InvalidUri):
        build_otpauth_uri(account)


def test_query_issuer_prefix_is_stripped_whole() -> None:
    uri = "otpauth://totp/ACME%3A%20EU%3Abob?secret=JBSWY3DPEHPK3PXP&issuer=ACME%3A%20EU"
    result = parse_otpauth_uri(uri)
    assert result.issuer == "ACME: EU"
    assert result.account_name == "bob"
