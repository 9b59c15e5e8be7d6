"""One-time password engine: HOTP, TOTP and Steam Guard."""
