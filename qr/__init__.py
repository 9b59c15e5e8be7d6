"""otpauth:// URI codec."""
