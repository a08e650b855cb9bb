"""
totp_core
=========

HOTP / TOTP code generation (RFC 4226 & RFC 6238) for secrets in whatever
form they arrive: Base32, hex, plain text, with or without spaces and dashes.

──────────────────────────────────────────────
Algorithm
──────────────────────────────────────────────
- Secret normalization:
  strip whitespace/dashes, then hex if only 0-9A-F, else Base32 if only
  A-Z2-7 (+ '=' padding), else the UTF-8 bytes of the text.

- HOTP:
  code = Truncate(HMAC-SHA1(key, counter as 8 bytes big-endian)) mod 10^6

- TOTP:
  HOTP with counter = floor(unix_time / time_step), time_step = 30s.

──────────────────────────────────────────────
Usage
──────────────────────────────────────────────
>>> from totp_core import generate_totp, get_time_remaining
>>> code = generate_totp("JBSW Y3DP-EHPK 3PXP")
>>> seconds_left = get_time_remaining()

Display loops poll `get_time_remaining()` every second and fetch a new code
when it returns the full time step. Async callers use `generate_totp_async`.
"""

from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    dynamic_truncate,
    generate_secret,
    generate_totp,
    generate_totp_async,
    get_time_remaining,
    hotp,
    hotp_async,
    int_to_bytes,
    timecode,
    totp,
)
from .secret import EmptySecretError, detect_encoding, normalize_secret

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_DIGITS",
    "DEFAULT_TIME_STEP",
    "EmptySecretError",
    "detect_encoding",
    "dynamic_truncate",
    "generate_secret",
    "generate_totp",
    "generate_totp_async",
    "get_time_remaining",
    "hotp",
    "hotp_async",
    "int_to_bytes",
    "normalize_secret",
    "timecode",
    "totp",
]
