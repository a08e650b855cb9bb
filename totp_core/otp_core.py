"""
otp_core.py — HOTP (RFC 4226) and TOTP (RFC 6238) code generation.

Goals:
- Pure functions only, so the CLI, a web view or a background job can all
  call them directly without shared state.
- No argparse / display loop here; see otp_cli.py.
- The clock is an explicit argument (`timestamp`) and the HMAC-SHA1
  primitive is injectable (`hmac_sha1`), so callers and tests control both.

Security note:
- Secrets are never logged; only the detected encoding and key length are.
"""

import asyncio
import hashlib
import hmac
import logging
import struct
import time
from typing import Awaitable, Callable, Tuple

import pyotp

from .secret import normalize_secret

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # standard: 6 digits
MAX_DIGITS = 10
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
MAX_COUNTER = 2 ** 64 - 1   # counter travels as an unsigned 64-bit value

HmacSha1 = Callable[[bytes, bytes], bytes]
AsyncHmacSha1 = Callable[[bytes, bytes], Awaitable[bytes]]


def sha1_hmac(key: bytes, message: bytes) -> bytes:
    """Default HMAC-SHA1 primitive: 20-byte digest of `message` keyed by `key`."""
    return hmac.new(key, message, hashlib.sha1).digest()


def generate_secret() -> str:
    """
    Return a fresh random Base32 secret (32 chars, 160 bits, no padding).

    Meant for enrolling a new code; the result feeds straight back into
    `generate_totp`.
    """
    return pyotp.random_base32()


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Encode the counter as 8 bytes, big-endian, as RFC 4226 requires.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'

    Raises:
        ValueError: if the counter is negative or does not fit in 64 bits
    """
    if i < 0 or i > MAX_COUNTER:
        raise ValueError(f"counter must be between 0 and {MAX_COUNTER}, got {i}")
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    RFC 4226 dynamic truncation.

    - offset = low 4 bits of the last byte
    - take 4 bytes from offset, clear the top bit of the first one
    - return the 31-bit unsigned big-endian integer

    Arguments:
        hmac_digest: HMAC digest (20 bytes for SHA-1)
    """
    offset = hmac_digest[-1] & 0x0F
    return int.from_bytes(hmac_digest[offset:offset + 4], "big") & 0x7FFFFFFF


def _format_code(digest: bytes, digits: int) -> str:
    return str(dynamic_truncate(digest) % (10 ** digits)).zfill(digits)


def _check_time_step(time_step: int) -> None:
    if isinstance(time_step, bool) or not isinstance(time_step, int) or time_step <= 0:
        raise ValueError(f"time_step must be a positive integer, got {time_step!r}")


def _check_digits(digits: int) -> None:
    # a 31-bit truncated value never has more than 10 decimal digits
    if isinstance(digits, bool) or not isinstance(digits, int) or not 1 <= digits <= MAX_DIGITS:
        raise ValueError(f"digits must be an integer between 1 and {MAX_DIGITS}, got {digits!r}")


def _now(timestamp: float = None) -> int:
    if timestamp is None:
        timestamp = time.time()
    return int(timestamp)


# --- HOTP ------------------------------------------------------------------
def hotp(key: bytes, counter: int, digits: int = DEFAULT_DIGITS, hmac_sha1: HmacSha1 = None) -> str:
    """
    HOTP code per RFC 4226.

    Steps:
    1. message = 8-byte big-endian counter
    2. digest = HMAC-SHA1(key, message)
    3. dynamic truncation -> 31-bit integer
    4. integer % 10^digits, zero-padded to `digits` characters

    Arguments:
        key: raw key bytes (see secret.normalize_secret)
        counter: non-negative counter
        digits: code length, 6 by default
        hmac_sha1: HMAC primitive `(key, message) -> digest`; errors it raises
            reach the caller untouched

    Returns:
        str: e.g. hotp(b"12345678901234567890", 0) == "755224"

    Raises:
        ValueError: for a counter outside 64 bits or digits outside 1..10
    """
    _check_digits(digits)
    primitive = hmac_sha1 or sha1_hmac
    digest = primitive(key, int_to_bytes(counter))
    return _format_code(digest, digits)


async def hotp_async(
    key: bytes, counter: int, digits: int = DEFAULT_DIGITS, hmac_sha1: AsyncHmacSha1 = None
) -> str:
    """
    Same as `hotp`, for HMAC primitives that are only available as coroutines.

    The await on the primitive is the only suspension point. Without a
    primitive, the stdlib one runs in a worker thread.
    """
    _check_digits(digits)
    message = int_to_bytes(counter)
    if hmac_sha1 is None:
        digest = await asyncio.to_thread(sha1_hmac, key, message)
    else:
        digest = await hmac_sha1(key, message)
    return _format_code(digest, digits)


# --- TOTP ------------------------------------------------------------------
def timecode(timestamp: float = None, time_step: int = DEFAULT_TIME_STEP) -> int:
    """Counter for `timestamp` (now if None): floor(unix seconds / time_step)."""
    _check_time_step(time_step)
    return _now(timestamp) // time_step


def generate_totp(
    secret: str,
    time_step: int = DEFAULT_TIME_STEP,
    timestamp: float = None,
    digits: int = DEFAULT_DIGITS,
    hmac_sha1: HmacSha1 = None,
) -> str:
    """
    TOTP code per RFC 6238: HOTP(key, counter = floor(timestamp / time_step)).

    Arguments:
        secret: secret string in any form `normalize_secret` accepts
        time_step: window length in seconds, 30 by default
        timestamp: unix seconds to compute for; None reads the clock
        digits: code length
        hmac_sha1: optional HMAC primitive, see `hotp`

    Returns:
        str: zero-padded code

    Raises:
        EmptySecretError: for an empty secret
        ValueError: for a non-positive time_step or digits outside 1..10
    """
    try:
        _check_digits(digits)
        key = normalize_secret(secret)
        counter = timecode(timestamp, time_step)
        return hotp(key, counter, digits, hmac_sha1)
    except Exception as e:
        logger.error("TOTP generation error: %s", e)
        raise


async def generate_totp_async(
    secret: str,
    time_step: int = DEFAULT_TIME_STEP,
    timestamp: float = None,
    digits: int = DEFAULT_DIGITS,
    hmac_sha1: AsyncHmacSha1 = None,
) -> str:
    """Coroutine form of `generate_totp`; suspends once, inside `hotp_async`."""
    try:
        _check_digits(digits)
        key = normalize_secret(secret)
        counter = timecode(timestamp, time_step)
        return await hotp_async(key, counter, digits, hmac_sha1)
    except Exception as e:
        logger.error("TOTP generation error: %s", e)
        raise


def get_time_remaining(time_step: int = DEFAULT_TIME_STEP, timestamp: float = None) -> int:
    """
    Seconds until the current code rotates, in [1, time_step].

    Never 0: at the exact start of a window the full `time_step` is returned,
    which display loops use as their cue to fetch a new code.
    """
    _check_time_step(time_step)
    seconds_into_window = _now(timestamp) % time_step
    if seconds_into_window == 0:
        return time_step
    return time_step - seconds_into_window


def totp(
    secret: str,
    timestamp: float = None,
    time_step: int = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
) -> Tuple[str, int]:
    """
    Code plus its remaining validity, both taken from a single clock reading.

    Returns:
        (code, remaining_seconds)
    """
    _check_digits(digits)
    now = _now(timestamp)
    code = generate_totp(secret, time_step=time_step, timestamp=now, digits=digits)
    return code, get_time_remaining(time_step, now)
