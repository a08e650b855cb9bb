"""
secret.py — turn a TOTP secret, however it was typed or scanned, into key bytes.

Services hand out secrets as Base32 (Google Authenticator style), as hex,
or as plain text, and users paste them with spaces or dashes in between.
`normalize_secret` strips the separators, picks an encoding from
SECRET_ENCODINGS (first match wins) and decodes.

Order matters: every hex string is also valid Base32 text, so a secret made
only of 0-9 and A-F (e.g. "ABCDEF", or "12345678901234567890") is read as hex.
"""

import logging
import re
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)

EMPTY_SECRET_MESSAGE = "Secret key cannot be empty"

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_SEPARATORS = re.compile(r"[\s-]+")
_HEX = re.compile(r"^[0-9A-Fa-f]+$")
_BASE32 = re.compile(r"^[A-Za-z2-7]+=*$")


class EmptySecretError(ValueError):
    """Raised when a secret is empty once separators are removed."""

    def __init__(self, message: str = EMPTY_SECRET_MESSAGE) -> None:
        super().__init__(message)


def clean_secret(secret: str) -> str:
    """Drop whitespace and dashes; they are cosmetic grouping only."""
    if not secret:
        raise EmptySecretError()
    cleaned = _SEPARATORS.sub("", secret)
    if not cleaned:
        raise EmptySecretError()
    return cleaned


# --- Decoders ---------------------------------------------------------------
def _decode_hex(cleaned: str) -> bytes:
    # a dangling odd nibble carries no full byte
    usable = len(cleaned) - (len(cleaned) % 2)
    return bytes.fromhex(cleaned[:usable])


def _decode_base32(cleaned: str) -> bytes:
    """
    Base32 decode without the length checks of base64.b32decode.

    Padding is optional and case is ignored. Each symbol adds 5 bits; a byte
    is emitted every time 8 bits are buffered and leftover bits are dropped,
    so "AB" (10 bits) gives one byte and a single symbol gives none.
    """
    out = bytearray()
    buffer = 0
    bits = 0
    for char in cleaned.rstrip("=").upper():
        buffer = (buffer << 5) | BASE32_ALPHABET.index(char)
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
    return bytes(out)


def _decode_text(cleaned: str) -> bytes:
    return cleaned.encode("utf-8")


SECRET_ENCODINGS: List[Tuple[str, Callable[[str], bool], Callable[[str], bytes]]] = [
    ("hex", lambda s: _HEX.match(s) is not None, _decode_hex),
    ("base32", lambda s: _BASE32.match(s) is not None, _decode_base32),
    ("ascii", lambda s: True, _decode_text),
]


def _classify(cleaned: str) -> Tuple[str, Callable[[str], bytes]]:
    for name, matches, decoder in SECRET_ENCODINGS[:-1]:
        if matches(cleaned):
            return name, decoder
    # last entry is the catch-all
    name, _, decoder = SECRET_ENCODINGS[-1]
    return name, decoder


def detect_encoding(secret: str) -> str:
    """Name of the encoding `normalize_secret` would use: hex, base32 or ascii."""
    name, _ = _classify(clean_secret(secret))
    return name


def normalize_secret(secret: str) -> bytes:
    """
    Decode a secret string to raw HMAC key bytes.

    Arguments:
        secret: hex, Base32 (padded or not, any case) or plain text, optionally
            grouped with spaces/dashes

    Returns:
        bytes: the key. A one-symbol Base32 secret decodes to b"".

    Raises:
        EmptySecretError: if nothing is left after removing separators
    """
    cleaned = clean_secret(secret)
    name, decoder = _classify(cleaned)
    key = decoder(cleaned)
    logger.debug("Secret read as %s (%d key bytes)", name, len(key))
    return key
