"""Base32 handling for stored OTP secrets.

Secrets are kept as unpadded upper-case Base32 text and only decoded when a
code is generated.
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional

from gk_authenticator.errors import InvalidKey

_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")


def decode(secret: str, account: Optional[str] = None) -> bytes:
    """Decode an unpadded Base32 secret into raw key bytes.

    Raises InvalidKey for padding, characters outside the upper-case alphabet,
    impossible lengths, or non-zero trailing bits.
    """
    if not secret or not set(secret) <= _ALPHABET:
        raise InvalidKey("Invalid key: not an unpadded Base32 string", account)

    padded = secret + "=" * (-len(secret) % 8)
    try:
        raw = base64.b32decode(padded)
    except binascii.Error as exc:
        raise InvalidKey(f"Invalid key: {exc}", account) from exc

    # Reject encodings whose unused trailing bits are set.
    if base64.b32encode(raw).decode("ascii").rstrip("=") != secret:
        raise InvalidKey("Invalid key: non-canonical Base32 trailing bits", account)
    return raw


def normalize(secret: str) -> str:
    """Canonicalize user input (strip spaces, upper-case) and validate it."""
    cleaned = "".join(secret.split()).upper()
    decode(cleaned)
    return cleaned
