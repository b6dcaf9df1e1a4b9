"""HOTP / TOTP code generation (RFC 4226 and RFC 6238).

A code is produced in three steps:

1. HS = HMAC(hash, K, C) where C is the counter as an 8-byte big-endian value.
2. Dynamic truncation: the low 4 bits of the last digest byte select an offset,
   the 4 bytes starting there are read as a big-endian integer with the top
   bit cleared, giving a 31-bit value.
3. The value is reduced modulo 10**length and zero-padded to length digits.

For TOTP the counter is the number of 30-second steps since the Unix epoch.
"""

from __future__ import annotations

import hashlib
import hmac
import struct
import time
from enum import Enum
from typing import Optional

from gk_authenticator.otp import codec

TIME_STEP = 30
DEFAULT_LENGTH = 6
MAX_LENGTH = 9
MAX_COUNTER = 2 ** 64 - 1


class Algorithm(str, Enum):
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    @classmethod
    def parse(cls, tag: str) -> "Algorithm":
        """Look up an algorithm by tag, ignoring case ("SHA1", "Sha1", "sha1")."""
        return cls(tag.lower())


_HASHES = {
    Algorithm.SHA1: hashlib.sha1,
    Algorithm.SHA256: hashlib.sha256,
    Algorithm.SHA384: hashlib.sha384,
    Algorithm.SHA512: hashlib.sha512,
}


def dynamic_truncate(digest: bytes) -> int:
    """Extract the 31-bit dynamic binary code from an HMAC digest.

    Every supported digest is at least 20 bytes, so offset + 4 never runs past
    the end.
    """
    offset = digest[-1] & 0x0F
    (bin_code,) = struct.unpack(">I", digest[offset:offset + 4])
    return bin_code & 0x7FFFFFFF


class Otp:
    """One code generator built from a stored account's fields.

    The generator never mutates the counter it was given; advancing an HOTP
    counter is up to the caller.
    """

    def __init__(
        self,
        key: str,
        algorithm: Algorithm = Algorithm.SHA1,
        totp: bool = True,
        counter: Optional[int] = None,
        length: int = DEFAULT_LENGTH,
        account: Optional[str] = None,
    ):
        self._key = codec.decode(key, account)
        self._algorithm = algorithm
        self._totp = totp
        self._counter = counter or 0
        self._length = length

    def counter_value(self, timestamp: Optional[float] = None) -> int:
        if self._totp:
            if timestamp is None:
                timestamp = time.time()
            return int(timestamp) // TIME_STEP
        return self._counter

    def generate(self, timestamp: Optional[float] = None) -> str:
        message = struct.pack(">Q", self.counter_value(timestamp))
        digest = hmac.new(self._key, message, _HASHES[self._algorithm]).digest()
        code = dynamic_truncate(digest) % (10 ** self._length)
        return str(code).zfill(self._length)
