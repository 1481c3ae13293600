"""
Fixed-length hash values used throughout the index metadata.
"""
from __future__ import annotations

import binascii
import hashlib


class HashValue:
    """
    Immutable byte string of exactly ``size`` bytes.

    An instance holding zero bytes is the "not yet known" placeholder. It can
    be constructed (see ``empty()``) but never passes ``is_valid()``.
    """

    size: int = 0
    name: str = "hash"

    __slots__ = ("_digest",)

    def __init__(self, digest: bytes = b""):
        self._digest = bytes(digest)

    @classmethod
    def empty(cls) -> "HashValue":
        return cls(b"")

    @classmethod
    def from_hex(cls, text: str) -> "HashValue":
        """
        Decode a base16 string, rejecting leftovers and wrong lengths.
        """
        if not isinstance(text, str):
            raise ValueError(f"{cls.name} must be a hex string, got {type(text).__name__}")
        usable = len(text) - len(text) % 2
        try:
            digest = binascii.unhexlify(text[:usable])
        except ValueError:
            raise ValueError(f"Base16 encoding leftovers in {text!r}") from None
        if usable != len(text):
            raise ValueError(f"Base16 encoding leftovers {text[usable:]!r}")
        if len(digest) != cls.size:
            raise ValueError(
                f"Base16 of wrong length, expected {cls.size}, got {len(digest)}"
            )
        return cls(digest)

    @classmethod
    def from_bytes(cls, digest: bytes) -> "HashValue":
        """
        Wrap raw bytes read back from storage; the length must match exactly.
        """
        if len(digest) != cls.size:
            raise ValueError(f"Invalid {cls.name} length {len(digest)}")
        return cls(digest)

    @property
    def digest(self) -> bytes:
        return self._digest

    def is_valid(self) -> bool:
        return len(self._digest) == self.size

    def hex(self) -> str:
        return self._digest.hex()

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._digest == other._digest

    def __lt__(self, other: "HashValue") -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._digest < other._digest

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._digest))

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"{type(self).__name__}.from_hex({self.hex()!r})"


class SHA256(HashValue):
    size = 32
    name = "SHA256"
    __slots__ = ()


class MD5(HashValue):
    size = 16
    name = "MD5"
    __slots__ = ()


EMPTY_SHA256 = SHA256.empty()


def sha256(data: bytes) -> SHA256:
    """Hash a byte string with SHA-256."""
    return SHA256(hashlib.sha256(data).digest())
