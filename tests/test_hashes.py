"""Tests for fixed-length hash values."""

from __future__ import annotations

import hashlib

import pytest

from hackage_index.domain.hashes import EMPTY_SHA256, MD5, SHA256, sha256

HEX_SHA256 = "727408b14173594bbe88dad4240cb884063a784b74afaeaad5fb56c9f042afbd"
HEX_MD5 = "f551ecaf18e8ec807a9f0f5b69c7ed5a"


def test_from_hex_round_trips_to_lowercase() -> None:
    """Decoding then encoding yields the canonical lowercase form."""

    assert SHA256.from_hex(HEX_SHA256).hex() == HEX_SHA256
    assert SHA256.from_hex(HEX_SHA256.upper()).hex() == HEX_SHA256
    assert MD5.from_hex(HEX_MD5).hex() == HEX_MD5


@pytest.mark.parametrize(
    "text",
    [
        HEX_SHA256[:-2],  # 31 bytes
        HEX_SHA256 + "00",  # 33 bytes
        HEX_SHA256 + "0",  # odd leftover
        HEX_SHA256[:-1] + "g",  # invalid character
        HEX_MD5,  # right encoding, wrong hash kind
        "",
    ],
)
def test_from_hex_rejects_bad_input(text: str) -> None:
    with pytest.raises(ValueError):
        SHA256.from_hex(text)


def test_md5_rejects_sha256_length() -> None:
    with pytest.raises(ValueError, match="expected 16, got 32"):
        MD5.from_hex(HEX_SHA256)


def test_empty_sentinel_is_invalid() -> None:
    assert not EMPTY_SHA256.is_valid()
    assert not SHA256.empty().is_valid()
    assert EMPTY_SHA256 == SHA256.empty()


def test_computed_hash_is_valid() -> None:
    h = sha256(b"name: acme\n")
    assert h.is_valid()
    assert h.digest == hashlib.sha256(b"name: acme\n").digest()
    assert sha256(b"").is_valid()


def test_from_bytes_requires_exact_length() -> None:
    digest = hashlib.sha256(b"x").digest()
    assert SHA256.from_bytes(digest).digest == digest
    with pytest.raises(ValueError):
        SHA256.from_bytes(digest[:16])
    with pytest.raises(ValueError):
        SHA256.from_bytes(b"")


def test_hash_kinds_do_not_compare_equal() -> None:
    """An MD5 and a SHA256 are never equal, even with the same bytes."""

    assert MD5(b"\x00" * 16) != SHA256(b"\x00" * 16)
    assert sha256(b"a") == sha256(b"a")
    assert len({sha256(b"a"), sha256(b"a"), sha256(b"b")}) == 2
