"""
Unit tests for leaf and node hashing.
"""

import pytest
from eth_utils import keccak

from standard_merkle.exceptions import MalformedProofError
from standard_merkle.hashing import DIGEST_SIZE, digest_hex, hash_leaf, hash_node, to_digest


class TestHashing:
    """Test domain-separated hashing."""

    def test_leaf_is_double_keccak(self):
        data = b"\x01" * 64
        assert hash_leaf(data) == keccak(keccak(data))
        assert len(hash_leaf(data)) == DIGEST_SIZE

    def test_node_is_sorted_pair_keccak(self):
        a = keccak(b"a")
        b = keccak(b"b")
        lo, hi = sorted([a, b])
        assert hash_node(a, b) == keccak(lo + hi)

    def test_node_is_commutative(self):
        a = keccak(b"left")
        b = keccak(b"right")
        assert hash_node(a, b) == hash_node(b, a)

    def test_node_returns_plain_bytes(self):
        assert type(hash_node(keccak(b"a"), keccak(b"b"))) is bytes

    def test_node_not_confusable_with_leaf(self):
        """A 64-byte node preimage hashed as a leaf gives a different digest."""
        a = keccak(b"a")
        b = keccak(b"b")
        lo, hi = sorted([a, b])
        assert hash_leaf(lo + hi) != hash_node(a, b)


class TestDigestCoercion:
    """Test digest parsing."""

    def test_hex_roundtrip(self):
        digest = keccak(b"x")
        assert to_digest(digest_hex(digest)) == digest

    def test_bytearray_accepted(self):
        digest = keccak(b"x")
        assert to_digest(bytearray(digest)) == digest

    @pytest.mark.parametrize("value", [b"\x00" * 31, b"\x00" * 33, "0x1234", "abcd" * 16, "0xzz", 12])
    def test_malformed(self, value):
        with pytest.raises(MalformedProofError):
            to_digest(value)
