"""
Leaf and node hashing.

Leaves are double-hashed, keccak256(keccak256(encoded)), internal nodes are
hashed once over the sorted pair. A 64-byte node preimage therefore never
matches a leaf preimage, so an internal node cannot be passed off as a leaf.
"""

from typing import Union

from eth_utils import is_hex, keccak
from web3 import Web3

from standard_merkle.exceptions import MalformedProofError

DIGEST_SIZE = 32


def hash_leaf(encoded: bytes) -> bytes:
    return keccak(keccak(encoded))


def hash_node(a: bytes, b: bytes) -> bytes:
    # Sort the pair to ensure consistency with Solidity MerkleProof logic
    if a > b:
        a, b = b, a
    return bytes(Web3.solidity_keccak(['bytes32', 'bytes32'], [a, b]))


def to_digest(value: Union[bytes, bytearray, str], what: str = "digest") -> bytes:
    """
    Coerce bytes or a 0x hex string into a 32-byte digest.

    Raises:
        MalformedProofError: If the value is not exactly 32 bytes
    """
    if isinstance(value, str):
        if not (value.startswith("0x") and is_hex(value)):
            raise MalformedProofError(f"{what} is not a 0x hex string: {value!r}")
        try:
            value = bytes.fromhex(value[2:])
        except ValueError as e:
            raise MalformedProofError(f"{what} is not valid hex: {value!r}") from e
    elif isinstance(value, (bytes, bytearray)):
        value = bytes(value)
    else:
        raise MalformedProofError(f"{what} must be bytes or hex, got {type(value).__name__}")

    if len(value) != DIGEST_SIZE:
        raise MalformedProofError(f"{what} must be {DIGEST_SIZE} bytes, got {len(value)}")
    return value


def digest_hex(digest: bytes) -> str:
    return "0x" + digest.hex()
