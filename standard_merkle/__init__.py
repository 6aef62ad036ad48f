"""
Standard Merkle trees over ABI-encoded entries.

This package builds sorted-pair keccak256 Merkle trees over typed tuples,
generates membership proofs, verifies them independently of the tree, and
dumps/loads trees as JSON snapshots.
"""

from standard_merkle.config import MerkleSettings
from standard_merkle.encoding import FieldType, Schema, encode, normalize_entry, tron_to_evm_address
from standard_merkle.exceptions import (
    CorruptSnapshotError,
    DuplicateLeafError,
    EmptyInputError,
    IndexOutOfRangeError,
    InvalidSchemaError,
    LeafNotFoundError,
    MalformedProofError,
    MerkleError,
    SchemaMismatchError,
    SnapshotError,
    UnsupportedVersionError,
)
from standard_merkle.hashing import hash_leaf, hash_node
from standard_merkle.proof import MerkleProof, ProofStep, verify
from standard_merkle.snapshot import dump, dumps, load, loads
from standard_merkle.tree import StandardMerkleTree, build, prove_leaf

__version__ = "0.1.0"

__all__ = [
    "MerkleSettings",
    "FieldType",
    "Schema",
    "encode",
    "normalize_entry",
    "tron_to_evm_address",
    "hash_leaf",
    "hash_node",
    "StandardMerkleTree",
    "build",
    "prove_leaf",
    "MerkleProof",
    "ProofStep",
    "verify",
    "dump",
    "dumps",
    "load",
    "loads",
    "MerkleError",
    "InvalidSchemaError",
    "SchemaMismatchError",
    "EmptyInputError",
    "DuplicateLeafError",
    "IndexOutOfRangeError",
    "LeafNotFoundError",
    "MalformedProofError",
    "SnapshotError",
    "CorruptSnapshotError",
    "UnsupportedVersionError",
]
