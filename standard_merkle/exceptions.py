"""
Exception hierarchy for standard-merkle.

All custom exceptions inherit from MerkleError base class.
"""


class MerkleError(Exception):
    """Base exception for all standard-merkle errors."""
    pass


# Encoding Errors
class InvalidSchemaError(MerkleError):
    """Raised when a leaf encoding declares an unknown or malformed type."""
    pass


class SchemaMismatchError(MerkleError, ValueError):
    """Raised when an entry does not conform to the tree's schema."""
    pass


# Construction Errors
class EmptyInputError(MerkleError, ValueError):
    """Raised when a tree is built from an empty entry list."""
    pass


class DuplicateLeafError(MerkleError):
    """Raised when two entries produce the same leaf digest."""
    pass


# Lookup Errors
class IndexOutOfRangeError(MerkleError, IndexError):
    """Raised when a leaf index is outside the tree."""
    pass


class LeafNotFoundError(MerkleError, LookupError):
    """Raised when a value is not one of the tree's entries."""
    pass


# Proof Errors
class MalformedProofError(MerkleError):
    """Raised when a proof, leaf or root digest is structurally invalid."""
    pass


# Snapshot Errors
class SnapshotError(MerkleError):
    """Base exception for snapshot (dump/load) errors."""
    pass


class CorruptSnapshotError(SnapshotError):
    """Raised when a snapshot is malformed or its digests do not recompute."""
    pass


class UnsupportedVersionError(SnapshotError):
    """Raised when a snapshot declares an unknown format version."""
    pass
