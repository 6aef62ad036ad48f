"""
Membership proofs and their verification.

A proof is the ordered list of sibling digests on the path from a leaf to
the root. It does not carry the root: the verifier must get the expected root
from somewhere it trusts. Verification needs only the leaf digest, the proof
and that root; the tree that produced the proof is not involved.
"""

from collections import abc
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from standard_merkle.exceptions import MalformedProofError
from standard_merkle.hashing import digest_hex, hash_node, to_digest
from standard_merkle.logging_config import get_logger

logger = get_logger(__name__)

LEFT = "left"
RIGHT = "right"


@dataclass(frozen=True)
class ProofStep:
    """
    One sibling on a proof path.

    Attributes:
        digest: Sibling digest (32 bytes)
        position: "left" or "right", where the sibling sits relative to the path node
    """
    digest: bytes
    position: str

    def __post_init__(self):
        if self.position not in (LEFT, RIGHT):
            raise MalformedProofError(f"Unknown proof position: {self.position!r}")
        object.__setattr__(self, "digest", to_digest(self.digest, "proof digest"))

    def to_json(self) -> dict:
        return {"digest": digest_hex(self.digest), "position": self.position}


@dataclass(frozen=True)
class MerkleProof:
    """Ordered proof steps from a leaf up to (not including) the root."""
    steps: Tuple[ProofStep, ...] = ()

    @property
    def siblings(self) -> List[bytes]:
        return [s.digest for s in self.steps]

    @property
    def positions(self) -> List[str]:
        return [s.position for s in self.steps]

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def to_json(self) -> List[dict]:
        return [s.to_json() for s in self.steps]

    def hex(self) -> List[str]:
        """Sibling digests as 0x strings, the form Solidity verifiers take."""
        return [digest_hex(d) for d in self.siblings]

    @classmethod
    def from_json(cls, data: Any) -> "MerkleProof":
        return cls.coerce(data)

    @classmethod
    def coerce(cls, proof: Any) -> "MerkleProof":
        """
        Accept a MerkleProof, a list of ProofSteps, a list of bare digests
        (bytes or hex) or the JSON list form [{"digest", "position"}].

        Bare digests carry no position and are recorded as "right"; positions
        do not affect verification because node hashing sorts the pair.

        Raises:
            MalformedProofError: If the proof or any element is malformed
        """
        if isinstance(proof, MerkleProof):
            return proof
        if isinstance(proof, (str, bytes, bytearray)) or not isinstance(proof, abc.Iterable):
            raise MalformedProofError(f"Proof must be a sequence, got {type(proof).__name__}")

        steps = []
        for item in proof:
            if isinstance(item, ProofStep):
                steps.append(item)
            elif isinstance(item, dict):
                if "digest" not in item:
                    raise MalformedProofError(f"Proof step has no digest: {item!r}")
                steps.append(ProofStep(item["digest"], item.get("position", RIGHT)))
            else:
                steps.append(ProofStep(item, RIGHT))
        return cls(tuple(steps))


def max_proof_length(tree_size: int) -> int:
    """Longest proof a tree with tree_size leaves can produce."""
    return (tree_size - 1).bit_length() if tree_size > 1 else 0


def process_proof(leaf: bytes, proof: MerkleProof) -> bytes:
    computed = leaf
    for step in proof.steps:
        computed = hash_node(computed, step.digest)
    return computed


def verify(
    leaf: Union[bytes, str],
    proof: Any,
    root: Union[bytes, str],
    *,
    tree_size: Optional[int] = None,
) -> bool:
    """
    Verify that a leaf digest belongs to the tree with the given root.

    Args:
        leaf: Leaf digest (bytes or 0x hex)
        proof: MerkleProof or any form accepted by MerkleProof.coerce
        root: Expected root digest (bytes or 0x hex)
        tree_size: Optional leaf count of the tree, enables proof length checks

    Returns:
        True if the recomputed root equals the expected root, False otherwise

    Raises:
        MalformedProofError: If a digest has the wrong size, the proof is not a
            sequence, or the proof length cannot fit a tree of tree_size leaves
    """
    leaf = to_digest(leaf, "leaf")
    root = to_digest(root, "root")
    proof = MerkleProof.coerce(proof)

    if tree_size is not None:
        if tree_size < 1:
            raise MalformedProofError(f"tree_size must be positive, got {tree_size}")
        if tree_size > 1 and not proof.steps:
            raise MalformedProofError(f"Empty proof cannot reach the root of a {tree_size}-leaf tree")
        if len(proof) > max_proof_length(tree_size):
            raise MalformedProofError(
                f"Proof has {len(proof)} steps, a {tree_size}-leaf tree allows at most "
                f"{max_proof_length(tree_size)}"
            )

    result = process_proof(leaf, proof) == root
    logger.debug("merkle_proof_verified", leaf=digest_hex(leaf), steps=len(proof), valid=result)
    return result
