"""
Standard Merkle tree over ABI-encoded entries.

Construction:
- every entry is validated against the schema, ABI-encoded and double-hashed
- leaf digests are sorted ascending, so the root depends only on the set of entries
- adjacent nodes are paired with sorted-pair keccak256, level by level
- an unpaired last node is promoted to the next level unchanged (never duplicated)

The tree is stored as a list of levels, levels[0] being the sorted leaves and
levels[-1] the root. It is immutable once built; proofs and snapshots are
derived from it without modifying it.
"""

import concurrent.futures
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from standard_merkle.config import DEFAULT_SETTINGS, MerkleSettings
from standard_merkle.encoding import Schema, encode_normalized, normalize_entry
from standard_merkle.exceptions import (
    DuplicateLeafError,
    EmptyInputError,
    IndexOutOfRangeError,
    LeafNotFoundError,
    MerkleError,
)
from standard_merkle.hashing import digest_hex, hash_leaf, hash_node
from standard_merkle.logging_config import get_logger
from standard_merkle.proof import LEFT, RIGHT, MerkleProof, ProofStep, verify

logger = get_logger(__name__)

Entry = Tuple[Any, ...]


def _next_level(current: List[bytes], settings: MerkleSettings) -> List[bytes]:
    pairs = [(current[i], current[i + 1]) for i in range(0, len(current) - 1, 2)]

    if len(current) >= settings.parallel_threshold:
        with concurrent.futures.ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
            nxt = list(executor.map(lambda p: hash_node(p[0], p[1]), pairs))
    else:
        nxt = [hash_node(left, right) for left, right in pairs]

    if len(current) % 2:
        # Promote odd node
        nxt.append(current[-1])
    return nxt


def build_levels(
    leaves: Sequence[bytes],
    settings: MerkleSettings = DEFAULT_SETTINGS,
) -> List[List[bytes]]:
    """
    Build every level of the tree bottom-up from sorted leaf digests.

    Args:
        leaves: Leaf digests in tree order
        settings: Parallelism settings

    Returns:
        List of levels, levels[0] is the leaf level and levels[-1] == [root]
    """
    if not leaves:
        raise EmptyInputError("Cannot build Merkle tree from empty leaves list")

    levels = [list(leaves)]
    while len(levels[-1]) > 1:
        levels.append(_next_level(levels[-1], settings))
    return levels


def hash_entry(values: Sequence[Any], schema: Schema) -> bytes:
    return hash_leaf(encode_normalized(values, schema))


def _hash_entries(values: List[Entry], schema: Schema, settings: MerkleSettings) -> List[bytes]:
    if len(values) >= settings.parallel_threshold:
        with concurrent.futures.ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
            return list(executor.map(lambda v: hash_entry(v, schema), values))
    return [hash_entry(v, schema) for v in values]


class StandardMerkleTree:
    """
    Merkle tree over typed entries, compatible with sorted-pair Solidity verifiers.

    Build with StandardMerkleTree.of() (or build()); restore with load().
    Entry indexes follow input order, independent of where each leaf ends up
    after sorting.

    Example:
        >>> tree = StandardMerkleTree.of([[addr_a, 666], [addr_b, 123]], ["address", "uint256"])
        >>> proof = tree.get_proof(0)
        >>> assert verify(tree.leaf_hash(0), proof, tree.root)
    """

    def __init__(
        self,
        schema: Schema,
        levels: List[List[bytes]],
        leaf_positions: List[int],
        values: Optional[List[Entry]] = None,
    ):
        # Use of() or load(); this constructor trusts its inputs.
        self._schema = schema
        self._levels = levels
        self._positions = leaf_positions
        self._values = values
        self._lookup: Dict[bytes, int] = {
            levels[0][pos]: index for index, pos in enumerate(leaf_positions)
        }

    @classmethod
    def of(
        cls,
        entries: Iterable[Sequence[Any]],
        leaf_encoding: Union[Schema, Iterable[str]],
        settings: Optional[MerkleSettings] = None,
    ) -> "StandardMerkleTree":
        """
        Build a tree from entries.

        Args:
            entries: Entries, each a list/tuple matching leaf_encoding
            leaf_encoding: Schema or list of Solidity type names
            settings: Parallelism settings (default: DEFAULT_SETTINGS)

        Returns:
            A new tree

        Raises:
            InvalidSchemaError: If leaf_encoding names an unsupported type
            EmptyInputError: If entries is empty
            SchemaMismatchError: If an entry does not conform to the schema
            DuplicateLeafError: If two entries produce the same leaf
        """
        settings = settings or DEFAULT_SETTINGS
        schema = Schema.parse(leaf_encoding)
        entries = list(entries)
        if not entries:
            raise EmptyInputError("Cannot build Merkle tree from empty entries list")

        values = [normalize_entry(entry, schema, index=i) for i, entry in enumerate(entries)]
        hashes = _hash_entries(values, schema, settings)

        seen: Dict[bytes, int] = {}
        for i, leaf in enumerate(hashes):
            if leaf in seen:
                raise DuplicateLeafError(
                    f"Entries {seen[leaf]} and {i} produce the same leaf {digest_hex(leaf)}"
                )
            seen[leaf] = i

        order = sorted(range(len(hashes)), key=lambda i: hashes[i])
        positions = [0] * len(hashes)
        for pos, index in enumerate(order):
            positions[index] = pos

        levels = build_levels([hashes[i] for i in order], settings)
        tree = cls(schema, levels, positions, values)

        logger.debug(
            "merkle_tree_built",
            leaves=len(values),
            depth=len(levels) - 1,
            root=digest_hex(tree.root),
        )
        return tree

    @property
    def root(self) -> bytes:
        return self._levels[-1][0]

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def leaf_encoding(self) -> Tuple[str, ...]:
        return self._schema.types

    @property
    def levels(self) -> List[List[bytes]]:
        """Copy of every level, leaves first."""
        return [list(level) for level in self._levels]

    @property
    def has_values(self) -> bool:
        return self._values is not None

    def __len__(self) -> int:
        return len(self._positions)

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexOutOfRangeError(f"Leaf index must be an int, got {type(index).__name__}")
        if index < 0 or index >= len(self._positions):
            raise IndexOutOfRangeError(f"Leaf index {index} out of range [0, {len(self._positions)})")

    def _require_values(self) -> List[Entry]:
        if self._values is None:
            raise MerkleError("Tree was loaded without entry values")
        return self._values

    def _resolve(self, index_or_value: Union[int, Sequence[Any]]) -> int:
        if isinstance(index_or_value, int) and not isinstance(index_or_value, bool):
            self._check_index(index_or_value)
            return index_or_value
        return self.leaf_lookup(index_or_value)

    def at(self, index: int) -> Entry:
        self._check_index(index)
        return self._require_values()[index]

    def entries(self) -> Iterator[Tuple[int, Entry]]:
        """Yield (index, value) pairs in input order."""
        return iter(list(enumerate(self._require_values())))

    def leaf_position(self, index: int) -> int:
        """Position of an entry's leaf in the sorted leaf level."""
        self._check_index(index)
        return self._positions[index]

    def leaf_hash(self, index_or_value: Union[int, Sequence[Any]]) -> bytes:
        """
        Leaf digest for an entry index, or for any value under this tree's schema.

        A value does not have to be in the tree; this computes what its leaf
        would be.
        """
        if isinstance(index_or_value, int) and not isinstance(index_or_value, bool):
            self._check_index(index_or_value)
            return self._levels[0][self._positions[index_or_value]]
        values = normalize_entry(index_or_value, self._schema)
        return hash_entry(values, self._schema)

    def leaf_lookup(self, value: Sequence[Any]) -> int:
        """
        Find the input index of an entry.

        Raises:
            SchemaMismatchError: If value does not conform to the schema
            LeafNotFoundError: If value is not in the tree
        """
        leaf = self.leaf_hash(value)
        try:
            return self._lookup[leaf]
        except KeyError:
            raise LeafNotFoundError(f"Leaf is not in tree: {list(value)!r}") from None

    def get_proof(self, index_or_value: Union[int, Sequence[Any]]) -> MerkleProof:
        """
        Generate the proof for an entry, given its index or its value.

        Each step records the sibling digest and whether the sibling sits left
        or right of the path. Levels where the path node was promoted add no step.

        Raises:
            IndexOutOfRangeError: If the index is outside the tree
            LeafNotFoundError: If a value is given that is not in the tree
        """
        index = self._resolve(index_or_value)
        pos = self._positions[index]

        steps = []
        for level in self._levels[:-1]:
            if pos % 2 == 0:
                if pos + 1 < len(level):
                    steps.append(ProofStep(level[pos + 1], RIGHT))
            else:
                steps.append(ProofStep(level[pos - 1], LEFT))
            pos //= 2

        logger.debug("merkle_proof_generated", index=index, steps=len(steps))
        return MerkleProof(tuple(steps))

    def verify(self, index_or_value: Union[int, Sequence[Any]], proof: Any) -> bool:
        """Check a proof for an entry of this tree against this tree's root."""
        return verify(self.leaf_hash(index_or_value), proof, self.root, tree_size=len(self))

    def dump(self, include_values: bool = True) -> dict:
        from standard_merkle.snapshot import dump

        return dump(self, include_values=include_values)

    @classmethod
    def load(cls, snapshot: Union[dict, bytes, str]) -> "StandardMerkleTree":
        from standard_merkle.snapshot import load, loads

        if isinstance(snapshot, dict):
            return load(snapshot)
        return loads(snapshot)

    def render(self) -> str:
        """Draw the tree top-down, one node per line, as level:position) digest."""
        lines: List[str] = []
        top = len(self._levels) - 1

        def walk(level: int, pos: int, prefix: str, connector: str, child_prefix: str) -> None:
            lines.append(f"{prefix}{connector}{level}:{pos}) {digest_hex(self._levels[level][pos])}")
            if level == 0:
                return
            below = self._levels[level - 1]
            children = [c for c in (2 * pos, 2 * pos + 1) if c < len(below)]
            for i, child in enumerate(children):
                last = i == len(children) - 1
                walk(
                    level - 1,
                    child,
                    prefix + child_prefix,
                    "└─ " if last else "├─ ",
                    "   " if last else "│  ",
                )

        walk(top, 0, "", "", "")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"StandardMerkleTree(leaves={len(self)}, root={digest_hex(self.root)})"


def build(
    entries: Iterable[Sequence[Any]],
    schema: Union[Schema, Iterable[str]],
    settings: Optional[MerkleSettings] = None,
) -> StandardMerkleTree:
    """Build a tree from entries; see StandardMerkleTree.of."""
    return StandardMerkleTree.of(entries, schema, settings)


def prove_leaf(tree: StandardMerkleTree, index: int) -> MerkleProof:
    """Proof for the entry at index; see StandardMerkleTree.get_proof."""
    return tree.get_proof(index)
