"""
Tree snapshots (dump / load).

A snapshot holds everything needed to rebuild a tree and regenerate every
proof identically: format version, leaf encoding, entries in input order
with their leaf position, all node digests level by level, and the root.

Loading never trusts the embedded digests. Leaf digests are recomputed from
the entries and every internal node from its children before a tree is
returned; any disagreement rejects the snapshot.

Snapshot layout:
    {
        "formatVersion": 1,
        "schema": ["address", "uint256"],
        "entries": [{"value": [...], "leafIndex": 3}, ...],
        "tree": {"levelSizes": [13, 7, 4, 2, 1], "nodes": ["0x..", ...]},
        "root": "0x.."
    }

With include_values=False, each entry carries "leafHash" instead of "value".
"""

import json
from typing import Any, List, Union

from standard_merkle.encoding import Schema, normalize_entry
from standard_merkle.exceptions import (
    CorruptSnapshotError,
    InvalidSchemaError,
    MalformedProofError,
    SchemaMismatchError,
    UnsupportedVersionError,
)
from standard_merkle.hashing import digest_hex, to_digest
from standard_merkle.logging_config import get_logger
from standard_merkle.tree import StandardMerkleTree, build_levels, hash_entry

logger = get_logger(__name__)

FORMAT_VERSION = 1
SUPPORTED_VERSIONS = (FORMAT_VERSION,)


def dump(tree: StandardMerkleTree, include_values: bool = True) -> dict:
    """
    Export a tree as a JSON-compatible dict.

    Args:
        tree: Tree to export
        include_values: If False, entries are replaced by their leaf hashes.
            Trees loaded without values always dump leaf hashes.

    Returns:
        Snapshot dict
    """
    levels = tree.levels
    include_values = include_values and tree.has_values
    entries = []
    for index in range(len(tree)):
        item: dict = {"leafIndex": tree.leaf_position(index)}
        if include_values:
            item["value"] = tree.schema.to_json(tree.at(index))
        else:
            item["leafHash"] = digest_hex(tree.leaf_hash(index))
        entries.append(item)

    return {
        "formatVersion": FORMAT_VERSION,
        "schema": list(tree.leaf_encoding),
        "entries": entries,
        "tree": {
            "levelSizes": [len(level) for level in levels],
            "nodes": [digest_hex(node) for level in levels for node in level],
        },
        "root": digest_hex(tree.root),
    }


def dumps(tree: StandardMerkleTree, include_values: bool = True) -> bytes:
    """Export a tree as UTF-8 JSON bytes."""
    return json.dumps(dump(tree, include_values), sort_keys=True, separators=(",", ":")).encode("utf-8")


def _reject(reason: str) -> CorruptSnapshotError:
    logger.warning("snapshot_rejected", reason=reason)
    return CorruptSnapshotError(reason)


def _field(data: dict, key: str, kind: type) -> Any:
    if key not in data:
        raise _reject(f"Snapshot is missing '{key}'")
    value = data[key]
    if not isinstance(value, kind) or isinstance(value, bool):
        raise _reject(f"Snapshot field '{key}' must be {kind.__name__}")
    return value


def _check_version(data: dict) -> None:
    version = data.get("formatVersion")
    if isinstance(version, bool) or not isinstance(version, int):
        raise _reject(f"Snapshot formatVersion must be an integer, got {version!r}")
    if version not in SUPPORTED_VERSIONS:
        logger.warning("snapshot_rejected", reason="unsupported_version", version=version)
        raise UnsupportedVersionError(
            f"Unsupported snapshot format version {version}, supported: {list(SUPPORTED_VERSIONS)}"
        )


def _split_levels(level_sizes: List[Any], nodes: List[Any]) -> List[List[bytes]]:
    if not level_sizes or not all(isinstance(n, int) and not isinstance(n, bool) for n in level_sizes):
        raise _reject("levelSizes must be a non-empty list of integers")
    if level_sizes[0] < 1:
        raise _reject("Leaf level is empty")
    for below, above in zip(level_sizes, level_sizes[1:]):
        if above != (below + 1) // 2:
            raise _reject(f"Level of {above} nodes cannot sit above a level of {below}")
    if level_sizes[-1] != 1:
        raise _reject("Top level must hold exactly the root")
    if sum(level_sizes) != len(nodes):
        raise _reject(f"levelSizes account for {sum(level_sizes)} nodes, snapshot has {len(nodes)}")

    try:
        digests = [to_digest(node, "node") for node in nodes]
    except MalformedProofError as e:
        raise _reject(str(e)) from e

    levels = []
    start = 0
    for size in level_sizes:
        levels.append(digests[start:start + size])
        start += size
    return levels


def load(data: dict) -> StandardMerkleTree:
    """
    Rebuild a tree from a snapshot dict.

    Args:
        data: Snapshot produced by dump()

    Returns:
        Tree with the same root and the same proof for every entry index

    Raises:
        UnsupportedVersionError: If formatVersion is not a supported version
        CorruptSnapshotError: If the snapshot is malformed or any digest fails to recompute
    """
    if not isinstance(data, dict):
        raise _reject(f"Snapshot must be a JSON object, got {type(data).__name__}")
    _check_version(data)

    try:
        schema = Schema.parse(_field(data, "schema", list))
    except InvalidSchemaError as e:
        raise _reject(f"Invalid schema: {e}") from e

    entries = _field(data, "entries", list)
    layout = _field(data, "tree", dict)
    levels = _split_levels(_field(layout, "levelSizes", list), _field(layout, "nodes", list))
    leaves = levels[0]

    if len(entries) != len(leaves):
        raise _reject(f"Snapshot has {len(entries)} entries but {len(leaves)} leaves")
    if any(a >= b for a, b in zip(leaves, leaves[1:])):
        raise _reject("Leaves are not in strictly ascending order")

    positions: List[int] = []
    values: List[tuple] = []
    for i, item in enumerate(entries):
        if not isinstance(item, dict):
            raise _reject(f"Entry {i} must be an object")
        pos = _field(item, "leafIndex", int)
        if not 0 <= pos < len(leaves):
            raise _reject(f"Entry {i} points at leaf {pos}, tree has {len(leaves)}")
        positions.append(pos)

        if "value" in item:
            try:
                value = normalize_entry(item["value"], schema, index=i)
            except SchemaMismatchError as e:
                raise _reject(str(e)) from e
            values.append(value)
            leaf = hash_entry(value, schema)
        elif "leafHash" in item:
            try:
                leaf = to_digest(item["leafHash"], f"Entry {i} leafHash")
            except MalformedProofError as e:
                raise _reject(str(e)) from e
        else:
            raise _reject(f"Entry {i} has neither 'value' nor 'leafHash'")

        if leaf != leaves[pos]:
            raise _reject(f"Entry {i} does not hash to leaf {pos}")

    if len(set(positions)) != len(positions):
        raise _reject("Two entries point at the same leaf")
    if values and len(values) != len(entries):
        raise _reject("Snapshot mixes entries with and without values")

    expected = build_levels(leaves)
    for depth, (stored, computed) in enumerate(zip(levels, expected)):
        for pos, (a, b) in enumerate(zip(stored, computed)):
            if a != b:
                raise _reject(f"Node {depth}:{pos} does not match its children")

    try:
        root = to_digest(_field(data, "root", str), "root")
    except MalformedProofError as e:
        raise _reject(str(e)) from e
    if root != levels[-1][0]:
        raise _reject("Root does not match the top of the tree")

    tree = StandardMerkleTree(schema, levels, positions, values or None)
    logger.info("snapshot_loaded", leaves=len(tree), root=digest_hex(tree.root))
    return tree


def loads(data: Union[bytes, str]) -> StandardMerkleTree:
    """Rebuild a tree from UTF-8 JSON bytes (or text) produced by dumps()."""
    try:
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8")
        if not isinstance(data, str):
            raise _reject(f"Snapshot must be bytes or str, got {type(data).__name__}")
        parsed = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise _reject(f"Snapshot is not valid JSON: {e}") from e
    return load(parsed)
