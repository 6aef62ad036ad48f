"""
Canonical leaf encoding.

A schema is the ordered list of Solidity type names shared by every entry of
a tree, e.g. ``["address", "uint256"]``. Entries are validated against it
and ABI-encoded (``abi.encode``, not ``abi.encodePacked``) so the result is
unambiguous for every supported type.

Addresses may be given as EVM ``0x`` hex or as Tron base58check (``T...``);
both normalize to the same EIP-55 checksum address.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional, Sequence, Tuple, Union

import base58
from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError
from eth_utils import decode_hex, is_hex, is_hex_address
from web3 import Web3

from standard_merkle.exceptions import InvalidSchemaError, SchemaMismatchError

# Largest integer a JSON consumer can read back exactly
JSON_SAFE_INT = 2**53 - 1

TRON_ADDRESS_PREFIX = 0x41

_INT_RE = re.compile(r"^(u?int)(\d*)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")


def tron_to_evm_address(tron_addr: str) -> str:
    """
    Convert Tron Base58Check addr (T...) to EVM 0x address by stripping leading 0x41.
    Returns checksummed 0x address.
    """
    try:
        decoded = base58.b58decode_check(tron_addr)
    except ValueError as e:
        raise SchemaMismatchError(f"Invalid Tron address: {tron_addr}") from e
    if len(decoded) != 21 or decoded[0] != TRON_ADDRESS_PREFIX:
        raise SchemaMismatchError(f"Invalid Tron address: {tron_addr}")
    return Web3.to_checksum_address("0x" + decoded[1:].hex())


def normalize_address(addr: Any) -> str:
    if not isinstance(addr, str):
        raise SchemaMismatchError(f"Address must be a string, got {type(addr).__name__}")
    addr = addr.strip()
    if addr.startswith("T") and len(addr) == 34:
        return tron_to_evm_address(addr)
    if not addr.startswith("0x"):
        addr = "0x" + addr
    if not is_hex_address(addr):
        raise SchemaMismatchError(f"Invalid address: {addr}")
    return Web3.to_checksum_address(addr)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise SchemaMismatchError("Expected an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith(("0x", "-0x")):
                return int(text, 16)
            return int(text, 10)
        except ValueError as e:
            raise SchemaMismatchError(f"Not an integer: {value!r}") from e
    raise SchemaMismatchError(f"Expected an integer, got {type(value).__name__}")


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and value.startswith("0x") and is_hex(value):
        try:
            return decode_hex(value)
        except ValueError as e:
            raise SchemaMismatchError(f"Invalid hex bytes: {value!r}") from e
    raise SchemaMismatchError(f"Expected bytes or 0x hex string, got {value!r}")


@dataclass(frozen=True)
class FieldType:
    """
    One Solidity type in a leaf encoding.

    Attributes:
        name: Canonical type name, e.g. "uint256"
        kind: One of address, uint, int, bool, fixed_bytes, bytes, string
        size: Bit width for uint/int, byte length for fixed_bytes, else 0
    """
    name: str
    kind: str
    size: int = 0

    @classmethod
    def parse(cls, name: str) -> "FieldType":
        if not isinstance(name, str):
            raise InvalidSchemaError(f"Type name must be a string, got {name!r}")
        name = name.strip()
        if name in ("address", "bool", "bytes", "string"):
            return cls(name, name)

        match = _INT_RE.match(name)
        if match:
            kind, width = match.group(1), match.group(2)
            bits = int(width) if width else 256
            if bits < 8 or bits > 256 or bits % 8:
                raise InvalidSchemaError(f"Invalid integer width: {name}")
            return cls(f"{kind}{bits}", kind, bits)

        match = _BYTES_RE.match(name)
        if match:
            length = int(match.group(1))
            if not 1 <= length <= 32:
                raise InvalidSchemaError(f"Invalid fixed bytes length: {name}")
            return cls(name, "fixed_bytes", length)

        raise InvalidSchemaError(f"Unsupported type: {name}")

    def normalize(self, value: Any) -> Any:
        """Validate a value and return its canonical Python form."""
        if self.kind == "address":
            return normalize_address(value)

        if self.kind == "uint":
            number = _to_int(value)
            if not 0 <= number <= 2**self.size - 1:
                raise SchemaMismatchError(f"{number} exceeds {self.name}")
            return number

        if self.kind == "int":
            number = _to_int(value)
            bound = 2**(self.size - 1)
            if not -bound <= number <= bound - 1:
                raise SchemaMismatchError(f"{number} exceeds {self.name}")
            return number

        if self.kind == "bool":
            if not isinstance(value, bool):
                raise SchemaMismatchError(f"Expected bool, got {value!r}")
            return value

        if self.kind == "fixed_bytes":
            raw = _to_bytes(value)
            if len(raw) != self.size:
                raise SchemaMismatchError(
                    f"{self.name} needs exactly {self.size} bytes, got {len(raw)}"
                )
            return raw

        if self.kind == "bytes":
            return _to_bytes(value)

        if not isinstance(value, str):
            raise SchemaMismatchError(f"Expected string, got {type(value).__name__}")
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SchemaMismatchError(f"String is not valid UTF-8: {value!r}") from e
        return value

    def to_json(self, value: Any) -> Any:
        """Render a normalized value for a JSON snapshot."""
        if self.kind in ("fixed_bytes", "bytes"):
            return "0x" + value.hex()
        if self.kind in ("uint", "int") and abs(value) > JSON_SAFE_INT:
            # string for JSON safety
            return str(value)
        return value


@dataclass(frozen=True)
class Schema:
    """Ordered field types shared by all entries of one tree."""
    fields: Tuple[FieldType, ...]

    @classmethod
    def parse(cls, types: Union["Schema", Iterable[str]]) -> "Schema":
        if isinstance(types, Schema):
            return types
        if isinstance(types, str):
            raise InvalidSchemaError("Leaf encoding must be a list of type names, not a string")
        fields = tuple(FieldType.parse(t) for t in types)
        if not fields:
            raise InvalidSchemaError("Leaf encoding must declare at least one type")
        return cls(fields)

    @property
    def types(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[FieldType]:
        return iter(self.fields)

    def to_json(self, entry: Sequence[Any]) -> list:
        return [f.to_json(v) for f, v in zip(self.fields, entry)]


def normalize_entry(
    entry: Sequence[Any],
    schema: Union[Schema, Iterable[str]],
    index: Optional[int] = None,
) -> Tuple[Any, ...]:
    """
    Check an entry against a schema and return its normalized tuple.

    Args:
        entry: List or tuple of values, one per schema field
        schema: Schema or list of type names
        index: Entry position, only used in error messages

    Returns:
        Tuple of canonical values

    Raises:
        SchemaMismatchError: If the entry has the wrong shape or a value does not fit its type
    """
    schema = Schema.parse(schema)
    where = f"Entry {index}" if index is not None else "Entry"

    if not isinstance(entry, (list, tuple)):
        raise SchemaMismatchError(f"{where} must be a list or tuple, got {type(entry).__name__}")
    if len(entry) != len(schema):
        raise SchemaMismatchError(
            f"{where} has {len(entry)} values, schema {list(schema.types)} expects {len(schema)}"
        )

    values = []
    for field, value in zip(schema.fields, entry):
        try:
            values.append(field.normalize(value))
        except SchemaMismatchError as e:
            raise SchemaMismatchError(f"{where}, field {field.name}: {e}") from e
    return tuple(values)


def encode_normalized(values: Sequence[Any], schema: Schema) -> bytes:
    """ABI-encode values already returned by normalize_entry()."""
    try:
        return abi_encode(list(schema.types), list(values))
    except (EncodingError, UnicodeEncodeError) as e:
        raise SchemaMismatchError(f"Cannot encode entry as {list(schema.types)}: {e}") from e


def encode(entry: Sequence[Any], schema: Union[Schema, Iterable[str]]) -> bytes:
    """ABI-encode an entry after validating it against the schema."""
    schema = Schema.parse(schema)
    return encode_normalized(normalize_entry(entry, schema), schema)
