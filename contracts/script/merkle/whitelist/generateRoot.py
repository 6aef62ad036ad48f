from typing import Dict, Iterable, List

from standard_merkle import StandardMerkleTree, verify
from standard_merkle.encoding import normalize_address
from standard_merkle.logging_config import setup_logging

# --- CONFIGURATION ---

# Leaves are keccak256(keccak256(abi.encode(address))), not the single keccak256 of
# the 32-byte padded address the deployed whitelist checks. Do not paste these
# roots or proofs into the deployed contract.

# EVM 0x and Tron Base58 (T...) addresses are both accepted
WHITELIST = [
    "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
    "0xBD26367c4B23A6D3713A1e1a50B2D67E8748cB98",
    "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
    "TKWvD71EMFTpFVGZyqqX9fC6MQgcR9H76M",
    "TVKAAcqpQxz3J4waayePr8dQjSQ2XHkdbF",
]


def build_whitelist(addrs: Iterable[str]) -> StandardMerkleTree:
    return StandardMerkleTree.of([[a] for a in addrs], ["address"])


def solidity_snippet(addr: str, pf_hex: List[str]) -> str:
    name = normalize_address(addr).replace("0x", "").upper()
    lines = [f"PROOF_{name} = new bytes32[]({len(pf_hex)});"]
    for i, p in enumerate(pf_hex):
        lines.append(f"PROOF_{name}[{i}] = {p};")
    return "\n".join(lines)


def generate(addrs: Iterable[str] = WHITELIST) -> Dict[str, object]:
    addrs = list(addrs)
    tree = build_whitelist(addrs)
    rt = tree.root

    proofs = []
    for i, (addr,) in tree.entries():
        lf = tree.leaf_hash(i)
        pf = tree.get_proof(i)
        proofs.append({
            "input": addrs[i],
            "address": addr,
            "leaf": "0x" + lf.hex(),
            "proof": pf.hex(),
            "whitelisted": verify(lf, pf, rt),
        })
    return {"root": "0x" + rt.hex(), "proofs": proofs}


def main() -> Dict[str, object]:
    data = generate()
    print(f"Merkle Root: {data['root']}")

    for item in data["proofs"]:
        print(f"\nAddress {item['input']} ({item['address']}) is whitelisted: {item['whitelisted']}")
        print("Proof:", "[" + ", ".join(item["proof"]) + "]")
        print("\n// Solidity")
        print(solidity_snippet(item["address"], item["proof"]))
    return data


if __name__ == "__main__":
    setup_logging(level="WARNING", json_format=False)
    main()
