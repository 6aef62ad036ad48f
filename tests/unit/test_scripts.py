"""
Tests for the caller scripts under contracts/script/merkle.
"""

import json

import pytest
from eth_abi import encode
from eth_utils import keccak
from web3 import Web3

from standard_merkle import StandardMerkleTree, loads, verify


class TestGenerateMerkle:
    """Sample tree dump and proof script."""

    @pytest.fixture
    def script(self, load_script):
        return load_script("generateMerkle.py")

    def test_generate(self, script):
        data = script.generate()
        tree = StandardMerkleTree.load(data["dump"])

        assert data["index"] == 0
        assert data["root"] == "0x" + tree.root.hex()
        assert data["leaf"] == "0x" + tree.leaf_hash(0).hex()
        assert verify(data["leaf"], data["proof"], data["root"], tree_size=len(script.INPUTS))

    def test_target_missing(self, script):
        data = script.generate(target="0x0000000000000000000000000000000000000001")
        assert data["index"] is None
        assert data["proof"] is None

    def test_main_output(self, script, capsys):
        data = script.main()
        out = capsys.readouterr().out.splitlines()

        assert out[0] == "Generating merkle"
        assert json.loads(out[1])["root"] == data["root"]
        assert out[2] == "I: 0"
        assert f"ROOT: {data['root']}" in out
        assert f"LEAF {data['leaf']}" in out


class TestWhitelistRoot:
    """Whitelist root script."""

    @pytest.fixture
    def script(self, load_script):
        return load_script("whitelist/generateRoot.py")

    def test_all_whitelisted(self, script):
        data = script.generate()

        assert len(data["proofs"]) == len(script.WHITELIST)
        assert all(item["whitelisted"] for item in data["proofs"])

    def test_tron_inputs_converted(self, script):
        data = script.generate()
        tron = [item for item in data["proofs"] if item["input"].startswith("T")]

        assert tron
        assert all(item["address"].startswith("0x") for item in tron)

    def test_solidity_snippet(self, script):
        addr = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
        snippet = script.solidity_snippet(addr, ["0x" + "11" * 32, "0x" + "22" * 32])
        lines = snippet.splitlines()

        assert lines[0] == "PROOF_70997970C51812DC3A010C7D01B50E0D17DC79C8 = new bytes32[](2);"
        assert lines[2] == "PROOF_70997970C51812DC3A010C7D01B50E0D17DC79C8[1] = 0x" + "22" * 32 + ";"

    def test_main(self, script, capsys):
        data = script.main()
        assert f"Merkle Root: {data['root']}" in capsys.readouterr().out


class TestBatchRoot:
    """Settlement batch root script."""

    @pytest.fixture
    def script(self, load_script):
        return load_script("batch/generateBatchRoot.py")

    @pytest.fixture
    def data(self, script):
        return script.generate_merkle_data(script.generate_test_transactions(base_timestamp=1_700_000_000))

    def test_all_proofs_valid(self, data):
        assert data["tx_count"] == 15
        assert all(item["valid"] for item in data["proofs_data"])

    def test_batch_id_not_hashed(self, script):
        txs = script.generate_test_transactions(base_timestamp=1_700_000_000)
        root = script.generate_merkle_data(txs)["merkle_root"]
        for tx in txs:
            tx.batch_id = 99
        assert script.generate_merkle_data(txs)["merkle_root"] == root

    def test_leaf_is_double_hashed_abi_encoding(self, script, data):
        """Batch leaves are not the packed single hash Settlement computes."""
        tree = data["tree"]
        values = list(tree.at(0))
        expected = keccak(keccak(encode(script.TX_LEAF_ENCODING, values)))

        assert tree.leaf_hash(0) == expected
        assert tree.leaf_hash(0) != bytes(Web3.solidity_keccak(script.TX_LEAF_ENCODING, values))

    def test_salt_is_hashed(self, script):
        txs = script.generate_test_transactions(base_timestamp=1_700_000_000)
        root = script.generate_merkle_data(txs)["merkle_root"]
        for tx in txs:
            tx.batch_salt = 2
        assert script.generate_merkle_data(txs)["merkle_root"] != root

    def test_save_json(self, script, data, tmp_path):
        path = tmp_path / "merkle_data.json"
        script.save_json(data, str(path))
        saved = json.loads(path.read_text())

        assert saved["merkleRoot"] == data["merkle_root"]
        assert len(saved["transactions"]) == 15
        restored = loads(json.dumps(saved["snapshot"]))
        assert "0x" + restored.root.hex() == saved["merkleRoot"]

    def test_print_results(self, script, data, capsys):
        script.print_results(data)
        out = capsys.readouterr().out
        assert data["merkle_root"] in out
        assert "Proof Valid: True" in out
