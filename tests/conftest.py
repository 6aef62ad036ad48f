"""
Pytest configuration and shared fixtures for standard-merkle tests.
"""

import importlib.util
import sys
from pathlib import Path

import pytest

from standard_merkle import StandardMerkleTree


REPO_ROOT = Path(__file__).resolve().parent.parent
SCRIPTS_DIR = REPO_ROOT / "contracts" / "script" / "merkle"

LEAF_ENCODING = ["address", "uint256"]

SAMPLE_ENTRIES = [
    ["0x7Ac410F4E36873022b57821D7a8EB3D7513C045a", 666],
    ["0x2222222222222222222222222222222222222222", 123],
    ["0x4762F7AcDFF1A245033e2C13B879acA14b71B2B5", 66],
    ["0x58EA6e8e439caCaFBc99b1BFE2a4efdd4EBd0fC2", 55],
    ["0x82cf634e280b5D6D2201d6393848fe301CAeBF9F", 44],
    ["0x0c6F15f85e7f7831081A61DC310F432A958C844C", 22],
    ["0xfec633035B92eF260f134a768C18aF11A311f713", 33],
]


@pytest.fixture
def sample_entries():
    """Seven (address, uint256) entries; an odd count exercises node promotion."""
    return [list(e) for e in SAMPLE_ENTRIES]


@pytest.fixture
def sample_tree(sample_entries):
    """Tree built from sample_entries."""
    return StandardMerkleTree.of(sample_entries, LEAF_ENCODING)


@pytest.fixture
def load_script():
    """Import a caller script from contracts/script/merkle by relative path."""
    def _load(relative_path: str):
        path = SCRIPTS_DIR / relative_path
        spec = importlib.util.spec_from_file_location(f"merkle_script_{path.stem}", path)
        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module
        spec.loader.exec_module(module)
        return module
    return _load
