import json
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional

from standard_merkle import StandardMerkleTree, tron_to_evm_address
from standard_merkle.logging_config import get_logger, set_correlation_id, setup_logging

logger = get_logger(__name__)

# --- CONFIGURATION ---

# Leaves are keccak256(keccak256(abi.encode(...))), not Settlement._calculateTxHash
# (single keccak256 over abi.encodePacked). Roots and proofs printed here do not
# verify against the deployed Settlement contract.

TRON_SENDER = "TKWvD71EMFTpFVGZyqqX9fC6MQgcR9H76M"
TRON_RECIPIENT = "TFZMxv9HUzvsL3M7obrvikSQkuvJsopgMU"

BATCH_ID = 1
BATCH_SALT = 1  # Salt used by backend to build merkle root
TOKEN_DECIMALS = 6  # e.g. TRC20 USDT has 6 decimals

# from, to, amount, nonce, timestamp, recipientCount, txType, batchSalt
# IMPORTANT: batchId is NOT included.
TX_LEAF_ENCODING = ["address", "address", "uint256", "uint64", "uint48", "uint32", "uint8", "uint64"]

# --- TYPES ---

class TxType(IntEnum):
    DELAYED = 0
    INSTANT = 1
    BATCHED = 2
    FREE_TIER = 3

@dataclass
class TransferData:
    from_address: str
    to_address: str
    amount: int
    nonce: int
    timestamp: int
    recipient_count: int
    batch_id: int       # keep for off-chain grouping and on-chain params, but not hashed
    tx_type: int
    batch_salt: int     # uint64 salt used by backend to build merkle root

    def leaf_values(self) -> List[Any]:
        return [
            self.from_address,
            self.to_address,
            self.amount,
            self.nonce,
            self.timestamp,
            self.recipient_count,
            int(self.tx_type),
            self.batch_salt,
        ]

# --- GENERATION ---

def generate_test_transactions(base_timestamp: Optional[int] = None) -> List[TransferData]:
    SENDER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
    RECIPIENT_1 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
    RECIPIENT_2 = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
    RANDOM_ADDR = "0x1234567890123456789012345678901234567890"
    ZERO_ADDR = "0x0000000000000000000000000000000000000000"

    if base_timestamp is None:
        base_timestamp = int(time.time())
    one_token = 10 ** TOKEN_DECIMALS

    txs: List[TransferData] = []

    for i in range(10):
        txs.append(TransferData(
            from_address=SENDER,
            to_address=RECIPIENT_1,
            amount=100 * one_token,
            nonce=i + 1,
            timestamp=base_timestamp + i,
            recipient_count=1,
            batch_id=BATCH_ID,
            tx_type=TxType.DELAYED,
            batch_salt=BATCH_SALT
        ))

    txs.append(TransferData(SENDER, RECIPIENT_1, 50 * one_token, 11, base_timestamp + 10, 1, BATCH_ID, TxType.FREE_TIER, BATCH_SALT))
    txs.append(TransferData(SENDER, RECIPIENT_2, 500 * one_token, 12, base_timestamp + 11, 5, BATCH_ID, TxType.BATCHED, BATCH_SALT))
    txs.append(TransferData(RANDOM_ADDR, RECIPIENT_1, 1_000_000_000 * one_token, 13, base_timestamp + 12, 1, BATCH_ID, TxType.INSTANT, BATCH_SALT))
    txs.append(TransferData(ZERO_ADDR, RECIPIENT_1, 100 * one_token, 14, base_timestamp + 13, 1, BATCH_ID, TxType.DELAYED, BATCH_SALT))
    # Tron sender/recipient, converted by stripping 0x41
    txs.append(TransferData(
        tron_to_evm_address(TRON_SENDER),
        tron_to_evm_address(TRON_RECIPIENT),
        30 * one_token, 15, base_timestamp + 14, 3, BATCH_ID, TxType.BATCHED, BATCH_SALT
    ))

    return txs

def generate_merkle_data(transactions: List[TransferData]) -> Dict[str, Any]:
    tree = StandardMerkleTree.of([tx.leaf_values() for tx in transactions], TX_LEAF_ENCODING)
    root = tree.root

    proofs_data = []
    for i, tx in enumerate(transactions):
        proof = tree.get_proof(i)
        proofs_data.append({
            'index': i,
            'transaction': tx,
            'tx_hash': '0x' + tree.leaf_hash(i).hex(),
            'proof': proof.hex(),
            'valid': tree.verify(i, proof)
        })

    logger.info("batch_root_generated", batch_id=BATCH_ID, tx_count=len(transactions), root='0x' + root.hex())

    return {
        'merkle_root': '0x' + root.hex(),
        'tx_count': len(transactions),
        'transactions': transactions,
        'proofs_data': proofs_data,
        'tree': tree,
    }

def print_results(data: Dict[str, Any]):
    print("=" * 80)
    print("MERKLE ROOT FOR BATCH")
    print("=" * 80)
    print(f"Merkle Root: {data['merkle_root']}")
    print(f"Transaction Count: {data['tx_count']}")

    for item in data['proofs_data']:
        tx = item['transaction']
        print(f"\n--- Transaction {item['index']} ---")
        print(f"Type: {TxType(tx.tx_type).name}")
        print(f"From: {tx.from_address}  To: {tx.to_address}")
        print(f"Amount: {tx.amount}  Nonce: {tx.nonce}  Timestamp: {tx.timestamp}")
        print(f"Recipient Count: {tx.recipient_count}  Batch Salt: {tx.batch_salt}")
        print(f"TX Hash: {item['tx_hash']}")
        print(f"Proof Valid: {item['valid']}")
        print(f"Proof: [{', '.join(item['proof'])}]")

def to_json(data: Dict[str, Any]) -> Dict[str, Any]:
    json_data = {
        'merkleRoot': data['merkle_root'],
        'txCount': data['tx_count'],
        'batchId': BATCH_ID,
        'batchSalt': BATCH_SALT,
        'transactions': [],
        'snapshot': data['tree'].dump(),
    }
    for item in data['proofs_data']:
        tx = item['transaction']
        json_data['transactions'].append({
            'index': item['index'],
            'type': TxType(tx.tx_type).name,
            'from': tx.from_address,
            'to': tx.to_address,
            'amount': str(tx.amount),  # uint256 (string for JSON safety)
            'nonce': tx.nonce,
            'timestamp': tx.timestamp,
            'recipientCount': tx.recipient_count,
            'batchId': tx.batch_id,  # present for contract calls, not part of tx hash
            'batchSalt': tx.batch_salt,
            'txHash': item['tx_hash'],
            'proof': item['proof'],
            'valid': item['valid']
        })
    return json_data

def save_json(data: Dict[str, Any], filename: str = 'merkle_data.json'):
    with open(filename, 'w') as f:
        json.dump(to_json(data), f, indent=2)
    print(f"\nData saved to: {filename}")

if __name__ == "__main__":
    setup_logging(level="INFO", json_format=False)
    set_correlation_id()
    transactions = generate_test_transactions()
    merkle_data = generate_merkle_data(transactions)
    print_results(merkle_data)
    save_json(merkle_data)
