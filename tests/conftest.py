"""
Shared fixtures: a deterministic in-memory node and wired-up services.
"""

import hashlib
import json
import secrets
from typing import Any, Dict, List, Optional, Sequence

import base58
import pytest

from zen_wallet.core.config import WalletConfig
from zen_wallet.core.wallet import ZenWallet
from zen_wallet.core.wallet_types import (
    ExpandedSpendingKey, MerkleVoucher, ShieldedNote, DecryptedNote, TrackedNote
)
from zen_wallet.crypto.address import TransparentAddressCodec
from zen_wallet.crypto.key_derivation import KeyDerivationPipeline
from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.services.vouchers import VoucherBatchFetcher
from zen_wallet.storage.note_store import ShieldedNoteStore


def _h(tag: bytes, *parts: bytes) -> bytes:
    return hashlib.sha256(tag + b"".join(parts)).digest()


class FakeZenNode(ZenNodeInterface):
    """Hash-based stand-in for the node's shielded primitives"""

    def __init__(self):
        self.calls: List[tuple] = []
        self.absent = set()
        self.voucher_shortfall = 0
        self.broadcast_ok = True
        self.height = 0
        self.scan_notes: List[DecryptedNote] = []
        self.broadcasts: List[Dict[str, Any]] = []
        self.created: List[Dict[str, Any]] = []
        self._counter = 0

    def _record(self, method: str, *args) -> bool:
        self.calls.append((method, args))
        return method not in self.absent

    def calls_to(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    def get_spending_key(self) -> Optional[bytes]:
        if not self._record('get_spending_key'):
            return None
        self._counter += 1
        return _h(b'sk', self._counter.to_bytes(4, 'big'))

    def get_diversifier(self) -> Optional[bytes]:
        if not self._record('get_diversifier'):
            return None
        self._counter += 1
        return _h(b'd', self._counter.to_bytes(4, 'big'))[:11]

    def get_expanded_spending_key(self, sk: bytes) -> Optional[ExpandedSpendingKey]:
        if not self._record('get_expanded_spending_key', sk):
            return None
        return ExpandedSpendingKey(ask=_h(b'ask', sk), nsk=_h(b'nsk', sk), ovk=_h(b'ovk', sk))

    def get_ak_from_ask(self, ask: bytes) -> Optional[bytes]:
        if not self._record('get_ak_from_ask', ask):
            return None
        return _h(b'ak', ask)

    def get_nk_from_nsk(self, nsk: bytes) -> Optional[bytes]:
        if not self._record('get_nk_from_nsk', nsk):
            return None
        return _h(b'nk', nsk)

    def get_incoming_viewing_key(self, ak: bytes, nk: bytes) -> Optional[bytes]:
        if not self._record('get_incoming_viewing_key', ak, nk):
            return None
        return _h(b'ivk', ak, nk)

    def get_zen_payment_address(self, d: bytes, ivk: bytes) -> Optional[bytes]:
        if not self._record('get_zen_payment_address', d, ivk):
            return None
        return _h(b'pkd', d, ivk)

    def get_rcm(self) -> Optional[bytes]:
        if not self._record('get_rcm'):
            return None
        return secrets.token_bytes(32)

    def get_merkle_tree_voucher_info(self, outpoints: Sequence[tuple]) -> Optional[List[MerkleVoucher]]:
        if not self._record('get_merkle_tree_voucher_info', list(outpoints)):
            return None
        vouchers = [
            MerkleVoucher(
                voucher={'txid': txid, 'index': index, 'rt': _h(b'rt').hex()},
                path=_h(b'path', txid.encode(), bytes([index])),
            )
            for txid, index in outpoints
        ]
        return vouchers[:len(vouchers) - self.voucher_shortfall]

    def scan_note_by_ivk(self, ivk, start_height, end_height):
        if not self._record('scan_note_by_ivk', ivk, start_height, end_height):
            return None
        return list(self.scan_notes)

    def scan_and_mark_note_by_ivk(self, ivk, ak, nk, start_height, end_height):
        if not self._record('scan_and_mark_note_by_ivk', ivk, ak, nk, start_height, end_height):
            return None
        return list(self.scan_notes)

    def scan_note_by_ovk(self, ovk, start_height, end_height):
        if not self._record('scan_note_by_ovk', ovk, start_height, end_height):
            return None
        return list(self.scan_notes)

    def create_shielded_nullifier(self, note, voucher, ak, nk) -> Optional[bytes]:
        if not self._record('create_shielded_nullifier', note, voucher, ak, nk):
            return None
        return _h(b'nf', note.rcm, ak, nk)

    def _transaction(self, method: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self._record(method, params):
            return None
        self.created.append(params)
        txid = hashlib.sha256(json.dumps(params, sort_keys=True).encode()).hexdigest()
        return {'txID': txid, 'raw_data': {'contract': [{'parameter': params}]}}

    def create_shielded_transaction(self, params):
        return self._transaction('create_shielded_transaction', params)

    def create_shielded_transaction_without_spend_auth_sig(self, params):
        return self._transaction('create_shielded_transaction_without_spend_auth_sig', params)

    def create_spend_auth_sig(self, ask, tx_hash, alpha) -> Optional[bytes]:
        if not self._record('create_spend_auth_sig', ask, tx_hash, alpha):
            return None
        return _h(b'sig', ask, tx_hash, alpha) + _h(b'sig2', alpha)

    def attach_spend_auth_sigs(self, transaction, signatures):
        if not self._record('attach_spend_auth_sigs', transaction, signatures):
            return None
        signed = dict(transaction)
        signed['spend_authority_signatures'] = [signature.hex() for signature in signatures]
        signed['txID'] = _h(b'tx', bytes.fromhex(transaction['txID']), *signatures).hex()
        return signed

    def broadcast_transaction(self, transaction) -> bool:
        if not self._record('broadcast_transaction', transaction):
            return False
        self.broadcasts.append(transaction)
        return self.broadcast_ok

    def get_block_height(self) -> Optional[int]:
        if not self._record('get_block_height'):
            return None
        return self.height


def make_transparent_address(seed: int = 1, prefix: int = 0x41) -> str:
    return base58.b58encode_check(bytes([prefix]) + _h(b'acct', bytes([seed]))[:20]).decode()


@pytest.fixture
def node():
    return FakeZenNode()


@pytest.fixture
def config():
    return WalletConfig(network="mainnet", scan_batch_size=100, rescan_interval=1)


@pytest.fixture
def store():
    return ShieldedNoteStore()


@pytest.fixture
def pipeline(node):
    return KeyDerivationPipeline(node)


@pytest.fixture
def fetcher(node):
    return VoucherBatchFetcher(node)


@pytest.fixture
def address_codec():
    return TransparentAddressCodec(0x41)


@pytest.fixture
def account():
    """Transparent account for tests (DO NOT use in production)."""
    return {
        'address': make_transparent_address(1),
        'private_key': _h(b'account-key'),
    }


@pytest.fixture
def record(pipeline, store):
    """Address record known to the store"""
    address_record = pipeline.generate_address()
    store.add_address(address_record)
    return address_record


def make_note(record, txid_seed: int, value: int = 1000, output_index: int = 0) -> TrackedNote:
    return TrackedNote(
        payment_address=record.payment_address,
        value=value,
        rcm=_h(b'rcm', bytes([txid_seed])),
        memo=b'memo'.ljust(512, b'\x00'),
        source_txid=_h(b'txid', bytes([txid_seed])).hex(),
        output_index=output_index,
    )


@pytest.fixture
def output_note():
    return ShieldedNote(
        payment_address="ztron1recipient",
        value=500,
        rcm=_h(b'out-rcm'),
        memo=b'',
    )


@pytest.fixture
def wallet(node, config, account):
    """Logged-in wallet over the fake node"""
    zen_wallet = ZenWallet(config=config, node=node, configure_logging=False)
    assert zen_wallet.login(account['address'], account['private_key'])
    yield zen_wallet
    zen_wallet.close()


@pytest.fixture
def note_factory():
    return make_note


@pytest.fixture
def transparent_address():
    return make_transparent_address
