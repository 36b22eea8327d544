import requests
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from zen_wallet.core.wallet_types import (
    ExpandedSpendingKey, MerkleVoucher, ShieldedNote, DecryptedNote
)
from zen_wallet.utils.logging import logger

Outpoint = Tuple[str, int]

class ZenNodeInterface(ABC):
    """Remote shielded primitives offered by a full node.

    Every call is a blocking round-trip. ``None`` (or ``False`` for
    broadcasts) means the node returned no result.
    """

    @abstractmethod
    def get_spending_key(self) -> Optional[bytes]:
        """Fresh random spending key"""
        pass

    @abstractmethod
    def get_diversifier(self) -> Optional[bytes]:
        """Fresh valid diversifier"""
        pass

    @abstractmethod
    def get_expanded_spending_key(self, sk: bytes) -> Optional[ExpandedSpendingKey]:
        """Expand a spending key into ask, nsk and ovk"""
        pass

    @abstractmethod
    def get_ak_from_ask(self, ask: bytes) -> Optional[bytes]:
        pass

    @abstractmethod
    def get_nk_from_nsk(self, nsk: bytes) -> Optional[bytes]:
        pass

    @abstractmethod
    def get_incoming_viewing_key(self, ak: bytes, nk: bytes) -> Optional[bytes]:
        pass

    @abstractmethod
    def get_zen_payment_address(self, d: bytes, ivk: bytes) -> Optional[bytes]:
        """pk_d of the payment address for (d, ivk)"""
        pass

    @abstractmethod
    def get_rcm(self) -> Optional[bytes]:
        """Random scalar for commitments and spend re-randomization"""
        pass

    @abstractmethod
    def get_merkle_tree_voucher_info(self, outpoints: Sequence[Outpoint]) -> Optional[List[MerkleVoucher]]:
        """Vouchers and paths for note commitments, in request order"""
        pass

    @abstractmethod
    def scan_note_by_ivk(self, ivk: bytes, start_height: int, end_height: int) -> Optional[List[DecryptedNote]]:
        pass

    @abstractmethod
    def scan_and_mark_note_by_ivk(self, ivk: bytes, ak: bytes, nk: bytes,
                                  start_height: int, end_height: int) -> Optional[List[DecryptedNote]]:
        pass

    @abstractmethod
    def scan_note_by_ovk(self, ovk: bytes, start_height: int, end_height: int) -> Optional[List[DecryptedNote]]:
        pass

    @abstractmethod
    def create_shielded_nullifier(self, note: ShieldedNote, voucher: Dict[str, Any],
                                  ak: bytes, nk: bytes) -> Optional[bytes]:
        pass

    @abstractmethod
    def create_shielded_transaction(self, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Build and prove a transfer whose parameters carry ask"""
        pass

    @abstractmethod
    def create_shielded_transaction_without_spend_auth_sig(self, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Build and prove a transfer whose parameters carry ak instead of ask"""
        pass

    @abstractmethod
    def create_spend_auth_sig(self, ask: bytes, tx_hash: bytes, alpha: bytes) -> Optional[bytes]:
        pass

    @abstractmethod
    def attach_spend_auth_sigs(self, transaction: Dict[str, Any],
                               signatures: List[bytes]) -> Optional[Dict[str, Any]]:
        """Transaction with spend authority signatures in spend order and a refreshed txID"""
        pass

    @abstractmethod
    def broadcast_transaction(self, transaction: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def get_block_height(self) -> Optional[int]:
        """Height of the node's latest block"""
        pass

class JsonRpcZenNode(ZenNodeInterface):
    """JSON-RPC 2.0 client for a node exposing the shielded wallet API"""

    def __init__(self, api_url: str, timeout: int = 30):
        self.api_url = api_url
        self.timeout = timeout
        self.session: Optional[requests.Session] = None
        self._request_id = 0

    def _make_api_call(self, method: str, params: Optional[Dict] = None) -> Optional[Any]:
        """Make API call to the node, returning its result or None"""
        if self.session is None:
            self.session = requests.Session()
            self.session.headers.update({
                'Content-Type': 'application/json',
                'User-Agent': 'ZenWallet/1.0'
            })

        self._request_id += 1
        payload = {
            'jsonrpc': '2.0',
            'id': self._request_id,
            'method': method,
            'params': params or {}
        }

        try:
            response = self.session.post(self.api_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.error(f"API call {method} failed: {e}")
            return None
        except ValueError as e:
            logger.error(f"API call {method} returned invalid JSON: {e}")
            return None

        if not isinstance(body, dict):
            logger.error(f"API call {method} returned a non-object response")
            return None
        if body.get('error'):
            logger.error(f"API call {method} returned error: {body['error']}")
            return None
        return body.get('result')

    def _bytes_result(self, method: str, params: Optional[Dict], key: str = 'value') -> Optional[bytes]:
        result = self._make_api_call(method, params)
        if not isinstance(result, dict) or not result.get(key):
            return None
        try:
            return bytes.fromhex(result[key])
        except (TypeError, ValueError):
            logger.error(f"API call {method} returned malformed {key}")
            return None

    def _notes_result(self, method: str, params: Dict) -> Optional[List[DecryptedNote]]:
        result = self._make_api_call(method, params)
        if not isinstance(result, dict):
            return None

        notes = []
        try:
            for note_tx in result.get('noteTxs') or []:
                if not isinstance(note_tx, dict):
                    raise TypeError(f"note entry is {type(note_tx).__name__}, not an object")
                is_spent = note_tx.get('is_spend')
                notes.append(DecryptedNote(
                    note=ShieldedNote.from_params(note_tx['note']),
                    txid=note_tx['txid'],
                    index=int(note_tx.get('index', 0)),
                    is_spent=bool(is_spent) if is_spent is not None else None,
                ))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"API call {method} returned malformed notes: {e}")
            return None
        return notes

    def get_spending_key(self) -> Optional[bytes]:
        return self._bytes_result('getspendingkey', None)

    def get_diversifier(self) -> Optional[bytes]:
        return self._bytes_result('getdiversifier', None, key='d')

    def get_expanded_spending_key(self, sk: bytes) -> Optional[ExpandedSpendingKey]:
        result = self._make_api_call('getexpandedspendingkey', {'value': sk.hex()})
        if not isinstance(result, dict):
            return None
        try:
            return ExpandedSpendingKey(
                ask=bytes.fromhex(result['ask']),
                nsk=bytes.fromhex(result['nsk']),
                ovk=bytes.fromhex(result['ovk']),
            )
        except (KeyError, TypeError, ValueError):
            logger.error("API call getexpandedspendingkey returned malformed key")
            return None

    def get_ak_from_ask(self, ask: bytes) -> Optional[bytes]:
        return self._bytes_result('getakfromask', {'value': ask.hex()})

    def get_nk_from_nsk(self, nsk: bytes) -> Optional[bytes]:
        return self._bytes_result('getnkfromnsk', {'value': nsk.hex()})

    def get_incoming_viewing_key(self, ak: bytes, nk: bytes) -> Optional[bytes]:
        return self._bytes_result('getincomingviewingkey', {'ak': ak.hex(), 'nk': nk.hex()}, key='ivk')

    def get_zen_payment_address(self, d: bytes, ivk: bytes) -> Optional[bytes]:
        return self._bytes_result('getzenpaymentaddress', {'d': d.hex(), 'ivk': ivk.hex()}, key='pkD')

    def get_rcm(self) -> Optional[bytes]:
        return self._bytes_result('getrcm', None)

    def get_merkle_tree_voucher_info(self, outpoints: Sequence[Outpoint]) -> Optional[List[MerkleVoucher]]:
        params = {'out_points': [{'hash': txid, 'index': index} for txid, index in outpoints]}
        result = self._make_api_call('getmerkletreevoucherinfo', params)
        if not isinstance(result, dict):
            return None

        vouchers = result.get('vouchers', [])
        paths = result.get('paths', [])
        if len(vouchers) != len(paths):
            logger.error(f"Voucher info has {len(vouchers)} vouchers but {len(paths)} paths")
            return None
        try:
            return [MerkleVoucher(voucher=voucher, path=bytes.fromhex(path))
                    for voucher, path in zip(vouchers, paths)]
        except (TypeError, ValueError):
            logger.error("API call getmerkletreevoucherinfo returned malformed paths")
            return None

    def scan_note_by_ivk(self, ivk: bytes, start_height: int, end_height: int) -> Optional[List[DecryptedNote]]:
        return self._notes_result('scannotebyivk', {
            'start_block_index': start_height,
            'end_block_index': end_height,
            'ivk': ivk.hex(),
        })

    def scan_and_mark_note_by_ivk(self, ivk: bytes, ak: bytes, nk: bytes,
                                  start_height: int, end_height: int) -> Optional[List[DecryptedNote]]:
        return self._notes_result('scanandmarknotebyivk', {
            'start_block_index': start_height,
            'end_block_index': end_height,
            'ivk': ivk.hex(),
            'ak': ak.hex(),
            'nk': nk.hex(),
        })

    def scan_note_by_ovk(self, ovk: bytes, start_height: int, end_height: int) -> Optional[List[DecryptedNote]]:
        return self._notes_result('scannotebyovk', {
            'start_block_index': start_height,
            'end_block_index': end_height,
            'ovk': ovk.hex(),
        })

    def create_shielded_nullifier(self, note: ShieldedNote, voucher: Dict[str, Any],
                                  ak: bytes, nk: bytes) -> Optional[bytes]:
        return self._bytes_result('createshieldednullifier', {
            'note': note.to_params(),
            'voucher': voucher,
            'ak': ak.hex(),
            'nk': nk.hex(),
        })

    def create_shielded_transaction(self, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self._make_api_call('createshieldedtransaction', params)
        return result if isinstance(result, dict) else None

    def create_shielded_transaction_without_spend_auth_sig(self, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self._make_api_call('createshieldedtransactionwithoutspendauthsig', params)
        return result if isinstance(result, dict) else None

    def create_spend_auth_sig(self, ask: bytes, tx_hash: bytes, alpha: bytes) -> Optional[bytes]:
        return self._bytes_result('createspendauthsig', {
            'ask': ask.hex(),
            'tx_hash': tx_hash.hex(),
            'alpha': alpha.hex(),
        })

    def attach_spend_auth_sigs(self, transaction: Dict[str, Any],
                               signatures: List[bytes]) -> Optional[Dict[str, Any]]:
        result = self._make_api_call('attachspendauthsigs', {
            'transaction': transaction,
            'signatures': [signature.hex() for signature in signatures],
        })
        return result if isinstance(result, dict) else None

    def broadcast_transaction(self, transaction: Dict[str, Any]) -> bool:
        result = self._make_api_call('broadcasttransaction', transaction)
        return bool(isinstance(result, dict) and result.get('result'))

    def get_block_height(self) -> Optional[int]:
        result = self._make_api_call('getnowblock', None)
        if not isinstance(result, dict):
            return None
        try:
            return int(result['block_header']['raw_data']['number'])
        except (KeyError, TypeError, ValueError):
            logger.error("API call getnowblock returned malformed block")
            return None
