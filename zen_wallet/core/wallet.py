import threading
from typing import Any, Callable, Dict, Optional, Sequence, Union

from zen_wallet.core.config import WalletConfig
from zen_wallet.core.exceptions import WalletError, RemoteAbsenceError, NoteLookupError
from zen_wallet.core.session import WalletSession
from zen_wallet.core.wallet_types import (
    AddressRecord, OperationResult, ScanKind, ScanResult, ShieldedNote, TrackedNote,
    SPENDING_KEY_LENGTH, DIVERSIFIER_LENGTH, KEY_COMPONENT_LENGTH, RCM_LENGTH
)
from zen_wallet.crypto.address import TransparentAddressCodec
from zen_wallet.crypto.key_derivation import KeyDerivationPipeline
from zen_wallet.crypto.nullifier import NullifierComputer
from zen_wallet.interfaces.signer import SpendAuthSigner
from zen_wallet.interfaces.zen_node import ZenNodeInterface, JsonRpcZenNode
from zen_wallet.recovery.note_rescanner import ShieldedNoteRescanner
from zen_wallet.services.scanner import NoteScanner
from zen_wallet.services.submission import ShieldedTransactionSubmitter
from zen_wallet.services.transaction import TransactionAssembler
from zen_wallet.services.vouchers import VoucherBatchFetcher
from zen_wallet.storage.note_store import ShieldedNoteStore
from zen_wallet.utils.helpers import decode_memo
from zen_wallet.utils.validation import parse_hex, require_length, validate_amount, validate_memo
from zen_wallet.utils.logging import logger, setup_logging, AuditEventType

HexOrBytes = Union[str, bytes]

def _as_bytes(value: HexOrBytes, length: int, name: str) -> bytes:
    if isinstance(value, bytes):
        return require_length(value, length, name)
    return parse_hex(value, length, name)

class ZenWallet:
    """Shielded wallet operations behind a single login session.

    Every public operation returns an OperationResult (ScanResult for
    scans) instead of raising.
    """

    def __init__(self, config: Optional[WalletConfig] = None,
                 node: Optional[ZenNodeInterface] = None,
                 spend_auth_signer: Optional[SpendAuthSigner] = None,
                 configure_logging: bool = True):
        self.config = config or WalletConfig()
        if configure_logging:
            setup_logging(self.config.log_level, self.config.log_file, self.config.log_format)

        self.node = node or JsonRpcZenNode(self.config.node_url, self.config.rpc_timeout)
        self.address_codec = TransparentAddressCodec(self.config.address_prefix)
        self.session = WalletSession(self.address_codec)
        self.store = ShieldedNoteStore()

        self.pipeline = KeyDerivationPipeline(self.node, self.config.shielded_hrp)
        self.voucher_fetcher = VoucherBatchFetcher(self.node)
        self.submitter = ShieldedTransactionSubmitter(self.node, self.session, spend_auth_signer)
        self.assembler = TransactionAssembler(
            self.store, self.voucher_fetcher, self.pipeline, self.node,
            self.address_codec, self.submitter
        )
        self.scanner = NoteScanner(self.node, self.pipeline)
        self.nullifier_computer = NullifierComputer(self.store, self.voucher_fetcher, self.pipeline, self.node)
        self.rescanner = ShieldedNoteRescanner(self.store, self.scanner, self.node, self.config)

        self._state_lock = threading.RLock()

    def _run(self, operation: str, action: Callable[[], Any], gated: bool = True) -> OperationResult:
        try:
            if gated:
                self.session.require_active(operation)
            return OperationResult.ok(action())
        except WalletError as e:
            logger.error(f"{operation} failed: {e}", error_type=type(e).__name__)
            return OperationResult.fail(str(e), type(e).__name__)
        except Exception as e:
            logger.exception(f"Unexpected error in {operation}: {e}")
            return OperationResult.fail(str(e), type(e).__name__)

    def _scan(self, kind: ScanKind, start_height: int, end_height: int,
              action: Callable[[], ScanResult]) -> ScanResult:
        try:
            self.session.require_active("Note scan")
            return action()
        except WalletError as e:
            logger.error(f"{kind.value} scan failed: {e}", error_type=type(e).__name__)
            return self._failed_scan(kind, start_height, end_height, e)
        except Exception as e:
            logger.exception(f"Unexpected error in {kind.value} scan: {e}")
            return self._failed_scan(kind, start_height, end_height, e)

    @staticmethod
    def _failed_scan(kind: ScanKind, start_height, end_height, error: Exception) -> ScanResult:
        return ScanResult(
            kind=kind,
            start_height=start_height,
            end_height=end_height,
            success=False,
            error=str(error),
            error_type=type(error).__name__,
        )

    # Session

    def login(self, account_address: str, private_key: HexOrBytes) -> OperationResult:
        def action():
            key = _as_bytes(private_key, 32, "private key")
            with self._state_lock:
                session_id = self.session.login(account_address, key)
            logger.audit(AuditEventType.SESSION_LOGIN, session_id=session_id, account=account_address)
            return session_id
        return self._run("Login", action, gated=False)

    def logout(self) -> OperationResult:
        def action():
            session_id = self.session.session_id
            with self._state_lock:
                self.rescanner.stop()
                closed = self.session.logout()
            if closed:
                logger.audit(AuditEventType.SESSION_LOGOUT, session_id=session_id)
            return closed
        return self._run("Logout", action, gated=False)

    # Addresses and notes

    def _register_address(self, record: Optional[AddressRecord]) -> AddressRecord:
        if record is None:
            raise RemoteAbsenceError("Node could not derive a valid shielded address")

        logger.add_sensitive_data(record.sk.hex())
        self.store.add_address(record)
        logger.audit(
            AuditEventType.SHIELDED_ADDRESS_CREATED,
            session_id=self.session.session_id,
            payment_address=record.payment_address
        )
        return record

    def get_new_shielded_address(self) -> OperationResult:
        return self._run(
            "Shielded address generation",
            lambda: self._register_address(self.pipeline.generate_address())
        )

    def get_new_shielded_address_by_sk_and_d(self, sk: HexOrBytes, d: HexOrBytes) -> OperationResult:
        def action():
            sk_bytes = _as_bytes(sk, SPENDING_KEY_LENGTH, "spending key")
            d_bytes = _as_bytes(d, DIVERSIFIER_LENGTH, "diversifier")
            record = self._register_address(self.pipeline.derive_address(sk_bytes, d_bytes))
            # An imported key may own notes in blocks the rescanner already passed
            if self.rescanner.progress.next_height > self.config.rescan_start_height:
                self.store.request_reset()
            return record
        return self._run("Shielded address import", action)

    def import_shielded_note(self, txid: str, output_index: int, payment_address: str,
                             value: int, rcm: HexOrBytes, memo: bytes = b"") -> OperationResult:
        """Track a note received outside of scanning, returning its index"""
        def action():
            if not self.store.has_address(payment_address):
                raise NoteLookupError(f"No address record for {payment_address}")

            note = TrackedNote(
                payment_address=payment_address,
                value=validate_amount(value, "value"),
                rcm=_as_bytes(rcm, RCM_LENGTH, "rcm"),
                memo=validate_memo(memo),
                source_txid=txid,
                output_index=output_index,
            )
            index = self.store.add_note(note)
            logger.info(f"Imported note {txid}:{output_index} as index {index}")
            return index
        return self._run("Shielded note import", action)

    def list_shielded_addresses(self) -> OperationResult:
        return self._run(
            "List shielded addresses",
            lambda: [record.to_dict() for record in self.store.addresses()]
        )

    def list_shielded_notes(self) -> OperationResult:
        def action():
            return [{
                'index': index,
                'txid': note.source_txid,
                'output_index': note.output_index,
                'payment_address': note.payment_address,
                'value': note.value,
                'memo': decode_memo(note.memo),
            } for index, note in self.store.notes()]
        return self._run("List shielded notes", action)

    def reset_shielded_notes(self) -> OperationResult:
        def action():
            self.store.request_reset()
            logger.audit(AuditEventType.SHIELDED_NOTES_RESET, session_id=self.session.session_id)
            return True
        return self._run("Shielded note reset", action)

    # Scanning

    def scan_note_by_ivk(self, ivk: HexOrBytes, start_height: int, end_height: int) -> ScanResult:
        return self._scan(
            ScanKind.INCOMING, start_height, end_height,
            lambda: self.scanner.scan_by_incoming_key(
                _as_bytes(ivk, KEY_COMPONENT_LENGTH, "ivk"), start_height, end_height
            )
        )

    def scan_and_mark_note_by_address(self, payment_address: str,
                                      start_height: int, end_height: int) -> ScanResult:
        def action():
            record = self.store.get_address(payment_address)
            if record is None:
                raise NoteLookupError(f"No address record for {payment_address}")
            return self.scanner.scan_and_mark(record, start_height, end_height)
        return self._scan(ScanKind.INCOMING_MARKED, start_height, end_height, action)

    def scan_note_by_ovk(self, ovk: HexOrBytes, start_height: int, end_height: int) -> ScanResult:
        return self._scan(
            ScanKind.OUTGOING, start_height, end_height,
            lambda: self.scanner.scan_by_outgoing_key(
                _as_bytes(ovk, KEY_COMPONENT_LENGTH, "ovk"), start_height, end_height
            )
        )

    # Transfers

    def _send(self, operation: str, withhold: bool, from_address: Optional[str], from_amount: int,
              input_indices: Sequence[int], output_notes: Sequence[ShieldedNote],
              to_address: Optional[str], to_amount: int) -> OperationResult:
        def action():
            txid = self.assembler.send(
                from_address, from_amount, to_address, to_amount,
                list(input_indices), list(output_notes), withhold
            )
            if txid is None:
                raise RemoteAbsenceError("Shielded transaction was not broadcast")

            logger.audit(
                AuditEventType.SHIELDED_TRANSFER_SENT,
                session_id=self.session.session_id,
                txid=txid,
                spends=len(input_indices),
                receives=len(output_notes),
                withheld=withhold
            )
            return txid
        return self._run(operation, action)

    def send_shielded_coin(self, from_address: Optional[str], from_amount: int,
                           input_indices: Sequence[int], output_notes: Sequence[ShieldedNote],
                           to_address: Optional[str], to_amount: int) -> OperationResult:
        return self._send("Shielded transfer", False, from_address, from_amount,
                          input_indices, output_notes, to_address, to_amount)

    def send_shielded_coin_without_ask(self, from_address: Optional[str], from_amount: int,
                                       input_indices: Sequence[int], output_notes: Sequence[ShieldedNote],
                                       to_address: Optional[str], to_amount: int) -> OperationResult:
        return self._send("Shielded transfer without ask", True, from_address, from_amount,
                          input_indices, output_notes, to_address, to_amount)

    def get_shielded_nullifier(self, index: int) -> OperationResult:
        return self._run("Nullifier lookup", lambda: self.nullifier_computer.nullifier_for(index).hex())

    # Background rescanning

    def start_rescanner(self) -> OperationResult:
        return self._run("Start rescanner", self.rescanner.start)

    def stop_rescanner(self) -> OperationResult:
        return self._run("Stop rescanner", self.rescanner.stop)

    def get_status(self) -> Dict[str, Any]:
        return {
            'session': self.session.get_info(),
            'store': self.store.get_stats(),
            'rescanner': self.rescanner.get_status(),
            'network': self.config.network,
        }

    def close(self) -> None:
        self.rescanner.stop()
        self.session.logout()
