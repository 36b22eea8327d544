from typing import List, Optional

from zen_wallet.core.exceptions import WalletError
from zen_wallet.core.wallet_types import AddressRecord, DecryptedNote, ScanKind, ScanResult
from zen_wallet.crypto.key_derivation import KeyDerivationPipeline
from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.utils.helpers import describe_note
from zen_wallet.utils.validation import validate_block_range
from zen_wallet.utils.logging import logger

class NoteScanner:
    """Asks the node to trial-decrypt notes in a block range.

    Invalid ranges raise ScanRangeError before the node is contacted.
    Every other failure comes back as an unsuccessful ScanResult.
    """

    def __init__(self, node: ZenNodeInterface, pipeline: KeyDerivationPipeline):
        self.node = node
        self.pipeline = pipeline

    def scan_by_incoming_key(self, ivk: bytes, start_height: int, end_height: int) -> ScanResult:
        validate_block_range(start_height, end_height)
        notes = self.node.scan_note_by_ivk(ivk, start_height, end_height)
        return self._result(ScanKind.INCOMING, start_height, end_height, notes)

    def scan_and_mark(self, record: AddressRecord, start_height: int, end_height: int) -> ScanResult:
        """Incoming scan for a known address, with spent status per note"""
        validate_block_range(start_height, end_height)
        try:
            fvk = self.pipeline.full_viewing_key(record.sk)
        except WalletError as e:
            logger.error(f"Cannot derive viewing keys for {record.payment_address}: {e}")
            return ScanResult(
                kind=ScanKind.INCOMING_MARKED,
                start_height=start_height,
                end_height=end_height,
                success=False,
                error=str(e),
                error_type=type(e).__name__,
            )

        notes = self.node.scan_and_mark_note_by_ivk(record.ivk, fvk.ak, fvk.nk, start_height, end_height)
        return self._result(ScanKind.INCOMING_MARKED, start_height, end_height, notes)

    def scan_by_outgoing_key(self, ovk: bytes, start_height: int, end_height: int) -> ScanResult:
        validate_block_range(start_height, end_height)
        notes = self.node.scan_note_by_ovk(ovk, start_height, end_height)
        return self._result(ScanKind.OUTGOING, start_height, end_height, notes)

    def _result(self, kind: ScanKind, start_height: int, end_height: int,
                notes: Optional[List[DecryptedNote]]) -> ScanResult:
        if notes is None:
            logger.error(f"Node returned no {kind.value} scan result for blocks {start_height}..{end_height}")
            return ScanResult(
                kind=kind,
                start_height=start_height,
                end_height=end_height,
                success=False,
                error="Node returned no scan result",
                error_type="RemoteAbsenceError",
            )

        for found in notes:
            logger.info(f"Found note {found.txid}:{found.index}", **describe_note(found))

        logger.debug(f"{kind.value} scan of blocks {start_height}..{end_height} found {len(notes)} notes")
        return ScanResult(kind=kind, start_height=start_height, end_height=end_height, notes=notes)
