from typing import List, Sequence

from zen_wallet.core.exceptions import RemoteAbsenceError, VoucherCountMismatchError
from zen_wallet.core.wallet_types import TrackedNote, MerkleVoucher
from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.utils.logging import logger

class VoucherBatchFetcher:
    """Fetches merkle vouchers for a batch of notes in one request"""

    def __init__(self, node: ZenNodeInterface):
        self.node = node

    def fetch(self, notes: Sequence[TrackedNote]) -> List[MerkleVoucher]:
        """Vouchers in the same order as notes. Nothing is cached."""
        outpoints = [note.outpoint for note in notes]
        vouchers = self.node.get_merkle_tree_voucher_info(outpoints)
        if vouchers is None:
            raise RemoteAbsenceError("Node returned no merkle voucher info")

        if len(vouchers) != len(outpoints):
            raise VoucherCountMismatchError(
                f"Requested {len(outpoints)} vouchers, node returned {len(vouchers)}"
            )

        logger.debug(f"Fetched {len(vouchers)} merkle vouchers")
        return list(vouchers)
