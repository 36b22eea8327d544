from zen_wallet.core.exceptions import NoteLookupError, RemoteAbsenceError
from zen_wallet.crypto.key_derivation import KeyDerivationPipeline
from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.services.vouchers import VoucherBatchFetcher
from zen_wallet.storage.note_store import ShieldedNoteStore
from zen_wallet.utils.logging import logger

class NullifierComputer:
    """Computes the nullifier a tracked note will reveal when spent"""

    def __init__(self, store: ShieldedNoteStore, fetcher: VoucherBatchFetcher,
                 pipeline: KeyDerivationPipeline, node: ZenNodeInterface):
        self.store = store
        self.fetcher = fetcher
        self.pipeline = pipeline
        self.node = node

    def nullifier_for(self, index: int) -> bytes:
        note = self.store.get_note(index)
        if note is None:
            raise NoteLookupError(f"No tracked note with index {index}")

        record = self.store.get_address(note.payment_address)
        if record is None:
            raise NoteLookupError(f"No address record for {note.payment_address}")

        fvk = self.pipeline.full_viewing_key(record.sk)
        voucher = self.fetcher.fetch([note])[0]

        nullifier = self.node.create_shielded_nullifier(note.to_note(), voucher.voucher, fvk.ak, fvk.nk)
        if nullifier is None:
            raise RemoteAbsenceError(f"Node returned no nullifier for note {index}")

        logger.debug(f"Nullifier for note {index}: {nullifier.hex()}")
        return nullifier
