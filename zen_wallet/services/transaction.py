from typing import List, Optional, Sequence, Tuple

from zen_wallet.core.exceptions import (
    NoteLookupError, RemoteAbsenceError, TransferAssemblyError
)
from zen_wallet.core.wallet_types import (
    TrackedNote, ShieldedNote, SpendDescription, ReceiveDescription,
    TransferRequest, AssembledTransfer, DEFAULT_AUDIT_OVK_V1
)
from zen_wallet.crypto.address import TransparentAddressCodec
from zen_wallet.crypto.key_derivation import KeyDerivationPipeline
from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.services.vouchers import VoucherBatchFetcher
from zen_wallet.storage.note_store import ShieldedNoteStore
from zen_wallet.utils.helpers import decode_memo
from zen_wallet.utils.validation import validate_amount
from zen_wallet.utils.logging import logger

class TransactionAssembler:
    """Builds shielded transfer parameters from tracked notes"""

    def __init__(self, store: ShieldedNoteStore, fetcher: VoucherBatchFetcher,
                 pipeline: KeyDerivationPipeline, node: ZenNodeInterface,
                 address_codec: TransparentAddressCodec, submitter=None):
        self.store = store
        self.fetcher = fetcher
        self.pipeline = pipeline
        self.node = node
        self.address_codec = address_codec
        self.submitter = submitter

    def send(self, transparent_from: Optional[str], from_amount: int,
             transparent_to: Optional[str], to_amount: int,
             input_indices: Sequence[int], output_notes: Sequence[ShieldedNote],
             withhold_spend_authority: bool = False) -> Optional[str]:
        """Assemble and submit a transfer, returning its transaction id"""
        if self.submitter is None:
            raise TransferAssemblyError("No transaction submitter configured")

        assembled = self.assemble(transparent_from, from_amount, transparent_to, to_amount,
                                  input_indices, output_notes, withhold_spend_authority)
        return self.submitter.submit(assembled)

    def assemble(self, transparent_from: Optional[str], from_amount: int,
                 transparent_to: Optional[str], to_amount: int,
                 input_indices: Sequence[int], output_notes: Sequence[ShieldedNote],
                 withhold_spend_authority: bool = False) -> AssembledTransfer:
        """Build a transfer request. The note store is only read."""
        request = TransferRequest(withholds_spend_authority=withhold_spend_authority)

        if transparent_from:
            request.transparent_from = self.address_codec.decode(transparent_from)
            request.from_amount = validate_amount(from_amount, "from_amount")

        if transparent_to:
            request.transparent_to = self.address_codec.decode(transparent_to)
            request.to_amount = validate_amount(to_amount, "to_amount")

        spend_authority = None
        if input_indices:
            spend_authority = self._add_spends(request, input_indices, withhold_spend_authority)
        else:
            request.ovk = DEFAULT_AUDIT_OVK_V1

        for note in output_notes:
            validate_amount(note.value, "output value")
            request.receives.append(ReceiveDescription(note=note))

        logger.info(
            f"Assembled shielded transfer with {len(request.spends)} spends "
            f"and {len(request.receives)} receives",
            withheld=request.withholds_spend_authority
        )
        return AssembledTransfer(request=request, spend_authority=spend_authority)

    def _resolve_inputs(self, input_indices: Sequence[int]) -> List[Tuple[int, TrackedNote]]:
        if len(set(input_indices)) != len(input_indices):
            raise TransferAssemblyError(f"Duplicate note indices in {list(input_indices)}")

        resolved = []
        for index in input_indices:
            note = self.store.get_note(index)
            if note is None:
                raise NoteLookupError(f"No tracked note with index {index}")
            resolved.append((index, note))
        return resolved

    def _add_spends(self, request: TransferRequest, input_indices: Sequence[int],
                    withhold_spend_authority: bool) -> Optional[bytes]:
        inputs = self._resolve_inputs(input_indices)
        notes = [note for _, note in inputs]
        vouchers = self.fetcher.fetch(notes)

        first = notes[0]
        record = self.store.get_address(first.payment_address)
        if record is None:
            raise NoteLookupError(f"No address record for {first.payment_address}")

        for index, note in inputs[1:]:
            if note.payment_address != first.payment_address:
                logger.warning(
                    f"Note {index} belongs to {note.payment_address}, "
                    f"signing with the key of {first.payment_address}"
                )

        expanded = self.pipeline.expand(record.sk)
        spend_authority = None
        if withhold_spend_authority:
            request.ak = self.pipeline.ak_from_ask(expanded.ask)
            spend_authority = expanded.ask
        else:
            request.ask = expanded.ask
        request.nsk = expanded.nsk
        request.ovk = expanded.ovk

        for (index, note), voucher in zip(inputs, vouchers):
            alpha = self.node.get_rcm()
            if alpha is None:
                raise RemoteAbsenceError(f"Node returned no randomness for spend of note {index}")

            logger.info(
                f"Spending note {note.source_txid}:{note.output_index}",
                address=note.payment_address,
                value=note.value,
                rcm=note.rcm.hex(),
                memo=decode_memo(note.memo)
            )
            request.spends.append(SpendDescription(
                note=note.to_note(),
                alpha=alpha,
                voucher=voucher.voucher,
                path=voucher.path,
            ))
        return spend_authority
