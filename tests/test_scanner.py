"""
Tests for note scanning and nullifier computation.
"""

import pytest

from zen_wallet.core.exceptions import NoteLookupError, RemoteAbsenceError, ScanRangeError
from zen_wallet.core.wallet_types import DecryptedNote, ScanKind, ShieldedNote
from zen_wallet.crypto.nullifier import NullifierComputer
from zen_wallet.services.scanner import NoteScanner


@pytest.fixture
def scanner(node, pipeline):
    return NoteScanner(node, pipeline)


@pytest.fixture
def nullifier_computer(store, fetcher, pipeline, node):
    return NullifierComputer(store, fetcher, pipeline, node)


@pytest.fixture
def found_note(record):
    return DecryptedNote(
        note=ShieldedNote(
            payment_address=record.payment_address,
            value=250,
            rcm=bytes(range(32)),
            memo=b'hello'.ljust(512, b'\x00'),
        ),
        txid='ab' * 32,
        index=1,
        is_spent=False,
    )


class TestNoteScanner:
    """Scans by incoming and outgoing viewing keys."""

    def test_inverted_range_rejected_without_remote_call(self, scanner, node):
        with pytest.raises(ScanRangeError):
            scanner.scan_by_incoming_key(bytes(32), 100, 50)

        assert node.calls == []

    @pytest.mark.parametrize("start,end", [(-1, 10), (0, -5)])
    def test_negative_range_rejected(self, scanner, node, start, end):
        with pytest.raises(ScanRangeError):
            scanner.scan_by_outgoing_key(bytes(32), start, end)

        assert node.calls == []

    def test_scan_by_incoming_key(self, scanner, node, found_note):
        node.scan_notes = [found_note]

        result = scanner.scan_by_incoming_key(b'\x01' * 32, 0, 10)

        assert result.success
        assert result.kind == ScanKind.INCOMING
        assert result.notes == [found_note]
        assert node.calls_to('scan_note_by_ivk') == [(b'\x01' * 32, 0, 10)]

    def test_single_block_range(self, scanner, node):
        result = scanner.scan_by_outgoing_key(b'\x02' * 32, 7, 7)

        assert result.success
        assert result.notes == []

    def test_absent_scan_is_failed_result(self, scanner, node):
        node.absent.add('scan_note_by_ovk')

        result = scanner.scan_by_outgoing_key(b'\x02' * 32, 0, 10)

        assert not result.success
        assert result.kind == ScanKind.OUTGOING
        assert result.error_type == 'RemoteAbsenceError'

    def test_scan_and_mark_uses_record_keys(self, scanner, node, pipeline, record, found_note):
        node.scan_notes = [found_note]
        fvk = pipeline.full_viewing_key(record.sk)

        result = scanner.scan_and_mark(record, 5, 20)

        assert result.success
        assert result.notes[0].is_spent is False
        assert node.calls_to('scan_and_mark_note_by_ivk') == [(record.ivk, fvk.ak, fvk.nk, 5, 20)]

    def test_scan_and_mark_derivation_failure(self, scanner, node, record):
        node.absent.add('get_expanded_spending_key')

        result = scanner.scan_and_mark(record, 0, 10)

        assert not result.success
        assert result.error_type == 'RemoteAbsenceError'
        assert node.calls_to('scan_and_mark_note_by_ivk') == []


class TestNullifierComputer:
    """Nullifiers for tracked notes."""

    def test_single_voucher_batch_of_one(self, nullifier_computer, store, record, note_factory, node):
        for seed in range(3):
            store.add_note(note_factory(record, seed))
        index = store.add_note(note_factory(record, 9))

        nullifier = nullifier_computer.nullifier_for(index)

        batches = node.calls_to('get_merkle_tree_voucher_info')
        assert len(batches) == 1
        assert len(batches[0][0]) == 1
        assert len(nullifier) == 32

    def test_uses_full_viewing_key(self, nullifier_computer, store, record, note_factory, node, pipeline):
        index = store.add_note(note_factory(record, 1))
        fvk = pipeline.full_viewing_key(record.sk)

        nullifier_computer.nullifier_for(index)

        _, voucher, ak, nk = node.calls_to('create_shielded_nullifier')[0]
        assert (ak, nk) == (fvk.ak, fvk.nk)
        assert voucher['txid'] == store.get_note(index).source_txid

    def test_unknown_index(self, nullifier_computer):
        with pytest.raises(NoteLookupError):
            nullifier_computer.nullifier_for(7)

    def test_unknown_address(self, nullifier_computer, store, pipeline, note_factory):
        index = store.add_note(note_factory(pipeline.generate_address(), 1))

        with pytest.raises(NoteLookupError):
            nullifier_computer.nullifier_for(index)

    def test_absent_nullifier(self, nullifier_computer, store, record, note_factory, node):
        index = store.add_note(note_factory(record, 1))
        node.absent.add('create_shielded_nullifier')

        with pytest.raises(RemoteAbsenceError):
            nullifier_computer.nullifier_for(index)
