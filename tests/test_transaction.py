"""
Tests for transfer assembly, voucher batching and submission.
"""

import pytest

from zen_wallet.core.exceptions import (
    AddressDecodeError, NoteLookupError, RemoteAbsenceError,
    TransferAssemblyError, VoucherCountMismatchError
)
from zen_wallet.core.session import WalletSession
from zen_wallet.core.wallet_types import DEFAULT_AUDIT_OVK_V1
from zen_wallet.interfaces.signer import SpendAuthSigner
from zen_wallet.services.submission import ShieldedTransactionSubmitter
from zen_wallet.services.transaction import TransactionAssembler


@pytest.fixture
def session(address_codec, account):
    wallet_session = WalletSession(address_codec)
    wallet_session.login(account['address'], account['private_key'])
    yield wallet_session
    wallet_session.logout()


@pytest.fixture
def submitter(node, session):
    return ShieldedTransactionSubmitter(node, session)


@pytest.fixture
def assembler(store, fetcher, pipeline, node, address_codec, submitter):
    return TransactionAssembler(store, fetcher, pipeline, node, address_codec, submitter)


class TestVoucherBatchFetcher:
    """Batched voucher requests."""

    def test_one_request_in_input_order(self, fetcher, node, record, note_factory):
        notes = [note_factory(record, seed) for seed in (3, 1, 2)]

        vouchers = fetcher.fetch(notes)

        assert len(node.calls_to('get_merkle_tree_voucher_info')) == 1
        assert [v.voucher['txid'] for v in vouchers] == [n.source_txid for n in notes]

    def test_count_mismatch(self, fetcher, node, record, note_factory):
        node.voucher_shortfall = 1

        with pytest.raises(VoucherCountMismatchError):
            fetcher.fetch([note_factory(record, 1), note_factory(record, 2)])

    def test_absent(self, fetcher, node, record, note_factory):
        node.absent.add('get_merkle_tree_voucher_info')

        with pytest.raises(RemoteAbsenceError):
            fetcher.fetch([note_factory(record, 1)])

    def test_never_cached(self, fetcher, node, record, note_factory):
        note = note_factory(record, 1)
        fetcher.fetch([note])
        fetcher.fetch([note])

        assert len(node.calls_to('get_merkle_tree_voucher_info')) == 2


class TestAssemble:
    """Building transfer requests."""

    def test_zero_inputs_uses_audit_ovk(self, assembler, output_note, node):
        assembled = assembler.assemble(None, 0, None, 0, [], [output_note])

    def test_withhold_flag_kept_without_inputs(self, assembler, output_note, node):
        assembled = assembler.assemble(None, 0, None, 0, [], [output_note], withhold_spend_authority=True)

        assert assembled.request.withholds_spend_authority
        assert assembled.request.ak is None
        assert assembled.spend_authority is None

        assert assembled.request.ovk == DEFAULT_AUDIT_OVK_V1
        assert assembled.request.spends == []
        assert assembled.request.ask is None
        assert node.calls_to('get_merkle_tree_voucher_info') == []

    def test_embedded_authority(self, assembler, store, record, note_factory, node):
        index = store.add_note(note_factory(record, 1))
        expanded = node.get_expanded_spending_key(record.sk)

        assembled = assembler.assemble(None, 0, None, 0, [index], [])

        request = assembled.request
        assert request.ask == expanded.ask
        assert request.ak is None
        assert request.nsk == expanded.nsk
        assert request.ovk == expanded.ovk
        assert assembled.spend_authority is None
        assert request.to_params()['ask'] == expanded.ask.hex()

    def test_withheld_ask_never_in_request(self, assembler, store, record, note_factory, node):
        index = store.add_note(note_factory(record, 1))
        expanded = node.get_expanded_spending_key(record.sk)

        assembled = assembler.assemble(None, 0, None, 0, [index], [], withhold_spend_authority=True)

        request = assembled.request
        params = request.to_params()
        assert request.ask is None
        assert 'ask' not in params
        assert expanded.ask.hex() not in str(params)
        assert request.ak == node.get_ak_from_ask(expanded.ask)
        assert assembled.spend_authority == expanded.ask

    def test_alphas_distinct_across_large_batch(self, assembler, store, record, note_factory):
        indices = [store.add_note(note_factory(record, seed)) for seed in range(200)]

        assembled = assembler.assemble(None, 0, None, 0, indices, [])

        alphas = [spend.alpha for spend in assembled.request.spends]
        assert len(alphas) == 200
        assert len(set(alphas)) == 200

    def test_spends_follow_input_order(self, assembler, store, record, note_factory):
        notes = [note_factory(record, seed) for seed in (7, 3, 5)]
        indices = [store.add_note(note) for note in notes]

        assembled = assembler.assemble(None, 0, None, 0, list(reversed(indices)), [])

        assert [s.note.rcm for s in assembled.request.spends] == [n.rcm for n in reversed(notes)]
        assert [s.voucher['txid'] for s in assembled.request.spends] == [
            n.source_txid for n in reversed(notes)
        ]

    def test_count_mismatch_leaves_store_unchanged(self, assembler, store, record, note_factory, node):
        indices = [store.add_note(note_factory(record, seed)) for seed in range(3)]
        before = store.notes()
        node.voucher_shortfall = 1

        with pytest.raises(VoucherCountMismatchError):
            assembler.assemble(None, 0, None, 0, indices, [])

        assert store.notes() == before
        assert node.calls_to('get_rcm') == []

    def test_unknown_index(self, assembler):
        with pytest.raises(NoteLookupError):
            assembler.assemble(None, 0, None, 0, [99], [])

    def test_duplicate_indices_rejected(self, assembler, store, record, note_factory, node):
        index = store.add_note(note_factory(record, 1))

        with pytest.raises(TransferAssemblyError):
            assembler.assemble(None, 0, None, 0, [index, index], [])
        assert node.calls_to('get_merkle_tree_voucher_info') == []

    def test_missing_address_record(self, assembler, store, pipeline, note_factory):
        stranger = pipeline.generate_address()
        index = store.add_note(note_factory(stranger, 1))

        with pytest.raises(NoteLookupError):
            assembler.assemble(None, 0, None, 0, [index], [])

    def test_mixed_addresses_use_first_record(self, assembler, store, record, pipeline, note_factory, node):
        other = pipeline.generate_address()
        store.add_address(other)
        first = store.add_note(note_factory(record, 1))
        second = store.add_note(note_factory(other, 2))

        assembled = assembler.assemble(None, 0, None, 0, [first, second], [])

        assert assembled.request.ask == node.get_expanded_spending_key(record.sk).ask
        assert len(assembled.request.spends) == 2

    def test_absent_randomness_aborts(self, assembler, store, record, note_factory, node):
        index = store.add_note(note_factory(record, 1))
        node.absent.add('get_rcm')

        with pytest.raises(RemoteAbsenceError):
            assembler.assemble(None, 0, None, 0, [index], [])

    def test_invalid_transparent_address(self, assembler):
        with pytest.raises(AddressDecodeError):
            assembler.assemble("invalid", 10, None, 0, [], [])

    def test_transparent_addresses_decoded(self, assembler, account, transparent_address):
        to_address = transparent_address(2)

        request = assembler.assemble(account['address'], 100, to_address, 40, [], []).request

        assert len(request.transparent_from) == 21
        assert request.transparent_from[0] == 0x41
        assert request.from_amount == 100
        assert request.to_amount == 40

    def test_wrong_network_prefix(self, assembler, transparent_address):
        with pytest.raises(AddressDecodeError):
            assembler.assemble(transparent_address(1, prefix=0xa0), 10, None, 0, [], [])

    def test_negative_amount(self, assembler, account):
        with pytest.raises(TransferAssemblyError):
            assembler.assemble(account['address'], -1, None, 0, [], [])

    def test_outputs_wrapped_unmodified(self, assembler, output_note):
        assembled = assembler.assemble(None, 0, None, 0, [], [output_note])

        assert [r.note for r in assembled.request.receives] == [output_note]


class TestSubmission:
    """Create, sign and broadcast."""

    def test_embedded_send(self, assembler, store, record, note_factory, node, output_note):
        index = store.add_note(note_factory(record, 1))

        txid = assembler.send(None, 0, None, 0, [index], [output_note])

        assert txid == node.broadcasts[0]['txID']
        assert len(node.calls_to('create_shielded_transaction')) == 1
        assert node.calls_to('create_spend_auth_sig') == []

    def test_withheld_without_inputs_uses_withheld_endpoint(self, assembler, node, output_note):
        txid = assembler.send(None, 0, None, 0, [], [output_note], withhold_spend_authority=True)

        assert txid == node.broadcasts[0]['txID']
        assert len(node.calls_to('create_shielded_transaction_without_spend_auth_sig')) == 1
        assert node.calls_to('create_shielded_transaction') == []
        assert node.calls_to('create_spend_auth_sig') == []

    def test_withheld_send_signs_every_spend(self, assembler, store, record, note_factory, node):
        indices = [store.add_note(note_factory(record, seed)) for seed in range(3)]

        txid = assembler.send(None, 0, None, 0, indices, [], withhold_spend_authority=True)

        assert txid is not None
        params = node.calls_to('create_shielded_transaction_without_spend_auth_sig')[0][0]
        assert 'ask' not in params
        sig_calls = node.calls_to('create_spend_auth_sig')
        assert len(sig_calls) == 3
        alphas = [bytes.fromhex(spend['alpha']) for spend in params['shielded_spends']]
        assert [alpha for _, _, alpha in sig_calls] == alphas
        assert len(node.broadcasts[0]['spend_authority_signatures']) == 3

    def test_transparent_source_is_signed(self, assembler, account, node, session):
        txid = assembler.send(account['address'], 100, None, 0, [], [])

        broadcast = node.broadcasts[0]
        assert txid == broadcast['txID']
        signature = bytes.fromhex(broadcast['signature'][0])
        assert len(signature) == 65
        public_key = session.signer.public_key(account['private_key'])
        assert session.signer.verify_digest(bytes.fromhex(txid), signature, public_key)

    def test_absent_creation(self, assembler, node):
        node.absent.add('create_shielded_transaction')

        assert assembler.send(None, 0, None, 0, [], []) is None
        assert node.broadcasts == []

    def test_broadcast_rejected(self, assembler, node):
        node.broadcast_ok = False

        assert assembler.send(None, 0, None, 0, [], []) is None

    def test_absent_spend_signature(self, assembler, store, record, note_factory, node):
        index = store.add_note(note_factory(record, 1))
        node.absent.add('create_spend_auth_sig')

        assert assembler.send(None, 0, None, 0, [index], [], withhold_spend_authority=True) is None
        assert node.broadcasts == []

    def test_custom_signer(self, store, fetcher, pipeline, node, address_codec, session, record, note_factory):
        class RecordingSigner(SpendAuthSigner):
            def __init__(self):
                self.signed = []

            def sign(self, ask, alpha, tx_hash):
                self.signed.append(alpha)
                return b'\x01' * 64

        signer = RecordingSigner()
        submitter = ShieldedTransactionSubmitter(node, session, signer)
        assembler = TransactionAssembler(store, fetcher, pipeline, node, address_codec, submitter)
        index = store.add_note(note_factory(record, 1))

        assert assembler.send(None, 0, None, 0, [index], [], withhold_spend_authority=True)
        assert len(signer.signed) == 1
        assert node.calls_to('create_spend_auth_sig') == []

    def test_send_without_submitter(self, store, fetcher, pipeline, node, address_codec):
        assembler = TransactionAssembler(store, fetcher, pipeline, node, address_codec)

        with pytest.raises(TransferAssemblyError):
            assembler.send(None, 0, None, 0, [], [])
