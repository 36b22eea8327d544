from .vouchers import VoucherBatchFetcher
from .transaction import TransactionAssembler
from .submission import ShieldedTransactionSubmitter
from .scanner import NoteScanner

__all__ = [
    'VoucherBatchFetcher',
    'TransactionAssembler',
    'ShieldedTransactionSubmitter',
    'NoteScanner'
]
