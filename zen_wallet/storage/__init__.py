from zen_wallet.storage.note_store import ShieldedNoteStore, ResetSignal

__all__ = [
    'ShieldedNoteStore',
    'ResetSignal'
]
