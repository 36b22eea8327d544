"""
Background recovery of the shielded note set
"""

from zen_wallet.recovery.note_rescanner import ShieldedNoteRescanner, RescanProgress

__all__ = [
    'ShieldedNoteRescanner',
    'RescanProgress'
]
