import threading
from typing import Dict, Any, List, Optional, Tuple
from collections import OrderedDict

from zen_wallet.core.wallet_types import TrackedNote, AddressRecord
from zen_wallet.utils.logging import logger

class ResetSignal:
    """One-shot request to discard tracked notes and rescan"""

    def __init__(self):
        self._event = threading.Event()

    def raise_signal(self) -> None:
        self._event.set()

    def clear(self) -> None:
        self._event.clear()

    def is_raised(self) -> bool:
        return self._event.is_set()

class ShieldedNoteStore:
    """In-memory registry of spendable notes and known shielded addresses"""

    def __init__(self):
        self._notes: OrderedDict[int, TrackedNote] = OrderedDict()
        self._outpoints: Dict[Tuple[str, int], int] = {}
        self._addresses: OrderedDict[str, AddressRecord] = OrderedDict()
        self._next_index = 0
        self._lock = threading.RLock()
        self.reset_signal = ResetSignal()

    def add_note(self, note: TrackedNote) -> int:
        """Track a note, returning its local index"""
        with self._lock:
            existing = self._outpoints.get(note.outpoint)
            if existing is not None:
                return existing

            index = self._next_index
            self._next_index += 1
            self._notes[index] = note
            self._outpoints[note.outpoint] = index
            logger.debug(f"Tracking note {note.source_txid}:{note.output_index} as index {index}")
            return index

    def get_note(self, index: int) -> Optional[TrackedNote]:
        with self._lock:
            return self._notes.get(index)

    def remove_note(self, index: int) -> bool:
        """Stop tracking a note; its index is not handed out again"""
        with self._lock:
            note = self._notes.pop(index, None)
            if note is None:
                return False
            self._outpoints.pop(note.outpoint, None)
            return True

    def index_of(self, txid: str, output_index: int) -> Optional[int]:
        with self._lock:
            return self._outpoints.get((txid, output_index))

    def notes(self) -> List[Tuple[int, TrackedNote]]:
        """Snapshot of (index, note) pairs in index order"""
        with self._lock:
            return list(self._notes.items())

    def clear_notes(self) -> int:
        """Drop all tracked notes, returning how many were dropped"""
        with self._lock:
            count = len(self._notes)
            self._notes.clear()
            self._outpoints.clear()
            return count

    @property
    def note_count(self) -> int:
        with self._lock:
            return len(self._notes)

    def add_address(self, record: AddressRecord) -> str:
        with self._lock:
            self._addresses[record.payment_address] = record
            return record.payment_address

    def get_address(self, payment_address: str) -> Optional[AddressRecord]:
        with self._lock:
            return self._addresses.get(payment_address)

    def has_address(self, payment_address: str) -> bool:
        with self._lock:
            return payment_address in self._addresses

    def addresses(self) -> List[AddressRecord]:
        with self._lock:
            return list(self._addresses.values())

    def request_reset(self) -> None:
        """Ask the rescanner to rebuild the note set; returns immediately"""
        self.reset_signal.raise_signal()
        logger.info("Shielded note reset requested")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'notes': len(self._notes),
                'addresses': len(self._addresses),
                'next_index': self._next_index,
                'total_value': sum(note.value for note in self._notes.values()),
                'reset_pending': self.reset_signal.is_raised(),
            }
