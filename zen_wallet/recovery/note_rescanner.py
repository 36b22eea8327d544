import threading
import time
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict

from zen_wallet.core.config import WalletConfig
from zen_wallet.core.wallet_types import ScanResult
from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.services.scanner import NoteScanner
from zen_wallet.storage.note_store import ShieldedNoteStore
from zen_wallet.utils.logging import logger

@dataclass
class RescanProgress:
    next_height: int = 0
    target_height: int = 0
    passes: int = 0
    notes_added: int = 0
    notes_removed: int = 0
    resets: int = 0
    last_error: Optional[str] = None

class ShieldedNoteRescanner:
    """Background service keeping the note store in step with the chain.

    Each pass scans every known address from the last scanned height up
    to the node's tip, in chunks of ``scan_batch_size`` blocks. A raised
    reset signal empties the note set and restarts from
    ``rescan_start_height``.
    """

    def __init__(self, store: ShieldedNoteStore, scanner: NoteScanner,
                 node: ZenNodeInterface, config: WalletConfig):
        self.store = store
        self.scanner = scanner
        self.node = node
        self.config = config
        self.progress = RescanProgress(next_height=config.rescan_start_height)
        self.running = False
        self.rescan_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._pass_lock = threading.Lock()

    def start(self) -> bool:
        """Start rescanning service"""
        if self.running:
            return False

        self.running = True
        self._stop_event.clear()
        self.rescan_thread = threading.Thread(target=self._rescan_loop, name="zen-note-rescanner", daemon=True)
        self.rescan_thread.start()
        logger.info("Shielded note rescanner started")
        return True

    def stop(self) -> bool:
        """Stop rescanning service"""
        if not self.running:
            return False

        self.running = False
        self._stop_event.set()
        if self.rescan_thread:
            self.rescan_thread.join(timeout=5.0)
        self.rescan_thread = None
        logger.info("Shielded note rescanner stopped")
        return True

    def _rescan_loop(self):
        """Main rescanning loop"""
        while self.running:
            try:
                self.rescan_once()
            except Exception as e:
                self.progress.last_error = str(e)
                logger.error(f"Note rescan error: {e}")
            self._stop_event.wait(self.config.rescan_interval)

    def rescan_once(self) -> bool:
        """One pass up to the current tip. Returns False if the pass stopped early."""
        with self._pass_lock:
            self._apply_reset()

            tip = self.node.get_block_height()
            if tip is None:
                self.progress.last_error = "Node returned no block height"
                logger.error("Cannot rescan notes: node returned no block height")
                return False
            self.progress.target_height = tip

            while self.progress.next_height <= tip:
                if self._apply_reset():
                    continue

                if self._stop_event.is_set():
                    logger.info(f"Rescan interrupted at block {self.progress.next_height}")
                    return False

                start = self.progress.next_height
                end = min(start + self.config.scan_batch_size - 1, tip)
                for record in self.store.addresses():
                    result = self.scanner.scan_and_mark(record, start, end)
                    if not result.success:
                        self.progress.last_error = result.error
                        logger.warning(f"Rescan of {record.payment_address} stopped at block {start}: {result.error}")
                        return False
                    self._track(result)
                self.progress.next_height = end + 1

            self.progress.passes += 1
            self.progress.last_error = None
            return True

    def _apply_reset(self) -> bool:
        if not self.store.reset_signal.is_raised():
            return False

        dropped = self.store.clear_notes()
        self.store.reset_signal.clear()
        self.progress.next_height = self.config.rescan_start_height
        self.progress.resets += 1
        logger.info(f"Shielded notes reset, dropped {dropped} notes, rescanning from {self.progress.next_height}")
        return True

    def _track(self, result: ScanResult) -> None:
        for found in result.notes:
            if found.is_spent:
                index = self.store.index_of(found.txid, found.index)
                if index is not None and self.store.remove_note(index):
                    self.progress.notes_removed += 1
                continue

            if self.store.index_of(found.txid, found.index) is None:
                self.store.add_note(found.to_tracked())
                self.progress.notes_added += 1

    def get_status(self) -> Dict[str, Any]:
        status = asdict(self.progress)
        status['running'] = self.running
        status['checked_at'] = time.time()
        return status
