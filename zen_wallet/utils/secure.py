import ctypes
import sys
import threading
from typing import Optional

def _set_page_lock(buffer, locked: bool) -> bool:
    """mlock/munlock (VirtualLock on Windows) a ctypes buffer; False if unsupported"""
    address, size = ctypes.addressof(buffer), ctypes.sizeof(buffer)
    try:
        if sys.platform == 'win32':
            kernel32 = ctypes.windll.kernel32
            call = kernel32.VirtualLock if locked else kernel32.VirtualUnlock
            return bool(call(ctypes.c_void_p(address), ctypes.c_size_t(size)))

        libc = ctypes.CDLL(None)
        call = libc.mlock if locked else libc.munlock
        return call(ctypes.c_void_p(address), ctypes.c_size_t(size)) == 0
    except (OSError, AttributeError):
        return False

class SecureBytes:
    """Session secret held outside Python's immutable bytes pool.

    The buffer is pinned in RAM where the platform allows and zeroed on
    wipe() or garbage collection. get_value() hands out a copy, so callers
    should keep that copy short-lived.
    """

    def __init__(self, value: bytes, pin_memory: bool = True):
        if not isinstance(value, bytes) or not value:
            raise TypeError("Secret must be non-empty bytes")

        self._lock = threading.Lock()
        self._size = len(value)
        self._buffer: Optional[ctypes.Array] = ctypes.create_string_buffer(value, self._size)
        self._pinned = _set_page_lock(self._buffer, True) if pin_memory else False

    def get_value(self) -> bytes:
        with self._lock:
            if self._buffer is None:
                raise ValueError("Secret has been wiped")
            return self._buffer.raw

    def wipe(self) -> None:
        with self._lock:
            if self._buffer is None:
                return
            ctypes.memset(ctypes.addressof(self._buffer), 0, self._size)
            if self._pinned:
                _set_page_lock(self._buffer, False)
            self._buffer = None
            self._pinned = False

    @property
    def wiped(self) -> bool:
        return self._buffer is None

    def __len__(self) -> int:
        return 0 if self._buffer is None else self._size

    def __del__(self):
        if getattr(self, '_buffer', None) is not None:
            self.wipe()
