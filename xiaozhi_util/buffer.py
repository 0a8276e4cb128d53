"""A byte buffer that is safe to share between threads."""

from __future__ import annotations

import threading


class SafeBuffer:
    """FIFO byte buffer guarded by a lock."""

    def __init__(self) -> None:
        self._data = bytearray()
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        """Append ``data`` and return the number of bytes written."""
        with self._lock:
            self._data.extend(data)
            return len(data)

    def read(self, size: int = -1) -> bytes:
        """Remove and return up to ``size`` bytes; all of them if negative."""
        with self._lock:
            if size < 0:
                size = len(self._data)
            chunk = bytes(self._data[:size])
            del self._data[:size]
            return chunk

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def getvalue(self) -> bytes:
        """Return the unread bytes without consuming them."""
        with self._lock:
            return bytes(self._data)

    def reset(self) -> None:
        """Discard all unread bytes."""
        with self._lock:
            self._data.clear()