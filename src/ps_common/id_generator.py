"""Prefixed, time-ordered IDs for invoices (``inv_…``) and transactions (``txn_…``).

Snowflake layout, 63 usable bits:
  41 bits  milliseconds since _EPOCH_MS
  10 bits  machine_id (0-1023), set MACHINE_ID per instance
  12 bits  sequence within one millisecond

IDs from one generator sort by creation time when compared as integers.
"""

import threading
import time

_EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
_MACHINE_BITS = 10
_SEQUENCE_BITS = 12
_MAX_MACHINE_ID = (1 << _MACHINE_BITS) - 1
_SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1


class SnowflakeIdGenerator:
    def __init__(self, prefix: str = "", machine_id: int = 0) -> None:
        if not 0 <= machine_id <= _MAX_MACHINE_ID:
            raise ValueError(f"machine_id must be 0-{_MAX_MACHINE_ID}, got {machine_id}")
        self._prefix = prefix
        self._machine_id = machine_id
        self._last_ms = -1
        self._sequence = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            # A wall clock stepping backwards reuses the last millisecond
            now_ms = max(int(time.time() * 1000), self._last_ms)
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & _SEQUENCE_MASK
                if self._sequence == 0:
                    now_ms = self._last_ms + 1
            else:
                self._sequence = 0
            self._last_ms = now_ms

            value = (
                (now_ms - _EPOCH_MS) << (_MACHINE_BITS + _SEQUENCE_BITS)
                | self._machine_id << _SEQUENCE_BITS
                | self._sequence
            )
        return f"{self._prefix}{value}"
