from __future__ import annotations

import threading
from dataclasses import dataclass, replace

from .errors import IncompleteReassembly, InvalidConfiguration
from .fragment import Fragment


@dataclass(slots=True)
class ReassemblyStats:
    ingested: int = 0
    duplicates: int = 0
    out_of_range: int = 0
    bytes_received: int = 0


class Reassembler:
    """Rebuilds one byte stream from fragments delivered in any order.

    With a fixed ``expected_count`` the session knows exactly which indices
    make up the stream. Without one it runs in provisional mode and treats
    ``high_water + 1`` as the expected count; completeness in that mode is a
    best-effort guess, since later fragments may still arrive.

    Duplicate deliveries overwrite the stored payload (last write wins). Two
    different payloads for the same index are not treated as an error.

    ``ingest`` and every query hold the same lock, so fragments may be fed
    from several threads at once.
    """

    def __init__(self, expected_count: int | None = None):
        self._lock = threading.Lock()
        self._fixed_count: int | None = None
        self._payloads: dict[int, bytes] = {}
        self._high_water = -1
        self._stats = ReassemblyStats()
        self.begin(expected_count)

    def begin(self, expected_count: int | None = None) -> None:
        if expected_count is not None:
            if isinstance(expected_count, bool) or not isinstance(expected_count, int):
                raise InvalidConfiguration(f"expected count must be an integer, got {expected_count!r}")
            if expected_count < 0:
                raise InvalidConfiguration(f"expected count must be non-negative, got {expected_count}")

        with self._lock:
            self._fixed_count = expected_count
            self._payloads = {}
            self._high_water = -1
            self._stats = ReassemblyStats()

    def reset(self) -> None:
        with self._lock:
            count = self._fixed_count
        self.begin(count)

    def ingest(self, fragment: Fragment) -> bool:
        """Record ``fragment``; return False if it was rejected as out of range."""
        idx = fragment.sequence_index
        with self._lock:
            if self._fixed_count is not None and idx >= self._fixed_count:
                self._stats.out_of_range += 1
                return False

            previous = self._payloads.get(idx)
            if previous is not None:
                self._stats.duplicates += 1
                self._stats.bytes_received -= len(previous)

            self._payloads[idx] = fragment.payload
            self._stats.ingested += 1
            self._stats.bytes_received += fragment.length
            if idx > self._high_water:
                self._high_water = idx
            return True

    def finalize(self) -> bytes:
        with self._lock:
            expected = self._expected_count()
            missing = self._missing(expected)
            if missing:
                raise IncompleteReassembly(missing, expected)
            return b"".join(self._payloads[i] for i in range(expected))

    def missing_indices(self) -> list[int]:
        with self._lock:
            return self._missing(self._expected_count())

    @property
    def expected_count(self) -> int:
        with self._lock:
            return self._expected_count()

    @property
    def provisional(self) -> bool:
        return self._fixed_count is None

    @property
    def is_complete(self) -> bool:
        return not self.missing_indices()

    @property
    def received_count(self) -> int:
        with self._lock:
            return len(self._payloads)

    @property
    def high_water(self) -> int | None:
        with self._lock:
            return self._high_water if self._high_water >= 0 else None

    @property
    def stats(self) -> ReassemblyStats:
        with self._lock:
            return replace(self._stats)

    # Callers must hold self._lock.
    def _expected_count(self) -> int:
        if self._fixed_count is not None:
            return self._fixed_count
        return self._high_water + 1

    def _missing(self, expected: int) -> list[int]:
        return [i for i in range(expected) if i not in self._payloads]
