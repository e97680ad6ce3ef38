from __future__ import annotations

from typing import Iterable


class ReassemblyError(Exception):
    pass


class InvalidConfiguration(ReassemblyError, ValueError):
    pass


class IncompleteReassembly(ReassemblyError):
    """Raised by ``Reassembler.finalize`` when indices are still missing.

    The session that raised it is still usable: ingest the missing fragments
    and call ``finalize`` again.
    """

    def __init__(self, missing_indices: Iterable[int], expected_count: int):
        self.missing_indices = tuple(sorted(missing_indices))
        self.expected_count = expected_count
        super().__init__(
            f"{len(self.missing_indices)} of {expected_count} fragments missing: "
            f"{list(self.missing_indices)}"
        )
