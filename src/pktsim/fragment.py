from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, overload

from .constants import DEFAULT_CHUNK_SIZE
from .errors import InvalidConfiguration


@dataclass(frozen=True, slots=True)
class Fragment:
    sequence_index: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        if self.sequence_index < 0:
            raise ValueError(f"sequence index must be non-negative, got {self.sequence_index}")
        if not isinstance(self.payload, (bytes, bytearray, memoryview)):
            raise TypeError(f"payload must be bytes-like, got {type(self.payload).__name__}")
        object.__setattr__(self, "payload", bytes(self.payload))

    @property
    def length(self) -> int:
        return len(self.payload)


@dataclass(frozen=True, slots=True)
class FragmentSet:
    """Fragments of one byte stream, ordered by sequence index.

    ``fragments[i].sequence_index == i`` and every fragment but the last is
    exactly ``chunk_size`` bytes long.
    """

    fragments: tuple[Fragment, ...]
    chunk_size: int

    @property
    def total_bytes(self) -> int:
        return sum(f.length for f in self.fragments)

    def __len__(self) -> int:
        return len(self.fragments)

    def __iter__(self) -> Iterator[Fragment]:
        return iter(self.fragments)

    @overload
    def __getitem__(self, i: int) -> Fragment: ...

    @overload
    def __getitem__(self, i: slice) -> tuple[Fragment, ...]: ...

    def __getitem__(self, i):
        return self.fragments[i]


def fragment(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> FragmentSet:
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise InvalidConfiguration(f"chunk size must be a positive integer, got {chunk_size!r}")

    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"data must be bytes-like, got {type(data).__name__}")
    data = bytes(data)
    fragments = tuple(
        Fragment(sequence_index=seq, payload=data[offset : offset + chunk_size])
        for seq, offset in enumerate(range(0, len(data), chunk_size))
    )
    return FragmentSet(fragments=fragments, chunk_size=chunk_size)
