from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Sequence

from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_DUPLICATE_RATE, DEFAULT_LOSS_RATE, DEFAULT_WORKERS
from .delivery import Delivery, DeliverySimulator, Impairment
from .errors import IncompleteReassembly, InvalidConfiguration
from .fragment import Fragment, FragmentSet, fragment
from .reassembler import Reassembler, ReassemblyStats

log = logging.getLogger(__name__)


def read_source(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


@dataclass(frozen=True, slots=True)
class SimulationResult:
    fragments: FragmentSet
    delivery: Delivery
    reconstructed: bytes | None
    missing: tuple[int, ...]
    stats: ReassemblyStats
    matches: bool
    duration_s: float

    @property
    def complete(self) -> bool:
        return self.reconstructed is not None


def ingest_all(reassembler: Reassembler, arrivals: Sequence[Fragment], workers: int = 1) -> None:
    """Feed ``arrivals`` to ``reassembler``, optionally from several threads."""
    if workers < 1:
        raise InvalidConfiguration(f"workers must be at least 1, got {workers}")
    if workers == 1:
        for frag in arrivals:
            reassembler.ingest(frag)
        return

    def runner(batch: Sequence[Fragment]) -> None:
        for frag in batch:
            reassembler.ingest(frag)

    threads = [
        threading.Thread(target=runner, args=(arrivals[w::workers],), daemon=True)
        for w in range(workers)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


def run_simulation(
    data: bytes,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    loss_rate: float = DEFAULT_LOSS_RATE,
    duplicate_rate: float = DEFAULT_DUPLICATE_RATE,
    reorder: bool = True,
    seed: int | None = None,
    workers: int = DEFAULT_WORKERS,
    provisional: bool = False,
) -> SimulationResult:
    if workers < 1:
        raise InvalidConfiguration(f"workers must be at least 1, got {workers}")

    impair = Impairment(loss_rate=loss_rate, duplicate_rate=duplicate_rate, reorder=reorder)
    frags = fragment(data, chunk_size)
    log.info(
        "session start; bytes=%d fragments=%d chunk_size=%d provisional=%s",
        len(data), len(frags), chunk_size, provisional,
    )

    start = time.monotonic()
    delivery = DeliverySimulator(impair, random.Random(seed)).deliver(frags)
    reassembler = Reassembler(None if provisional else len(frags))
    ingest_all(reassembler, delivery.arrivals, workers)

    reconstructed: bytes | None
    missing: tuple[int, ...] = ()
    try:
        reconstructed = reassembler.finalize()
    except IncompleteReassembly as e:
        log.warning("reassembly incomplete; missing=%s", list(e.missing_indices))
        reconstructed = None
        missing = e.missing_indices
    duration_s = time.monotonic() - start

    stats = reassembler.stats
    log.info(
        "session done; arrivals=%d dropped=%d duplicates=%d complete=%s",
        len(delivery.arrivals), len(delivery.dropped), stats.duplicates, reconstructed is not None,
    )
    return SimulationResult(
        fragments=frags,
        delivery=delivery,
        reconstructed=reconstructed,
        missing=missing,
        stats=stats,
        matches=reconstructed == bytes(data),
        duration_s=duration_s,
    )
