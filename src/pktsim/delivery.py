from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterable, Sequence

from .constants import DEFAULT_DUPLICATE_RATE, DEFAULT_LOSS_RATE
from .errors import InvalidConfiguration
from .fragment import Fragment

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Impairment:
    loss_rate: float = DEFAULT_LOSS_RATE
    duplicate_rate: float = DEFAULT_DUPLICATE_RATE
    reorder: bool = True

    def __post_init__(self) -> None:
        for name in ("loss_rate", "duplicate_rate"):
            rate = getattr(self, name)
            if not 0.0 <= rate <= 1.0:
                raise InvalidConfiguration(f"{name} must be within [0, 1], got {rate}")


@dataclass(frozen=True, slots=True)
class Delivery:
    sent: tuple[Fragment, ...]
    arrivals: tuple[Fragment, ...]
    dropped: tuple[int, ...] = ()
    duplicated: tuple[int, ...] = ()


class DeliverySimulator:
    """Stands in for the network between fragmenter and reassembler.

    Fragments are sent in a shuffled order, lost or duplicated in transit,
    and reordered again before they arrive.
    """

    def __init__(self, impairment: Impairment | None = None, rng: random.Random | None = None):
        self.impairment = impairment or Impairment()
        self.rng = rng or random.Random()

    def should_drop(self) -> bool:
        return self.rng.random() < self.impairment.loss_rate

    def should_duplicate(self) -> bool:
        return self.rng.random() < self.impairment.duplicate_rate

    def deliver(self, fragments: Iterable[Fragment]) -> Delivery:
        sent = list(fragments)
        if self.impairment.reorder:
            self.rng.shuffle(sent)

        arrivals: list[Fragment] = []
        dropped: list[int] = []
        duplicated: list[int] = []

        for frag in sent:
            if self.should_drop():
                log.debug("DROPPED fragment #%d (%d bytes)", frag.sequence_index, frag.length)
                dropped.append(frag.sequence_index)
                continue
            arrivals.append(frag)
            if self.should_duplicate():
                log.debug("DUPLICATED fragment #%d", frag.sequence_index)
                duplicated.append(frag.sequence_index)
                arrivals.append(frag)

        if self.impairment.reorder:
            self.rng.shuffle(arrivals)

        return Delivery(
            sent=tuple(sent),
            arrivals=tuple(arrivals),
            dropped=tuple(sorted(dropped)),
            duplicated=tuple(sorted(duplicated)),
        )


def permute(fragments: Sequence[Fragment], order: Sequence[int]) -> tuple[Fragment, ...]:
    """Arrange ``fragments`` in an explicit arrival order."""
    if sorted(order) != list(range(len(fragments))):
        raise ValueError(f"order is not a permutation of 0..{len(fragments) - 1}: {list(order)}")
    return tuple(fragments[i] for i in order)
