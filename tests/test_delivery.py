from __future__ import annotations

import random

import pytest

from pktsim.delivery import DeliverySimulator, Impairment, permute
from pktsim.errors import InvalidConfiguration
from pktsim.fragment import fragment

FRAGS = fragment(b"abcdefghijklmnopqrstuvwxyz" * 4, 3)


def test_clean_in_order_delivery():
    d = DeliverySimulator(Impairment(reorder=False)).deliver(FRAGS)
    assert d.arrivals == FRAGS.fragments
    assert d.dropped == ()
    assert d.duplicated == ()


def test_reorder_keeps_every_fragment():
    d = DeliverySimulator(Impairment(), random.Random(7)).deliver(FRAGS)
    assert sorted(d.arrivals, key=lambda f: f.sequence_index) == list(FRAGS)


def test_same_seed_same_delivery():
    impair = Impairment(loss_rate=0.3, duplicate_rate=0.3)
    a = DeliverySimulator(impair, random.Random(42)).deliver(FRAGS)
    b = DeliverySimulator(impair, random.Random(42)).deliver(FRAGS)
    assert a == b


def test_loss_and_duplicate_accounting():
    impair = Impairment(loss_rate=0.25, duplicate_rate=0.5)
    d = DeliverySimulator(impair, random.Random(3)).deliver(FRAGS)
    arrived = [f.sequence_index for f in d.arrivals]
    assert len(arrived) == len(FRAGS) - len(d.dropped) + len(d.duplicated)
    assert not set(arrived) & set(d.dropped)
    assert set(arrived) | set(d.dropped) == set(range(len(FRAGS)))
    for idx in d.duplicated:
        assert arrived.count(idx) == 2


def test_total_loss():
    d = DeliverySimulator(Impairment(loss_rate=1.0), random.Random(0)).deliver(FRAGS)
    assert d.arrivals == ()
    assert d.dropped == tuple(range(len(FRAGS)))


@pytest.mark.parametrize("kwargs", [{"loss_rate": -0.1}, {"loss_rate": 1.5}, {"duplicate_rate": 2.0}])
def test_bad_rates(kwargs):
    with pytest.raises(InvalidConfiguration):
        Impairment(**kwargs)


def test_permute():
    fs = fragment(b"HELLOWORLD!", 5)
    assert [f.sequence_index for f in permute(fs.fragments, [2, 0, 1])] == [2, 0, 1]


@pytest.mark.parametrize("order", [[0, 1], [0, 0, 1], [0, 1, 3]])
def test_permute_rejects_non_permutation(order):
    fs = fragment(b"HELLOWORLD!", 5)
    with pytest.raises(ValueError):
        permute(fs.fragments, order)


def test_sent_lists_every_fragment_despite_loss():
    impair = Impairment(loss_rate=0.5, duplicate_rate=0.5)
    d = DeliverySimulator(impair, random.Random(1)).deliver(FRAGS)
    assert sorted(f.sequence_index for f in d.sent) == list(range(len(FRAGS)))
    assert len(d.sent) == len(FRAGS)


def test_no_reorder_sends_in_original_order():
    d = DeliverySimulator(Impairment(reorder=False)).deliver(FRAGS)
    assert d.sent == FRAGS.fragments
