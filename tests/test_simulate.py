from __future__ import annotations

import pytest

from pktsim.delivery import DeliverySimulator
from pktsim.errors import InvalidConfiguration
from pktsim.fragment import fragment
from pktsim.reassembler import Reassembler
from pktsim.simulate import ingest_all, read_source, run_simulation

DATA = b"Packets may arrive in any order; the reassembler does not care.\n" * 20


def test_read_source(tmp_path):
    p = tmp_path / "msg.txt"
    p.write_bytes(b"HELLOWORLD")
    assert read_source(str(p)) == b"HELLOWORLD"


def test_read_source_missing_file_propagates(tmp_path):
    with pytest.raises(OSError):
        read_source(str(tmp_path / "nope.txt"))


def test_clean_run_reconstructs():
    r = run_simulation(DATA, chunk_size=5, seed=1)
    assert r.complete
    assert r.matches
    assert r.reconstructed == DATA
    assert r.missing == ()
    assert len(r.fragments) == len(fragment(DATA, 5))


def test_duplicates_do_not_break_reassembly():
    r = run_simulation(DATA, chunk_size=8, duplicate_rate=0.5, seed=9)
    assert r.matches
    assert r.stats.duplicates == len(r.delivery.duplicated)


def test_loss_reports_exactly_the_dropped_indices():
    r = run_simulation(DATA, chunk_size=8, loss_rate=0.2, seed=5)
    assert r.delivery.dropped
    assert not r.complete
    assert not r.matches
    assert r.missing == r.delivery.dropped


def test_concurrent_workers():
    r = run_simulation(DATA, chunk_size=3, duplicate_rate=0.3, seed=11, workers=6)
    assert r.matches


def test_provisional_mode_round_trip():
    r = run_simulation(DATA, chunk_size=7, seed=2, provisional=True)
    assert r.matches


def test_empty_data():
    r = run_simulation(b"", chunk_size=5, seed=0)
    assert len(r.fragments) == 0
    assert r.reconstructed == b""
    assert r.matches


def test_bad_workers():
    with pytest.raises(InvalidConfiguration):
        run_simulation(DATA, workers=0)
    with pytest.raises(InvalidConfiguration):
        ingest_all(Reassembler(), [], workers=0)


def _drop_nth_send(monkeypatch, n):
    calls = []

    def should_drop(self):
        calls.append(None)
        return len(calls) == n

    monkeypatch.setattr(DeliverySimulator, "should_drop", should_drop)


def test_provisional_mode_truncates_when_tail_is_lost(monkeypatch):
    data = b"HELLOWORLD!"
    _drop_nth_send(monkeypatch, 3)
    r = run_simulation(data, chunk_size=5, reorder=False, provisional=True)
    assert r.delivery.dropped == (2,)
    assert r.complete
    assert not r.matches
    assert r.reconstructed == b"HELLOWORLD"


def test_fixed_count_reports_lost_tail(monkeypatch):
    _drop_nth_send(monkeypatch, 3)
    r = run_simulation(b"HELLOWORLD!", chunk_size=5, reorder=False)
    assert not r.complete
    assert r.missing == (2,)
