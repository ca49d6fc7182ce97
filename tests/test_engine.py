import json

import pytest

from lanpool.engine import PoolEngine
from lanpool.exceptions import DriftDeclinedError
from lanpool.models.enums import ReconcileState
from lanpool.net.candidates import CandidateGenerator
from lanpool.net.probing import AvailabilityProber
from lanpool.net.selector import PoolSelector
from lanpool.reconcile import Reconciler
from lanpool.state.store import StateStore
from tests.fakes import FakeChecker, make_context


class StaticProbe:
    def __init__(self, context):
        self.context = context

    def probe(self):
        return self.context


def make_engine(path, context, checker, confirm=None):
    selector = PoolSelector(AvailabilityProber([checker]), CandidateGenerator())
    return PoolEngine(
        probe=StaticProbe(context),
        store=StateStore(path),
        reconciler=Reconciler(selector, confirm=confirm),
    )


def test_first_run_persists_pool(tmp_path, lan_context):
    path = tmp_path / "state.json"
    result = make_engine(path, lan_context, FakeChecker()).ensure()

    assert result.persisted
    assert result.outcome.terminal is ReconcileState.RECOMPUTE
    data = json.loads(path.read_text())
    assert data["metallb_pool"] == {"start": "10.10.0.240", "end": "10.10.0.250"}
    assert data["traefik_ip"] == "10.10.0.240"
    assert data["cidr"] == "10.10.0.0/24"


def test_unchanged_network_is_stable(tmp_path, lan_context):
    path = tmp_path / "state.json"
    make_engine(path, lan_context, FakeChecker(occupied=["10.10.0.245"])).ensure()

    ping = FakeChecker(occupy_all=True)
    engine = make_engine(path, lan_context, ping)
    second = engine.ensure()
    third = engine.ensure()

    assert second.outcome.report.render() == third.outcome.report.render()
    assert third.outcome.terminal is ReconcileState.RETAIN
    assert third.outcome.pool.range == "10.10.0.249-10.10.0.254"
    assert ping.calls == []


def test_declined_drift_leaves_state_untouched(tmp_path, lan_context):
    path = tmp_path / "state.json"
    old_lan = make_context("192.168.1.0/24", "192.168.1.50", gateway="192.168.1.1")
    make_engine(path, old_lan, FakeChecker()).ensure()
    before = path.read_bytes()

    engine = make_engine(path, lan_context, FakeChecker(), confirm=lambda p, c: False)
    with pytest.raises(DriftDeclinedError):
        engine.ensure()

    assert path.read_bytes() == before


def test_dry_run_does_not_write(tmp_path, lan_context):
    path = tmp_path / "state.json"
    result = make_engine(path, lan_context, FakeChecker()).ensure(dry_run=True)

    assert not result.persisted
    assert not path.exists()


def test_requested_bounds_are_persisted(tmp_path, lan_context):
    path = tmp_path / "state.json"
    result = make_engine(path, lan_context, FakeChecker()).ensure(
        requested_start="10.10.0.50",
        requested_end="10.10.0.60",
        requested_vip="10.10.0.55",
    )

    assert result.outcome.pool.vip.exploded == "10.10.0.55"
    data = json.loads(path.read_text())
    assert data["metallb_pool"] == {"start": "10.10.0.50", "end": "10.10.0.60"}
    assert data["traefik_ip"] == "10.10.0.55"
