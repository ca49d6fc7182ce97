import ipaddress

import pytest

from lanpool.exceptions import DriftDeclinedError
from lanpool.models.enums import PoolReason, PoolSource, ReconcileState
from lanpool.models.state import PersistedState, PoolRecord
from lanpool.net.candidates import CandidateGenerator
from lanpool.net.probing import AvailabilityProber
from lanpool.net.selector import PoolSelector
from lanpool.reconcile import Reconciler, choose_vip
from tests.fakes import FakeChecker, make_context

IP = ipaddress.IPv4Address
LAN = ipaddress.IPv4Network("10.10.0.0/24")


def stored_state(context, start="10.10.0.240", end="10.10.0.250", vip="10.10.0.240"):
    return PersistedState(
        iface=context.iface,
        cidr=context.cidr,
        addr=str(context.address),
        gw=context.gateway,
        mtu=context.mtu,
        metallb_pool=PoolRecord(start=start, end=end),
        traefik_ip=vip,
    )


def make_reconciler(checker=None, **kwargs):
    checker = checker or FakeChecker()
    selector = PoolSelector(AvailabilityProber([checker]), CandidateGenerator())
    return Reconciler(selector, **kwargs), checker


def test_first_run_recomputes(lan_context):
    reconciler, ping = make_reconciler()
    outcome = reconciler.reconcile(lan_context, None)

    assert outcome.observed is ReconcileState.UNKNOWN
    assert outcome.terminal is ReconcileState.RECOMPUTE
    assert outcome.pool.range == "10.10.0.240-10.10.0.250"
    assert outcome.pool.vip == IP("10.10.0.240")
    assert ping.calls


def test_matching_network_retains_without_probing(lan_context):
    reconciler, ping = make_reconciler(FakeChecker(occupy_all=True))
    previous = stored_state(lan_context, "10.10.0.100", "10.10.0.110", "10.10.0.105")

    outcome = reconciler.reconcile(lan_context, previous)

    assert outcome.observed is ReconcileState.MATCHING
    assert outcome.terminal is ReconcileState.RETAIN
    assert outcome.pool.range == "10.10.0.100-10.10.0.110"
    assert outcome.pool.vip == IP("10.10.0.105")
    assert outcome.report.source is PoolSource.PROVIDED
    assert outcome.report.reason is PoolReason.VALID
    assert ping.calls == []


def test_retain_is_idempotent(lan_context):
    reconciler, ping = make_reconciler()
    previous = stored_state(lan_context)

    first = reconciler.reconcile(lan_context, previous).report.render()
    second = reconciler.reconcile(lan_context, previous).report.render()

    assert first == second
    assert ping.calls == []


def test_drift_declined_raises(lan_context):
    old_lan = make_context("192.168.1.0/24", "192.168.1.50", gateway="192.168.1.1")
    previous = stored_state(old_lan)
    asked = []

    def decline(prev, current):
        asked.append((prev.cidr, current.cidr))
        return False

    reconciler, ping = make_reconciler(confirm=decline)
    with pytest.raises(DriftDeclinedError) as exc:
        reconciler.reconcile(lan_context, previous)

    assert exc.value.exit_code == 70
    assert asked == [("192.168.1.0/24", "10.10.0.0/24")]
    assert ping.calls == []


def test_drift_without_callback_declines(lan_context):
    previous = stored_state(make_context(mtu=9000))
    reconciler, _ = make_reconciler()
    with pytest.raises(DriftDeclinedError):
        reconciler.reconcile(lan_context, previous)


def test_drift_approved_recomputes_for_new_lan(lan_context):
    old_lan = make_context("192.168.1.0/24", "192.168.1.50", gateway="192.168.1.1")
    previous = stored_state(old_lan, "192.168.1.240", "192.168.1.250", "192.168.1.240")
    reconciler, _ = make_reconciler(confirm=lambda prev, cur: True)

    outcome = reconciler.reconcile(lan_context, previous)

    assert outcome.observed is ReconcileState.DRIFTED
    assert outcome.terminal is ReconcileState.RECOMPUTE
    assert outcome.pool.range == "10.10.0.240-10.10.0.250"
    assert outcome.pool.vip == IP("10.10.0.240")
    assert outcome.report.reason is PoolReason.OUTSIDE_CIDR


def test_assume_yes_skips_confirmation(lan_context):
    previous = stored_state(make_context(gateway="10.10.0.254"))

    def never(prev, cur):
        raise AssertionError("confirm should not be called")

    reconciler, _ = make_reconciler(confirm=never, assume_yes=True)
    outcome = reconciler.reconcile(lan_context, previous)

    # Same LAN, so the stored pool is still valid and kept
    assert outcome.terminal is ReconcileState.RECOMPUTE
    assert outcome.report.source is PoolSource.PROVIDED
    assert outcome.pool.range == "10.10.0.240-10.10.0.250"


def test_state_without_interface_is_unknown(lan_context):
    previous = stored_state(lan_context)
    previous.iface = ""
    reconciler, _ = make_reconciler()

    assert reconciler.observe(lan_context, previous) is ReconcileState.UNKNOWN
    outcome = reconciler.reconcile(lan_context, previous)
    assert outcome.terminal is ReconcileState.RECOMPUTE
    assert outcome.pool.range == "10.10.0.240-10.10.0.250"


def test_invalid_stored_pool_is_recomputed(lan_context):
    previous = stored_state(lan_context, "10.10.0.250", "10.10.0.240")
    reconciler, ping = make_reconciler()

    outcome = reconciler.reconcile(lan_context, previous)

    assert outcome.terminal is ReconcileState.RECOMPUTE
    assert outcome.report.reason is PoolReason.REVERSED
    assert ping.calls


def test_operator_bounds_override_stored_pool(lan_context):
    previous = stored_state(lan_context)
    reconciler, _ = make_reconciler()

    outcome = reconciler.reconcile(
        lan_context, previous, requested_start="10.10.0.20", requested_end="10.10.0.30"
    )

    assert outcome.terminal is ReconcileState.RECOMPUTE
    assert outcome.pool.range == "10.10.0.20-10.10.0.30"
    # Stored VIP is outside the new pool
    assert outcome.pool.vip == IP("10.10.0.20")


def test_operator_bounds_equal_to_stored_retain(lan_context):
    previous = stored_state(lan_context)
    reconciler, _ = make_reconciler()

    outcome = reconciler.reconcile(
        lan_context, previous, requested_start="10.10.0.240", requested_end="10.10.0.250"
    )
    assert outcome.terminal is ReconcileState.RETAIN


def test_force_ignores_stored_pool(lan_context):
    previous = stored_state(lan_context, "10.10.0.100", "10.10.0.110", "10.10.0.105")
    reconciler, ping = make_reconciler()

    outcome = reconciler.reconcile(lan_context, previous, force=True)

    assert outcome.observed is ReconcileState.UNKNOWN
    assert outcome.pool.range == "10.10.0.240-10.10.0.250"
    assert outcome.pool.vip == IP("10.10.0.240")
    assert ping.calls


def test_requested_vip_wins_over_stored(lan_context):
    previous = stored_state(lan_context)
    reconciler, _ = make_reconciler()

    outcome = reconciler.reconcile(lan_context, previous, requested_vip="10.10.0.248")
    assert outcome.pool.vip == IP("10.10.0.248")
    assert dict(outcome.report.to_assignments())["TRAEFIK_LOCAL_IP"] == "10.10.0.248"


@pytest.mark.parametrize(
    "requested, expected",
    [
        ("10.10.0.245", "10.10.0.245"),
        ("10.10.0.10", "10.10.0.240"),
        ("10.10.1.245", "10.10.0.240"),
        ("garbage", "10.10.0.240"),
        (None, "10.10.0.240"),
    ],
)
def test_choose_vip(requested, expected):
    vip = choose_vip(requested, IP("10.10.0.240"), IP("10.10.0.250"), LAN)
    assert vip == IP(expected)


def test_stored_pool_covering_new_gateway_is_replaced(lan_context):
    previous = stored_state(lan_context)
    moved = make_context(address="10.10.0.245", gateway="10.10.0.240", mtu=1500)
    reconciler, ping = make_reconciler(assume_yes=True)

    outcome = reconciler.reconcile(moved, previous)

    pool = outcome.pool
    assert outcome.terminal is ReconcileState.RECOMPUTE
    assert outcome.report.reason is PoolReason.HOST_CONFLICT
    assert outcome.report.source is PoolSource.CALCULATED
    for host in ("10.10.0.240", "10.10.0.245"):
        assert not pool.start <= IP(host) <= pool.end
    assert pool.vip != IP("10.10.0.240")
    assert pool.range == "10.10.0.249-10.10.0.254"
    assert ping.calls


def test_operator_bounds_may_cover_gateway(lan_context):
    reconciler, ping = make_reconciler()

    outcome = reconciler.reconcile(
        lan_context, None, requested_start="10.10.0.1", requested_end="10.10.0.10"
    )
    assert outcome.report.source is PoolSource.PROVIDED
    assert outcome.pool.range == "10.10.0.1-10.10.0.10"
    assert ping.calls == []
