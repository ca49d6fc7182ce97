import ipaddress

import pytest

from lanpool.exceptions import InvalidNetworkError
from lanpool.net.candidates import CandidateGenerator
from lanpool.net.probing import AvailabilityProber
from lanpool.net.selector import PoolSelector
from tests.fakes import FakeChecker, make_context


def selector_for(*checkers, **kwargs):
    return PoolSelector(AvailabilityProber(list(checkers), **kwargs), CandidateGenerator())


def test_free_window_is_selected(lan_context):
    ping = FakeChecker()
    result = selector_for(ping).select(lan_context)

    assert result.pool.range == "10.10.0.240-10.10.0.250"
    assert result.pool.vip == result.pool.start
    assert result.conflicts == []
    assert not result.fallback
    assert result.availability_checked
    assert len(ping.calls) == 11


def test_busy_window_moves_to_top_subblock(lan_context):
    result = selector_for(FakeChecker(occupied=["10.10.0.245"])).select(lan_context)

    assert result.pool.range == "10.10.0.249-10.10.0.254"
    assert [str(c) for c in result.conflicts] == ["10.10.0.240-10.10.0.250"]
    assert not result.fallback


def test_everything_busy_falls_back_to_first_candidate(lan_context):
    result = selector_for(FakeChecker(occupy_all=True)).select(lan_context)

    assert result.fallback
    assert result.pool.range == "10.10.0.240-10.10.0.250"
    assert len(result.conflicts) == 34


def test_disabled_probing_picks_first_candidate(lan_context):
    ping = FakeChecker(occupy_all=True)
    result = selector_for(ping, enabled=False).select(lan_context)

    assert result.pool.range == "10.10.0.240-10.10.0.250"
    assert not result.fallback
    assert not result.availability_checked
    assert result.warnings == []
    assert ping.calls == []


def test_missing_tools_reported(lan_context):
    result = selector_for(FakeChecker(available=False)).select(lan_context)

    assert result.pool.range == "10.10.0.240-10.10.0.250"
    assert result.warnings == ["missing_ping", "no_availability_checks"]


def test_point_to_point_link():
    context = make_context("10.0.0.0/31", "10.0.0.0")
    result = selector_for(FakeChecker()).select(context)
    assert result.pool.range == "10.0.0.0-10.0.0.1"


def test_no_candidates_is_an_error():
    class EmptyGenerator(CandidateGenerator):
        def generate(self, network, host_address=None):
            return iter(())

    selector = PoolSelector(AvailabilityProber([FakeChecker()]), EmptyGenerator())
    with pytest.raises(InvalidNetworkError):
        selector.select(make_context())


def test_conflicts_do_not_include_selected(lan_context):
    ping = FakeChecker(occupied=["10.10.0.245", "10.10.0.243"])
    result = selector_for(ping).select(lan_context)
    selected = ipaddress.IPv4Address("10.10.0.249")
    assert result.pool.start == selected
    assert all(str(c) != result.pool.range for c in result.conflicts)


def test_ranges_covering_host_are_not_probed():
    context = make_context(address="10.10.0.245")
    ping = FakeChecker()
    result = selector_for(ping).select(context)

    assert result.pool.range == "10.10.0.249-10.10.0.254"
    assert [str(c) for c in result.conflicts] == ["10.10.0.240-10.10.0.250"]
    assert ipaddress.IPv4Address("10.10.0.240") not in ping.calls


def test_unverified_pool_still_avoids_gateway():
    context = make_context(address="10.10.0.42", gateway="10.10.0.244")
    result = selector_for(FakeChecker(), enabled=False).select(context)

    assert result.pool.range == "10.10.0.249-10.10.0.254"
    assert not result.fallback
