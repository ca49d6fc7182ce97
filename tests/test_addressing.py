import ipaddress

import pytest

from lanpool.exceptions import InvalidNetworkError
from lanpool.net.addressing import (
    block_base,
    first_host,
    in_cidr,
    is_reserved,
    is_usable,
    last_host,
    parse_cidr,
    parse_ipv4,
)

IP = ipaddress.IPv4Address
NET = ipaddress.IPv4Network


def test_parse_cidr_tolerates_host_bits():
    assert parse_cidr("10.10.0.42/24") == NET("10.10.0.0/24")
    assert parse_cidr(" 192.168.1.0/24 ") == NET("192.168.1.0/24")


@pytest.mark.parametrize("value", ["", "   ", "not-a-cidr", "10.0.0.0/33", "fd00::/64"])
def test_parse_cidr_rejects(value):
    with pytest.raises(InvalidNetworkError) as exc:
        parse_cidr(value)
    assert exc.value.exit_code == 65


@pytest.mark.parametrize("value", [None, "", "10.0.0.256", "abc", "fe80::1"])
def test_parse_ipv4_invalid_is_none(value):
    assert parse_ipv4(value) is None


def test_parse_ipv4_strips():
    assert parse_ipv4(" 10.0.0.5 ") == IP("10.0.0.5")


def test_reserved_only_up_to_slash_30():
    lan = NET("10.10.0.0/24")
    assert is_reserved(IP("10.10.0.0"), lan)
    assert is_reserved(IP("10.10.0.255"), lan)
    assert not is_reserved(IP("10.10.0.1"), lan)

    p2p = NET("10.0.0.0/31")
    assert not is_reserved(IP("10.0.0.0"), p2p)
    assert not is_reserved(IP("10.0.0.1"), p2p)


def test_usable_requires_membership():
    lan = NET("10.10.0.0/24")
    assert is_usable(IP("10.10.0.42"), lan)
    assert not is_usable(IP("10.10.1.42"), lan)
    assert not is_usable(IP("10.10.0.255"), lan)
    assert not is_usable(None, lan)
    assert in_cidr(IP("10.10.0.255"), lan)


@pytest.mark.parametrize(
    "cidr, first, last",
    [
        ("10.10.0.0/24", "10.10.0.1", "10.10.0.254"),
        ("10.0.0.0/30", "10.0.0.1", "10.0.0.2"),
        ("10.0.0.0/31", "10.0.0.0", "10.0.0.1"),
        ("10.0.0.7/32", "10.0.0.7", "10.0.0.7"),
    ],
)
def test_host_bounds(cidr, first, last):
    network = NET(cidr)
    assert first_host(network) == IP(first)
    assert last_host(network) == IP(last)


def test_block_base():
    assert IP(block_base(IP("10.20.5.77"), 24)) == IP("10.20.5.0")
    assert IP(block_base(IP("10.20.5.77"), 29)) == IP("10.20.5.72")
