"""
IPv4 address arithmetic for pool calculation.

Parsing, membership and usable-host bounds for LAN CIDRs. Networks with a
prefix of /30 or shorter reserve their network and broadcast addresses; /31
and /32 networks use every address (RFC 3021 point-to-point and host routes).
"""

from __future__ import annotations

import ipaddress

from lanpool.exceptions import InvalidNetworkError

# Prefix length above which network/broadcast are ordinary host addresses
RESERVED_MAX_PREFIX = 30


def parse_cidr(value: str) -> ipaddress.IPv4Network:
    """
    Parse an IPv4 CIDR, tolerating host bits (``10.0.0.42/24``).

    Raises:
        InvalidNetworkError: If the value is empty, malformed or IPv6.
    """
    value = (value or "").strip()
    if not value:
        raise InvalidNetworkError("LAN CIDR must be provided")
    try:
        network = ipaddress.ip_network(value, strict=False)
    except ValueError as e:
        raise InvalidNetworkError(f"Invalid LAN CIDR '{value}': {e}")
    if network.version != 4:
        raise InvalidNetworkError(f"LAN CIDR '{value}' must be IPv4")
    return network


def parse_ipv4(value: str | None) -> ipaddress.IPv4Address | None:
    """Parse an IPv4 address; None for empty, malformed or IPv6 input."""
    if not value:
        return None
    try:
        address = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    if address.version != 4:
        return None
    return address


def in_cidr(address: ipaddress.IPv4Address, network: ipaddress.IPv4Network) -> bool:
    """Membership by numeric range, network and broadcast included."""
    return (
        int(network.network_address) <= int(address) <= int(network.broadcast_address)
    )


def is_reserved(
    address: ipaddress.IPv4Address | None, network: ipaddress.IPv4Network
) -> bool:
    """Whether the address is the network or broadcast address of the LAN."""
    if address is None:
        return False
    if network.prefixlen <= RESERVED_MAX_PREFIX:
        return address in (network.network_address, network.broadcast_address)
    return False


def is_usable(
    address: ipaddress.IPv4Address | None, network: ipaddress.IPv4Network
) -> bool:
    """Inside the LAN and not reserved."""
    return (
        address is not None
        and in_cidr(address, network)
        and not is_reserved(address, network)
    )


def first_host(network: ipaddress.IPv4Network) -> ipaddress.IPv4Address:
    if network.prefixlen > RESERVED_MAX_PREFIX:
        return network.network_address
    return network.network_address + 1


def last_host(network: ipaddress.IPv4Network) -> ipaddress.IPv4Address:
    if network.prefixlen > RESERVED_MAX_PREFIX:
        return network.broadcast_address
    return network.broadcast_address - 1


def block_base(address: ipaddress.IPv4Address, prefix: int) -> int:
    """Integer base of the ``/prefix`` block containing the address."""
    mask = (0xFFFFFFFF << (32 - prefix)) & 0xFFFFFFFF
    return int(address) & mask
