"""
Network value objects.

Immutable records passed between the probe, the candidate generator, the
prober, the selector and the reconciler. Nothing here performs I/O.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from lanpool.models.enums import LinkClass
from lanpool.net.addressing import parse_ipv4

Fingerprint = tuple[str, str, str, str, int]


@dataclass(frozen=True)
class NetworkContext:
    """
    Observed live network facts for one run.

    Attributes:
        iface: Outbound interface name (empty for CIDR-only contexts)
        network: LAN network, derived from the interface address and prefix
        address: Host address on the LAN (None when unknown)
        gateway: Default gateway address (empty when the route has none)
        mtu: Link MTU (0 when unknown)
        link_class: Wired or wireless, informational only
    """

    iface: str
    network: ipaddress.IPv4Network
    address: ipaddress.IPv4Address | None = None
    gateway: str = ""
    mtu: int = 0
    link_class: LinkClass = LinkClass.WIRED

    @classmethod
    def from_cidr(
        cls,
        network: ipaddress.IPv4Network,
        address: ipaddress.IPv4Address | None = None,
    ) -> NetworkContext:
        """Build a context from an explicit CIDR (no interface facts)."""
        return cls(iface="", network=network, address=address)

    @property
    def cidr(self) -> str:
        return str(self.network)

    @property
    def fingerprint(self) -> Fingerprint:
        """Tuple used to detect that the environment has changed."""
        addr = str(self.address) if self.address is not None else ""
        return (self.iface, self.cidr, addr, self.gateway, self.mtu)

    @property
    def known_hosts(self) -> list[ipaddress.IPv4Address]:
        """Addresses known to be taken: the host itself and its gateway."""
        hosts = [self.address, parse_ipv4(self.gateway)]
        return [host for host in hosts if host is not None]

    def describe(self) -> str:
        addr = self.address if self.address is not None else "?"
        return (
            f"iface={self.iface or '?'} ({self.link_class.value}), "
            f"addr={addr}/{self.network.prefixlen}, "
            f"gw={self.gateway or '<none>'}, mtu={self.mtu or 'unknown'}"
        )


@dataclass(frozen=True)
class Candidate:
    """A contiguous address range considered for the pool (inclusive)."""

    start: ipaddress.IPv4Address
    end: ipaddress.IPv4Address

    @property
    def size(self) -> int:
        return int(self.end) - int(self.start) + 1

    def addresses(self):
        """Iterate member addresses in ascending order."""
        for value in range(int(self.start), int(self.end) + 1):
            yield ipaddress.IPv4Address(value)

    def __contains__(self, address: ipaddress.IPv4Address) -> bool:
        return self.start <= address <= self.end

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class AddressPool:
    """Selected pool plus the VIP advertised by the ingress gateway."""

    start: ipaddress.IPv4Address
    end: ipaddress.IPv4Address
    vip: ipaddress.IPv4Address

    def __post_init__(self):
        if not self.start <= self.vip <= self.end:
            raise ValueError(f"VIP {self.vip} is outside pool {self.range}")

    @classmethod
    def from_candidate(
        cls, candidate: Candidate, vip: ipaddress.IPv4Address | None = None
    ) -> AddressPool:
        """Pool covering a candidate; the VIP defaults to the start address."""
        return cls(
            start=candidate.start,
            end=candidate.end,
            vip=vip if vip is not None else candidate.start,
        )

    @property
    def range(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass
class ProbeResult:
    """Per-address availability probe outcome."""

    address: ipaddress.IPv4Address
    reachable: bool = False
    in_neighbor_table: bool = False

    @property
    def occupied(self) -> bool:
        return self.reachable or self.in_neighbor_table
