"""
Candidate range generation.

Produces the preference-ordered sequence of address ranges the selector
tries, highest preference first:

1. A fixed window (host suffixes .240-.250 by default) inside the host's own
   /24-aligned block, only when every address of it is usable in the LAN.
2. The usable hosts of every /29 sub-block of the LAN, highest block first.
3. The full usable host range of the LAN as the last resort.

High host numbers come first because DHCP servers usually hand out leases
from the bottom of the range. The window is always anchored to the host's
/24 block regardless of the LAN prefix, so on a /16 the window follows the
/24 the host lives in and on a LAN narrower than /24 it is used only when it
fits entirely.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Iterator

from lanpool.config import config
from lanpool.models.network import Candidate
from lanpool.net.addressing import (
    RESERVED_MAX_PREFIX,
    block_base,
    first_host,
    in_cidr,
    is_reserved,
    is_usable,
    last_host,
)
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)

# Sub-blocks with fewer usable hosts than this are not offered
MIN_SUBBLOCK_HOSTS = 2


class CandidateGenerator:
    """
    Deterministic candidate sequence for a LAN.

    Each ``generate`` call returns a fresh lazy iterator; the order depends
    only on the network, the host address and the generator settings.
    """

    def __init__(
        self,
        window_start: int | None = None,
        window_end: int | None = None,
        subblock_prefix: int | None = None,
    ):
        self.window_start = (
            config.PREFERRED_WINDOW_START if window_start is None else window_start
        )
        self.window_end = (
            config.PREFERRED_WINDOW_END if window_end is None else window_end
        )
        self.subblock_prefix = (
            config.SUBBLOCK_PREFIX if subblock_prefix is None else subblock_prefix
        )

        if not 0 <= self.window_start <= self.window_end <= 255:
            raise ValueError(
                f"Invalid preferred window .{self.window_start}-.{self.window_end}"
            )
        if not 1 <= self.subblock_prefix <= 32:
            raise ValueError(f"Invalid sub-block prefix: /{self.subblock_prefix}")

    def generate(
        self,
        network: ipaddress.IPv4Network,
        host_address: ipaddress.IPv4Address | None = None,
    ) -> Iterator[Candidate]:
        """
        Yield candidates for the network, duplicates removed.

        Args:
            network: LAN network
            host_address: Host's own LAN address, anchors the preferred window
        """
        seen: set[tuple[int, int]] = set()
        for candidate in self._raw_candidates(network, host_address):
            if not self._is_valid(candidate, network):
                continue
            key = (int(candidate.start), int(candidate.end))
            if key in seen:
                continue
            seen.add(key)
            yield candidate

    # =========================================================================
    # Ordering policy
    # =========================================================================

    def _raw_candidates(
        self,
        network: ipaddress.IPv4Network,
        host_address: ipaddress.IPv4Address | None,
    ) -> Iterator[Candidate]:
        window = self.preferred_window(network, host_address)
        if window is not None:
            yield window

        yield from self.subblock_candidates(network)

        yield Candidate(first_host(network), last_host(network))

    def preferred_window(
        self,
        network: ipaddress.IPv4Network,
        host_address: ipaddress.IPv4Address | None,
    ) -> Candidate | None:
        """The fixed high window in the host's /24, if fully usable."""
        if host_address is None:
            return None

        base = block_base(host_address, 24)
        start = ipaddress.IPv4Address(base + self.window_start)
        end = ipaddress.IPv4Address(base + self.window_end)

        window = Candidate(start, end)
        if all(is_usable(address, network) for address in window.addresses()):
            return window

        logger.debug(f"Preferred window {window} does not fit inside {network}")
        return None

    def subblock_candidates(self, network: ipaddress.IPv4Network) -> Iterator[Candidate]:
        """Usable host range of each sub-block, highest block first."""
        if network.prefixlen > self.subblock_prefix:
            return

        block_size = 1 << (32 - self.subblock_prefix)
        lowest = int(network.network_address)
        block = int(network.broadcast_address) - block_size + 1

        while block >= lowest:
            if self.subblock_prefix <= RESERVED_MAX_PREFIX:
                start, end = block + 1, block + block_size - 2
            else:
                start, end = block, block + block_size - 1

            if is_reserved(ipaddress.IPv4Address(start), network):
                start += 1
            if is_reserved(ipaddress.IPv4Address(end), network):
                end -= 1

            if end - start + 1 >= MIN_SUBBLOCK_HOSTS:
                yield Candidate(ipaddress.IPv4Address(start), ipaddress.IPv4Address(end))

            block -= block_size

    @staticmethod
    def _is_valid(candidate: Candidate, network: ipaddress.IPv4Network) -> bool:
        return (
            candidate.start <= candidate.end
            and in_cidr(candidate.start, network)
            and in_cidr(candidate.end, network)
            and not is_reserved(candidate.start, network)
            and not is_reserved(candidate.end, network)
        )
