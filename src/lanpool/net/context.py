"""
Live network context discovery.

Reads the kernel routing and link tables over netlink (pyroute2) to find the
outbound interface of the IPv4 default route, its address and prefix, the
gateway and the link MTU. The CIDR always comes from the interface's own
prefix length, never from an assumed mask.
"""

from __future__ import annotations

import ipaddress
import socket
from collections.abc import Callable
from pathlib import Path

from lanpool.exceptions import (
    NoAddressOnInterfaceError,
    NoDefaultRouteError,
    ToolUnavailableError,
)
from lanpool.models.enums import LinkClass
from lanpool.models.network import NetworkContext
from lanpool.net.netlink import open_iproute
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)

WIRELESS_PREFIXES = ("wl", "wifi", "ath")
SYSFS_NET = "/sys/class/net"


def classify_link(iface: str, sysfs_root: str = SYSFS_NET) -> LinkClass:
    """Wired or wireless, from the interface name and sysfs."""
    if iface.startswith(WIRELESS_PREFIXES):
        return LinkClass.WIFI
    if (Path(sysfs_root) / iface / "wireless").exists():
        return LinkClass.WIFI
    return LinkClass.WIRED


class NetworkContextProbe:
    """
    Discovers the active outbound network.

    Args:
        iproute_factory: Callable returning an IPRoute-like object with
            ``get_default_routes``, ``get_links``, ``get_addr`` and ``close``.
        sysfs_root: Root of the sysfs net class tree (for link classification).
    """

    def __init__(
        self,
        iproute_factory: Callable[[], object] | None = None,
        sysfs_root: str = SYSFS_NET,
    ):
        self._iproute_factory = iproute_factory or open_iproute
        self._sysfs_root = sysfs_root

    def probe(self) -> NetworkContext:
        """
        Return the current NetworkContext.

        Raises:
            NoDefaultRouteError: If there is no IPv4 default route.
            NoAddressOnInterfaceError: If the outbound interface has no IPv4
                address.
            ToolUnavailableError: If netlink cannot be used on this host.
        """
        try:
            from pyroute2 import NetlinkError
        except ImportError as e:
            raise ToolUnavailableError(f"pyroute2 is not available: {e}")

        try:
            ipr = self._iproute_factory()
        except (ImportError, OSError, NetlinkError) as e:
            raise ToolUnavailableError(f"Cannot open netlink socket: {e}")

        try:
            return self._probe_with(ipr)
        except (OSError, NetlinkError) as e:
            raise ToolUnavailableError(f"Netlink query failed: {e}")
        finally:
            ipr.close()

    def _probe_with(self, ipr) -> NetworkContext:
        oif, gateway = self._default_route(ipr)

        links = list(ipr.get_links(oif))
        if not links:
            raise NoDefaultRouteError()
        link = links[0]
        iface = link.get_attr("IFLA_IFNAME") or ""
        mtu = link.get_attr("IFLA_MTU") or 0

        address, prefixlen = self._first_ipv4(ipr, oif, iface)
        network = ipaddress.IPv4Network(f"{address}/{prefixlen}", strict=False)

        context = NetworkContext(
            iface=iface,
            network=network,
            address=address,
            gateway=gateway,
            mtu=int(mtu),
            link_class=classify_link(iface, self._sysfs_root),
        )
        logger.info(f"Active network: {context.describe()}")
        return context

    @staticmethod
    def _default_route(ipr) -> tuple[int, str]:
        """Output interface index and gateway of the preferred default route."""
        routes = [
            route
            for route in ipr.get_default_routes(family=socket.AF_INET)
            if route.get_attr("RTA_OIF") is not None
        ]
        if not routes:
            raise NoDefaultRouteError()

        route = min(routes, key=lambda r: r.get_attr("RTA_PRIORITY") or 0)
        gateway = route.get_attr("RTA_GATEWAY") or ""
        return route.get_attr("RTA_OIF"), gateway

    @staticmethod
    def _first_ipv4(ipr, index: int, iface: str) -> tuple[ipaddress.IPv4Address, int]:
        for msg in ipr.get_addr(family=socket.AF_INET, index=index):
            value = msg.get_attr("IFA_LOCAL") or msg.get_attr("IFA_ADDRESS")
            if value:
                return ipaddress.IPv4Address(value), int(msg["prefixlen"])
        raise NoAddressOnInterfaceError(iface)
