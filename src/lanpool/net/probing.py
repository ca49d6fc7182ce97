"""
Address availability probing.

Decides whether any address of a candidate range is currently in use on the
LAN. Two signals are combined per address, in this order:

- Reachability: a single ICMP echo through ``ping``.
- Neighbor table: the kernel's ARP cache, read over netlink.

Signal availability is detected once when the prober is built. A missing
signal turns into a structured warning and is skipped; a failed probe counts
as "no signal", never as "occupied". Probes are not retried.
"""

from __future__ import annotations

import ipaddress
import shutil
import socket
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from lanpool.config import config
from lanpool.exceptions import ProbeFailedError, ToolUnavailableError
from lanpool.models.enums import ProbeWarning
from lanpool.models.network import Candidate, ProbeResult
from lanpool.net.netlink import open_iproute
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)

# Neighbor states (linux/neighbour.h) meaning the address did not resolve
NUD_INCOMPLETE = 0x01
NUD_FAILED = 0x20
DEAD_NEIGHBOR_STATES = NUD_INCOMPLETE | NUD_FAILED


# =============================================================================
# Checkers
# =============================================================================


class AvailabilityChecker(ABC):
    """
    One occupancy signal.

    Subclasses set ``signal`` (the ProbeResult field they fill), the two
    warning codes and ``available``, and implement ``check``.
    """

    signal: str = ""
    missing_warning: ProbeWarning
    failure_warning: ProbeWarning

    def __init__(self, name: str, timeout: int | None = None):
        self.name = name
        self.timeout = config.PROBE_TIMEOUT_SECONDS if timeout is None else timeout
        self.available = False

    @abstractmethod
    def check(self, address: ipaddress.IPv4Address) -> bool:
        """
        Probe one address.

        Returns:
            True if the address shows presence.

        Raises:
            ProbeFailedError: If the signal cannot be read for this address.
        """


class PingChecker(AvailabilityChecker):
    """Single ICMP echo with a short deadline."""

    signal = "reachable"
    missing_warning = ProbeWarning.MISSING_PING
    failure_warning = ProbeWarning.PING_EXEC_ERROR

    def __init__(self, command: str | None = None, timeout: int | None = None):
        super().__init__(command or config.PING_COMMAND, timeout)
        self.path = shutil.which(self.name)
        self.available = self.path is not None

    def check(self, address: ipaddress.IPv4Address) -> bool:
        try:
            result = subprocess.run(
                [self.path, "-c", "1", "-W", str(self.timeout), str(address)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout + 1,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return False
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeFailedError(f"{self.name} failed for {address}: {e}") from e
        return result.returncode == 0


class NeighborChecker(AvailabilityChecker):
    """
    Kernel neighbor table lookup for a single address.

    Args:
        iproute_factory: Callable returning an IPRoute-like object with
            ``get_neighbours`` and ``close``.
    """

    signal = "in_neighbor_table"
    missing_warning = ProbeWarning.MISSING_IP
    failure_warning = ProbeWarning.IP_CMD_FAILED

    def __init__(
        self,
        iproute_factory: Callable[[], object] | None = None,
        timeout: int | None = None,
    ):
        super().__init__("neighbor table", timeout)
        self._iproute_factory = iproute_factory or open_iproute
        self.available = self._detect()

    def _detect(self) -> bool:
        try:
            ipr = self._iproute_factory()
        except (ImportError, OSError) as e:
            logger.debug(f"Netlink unavailable for neighbor lookups: {e}")
            return False
        ipr.close()
        return True

    def check(self, address: ipaddress.IPv4Address) -> bool:
        try:
            from pyroute2 import NetlinkError

            ipr = self._iproute_factory()
        except (ImportError, OSError) as e:
            raise ProbeFailedError(f"Cannot open netlink socket: {e}") from e

        try:
            neighbours = list(
                ipr.get_neighbours(dst=str(address), family=socket.AF_INET)
            )
        except (OSError, NetlinkError) as e:
            raise ProbeFailedError(f"Neighbor lookup failed for {address}: {e}") from e
        finally:
            ipr.close()
        return neighbor_present(neighbours, address)


def neighbor_present(neighbours: Iterable, address: ipaddress.IPv4Address) -> bool:
    """
    Whether the neighbor messages hold a live entry for the address.

    Entries for other destinations and unresolved entries are ignored.
    """
    target = str(address)
    for msg in neighbours:
        if msg.get_attr("NDA_DST") != target:
            continue
        if msg["state"] & DEAD_NEIGHBOR_STATES:
            continue
        return True
    return False


def default_checkers(timeout: int | None = None) -> list[AvailabilityChecker]:
    return [PingChecker(timeout=timeout), NeighborChecker(timeout=timeout)]


# =============================================================================
# Prober
# =============================================================================


class AvailabilityProber:
    """
    Range occupancy decisions for the selector.

    When disabled every range is reported free and nothing is executed.
    """

    def __init__(
        self,
        checkers: list[AvailabilityChecker] | None = None,
        enabled: bool = True,
        require_probes: bool = False,
    ):
        """
        Args:
            checkers: Signals to use (ping + neighbor table by default)
            enabled: Probe at all (False for --skip-availability)
            require_probes: Raise when probing is enabled but no checker works

        Raises:
            ToolUnavailableError: If require_probes and no checker is usable.
        """
        self.enabled = enabled
        self.availability_checked = False
        self._warnings: set[str] = set()

        if not enabled:
            self._checkers: list[AvailabilityChecker] = []
            logger.debug("Availability probing disabled")
            return

        if checkers is None:
            checkers = default_checkers()

        for checker in checkers:
            if not checker.available:
                self._warnings.add(checker.missing_warning.value)
                logger.warning(f"{checker.name} not available; skipping that signal")
        self._checkers = [c for c in checkers if c.available]

        if require_probes and not self._checkers:
            missing = ", ".join(c.name for c in checkers) or "none configured"
            raise ToolUnavailableError(
                f"No availability probe tool found ({missing}); "
                f"install them or pass --skip-availability"
            )

    @property
    def warnings(self) -> list[str]:
        """Sorted warning codes collected so far."""
        warnings = set(self._warnings)
        if self.enabled and not self.availability_checked:
            warnings.add(ProbeWarning.NO_AVAILABILITY_CHECKS.value)
        return sorted(warnings)

    def probe_address(self, address: ipaddress.IPv4Address) -> ProbeResult:
        """Run each signal for one address, stopping at the first presence."""
        result = ProbeResult(address=address)
        for checker in self._checkers:
            if self._run(checker, address):
                setattr(result, checker.signal, True)
                break
        return result

    def is_range_free(self, candidate: Candidate) -> bool:
        """
        Whether no address of the candidate answers on the LAN.

        Scans in ascending order and stops at the first occupied address.
        """
        if not self.enabled:
            return True

        for address in candidate.addresses():
            result = self.probe_address(address)
            if result.occupied:
                logger.debug(
                    f"Candidate {candidate} busy: {address} "
                    f"(reachable={result.reachable}, "
                    f"neighbor={result.in_neighbor_table})"
                )
                return False
        return True

    def _run(self, checker: AvailabilityChecker, address: ipaddress.IPv4Address) -> bool:
        self.availability_checked = True
        try:
            present = checker.check(address)
        except ProbeFailedError as e:
            self._warnings.add(checker.failure_warning.value)
            logger.warning(str(e))
            return False
        logger.trace(f"{checker.name} {address}: {'present' if present else 'absent'}")
        return present
