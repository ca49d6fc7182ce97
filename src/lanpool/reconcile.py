"""
Reconciliation of the current network against the previous run.

State machine for one run:

    UNKNOWN  (no usable previous state, or forced)  -> RECOMPUTE
    MATCHING (fingerprint equal, stored pool valid) -> RETAIN
    DRIFTED  (fingerprint differs)                  -> confirm -> RECOMPUTE

RETAIN carries the stored pool and VIP forward without probing. RECOMPUTE
keeps the requested (operator or stored) bounds when they still validate
against the new LAN and only runs the selector otherwise. A declined drift
confirmation aborts the run before anything is written.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Callable
from dataclasses import dataclass

from lanpool.calculator import PoolReport, calculate_pool
from lanpool.exceptions import DriftDeclinedError
from lanpool.models.enums import PoolReason, PoolSource, ReconcileState
from lanpool.models.network import AddressPool, NetworkContext
from lanpool.models.state import PersistedState
from lanpool.net.addressing import is_usable, parse_ipv4
from lanpool.net.selector import PoolSelector
from lanpool.net.validation import validate_pool
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)

# confirm(previous, current) -> True to continue on the new network
ConfirmCallback = Callable[[PersistedState, NetworkContext], bool]


@dataclass
class ReconcileOutcome:
    """Result of one reconciliation."""

    observed: ReconcileState
    terminal: ReconcileState
    report: PoolReport

    @property
    def pool(self) -> AddressPool:
        return self.report.pool


def choose_vip(
    requested: str | None,
    start: ipaddress.IPv4Address,
    end: ipaddress.IPv4Address,
    network: ipaddress.IPv4Network,
) -> ipaddress.IPv4Address:
    """
    Keep a requested VIP if it is usable in the LAN and inside the pool.

    Otherwise the pool start becomes the VIP.
    """
    vip = parse_ipv4(requested)
    if vip is not None and is_usable(vip, network) and start <= vip <= end:
        logger.info(f"Keeping Traefik LoadBalancer IP {vip}")
        return vip
    logger.info(f"Assigning Traefik LoadBalancer IP {start}")
    return start


class Reconciler:
    """
    Decides whether the previous pool can be reused.

    Args:
        selector: Selector used when a pool must be derived
        confirm: Drift confirmation callback (None declines drift)
        assume_yes: Approve drift without asking
    """

    def __init__(
        self,
        selector: PoolSelector,
        confirm: ConfirmCallback | None = None,
        assume_yes: bool = False,
    ):
        self.selector = selector
        self.confirm = confirm
        self.assume_yes = assume_yes

    def observe(
        self,
        context: NetworkContext,
        previous: PersistedState | None,
        force: bool = False,
    ) -> ReconcileState:
        """Classify the run before any decision is taken."""
        if force or previous is None or not previous.has_fingerprint:
            return ReconcileState.UNKNOWN
        if previous.fingerprint == context.fingerprint:
            return ReconcileState.MATCHING
        return ReconcileState.DRIFTED

    def reconcile(
        self,
        context: NetworkContext,
        previous: PersistedState | None,
        requested_start: str = "",
        requested_end: str = "",
        requested_vip: str = "",
        force: bool = False,
    ) -> ReconcileOutcome:
        """
        Run the state machine.

        Args:
            context: Current network
            previous: Loaded state (None if absent)
            requested_start: Operator-provided pool start
            requested_end: Operator-provided pool end
            requested_vip: Operator-provided VIP
            force: Ignore the stored pool and VIP and recompute

        Raises:
            DriftDeclinedError: If drift was not confirmed.
            InvalidNetworkError: If the LAN yields no candidate.
        """
        observed = self.observe(context, previous, force)
        logger.debug(f"Reconcile state: {observed.value}")

        if observed is ReconcileState.DRIFTED:
            self._confirm_drift(previous, context)

        if force:
            previous = None

        if observed is ReconcileState.MATCHING and self._can_retain(
            context, previous, requested_start, requested_end
        ):
            return ReconcileOutcome(
                observed=observed,
                terminal=ReconcileState.RETAIN,
                report=self._retain(context, previous, requested_vip),
            )

        return ReconcileOutcome(
            observed=observed,
            terminal=ReconcileState.RECOMPUTE,
            report=self._recompute(
                context, previous, requested_start, requested_end, requested_vip
            ),
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def _confirm_drift(self, previous: PersistedState, context: NetworkContext) -> None:
        logger.warning("Network fingerprint changed since last run")
        logger.warning(
            f"Previous: iface={previous.iface or '?'}, cidr={previous.cidr or '?'}, "
            f"addr={previous.addr or '?'}, gw={previous.gw or '?'}, "
            f"mtu={previous.mtu or '?'}"
        )
        logger.warning(
            f"Current : iface={context.iface}, cidr={context.cidr}, "
            f"addr={context.address}, gw={context.gateway}, mtu={context.mtu}"
        )

        if self.assume_yes:
            logger.info("--assume-yes supplied; continuing despite network change")
            return
        if self.confirm is None or not self.confirm(previous, context):
            raise DriftDeclinedError()

    @staticmethod
    def _can_retain(
        context: NetworkContext,
        previous: PersistedState | None,
        requested_start: str,
        requested_end: str,
    ) -> bool:
        if previous is None or not previous.has_pool:
            return False

        stored = previous.metallb_pool
        if requested_start or requested_end:
            if (requested_start, requested_end) != (stored.start, stored.end):
                logger.info("Explicit MetalLB pool differs from stored pool")
                return False

        reason = validate_pool(context.network, stored.start, stored.end)
        if reason is not PoolReason.VALID:
            logger.warning(f"Stored MetalLB pool is unusable ({reason.value})")
            return False
        return True

    def _retain(
        self,
        context: NetworkContext,
        previous: PersistedState,
        requested_vip: str,
    ) -> PoolReport:
        stored = previous.metallb_pool
        start = parse_ipv4(stored.start)
        end = parse_ipv4(stored.end)
        vip = choose_vip(
            requested_vip or previous.traefik_ip, start, end, context.network
        )

        logger.info(f"Network unchanged; keeping MetalLB pool {start}-{end}")
        return PoolReport(
            pool=AddressPool(start=start, end=end, vip=vip),
            source=PoolSource.PROVIDED,
            reason=PoolReason.VALID,
            original_start=stored.start,
            original_end=stored.end,
            state=ReconcileState.RETAIN,
        )

    def _recompute(
        self,
        context: NetworkContext,
        previous: PersistedState | None,
        requested_start: str,
        requested_end: str,
        requested_vip: str,
    ) -> PoolReport:
        start_raw, end_raw = requested_start, requested_end
        vip_raw = requested_vip
        from_stored = False
        if previous is not None:
            stored = previous.metallb_pool
            if stored is not None:
                from_stored = (not start_raw and bool(stored.start)) or (
                    not end_raw and bool(stored.end)
                )
                start_raw = start_raw or stored.start
                end_raw = end_raw or stored.end
            vip_raw = vip_raw or (previous.traefik_ip or "")

        # A stored pool may now cover the host or gateway after a network move
        avoid = context.known_hosts if from_stored else ()
        report = calculate_pool(context, start_raw, end_raw, self.selector, avoid)
        vip = choose_vip(vip_raw, report.pool.start, report.pool.end, context.network)

        report = report.with_pool(
            AddressPool(start=report.pool.start, end=report.pool.end, vip=vip)
        )
        report.state = ReconcileState.RECOMPUTE
        return report
