"""
Pool calculation for a known LAN.

Accepts operator-provided bounds when they are usable as-is, otherwise asks
the selector for a pool. The result is a ``PoolReport`` that renders to the
key=value lines consumed by the provisioning scripts.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from lanpool.models.enums import PoolReason, PoolSource, ReconcileState
from lanpool.models.network import AddressPool, NetworkContext
from lanpool.net.addressing import parse_ipv4
from lanpool.net.selector import PoolSelector
from lanpool.net.validation import validate_pool
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Report
# =============================================================================


@dataclass
class PoolReport:
    """
    Everything a run reports about the chosen pool.

    Attributes:
        pool: Selected pool and VIP
        source: Whether the bounds were accepted or calculated
        reason: Validation outcome of the requested bounds
        fallback: True if no candidate was confirmed free
        conflicts: Candidate ranges rejected because of activity
        warnings: Probe warning codes
        original_start: Raw requested start, echoed back
        original_end: Raw requested end, echoed back
        state: Reconciler terminal state (ensure runs only)
    """

    pool: AddressPool
    source: PoolSource
    reason: PoolReason
    fallback: bool = False
    conflicts: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    original_start: str = ""
    original_end: str = ""
    state: ReconcileState | None = None

    def to_assignments(self) -> list[tuple[str, str]]:
        """Ordered (key, value) pairs for stdout."""
        pairs = [
            ("METALLB_POOL_START", str(self.pool.start)),
            ("METALLB_POOL_END", str(self.pool.end)),
            ("LABZ_METALLB_RANGE", self.pool.range),
            ("NETCALC_SOURCE", self.source.value),
            ("NETCALC_REASON", self.reason.value),
            ("NETCALC_FALLBACK", "1" if self.fallback else "0"),
            ("NETCALC_CONFLICTS", ";".join(self.conflicts)),
            ("NETCALC_WARNINGS", ",".join(self.warnings)),
            ("NETCALC_ORIGINAL_START", self.original_start),
            ("NETCALC_ORIGINAL_END", self.original_end),
        ]
        if self.state is not None:
            pairs.append(("TRAEFIK_LOCAL_IP", str(self.pool.vip)))
            pairs.append(("NETCALC_STATE", self.state.value))
        return pairs

    def render(self) -> str:
        return "\n".join(f"{key}={value}" for key, value in self.to_assignments())

    def with_pool(self, pool: AddressPool) -> PoolReport:
        return replace(self, pool=pool)


# =============================================================================
# Calculation
# =============================================================================


def calculate_pool(
    context: NetworkContext,
    start_raw: str | None,
    end_raw: str | None,
    selector: PoolSelector,
    avoid: Sequence[ipaddress.IPv4Address] = (),
) -> PoolReport:
    """
    Validate requested bounds, falling back to selection.

    Args:
        context: LAN to allocate from (address used for the preferred window)
        start_raw: Requested start (operator or previous run), may be empty
        end_raw: Requested end, may be empty
        selector: Selector used when the bounds are not usable
        avoid: Addresses the accepted bounds must not cover

    Raises:
        InvalidNetworkError: If the LAN yields no candidate.
    """
    start_raw = (start_raw or "").strip()
    end_raw = (end_raw or "").strip()
    reason = validate_pool(context.network, start_raw, end_raw)

    if reason is PoolReason.VALID:
        start = parse_ipv4(start_raw)
        end = parse_ipv4(end_raw)
        covered = [str(a) for a in avoid if start <= a <= end]
        if covered:
            logger.debug(
                f"MetalLB pool {start}-{end} covers {', '.join(covered)}; recalculating"
            )
            reason = PoolReason.HOST_CONFLICT

    if reason is PoolReason.VALID:
        return PoolReport(
            pool=AddressPool(start=start, end=end, vip=start),
            source=PoolSource.PROVIDED,
            reason=reason,
            original_start=start_raw,
            original_end=end_raw,
        )

    result = selector.select(context)
    return PoolReport(
        pool=result.pool,
        source=PoolSource.CALCULATED,
        reason=reason,
        fallback=result.fallback,
        conflicts=[str(c) for c in result.conflicts],
        warnings=result.warnings,
        original_start=start_raw,
        original_end=end_raw,
    )


# =============================================================================
# Operator Messages
# =============================================================================

_REASON_MESSAGES = {
    PoolReason.MISSING_BOTH: "MetalLB pool undefined; selected {range} within {cidr}",
    PoolReason.MISSING_START: "METALLB_POOL_START missing; selected {range}",
    PoolReason.MISSING_END: "METALLB_POOL_END missing; selected {range}",
    PoolReason.INVALID_START: "METALLB_POOL_START ({start}) is invalid; using {range}",
    PoolReason.INVALID_END: "METALLB_POOL_END ({end}) is invalid; using {range}",
    PoolReason.OUTSIDE_CIDR: (
        "Provided MetalLB pool {start}-{end} is outside {cidr}; using {range}"
    ),
    PoolReason.START_RESERVED: "MetalLB start {start} is reserved; using {range}",
    PoolReason.END_RESERVED: "MetalLB end {end} is reserved; using {range}",
    PoolReason.REVERSED: "MetalLB pool start/end reversed; using {range}",
    PoolReason.HOST_CONFLICT: (
        "MetalLB pool {start}-{end} covers the host or gateway; using {range}"
    ),
}

_MISSING_REASONS = {
    PoolReason.MISSING_BOTH,
    PoolReason.MISSING_START,
    PoolReason.MISSING_END,
}

_WARNING_MESSAGES = {
    "missing_ping": "ping command not found; availability checks may be incomplete",
    "missing_ip": "netlink unavailable; neighbor table checks skipped",
    "ping_exec_error": "ping command failed during pool evaluation",
    "ip_cmd_failed": "neighbor table lookup failed during pool evaluation",
    "no_availability_checks": "Unable to verify whether candidate pools are in use",
}


def describe_report(report: PoolReport, cidr: str) -> None:
    """Log an operator-facing summary of a report."""
    range_display = report.pool.range

    if report.source is PoolSource.PROVIDED:
        logger.info(f"MetalLB pool {range_display} is valid within {cidr}")
    else:
        message = _REASON_MESSAGES.get(report.reason, "Selected MetalLB pool {range}")
        text = message.format(
            range=range_display,
            cidr=cidr,
            start=report.original_start,
            end=report.original_end,
        )
        if report.reason in _MISSING_REASONS:
            logger.info(text)
        else:
            logger.warning(text)

        if report.fallback:
            logger.warning(
                f"All MetalLB candidates were busy; falling back to {range_display}"
            )
        else:
            logger.debug("MetalLB pool derived from available candidate")

    for conflict in report.conflicts:
        logger.debug(f"Skipped MetalLB candidate {conflict} due to detected activity")

    for warning in report.warnings:
        logger.warning(_WARNING_MESSAGES.get(warning, f"MetalLB pool warning: {warning}"))
