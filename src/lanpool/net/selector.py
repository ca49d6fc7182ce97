"""
Pool selection.

Walks the candidate sequence and returns the first range the prober reports
free. Ranges covering the host or its gateway are skipped without probing.
When every candidate is busy the first candidate is returned anyway and
flagged as a fallback: an operator may still resolve the conflict by hand, so
exhaustion never aborts a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lanpool.exceptions import InvalidNetworkError
from lanpool.models.network import AddressPool, Candidate, NetworkContext
from lanpool.net.candidates import CandidateGenerator
from lanpool.net.probing import AvailabilityProber
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SelectionResult:
    """Outcome of one selection pass."""

    pool: AddressPool
    conflicts: list[Candidate] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    fallback: bool = False
    availability_checked: bool = False


class PoolSelector:
    """Drives the candidate generator and the availability prober."""

    def __init__(
        self,
        prober: AvailabilityProber,
        generator: CandidateGenerator | None = None,
    ):
        self.prober = prober
        self.generator = generator or CandidateGenerator()

    def select(self, context: NetworkContext) -> SelectionResult:
        """
        Pick a pool for the context.

        Returns:
            SelectionResult whose ``conflicts`` lists every candidate rejected
            before the chosen one (all of them on fallback).

        Raises:
            InvalidNetworkError: If the LAN yields no candidate at all.
        """
        first: Candidate | None = None
        selected: Candidate | None = None
        conflicts: list[Candidate] = []
        known_hosts = context.known_hosts

        for candidate in self.generator.generate(context.network, context.address):
            if first is None:
                first = candidate
            taken = [host for host in known_hosts if host in candidate]
            if taken:
                logger.debug(f"Skipped candidate {candidate}: covers {taken[0]}")
                conflicts.append(candidate)
                continue
            if self.prober.is_range_free(candidate):
                selected = candidate
                break
            logger.debug(f"Skipped candidate {candidate} due to detected activity")
            conflicts.append(candidate)

        if first is None:
            raise InvalidNetworkError(
                f"Unable to derive pool candidates inside '{context.cidr}'"
            )

        fallback = selected is None
        if fallback:
            selected = first
            logger.warning(
                f"All {len(conflicts)} candidates were busy; falling back to {selected}"
            )
        else:
            logger.debug(f"Selected free candidate {selected}")

        if not self.prober.enabled:
            logger.warning(
                f"Availability checks skipped; {selected} was not verified as unused"
            )

        return SelectionResult(
            pool=AddressPool.from_candidate(selected),
            conflicts=conflicts,
            warnings=self.prober.warnings,
            fallback=fallback,
            availability_checked=self.prober.availability_checked,
        )
