"""
End-to-end pool reconciliation for the local host.

Probe the live network, load the previous state, reconcile, persist. The
state file is written only after a complete decision, so an interrupted run
leaves the previous state untouched.
"""

from __future__ import annotations

from dataclasses import dataclass

from lanpool.calculator import describe_report
from lanpool.config import config
from lanpool.models.network import NetworkContext
from lanpool.net.candidates import CandidateGenerator
from lanpool.net.context import NetworkContextProbe
from lanpool.net.probing import AvailabilityProber
from lanpool.net.selector import PoolSelector
from lanpool.reconcile import ConfirmCallback, ReconcileOutcome, Reconciler
from lanpool.state.store import StateStore, build_state
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class EnsureResult:
    """Network context and reconcile outcome of an ``ensure`` run."""

    context: NetworkContext
    outcome: ReconcileOutcome
    persisted: bool


def create_selector() -> PoolSelector:
    """Selector wired from the global config."""
    prober = AvailabilityProber(
        enabled=config.CHECK_AVAILABILITY,
        require_probes=config.REQUIRE_PROBES,
    )
    return PoolSelector(prober, CandidateGenerator())


class PoolEngine:
    """Runs probe -> reconcile -> persist."""

    def __init__(
        self,
        probe: NetworkContextProbe,
        store: StateStore,
        reconciler: Reconciler,
    ):
        self.probe = probe
        self.store = store
        self.reconciler = reconciler

    @classmethod
    def from_config(cls, confirm: ConfirmCallback | None = None) -> PoolEngine:
        return cls(
            probe=NetworkContextProbe(),
            store=StateStore(config.get_state_path()),
            reconciler=Reconciler(
                create_selector(), confirm=confirm, assume_yes=config.ASSUME_YES
            ),
        )

    def ensure(
        self,
        requested_start: str = "",
        requested_end: str = "",
        requested_vip: str = "",
        force: bool = False,
        dry_run: bool = False,
    ) -> EnsureResult:
        """
        Determine the pool for the current network and persist it.

        Raises:
            LanPoolError: Any subclass; the state file is left untouched.
        """
        context = self.probe.probe()
        previous = self.store.load()

        outcome = self.reconciler.reconcile(
            context,
            previous,
            requested_start=requested_start,
            requested_end=requested_end,
            requested_vip=requested_vip,
            force=force,
        )
        describe_report(outcome.report, context.cidr)
        self._log_summary(context, outcome)

        if dry_run:
            logger.info(f"[DRY-RUN] Not updating state file at {self.store.path}")
            return EnsureResult(context=context, outcome=outcome, persisted=False)

        self.store.save(build_state(context, outcome.pool, previous))
        return EnsureResult(context=context, outcome=outcome, persisted=True)

    def _log_summary(self, context: NetworkContext, outcome: ReconcileOutcome) -> None:
        pool = outcome.pool
        logger.info("Context summary")
        logger.info(f"  State file: {self.store.path}")
        logger.info(f"  Network interface: {context.iface} ({context.link_class.value})")
        logger.info(f"  Address: {context.address}/{context.network.prefixlen}")
        logger.info(f"  Gateway: {context.gateway or '<none>'}")
        logger.info(f"  MTU: {context.mtu or 'unknown'}")
        logger.info(f"  MetalLB pool: {pool.range}")
        logger.info(f"  Traefik IP: {pool.vip}")
        logger.info(
            f"  Reconcile: {outcome.observed.value} -> {outcome.terminal.value}"
        )
