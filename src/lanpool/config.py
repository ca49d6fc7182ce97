"""
Runtime configuration for lanpool.

This module defines the configuration dataclass shared by the CLI and the
engine, providing one place for every tunable parameter.

The global ``config`` instance is updated by the CLI from environment
variables and command-line options before a run starts.

Usage:
    from lanpool.config import config

    config.PROBE_TIMEOUT_SECONDS = 2
    config.LOG_LEVEL = LogLevel.DEBUG
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from lanpool.models.enums import LogLevel


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class PoolConfig:
    """
    lanpool configuration.

    Attributes:
        STATE_FILE: Path of the persisted state JSON file.
        PROBE_TIMEOUT_SECONDS: Per-address bound for each probe command.
        CHECK_AVAILABILITY: Probe candidate ranges for activity.
        REQUIRE_PROBES: Fail when no probe tool exists instead of warning.
        LOG_LEVEL: Logging verbosity level.
    """

    # -------------------------------------------------------------------------
    # State Configuration
    # -------------------------------------------------------------------------

    STATE_FILE: str = "~/.lanpool/state.json"

    # -------------------------------------------------------------------------
    # Probing Configuration
    # -------------------------------------------------------------------------

    PROBE_TIMEOUT_SECONDS: int = 1
    CHECK_AVAILABILITY: bool = True
    REQUIRE_PROBES: bool = False
    PING_COMMAND: str = "ping"

    # -------------------------------------------------------------------------
    # Candidate Configuration
    # -------------------------------------------------------------------------

    # Host suffixes of the preferred window inside the host's own /24 block
    PREFERRED_WINDOW_START: int = 240
    PREFERRED_WINDOW_END: int = 250

    # Sub-blocks scanned (highest first) when the preferred window is busy
    SUBBLOCK_PREFIX: int = 29

    # -------------------------------------------------------------------------
    # Reconciliation Configuration
    # -------------------------------------------------------------------------

    ASSUME_YES: bool = False

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------

    LOG_LEVEL: LogLevel = LogLevel.INFO
    LOG_FILE: str = ""

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def get_state_path(self) -> str:
        """Get the state file path with ``~`` expanded."""
        return os.path.expanduser(self.STATE_FILE)

    def apply_env(self, environ: Mapping[str, str]) -> None:
        """
        Override state and probe fields from ``LANPOOL_*`` variables.

        Logging variables are read by the CLI options directly.

        Args:
            environ: Environment mapping (usually ``os.environ`` merged with
                an env file).

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        if environ.get("LANPOOL_STATE_FILE"):
            self.STATE_FILE = environ["LANPOOL_STATE_FILE"]
        if environ.get("LANPOOL_PROBE_TIMEOUT"):
            self.PROBE_TIMEOUT_SECONDS = int(environ["LANPOOL_PROBE_TIMEOUT"])


# =============================================================================
# Global Instance
# =============================================================================

# Global config instance - modify before starting a run
config = PoolConfig()
