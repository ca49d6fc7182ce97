"""
Enumeration types for lanpool.

This module defines the enumeration types shared by the calculation engine,
the reconciler and the CLI. All of them are ``str`` enums so their values can
be written straight into the key=value output and the state file.
"""

from enum import Enum


# =============================================================================
# Pool Calculation Enums
# =============================================================================


class PoolSource(str, Enum):
    """Where the reported pool came from."""

    PROVIDED = "provided"  # Operator/previous bounds accepted as-is
    CALCULATED = "calculated"  # Derived by the selector


class PoolReason(str, Enum):
    """
    Outcome of validating operator-provided pool bounds.

    Checked in declaration order; the first failing rule wins.
    """

    MISSING_BOTH = "missing_both"
    MISSING_START = "missing_start"
    MISSING_END = "missing_end"
    INVALID_START = "invalid_start"
    INVALID_END = "invalid_end"
    OUTSIDE_CIDR = "outside_cidr"
    START_RESERVED = "start_reserved"
    END_RESERVED = "end_reserved"
    REVERSED = "reversed"
    # Stored bounds now cover the host or its gateway
    HOST_CONFLICT = "host_conflict"
    VALID = "valid"


class ProbeWarning(str, Enum):
    """Structured warnings raised while probing candidate ranges."""

    MISSING_PING = "missing_ping"  # ping binary not found
    MISSING_IP = "missing_ip"  # ip binary not found
    PING_EXEC_ERROR = "ping_exec_error"  # ping could not be executed
    IP_CMD_FAILED = "ip_cmd_failed"  # ip neigh could not be executed
    NO_AVAILABILITY_CHECKS = "no_availability_checks"  # nothing was probed


# =============================================================================
# Network Context Enums
# =============================================================================


class LinkClass(str, Enum):
    """Physical class of the outbound link (informational only)."""

    WIRED = "wired"
    WIFI = "wifi"


# =============================================================================
# Reconciliation Enums
# =============================================================================


class ReconcileState(str, Enum):
    """
    Reconciler state machine.

    Observed states:
        UNKNOWN  -> no usable previous state, or recomputation forced
        MATCHING -> previous fingerprint equals the current one
        DRIFTED  -> previous fingerprint differs (needs confirmation)

    Terminal states:
        RETAIN    -> previous pool and VIP carried forward unchanged
        RECOMPUTE -> pool re-validated or re-selected for the new context
    """

    UNKNOWN = "unknown"
    MATCHING = "matching"
    DRIFTED = "drifted"
    RETAIN = "retain"
    RECOMPUTE = "recompute"


# =============================================================================
# Logging Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels.

    Levels (from most to least verbose):
        - FULL: Everything including per-address probe traces
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
