"""lanpool exception classes.

Every error carries the process exit code the CLI reports for it, following
the BSD ``sysexits`` numbering.
"""

EX_USAGE = 64
EX_DATAERR = 65
EX_UNAVAILABLE = 69
EX_SOFTWARE = 70


class LanPoolError(Exception):
    """Base exception for lanpool operations."""

    exit_code = EX_SOFTWARE


class UsageError(LanPoolError):
    """Required input missing or malformed on the command line."""

    exit_code = EX_USAGE


class InvalidNetworkError(LanPoolError):
    """CIDR or address data is invalid or leaves no usable hosts."""

    exit_code = EX_DATAERR


class NoDefaultRouteError(InvalidNetworkError):
    """No IPv4 default route on this host."""

    def __init__(self):
        super().__init__("No IPv4 default route found; cannot determine the LAN")


class NoAddressOnInterfaceError(InvalidNetworkError):
    """Outbound interface has no IPv4 address."""

    def __init__(self, iface: str):
        self.iface = iface
        super().__init__(f"Interface {iface} has no IPv4 address")


class ToolUnavailableError(LanPoolError):
    """A required system capability is missing."""

    exit_code = EX_UNAVAILABLE


class DriftDeclinedError(LanPoolError):
    """Operator declined to continue after a network change."""

    def __init__(self):
        super().__init__("Aborting due to network change")


class StateStoreError(LanPoolError):
    """State file could not be written."""

    pass


class ProbeFailedError(LanPoolError):
    """An availability probe could not run for one address."""

    pass
