"""Netlink access shared by context discovery and neighbor lookups."""


def open_iproute():
    """Open a pyroute2 IPRoute socket; the caller closes it."""
    from pyroute2 import IPRoute

    return IPRoute()
