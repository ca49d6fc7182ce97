"""Validation of explicit pool bounds against a LAN."""

import ipaddress

from lanpool.models.enums import PoolReason
from lanpool.net.addressing import in_cidr, is_reserved, parse_ipv4


def validate_pool(
    network: ipaddress.IPv4Network, start_raw: str | None, end_raw: str | None
) -> PoolReason:
    """
    Classify operator-provided pool bounds.

    Rules are applied in ``PoolReason`` order and the first failure wins, so
    a reversed pair that also lies outside the LAN reports ``outside_cidr``.

    Args:
        network: LAN the pool must live in
        start_raw: Raw start value (may be empty)
        end_raw: Raw end value (may be empty)

    Returns:
        PoolReason.VALID if the bounds can be used as-is.
    """
    start_raw = (start_raw or "").strip()
    end_raw = (end_raw or "").strip()

    if not start_raw and not end_raw:
        return PoolReason.MISSING_BOTH
    if not start_raw:
        return PoolReason.MISSING_START
    if not end_raw:
        return PoolReason.MISSING_END

    start = parse_ipv4(start_raw)
    end = parse_ipv4(end_raw)
    if start is None:
        return PoolReason.INVALID_START
    if end is None:
        return PoolReason.INVALID_END
    if not in_cidr(start, network) or not in_cidr(end, network):
        return PoolReason.OUTSIDE_CIDR
    if is_reserved(start, network):
        return PoolReason.START_RESERVED
    if is_reserved(end, network):
        return PoolReason.END_RESERVED
    if end < start:
        return PoolReason.REVERSED
    return PoolReason.VALID
