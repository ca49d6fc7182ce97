"""
lanpool: LAN address-pool allocation for load balancers.

Picks a contiguous, currently unused IPv4 range on the host's LAN for a
MetalLB address pool and an ingress VIP, and keeps that choice stable across
runs through a small state file.
"""

__version__ = "0.3.0"
