"""
Pydantic models for the persisted state file.

The file is a hint carried between runs, not a source of truth. Every field
has a default so partially written or older files still load, and unknown
keys written by other tools are kept on the next save.
"""

from pydantic import BaseModel, ConfigDict, Field


class PoolRecord(BaseModel):
    """Stored MetalLB pool bounds."""

    start: str = ""
    end: str = ""


class PersistedState(BaseModel):
    """Last known network fingerprint, pool and VIP."""

    model_config = ConfigDict(extra="allow")

    iface: str = Field(default="", description="Outbound interface name")
    cidr: str = Field(default="", description="LAN CIDR")
    addr: str = Field(default="", description="Host address on the LAN")
    gw: str = Field(default="", description="Default gateway")
    mtu: int = Field(default=0, description="Link MTU")
    link_type: str | None = Field(default=None, description="wired or wifi")
    ts: str = Field(default="", description="ISO-8601 UTC time of the write")
    metallb_pool: PoolRecord | None = None
    traefik_ip: str | None = None

    @property
    def fingerprint(self) -> tuple[str, str, str, str, int]:
        return (self.iface, self.cidr, self.addr, self.gw, self.mtu)

    @property
    def has_fingerprint(self) -> bool:
        return bool(self.iface)

    @property
    def has_pool(self) -> bool:
        return bool(
            self.metallb_pool and self.metallb_pool.start and self.metallb_pool.end
        )
