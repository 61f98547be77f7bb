"""Placement check report schemas."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from oneinv.models.host import HostPool


class DatacenterBalance(BaseModel):
    """Matching VM count of one evaluated datacenter."""

    datacenter: Optional[str] = Field(
        ..., description="Datacenter label, None for hosts without one"
    )
    count: int = Field(..., ge=0, description="Matching VMs in the datacenter")
    expected: bool = Field(..., description="Whether the datacenter was requested")
    ok: bool = Field(..., description="Count is at least the threshold")


class PlacementReport(BaseModel):
    """Result of a placement balance check."""

    pattern: str = Field(..., description="VM name pattern checked")
    datacenters: List[str] = Field(..., description="Expected datacenters")
    total: int = Field(..., ge=0, description="Matching VMs across all hosts")
    threshold: int = Field(..., ge=0, description="Floor of total per datacenter")
    balances: List[DatacenterBalance] = Field(
        default_factory=list, description="Evaluated datacenters in order"
    )
    ok: bool = Field(..., description="Every evaluated datacenter is balanced")
    matched: HostPool = Field(
        default_factory=HostPool,
        exclude=True,
        description="Host copies narrowed to the matching VMs",
    )

    @property
    def failing(self) -> List[Optional[str]]:
        return [b.datacenter for b in self.balances if not b.ok]

    @property
    def counts(self) -> Dict[Optional[str], int]:
        return {b.datacenter: b.count for b in self.balances}
