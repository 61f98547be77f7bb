"""Inventory snapshot and report schemas."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from oneinv.models.host import HostPool
from oneinv.models.vm import VmPool


class PatternTemplate(BaseModel):
    """Regular expression fragments used to derive name patterns."""

    model_config = ConfigDict(frozen=True)

    full_pattern: str = Field(
        default=r"^([a-z]{2}).+([a-z]{2})$",
        description="Pattern with capture groups applied to each VM name",
    )
    prefix: str = Field(default="^", description="Prepended to the pattern")
    infix: str = Field(default=".+", description="Placed between captured groups")
    suffix: str = Field(default="$", description="Appended to the pattern")


class Inventory(BaseModel):
    """VM and host pools fetched in one run."""

    vm_pool: VmPool = Field(default_factory=VmPool)
    host_pool: HostPool = Field(default_factory=HostPool)
    vm_fetch_seconds: float = Field(default=0.0, ge=0)
    host_fetch_seconds: float = Field(default=0.0, ge=0)


class HostSummary(BaseModel):
    """One line of the host report."""

    id: int
    name: str
    state: str
    cluster: str
    datacenter: Optional[str]
    vm_count: int
    patterns: List[str] = Field(default_factory=list)


class HostPatterns(BaseModel):
    """Name patterns per host, keyed by host name."""

    template: PatternTemplate
    hosts: Dict[str, List[str]] = Field(default_factory=dict)
