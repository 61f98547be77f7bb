"""Host model and host pool."""

from enum import IntEnum
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, Field, RootModel, ValidationError, field_validator

from oneinv.core.exceptions import PoolParseError
from oneinv.models.vm import VmPool
from oneinv.utils.xmltree import number_text, parse_pool


class HostState(IntEnum):
    """Host state codes reported by OpenNebula."""

    INIT = 0
    MONITORING_MONITORED = 1
    MONITORED = 2
    ERROR = 3
    DISABLED = 4
    MONITORING_ERROR = 5
    MONITORING_INIT = 6
    MONITORING_DISABLED = 7
    OFFLINE = 8


class HostTemplate(BaseModel):
    """Host template attributes used by the inventory."""

    datacenter: Optional[str] = Field(
        default=None,
        description="Datacenter label, None when the attribute is absent",
    )


class Host(BaseModel):
    """Hypervisor host and the VMs attached to it."""

    id: int = Field(ge=0, description="Unique host identifier")
    name: str = Field(description="Host name")
    state: int = Field(
        default=HostState.INIT,
        description="Host state code, kept as reported",
    )
    cluster: str = Field(default="", description="Cluster label")
    template: HostTemplate = Field(default_factory=HostTemplate)
    vms: VmPool = Field(
        default_factory=VmPool,
        description="VMs owned by this host, filled in by reconciliation",
    )

    @property
    def datacenter(self) -> Optional[str]:
        return self.template.datacenter

    @property
    def state_name(self) -> str:
        try:
            return HostState(self.state).name
        except ValueError:
            return str(self.state)

    @classmethod
    def from_element(cls, element: Dict[str, Any]) -> "Host":
        """Build a host from a parsed HOST_POOL/HOST element."""
        template = element.get("TEMPLATE") or {}
        if not isinstance(template, dict):
            template = {}

        return cls(
            id=number_text(element.get("ID")),
            name=element.get("NAME", ""),
            state=number_text(element.get("STATE")) or HostState.INIT,
            cluster=element.get("CLUSTER", ""),
            template=HostTemplate(datacenter=template.get("DATACENTER")),
        )


class HostPool(RootModel[List[Host]]):
    """Ordered collection of hosts with unique identifiers."""

    root: List[Host] = Field(default_factory=list)

    @field_validator("root")
    @classmethod
    def validate_unique_ids(cls, v: List[Host]) -> List[Host]:
        """Reject pools holding the same host id twice."""
        seen = set()
        for host in v:
            if host.id in seen:
                raise ValueError(f"Duplicate host id {host.id}")
            seen.add(host.id)
        return v

    def __iter__(self) -> Iterator[Host]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> Host:
        return self.root[index]

    @property
    def hosts(self) -> List[Host]:
        return self.root

    def get(self, host_id: int) -> Optional[Host]:
        for host in self.root:
            if host.id == host_id:
                return host
        return None

    def get_hosts_in_cluster(self, cluster_name: str) -> "HostPool":
        """Return the hosts whose cluster label equals ``cluster_name``.

        An empty name selects every host.
        """
        if not cluster_name:
            return HostPool(list(self.root))
        return HostPool([host for host in self.root if host.cluster == cluster_name])

    def load_xml(self, text: Union[str, bytes]) -> None:
        """Replace the pool contents with a parsed HOST_POOL document."""
        elements = parse_pool(text, "HOST_POOL", "HOST")
        try:
            self.root = HostPool([Host.from_element(e) for e in elements]).root
        except ValidationError as e:
            raise PoolParseError(f"Invalid HOST_POOL document: {e}") from e

    @classmethod
    def from_xml(cls, text: Union[str, bytes]) -> "HostPool":
        pool = cls()
        pool.load_xml(text)
        return pool
