"""VM model and VM pool."""

from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    ValidationError,
    field_validator,
)

from oneinv.core.exceptions import KeyNotFoundError, PoolParseError
from oneinv.core.regex import compile_pattern
from oneinv.utils.xmltree import number_text, parse_pool


def _as_list(value: Any) -> List[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


class VmTemplate(BaseModel):
    """System template of a VM."""

    model_config = ConfigDict(frozen=True)

    memory: int = Field(default=0, ge=0, description="Memory size in MB")


class Vm(BaseModel):
    """Virtual machine as reported by the VM pool."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0, description="Unique VM identifier")
    name: str = Field(description="VM name")
    cpu: float = Field(default=0.0, ge=0, description="CPU allocation")
    host_id: Optional[int] = Field(
        default=None,
        description="Identifier of the host running this VM",
    )
    user_template: Dict[str, str] = Field(
        default_factory=dict,
        description="Free-form user defined attributes",
    )
    template: VmTemplate = Field(default_factory=VmTemplate)

    def get_custom(self, key: str) -> str:
        """Look up a user template attribute.

        Raises:
            KeyNotFoundError: If the attribute is not set on this VM
        """
        try:
            return self.user_template[key]
        except KeyError:
            raise KeyNotFoundError(key) from None

    @classmethod
    def from_element(cls, element: Dict[str, Any]) -> "Vm":
        """Build a VM from a parsed VM_POOL/VM element.

        The owning host is the HID of the last history record.
        """
        template = element.get("TEMPLATE") or {}
        if not isinstance(template, dict):
            template = {}

        user_template = element.get("USER_TEMPLATE") or {}
        if not isinstance(user_template, dict):
            user_template = {}

        host_id = None
        history_records = element.get("HISTORY_RECORDS") or {}
        if isinstance(history_records, dict):
            history = _as_list(history_records.get("HISTORY"))
            last = history[-1] if history else None
            if isinstance(last, dict) and number_text(last.get("HID")):
                host_id = number_text(last["HID"])

        return cls(
            id=number_text(element.get("ID")),
            name=element.get("NAME", ""),
            cpu=number_text(template.get("CPU")) or 0,
            host_id=host_id,
            user_template={
                key: value
                for key, value in user_template.items()
                if isinstance(value, str)
            },
            template=VmTemplate(memory=number_text(template.get("MEMORY")) or 0),
        )


class VmPool(RootModel[List[Vm]]):
    """Ordered collection of VMs with unique identifiers."""

    root: List[Vm] = Field(default_factory=list)

    @field_validator("root")
    @classmethod
    def validate_unique_ids(cls, v: List[Vm]) -> List[Vm]:
        """Reject pools holding the same VM id twice."""
        seen = set()
        for vm in v:
            if vm.id in seen:
                raise ValueError(f"Duplicate VM id {vm.id}")
            seen.add(vm.id)
        return v

    def __iter__(self) -> Iterator[Vm]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> Vm:
        return self.root[index]

    @property
    def vms(self) -> List[Vm]:
        return self.root

    def names(self) -> List[str]:
        return [vm.name for vm in self.root]

    def get_vms_by_name(self, pattern: str) -> "VmPool":
        """Return the VMs whose whole name matches ``pattern``.

        Args:
            pattern: Regular expression matched against the full name

        Returns:
            New pool, original order preserved

        Raises:
            InvalidPatternError: If the expression does not compile
        """
        regex = compile_pattern(pattern)
        return VmPool([vm for vm in self.root if regex.fullmatch(vm.name)])

    def by_host(self) -> Dict[Optional[int], List[Vm]]:
        """Index VMs by owning host id, keeping pool order per host."""
        index: Dict[Optional[int], List[Vm]] = {}
        for vm in self.root:
            index.setdefault(vm.host_id, []).append(vm)
        return index

    def load_xml(self, text: Union[str, bytes]) -> None:
        """Replace the pool contents with a parsed VM_POOL document."""
        elements = parse_pool(text, "VM_POOL", "VM")
        try:
            self.root = VmPool([Vm.from_element(e) for e in elements]).root
        except ValidationError as e:
            raise PoolParseError(f"Invalid VM_POOL document: {e}") from e

    @classmethod
    def from_xml(cls, text: Union[str, bytes]) -> "VmPool":
        pool = cls()
        pool.load_xml(text)
        return pool
