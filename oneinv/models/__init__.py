"""Inventory models package."""

from oneinv.models.vm import Vm, VmTemplate, VmPool
from oneinv.models.host import Host, HostState, HostTemplate, HostPool

__all__ = [
    "Vm",
    "VmTemplate",
    "VmPool",
    "Host",
    "HostState",
    "HostTemplate",
    "HostPool",
]
