"""Attachment of VMs to the hosts that run them."""

from oneinv.models.host import HostPool
from oneinv.models.vm import VmPool
from oneinv.utils.logger import get_logger, log_duration

logger = get_logger(__name__)


@log_duration("inventory.reconcile")
def map_vms_to_hosts(host_pool: HostPool, vm_pool: VmPool) -> HostPool:
    """Replace each host's VM sub-pool with the VMs it owns.

    VMs are indexed by owning host id once, so the cost is linear in the
    number of hosts plus VMs. VMs whose host id matches no host are dropped.

    Args:
        host_pool: Hosts to populate, modified in place
        vm_pool: Global VM pool, left unchanged

    Returns:
        The same host pool, for chaining
    """
    by_host = vm_pool.by_host()

    attached = 0
    for host in host_pool:
        host.vms = VmPool(by_host.get(host.id, []))
        attached += len(host.vms)

    logger.debug(
        "VMs mapped to hosts",
        extra={
            "hosts": len(host_pool),
            "vms": len(vm_pool),
            "attached": attached,
            "orphaned": len(vm_pool) - attached,
        },
    )
    return host_pool
