"""Inventory service tying sources, reconciliation and checks together."""

import asyncio
from typing import Dict, List, Protocol, Sequence, Union

from oneinv.models.host import HostPool
from oneinv.models.vm import VmPool
from oneinv.schemas.inventory import HostSummary, Inventory, PatternTemplate
from oneinv.schemas.placement import PlacementReport
from oneinv.services.patterns import extract_patterns
from oneinv.services.placement import check_placement
from oneinv.services.reconciler import map_vms_to_hosts
from oneinv.utils.context import operation_context
from oneinv.utils.logger import get_logger

logger = get_logger(__name__)


class PoolSource(Protocol):
    """Anything able to fill a VmPool or HostPool and report elapsed time."""

    async def fetch_pool(self, pool: Union[VmPool, HostPool]) -> float: ...


class InventoryService:
    """Service for inventory reporting operations."""

    def __init__(self, source: PoolSource):
        """Initialize service."""
        self.source = source

    async def fetch(self) -> Inventory:
        """
        Fetch the VM pool and the host pool concurrently.

        Returns:
            Inventory with both flat pools and their fetch durations

        Raises:
            TransportError: If either fetch fails
        """
        vm_pool, host_pool = VmPool(), HostPool()
        with operation_context("inventory.fetch"):
            vm_seconds, host_seconds = await asyncio.gather(
                self.source.fetch_pool(vm_pool),
                self.source.fetch_pool(host_pool),
            )

        logger.info(
            "Inventory fetched",
            extra={
                "vms": len(vm_pool),
                "hosts": len(host_pool),
                "vm_fetch_ms": round(vm_seconds * 1000, 2),
                "host_fetch_ms": round(host_seconds * 1000, 2),
            },
        )
        return Inventory(
            vm_pool=vm_pool,
            host_pool=host_pool,
            vm_fetch_seconds=vm_seconds,
            host_fetch_seconds=host_seconds,
        )

    async def load(self, cluster_name: str = "") -> Inventory:
        """
        Fetch both pools, attach VMs to hosts and narrow to a cluster.

        Args:
            cluster_name: Cluster label, empty for every host

        Returns:
            Inventory whose host pool is reconciled
        """
        inventory = await self.fetch()
        with operation_context("inventory.reconcile", cluster=cluster_name or None):
            map_vms_to_hosts(inventory.host_pool, inventory.vm_pool)
            inventory.host_pool = inventory.host_pool.get_hosts_in_cluster(
                cluster_name
            )
        return inventory

    def host_patterns(
        self, host_pool: HostPool, template: PatternTemplate
    ) -> Dict[str, List[str]]:
        """Sorted name patterns of each host's VMs, keyed by host name."""
        return {
            host.name: sorted(extract_patterns(host.vms.names(), template))
            for host in host_pool
        }

    def summarize(
        self, host_pool: HostPool, template: PatternTemplate
    ) -> List[HostSummary]:
        """One summary row per host, in pool order."""
        summaries = []
        for host in host_pool:
            with operation_context("inventory.summarize", host_id=host.id):
                summaries.append(
                    HostSummary(
                        id=host.id,
                        name=host.name,
                        state=host.state_name,
                        cluster=host.cluster,
                        datacenter=host.datacenter,
                        vm_count=len(host.vms),
                        patterns=sorted(extract_patterns(host.vms.names(), template)),
                    )
                )
        return summaries

    def check_placement(
        self,
        host_pool: HostPool,
        datacenters: Sequence[str],
        pattern: str,
        include_empty: bool = True,
    ) -> PlacementReport:
        """Run the placement balance check and log its verdict."""
        with operation_context("placement.check", vm_pattern=pattern):
            report = check_placement(
                host_pool, datacenters, pattern, include_empty=include_empty
            )
            logger.info(
                "Placement checked",
                extra={
                    "total": report.total,
                    "threshold": report.threshold,
                    "ok": report.ok,
                    "failing": report.failing,
                },
            )
        return report
