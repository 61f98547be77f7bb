"""Placement balance check across datacenters."""

from typing import Dict, List, Optional, Sequence

from oneinv.core.regex import compile_pattern
from oneinv.models.host import HostPool
from oneinv.schemas.placement import DatacenterBalance, PlacementReport
from oneinv.utils.logger import get_logger
from oneinv.utils.telemetry import add_span_attributes, trace_operation

logger = get_logger(__name__)


def narrow_to_pattern(host_pool: HostPool, pattern: str) -> HostPool:
    """Copy the host pool keeping only VMs whose name matches ``pattern``.

    Raises:
        InvalidPatternError: If the expression does not compile
    """
    compile_pattern(pattern)
    return HostPool(
        [
            host.model_copy(update={"vms": host.vms.get_vms_by_name(pattern)})
            for host in host_pool
        ]
    )


def check_placement(
    host_pool: HostPool,
    datacenters: Sequence[str],
    pattern: str,
    include_empty: bool = True,
) -> PlacementReport:
    """Check that VMs matching ``pattern`` are spread evenly over datacenters.

    The threshold is the floor of the matching VM total divided by the
    number of expected datacenters. A datacenter is unbalanced when its
    count is strictly below the threshold. Datacenters hosting at least one
    matching VM are always evaluated; expected datacenters hosting none are
    evaluated only when ``include_empty`` is set.

    The input pool is not modified; the narrowed copy is returned on the
    report as ``matched``.

    Args:
        host_pool: Reconciled host pool
        datacenters: Expected datacenter labels, at least one
        pattern: Regular expression matched against full VM names
        include_empty: Evaluate expected datacenters with no matching VM

    Returns:
        Placement report

    Raises:
        ValueError: If no datacenter is given
        InvalidPatternError: If ``pattern`` does not compile
    """
    if not datacenters:
        raise ValueError("At least one datacenter is required for a placement check")

    with trace_operation(
        "placement.check",
        {"vm.pattern": pattern, "placement.datacenters": len(datacenters)},
    ):
        matched = narrow_to_pattern(host_pool, pattern)

        counts: Dict[Optional[str], int] = {}
        total = 0
        for host in matched:
            if len(host.vms):
                counts[host.datacenter] = counts.get(host.datacenter, 0) + len(host.vms)
                total += len(host.vms)

        if include_empty:
            for datacenter in datacenters:
                counts.setdefault(datacenter, 0)

        threshold = total // len(datacenters)

        balances: List[DatacenterBalance] = []
        for datacenter, count in counts.items():
            balances.append(
                DatacenterBalance(
                    datacenter=datacenter,
                    count=count,
                    expected=datacenter in datacenters,
                    ok=count >= threshold,
                )
            )
            if count < threshold:
                logger.warning(
                    "Datacenter below placement threshold",
                    extra={
                        "datacenter": datacenter,
                        "count": count,
                        "threshold": threshold,
                    },
                )

        ok = all(balance.ok for balance in balances)
        add_span_attributes(
            **{
                "placement.total": total,
                "placement.threshold": threshold,
                "placement.ok": ok,
            }
        )

        return PlacementReport(
            pattern=pattern,
            datacenters=list(datacenters),
            total=total,
            threshold=threshold,
            balances=balances,
            ok=ok,
            matched=matched,
        )
