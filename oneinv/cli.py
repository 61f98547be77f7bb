"""Command line entry point.

Exit codes: 0 on success, 1 when the run fails (transport, bad pattern,
bad arguments), 2 when a placement check finds an imbalance.
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from oneinv import __version__
from oneinv.clients.dump import DumpSource
from oneinv.clients.one import OneClient
from oneinv.config import settings
from oneinv.core.exceptions import InventoryError
from oneinv.models.vm import Vm
from oneinv.schemas.inventory import HostPatterns, Inventory, PatternTemplate
from oneinv.schemas.placement import PlacementReport
from oneinv.services.inventory_service import InventoryService
from oneinv.utils.logger import get_logger, setup_logging
from oneinv.utils.telemetry import setup_telemetry

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PLACEMENT_FAILED = 2


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser exiting with EXIT_FAILURE on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="oneinv",
        description="Report OpenNebula hosts and VMs and check VM placement.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--cluster", default=settings.CLUSTER_NAME, help="Only report hosts in this cluster"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose mode")
    parser.add_argument(
        "--json", action="store_true", help="Print reports as JSON"
    )

    source = parser.add_argument_group("inventory source")
    source.add_argument("--api-url", default=settings.ONE_API_URL, help="XML-RPC endpoint")
    source.add_argument(
        "--credentials", default=settings.ONE_CREDENTIALS, help="user:password"
    )
    source.add_argument(
        "--timeout", type=float, default=settings.ONE_TIMEOUT, help="Request timeout (s)"
    )
    source.add_argument("--vm-pool", metavar="FILE", help="VM pool XML dump file path")
    source.add_argument(
        "--host-pool", metavar="FILE", help="Host pool XML dump file path"
    )

    patterns = parser.add_argument_group("name pattern template")
    patterns.add_argument("--full-pattern", default=settings.PATTERN_FULL)
    patterns.add_argument("--prefix", default=settings.PATTERN_PREFIX)
    patterns.add_argument("--infix", default=settings.PATTERN_INFIX)
    patterns.add_argument("--suffix", default=settings.PATTERN_SUFFIX)

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("vms", help="List the VM pool")
    commands.add_parser("hosts", help="List hosts with their VMs")
    commands.add_parser("patterns", help="List VM name patterns per host")

    placement = commands.add_parser(
        "placement", help="Check VM placement balance across datacenters"
    )
    placement.add_argument(
        "--datacenter",
        action="append",
        dest="datacenters",
        default=None,
        help="Expected datacenter, repeatable",
    )
    placement.add_argument(
        "--vm-pattern",
        default=settings.VM_NAME_PATTERN,
        help="Regular expression matched against full VM names",
    )
    placement.add_argument(
        "--legacy-empty-datacenters",
        action="store_true",
        help="Do not evaluate expected datacenters hosting no matching VM",
    )

    return parser


def _make_source(args: argparse.Namespace):
    if args.vm_pool or args.host_pool:
        return DumpSource(args.vm_pool, args.host_pool)
    return OneClient(
        api_url=args.api_url, credentials=args.credentials, timeout=args.timeout
    )


def _label(datacenter: Optional[str]) -> str:
    if datacenter is None:
        return "<none>"
    return datacenter or '""'


def _vm_line(vm: Vm) -> str:
    return f"{vm.id} {vm.name} (CPU: {vm.cpu:g}, template/mem: {vm.template.memory})"


def print_vms(inventory: Inventory, verbose: bool) -> None:
    print(
        f"Read in VM pool of length {len(inventory.vm_pool)} "
        f"in {inventory.vm_fetch_seconds:.3f}s"
    )
    if verbose:
        for vm in inventory.vm_pool:
            print(_vm_line(vm))


def print_hosts(
    service: InventoryService, inventory: Inventory, template: PatternTemplate, verbose: bool
) -> None:
    print(
        f"Read in host pool of length {len(inventory.host_pool)} "
        f"in {inventory.host_fetch_seconds:.3f}s"
    )
    for summary in service.summarize(inventory.host_pool, template):
        print(
            f"{summary.id} {summary.name} [{_label(summary.datacenter)}] "
            f"{summary.state} VMs: {summary.vm_count}"
        )
        if verbose:
            host = inventory.host_pool.get(summary.id)
            for vm in host.vms:
                print(f"    {_vm_line(vm)}")


def print_patterns(patterns: HostPatterns) -> None:
    for host_name, host_patterns in patterns.hosts.items():
        print(f"{host_name}: {' '.join(host_patterns) or '-'}")


def print_placement(report: PlacementReport) -> None:
    print(
        f"Placement of VMs matching {report.pattern!r} "
        f"across {len(report.datacenters)} datacenter(s)"
    )
    for balance in report.balances:
        verdict = "ok" if balance.ok else "below threshold"
        print(f"  {_label(balance.datacenter)}: {balance.count} ({verdict})")
    print(
        f"Total {report.total}, threshold {report.threshold}: "
        f"{'OK' if report.ok else 'FAILED'}"
    )


async def run(args: argparse.Namespace) -> int:
    """Fetch the inventory and run the selected command."""
    template = PatternTemplate(
        full_pattern=args.full_pattern,
        prefix=args.prefix,
        infix=args.infix,
        suffix=args.suffix,
    )

    source = _make_source(args)
    service = InventoryService(source)
    try:
        inventory = await service.load(args.cluster)
    finally:
        await source.close()

    if args.command == "vms":
        if args.json:
            print(inventory.vm_pool.model_dump_json(indent=2))
        else:
            print_vms(inventory, args.verbose)
        return EXIT_OK

    if args.command == "hosts":
        if args.json:
            summaries = service.summarize(inventory.host_pool, template)
            print(json.dumps([s.model_dump() for s in summaries], indent=2))
        else:
            print_hosts(service, inventory, template, args.verbose)
        return EXIT_OK

    if args.command == "patterns":
        patterns = HostPatterns(
            template=template,
            hosts=service.host_patterns(inventory.host_pool, template),
        )
        if args.json:
            print(patterns.model_dump_json(indent=2))
        else:
            print_patterns(patterns)
        return EXIT_OK

    datacenters = args.datacenters or settings.DATACENTERS
    report = service.check_placement(
        inventory.host_pool,
        datacenters,
        args.vm_pattern,
        include_empty=not args.legacy_empty_datacenters,
    )
    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        print_placement(report)
    return EXIT_OK if report.ok else EXIT_PLACEMENT_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(level="INFO" if args.verbose else None)
    if settings.OTEL_EXPORT_CONSOLE:
        setup_telemetry()

    try:
        return asyncio.run(run(args))
    except (InventoryError, ValueError) as e:
        logger.error(
            "Command failed",
            extra={
                "command": args.command,
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
