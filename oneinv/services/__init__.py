"""Inventory services."""

from oneinv.services.patterns import extract_pattern, extract_patterns
from oneinv.services.reconciler import map_vms_to_hosts
from oneinv.services.placement import check_placement, narrow_to_pattern
from oneinv.services.inventory_service import InventoryService

__all__ = [
    "extract_pattern",
    "extract_patterns",
    "map_vms_to_hosts",
    "check_placement",
    "narrow_to_pattern",
    "InventoryService",
]
