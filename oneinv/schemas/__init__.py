"""Schemas package for reports and run parameters."""

from oneinv.schemas.inventory import (
    PatternTemplate,
    Inventory,
    HostSummary,
    HostPatterns,
)
from oneinv.schemas.placement import DatacenterBalance, PlacementReport

__all__ = [
    "PatternTemplate",
    "Inventory",
    "HostSummary",
    "HostPatterns",
    "DatacenterBalance",
    "PlacementReport",
]
