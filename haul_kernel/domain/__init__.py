"""
Pure domain layer.

This module contains immutable record types and classification helpers
with NO dependencies on:
- The document store
- Time/clock (except the injectable Clock implementations)
- I/O

All domain objects are frozen snapshots supplied by the caller.
"""

from haul_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from haul_kernel.domain.records import (
    DEFAULT_HAUL_TYPE_ALIASES,
    HaulDirection,
    HaulEvent,
    HaulType,
    Material,
    Requisition,
    RequisitionLine,
    Route,
    Truck,
    classify_haul_type,
    normalize_name,
)

__all__ = [
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Records
    "HaulEvent",
    "HaulDirection",
    "HaulType",
    "Material",
    "Requisition",
    "RequisitionLine",
    "Route",
    "Truck",
    # Classification
    "DEFAULT_HAUL_TYPE_ALIASES",
    "classify_haul_type",
    "normalize_name",
]
