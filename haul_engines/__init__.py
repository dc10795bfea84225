"""
Module: haul_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    haul rule engines.  This is the import surface for the service layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import haul_kernel (domain records and logging).
    MUST NOT import haul_config or haul_services.

Invariants enforced:
    - Purity: engines never call ``datetime.now()``; the current time is an
      explicit parameter supplied by services.
    - Decimal-only arithmetic for quantities and percentages.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from haul_engines import validate_haul_event, find_requisition_line
"""

from haul_engines.haul_validation import HaulValidationResult, validate_haul_event
from haul_engines.load_conversion import (
    percentage_from_quantity,
    quantity_from_percentage,
)
from haul_engines.requisition_allocation import (
    MatchStatus,
    RequisitionMatch,
    find_requisition_line,
    link_allocation,
)
from haul_engines.rules import (
    DEFAULT_POLICY,
    HaulRulePolicy,
    RuleOutcome,
    check_informational_trip,
    check_material_truck_compatibility,
    check_quantity_against_capacity,
    check_required_fields,
    check_route_compatibility,
    check_timestamp,
    is_informational,
)

__all__ = [
    # Orchestrator
    "validate_haul_event",
    "HaulValidationResult",
    # Rules
    "RuleOutcome",
    "HaulRulePolicy",
    "DEFAULT_POLICY",
    "check_route_compatibility",
    "check_material_truck_compatibility",
    "check_quantity_against_capacity",
    "check_required_fields",
    "check_timestamp",
    "check_informational_trip",
    "is_informational",
    # Allocation
    "find_requisition_line",
    "link_allocation",
    "RequisitionMatch",
    "MatchStatus",
    # Conversion
    "quantity_from_percentage",
    "percentage_from_quantity",
]
