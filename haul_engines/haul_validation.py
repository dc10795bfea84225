"""
Module: haul_engines.haul_validation
Responsibility:
    Single validation entry point for a haul-event submission.  Runs the
    rule checks in a fixed order, folds their outcomes with one associative
    merge and reports whether the event may be persisted.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Composes ``haul_engines.rules``.  The requisition allocator is NOT
    called here; callers request an allocation suggestion separately.

Invariants enforced:
    - ``is_valid`` is True exactly when no rule produced an error.
    - Order of messages: completeness, timestamp, route, material/truck,
      quantity, then the informational-trip warning.
    - Purity: ``now`` is a parameter; the clock is never read here.

Failure modes:
    - ValueError from the quantity rule if the policy's default truck
      capacity is not positive (a misconfigured policy).

Usage:
    from haul_engines.haul_validation import validate_haul_event

    result = validate_haul_event(event, route, truck, material, now=clock.now())
    if not result.is_valid:
        show(result.errors)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

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
from haul_engines.tracer import traced_engine
from haul_kernel.domain.records import HaulEvent, Material, Route, Truck
from haul_kernel.logging_config import get_logger

logger = get_logger("engines.haul_validation")


@dataclass(frozen=True)
class HaulValidationResult:
    """
    Merged outcome of every rule for one haul event.

    Contract:
        Errors block persistence; warnings are shown but never block.
    """

    is_valid: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    is_informational: bool = False

    @classmethod
    def from_outcome(cls, outcome: RuleOutcome, informational: bool) -> HaulValidationResult:
        return cls(
            is_valid=outcome.is_valid,
            errors=outcome.errors,
            warnings=outcome.warnings,
            is_informational=informational,
        )


@traced_engine(
    "haul_validation", "1.0",
    fingerprint_fields=("event", "route", "truck", "material", "now"),
)
def validate_haul_event(
    event: HaulEvent,
    route: Route,
    truck: Truck,
    material: Material,
    *,
    now: datetime,
    policy: HaulRulePolicy = DEFAULT_POLICY,
) -> HaulValidationResult:
    """
    Validate a haul event against the route, truck and material chosen.

    The quantity check runs only when the event carries a quantity; the
    truck capacity falls back to ``policy.default_truck_capacity`` when
    the truck has none recorded or a non-positive one.

    Args:
        event: The haul event under construction.
        route: The route selected for the event.
        truck: The truck scanned for the event.
        material: The material selected for the event.
        now: Current time, supplied by the caller.
        policy: Thresholds and vocabularies to apply.

    Returns:
        HaulValidationResult with all errors and warnings.
    """
    t0 = time.monotonic()
    logger.info("haul_validation_started", extra={
        "route_id": route.route_id,
        "haul_type": route.haul_type.value,
        "truck_id": truck.truck_id,
        "material_id": material.material_id,
        "direction": event.direction.value,
    })

    outcomes = [check_required_fields(event)]
    if event.timestamp is not None:
        outcomes.append(check_timestamp(event.timestamp, now, policy))
    outcomes.append(check_route_compatibility(route, event.direction, policy))
    outcomes.append(check_material_truck_compatibility(material, truck, policy))
    if event.quantity is not None:
        capacity = truck.capacity
        if capacity is None or capacity <= Decimal("0"):
            logger.warning("haul_validation_default_capacity", extra={
                "truck_id": truck.truck_id,
                "truck_capacity": capacity,
                "default_capacity": policy.default_truck_capacity,
            })
            capacity = policy.default_truck_capacity
        outcomes.append(check_quantity_against_capacity(event.quantity, capacity, policy))

    merged = RuleOutcome.combine(*outcomes)

    # Informational detection contributes warnings only
    informational = check_informational_trip(event, route)
    merged = merged + RuleOutcome(warnings=informational.warnings)

    result = HaulValidationResult.from_outcome(merged, is_informational(event, route))

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("haul_validation_completed", extra={
        "is_valid": result.is_valid,
        "error_count": len(result.errors),
        "warning_count": len(result.warnings),
        "is_informational": result.is_informational,
        "duration_ms": duration_ms,
    })
    return result
