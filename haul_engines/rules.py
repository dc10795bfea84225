"""
Haul Rule Validator (``haul_engines.rules``).

Responsibility
--------------
Independent, composable checks over a captured haul event:

* route/type compatibility -- is the event's direction legal on the route?
* material/truck compatibility -- liquids in open dump bodies
* quantity vs. truck capacity
* field completeness
* timestamp sanity
* informational-trip detection

Each check returns a ``RuleOutcome`` of blocking errors and advisory
warnings.  Outcomes are merged with ``+`` (associative, with
``RuleOutcome.empty()`` as identity) by the orchestrator in
``haul_engines.haul_validation``.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
May only import from ``haul_kernel.domain``.

Invariants enforced
-------------------
* No ``datetime.now()`` calls: the timestamp rule receives ``now``.
* All functions are deterministic: same inputs = same outputs.
* Route dispatch is an exhaustive ``match`` over ``HaulType``.

Failure modes
-------------
* Returns outcomes (not exceptions) for business rule violations.
* Raises ``ValueError`` only for programming errors (non-positive capacity).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from haul_kernel.domain.records import (
    DEFAULT_HAUL_TYPE_ALIASES,
    HaulDirection,
    HaulEvent,
    HaulType,
    Material,
    Route,
    Truck,
    classify_haul_type,
    normalize_name,
)


@dataclass(frozen=True)
class RuleOutcome:
    """
    Errors and warnings produced by one or more rules.

    Contract:
        Immutable; merging never mutates either operand.
    Guarantees:
        - ``a + (b + c) == (a + b) + c`` and ``empty() + a == a``.
        - Messages keep the order in which the rules produced them.
    """

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> RuleOutcome:
        return cls()

    @classmethod
    def combine(cls, *outcomes: RuleOutcome) -> RuleOutcome:
        merged = cls.empty()
        for outcome in outcomes:
            merged = merged + outcome
        return merged

    def __add__(self, other: RuleOutcome) -> RuleOutcome:
        if not isinstance(other, RuleOutcome):
            return NotImplemented
        return RuleOutcome(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class HaulRulePolicy:
    """
    Thresholds and vocabularies the rules apply.

    Immutable configuration, built from a YAML rule set by
    ``haul_config.bridges.build_rule_policy``.  The defaults reproduce the
    capture application's behaviour.
    """

    near_full_ratio: Decimal = Decimal("0.95")
    low_load_ratio: Decimal = Decimal("0.10")
    default_truck_capacity: Decimal = Decimal("10")
    max_age: timedelta = timedelta(hours=24)
    # Direction that raises an error on each directional haul type
    forbidden_directions: Mapping[HaulType, HaulDirection] = field(
        default_factory=lambda: {
            HaulType.BROUGHT_TO_SITE: HaulDirection.EXTRACTION,
            HaulType.REMOVED_FROM_SITE: HaulDirection.DEPOSIT,
        }
    )
    liquid_keywords: tuple[str, ...] = ("agua", "water")
    open_body_keywords: tuple[str, ...] = ("volteo", "dump")
    haul_type_aliases: Mapping[HaulType, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_HAUL_TYPE_ALIASES)
    )
    match_carrier: bool = False

    def classify_haul_type(self, name: str | None) -> HaulType:
        """Classify a store display name with this policy's aliases."""
        return classify_haul_type(name, self.haul_type_aliases)


DEFAULT_POLICY = HaulRulePolicy()


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    normalized = normalize_name(text)
    return any(normalize_name(k) in normalized for k in keywords)


# ---------------------------------------------------------------------------
# Route / haul-type compatibility
# ---------------------------------------------------------------------------


def check_route_compatibility(
    route: Route,
    direction: HaulDirection,
    policy: HaulRulePolicy = DEFAULT_POLICY,
) -> RuleOutcome:
    """Check the event direction against the route's haul type.

    Brought-to-site and removed-from-site routes each forbid one direction
    (``policy.forbidden_directions``).  Internal movements allow both but
    only the extraction leg is reconciled.  Unknown types only warn.
    """
    match route.haul_type:
        case HaulType.BROUGHT_TO_SITE | HaulType.REMOVED_FROM_SITE:
            forbidden = policy.forbidden_directions.get(route.haul_type)
            if forbidden is not None and direction == forbidden:
                return RuleOutcome(errors=(
                    f'Route type "{route.haul_type.label}" does not permit '
                    f"{direction.value} events",
                ))
            return RuleOutcome.empty()
        case HaulType.INTERNAL_MOVEMENT:
            return RuleOutcome(warnings=(
                "Internal movement allows both directions, but only the "
                "extraction leg counts for reconciliation",
            ))
        case HaulType.UNKNOWN:
            return RuleOutcome(warnings=(
                f'Unrecognized haul type: "{route.haul_type_name}"',
            ))
        case _:
            raise ValueError(f"Unhandled haul type: {route.haul_type}")


# ---------------------------------------------------------------------------
# Material / truck compatibility
# ---------------------------------------------------------------------------


def check_material_truck_compatibility(
    material: Material,
    truck: Truck,
    policy: HaulRulePolicy = DEFAULT_POLICY,
) -> RuleOutcome:
    """Reject liquids in open dump bodies; flag unchecked classifications."""
    errors: list[str] = []
    warnings: list[str] = []

    if _contains_any(material.name, policy.liquid_keywords):
        is_open_body = (
            _contains_any(truck.truck_type_name, policy.open_body_keywords)
            or _contains_any(truck.classification_name, policy.open_body_keywords)
        )
        if is_open_body:
            errors.append(
                f'Material "{material.name}" is a liquid and cannot be hauled '
                f"in an open dump truck"
            )

    # No compatibility table is modeled yet: ask for a manual check
    if material.classification_id and truck.truck_type_id:
        warnings.append(
            "Verify the specific compatibility between the material "
            "classification and the truck type"
        )

    return RuleOutcome(errors=tuple(errors), warnings=tuple(warnings))


# ---------------------------------------------------------------------------
# Quantity vs. capacity
# ---------------------------------------------------------------------------


def check_quantity_against_capacity(
    quantity: Decimal,
    capacity: Decimal,
    policy: HaulRulePolicy = DEFAULT_POLICY,
) -> RuleOutcome:
    """Check a captured quantity against the truck capacity.

    Raises:
        ValueError: if capacity is not positive.
    """
    if capacity is None or capacity <= Decimal("0"):
        raise ValueError(f"Truck capacity must be positive, got {capacity}")

    errors: list[str] = []
    warnings: list[str] = []

    if quantity <= Decimal("0"):
        errors.append("Quantity must be greater than 0")

    if quantity > capacity:
        errors.append(
            f"Quantity ({quantity}) exceeds the truck capacity ({capacity})"
        )

    if quantity > capacity * policy.near_full_ratio:
        warnings.append("Quantity is very close to the truck capacity")

    if quantity < capacity * policy.low_load_ratio:
        warnings.append("Quantity is very low relative to the truck capacity")

    return RuleOutcome(errors=tuple(errors), warnings=tuple(warnings))


# ---------------------------------------------------------------------------
# Field completeness
# ---------------------------------------------------------------------------

_REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("site_id", "Site"),
    ("route_id", "Route"),
    ("truck_id", "Truck"),
    ("material_id", "Material"),
    ("quantity", "Quantity"),
    ("load_percentage", "Load percentage"),
    ("user_id", "User"),
    ("timestamp", "Timestamp"),
)


def _is_absent(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def check_required_fields(event: HaulEvent) -> RuleOutcome:
    """Report every missing field, a missing direction and a bad percentage."""
    errors = [
        f'Field "{label}" is required'
        for attr, label in _REQUIRED_FIELDS
        if _is_absent(getattr(event, attr))
    ]

    if not event.has_direction:
        errors.append("Select at least one direction: extraction or deposit")

    pct = event.load_percentage
    if pct is not None and (pct.is_nan() or not (Decimal("0") <= pct <= Decimal("100"))):
        errors.append("Load percentage must be between 0 and 100")

    return RuleOutcome(errors=tuple(errors))


# ---------------------------------------------------------------------------
# Timestamp sanity
# ---------------------------------------------------------------------------


def check_timestamp(
    timestamp: datetime,
    now: datetime,
    policy: HaulRulePolicy = DEFAULT_POLICY,
) -> RuleOutcome:
    """Warn about future timestamps and timestamps older than ``policy.max_age``.

    Naive datetimes are read as UTC.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    warnings: list[str] = []
    if timestamp > now:
        warnings.append("Haul timestamp is in the future")
    if timestamp < now - policy.max_age:
        hours = int(policy.max_age.total_seconds() // 3600)
        warnings.append(f"Haul timestamp is more than {hours} hours old")
    return RuleOutcome(warnings=tuple(warnings))


# ---------------------------------------------------------------------------
# Informational trips
# ---------------------------------------------------------------------------


def is_informational(event: HaulEvent, route: Route) -> bool:
    """A deposit on an internal-movement route is excluded from reconciliation."""
    return route.haul_type == HaulType.INTERNAL_MOVEMENT and event.is_deposit


def check_informational_trip(event: HaulEvent, route: Route) -> RuleOutcome:
    """Warn when the trip is informational.  Never produces errors."""
    if is_informational(event, route):
        return RuleOutcome(warnings=(
            "Informational trip (deposit on an internal movement): it will "
            "not affect reconciliation totals",
        ))
    return RuleOutcome.empty()
