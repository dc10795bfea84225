"""
Records -- Immutable snapshots consumed by the haul engines.

Responsibility:
    Defines the in-memory records the capture application hands to the
    engines: the haul event under construction, the chosen route, truck and
    material, and the site's requisitions with their lines.  Also owns the
    closed haul-type classification and the mapping from the document
    store's display names onto it.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by engines, config bridges and services.

Invariants enforced:
    - Every record is a frozen dataclass; engines never mutate a snapshot.
    - Quantities are ``Decimal``; floats are never produced by this module.
    - ``RequisitionLine.remaining_balance`` is always derived from the
      snapshot, never stored.

Failure modes:
    - ValueError from ``RequisitionLine.with_delivery`` for a non-positive
      delivery quantity.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum


class HaulDirection(str, Enum):
    """Effective direction of a haul event."""

    EXTRACTION = "extraction"  # carga: truck is loaded at a place
    DEPOSIT = "deposit"  # tiro: truck unloads at a place


class HaulType(str, Enum):
    """Haul-type classification carried by a route."""

    BROUGHT_TO_SITE = "brought_to_site"
    REMOVED_FROM_SITE = "removed_from_site"
    INTERNAL_MOVEMENT = "internal_movement"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return _HAUL_TYPE_LABELS[self]


_HAUL_TYPE_LABELS: dict[HaulType, str] = {
    HaulType.BROUGHT_TO_SITE: "material brought to site",
    HaulType.REMOVED_FROM_SITE: "material removed from site",
    HaulType.INTERNAL_MOVEMENT: "internal movement",
    HaulType.UNKNOWN: "unrecognized haul type",
}


DEFAULT_HAUL_TYPE_ALIASES: Mapping[HaulType, tuple[str, ...]] = {
    HaulType.BROUGHT_TO_SITE: (
        "material traído a obra",
        "material brought to site",
    ),
    HaulType.REMOVED_FROM_SITE: (
        "material sacado de obra",
        "material removed from site",
    ),
    HaulType.INTERNAL_MOVEMENT: (
        "movimiento interno de material",
        "movimiento interno",
        "internal movement",
    ),
}


def normalize_name(name: str) -> str:
    """Lower-case, strip accents and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())


def classify_haul_type(
    name: str | None,
    aliases: Mapping[HaulType, tuple[str, ...]] = DEFAULT_HAUL_TYPE_ALIASES,
) -> HaulType:
    """Map a haul-type display name from the document store to a HaulType.

    Matching is case-, accent- and whitespace-insensitive.  Names matching
    no alias (including an empty or missing name) classify as UNKNOWN.
    """
    if not name:
        return HaulType.UNKNOWN
    normalized = normalize_name(name)
    for haul_type, names in aliases.items():
        if any(normalize_name(alias) == normalized for alias in names):
            return haul_type
    return HaulType.UNKNOWN


@dataclass(frozen=True)
class Route:
    """
    Directional path between two places, tagged with a haul type.

    ``haul_type_name`` is the display name the store holds; it is only used
    in messages.  Build the route with ``classify_haul_type`` when all the
    caller has is that name.
    """

    route_id: str
    haul_type: HaulType
    haul_type_name: str = ""
    origin_place_id: str | None = None
    destination_place_id: str | None = None
    total_kilometers: Decimal | None = None


@dataclass(frozen=True)
class Truck:
    """A truck and the classification data the rules need."""

    truck_id: str
    capacity: Decimal | None = None
    truck_type_id: str | None = None
    truck_type_name: str = ""
    classification_id: str | None = None
    classification_name: str = ""
    carrier_id: str | None = None


@dataclass(frozen=True)
class Material:
    """A hauled substance."""

    material_id: str
    name: str
    classification_id: str | None = None


@dataclass(frozen=True)
class Requisition:
    """An authorized material order for a site."""

    requisition_id: str
    site_id: str
    is_authorized: bool
    submitted_at: datetime
    carrier_id: str | None = None


@dataclass(frozen=True)
class RequisitionLine:
    """
    One material/quantity entry of a requisition.

    Guarantees:
        - ``remaining_balance`` is ``(authorized ?? ordered) - delivered``,
          computed fresh on every access.  It is not clamped at zero.
    """

    line_id: str
    requisition_id: str
    material_id: str
    ordered_quantity: Decimal
    authorized_quantity: Decimal | None = None
    delivered_quantity: Decimal = Decimal("0")

    @property
    def allowed_quantity(self) -> Decimal:
        if self.authorized_quantity is not None:
            return self.authorized_quantity
        return self.ordered_quantity

    @property
    def remaining_balance(self) -> Decimal:
        return self.allowed_quantity - self.delivered_quantity

    def with_delivery(self, quantity: Decimal) -> RequisitionLine:
        """Return a copy with ``quantity`` added to the delivered total."""
        if quantity <= Decimal("0"):
            raise ValueError(f"Delivery quantity must be positive, got {quantity}")
        return replace(self, delivered_quantity=self.delivered_quantity + quantity)


@dataclass(frozen=True)
class HaulEvent:
    """
    One truck trip (acarreo) as captured so far.

    Every attribute may be missing: the completeness rule
    reports what is absent instead of construction failing.  Whether the
    trip is informational is computed by the rules, never supplied.
    """

    haul_event_id: str | None = None
    site_id: str | None = None
    route_id: str | None = None
    truck_id: str | None = None
    material_id: str | None = None
    user_id: str | None = None
    carrier_id: str | None = None
    is_extraction: bool = False
    is_deposit: bool = False
    quantity: Decimal | None = None
    load_percentage: Decimal | None = None
    timestamp: datetime | None = None
    requisition_id: str | None = None
    requisition_line_id: str | None = None

    @property
    def direction(self) -> HaulDirection:
        """Extraction when the extraction flag is set, deposit otherwise."""
        if self.is_extraction:
            return HaulDirection.EXTRACTION
        return HaulDirection.DEPOSIT

    @property
    def has_direction(self) -> bool:
        return self.is_extraction or self.is_deposit
