"""
Load conversion between captured quantity and truck-load percentage.

The capture form lets the operator edit either field; the caller converts
in the direction of the field edited last.  The two functions round
independently (half-up), so they are not exact inverses of each other.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_HUNDRED = Decimal("100")
_CENTS = Decimal("0.01")


def _require_capacity(capacity: Decimal) -> Decimal:
    capacity = Decimal(capacity)
    if capacity <= Decimal("0"):
        raise ValueError(f"Truck capacity must be positive, got {capacity}")
    return capacity


def quantity_from_percentage(percentage: Decimal, capacity: Decimal) -> Decimal:
    """Quantity carried at ``percentage`` of ``capacity``, to 2 decimal places.

    >>> quantity_from_percentage(Decimal("50"), Decimal("10"))
    Decimal('5.00')
    """
    capacity = _require_capacity(capacity)
    raw = Decimal(percentage) / _HUNDRED * capacity
    return raw.quantize(_CENTS, rounding=ROUND_HALF_UP)


def percentage_from_quantity(quantity: Decimal, capacity: Decimal) -> int:
    """Whole percentage of ``capacity`` that ``quantity`` represents.

    >>> percentage_from_quantity(Decimal("5"), Decimal("10"))
    50
    """
    capacity = _require_capacity(capacity)
    raw = Decimal(quantity) / capacity * _HUNDRED
    return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
