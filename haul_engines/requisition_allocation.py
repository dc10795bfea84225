"""
Module: haul_engines.requisition_allocation
Responsibility:
    Suggest which open material requisition line a haul event should be
    charged against: the oldest authorized line of the event's site with
    remaining balance for the event's material (FIFO).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import haul_kernel.domain.

Invariants enforced:
    - Read-only: supplied requisitions and lines are never modified.
    - FIFO: candidates are ordered by the parent requisition's submission
      time with a stable sort, so equal timestamps keep input order.
      Naive submission times are read as UTC.
    - Single candidate: only the oldest line is considered.  A quantity
      that does not fit it fails the match; there is no fallback to the
      next line and no split across lines.

Failure modes:
    - None raised.  Every outcome, successful or not, is a
      ``RequisitionMatch`` with a ``MatchStatus`` and a human-readable
      reason.  A failed match is advisory and does not invalidate the
      haul event.

Usage:
    from haul_engines.requisition_allocation import find_requisition_line

    match = find_requisition_line(event, requisitions, lines)
    if match.is_matched:
        event = link_allocation(event, match)
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from haul_engines.tracer import traced_engine
from haul_kernel.domain.records import HaulEvent, Requisition, RequisitionLine
from haul_kernel.logging_config import get_logger

logger = get_logger("engines.requisition_allocation")


class MatchStatus(str, Enum):
    """Outcome of a requisition search."""

    MATCHED = "matched"
    NO_AUTHORIZED_REQUISITION = "no_authorized_requisition"
    NO_LINE_WITH_BALANCE = "no_line_with_balance"
    EXCEEDS_BALANCE = "exceeds_balance"


@dataclass(frozen=True)
class RequisitionMatch:
    """
    Result of a requisition search.

    Guarantees:
        - ``requisition`` and ``line`` are both set when ``status`` is
          MATCHED and both None otherwise.
    """

    requisition: Requisition | None
    line: RequisitionLine | None
    reason: str
    status: MatchStatus

    @property
    def is_matched(self) -> bool:
        return self.status == MatchStatus.MATCHED

    @classmethod
    def failed(cls, status: MatchStatus, reason: str) -> RequisitionMatch:
        return cls(requisition=None, line=None, reason=reason, status=status)


@traced_engine(
    "requisition_allocation", "1.0",
    fingerprint_fields=("event", "requisitions", "lines", "match_carrier"),
)
def find_requisition_line(
    event: HaulEvent,
    requisitions: Sequence[Requisition],
    lines: Sequence[RequisitionLine],
    *,
    match_carrier: bool = False,
) -> RequisitionMatch:
    """
    Find the oldest requisition line that can absorb the haul event.

    Args:
        event: The (possibly partial) haul event; site, material and
            quantity are read.
        requisitions: Requisitions visible to the site.
        lines: Lines of those requisitions.
        match_carrier: Also require the requisition's carrier to equal the
            event's carrier.

    Returns:
        RequisitionMatch describing the selected line or why none fits.
    """
    t0 = time.monotonic()
    logger.info("requisition_match_started", extra={
        "site_id": event.site_id,
        "material_id": event.material_id,
        "quantity": event.quantity,
        "requisition_count": len(requisitions),
        "line_count": len(lines),
        "match_carrier": match_carrier,
    })

    eligible = {
        req.requisition_id: req
        for req in requisitions
        if req.is_authorized
        and req.site_id == event.site_id
        and (not match_carrier or req.carrier_id == event.carrier_id)
    }

    if not eligible:
        scope = "this site and carrier" if match_carrier else "this site"
        return _finish(t0, RequisitionMatch.failed(
            MatchStatus.NO_AUTHORIZED_REQUISITION,
            f"no authorized requisitions for {scope}",
        ))

    candidates = [
        line
        for line in lines
        if line.requisition_id in eligible
        and line.material_id == event.material_id
        and line.remaining_balance > Decimal("0")
    ]

    if not candidates:
        return _finish(t0, RequisitionMatch.failed(
            MatchStatus.NO_LINE_WITH_BALANCE,
            "no line with available balance for this material",
        ))

    # sorted() is stable: equal submission times keep input order
    candidates = sorted(
        candidates,
        key=lambda line: _as_utc(eligible[line.requisition_id].submitted_at),
    )
    selected = candidates[0]
    requisition = eligible[selected.requisition_id]
    balance = selected.remaining_balance

    if event.quantity is not None and event.quantity > balance:
        excess = event.quantity - balance
        return _finish(t0, RequisitionMatch.failed(
            MatchStatus.EXCEEDS_BALANCE,
            f"haul quantity ({event.quantity}) exceeds the available balance "
            f"({balance}) of the oldest line by {excess}",
        ))

    return _finish(t0, RequisitionMatch(
        requisition=requisition,
        line=selected,
        reason="match found",
        status=MatchStatus.MATCHED,
    ))


def _as_utc(moment: datetime) -> datetime:
    """Naive submission times are read as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def _finish(t0: float, match: RequisitionMatch) -> RequisitionMatch:
    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    log = logger.info if match.is_matched else logger.warning
    log("requisition_match_completed", extra={
        "status": match.status.value,
        "reason": match.reason,
        "requisition_id": match.requisition.requisition_id if match.requisition else None,
        "line_id": match.line.line_id if match.line else None,
        "duration_ms": duration_ms,
    })
    return match


def link_allocation(event: HaulEvent, match: RequisitionMatch) -> HaulEvent:
    """Return a copy of the event referencing the matched requisition line.

    The event is returned unchanged when the match failed.
    """
    if not match.is_matched:
        return event
    return replace(
        event,
        requisition_id=match.requisition.requisition_id,
        requisition_line_id=match.line.line_id,
    )
