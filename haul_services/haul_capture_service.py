"""
haul_services.haul_capture_service -- Validation and allocation for haul capture.

Responsibility:
    Front door the capture application calls when an operator submits a
    haul event: validates it with the current time from an injected clock,
    suggests the requisition line to charge, and computes the records to
    persist when the caller applies that suggestion.

Architecture position:
    Services -- orchestration over engines.  Holds a Clock and a
    HaulRulePolicy; holds no snapshot state between calls and performs no
    persistence.  The caller writes the returned records to the store.

Invariants enforced:
    - Engines receive ``now`` from the clock, never read it themselves.
    - ``apply_allocation`` re-checks the quantity against the line snapshot
      supplied at apply time, so a balance consumed since the match was
      suggested is detected instead of overdrawn.

Failure modes:
    - NoAllocationError from ``apply_allocation`` for a failed match.
    - AllocationMismatchError if the supplied line is not the matched one.
    - InsufficientBalanceError if the supplied line no longer covers the
      haul quantity (stale snapshot; re-read and re-match).
    - ConfigNotFoundError / InvalidConfigError from ``from_config``.

Usage:
    service = HaulCaptureService.from_config(site_id, as_of_date)
    result = service.validate(event, route, truck, material)
    match = service.suggest_allocation(event, requisitions, lines)
    if result.is_valid and match.is_matched:
        event, line = service.apply_allocation(event, match, fresh_line)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from haul_config import get_active_config
from haul_config.bridges import build_rule_policy
from haul_engines.haul_validation import HaulValidationResult, validate_haul_event
from haul_engines.requisition_allocation import (
    RequisitionMatch,
    find_requisition_line,
    link_allocation,
)
from haul_engines.rules import DEFAULT_POLICY, HaulRulePolicy
from haul_kernel.domain.clock import Clock, SystemClock
from haul_kernel.domain.records import (
    HaulEvent,
    Material,
    Requisition,
    RequisitionLine,
    Route,
    Truck,
)
from haul_kernel.exceptions import (
    AllocationMismatchError,
    InsufficientBalanceError,
    NoAllocationError,
)
from haul_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.haul_capture")


class HaulCaptureService:
    """
    Validates haul events and manages their requisition allocation.

    Contract:
        Receives a Clock and a HaulRulePolicy via constructor injection.
    Guarantees:
        - ``validate`` never raises for business-rule violations.
        - ``suggest_allocation`` is read-only over the supplied snapshots.
        - ``apply_allocation`` returns new records; inputs are untouched.
    Non-goals:
        - Does not persist anything and does not lock balances; the
          caller must write the returned line under its own transaction
          or optimistic-concurrency check.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        policy: HaulRulePolicy = DEFAULT_POLICY,
    ) -> None:
        self._clock = clock or SystemClock()
        self._policy = policy

    @classmethod
    def from_config(
        cls,
        site_id: str,
        as_of_date: date,
        clock: Clock | None = None,
    ) -> HaulCaptureService:
        """Build a service from the active rule set for a site."""
        rule_set = get_active_config(site_id, as_of_date)
        return cls(clock=clock, policy=build_rule_policy(rule_set))

    @property
    def policy(self) -> HaulRulePolicy:
        return self._policy

    def validate(
        self,
        event: HaulEvent,
        route: Route,
        truck: Truck,
        material: Material,
    ) -> HaulValidationResult:
        """Validate a haul event as of the clock's current time."""
        with LogContext.bind(
            site_id=event.site_id,
            user_id=event.user_id,
            haul_event_id=event.haul_event_id,
        ):
            result = validate_haul_event(
                event, route, truck, material,
                now=self._clock.now(),
                policy=self._policy,
            )
            if not result.is_valid:
                logger.warning("haul_event_rejected", extra={
                    "errors": list(result.errors),
                })
            return result

    def suggest_allocation(
        self,
        event: HaulEvent,
        requisitions: Sequence[Requisition],
        lines: Sequence[RequisitionLine],
    ) -> RequisitionMatch:
        """Suggest the requisition line to charge; advisory only."""
        with LogContext.bind(
            site_id=event.site_id,
            user_id=event.user_id,
            haul_event_id=event.haul_event_id,
        ):
            return find_requisition_line(
                event, requisitions, lines,
                match_carrier=self._policy.match_carrier,
            )

    def apply_allocation(
        self,
        event: HaulEvent,
        match: RequisitionMatch,
        current_line: RequisitionLine,
    ) -> tuple[HaulEvent, RequisitionLine]:
        """
        Compute the event back-reference and the line's new delivered total.

        Args:
            event: The validated haul event.
            match: A suggestion from ``suggest_allocation``.
            current_line: The matched line as currently stored.

        Returns:
            (event linked to the line, line with the quantity delivered)

        Raises:
            NoAllocationError: if the match failed.
            AllocationMismatchError: if ``current_line`` is another line.
            InsufficientBalanceError: if the quantity no longer fits.
        """
        if not match.is_matched:
            raise NoAllocationError(match.reason)
        if current_line.line_id != match.line.line_id:
            raise AllocationMismatchError(match.line.line_id, current_line.line_id)
        if event.quantity is None or event.quantity > current_line.remaining_balance:
            logger.warning("allocation_balance_conflict", extra={
                "line_id": current_line.line_id,
                "quantity": event.quantity,
                "remaining_balance": current_line.remaining_balance,
                "matched_balance": match.line.remaining_balance,
            })
            raise InsufficientBalanceError(
                current_line.line_id, event.quantity, current_line.remaining_balance,
            )

        updated_line = current_line.with_delivery(event.quantity)
        linked_event = link_allocation(event, match)

        logger.info("allocation_applied", extra={
            "requisition_id": match.requisition.requisition_id,
            "line_id": updated_line.line_id,
            "quantity": event.quantity,
            "delivered_quantity": updated_line.delivered_quantity,
            "remaining_balance": updated_line.remaining_balance,
        })
        return linked_event, updated_line
