"""
Tests for the FIFO requisition allocator.

Covers:
- Oldest authorized line with balance is selected
- Quantity exceeding the oldest line fails without falling back
- Eligibility filters: authorization, site, material, balance, carrier
- Stable ordering of equal submission times
- Snapshots are never modified
- Linking the event to the matched line
"""

import copy
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from haul_engines.requisition_allocation import (
    MatchStatus,
    RequisitionMatch,
    find_requisition_line,
    link_allocation,
)
from haul_kernel.domain.records import HaulEvent, Requisition, RequisitionLine

SITE_ID = "site-001"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _event(quantity: str | None = "3", material_id: str = "mat-gravel", **kwargs) -> HaulEvent:
    return HaulEvent(
        haul_event_id="haul-1",
        site_id=kwargs.pop("site_id", SITE_ID),
        material_id=material_id,
        quantity=Decimal(quantity) if quantity is not None else None,
        is_deposit=True,
        **kwargs,
    )


def _requisition(
    requisition_id: str,
    day: int,
    authorized: bool = True,
    site_id: str = SITE_ID,
    carrier_id: str | None = None,
) -> Requisition:
    return Requisition(
        requisition_id=requisition_id,
        site_id=site_id,
        is_authorized=authorized,
        submitted_at=datetime(2025, 3, day, 9, 0, tzinfo=timezone.utc),
        carrier_id=carrier_id,
    )


def _line(
    line_id: str,
    requisition_id: str,
    ordered: str = "10",
    delivered: str = "0",
    material_id: str = "mat-gravel",
    authorized: str | None = None,
) -> RequisitionLine:
    return RequisitionLine(
        line_id=line_id,
        requisition_id=requisition_id,
        material_id=material_id,
        ordered_quantity=Decimal(ordered),
        authorized_quantity=Decimal(authorized) if authorized is not None else None,
        delivered_quantity=Decimal(delivered),
    )


# ===========================================================================
# FIFO selection
# ===========================================================================


class TestFifoSelection:
    """The oldest eligible line is the only candidate."""

    def test_small_quantity_goes_to_oldest_line(
        self, day_one_and_day_three_requisitions, day_one_and_day_three_lines,
    ):
        match = find_requisition_line(
            _event("3"), day_one_and_day_three_requisitions, day_one_and_day_three_lines,
        )
        assert match.is_matched
        assert match.status == MatchStatus.MATCHED
        assert match.requisition.requisition_id == "req-day1"
        assert match.line.line_id == "line-day1"
        assert match.reason == "match found"

    def test_exact_balance_fits(
        self, day_one_and_day_three_requisitions, day_one_and_day_three_lines,
    ):
        match = find_requisition_line(
            _event("5"), day_one_and_day_three_requisitions, day_one_and_day_three_lines,
        )
        assert match.is_matched
        assert match.line.line_id == "line-day1"

    def test_quantity_above_oldest_balance_fails_without_fallback(
        self, day_one_and_day_three_requisitions, day_one_and_day_three_lines,
    ):
        """The day-3 line could absorb 8 but is never considered."""
        match = find_requisition_line(
            _event("8"), day_one_and_day_three_requisitions, day_one_and_day_three_lines,
        )
        assert not match.is_matched
        assert match.status == MatchStatus.EXCEEDS_BALANCE
        assert match.requisition is None
        assert match.line is None
        assert "exceeds" in match.reason
        assert "(5)" in match.reason
        assert match.reason.endswith("by 3")

    def test_exhausted_oldest_line_is_skipped(self):
        requisitions = [_requisition("req-1", 1), _requisition("req-2", 2)]
        lines = [
            _line("line-1", "req-1", ordered="10", delivered="10"),
            _line("line-2", "req-2", ordered="10"),
        ]
        match = find_requisition_line(_event("4"), requisitions, lines)
        assert match.line.line_id == "line-2"

    def test_authorized_quantity_overrides_ordered(self):
        requisitions = [_requisition("req-1", 1)]
        lines = [_line("line-1", "req-1", ordered="10", authorized="2")]
        match = find_requisition_line(_event("3"), requisitions, lines)
        assert match.status == MatchStatus.EXCEEDS_BALANCE

    def test_equal_submission_times_keep_input_order(self):
        requisitions = [_requisition("req-b", 1), _requisition("req-a", 1)]
        lines = [_line("line-b", "req-b"), _line("line-a", "req-a")]
        match = find_requisition_line(_event("1"), requisitions, lines)
        assert match.line.line_id == "line-b"

    def test_naive_and_aware_submission_times_compare_as_utc(self):
        requisitions = [
            _requisition("req-day3", 3),
            Requisition(
                requisition_id="req-day1",
                site_id=SITE_ID,
                is_authorized=True,
                submitted_at=datetime(2025, 3, 1, 9, 0),
            ),
        ]
        lines = [_line("line-day3", "req-day3"), _line("line-day1", "req-day1")]
        match = find_requisition_line(_event("3"), requisitions, lines)
        assert match.is_matched
        assert match.line.line_id == "line-day1"

    def test_missing_quantity_skips_balance_check(self):
        requisitions = [_requisition("req-1", 1)]
        lines = [_line("line-1", "req-1", ordered="1")]
        match = find_requisition_line(_event(None), requisitions, lines)
        assert match.is_matched


# ===========================================================================
# Eligibility
# ===========================================================================


class TestEligibility:
    """Which requisitions and lines are considered at all."""

    def test_no_requisitions(self):
        match = find_requisition_line(_event(), [], [])
        assert match.status == MatchStatus.NO_AUTHORIZED_REQUISITION
        assert match.reason == "no authorized requisitions for this site"

    def test_unauthorized_requisition_ignored(self):
        requisitions = [_requisition("req-1", 1, authorized=False)]
        lines = [_line("line-1", "req-1")]
        match = find_requisition_line(_event(), requisitions, lines)
        assert match.status == MatchStatus.NO_AUTHORIZED_REQUISITION

    def test_other_site_ignored(self):
        requisitions = [_requisition("req-1", 1, site_id="site-999")]
        lines = [_line("line-1", "req-1")]
        match = find_requisition_line(_event(), requisitions, lines)
        assert match.status == MatchStatus.NO_AUTHORIZED_REQUISITION

    def test_other_material_has_no_line(self):
        requisitions = [_requisition("req-1", 1)]
        lines = [_line("line-1", "req-1", material_id="mat-sand")]
        match = find_requisition_line(_event(), requisitions, lines)
        assert match.status == MatchStatus.NO_LINE_WITH_BALANCE
        assert match.reason == "no line with available balance for this material"

    def test_overdelivered_line_has_no_balance(self):
        requisitions = [_requisition("req-1", 1)]
        lines = [_line("line-1", "req-1", ordered="10", delivered="12")]
        match = find_requisition_line(_event(), requisitions, lines)
        assert match.status == MatchStatus.NO_LINE_WITH_BALANCE

    def test_lines_of_ineligible_requisitions_ignored(self):
        requisitions = [
            _requisition("req-old", 1, authorized=False),
            _requisition("req-new", 2),
        ]
        lines = [_line("line-old", "req-old"), _line("line-new", "req-new")]
        match = find_requisition_line(_event(), requisitions, lines)
        assert match.line.line_id == "line-new"


class TestCarrierFilter:
    """Carrier matching is off unless requested."""

    def _fixtures(self):
        requisitions = [
            _requisition("req-a", 1, carrier_id="carrier-a"),
            _requisition("req-b", 2, carrier_id="carrier-b"),
        ]
        lines = [_line("line-a", "req-a"), _line("line-b", "req-b")]
        return requisitions, lines

    def test_carrier_ignored_by_default(self):
        requisitions, lines = self._fixtures()
        match = find_requisition_line(_event(carrier_id="carrier-b"), requisitions, lines)
        assert match.line.line_id == "line-a"

    def test_carrier_matched_when_enabled(self):
        requisitions, lines = self._fixtures()
        match = find_requisition_line(
            _event(carrier_id="carrier-b"), requisitions, lines, match_carrier=True,
        )
        assert match.line.line_id == "line-b"

    def test_no_requisition_for_carrier(self):
        requisitions, lines = self._fixtures()
        match = find_requisition_line(
            _event(carrier_id="carrier-z"), requisitions, lines, match_carrier=True,
        )
        assert match.status == MatchStatus.NO_AUTHORIZED_REQUISITION
        assert match.reason == "no authorized requisitions for this site and carrier"


# ===========================================================================
# Purity
# ===========================================================================


class TestAllocatorPurity:
    """The allocator is read-only over its inputs."""

    def test_inputs_unchanged(
        self, day_one_and_day_three_requisitions, day_one_and_day_three_lines,
    ):
        requisitions_before = copy.deepcopy(day_one_and_day_three_requisitions)
        lines_before = copy.deepcopy(day_one_and_day_three_lines)
        event = _event("3")

        find_requisition_line(event, day_one_and_day_three_requisitions, day_one_and_day_three_lines)

        assert day_one_and_day_three_requisitions == requisitions_before
        assert day_one_and_day_three_lines == lines_before
        assert event.requisition_line_id is None

    def test_repeated_calls_agree(
        self, day_one_and_day_three_requisitions, day_one_and_day_three_lines,
    ):
        first = find_requisition_line(
            _event("3"), day_one_and_day_three_requisitions, day_one_and_day_three_lines,
        )
        second = find_requisition_line(
            _event("3"), day_one_and_day_three_requisitions, day_one_and_day_three_lines,
        )
        assert first == second

    def test_completion_logged(self, captured_logs):
        find_requisition_line(_event(), [], [])
        completed = [r for r in captured_logs() if r["message"] == "requisition_match_completed"]
        assert len(completed) == 1
        assert completed[0]["status"] == "no_authorized_requisition"
        assert completed[0]["level"] == "WARNING"


# ===========================================================================
# Linking
# ===========================================================================


class TestLinkAllocation:
    """Back-reference from the event to the charged line."""

    def test_matched_event_is_linked(self):
        requisition = _requisition("req-1", 1)
        line = _line("line-1", "req-1")
        match = RequisitionMatch(
            requisition=requisition, line=line,
            reason="match found", status=MatchStatus.MATCHED,
        )
        event = _event()
        linked = link_allocation(event, match)
        assert linked.requisition_id == "req-1"
        assert linked.requisition_line_id == "line-1"
        assert linked == replace(event, requisition_id="req-1", requisition_line_id="line-1")
        assert event.requisition_id is None

    def test_failed_match_leaves_event_unchanged(self):
        event = _event()
        match = RequisitionMatch.failed(MatchStatus.NO_LINE_WITH_BALANCE, "none")
        assert link_allocation(event, match) is event


@pytest.mark.parametrize("status", [s for s in MatchStatus if s != MatchStatus.MATCHED])
def test_failed_matches_carry_no_records(status):
    match = RequisitionMatch.failed(status, "reason")
    assert not match.is_matched
    assert match.requisition is None and match.line is None
