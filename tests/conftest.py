"""
Pytest fixtures for the haul rules test suite.

Provides:
- Structured logging configured once per session, with per-test context reset
- A deterministic clock pinned to a Monday morning on site
- Sample route, truck, material and haul-event records
- Requisition snapshots for the allocation scenarios
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from haul_engines.rules import DEFAULT_POLICY
from haul_kernel.domain.clock import DeterministicClock
from haul_kernel.domain.records import (
    HaulEvent,
    HaulType,
    Material,
    Requisition,
    RequisitionLine,
    Route,
    Truck,
)
from haul_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

SITE_ID = "site-001"
NOW = datetime(2025, 3, 3, 8, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture haul_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            validate_haul_event(...)
            logs = captured_logs()
            assert any(r["message"] == "haul_validation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("haul_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and policy fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock(NOW)


@pytest.fixture
def default_policy():
    return DEFAULT_POLICY


# =============================================================================
# Record fixtures
# =============================================================================


@pytest.fixture
def brought_route():
    return Route(
        route_id="route-in",
        haul_type=HaulType.BROUGHT_TO_SITE,
        haul_type_name="Material traído a obra",
        origin_place_id="quarry-07",
        destination_place_id="site-001-yard",
        total_kilometers=Decimal("18.5"),
    )


@pytest.fixture
def removed_route():
    return Route(
        route_id="route-out",
        haul_type=HaulType.REMOVED_FROM_SITE,
        haul_type_name="Material sacado de obra",
    )


@pytest.fixture
def internal_route():
    return Route(
        route_id="route-internal",
        haul_type=HaulType.INTERNAL_MOVEMENT,
        haul_type_name="Movimiento interno",
    )


@pytest.fixture
def dump_truck():
    return Truck(
        truck_id="truck-14",
        capacity=Decimal("10"),
        truck_type_name="Camión de volteo",
        classification_name="Volteo 14 m3",
    )


@pytest.fixture
def tank_truck():
    return Truck(
        truck_id="truck-pipa",
        capacity=Decimal("20"),
        truck_type_name="Pipa",
        classification_name="Pipa 20 m3",
    )


@pytest.fixture
def gravel():
    return Material(material_id="mat-gravel", name="Grava 3/4")


@pytest.fixture
def water():
    return Material(material_id="mat-water", name="Agua tratada")


@pytest.fixture
def complete_event():
    """A complete deposit of 6 m3 captured at the clock's current time."""
    return HaulEvent(
        haul_event_id="haul-1",
        site_id=SITE_ID,
        route_id="route-in",
        truck_id="truck-14",
        material_id="mat-gravel",
        user_id="operator-9",
        is_deposit=True,
        quantity=Decimal("6"),
        load_percentage=Decimal("60"),
        timestamp=NOW,
    )


@pytest.fixture
def day_one_and_day_three_requisitions():
    """Two authorized requisitions for the site, submitted on day 1 and day 3."""
    return [
        Requisition(
            requisition_id="req-day3",
            site_id=SITE_ID,
            is_authorized=True,
            submitted_at=datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc),
        ),
        Requisition(
            requisition_id="req-day1",
            site_id=SITE_ID,
            is_authorized=True,
            submitted_at=datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def day_one_and_day_three_lines():
    """Gravel lines: day 1 has 5 m3 left, day 3 has 20 m3 left."""
    return [
        RequisitionLine(
            line_id="line-day3",
            requisition_id="req-day3",
            material_id="mat-gravel",
            ordered_quantity=Decimal("20"),
        ),
        RequisitionLine(
            line_id="line-day1",
            requisition_id="req-day1",
            material_id="mat-gravel",
            ordered_quantity=Decimal("12"),
            authorized_quantity=Decimal("10"),
            delivered_quantity=Decimal("5"),
        ),
    ]
