"""
Pytest fixtures for the stock-control test suite.

Provides:
- Structured logging configured for every test, with a log capture fixture
- A deterministic clock and ``as_of`` timestamp
- Factories for items, movements, waste logs and barcode logs
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from io import StringIO

import pytest

from stock_kernel.domain.clock import DeterministicClock
from stock_kernel.domain.ids import SequentialIdGenerator
from stock_kernel.domain.inventory import (
    InventoryItem,
    MovementType,
    StockMovement,
    WasteLog,
)
from stock_kernel.domain.scanning import BarcodeLog, ScanType
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

AS_OF = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


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
    Capture stock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            theoretical_stock(item, movements)
            logs = captured_logs()
            assert any(r["message"] == "theoretical_stock_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("stock_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Time and ids
# =============================================================================


@pytest.fixture
def as_of() -> datetime:
    return AS_OF


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(AS_OF)


@pytest.fixture
def id_generator() -> SequentialIdGenerator:
    return SequentialIdGenerator()


# =============================================================================
# Record factories
# =============================================================================


@pytest.fixture
def make_item():
    """Build an ``InventoryItem`` with sensible defaults."""

    def _make(item_id: str = "item-1", **overrides) -> InventoryItem:
        fields = {
            "id": item_id,
            "name": overrides.pop("name", f"Item {item_id}"),
            "primary_unit": "kg",
            "cost_price": Decimal("10"),
        }
        fields.update(overrides)
        return InventoryItem(**fields)

    return _make


@pytest.fixture
def make_movement():
    """Build a ``StockMovement``; ``days_ago`` is relative to ``AS_OF``."""
    counter = iter(range(1, 1_000_000))

    def _make(
        movement_type: MovementType | str,
        quantity,
        item_id: str = "item-1",
        days_ago: float = 1,
        **overrides,
    ) -> StockMovement:
        fields = {
            "id": f"mv-{next(counter)}",
            "item_id": item_id,
            "location_id": "loc-1",
            "movement_type": MovementType(movement_type),
            "quantity": quantity,
            "created_at": AS_OF - timedelta(days=days_ago),
            "user_id": "user-1",
        }
        fields.update(overrides)
        return StockMovement(**fields)

    return _make


@pytest.fixture
def make_waste():
    """Build a ``WasteLog``; ``days_ago`` is relative to ``AS_OF``."""
    counter = iter(range(1, 1_000_000))

    def _make(
        quantity,
        unit_cost="2",
        item_id: str = "item-1",
        days_ago: float = 1,
        **overrides,
    ) -> WasteLog:
        fields = {
            "id": f"waste-{next(counter)}",
            "item_id": item_id,
            "location_id": "loc-1",
            "quantity": quantity,
            "unit_cost": unit_cost,
            "reason_id": "spoiled",
            "reason_name": "Spoiled",
            "waste_date": AS_OF - timedelta(days=days_ago),
            "reported_by": "user-1",
        }
        fields.update(overrides)
        return WasteLog(**fields)

    return _make


@pytest.fixture
def make_scan_log():
    """Build a ``BarcodeLog`` at an explicit timestamp."""
    counter = iter(range(1, 1_000_000))

    def _make(
        created_at: datetime,
        is_successful: bool = True,
        item_id: str | None = "item-1",
        item_name: str | None = "Item item-1",
        error_message: str | None = None,
        **overrides,
    ) -> BarcodeLog:
        fields = {
            "id": f"log-{next(counter)}",
            "barcode": "036000291452",
            "scanned_by": "user-1",
            "scan_type": ScanType.LOOKUP,
            "location_id": "loc-1",
            "is_successful": is_successful,
            "created_at": created_at,
            "item_id": item_id,
            "item_name": item_name,
            "error_message": error_message,
        }
        fields.update(overrides)
        return BarcodeLog(**fields)

    return _make
