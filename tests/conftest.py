"""
Pytest configuration file for Picking Tool tests.

Puts the 'src' directory on sys.path so tests import modules the same way the
application does, and provides the fixtures shared by several test modules.
"""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Run Qt headless so the suite works without a display server
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

repo_root = Path(__file__).parent.parent

src_dir = repo_root / 'src'
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from models import LineItem, Order, OrderStatus  # noqa: E402
from scan_aggregator import ScanAggregator  # noqa: E402


# Short debounce keeps the timer tests fast
TEST_QUIET_PERIOD_MS = 20


@pytest.fixture
def sink():
    """Stand-in for the hidden scanner input widget."""
    mock_sink = MagicMock()
    mock_sink.focus = MagicMock()
    mock_sink.clear = MagicMock()
    return mock_sink


@pytest.fixture
def aggregator(qtbot, sink):
    """ScanAggregator on a mock sink; qtbot provides the Qt application."""
    agg = ScanAggregator(sink, quiet_period_ms=TEST_QUIET_PERIOD_MS)
    yield agg
    agg.close()


def make_order(items=None, status=OrderStatus.ASSIGNED, order_id=5531):
    """
    Helper to build an Order for tests.

    Args:
        items: List of (barcode, required_qty, picked_qty) tuples
    """
    if items is None:
        items = [("8991234567890", 2, 0), ("8997777000012", 1, 0)]

    line_items = [
        LineItem(id=index + 1, expected_barcode=barcode, required_qty=required,
                 picked_qty=picked, sku=f"SKU-{index + 1}")
        for index, (barcode, required, picked) in enumerate(items)
    ]
    return Order(id=order_id, tracking="JX1234567890", line_items=line_items, status=status)


def order_payload(order_id=5531, items_key="products"):
    """Order detail payload in the shape the order service returns."""
    payload = {
        "id": order_id,
        "order_ginee_id": "GN-0001",
        "processing_status": None,
        "event_status": "READY_TO_SHIP",
        "channel": "Shopee",
        "store": "Main Store",
        "courier": "JNE",
        "tracking": "JX1234567890",
        "sent_before": "2026-10-19T10:00:00",
    }
    if items_key:
        payload[items_key] = [
            {
                "id": 1,
                "sku": "SKU-CREAM-01",
                "product_name": "Night Cream 50ml",
                "variant": "50ml",
                "quantity": 2,
                "product": {"id": 10, "sku": "SKU-CREAM-01", "name": "Night Cream",
                            "barcode": "8991234567890"},
            },
            {
                "id": 2,
                "sku": "SKU-SERUM-02",
                "product_name": "Vitamin C Serum",
                "variant": "",
                "quantity": 1,
            },
        ]
    return payload
