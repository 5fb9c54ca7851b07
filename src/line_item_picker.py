"""
Matches scans against the line item the picker is currently looking for.

Flow for one line item:
1. start_scan(item): the aggregator starts listening with the item as target
2. A scan arrives -> evaluate():
   - MATCHED: scanning stops and a quantity confirmation is requested,
     pre-filled with the required quantity
   - MISMATCHED: the operator sees scanned vs. expected, scanning continues
3. confirm_quantity(): the entered quantity becomes the picked quantity
"""

from enum import Enum
from typing import Optional

from PySide6.QtCore import QObject, Signal

from logger import get_logger
from models import LineItem, ScanCode

logger = get_logger(__name__)


class PickResult(Enum):
    MATCHED = "matched"
    MISMATCHED = "mismatched"


class LineItemPicker(QObject):
    """
    Evaluates scans for a target line item and records confirmed quantities.

    Barcodes are compared with exact string equality: store and scanner
    barcodes are canonical, so no case folding or fuzzy matching.

    Attributes:
        quantity_requested (Signal): (LineItem, suggested_qty) after a match.
        barcode_mismatch (Signal): (scanned, expected) after a wrong scan.
        item_picked (Signal): LineItem after a quantity was confirmed.
    """
    quantity_requested = Signal(object, int)
    barcode_mismatch = Signal(str, str)
    item_picked = Signal(object)

    def __init__(self, aggregator, parent: QObject = None):
        super().__init__(parent)
        self.aggregator = aggregator
        self.target: Optional[LineItem] = None
        self.aggregator.code_scanned.connect(self._on_code_scanned)

    def start_scan(self, item: LineItem):
        """Open a scan session for the given line item."""
        self.target = item
        self.aggregator.set_target(item)
        self.aggregator.set_listening(True)
        logger.info(f"Scanning for line item {item.id} (expected {item.expected_barcode})")

    def close_scan(self):
        """Close the scan session without a match (scan view dismissed)."""
        self.aggregator.close()
        self.target = None

    def evaluate(self, target: LineItem, code: ScanCode) -> PickResult:
        """
        Compare a scan with the target's expected barcode.

        Args:
            target: The line item being picked
            code: The scan to check

        Returns:
            PickResult.MATCHED or PickResult.MISMATCHED
        """
        if code.value == target.expected_barcode:
            logger.info(f"Barcode matched for line item {target.id}")
            self.aggregator.close()
            self.quantity_requested.emit(target, target.required_qty)
            return PickResult.MATCHED

        logger.warning(f"Wrong product for line item {target.id}: "
                       f"scanned {code.value}, expected {target.expected_barcode}")
        self.barcode_mismatch.emit(code.value, target.expected_barcode)
        return PickResult.MISMATCHED

    def confirm_quantity(self, item: LineItem, qty_text: str) -> bool:
        """
        Record the quantity the operator confirmed for a matched item.

        Bad input (non-numeric, zero, negative) is ignored rather than raised:
        the quantity dialog simply stays open.

        Args:
            item: The matched line item
            qty_text: Text from the quantity field

        Returns:
            True if picked_qty was updated
        """
        try:
            qty = int(str(qty_text).strip())
        except ValueError:
            logger.debug(f"Ignoring non-numeric quantity: {qty_text!r}")
            return False

        if qty <= 0:
            logger.debug(f"Ignoring non-positive quantity: {qty}")
            return False

        item.picked_qty = qty
        logger.info(f"Line item {item.id}: picked {qty} / {item.required_qty}")
        self.item_picked.emit(item)
        return True

    def _on_code_scanned(self, code: ScanCode):
        # The aggregator only emits with a target set, but the target it holds
        # may belong to another consumer sharing the same aggregator.
        if self.target is None or self.aggregator.target is not self.target:
            return
        self.evaluate(self.target, code)
