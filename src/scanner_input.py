"""
Hidden line edit that keeps keyboard focus for a USB barcode scanner.

The scanner behaves like a keyboard, so whatever widget holds focus receives
the barcode. This widget takes that role and hands the text to a
ScanAggregator instead of displaying it.
"""

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLineEdit, QWidget


class ScannerInputSink(QLineEdit):
    """
    The hidden line edit that receives keystrokes from a USB barcode scanner.

    It is 1x1 px so it never shows, but it must hold keyboard focus for the
    scanner's keystrokes to arrive. Text changes typed by the scanner and the
    Enter key are forwarded to a ScanAggregator via attach().

    Programmatic clear() does not emit textEdited, so clearing the sink never
    feeds an empty delta back into the aggregator.
    """

    def __init__(self, parent: QWidget = None):
        super().__init__(parent)
        self.setFixedSize(1, 1)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setObjectName("ScannerInput")

    def attach(self, aggregator):
        """
        Route this widget's input into the given aggregator.

        Args:
            aggregator (ScanAggregator): Receives raw deltas and submits.
        """
        self.textEdited.connect(aggregator.on_raw_delta)
        self.returnPressed.connect(aggregator.on_explicit_submit)

    def focus(self):
        """Grab keyboard focus so scanner keystrokes land here."""
        self.setFocus()
