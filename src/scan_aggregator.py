"""
Turns the keystroke stream of a keyboard-wedge scanner into discrete scans.

A wedge scanner "types" the barcode into whatever text field has focus. Some
devices finish with Enter, others just stop typing. The aggregator supports
both: every change of the input text restarts a short quiet-period timer, and
an explicit terminator flushes immediately. Either path emits exactly one
ScanCode per physical scan.

Scans are only accepted while the aggregator is listening AND has a target
context (the line item being picked, the chosen assignee, ...). Anything typed
outside that window is thrown away together with the sink contents, so a late
scan can never land in the wrong workflow.
"""

from datetime import datetime
from typing import Any, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from logger import get_logger, set_session_context
from models import ScanCode

logger = get_logger(__name__)

DEFAULT_QUIET_PERIOD_MS = 80


class ScanAggregator(QObject):
    """
    Buffers raw scanner input and emits one ScanCode per scan.

    The sink is the focus-stealing input widget (see ScannerInputSink); the
    aggregator only needs its focus() and clear() methods.

    Each raw delta is the FULL current text of the sink, not an increment, so
    the buffer is replaced on every delta.

    Only one debounce timer exists per aggregator. Every listening toggle
    starts a new session; the timer remembers the session it was armed in and
    a timeout from an older session is ignored.

    Attributes:
        code_scanned (Signal): Emitted with a ScanCode for every accepted scan.
        quiet_period_ms (int): Debounce delay after the last input change.
        submit_on_terminator (bool): Whether an explicit terminator (Enter)
                                     flushes the buffer immediately.
    """
    code_scanned = Signal(object)  # ScanCode

    def __init__(self, sink, quiet_period_ms: int = DEFAULT_QUIET_PERIOD_MS,
                 submit_on_terminator: bool = True, parent: QObject = None):
        super().__init__(parent)

        self.sink = sink
        self.quiet_period_ms = quiet_period_ms
        self.submit_on_terminator = submit_on_terminator

        self._listening = False
        self._target: Optional[Any] = None
        self._buffer = ""
        self._session = 0
        self._armed_session: Optional[int] = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_quiet_period_elapsed)

        logger.debug(f"ScanAggregator created: quiet_period={quiet_period_ms}ms, "
                     f"submit_on_terminator={submit_on_terminator}")

    @property
    def listening(self) -> bool:
        return self._listening

    @property
    def target(self) -> Optional[Any]:
        return self._target

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def has_pending_timer(self) -> bool:
        return self._timer.isActive()

    def set_target(self, target: Any):
        """Set the context that accepted scans belong to."""
        self._target = target

    def clear_target(self):
        self._target = None

    def set_listening(self, on: bool):
        """
        Turn scan acceptance on or off.

        Both directions first cancel the timer and clear the buffer and the
        sink, so nothing typed before the toggle belongs to the new session.
        Turning on then grabs focus for the sink.
        """
        self._reset_session()
        self._listening = on
        set_session_context(f"scan-{self._session}" if on else None)

        if on:
            self.sink.focus()

        logger.debug(f"Scanner listening {'on' if on else 'off'} (session {self._session})")

    def close(self):
        """
        Cancel everything: listening off, target cleared.

        Called when the scan view closes or the operator navigates away.
        """
        self.set_listening(False)
        self._target = None

    def on_raw_delta(self, text: str):
        """
        Handle a change of the sink's text.

        Args:
            text: The sink's full current text
        """
        self._buffer = text

        if not self._accepting():
            if text:
                logger.debug("Discarding scanner input: not listening or no target")
            self._buffer = ""
            self.sink.clear()
            return

        self._armed_session = self._session
        self._timer.start(self.quiet_period_ms)

    def on_explicit_submit(self):
        """
        Handle an explicit terminator (Enter) from the scanner or keyboard.

        Flushes synchronously. The debounce timer is stopped first, so a scan
        terminated with Enter is emitted once and only once.
        """
        if not self.submit_on_terminator:
            return

        self._timer.stop()
        self._armed_session = None

        if not self._accepting():
            self._buffer = ""
            self.sink.clear()
            return

        self._flush()

    def _on_quiet_period_elapsed(self):
        armed_session, self._armed_session = self._armed_session, None

        if armed_session != self._session or not self._accepting():
            logger.debug("Ignoring debounce timeout from a closed scan session")
            return

        self._flush()

    def _flush(self):
        value = self._buffer.strip()
        self._buffer = ""
        self.sink.clear()

        if not value:
            # Misreads produce whitespace or nothing at all
            logger.debug("Dropped empty scan")
            return

        logger.info(f"Barcode scanned: {value}")
        self.code_scanned.emit(ScanCode(value=value, captured_at=datetime.now()))

    def _accepting(self) -> bool:
        return self._listening and self._target is not None

    def _reset_session(self):
        self._timer.stop()
        self._armed_session = None
        self._buffer = ""
        self._session += 1
        self.sink.clear()
