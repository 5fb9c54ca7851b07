"""
Bulk assignment of scanned orders to a picker.

A coordinator picks an assignee, then scans the tracking labels of a pile of
parcels. Each distinct tracking code is collected once; submitting sends the
whole batch and shows the service's assigned/skipped/failed counts. A
successful submission always starts a fresh batch: trackings that were
already assigned come back as "skipped", so resubmitting is never needed.
"""

from typing import Dict, Iterator, List, Optional

from PySide6.QtCore import QObject, Signal

from exceptions import PreconditionError, RemoteServiceError, SubmissionInProgressError
from logger import get_logger
from models import AssignmentOutcome, ScanCode, User

logger = get_logger(__name__)


class ScannedTrackingSet:
    """
    Insertion-ordered set of scanned tracking codes for one assignment session.

    Duplicates are dropped silently: a parcel scanned twice is still one
    tracking.
    """

    def __init__(self, assignee_id=None):
        self.assignee_id = assignee_id
        self._codes: Dict[str, None] = {}

    def add(self, code: str) -> bool:
        """Add a tracking code; returns False if it was already present."""
        if code in self._codes:
            return False
        self._codes[code] = None
        return True

    def remove(self, code: str):
        self._codes.pop(code, None)

    def clear(self):
        self._codes.clear()

    def values(self) -> List[str]:
        return list(self._codes)

    def __len__(self) -> int:
        return len(self._codes)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._codes))

    def __contains__(self, code) -> bool:
        return code in self._codes


class BulkAssignReconciler(QObject):
    """
    Collects scanned trackings and submits them to the assignment service.

    Scans are ignored until an assignee is selected: the selected user is the
    aggregator's target context.

    Attributes:
        tracking_added (Signal): Tracking code newly added to the batch.
        set_changed (Signal): Current batch size after any change.
        submitted (Signal): AssignmentOutcome of a successful submission, or None
                           when the service reported no counts.
    """
    tracking_added = Signal(str)
    set_changed = Signal(int)
    submitted = Signal(object)

    def __init__(self, aggregator, assignment_service,
                 tracking_set: Optional[ScannedTrackingSet] = None, parent: QObject = None):
        """
        Args:
            aggregator: ScanAggregator feeding tracking scans
            assignment_service: Object with async bulk_assign_picker(picker_id,
                                trackings) -> AssignmentOutcome (PickingApiClient)
            tracking_set: Batch to fill, a new one by default
        """
        super().__init__(parent)
        self.aggregator = aggregator
        self.assignment_service = assignment_service
        self.tracking_set = tracking_set if tracking_set is not None else ScannedTrackingSet()
        self.assignee: Optional[User] = None
        self._submitting = False

        self.aggregator.code_scanned.connect(self._on_code_scanned)

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def select_assignee(self, user: User):
        """Choose the picker the batch will be assigned to."""
        self.assignee = user
        self.tracking_set.assignee_id = user.id
        self.aggregator.set_target(user)
        logger.info(f"Assignee selected: {user.username} (id {user.id})")

    def set_listening(self, on: bool):
        """
        Resume or pause scanning.

        Pausing also discards the collected batch.
        """
        self.aggregator.set_listening(on)
        if not on:
            self.tracking_set.clear()
            self.set_changed.emit(0)
        logger.info(f"Bulk assign scanning {'active' if on else 'paused'}")

    def remove(self, code: str):
        """Drop one tracking from the batch before submitting."""
        self.tracking_set.remove(code)
        self.set_changed.emit(len(self.tracking_set))

    async def submit(self) -> Optional[AssignmentOutcome]:
        """
        Assign every collected tracking to the selected picker.

        Returns:
            The service's counts, unchanged, or None when the service accepted
            the batch without reporting counts

        Raises:
            PreconditionError: No assignee selected or nothing scanned
            SubmissionInProgressError: A submission is already outstanding
            RemoteServiceError: The service call failed (batch kept for retry)
        """
        if self.tracking_set.assignee_id is None:
            raise PreconditionError("Please select a picker before submitting")
        if not len(self.tracking_set):
            raise PreconditionError("Please add at least one tracking number")
        if self._submitting:
            raise SubmissionInProgressError("An assignment is already being submitted")

        trackings = self.tracking_set.values()
        assignee_id = self.tracking_set.assignee_id

        self._submitting = True
        try:
            outcome = await self.assignment_service.bulk_assign_picker(assignee_id, trackings)
        except RemoteServiceError as e:
            logger.error(f"Bulk assignment of {len(trackings)} trackings failed: "
                         f"{e.get_display_message()}")
            raise
        finally:
            self._submitting = False

        if outcome is None:
            logger.info(f"Bulk assignment of {len(trackings)} trackings to picker {assignee_id} accepted")
        else:
            logger.info(f"Bulk assignment to picker {assignee_id}: total={outcome.total}, "
                        f"assigned={outcome.assigned}, skipped={outcome.skipped}, failed={outcome.failed}")

        # Trackings scanned while the call was outstanding start the next batch
        for code in trackings:
            self.tracking_set.remove(code)
        self.set_changed.emit(len(self.tracking_set))
        self.submitted.emit(outcome)
        return outcome

    def _on_code_scanned(self, code: ScanCode):
        if self.assignee is None or self.aggregator.target is not self.assignee:
            return
        if self.tracking_set.add(code.value):
            self.tracking_added.emit(code.value)
            self.set_changed.emit(len(self.tracking_set))
        else:
            logger.debug(f"Tracking {code.value} already scanned")
