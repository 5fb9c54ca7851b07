"""
Step-up approval for moving an order to pending.

A picker who cannot finish an order asks a coordinator to type their own
username and password on the picker's device. The credentials are kept in
memory for exactly one pending-pick call and are wiped afterwards whatever
the outcome, so a second coordinator never inherits the first one's entry.
"""

from PySide6.QtCore import QObject, Signal

from exceptions import PreconditionError, RemoteServiceError
from logger import get_logger
from models import PendingApprovalRequest

logger = get_logger(__name__)


class PendingApprovalGate(QObject):
    """
    Collects coordinator credentials and hands them to the order machine.

    Attributes:
        approved (Signal): The order was moved to pending.
        rejected (Signal): Message to show after a failed approval.
    """
    approved = Signal()
    rejected = Signal(str)

    def __init__(self, machine, parent: QObject = None):
        super().__init__(parent)
        self.machine = machine
        self._request = PendingApprovalRequest(username="", password="")

    @property
    def username(self) -> str:
        return self._request.username

    @property
    def password(self) -> str:
        return self._request.password

    def collect(self, username: str, password: str):
        """Store the credentials typed into the approval dialog."""
        self._request.username = username
        self._request.password = password

    def cancel(self):
        """Approval dialog dismissed."""
        self._request.clear()

    async def submit(self):
        """
        Send the pending-pick request with the collected credentials.

        Raises:
            PreconditionError: Username or password missing (nothing sent,
                               fields kept for correction)
            ApprovalRejectedError: The server refused the credentials
            RemoteServiceError: Any other failure
        """
        if not self._request.username or not self._request.password:
            raise PreconditionError("Please enter username and password")

        request = PendingApprovalRequest(self._request.username, self._request.password)
        self._request.clear()

        logger.info(f"Requesting pending approval for order {self.machine.order.id} "
                    f"by coordinator {request.username}")
        try:
            await self.machine.request_pending(request)
        except RemoteServiceError as e:
            self.rejected.emit(e.get_display_message() or "Failed to mark as pending")
            raise
        finally:
            request.clear()

        self.approved.emit()
