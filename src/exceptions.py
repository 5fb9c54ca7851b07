"""
Custom exceptions for the Picking Tool application.

Application-specific exceptions let the UI layer tell apart the failures a
warehouse operator can act on:
- A guard tripped before anything was sent (wrong state, missing input)
- The order service could not be reached or refused the request
- A coordinator's step-up credentials were rejected

Scanner noise (empty reads) and barcode mismatches are NOT exceptions; they are
normal events on a warehouse floor and are reported through Qt signals.

Exception hierarchy:
    PickingToolError (base)
    ├── PreconditionError (caller-side guard, no network call made)
    │   └── SubmissionInProgressError (a submission is already outstanding)
    ├── RemoteServiceError (order/assignment service failures)
    │   └── ApprovalRejectedError (coordinator credentials refused)
    └── ConfigurationError (invalid config.ini values)
"""

from typing import Optional


class PickingToolError(Exception):
    """
    Base exception for all Picking Tool errors.

    All application-specific exceptions inherit from this class, so the UI can
    catch every application error with a single except clause:
        try:
            await machine.complete()
        except PickingToolError as e:
            show_error(str(e))
    """
    pass


class PreconditionError(PickingToolError):
    """
    Raised when an operation is invoked in a state that does not allow it.

    The UI is expected to disable the corresponding action (e.g. the
    "Complete" button stays disabled until every line item is picked). If the
    call is made anyway it fails deterministically, without contacting the
    network.

    Example usage:
        if not self.can_complete():
            raise PreconditionError("Order has line items that are not picked yet")
    """
    pass


class SubmissionInProgressError(PreconditionError):
    """
    Raised when a submission is triggered while a previous one is outstanding.

    Completion, pending and bulk-assign submissions are one-at-a-time per
    order or assignment session.
    """
    pass


class RemoteServiceError(PickingToolError):
    """
    Raised when the order or assignment service fails.

    Covers both transport failures (server unreachable, timeout, Wi-Fi
    dropping between warehouse aisles) and HTTP error responses. When the
    server returned a JSON body with a "message" field, that message is kept
    so the operator sees the real reason.

    Attributes:
        status_code (int | None): HTTP status, None for transport failures
        server_message (str | None): "message" field from the response body
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message

    def get_display_message(self) -> str:
        """
        Get a message suitable for an operator-facing dialog.

        Prefers the server-provided message, falls back to the exception text.
        """
        if self.server_message:
            return self.server_message
        return str(self)


class ApprovalRejectedError(RemoteServiceError):
    """
    Raised when the server rejects the coordinator credentials sent with a
    pending-pick request.

    The client never validates credentials itself; this only reports the
    server's verdict.
    """
    pass


class ConfigurationError(PickingToolError):
    """
    Raised when config.ini contains a value that cannot be used.

    Example usage:
        if quiet_period_ms <= 0:
            raise ConfigurationError("QuietPeriodMs must be a positive integer")
    """
    pass
