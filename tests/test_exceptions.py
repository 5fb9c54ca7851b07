"""
Unit tests for src/exceptions.py — Custom exception hierarchy.

Tests cover:
- Exception inheritance chain
- RemoteServiceError attributes and get_display_message()
"""

import pytest
from exceptions import (
    PickingToolError,
    PreconditionError,
    SubmissionInProgressError,
    RemoteServiceError,
    ApprovalRejectedError,
    ConfigurationError,
)


# ============================================================================
# Inheritance chain
# ============================================================================

class TestInheritance:
    """Verify the documented exception hierarchy."""

    def test_base_is_exception(self):
        assert issubclass(PickingToolError, Exception)

    def test_submission_in_progress_is_precondition(self):
        assert issubclass(SubmissionInProgressError, PreconditionError)

    def test_approval_rejected_is_remote_service_error(self):
        assert issubclass(ApprovalRejectedError, RemoteServiceError)

    def test_precondition_is_not_remote(self):
        assert not issubclass(PreconditionError, RemoteServiceError)

    def test_catch_all_with_base_class(self):
        """All custom exceptions can be caught with PickingToolError."""
        for exc_class in [PreconditionError, SubmissionInProgressError, RemoteServiceError,
                          ApprovalRejectedError, ConfigurationError]:
            with pytest.raises(PickingToolError):
                raise exc_class("test")


# ============================================================================
# RemoteServiceError
# ============================================================================

class TestRemoteServiceError:
    def test_defaults(self):
        err = RemoteServiceError("Could not reach the server")
        assert err.status_code is None
        assert err.server_message is None

    def test_display_message_prefers_server_message(self):
        err = RemoteServiceError("Request failed with status 409", status_code=409,
                                 server_message="Order already picked")
        assert err.get_display_message() == "Order already picked"
        assert str(err) == "Request failed with status 409"

    def test_display_message_fallback(self):
        err = RemoteServiceError("Request failed with status 500", status_code=500)
        assert err.get_display_message() == "Request failed with status 500"

    def test_approval_rejected_keeps_attributes(self):
        err = ApprovalRejectedError("denied", status_code=401, server_message="Invalid credentials")
        assert err.status_code == 401
        assert err.get_display_message() == "Invalid credentials"
