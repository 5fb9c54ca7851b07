"""
Unit tests for src/pending_approval.py — PendingApprovalGate.

The credentials must never survive a submission, whatever its outcome.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_order
from exceptions import ApprovalRejectedError, PreconditionError, RemoteServiceError
from models import OrderStatus
from order_fulfillment import OrderFulfillmentMachine
from pending_approval import PendingApprovalGate


@pytest.fixture
def order_service():
    service = MagicMock()
    service.complete_order = AsyncMock(return_value={})
    service.mark_pending = AsyncMock(return_value={})
    return service


@pytest.fixture
def machine(qapp, order_service):
    order = make_order(status=OrderStatus.IN_PROGRESS)
    return OrderFulfillmentMachine(order, order_service)


@pytest.fixture
def gate(machine):
    return PendingApprovalGate(machine)


def test_collect_holds_credentials(gate):
    gate.collect("coord.anna", "s3cret")
    assert gate.username == "coord.anna"
    assert gate.password == "s3cret"


def test_cancel_clears_credentials(gate):
    gate.collect("coord.anna", "s3cret")
    gate.cancel()
    assert gate.username == ""
    assert gate.password == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("username,password", [("", "s3cret"), ("coord.anna", ""), ("", "")])
async def test_missing_credentials_send_nothing(gate, order_service, username, password):
    gate.collect(username, password)

    with pytest.raises(PreconditionError):
        await gate.submit()

    order_service.mark_pending.assert_not_called()
    assert gate.username == username  # kept for correction


@pytest.mark.asyncio
async def test_success_clears_credentials_and_approves(gate, machine, order_service):
    approved = []
    gate.approved.connect(lambda: approved.append(True))
    gate.collect("coord.anna", "s3cret")

    await gate.submit()

    sent_request = order_service.mark_pending.await_args.args[1]
    assert order_service.mark_pending.await_args.args[0] == 5531
    assert approved == [True]
    assert machine.status is OrderStatus.PENDING
    assert gate.username == ""
    assert gate.password == ""
    # The request object handed to the service is wiped after the call too
    assert sent_request.password == ""


@pytest.mark.asyncio
async def test_payload_sent_to_service(gate, order_service):
    payloads = []

    async def capture(order_id, request):
        payloads.append(request.to_payload())
        return {}

    order_service.mark_pending.side_effect = capture
    gate.collect("coord.anna", "s3cret")

    await gate.submit()

    assert payloads == [{"username": "coord.anna", "password": "s3cret"}]


@pytest.mark.asyncio
async def test_wrong_password_keeps_order_in_progress(gate, machine, order_service):
    order_service.mark_pending.side_effect = ApprovalRejectedError(
        "Request failed with status 401", status_code=401, server_message="Invalid coordinator credentials")
    rejected = []
    gate.rejected.connect(rejected.append)
    gate.collect("coord.anna", "wrong-password")

    with pytest.raises(ApprovalRejectedError):
        await gate.submit()

    assert machine.status is OrderStatus.IN_PROGRESS
    assert gate.username == ""
    assert gate.password == ""
    assert rejected == ["Invalid coordinator credentials"]


@pytest.mark.asyncio
async def test_network_failure_clears_credentials(gate, order_service):
    order_service.mark_pending.side_effect = RemoteServiceError("Could not reach the server")
    rejected = []
    gate.rejected.connect(rejected.append)
    gate.collect("coord.anna", "s3cret")

    with pytest.raises(RemoteServiceError):
        await gate.submit()

    assert gate.password == ""
    assert rejected == ["Could not reach the server"]


@pytest.mark.asyncio
async def test_next_coordinator_starts_blank(gate, order_service):
    order_service.mark_pending.side_effect = [ApprovalRejectedError("denied", status_code=403), {}]

    gate.collect("coord.anna", "wrong")
    with pytest.raises(ApprovalRejectedError):
        await gate.submit()

    with pytest.raises(PreconditionError):
        await gate.submit()

    gate.collect("coord.budi", "right")
    await gate.submit()

    assert order_service.mark_pending.await_count == 2
