"""
Per-order fulfillment state machine.

    ASSIGNED --first confirmed pick--> IN_PROGRESS --complete()--------> COMPLETE
                                                   --request_pending()--> PENDING

COMPLETE and PENDING are terminal for this client; the server owns whatever
happens to the order afterwards. Line item progress is local (optimistic)
state; only the two terminal transitions are sent to the order service.
"""

from PySide6.QtCore import QObject, Signal

from exceptions import PreconditionError, RemoteServiceError, SubmissionInProgressError
from logger import get_logger, set_order_context
from models import LineItem, Order, OrderStatus, PendingApprovalRequest

logger = get_logger(__name__)


class OrderFulfillmentMachine(QObject):
    """
    Owns the state of one order while it is open in the detail view.

    Only one submission (complete or pending) may be outstanding at a time.
    The is_submitting flag is set before the service call and cleared on
    every exit path, so the UI can bind its buttons to it.

    Attributes:
        item_updated (Signal): LineItem whose picked quantity changed.
        status_changed (Signal): New OrderStatus value (str).
        order_closed (Signal): Final status value (str) after a successful
                               complete/pending submission; the caller
                               should leave the detail view.
    """
    item_updated = Signal(object)
    status_changed = Signal(str)
    order_closed = Signal(str)

    def __init__(self, order: Order, order_service, picker=None, parent: QObject = None):
        """
        Args:
            order: Order loaded from the order service
            order_service: Object with async complete_order(order_id) and
                           mark_pending(order_id, request) (PickingApiClient)
            picker: Optional LineItemPicker whose confirmed picks feed this order
        """
        super().__init__(parent)
        self.order = order
        self.order_service = order_service
        self._submitting = False

        if picker is not None:
            picker.item_picked.connect(self.on_item_picked)

        set_order_context(str(order.id))
        logger.info(f"Order {order.id} opened: {len(order.line_items)} line items, "
                    f"status={order.status.value}")

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def status(self) -> OrderStatus:
        return self.order.status

    def can_complete(self) -> bool:
        """True when every line item has picked_qty >= required_qty."""
        return all(item.is_complete for item in self.order.line_items)

    def can_request_pending(self) -> bool:
        """Pending is allowed whatever the pick progress, unless busy or closed."""
        return not self._submitting and not self.order.status.is_terminal

    def on_item_picked(self, item: LineItem):
        """Record a confirmed pick (slot for LineItemPicker.item_picked)."""
        if self.order.find_item(item.id) is None:
            logger.warning(f"Ignoring pick for line item {item.id}: not part of order {self.order.id}")
            return

        if self.order.status == OrderStatus.ASSIGNED:
            self._set_status(OrderStatus.IN_PROGRESS)

        self.item_updated.emit(item)

    async def complete(self):
        """
        Submit the order as complete.

        Raises:
            PreconditionError: Not every line item is picked, or the order is closed
            SubmissionInProgressError: Another submission is outstanding
            RemoteServiceError: The order service call failed (state unchanged)
        """
        if not self.can_complete():
            raise PreconditionError(f"Order {self.order.id} has line items that are not fully picked")
        self._check_can_submit()

        self._submitting = True
        try:
            await self.order_service.complete_order(self.order.id)
        except RemoteServiceError as e:
            logger.error(f"Failed to complete order {self.order.id}: {e.get_display_message()}")
            raise
        finally:
            self._submitting = False

        logger.info(f"Order {self.order.id} marked complete")
        self._set_status(OrderStatus.COMPLETE)
        self.order_closed.emit(OrderStatus.COMPLETE.value)
        self.close()

    async def request_pending(self, request: PendingApprovalRequest):
        """
        Submit the order as pending with coordinator approval.

        Allowed regardless of pick completeness ("I cannot finish this order
        now"). The credentials are forwarded as-is; the server checks them.

        Raises:
            PreconditionError: The order is already closed
            SubmissionInProgressError: Another submission is outstanding
            RemoteServiceError: The call failed, including ApprovalRejectedError
        """
        self._check_can_submit()

        self._submitting = True
        try:
            await self.order_service.mark_pending(self.order.id, request)
        except RemoteServiceError as e:
            logger.error(f"Failed to mark order {self.order.id} pending: {e.get_display_message()}")
            raise
        finally:
            self._submitting = False

        logger.info(f"Order {self.order.id} marked pending")
        self._set_status(OrderStatus.PENDING)
        self.order_closed.emit(OrderStatus.PENDING.value)
        self.close()

    def close(self):
        """Leave the order detail view; later log entries carry no order id."""
        set_order_context(None)

    def _check_can_submit(self):
        if self._submitting:
            raise SubmissionInProgressError(f"Order {self.order.id} already has a submission in progress")
        if self.order.status.is_terminal:
            raise PreconditionError(f"Order {self.order.id} is already {self.order.status.value}")

    def _set_status(self, status: OrderStatus):
        self.order.status = status
        self.status_changed.emit(status.value)
