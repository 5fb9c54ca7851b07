"""
Data structures shared by the scanning, picking and assignment components.

The order service sends loosely shaped JSON (line items under either
"products" or "order_details", barcodes nested under "product"); the
from_api() constructors normalize it once so the rest of the code works with
plain dataclasses.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any


@dataclass(frozen=True)
class ScanCode:
    """One discrete barcode read, produced by ScanAggregator."""
    value: str                 # stripped, never empty
    captured_at: datetime


@dataclass
class LineItem:
    """One product entry of an order (required vs. picked quantity)."""
    id: int
    expected_barcode: str
    required_qty: int
    picked_qty: int = 0

    # Display fields
    sku: str = ""
    product_name: str = ""
    variant: str = ""

    @property
    def is_complete(self) -> bool:
        return self.picked_qty >= self.required_qty

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'LineItem':
        """
        Create from an order service line item.

        The barcode lives on the nested product record when the catalogue has
        one; otherwise the SKU printed on the shelf label is what gets scanned.

        Raises:
            ValueError: quantity is missing, not a number or not positive
        """
        product = data.get('product') or {}
        sku = data.get('sku') or ''
        barcode = product.get('barcode') or sku

        try:
            required_qty = int(data.get('quantity'))
        except (TypeError, ValueError):
            raise ValueError(f"Line item {data.get('id')} has no valid quantity: "
                             f"{data.get('quantity')!r}") from None
        if required_qty <= 0:
            raise ValueError(f"Line item {data.get('id')} has non-positive quantity {required_qty}")

        return cls(
            id=data['id'],
            expected_barcode=str(barcode),
            required_qty=required_qty,
            picked_qty=int(data.get('picked_qty') or 0),
            sku=sku,
            product_name=data.get('product_name') or product.get('name') or '',
            variant=data.get('variant') or '',
        )


class OrderStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    COMPLETE = "complete"

    @property
    def is_terminal(self) -> bool:
        """Complete and pending are final from the client's point of view."""
        return self in (OrderStatus.PENDING, OrderStatus.COMPLETE)


@dataclass
class Order:
    """An order assigned to the current picker, with its line items."""
    id: int
    tracking: str
    line_items: List[LineItem] = field(default_factory=list)
    status: OrderStatus = OrderStatus.ASSIGNED

    courier: str = ""
    channel: str = ""
    store: str = ""

    def find_item(self, item_id: int) -> Optional[LineItem]:
        for item in self.line_items:
            if item.id == item_id:
                return item
        return None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Order':
        """
        Create from an order service payload.

        "products" and "order_details" carry the same line items; "products"
        wins when both are present. List endpoints omit both, which gives an
        order without line items.
        """
        raw_items = data.get('products')
        if raw_items is None:
            raw_items = data.get('order_details')

        try:
            status = OrderStatus(data.get('processing_status'))
        except ValueError:
            status = OrderStatus.ASSIGNED

        return cls(
            id=data['id'],
            tracking=data.get('tracking') or '',
            line_items=[LineItem.from_api(item) for item in raw_items or []],
            status=status,
            courier=data.get('courier') or '',
            channel=data.get('channel') or '',
            store=data.get('store') or '',
        )


@dataclass(frozen=True)
class Role:
    id: int
    name: str


@dataclass
class User:
    """A user from the session store or the user directory."""
    id: int
    username: str
    full_name: str = ""
    email: str = ""
    roles: List[Role] = field(default_factory=list)

    def has_role(self, name: str) -> bool:
        return any(role.name == name for role in self.roles)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'User':
        roles = [
            Role(id=r.get('id', 0), name=r.get('name', ''))
            for r in data.get('roles') or []
            if isinstance(r, dict)
        ]
        return cls(
            id=data['id'],
            username=data.get('username') or '',
            full_name=data.get('full_name') or '',
            email=data.get('email') or '',
            roles=roles,
        )


@dataclass(frozen=True)
class AssignmentOutcome:
    """Per-submission counts returned by the bulk assignment service."""
    total: int
    assigned: int
    skipped: int
    failed: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_api(cls, summary: Dict[str, Any]) -> 'AssignmentOutcome':
        return cls(
            total=int(summary.get('total', 0)),
            assigned=int(summary.get('assigned', 0)),
            skipped=int(summary.get('skipped', 0)),
            failed=int(summary.get('failed', 0)),
        )


@dataclass
class PendingApprovalRequest:
    """
    Coordinator credentials for a single pending-pick call.

    Held in memory only for the duration of the call, never persisted.
    """
    username: str
    password: str

    def to_payload(self) -> Dict[str, str]:
        return {'username': self.username, 'password': self.password}

    def clear(self):
        self.username = ""
        self.password = ""

    def __repr__(self) -> str:
        return f"PendingApprovalRequest(username={self.username!r}, password='***')"
