"""
Order aggregate - the order, its line items and the status state machine
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.exceptions import (
    DomainValidationException,
    InvalidOrderTransitionException,
    OrderAlreadyPaidException,
)


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPING = "SHIPPING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"


class PaymentMethod(str, Enum):
    COD = "COD"
    BANK_TRANSFER = "BANK_TRANSFER"
    MOMO = "MOMO"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

# Every legal status edge. Customer-facing flows (user cancel, sweep, webhook)
# additionally require PENDING; the PROCESSING/SHIPPING edges are admin-driven.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPING, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

SWEEP_CANCEL_REASON = "AUTO_CANCEL_MOMO_TIMEOUT"
USER_CANCEL_REASON = "User cancelled order"


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD + epoch milliseconds + 4 random digits."""
    now = now or _now()
    millis = int(now.timestamp() * 1000)
    return f"ORD{millis}{random.randint(0, 9999):04d}"


@dataclass
class OrderItem:
    """Line item with product data snapshotted at purchase time."""

    product_id: str
    product_name: str
    product_sku: str
    price: Decimal
    quantity: int
    id: Optional[str] = None
    order_id: Optional[str] = None

    def __post_init__(self):
        if self.quantity <= 0:
            raise DomainValidationException(
                f"Quantity must be positive: {self.quantity}", field="quantity"
            )
        if self.price < 0:
            raise DomainValidationException(f"Price cannot be negative: {self.price}", field="price")

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class Order:
    """
    Order aggregate root.

    Business rules:
    1. total == subtotal - discount + shipping_fee, every amount >= 0
    2. discount never exceeds subtotal
    3. payment_status only moves UNPAID -> PAID
    4. status changes only along ALLOWED_TRANSITIONS; terminal states are frozen
    5. cancelled_at / cancel_reason / completed_at are written once
    """

    id: Optional[str]
    order_number: str
    user_id: str
    payment_method: PaymentMethod
    subtotal: Decimal
    discount: Decimal
    shipping_fee: Decimal
    total: Decimal
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    notes: Optional[str] = None
    voucher_code: Optional[str] = None
    voucher_id: Optional[str] = None
    items: list[OrderItem] = field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    def __post_init__(self):
        self.status = OrderStatus(self.status)
        self.payment_status = PaymentStatus(self.payment_status)
        self.payment_method = PaymentMethod(self.payment_method)
        self._validate_amounts()
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)
        self.completed_at = _ensure_utc(self.completed_at)
        self.cancelled_at = _ensure_utc(self.cancelled_at)

    def _validate_amounts(self) -> None:
        for name in ("subtotal", "discount", "shipping_fee", "total"):
            if getattr(self, name) < 0:
                raise DomainValidationException(f"{name} cannot be negative", field=name)
        if self.discount > self.subtotal:
            raise DomainValidationException("Discount exceeds subtotal", field="discount")
        if self.total != self.subtotal - self.discount + self.shipping_fee:
            raise DomainValidationException(
                f"Inconsistent total: {self.total} != {self.subtotal} - {self.discount} + {self.shipping_fee}",
                field="total",
            )

    # ---------------------------------------------------------------- queries

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_paid(self) -> bool:
        return self.payment_status is PaymentStatus.PAID

    @property
    def is_awaiting_payment(self) -> bool:
        return self.status is OrderStatus.PENDING and self.payment_status is PaymentStatus.UNPAID

    @property
    def is_sweep_cancelled(self) -> bool:
        return self.status is OrderStatus.CANCELLED and self.cancel_reason == SWEEP_CANCEL_REASON

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    # ------------------------------------------------------------ transitions

    def _ensure_transition(self, target: OrderStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidOrderTransitionException(self.id, self.status.value, target.value)

    def mark_paid(self, now: Optional[datetime] = None, *, record_completion: bool = False) -> None:
        """
        PENDING/UNPAID -> PROCESSING/PAID.

        record_completion stamps completed_at (the provider webhook does,
        the customer confirm call does not).
        """
        if self.is_paid:
            raise OrderAlreadyPaidException(self.id or self.order_number)
        if self.status is not OrderStatus.PENDING:
            raise InvalidOrderTransitionException(self.id, self.status.value, OrderStatus.PROCESSING.value)
        now = now or _now()
        self.payment_status = PaymentStatus.PAID
        self.status = OrderStatus.PROCESSING
        if record_completion and self.completed_at is None:
            self.completed_at = now
        self.updated_at = now

    def cancel(self, reason: str, now: Optional[datetime] = None) -> None:
        self._ensure_transition(OrderStatus.CANCELLED)
        now = now or _now()
        self.status = OrderStatus.CANCELLED
        self.cancelled_at = now
        self.cancel_reason = reason
        self.updated_at = now

    def advance(self, target: OrderStatus, now: Optional[datetime] = None) -> None:
        """Admin-driven fulfilment step (PROCESSING -> SHIPPING -> COMPLETED)."""
        target = OrderStatus(target)
        if target is OrderStatus.CANCELLED:
            raise InvalidOrderTransitionException(self.id, self.status.value, target.value)
        self._ensure_transition(target)
        now = now or _now()
        self.status = target
        if target is OrderStatus.COMPLETED:
            # delivered orders are settled (cash on delivery included)
            self.payment_status = PaymentStatus.PAID
            if self.completed_at is None:
                self.completed_at = now
        self.updated_at = now
