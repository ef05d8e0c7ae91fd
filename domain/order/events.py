"""
Order domain events.

Collected by the domain service and handed to the notifier after commit.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid


@dataclass
class OrderEvent:
    order_id: str
    order_number: str
    customer_email: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class OrderPlaced(OrderEvent):
    customer_name: str = ""
    total: str = "0"
    payment_method: str = ""


@dataclass
class OrderPaid(OrderEvent):
    # "momo_ipn" or "customer_confirm"
    channel: str = ""


@dataclass
class OrderCancelled(OrderEvent):
    reason: Optional[str] = None


@dataclass
class OrderStatusChanged(OrderEvent):
    status: str = ""


@dataclass
class LatePaymentAfterExpiry(OrderEvent):
    """Successful wallet payment reported for an order the sweep already expired."""

    provider_order_id: str = ""
    trans_id: Optional[str] = None
    amount: str = "0"
