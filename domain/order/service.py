"""
Order domain service - persisted state transitions with compensation
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from core.logging_config import get_logger
from domain.catalog.inventory import InventoryLedger

from .entity import Order, OrderStatus
from .events import OrderCancelled, OrderPaid, OrderStatusChanged
from .repository import OrderRepository


logger = get_logger(__name__)


class OrderDomainService:
    """
    Applies an aggregate transition and writes it with compare-and-swap.

    Every method returns False when the row changed underneath us (another
    request, the IPN or the sweep finalized the order first). In that case
    nothing was written and no compensation ran.
    """

    def __init__(self, order_repository: OrderRepository, inventory: InventoryLedger):
        self.order_repository = order_repository
        self.inventory = inventory
        self.events: List = []

    async def _save(self, order: Order, expected: tuple) -> bool:
        saved = await self.order_repository.save_transition(order, *expected)
        if not saved:
            logger.warning(
                "order_transition_conflict",
                order_id=order.id,
                expected_status=expected[0].value,
                expected_payment_status=expected[1].value,
                target_status=order.status.value,
            )
        return saved

    async def cancel(self, order: Order, reason: str, now: Optional[datetime] = None) -> bool:
        """Cancel and release every item's stock in the same unit of work."""
        expected = (order.status, order.payment_status)
        order.cancel(reason, now)
        if not await self._save(order, expected):
            return False
        await self.inventory.release_all(order.items)
        logger.info("order_cancelled", order_id=order.id, order_number=order.order_number, reason=reason)
        self.events.append(OrderCancelled(
            order_id=order.id,
            order_number=order.order_number,
            customer_email=order.customer_email,
            reason=reason,
        ))
        return True

    async def mark_paid(
        self,
        order: Order,
        *,
        channel: str,
        record_completion: bool = False,
        now: Optional[datetime] = None,
    ) -> bool:
        expected = (order.status, order.payment_status)
        order.mark_paid(now, record_completion=record_completion)
        if not await self._save(order, expected):
            return False
        logger.info("order_paid", order_id=order.id, order_number=order.order_number, channel=channel)
        self.events.append(OrderPaid(
            order_id=order.id,
            order_number=order.order_number,
            customer_email=order.customer_email,
            channel=channel,
        ))
        return True

    async def advance(self, order: Order, target: OrderStatus, now: Optional[datetime] = None) -> bool:
        expected = (order.status, order.payment_status)
        order.advance(target, now)
        if not await self._save(order, expected):
            return False
        logger.info("order_status_changed", order_id=order.id, status=order.status.value)
        self.events.append(OrderStatusChanged(
            order_id=order.id,
            order_number=order.order_number,
            customer_email=order.customer_email,
            status=order.status.value,
        ))
        return True

    def clear_events(self) -> List:
        events, self.events = self.events, []
        return events
