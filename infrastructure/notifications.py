"""
Notifier adapters for order events.

CeleryNotifier turns events into email tasks; LoggingNotifier only records
them (local runs and tests). Neither lets an exception escape.
"""
from __future__ import annotations

from typing import List, Optional

from core.logging_config import get_logger
from domain.order.events import (
    LatePaymentAfterExpiry,
    OrderCancelled,
    OrderEvent,
    OrderPaid,
    OrderPlaced,
    OrderStatusChanged,
)


logger = get_logger(__name__)


class CeleryNotifier:

    def __init__(self, dispatcher=None):
        if dispatcher is None:
            from infrastructure.tasks import TaskDispatcher
            dispatcher = TaskDispatcher()
        self._dispatcher = dispatcher

    def _dispatch(self, event: OrderEvent) -> None:
        if isinstance(event, OrderPlaced):
            self._dispatcher.send_order_confirmation(
                order_id=event.order_id,
                order_number=event.order_number,
                email=event.customer_email,
                customer_name=event.customer_name,
                total=event.total,
                payment_method=event.payment_method,
            )
        elif isinstance(event, LatePaymentAfterExpiry):
            self._dispatcher.send_late_payment_alert(
                order_id=event.order_id,
                order_number=event.order_number,
                provider_order_id=event.provider_order_id,
                amount=event.amount,
                trans_id=event.trans_id,
            )
        elif isinstance(event, (OrderPaid, OrderCancelled, OrderStatusChanged)):
            if not event.customer_email:
                return
            status, reason = _status_of(event)
            self._dispatcher.send_order_status_update(
                order_id=event.order_id,
                order_number=event.order_number,
                email=event.customer_email,
                status=status,
                reason=reason,
            )
        else:
            logger.debug("notification_ignored", event_type=type(event).__name__, order_id=event.order_id)

    def notify(self, event: OrderEvent) -> None:
        try:
            self._dispatch(event)
        except Exception as exc:
            logger.error(
                "notification_failed",
                event_type=type(event).__name__,
                order_id=event.order_id,
                error=str(exc),
            )


def _status_of(event: OrderEvent) -> tuple[str, Optional[str]]:
    if isinstance(event, OrderPaid):
        return "PROCESSING", None
    if isinstance(event, OrderCancelled):
        return "CANCELLED", event.reason
    return event.status, None


class LoggingNotifier:

    def __init__(self):
        self.events: List[OrderEvent] = []

    def notify(self, event: OrderEvent) -> None:
        self.events.append(event)
        logger.info("order_event", event_type=type(event).__name__, order_id=event.order_id, event_id=event.event_id)
