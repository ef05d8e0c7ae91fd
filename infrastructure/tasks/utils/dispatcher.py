"""Small dispatching helpers to decouple Celery from callers."""
from __future__ import annotations

from typing import Any, Dict, Optional

from ..config.celery import celery_app


class TaskDispatcher:
    """Facade the notifier uses to schedule email tasks by name."""

    def send_order_confirmation(
        self,
        *,
        order_id: str,
        order_number: str,
        email: str,
        customer_name: str,
        total: str,
        payment_method: str,
    ) -> None:
        self.enqueue(
            "emails.send_order_confirmation",
            kwargs={
                "order_id": order_id,
                "order_number": order_number,
                "email": email,
                "customer_name": customer_name,
                "total": total,
                "payment_method": payment_method,
            },
        )

    def send_order_status_update(
        self,
        *,
        order_id: str,
        order_number: str,
        email: str,
        status: str,
        reason: Optional[str] = None,
    ) -> None:
        self.enqueue(
            "emails.send_order_status_update",
            kwargs={
                "order_id": order_id,
                "order_number": order_number,
                "email": email,
                "status": status,
                "reason": reason,
            },
        )

    def send_late_payment_alert(
        self,
        *,
        order_id: str,
        order_number: str,
        provider_order_id: str,
        amount: str,
        trans_id: Optional[str] = None,
    ) -> None:
        self.enqueue(
            "emails.send_late_payment_alert",
            kwargs={
                "order_id": order_id,
                "order_number": order_number,
                "provider_order_id": provider_order_id,
                "amount": amount,
                "trans_id": trans_id,
            },
        )

    def enqueue(self, task_name: str, *, args: tuple | None = None, kwargs: Dict[str, Any] | None = None) -> None:
        """Schedule a task by name without waiting on broker reconnects."""
        celery_app.send_task(task_name, args=args or (), kwargs=kwargs or {}, retry=False)
