"""Order email Celery tasks

Delivery is delegated to the mail provider integration; these tasks build
the message and log it.
"""
from __future__ import annotations

from typing import Optional

from celery import shared_task

from ..utils.base_task import BaseTask
from core.config import settings
from core.logging_config import get_logger

logger = get_logger(__name__)

_RETRY_OPTIONS = dict(
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    retry_kwargs={"max_retries": 5},
)

STATUS_TEXT = {
    "PENDING": "Pending",
    "PROCESSING": "Processing",
    "SHIPPING": "Shipping",
    "COMPLETED": "Completed",
    "CANCELLED": "Cancelled",
}


@shared_task(bind=True, base=BaseTask, name="emails.send_order_confirmation", **_RETRY_OPTIONS)
def send_order_confirmation(
    self,
    order_id: str,
    order_number: str,
    email: str,
    customer_name: str,
    total: str,
    payment_method: str,
) -> dict:
    subject = f"[{settings.shop.name}] Order {order_number} received"
    logger.info(
        "send_order_confirmation",
        order_id=order_id,
        order_number=order_number,
        email=email,
        subject=subject,
        customer_name=customer_name,
        total=total,
        payment_method=payment_method,
    )
    return {"email": email, "subject": subject}


@shared_task(bind=True, base=BaseTask, name="emails.send_order_status_update", **_RETRY_OPTIONS)
def send_order_status_update(
    self,
    order_id: str,
    order_number: str,
    email: str,
    status: str,
    reason: Optional[str] = None,
) -> dict:
    subject = f"[{settings.shop.name}] Order {order_number}: {STATUS_TEXT.get(status, status)}"
    logger.info(
        "send_order_status_update",
        order_id=order_id,
        order_number=order_number,
        email=email,
        status=status,
        reason=reason,
        subject=subject,
    )
    return {"email": email, "subject": subject}


@shared_task(bind=True, base=BaseTask, name="emails.send_late_payment_alert", **_RETRY_OPTIONS)
def send_late_payment_alert(
    self,
    order_id: str,
    order_number: str,
    provider_order_id: str,
    amount: str,
    trans_id: Optional[str] = None,
) -> dict:
    """Tell the shop that MoMo charged a customer for an expired order."""
    subject = f"[{settings.shop.name}] Payment received for expired order {order_number}"
    logger.warning(
        "send_late_payment_alert",
        order_id=order_id,
        order_number=order_number,
        provider_order_id=provider_order_id,
        amount=amount,
        trans_id=trans_id,
    )
    return {"subject": subject}
