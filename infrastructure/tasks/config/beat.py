"""Celery beat schedule configuration.

The MoMo timeout sweep is the only periodic job; its interval and timeout
come from ``settings.order``.
"""
from __future__ import annotations

from core.config import settings


CELERY_BEAT_SCHEDULE = {
    "orders-sweep-expired-momo": {
        "task": "orders.sweep_expired_momo",
        "schedule": float(settings.order.sweep_interval_seconds),
        "kwargs": {"timeout_minutes": settings.order.momo_payment_timeout_minutes},
        "options": {"queue": "high"},
    },
}
