"""Order maintenance Celery tasks"""
from __future__ import annotations

import asyncio
from typing import Optional

from celery import shared_task
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from ..utils.base_task import BaseTask
from application.services.payment_service import PaymentApplicationService
from core.config import settings
from core.logging_config import get_logger
from infrastructure.database import build_async_url
from infrastructure.notifications import CeleryNotifier
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

logger = get_logger(__name__)


async def _sweep(timeout_minutes: Optional[int]) -> dict:
    # asyncio.run gives every task a fresh loop, so pooled connections can't be reused
    engine = create_async_engine(build_async_url(settings.database.url), poolclass=NullPool)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    try:
        service = PaymentApplicationService(
            lambda **kw: SQLAlchemyUnitOfWork(session_factory, **kw),
            gateway=None,
            notifier=CeleryNotifier(),
            default_timeout_minutes=settings.order.momo_payment_timeout_minutes,
        )
        result = await service.sweep_expired_momo_orders(timeout_minutes)
        return result.model_dump()
    finally:
        await engine.dispose()


@shared_task(bind=True, base=BaseTask, name="orders.sweep_expired_momo", max_retries=0)
def sweep_expired_momo(self, timeout_minutes: Optional[int] = None) -> dict:
    """Cancel MoMo orders left unpaid past the timeout (beat-driven)."""
    result = asyncio.run(_sweep(timeout_minutes))
    logger.info("sweep_expired_momo_task", **result)
    return result
