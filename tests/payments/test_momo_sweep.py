from datetime import datetime, timedelta, timezone

import pytest

from application.dtos.orders import CreateOrderDTO, OrderLineDTO
from application.services.payment_service import PaymentApplicationService
from domain.common.exceptions import DomainValidationException
from domain.order.entity import SWEEP_CANCEL_REASON, OrderStatus, PaymentMethod

from conftest import make_product


async def _order(store, order_service, product, method, age_minutes):
    created = await order_service.create_order("u1", CreateOrderDTO(
        items=[OrderLineDTO(product_id=product.id, quantity=1)],
        payment_method=method,
        shipping_address="12 Trần Hưng Đạo, Hà Nội",
        customer_name="An",
        customer_email="an@example.com",
        customer_phone="0901234567",
    ))
    store.orders[created.order.id].created_at -= timedelta(minutes=age_minutes)
    return created.order.id


@pytest.mark.asyncio
async def test_sweep_cancels_only_stale_unpaid_momo_orders(store, order_service, payment_service):
    sofa = make_product(store, price=1200000, stock=10)
    stale = await _order(store, order_service, sofa, PaymentMethod.MOMO, 45)
    fresh = await _order(store, order_service, sofa, PaymentMethod.MOMO, 5)
    cod = await _order(store, order_service, sofa, PaymentMethod.COD, 600)
    paid = await _order(store, order_service, sofa, PaymentMethod.MOMO, 45)
    await order_service.confirm_payment(paid, "u1")
    assert store.products[sofa.id].stock == 6

    result = await payment_service.sweep_expired_momo_orders()

    assert result.cancelled_count == 1
    assert result.timeout_minutes == 30
    assert store.orders[stale].status is OrderStatus.CANCELLED
    assert store.orders[stale].cancel_reason == SWEEP_CANCEL_REASON
    assert store.orders[fresh].status is OrderStatus.PENDING
    assert store.orders[cod].status is OrderStatus.PENDING
    assert store.orders[paid].status is OrderStatus.PROCESSING
    assert store.products[sofa.id].stock == 7


@pytest.mark.asyncio
async def test_sweep_is_idempotent(store, order_service, payment_service):
    sofa = make_product(store, price=1200000, stock=3)
    await _order(store, order_service, sofa, PaymentMethod.MOMO, 45)

    first = await payment_service.sweep_expired_momo_orders()
    second = await payment_service.sweep_expired_momo_orders()

    assert (first.cancelled_count, second.cancelled_count) == (1, 0)
    assert store.products[sofa.id].stock == 3


@pytest.mark.asyncio
async def test_custom_timeout(store, order_service, payment_service):
    sofa = make_product(store, price=1200000, stock=3)
    order_id = await _order(store, order_service, sofa, PaymentMethod.MOMO, 10)

    assert (await payment_service.sweep_expired_momo_orders(timeout_minutes=15)).cancelled_count == 0
    assert (await payment_service.sweep_expired_momo_orders(timeout_minutes=5)).cancelled_count == 1
    assert store.orders[order_id].status is OrderStatus.CANCELLED


@pytest.mark.asyncio
async def test_sweep_runs_without_gateway(store, order_service, uow_factory, notifier):
    sofa = make_product(store, price=1200000, stock=3)
    await _order(store, order_service, sofa, PaymentMethod.MOMO, 45)
    service = PaymentApplicationService(uow_factory, None, notifier)

    result = await service.sweep_expired_momo_orders(now=datetime.now(timezone.utc))

    assert result.cancelled_count == 1


@pytest.mark.asyncio
async def test_zero_timeout_is_rejected_not_defaulted(store, order_service, payment_service):
    sofa = make_product(store, price=1200000, stock=3)
    order_id = await _order(store, order_service, sofa, PaymentMethod.MOMO, 10)

    with pytest.raises(DomainValidationException):
        await payment_service.sweep_expired_momo_orders(timeout_minutes=0)
    assert store.orders[order_id].status is OrderStatus.PENDING
