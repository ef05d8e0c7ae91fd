from datetime import timedelta

import pytest

from application.dtos.orders import CreateOrderDTO, OrderLineDTO
from application.services.payment_service import PaymentApplicationService
from domain.common.exceptions import (
    AmountMismatchException,
    OrderExpiredException,
    OrderNotFoundException,
    PartnerCodeMismatchException,
    PaymentGatewayNotConfiguredException,
    SignatureMismatchException,
)
from domain.order.entity import SWEEP_CANCEL_REASON, OrderStatus, PaymentMethod, PaymentStatus
from domain.order.events import LatePaymentAfterExpiry, OrderCancelled, OrderPaid
from infrastructure.external.payments import signing

from conftest import make_product, signed_ipn


async def _momo_order(store, order_service, price=1200000, quantity=1, stock=5):
    product = make_product(store, price=price, stock=stock)
    created = await order_service.create_order("u1", CreateOrderDTO(
        items=[OrderLineDTO(product_id=product.id, quantity=quantity)],
        payment_method=PaymentMethod.MOMO,
        shipping_address="12 Trần Hưng Đạo, Hà Nội",
        customer_name="An",
        customer_email="an@example.com",
        customer_phone="0901234567",
    ))
    return store.orders[created.order.id], product


@pytest.mark.asyncio
async def test_successful_ipn_marks_order_paid(store, order_service, payment_service, notifier):
    order, _ = await _momo_order(store, order_service)
    payload = signed_ipn(order)

    ack = await payment_service.handle_ipn(payload)

    stored = store.orders[order.id]
    assert stored.status is OrderStatus.PROCESSING
    assert stored.payment_status is PaymentStatus.PAID
    assert stored.completed_at is not None
    assert ack.message == "IPN received"
    assert ack.model_dump(by_alias=True) == {
        "partnerCode": payload.partner_code,
        "orderId": payload.order_id,
        "requestId": payload.request_id,
        "errorCode": 0,
        "message": "IPN received",
    }
    assert isinstance(notifier.events[-1], OrderPaid)


@pytest.mark.asyncio
async def test_redelivered_ipn_is_acknowledged_without_changes(store, order_service, payment_service, notifier):
    order, _ = await _momo_order(store, order_service)
    payload = signed_ipn(order)
    await payment_service.handle_ipn(payload)
    first_completed_at = store.orders[order.id].completed_at
    events = len(notifier.events)

    ack = await payment_service.handle_ipn(payload)

    assert ack.message == "IPN already processed"
    assert store.orders[order.id].completed_at == first_completed_at
    assert len(notifier.events) == events


@pytest.mark.asyncio
async def test_failed_payment_cancels_and_releases_stock(store, order_service, payment_service, notifier):
    order, product = await _momo_order(store, order_service, quantity=2)
    assert store.products[product.id].stock == 3

    await payment_service.handle_ipn(signed_ipn(order, result_code=1006, message="Transaction denied by user."))

    stored = store.orders[order.id]
    assert stored.status is OrderStatus.CANCELLED
    assert stored.payment_status is PaymentStatus.UNPAID
    assert "1006" in stored.cancel_reason
    assert store.products[product.id].stock == 5
    assert isinstance(notifier.events[-1], OrderCancelled)


@pytest.mark.asyncio
async def test_bad_signature_rejected_without_changes(store, order_service, payment_service):
    order, _ = await _momo_order(store, order_service)
    payload = signed_ipn(order).model_copy(update={"signature": "00" * 32})

    with pytest.raises(SignatureMismatchException):
        await payment_service.handle_ipn(payload)
    assert store.orders[order.id].status is OrderStatus.PENDING


@pytest.mark.asyncio
async def test_tampered_amount_breaks_signature(store, order_service, payment_service):
    order, _ = await _momo_order(store, order_service)
    payload = signed_ipn(order).model_copy(update={"amount": 1000})
    with pytest.raises(SignatureMismatchException):
        await payment_service.handle_ipn(payload)


@pytest.mark.asyncio
async def test_foreign_partner_code_rejected(store, order_service, payment_service):
    order, _ = await _momo_order(store, order_service)
    payload = signed_ipn(order).model_copy(update={"partner_code": "SOMEONE"})
    with pytest.raises(PartnerCodeMismatchException):
        await payment_service.handle_ipn(payload)


@pytest.mark.asyncio
async def test_signed_amount_mismatch_rejected(store, order_service, payment_service):
    order, _ = await _momo_order(store, order_service)
    with pytest.raises(AmountMismatchException):
        await payment_service.handle_ipn(signed_ipn(order, amount=1000))
    assert store.orders[order.id].payment_status is PaymentStatus.UNPAID


@pytest.mark.asyncio
async def test_unknown_order_rejected(store, order_service, payment_service):
    order, _ = await _momo_order(store, order_service)
    with pytest.raises(OrderNotFoundException):
        await payment_service.handle_ipn(signed_ipn(order, extra_data=signing.encode_extra_data("missing")))


@pytest.mark.asyncio
async def test_order_found_by_number_when_extra_data_unreadable(store, order_service, payment_service):
    order, _ = await _momo_order(store, order_service)
    await payment_service.handle_ipn(signed_ipn(order, extra_data="garbage"))
    assert store.orders[order.id].payment_status is PaymentStatus.PAID


@pytest.mark.asyncio
async def test_late_success_after_sweep_is_rejected(store, order_service, payment_service, notifier):
    order, product = await _momo_order(store, order_service)
    store.orders[order.id].created_at -= timedelta(minutes=31)
    swept = await payment_service.sweep_expired_momo_orders()
    assert swept.cancelled_count == 1

    with pytest.raises(OrderExpiredException):
        await payment_service.handle_ipn(signed_ipn(order))

    stored = store.orders[order.id]
    assert stored.status is OrderStatus.CANCELLED
    assert stored.cancel_reason == SWEEP_CANCEL_REASON
    assert stored.payment_status is PaymentStatus.UNPAID
    assert store.products[product.id].stock == 5
    late = notifier.events[-1]
    assert isinstance(late, LatePaymentAfterExpiry)
    assert late.amount == "1200000"


@pytest.mark.asyncio
async def test_late_failure_after_sweep_raises_no_alert(store, order_service, payment_service, notifier):
    order, _ = await _momo_order(store, order_service)
    store.orders[order.id].created_at -= timedelta(minutes=31)
    await payment_service.sweep_expired_momo_orders()

    with pytest.raises(OrderExpiredException):
        await payment_service.handle_ipn(signed_ipn(order, result_code=1006))
    assert not any(isinstance(e, LatePaymentAfterExpiry) for e in notifier.events)


@pytest.mark.asyncio
async def test_success_for_customer_cancelled_order_is_acknowledged(store, order_service, payment_service):
    order, _ = await _momo_order(store, order_service)
    await order_service.cancel_order(order.id, "u1")

    ack = await payment_service.handle_ipn(signed_ipn(order))

    assert ack.error_code == 0
    assert store.orders[order.id].status is OrderStatus.CANCELLED
    assert store.orders[order.id].payment_status is PaymentStatus.UNPAID


@pytest.mark.asyncio
async def test_ipn_after_customer_confirmation_is_duplicate(store, order_service, payment_service):
    order, _ = await _momo_order(store, order_service)
    await order_service.confirm_payment(order.id, "u1")

    ack = await payment_service.handle_ipn(signed_ipn(order))

    assert ack.message == "IPN already processed"
    assert store.orders[order.id].completed_at is None


def test_return_redirect_only_suggests_confirmation(payment_service):
    ok = payment_service.parse_return(0, "Successful.", signing.encode_extra_data("o-1"))
    assert ok.should_confirm and ok.order_id == "o-1"

    failed = payment_service.parse_return(1006, "Denied", signing.encode_extra_data("o-1"))
    assert not failed.should_confirm

    unreadable = payment_service.parse_return(0, "Successful.", "???")
    assert not unreadable.should_confirm and unreadable.order_id is None


@pytest.mark.asyncio
async def test_ipn_without_configured_gateway_is_a_business_error(store, order_service, uow_factory, notifier):
    order, _ = await _momo_order(store, order_service)
    service = PaymentApplicationService(uow_factory, None, notifier)

    with pytest.raises(PaymentGatewayNotConfiguredException) as exc_info:
        await service.handle_ipn(signed_ipn(order))
    assert exc_info.value.http_status == 400
    with pytest.raises(PaymentGatewayNotConfiguredException):
        service.parse_return(0, "Successful.", signing.encode_extra_data(order.id))
    assert store.orders[order.id].status is OrderStatus.PENDING
