from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.common.exceptions import (
    DomainValidationException,
    InvalidOrderTransitionException,
    OrderAlreadyPaidException,
)
from domain.order.entity import (
    SWEEP_CANCEL_REASON,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    generate_order_number,
)


NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _order(**kw) -> Order:
    base = dict(
        id="o1",
        order_number="ORD17000000000001234",
        user_id="u1",
        payment_method=PaymentMethod.MOMO,
        subtotal=Decimal(1200000),
        discount=Decimal(0),
        shipping_fee=Decimal(0),
        total=Decimal(1200000),
        customer_name="An",
        customer_email="an@example.com",
        customer_phone="0901234567",
        shipping_address="1 Lê Lợi",
        items=[OrderItem(product_id="p1", product_name="Sofa", product_sku="S1", price=Decimal(600000), quantity=2)],
    )
    base.update(kw)
    return Order(**base)


def test_order_number_format():
    number = generate_order_number(NOW)
    assert number.startswith("ORD" + str(int(NOW.timestamp() * 1000)))
    assert len(number) == 3 + 13 + 4


def test_inconsistent_total_rejected():
    with pytest.raises(DomainValidationException):
        _order(total=Decimal(1))


def test_discount_above_subtotal_rejected():
    with pytest.raises(DomainValidationException):
        _order(discount=Decimal(2000000), total=Decimal(0))


def test_item_quantity_must_be_positive():
    with pytest.raises(DomainValidationException):
        OrderItem(product_id="p", product_name="x", product_sku="s", price=Decimal(1), quantity=0)


def test_mark_paid_moves_to_processing():
    order = _order()
    order.mark_paid(NOW, record_completion=True)
    assert order.status is OrderStatus.PROCESSING
    assert order.payment_status is PaymentStatus.PAID
    assert order.completed_at == NOW


def test_customer_confirmation_leaves_completed_at_unset():
    order = _order()
    order.mark_paid(NOW)
    assert order.completed_at is None


def test_mark_paid_twice_rejected():
    order = _order()
    order.mark_paid(NOW)
    with pytest.raises(OrderAlreadyPaidException):
        order.mark_paid(NOW)


def test_cancelled_order_is_frozen():
    order = _order()
    order.cancel(SWEEP_CANCEL_REASON, NOW)
    assert order.is_sweep_cancelled
    with pytest.raises(InvalidOrderTransitionException):
        order.cancel("again", NOW)
    with pytest.raises(InvalidOrderTransitionException):
        order.mark_paid(NOW)
    assert order.cancel_reason == SWEEP_CANCEL_REASON


def test_fulfilment_path_and_completion_settles_payment():
    order = _order(payment_method=PaymentMethod.COD)
    order.advance(OrderStatus.PROCESSING, NOW)
    assert order.payment_status is PaymentStatus.UNPAID
    order.advance(OrderStatus.SHIPPING, NOW)
    order.advance(OrderStatus.COMPLETED, NOW)
    assert order.payment_status is PaymentStatus.PAID
    assert order.completed_at == NOW
    assert order.is_terminal


def test_pending_cannot_skip_to_shipping():
    with pytest.raises(InvalidOrderTransitionException):
        _order().advance(OrderStatus.SHIPPING, NOW)


def test_advance_does_not_cancel():
    order = _order()
    with pytest.raises(InvalidOrderTransitionException):
        order.advance(OrderStatus.CANCELLED, NOW)
