"""
Repositories and unit of work against a real sqlite database (aiosqlite).

The conditional UPDATEs behind stock reservation, voucher redemption and
order compare-and-swap are checked here in SQL, not through the in-memory
doubles used by the service tests.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import uuid

import pytest
import pytest_asyncio
from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from application.dtos.orders import CreateOrderDTO, OrderLineDTO
from application.services.order_service import OrderApplicationService
from application.services.payment_service import PaymentApplicationService
from domain.order.entity import SWEEP_CANCEL_REASON, OrderStatus, PaymentMethod, PaymentStatus
from domain.order.pricing import PricingCalculator, ShippingPolicy
from infrastructure.models import Base, OrderModel, ProductModel, VoucherModel
from infrastructure.notifications import LoggingNotifier
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

from conftest import SHOP_ADDRESS, StubGateway


@pytest_asyncio.fixture
async def sql_uow_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)

    def factory(**kwargs):
        return SQLAlchemyUnitOfWork(session_factory, **kwargs)

    yield factory
    await engine.dispose()


@pytest.fixture
def sql_order_service(sql_uow_factory):
    pricing = PricingCalculator(ShippingPolicy(shop_address=SHOP_ADDRESS))
    return OrderApplicationService(sql_uow_factory, pricing, LoggingNotifier(), StubGateway())


async def _add_product(factory, *, price=600000, stock=5, is_active=True) -> str:
    pid = str(uuid.uuid4())
    async with factory() as uow:
        uow.session.add(ProductModel(
            id=pid,
            name="Ghế gỗ sồi",
            sku=f"SKU-{pid[:8]}",
            price=Decimal(price),
            stock=stock,
            sales=0,
            is_active=is_active,
        ))
    return pid


async def _add_voucher(factory, *, code="SALE10", usage_limit=None, used_count=0) -> str:
    vid = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    async with factory() as uow:
        uow.session.add(VoucherModel(
            id=vid,
            code=code,
            discount_type="PERCENTAGE",
            discount_value=Decimal(10),
            usage_limit=usage_limit,
            used_count=used_count,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=30),
            is_active=True,
        ))
    return vid


async def _stock(factory, pid):
    async with factory(readonly=True) as uow:
        product = await uow.product_repository.get_by_id(pid)
    return product.stock, product.sales


def _order_dto(pid, quantity=1, **kw) -> CreateOrderDTO:
    return CreateOrderDTO(
        items=[OrderLineDTO(product_id=pid, quantity=quantity)],
        payment_method=kw.pop("payment_method", PaymentMethod.COD),
        shipping_address="12 Trần Hưng Đạo, Hà Nội",
        customer_name="An",
        customer_email="an@example.com",
        customer_phone="0901234567",
        **kw,
    )


@pytest.mark.asyncio
async def test_reserve_refused_when_stock_is_short(sql_uow_factory):
    pid = await _add_product(sql_uow_factory, stock=2)

    async with sql_uow_factory() as uow:
        assert await uow.product_repository.reserve(pid, 3) is False
        assert await uow.product_repository.reserve(pid, 2) is True
        assert await uow.product_repository.reserve(pid, 1) is False

    assert await _stock(sql_uow_factory, pid) == (0, 2)


@pytest.mark.asyncio
async def test_reserve_refused_for_inactive_product(sql_uow_factory):
    pid = await _add_product(sql_uow_factory, stock=5, is_active=False)
    async with sql_uow_factory() as uow:
        assert await uow.product_repository.reserve(pid, 1) is False
    assert await _stock(sql_uow_factory, pid) == (5, 0)


@pytest.mark.asyncio
async def test_release_floors_sales_at_zero(sql_uow_factory):
    pid = await _add_product(sql_uow_factory, stock=1)
    async with sql_uow_factory() as uow:
        await uow.product_repository.release(pid, 2)
    assert await _stock(sql_uow_factory, pid) == (3, 0)


@pytest.mark.asyncio
async def test_failed_unit_of_work_rolls_back_reservation(sql_uow_factory):
    pid = await _add_product(sql_uow_factory, stock=4)

    with pytest.raises(RuntimeError):
        async with sql_uow_factory() as uow:
            assert await uow.product_repository.reserve(pid, 3)
            raise RuntimeError("boom")

    assert await _stock(sql_uow_factory, pid) == (4, 0)


@pytest.mark.asyncio
async def test_redeem_refused_at_usage_limit(sql_uow_factory):
    limited = await _add_voucher(sql_uow_factory, code="ONCE", usage_limit=1)
    unlimited = await _add_voucher(sql_uow_factory, code="ALWAYS", used_count=41)

    async with sql_uow_factory() as uow:
        assert await uow.voucher_repository.redeem(limited) is True
        assert await uow.voucher_repository.redeem(limited) is False
        assert await uow.voucher_repository.redeem(unlimited) is True

    async with sql_uow_factory(readonly=True) as uow:
        assert (await uow.voucher_repository.get_by_code("ONCE")).used_count == 1
        assert (await uow.voucher_repository.get_by_code("ALWAYS")).used_count == 42


@pytest.mark.asyncio
async def test_voucher_codes_are_case_sensitive(sql_uow_factory):
    await _add_voucher(sql_uow_factory, code="SALE10")
    async with sql_uow_factory(readonly=True) as uow:
        assert await uow.voucher_repository.get_by_code("sale10") is None


@pytest.mark.asyncio
async def test_order_creation_and_cancel_conserve_stock(sql_uow_factory, sql_order_service):
    pid = await _add_product(sql_uow_factory, price=600000, stock=5)
    await _add_voucher(sql_uow_factory, code="SALE10", usage_limit=10)

    created = await sql_order_service.create_order("u1", _order_dto(pid, 2, voucher_code="SALE10"))
    order = created.order
    assert (order.subtotal, order.discount, order.shipping_fee, order.total) == (1200000, 120000, 0, 1080000)
    assert await _stock(sql_uow_factory, pid) == (3, 2)

    async with sql_uow_factory(readonly=True) as uow:
        stored = await uow.order_repository.get_by_id(order.id)
        assert [(i.product_id, i.quantity) for i in stored.items] == [(pid, 2)]
        assert (await uow.voucher_repository.get_by_code("SALE10")).used_count == 1

    await sql_order_service.cancel_order(order.id, "u1")

    assert await _stock(sql_uow_factory, pid) == (5, 0)
    async with sql_uow_factory(readonly=True) as uow:
        assert (await uow.order_repository.get_by_id(order.id)).status is OrderStatus.CANCELLED


@pytest.mark.asyncio
async def test_save_transition_refuses_stale_state(sql_uow_factory, sql_order_service):
    pid = await _add_product(sql_uow_factory, stock=3)
    order_id = (await sql_order_service.create_order("u1", _order_dto(pid))).order.id

    async with sql_uow_factory(readonly=True) as uow:
        stale = await uow.order_repository.get_by_id(order_id)

    await sql_order_service.cancel_order(order_id, "u1")

    stale.mark_paid(record_completion=True)
    async with sql_uow_factory() as uow:
        swapped = await uow.order_repository.save_transition(stale, OrderStatus.PENDING, PaymentStatus.UNPAID)
    assert swapped is False

    async with sql_uow_factory(readonly=True) as uow:
        current = await uow.order_repository.get_by_id(order_id)
    assert current.status is OrderStatus.CANCELLED
    assert current.payment_status is PaymentStatus.UNPAID
    assert current.completed_at is None


@pytest.mark.asyncio
async def test_sweep_cancels_stale_momo_order_once(sql_uow_factory, sql_order_service):
    pid = await _add_product(sql_uow_factory, price=1200000, stock=2)
    order_id = (await sql_order_service.create_order(
        "u1", _order_dto(pid, payment_method=PaymentMethod.MOMO)
    )).order.id
    async with sql_uow_factory() as uow:
        await uow.session.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .values(created_at=datetime.now(timezone.utc) - timedelta(minutes=45))
        )

    payments = PaymentApplicationService(sql_uow_factory, None, LoggingNotifier())
    assert (await payments.sweep_expired_momo_orders()).cancelled_count == 1
    assert (await payments.sweep_expired_momo_orders()).cancelled_count == 0

    assert await _stock(sql_uow_factory, pid) == (2, 0)
    async with sql_uow_factory(readonly=True) as uow:
        order = await uow.order_repository.get_by_id(order_id)
    assert order.cancel_reason == SWEEP_CANCEL_REASON
