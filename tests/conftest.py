"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings, and provide
in-memory doubles of the repositories, unit of work and MoMo gateway.
"""
import copy
import os
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

import pytest

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")

from application.dtos.payments import MomoIpnPayload, MomoPaymentRequest, MomoPaymentResult  # noqa: E402
from domain.cart.entity import CartItem  # noqa: E402
from domain.cart.repository import CartRepository  # noqa: E402
from domain.catalog.entity import Product  # noqa: E402
from domain.catalog.repository import ProductRepository  # noqa: E402
from domain.common.unit_of_work import AbstractUnitOfWork  # noqa: E402
from domain.order.entity import Order, OrderStatus, PaymentMethod, PaymentStatus  # noqa: E402
from domain.order.pricing import PricingCalculator, ShippingPolicy  # noqa: E402
from domain.order.repository import OrderRepository  # noqa: E402
from domain.voucher.entity import DiscountType, Voucher  # noqa: E402
from domain.voucher.repository import VoucherRepository  # noqa: E402
from infrastructure.external.payments import signing  # noqa: E402
from infrastructure.notifications import LoggingNotifier  # noqa: E402


SHOP_ADDRESS = "123 Nguyễn Huệ, Quận 1, TP.HCM"
PARTNER_CODE = "MOMOTEST"
ACCESS_KEY = "test-access"
SECRET_KEY = "test-secret"


class InMemoryStore:
    """Rows shared by every unit of work of one test."""

    def __init__(self):
        self.products: dict[str, Product] = {}
        self.vouchers: dict[str, Voucher] = {}
        self.orders: dict[str, Order] = {}
        self.carts: dict[str, str] = {}
        self.cart_items: dict[tuple[str, str], CartItem] = {}

    def snapshot(self):
        return copy.deepcopy((self.products, self.vouchers, self.orders, self.carts, self.cart_items))

    def restore(self, snap) -> None:
        self.products, self.vouchers, self.orders, self.carts, self.cart_items = snap

    def cart_quantities(self, user_id: str) -> dict[str, int]:
        cart_id = self.carts.get(user_id)
        return {pid: item.quantity for (cid, pid), item in self.cart_items.items() if cid == cart_id}


class InMemoryProductRepository(ProductRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        product = self.store.products.get(product_id)
        return replace(product) if product else None

    async def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        return {pid: replace(self.store.products[pid]) for pid in set(product_ids) if pid in self.store.products}

    async def reserve(self, product_id: str, quantity: int) -> bool:
        product = self.store.products.get(product_id)
        if product is None or product.stock < quantity:
            return False
        product.stock -= quantity
        product.sales += quantity
        return True

    async def release(self, product_id: str, quantity: int) -> None:
        product = self.store.products.get(product_id)
        if product is not None:
            product.stock += quantity
            product.sales = max(product.sales - quantity, 0)


class InMemoryVoucherRepository(VoucherRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_code(self, code: str) -> Optional[Voucher]:
        for voucher in self.store.vouchers.values():
            if voucher.code == code:
                return replace(voucher)
        return None

    async def redeem(self, voucher_id: str) -> bool:
        voucher = self.store.vouchers[voucher_id]
        if voucher.usage_limit is not None and voucher.used_count >= voucher.usage_limit:
            return False
        voucher.used_count += 1
        return True


class InMemoryCartRepository(CartRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_or_create_cart_id(self, user_id: str) -> str:
        return self.store.carts.setdefault(user_id, str(uuid.uuid4()))

    async def get_item(self, cart_id: str, product_id: str) -> Optional[CartItem]:
        item = self.store.cart_items.get((cart_id, product_id))
        return replace(item) if item else None

    async def upsert_item(self, cart_id: str, product_id: str, quantity: int) -> CartItem:
        item = self.store.cart_items.get((cart_id, product_id))
        if item is None:
            item = CartItem(id=str(uuid.uuid4()), cart_id=cart_id, product_id=product_id, quantity=quantity)
            self.store.cart_items[(cart_id, product_id)] = item
        else:
            item.quantity = quantity
        return replace(item)

    async def remove_products(self, user_id: str, product_ids: Iterable[str]) -> int:
        cart_id = self.store.carts.get(user_id)
        removed = 0
        for pid in list(product_ids):
            if self.store.cart_items.pop((cart_id, pid), None) is not None:
                removed += 1
        return removed


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, order: Order) -> Order:
        stored = copy.deepcopy(order)
        stored.id = stored.id or str(uuid.uuid4())
        for item in stored.items:
            item.id = item.id or str(uuid.uuid4())
            item.order_id = stored.id
        self.store.orders[stored.id] = stored
        return copy.deepcopy(stored)

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        order = self.store.orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def get_by_order_number(self, order_number: str) -> Optional[Order]:
        for order in self.store.orders.values():
            if order.order_number == order_number:
                return copy.deepcopy(order)
        return None

    async def list_by_user(self, user_id: str, skip: int = 0, limit: int = 10) -> List[Order]:
        mine = sorted(
            (o for o in self.store.orders.values() if o.user_id == user_id),
            key=lambda o: o.created_at,
            reverse=True,
        )
        return [copy.deepcopy(o) for o in mine[skip:skip + limit]]

    async def count_by_user(self, user_id: str) -> int:
        return sum(1 for o in self.store.orders.values() if o.user_id == user_id)

    async def list_stale(self, payment_method: PaymentMethod, created_before: datetime) -> List[Order]:
        return [
            copy.deepcopy(o)
            for o in sorted(self.store.orders.values(), key=lambda o: o.created_at)
            if o.payment_method is payment_method
            and o.status is OrderStatus.PENDING
            and o.payment_status is PaymentStatus.UNPAID
            and o.created_at < created_before
        ]

    async def save_transition(self, order: Order, expected_status: OrderStatus, expected_payment_status: PaymentStatus) -> bool:
        stored = self.store.orders.get(order.id)
        if stored is None or stored.status is not expected_status or stored.payment_status is not expected_payment_status:
            return False
        for name in ("status", "payment_status", "completed_at", "cancelled_at", "cancel_reason", "updated_at"):
            setattr(stored, name, getattr(order, name))
        return True


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """Commits are no-ops; rollback restores the snapshot taken on entry."""

    def __init__(self, store: InMemoryStore, *, readonly: bool = False):
        super().__init__(readonly=readonly)
        self.store = store
        self.order_repository = InMemoryOrderRepository(store)
        self.product_repository = InMemoryProductRepository(store)
        self.voucher_repository = InMemoryVoucherRepository(store)
        self.cart_repository = InMemoryCartRepository(store)

    async def __aenter__(self):
        self._snapshot = self.store.snapshot()
        return self

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self.store.restore(self._snapshot)


class StubGateway:
    """MoMo double that signs and verifies with the real HMAC helpers."""

    provider = "momo"
    partner_code = PARTNER_CODE

    def __init__(self, result_code: int = 0):
        self.result_code = result_code
        self.requests: List[MomoPaymentRequest] = []

    async def create_payment(self, req: MomoPaymentRequest) -> MomoPaymentResult:
        self.requests.append(req)
        attempt = len(self.requests)
        return MomoPaymentResult(
            result_code=self.result_code,
            message="Successful." if self.result_code == 0 else "Rejected",
            pay_url=f"https://test-payment.momo.vn/pay/{req.order_number}" if self.result_code == 0 else None,
            provider_order_id=f"{req.order_number}-{attempt}",
            request_id=f"{req.order_id}-{attempt}",
            amount=int(req.amount),
        )

    def verify_ipn(self, payload: MomoIpnPayload) -> bool:
        values = payload.signature_values()
        values["accessKey"] = ACCESS_KEY
        return signing.verify(
            signing.ordered_fields(signing.IPN_SIGNATURE_FIELDS, values), SECRET_KEY, payload.signature
        )

    def decode_extra_data(self, token: Optional[str]) -> Optional[str]:
        return signing.decode_extra_data(token)

    def order_number_from_provider_id(self, provider_order_id: str) -> Optional[str]:
        return signing.order_number_from_provider_id(provider_order_id)


def signed_ipn(order: Order, *, result_code: int = 0, amount: Optional[int] = None, extra_data: Optional[str] = None,
               message: str = "Successful.", trans_id: int = 4088878653) -> MomoIpnPayload:
    """IPN body as MoMo would send it for this order, signed with the test secret."""
    values = {
        "partnerCode": PARTNER_CODE,
        "orderId": f"{order.order_number}-1718000000000",
        "requestId": f"{order.id}-1718000000000",
        "amount": int(order.total) if amount is None else amount,
        "orderInfo": f"Thanh toán đơn hàng {order.order_number}",
        "orderType": "momo_wallet",
        "transId": trans_id,
        "resultCode": result_code,
        "message": message,
        "payType": "qr",
        "responseTime": 1718000005000,
        "extraData": signing.encode_extra_data(order.id) if extra_data is None else extra_data,
    }
    fields = signing.ordered_fields(signing.IPN_SIGNATURE_FIELDS, {**values, "accessKey": ACCESS_KEY})
    return MomoIpnPayload.model_validate({**values, "signature": signing.sign(fields, SECRET_KEY)})


def make_product(store: InMemoryStore, *, price: int, stock: int = 10, sale_price: Optional[int] = None,
                 name: str = "Sofa", sku: Optional[str] = None, is_active: bool = True) -> Product:
    pid = str(uuid.uuid4())
    product = Product(
        id=pid,
        name=name,
        sku=sku or f"SKU-{pid[:8]}",
        price=Decimal(price),
        sale_price=Decimal(sale_price) if sale_price is not None else None,
        stock=stock,
        is_active=is_active,
    )
    store.products[pid] = product
    return product


def make_voucher(store: InMemoryStore, *, code: str = "SALE10", discount_type: DiscountType = DiscountType.PERCENTAGE,
                 value: int = 10, max_discount: Optional[int] = None, min_order_value: Optional[int] = None,
                 usage_limit: Optional[int] = None, used_count: int = 0, is_active: bool = True) -> Voucher:
    now = datetime.now(timezone.utc)
    voucher = Voucher(
        id=str(uuid.uuid4()),
        code=code,
        discount_type=discount_type,
        discount_value=Decimal(value),
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=30),
        min_order_value=Decimal(min_order_value) if min_order_value is not None else None,
        max_discount=Decimal(max_discount) if max_discount is not None else None,
        usage_limit=usage_limit,
        used_count=used_count,
        is_active=is_active,
    )
    store.vouchers[voucher.id] = voucher
    return voucher


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store):
    def factory(**kwargs):
        return InMemoryUnitOfWork(store, **kwargs)
    return factory


@pytest.fixture
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def pricing() -> PricingCalculator:
    return PricingCalculator(ShippingPolicy(shop_address=SHOP_ADDRESS))


@pytest.fixture
def order_service(uow_factory, pricing, notifier, gateway):
    from application.services.order_service import OrderApplicationService
    return OrderApplicationService(uow_factory, pricing, notifier, gateway)


@pytest.fixture
def payment_service(uow_factory, notifier, gateway):
    from application.services.payment_service import PaymentApplicationService
    return PaymentApplicationService(uow_factory, gateway, notifier, default_timeout_minutes=30)
