"""
Order application service - orchestrates checkout, cancellation, payment
confirmation and reorder on top of the domain layer.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from application.dtos.orders import (
    CreateOrderDTO,
    OrderDTO,
    OrderWithPaymentDTO,
    ReorderLineDTO,
    ReorderResultDTO,
)
from application.dtos.payments import MomoPaymentRequest, MomoPaymentResult
from application.ports.notifier import Notifier
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from domain.catalog.entity import Product
from domain.catalog.inventory import InventoryLedger
from domain.common.exceptions import (
    EmptyOrderException,
    InvalidOrderTransitionException,
    NothingToReorderException,
    OrderAccessDeniedException,
    OrderAlreadyPaidException,
    OrderNotCancellableException,
    OrderNotFoundException,
    PaymentInitiationFailedException,
    PaymentMethodMismatchException,
    VoucherUsageLimitReachedException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import (
    USER_CANCEL_REASON,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    generate_order_number,
)
from domain.order.events import OrderPlaced
from domain.order.pricing import PricingCalculator
from domain.order.service import OrderDomainService


logger = get_logger(__name__)

ADMIN_CANCEL_REASON = "Cancelled by admin"


@dataclass
class _Line:
    product: Product
    quantity: int

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def unit_price(self) -> Decimal:
        return self.product.effective_price


@dataclass
class _RequestedLine:
    product_id: str
    quantity: int


def _merge_lines(dto: CreateOrderDTO) -> List[_RequestedLine]:
    """Collapse repeated products so stock is checked against the real total."""
    merged: dict[str, _RequestedLine] = {}
    for item in dto.items:
        if item.product_id in merged:
            merged[item.product_id].quantity += item.quantity
        else:
            merged[item.product_id] = _RequestedLine(item.product_id, item.quantity)
    return list(merged.values())


class OrderApplicationService:
    """
    Order use cases.

    Creation runs in one unit of work: order row, items, stock reservation,
    voucher redemption and cart cleanup commit together. The MoMo call comes
    after the commit, so a gateway failure leaves a payable PENDING order.
    """

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        pricing: PricingCalculator,
        notifier: Notifier,
        gateway: Optional[PaymentGateway] = None,
    ):
        self._uow_factory = uow_factory
        self._pricing = pricing
        self._notifier = notifier
        self._gateway = gateway

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _domain_service(uow: AbstractUnitOfWork) -> OrderDomainService:
        return OrderDomainService(uow.order_repository, InventoryLedger(uow.product_repository))

    @staticmethod
    async def _load_owned(uow: AbstractUnitOfWork, order_id: str, user_id: str, *, forbid: bool = False) -> Order:
        """Load an order of this user; foreign orders look missing unless forbid."""
        order = await uow.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        if not order.is_owned_by(user_id):
            if forbid:
                raise OrderAccessDeniedException(order_id)
            raise OrderNotFoundException(order_id)
        return order

    def _publish(self, events) -> None:
        for event in events:
            self._notifier.notify(event)

    def _require_gateway(self, order_id: Optional[str] = None) -> PaymentGateway:
        if self._gateway is None:
            raise PaymentInitiationFailedException("MoMo is not configured", order_id=order_id)
        return self._gateway

    async def _initiate_momo(self, order: Order) -> MomoPaymentResult:
        gateway = self._require_gateway(order.id)
        result = await gateway.create_payment(MomoPaymentRequest(
            order_id=order.id,
            order_number=order.order_number,
            amount=order.total,
        ))
        if not result.is_success:
            logger.warning(
                "momo_initiation_rejected",
                order_id=order.id,
                result_code=result.result_code,
                message=result.message,
            )
            raise PaymentInitiationFailedException(result.message, result_code=result.result_code, order_id=order.id)
        return result

    # -------------------------------------------------------------- use cases

    async def create_order(self, user_id: str, dto: CreateOrderDTO) -> OrderWithPaymentDTO:
        if not dto.items:
            raise EmptyOrderException()
        if dto.payment_method is PaymentMethod.MOMO:
            self._require_gateway()

        requested = _merge_lines(dto)
        product_ids = [line.product_id for line in requested]
        now = datetime.now(timezone.utc)

        async with self._uow_factory() as uow:
            products = await uow.product_repository.get_many(product_ids)
            InventoryLedger.check_availability(requested, products)
            lines = [_Line(products[r.product_id], r.quantity) for r in requested]

            voucher = None
            if dto.voucher_code:
                voucher = await uow.voucher_repository.get_by_code(dto.voucher_code)
                self._pricing.voucher_evaluator.validate(
                    voucher, dto.voucher_code, self._pricing.subtotal(lines), now
                )
            quote = self._pricing.quote(lines, dto.shipping_address, voucher)

            order = await uow.order_repository.create(Order(
                id=None,
                order_number=generate_order_number(now),
                user_id=user_id,
                payment_method=dto.payment_method,
                subtotal=quote.subtotal,
                discount=quote.discount,
                shipping_fee=quote.shipping_fee,
                total=quote.total,
                customer_name=dto.customer_name,
                customer_email=str(dto.customer_email),
                customer_phone=dto.customer_phone,
                shipping_address=dto.shipping_address,
                notes=dto.notes,
                voucher_code=voucher.code if voucher else None,
                voucher_id=voucher.id if voucher else None,
                items=[
                    OrderItem(
                        product_id=line.product.id,
                        product_name=line.product.name,
                        product_sku=line.product.sku,
                        price=line.unit_price,
                        quantity=line.quantity,
                    )
                    for line in lines
                ],
                created_at=now,
                updated_at=now,
            ))

            await InventoryLedger(uow.product_repository).reserve_all(requested, products)

            if voucher is not None and not await uow.voucher_repository.redeem(voucher.id):
                raise VoucherUsageLimitReachedException(voucher.code)

            purchased = set(product_ids)
            selected = dto.selected_product_ids if dto.selected_product_ids is not None else product_ids
            await uow.cart_repository.remove_products(user_id, [pid for pid in selected if pid in purchased])

        logger.info(
            "order_created",
            order_id=order.id,
            order_number=order.order_number,
            user_id=user_id,
            total=str(order.total),
            payment_method=order.payment_method.value,
            pickup=quote.is_pickup,
        )
        self._notifier.notify(OrderPlaced(
            order_id=order.id,
            order_number=order.order_number,
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            total=str(order.total),
            payment_method=order.payment_method.value,
        ))

        momo = None
        if order.payment_method is PaymentMethod.MOMO:
            momo = await self._initiate_momo(order)
        return OrderWithPaymentDTO(order=OrderDTO.from_entity(order), momo=momo)

    async def create_momo_payment(self, order_id: str, user_id: str) -> OrderWithPaymentDTO:
        """New MoMo attempt for an existing unpaid order."""
        async with self._uow_factory(readonly=True) as uow:
            order = await self._load_owned(uow, order_id, user_id, forbid=True)
        if order.payment_method is not PaymentMethod.MOMO:
            raise PaymentMethodMismatchException(order.id, order.payment_method.value)
        if order.is_paid:
            raise OrderAlreadyPaidException(order.id)
        if order.status is not OrderStatus.PENDING:
            raise InvalidOrderTransitionException(order.id, order.status.value, OrderStatus.PROCESSING.value)
        momo = await self._initiate_momo(order)
        return OrderWithPaymentDTO(order=OrderDTO.from_entity(order), momo=momo)

    async def cancel_order(self, order_id: str, user_id: str, reason: Optional[str] = None) -> OrderDTO:
        async with self._uow_factory() as uow:
            order = await self._load_owned(uow, order_id, user_id)
            if order.status is not OrderStatus.PENDING:
                raise OrderNotCancellableException(order.id, order.status.value)
            domain_service = self._domain_service(uow)
            if not await domain_service.cancel(order, reason or USER_CANCEL_REASON):
                current = await uow.order_repository.get_by_id(order_id)
                raise OrderNotCancellableException(order.id, current.status.value if current else "UNKNOWN")
            events = domain_service.clear_events()
        self._publish(events)
        return OrderDTO.from_entity(order)

    async def confirm_payment(self, order_id: str, user_id: str) -> OrderDTO:
        """Customer-side confirmation after the return redirect; rejects repeats."""
        async with self._uow_factory() as uow:
            order = await self._load_owned(uow, order_id, user_id, forbid=True)
            if order.is_paid:
                raise OrderAlreadyPaidException(order.id)
            if order.status is not OrderStatus.PENDING:
                raise InvalidOrderTransitionException(order.id, order.status.value, OrderStatus.PROCESSING.value)
            domain_service = self._domain_service(uow)
            if not await domain_service.mark_paid(order, channel="customer_confirm"):
                current = await uow.order_repository.get_by_id(order_id)
                if current is not None and current.is_paid:
                    raise OrderAlreadyPaidException(order.id)
                raise InvalidOrderTransitionException(
                    order.id,
                    current.status.value if current else "UNKNOWN",
                    OrderStatus.PROCESSING.value,
                )
            events = domain_service.clear_events()
        self._publish(events)
        return OrderDTO.from_entity(order)

    async def reorder(self, order_id: str, user_id: str) -> ReorderResultDTO:
        async with self._uow_factory() as uow:
            order = await self._load_owned(uow, order_id, user_id, forbid=True)
            cart_id = await uow.cart_repository.get_or_create_cart_id(user_id)
            products = await uow.product_repository.get_many(item.product_id for item in order.items)

            added: List[ReorderLineDTO] = []
            skipped: List[str] = []
            for item in order.items:
                product = products.get(item.product_id)
                if product is None or not product.is_active or product.stock <= 0:
                    skipped.append(item.product_id)
                    continue
                quantity = min(item.quantity, product.stock)
                existing = await uow.cart_repository.get_item(cart_id, product.id)
                if existing is not None:
                    quantity = min(existing.quantity + quantity, product.stock)
                await uow.cart_repository.upsert_item(cart_id, product.id, quantity)
                added.append(ReorderLineDTO(product_id=product.id, product_name=product.name, quantity=quantity))

            if not added:
                raise NothingToReorderException(order.id)

        logger.info("order_reordered", order_id=order_id, user_id=user_id, added=len(added), skipped=len(skipped))
        return ReorderResultDTO(added=added, skipped=skipped)

    async def get_order(self, order_id: str, user_id: str, *, is_admin: bool = False) -> OrderDTO:
        async with self._uow_factory(readonly=True) as uow:
            if is_admin:
                order = await uow.order_repository.get_by_id(order_id)
                if order is None:
                    raise OrderNotFoundException(order_id)
            else:
                order = await self._load_owned(uow, order_id, user_id)
        return OrderDTO.from_entity(order)

    async def list_orders(self, user_id: str, page: int = 1, size: int = 10) -> Tuple[List[OrderDTO], int]:
        skip = (page - 1) * size
        async with self._uow_factory(readonly=True) as uow:
            orders = await uow.order_repository.list_by_user(user_id, skip=skip, limit=size)
            total = await uow.order_repository.count_by_user(user_id)
        return [OrderDTO.from_entity(o) for o in orders], total

    async def update_status(self, order_id: str, target: OrderStatus, reason: Optional[str] = None) -> OrderDTO:
        """Admin status change: fulfilment steps, or cancellation with stock release."""
        target = OrderStatus(target)
        async with self._uow_factory() as uow:
            order = await uow.order_repository.get_by_id(order_id)
            if order is None:
                raise OrderNotFoundException(order_id)
            current_status = order.status.value
            domain_service = self._domain_service(uow)
            if target is OrderStatus.CANCELLED:
                saved = await domain_service.cancel(order, reason or ADMIN_CANCEL_REASON)
            else:
                saved = await domain_service.advance(order, target)
            if not saved:
                raise InvalidOrderTransitionException(order.id, current_status, target.value)
            events = domain_service.clear_events()
        self._publish(events)
        return OrderDTO.from_entity(order)
