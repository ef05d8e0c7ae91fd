"""
Order repository - SQLAlchemy implementation
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.order.entity import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderItemModel, OrderModel


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        return Order(
            id=model.id,
            order_number=model.order_number,
            user_id=model.user_id,
            status=OrderStatus(model.status),
            payment_status=PaymentStatus(model.payment_status),
            payment_method=PaymentMethod(model.payment_method),
            subtotal=Decimal(str(model.subtotal)),
            discount=Decimal(str(model.discount)),
            shipping_fee=Decimal(str(model.shipping_fee)),
            total=Decimal(str(model.total)),
            customer_name=model.customer_name,
            customer_email=model.customer_email,
            customer_phone=model.customer_phone,
            shipping_address=model.shipping_address,
            notes=model.notes,
            voucher_code=model.voucher_code,
            voucher_id=model.voucher_id,
            items=[
                OrderItem(
                    id=item.id,
                    order_id=item.order_id,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    price=Decimal(str(item.price)),
                    quantity=item.quantity,
                )
                for item in model.items
            ],
            created_at=model.created_at,
            updated_at=model.updated_at,
            completed_at=model.completed_at,
            cancelled_at=model.cancelled_at,
            cancel_reason=model.cancel_reason,
        )

    def _to_model(self, entity: Order) -> OrderModel:
        return OrderModel(
            id=entity.id or str(uuid.uuid4()),
            order_number=entity.order_number,
            user_id=entity.user_id,
            status=entity.status.value,
            payment_status=entity.payment_status.value,
            payment_method=entity.payment_method.value,
            subtotal=entity.subtotal,
            discount=entity.discount,
            shipping_fee=entity.shipping_fee,
            total=entity.total,
            customer_name=entity.customer_name,
            customer_email=entity.customer_email,
            customer_phone=entity.customer_phone,
            shipping_address=entity.shipping_address,
            notes=entity.notes,
            voucher_code=entity.voucher_code,
            voucher_id=entity.voucher_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            items=[
                OrderItemModel(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    price=item.price,
                    quantity=item.quantity,
                    subtotal=item.subtotal,
                )
                for item in entity.items
            ],
        )

    def _by(self, *criteria):
        return select(OrderModel).where(*criteria).execution_options(populate_existing=True)

    async def create(self, order: Order) -> Order:
        db_order = self._to_model(order)
        self.session.add(db_order)
        await self.session.flush()
        logger.info(
            "order_persisted",
            order_id=db_order.id,
            order_number=db_order.order_number,
            items=len(db_order.items),
        )
        return self._to_entity(db_order)

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self.session.execute(self._by(OrderModel.id == order_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_order_number(self, order_number: str) -> Optional[Order]:
        result = await self.session.execute(self._by(OrderModel.order_number == order_number))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_by_user(self, user_id: str, skip: int = 0, limit: int = 10) -> List[Order]:
        result = await self.session.execute(
            self._by(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def count_by_user(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(OrderModel).where(OrderModel.user_id == user_id)
        )
        return result.scalar_one()

    async def list_stale(self, payment_method: PaymentMethod, created_before: datetime) -> List[Order]:
        result = await self.session.execute(
            self._by(
                OrderModel.payment_method == payment_method.value,
                OrderModel.status == OrderStatus.PENDING.value,
                OrderModel.payment_status == PaymentStatus.UNPAID.value,
                OrderModel.created_at < created_before,
            ).order_by(OrderModel.created_at)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def save_transition(
        self,
        order: Order,
        expected_status: OrderStatus,
        expected_payment_status: PaymentStatus,
    ) -> bool:
        result = await self.session.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order.id,
                OrderModel.status == expected_status.value,
                OrderModel.payment_status == expected_payment_status.value,
            )
            .values(
                status=order.status.value,
                payment_status=order.payment_status.value,
                completed_at=order.completed_at,
                cancelled_at=order.cancelled_at,
                cancel_reason=order.cancel_reason,
                updated_at=order.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        swapped = result.rowcount == 1
        if swapped:
            logger.info(
                "order_updated",
                order_id=order.id,
                status=order.status.value,
                payment_status=order.payment_status.value,
            )
        return swapped
