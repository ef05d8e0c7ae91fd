"""
Product repository - SQLAlchemy implementation with conditional stock updates
"""
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.catalog.entity import Product
from domain.catalog.repository import ProductRepository
from infrastructure.models.product import ProductModel


logger = get_logger(__name__)


class SQLAlchemyProductRepository(ProductRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ProductModel) -> Product:
        return Product(
            id=model.id,
            name=model.name,
            sku=model.sku,
            price=Decimal(str(model.price)),
            sale_price=Decimal(str(model.sale_price)) if model.sale_price is not None else None,
            stock=model.stock,
            sales=model.sales,
            is_active=model.is_active,
        )

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        result = await self.session.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        result = await self.session.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        return {model.id: self._to_entity(model) for model in result.scalars().all()}

    async def reserve(self, product_id: str, quantity: int) -> bool:
        result = await self.session.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.is_active.is_(True),
                ProductModel.stock >= quantity,
            )
            .values(
                stock=ProductModel.stock - quantity,
                sales=ProductModel.sales + quantity,
            )
            .execution_options(synchronize_session=False)
        )
        reserved = result.rowcount == 1
        if reserved:
            logger.info("stock_reserved", product_id=product_id, quantity=quantity)
        return reserved

    async def release(self, product_id: str, quantity: int) -> None:
        await self.session.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(
                stock=ProductModel.stock + quantity,
                sales=case(
                    (ProductModel.sales >= quantity, ProductModel.sales - quantity),
                    else_=0,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        logger.info("stock_released", product_id=product_id, quantity=quantity)
