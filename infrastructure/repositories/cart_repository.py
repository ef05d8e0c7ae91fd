"""
Cart repository - SQLAlchemy implementation
"""
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.cart.entity import CartItem
from domain.cart.repository import CartRepository
from infrastructure.models.cart import CartItemModel, CartModel


class SQLAlchemyCartRepository(CartRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(model: CartItemModel) -> CartItem:
        return CartItem(
            id=model.id,
            cart_id=model.cart_id,
            product_id=model.product_id,
            quantity=model.quantity,
        )

    async def get_or_create_cart_id(self, user_id: str) -> str:
        result = await self.session.execute(select(CartModel.id).where(CartModel.user_id == user_id))
        cart_id = result.scalar_one_or_none()
        if cart_id:
            return cart_id
        cart = CartModel(user_id=user_id)
        self.session.add(cart)
        await self.session.flush()
        return cart.id

    async def _get_model(self, cart_id: str, product_id: str) -> Optional[CartItemModel]:
        result = await self.session.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_item(self, cart_id: str, product_id: str) -> Optional[CartItem]:
        model = await self._get_model(cart_id, product_id)
        return self._to_entity(model) if model else None

    async def upsert_item(self, cart_id: str, product_id: str, quantity: int) -> CartItem:
        model = await self._get_model(cart_id, product_id)
        if model is None:
            model = CartItemModel(cart_id=cart_id, product_id=product_id, quantity=quantity)
            self.session.add(model)
        else:
            model.quantity = quantity
        await self.session.flush()
        return self._to_entity(model)

    async def remove_products(self, user_id: str, product_ids: Iterable[str]) -> int:
        ids = list(product_ids)
        if not ids:
            return 0
        cart_ids = select(CartModel.id).where(CartModel.user_id == user_id).scalar_subquery()
        result = await self.session.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_ids, CartItemModel.product_id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
