"""Unit of Work abstraction"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.cart.repository import CartRepository
from domain.catalog.repository import ProductRepository
from domain.order.repository import OrderRepository
from domain.voucher.repository import VoucherRepository


class AbstractUnitOfWork(ABC):
    """Transaction boundary for application services"""

    order_repository: OrderRepository
    product_repository: ProductRepository
    voucher_repository: VoucherRepository
    cart_repository: CartRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly
        self.order_repository = None  # type: ignore[assignment]
        self.product_repository = None  # type: ignore[assignment]
        self.voucher_repository = None  # type: ignore[assignment]
        self.cart_repository = None  # type: ignore[assignment]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # auto-commit unless readonly or already committed
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...
