"""
Inventory ledger - stock/sales counter bookkeeping for orders.
"""
from __future__ import annotations

from typing import Iterable, Mapping, Protocol

from core.logging_config import get_logger
from domain.catalog.entity import Product
from domain.catalog.repository import ProductRepository
from domain.common.exceptions import (
    InsufficientStockException,
    ProductInactiveException,
    ProductNotFoundException,
)


logger = get_logger(__name__)


class StockLine(Protocol):
    product_id: str
    quantity: int


class InventoryLedger:
    """Reserve and release stock for order lines.

    Idempotency is not tracked here: callers go through the order state
    machine, which allows release at most once per order.
    """

    def __init__(self, product_repository: ProductRepository):
        self.product_repository = product_repository

    @staticmethod
    def check_availability(lines: Iterable[StockLine], products: Mapping[str, Product]) -> None:
        """Validate every line before any adjustment is applied."""
        lines = list(lines)
        missing = [line.product_id for line in lines if line.product_id not in products]
        if missing:
            raise ProductNotFoundException(missing)
        for line in lines:
            product = products[line.product_id]
            if not product.is_active:
                raise ProductInactiveException(product.id, product.name)
            if product.stock < line.quantity:
                raise InsufficientStockException(product.id, product.name, product.stock, line.quantity)

    async def reserve(self, product: Product, quantity: int) -> None:
        # Conditional decrement re-validates stock at apply time
        if not await self.product_repository.reserve(product.id, quantity):
            current = await self.product_repository.get_by_id(product.id)
            available = current.stock if current else 0
            logger.warning(
                "inventory_reserve_conflict",
                product_id=product.id,
                requested=quantity,
                available=available,
            )
            raise InsufficientStockException(product.id, product.name, available, quantity)

    async def reserve_all(self, lines: Iterable[StockLine], products: Mapping[str, Product]) -> None:
        for line in lines:
            await self.reserve(products[line.product_id], line.quantity)

    async def release(self, product_id: str, quantity: int) -> None:
        await self.product_repository.release(product_id, quantity)

    async def release_all(self, lines: Iterable[StockLine]) -> None:
        for line in lines:
            await self.release(line.product_id, line.quantity)
