"""
Product repository interface (ordering view of the catalog).
"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .entity import Product


class ProductRepository(ABC):

    @abstractmethod
    async def get_by_id(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        """Load products in one round trip, keyed by id. Missing ids are absent."""
        pass

    @abstractmethod
    async def reserve(self, product_id: str, quantity: int) -> bool:
        """stock -= quantity, sales += quantity, only while stock >= quantity.

        Returns False when the conditional update matched no row.
        """
        pass

    @abstractmethod
    async def release(self, product_id: str, quantity: int) -> None:
        """stock += quantity, sales -= quantity (sales never below zero)."""
        pass
