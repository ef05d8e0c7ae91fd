"""
Cart repository interface

Only the operations the ordering flows need: purge purchased lines after an
order and put lines back on reorder.
"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .entity import CartItem


class CartRepository(ABC):

    @abstractmethod
    async def get_or_create_cart_id(self, user_id: str) -> str:
        pass

    @abstractmethod
    async def get_item(self, cart_id: str, product_id: str) -> Optional[CartItem]:
        pass

    @abstractmethod
    async def upsert_item(self, cart_id: str, product_id: str, quantity: int) -> CartItem:
        """Set the line quantity, creating the line when missing."""
        pass

    @abstractmethod
    async def remove_products(self, user_id: str, product_ids: Iterable[str]) -> int:
        """Delete the user's cart lines for these products; returns rows removed."""
        pass
