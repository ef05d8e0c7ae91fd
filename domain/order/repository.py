"""
Order repository interface
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entity import Order, OrderStatus, PaymentMethod, PaymentStatus


class OrderRepository(ABC):

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """Persist the order together with its items."""
        pass

    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_by_order_number(self, order_number: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str, skip: int = 0, limit: int = 10) -> List[Order]:
        pass

    @abstractmethod
    async def count_by_user(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def list_stale(
        self,
        payment_method: PaymentMethod,
        created_before: datetime,
    ) -> List[Order]:
        """PENDING/UNPAID orders of the given method created before the cutoff."""
        pass

    @abstractmethod
    async def save_transition(
        self,
        order: Order,
        expected_status: OrderStatus,
        expected_payment_status: PaymentStatus,
    ) -> bool:
        """
        Compare-and-swap write of the order's state fields.

        Applies only while the stored row still has the expected
        (status, payment_status); returns False when another writer won.
        """
        pass
