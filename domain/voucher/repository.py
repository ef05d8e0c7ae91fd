"""
Voucher repository interface
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Voucher


class VoucherRepository(ABC):

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[Voucher]:
        """Exact, case-sensitive lookup."""
        pass

    @abstractmethod
    async def redeem(self, voucher_id: str) -> bool:
        """Increment used_count while it is below usage_limit.

        Returns False when the voucher was exhausted concurrently.
        """
        pass
