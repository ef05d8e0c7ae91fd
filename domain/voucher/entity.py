"""
Voucher entity - discount codes applied at checkout
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Voucher:
    """
    Discount voucher.

    Rules:
    1. discount_value is positive (a percentage is at most 100)
    2. max_discount only caps PERCENTAGE vouchers
    3. usage_limit None means unlimited
    """

    id: Optional[str]
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    start_date: datetime
    end_date: datetime
    min_order_value: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    is_active: bool = True
    description: Optional[str] = None

    def __post_init__(self):
        self.discount_type = DiscountType(self.discount_type)
        self.start_date = _ensure_utc(self.start_date)
        self.end_date = _ensure_utc(self.end_date)
        if self.discount_value <= 0:
            raise DomainValidationException(
                f"Voucher discount must be positive: {self.discount_value}",
                field="discount_value",
            )
        if self.discount_type is DiscountType.PERCENTAGE and self.discount_value > 100:
            raise DomainValidationException(
                f"Percentage discount cannot exceed 100: {self.discount_value}",
                field="discount_value",
            )
        if self.used_count < 0:
            raise DomainValidationException("used_count cannot be negative", field="used_count")

    def is_within_window(self, now: datetime) -> bool:
        now = _ensure_utc(now)
        return self.start_date <= now <= self.end_date

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit
