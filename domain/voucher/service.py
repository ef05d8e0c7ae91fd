"""
Voucher evaluation - eligibility checks and discount computation
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from domain.common.exceptions import (
    VoucherExpiredException,
    VoucherInactiveException,
    VoucherMinOrderValueException,
    VoucherNotFoundException,
    VoucherUsageLimitReachedException,
)

from .entity import DiscountType, Voucher


_VND = Decimal("1")


class VoucherEvaluator:
    """
    Pure voucher rules.

    The evaluator never touches used_count; redemption is the repository's
    conditional increment, performed in the order-creation transaction.
    """

    def validate(
        self,
        voucher: Optional[Voucher],
        code: str,
        order_total: Decimal,
        now: Optional[datetime] = None,
    ) -> Voucher:
        """Check eligibility in a fixed order, raising the first failure."""
        now = now or datetime.now(timezone.utc)
        if voucher is None:
            raise VoucherNotFoundException(code)
        if not voucher.is_active:
            raise VoucherInactiveException(code)
        if not voucher.is_within_window(now):
            raise VoucherExpiredException(code)
        if voucher.is_exhausted:
            raise VoucherUsageLimitReachedException(code)
        if voucher.min_order_value is not None and order_total < voucher.min_order_value:
            raise VoucherMinOrderValueException(code, voucher.min_order_value)
        return voucher

    def compute_discount(self, voucher: Voucher, subtotal: Decimal) -> Decimal:
        """Discount in whole VND, capped by max_discount and by the subtotal."""
        if voucher.discount_type is DiscountType.PERCENTAGE:
            discount = subtotal * voucher.discount_value / Decimal(100)
            if voucher.max_discount is not None and discount > voucher.max_discount:
                discount = voucher.max_discount
        else:
            discount = voucher.discount_value
        discount = min(discount, subtotal)
        return max(discount, Decimal(0)).quantize(_VND, rounding=ROUND_HALF_UP)

    def evaluate(
        self,
        voucher: Optional[Voucher],
        code: str,
        order_total: Decimal,
        now: Optional[datetime] = None,
    ) -> Decimal:
        checked = self.validate(voucher, code, order_total, now)
        return self.compute_discount(checked, order_total)
