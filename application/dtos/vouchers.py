"""
Voucher preview DTOs
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field
from pydantic.types import condecimal

from application.dtos.base import DTOBase
from domain.voucher.entity import DiscountType, Voucher


class ValidateVoucherDTO(DTOBase):
    code: str = Field(..., min_length=1, max_length=50)
    order_total: condecimal(ge=0) = Field(..., description="Cart subtotal in VND")  # type: ignore[valid-type]


class VoucherDTO(DTOBase):
    id: Optional[str]
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal
    min_order_value: Optional[int] = None
    max_discount: Optional[int] = None
    start_date: datetime
    end_date: datetime

    @classmethod
    def from_entity(cls, voucher: Voucher) -> "VoucherDTO":
        return cls(
            id=voucher.id,
            code=voucher.code,
            description=voucher.description,
            discount_type=voucher.discount_type,
            discount_value=voucher.discount_value,
            min_order_value=int(voucher.min_order_value) if voucher.min_order_value is not None else None,
            max_discount=int(voucher.max_discount) if voucher.max_discount is not None else None,
            start_date=voucher.start_date,
            end_date=voucher.end_date,
        )


class VoucherPreviewDTO(DTOBase):
    voucher: VoucherDTO
    discount: int
    final_total: int
