"""
Order DTOs (Pydantic v2)
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, ConfigDict, EmailStr, Field, field_validator

from application.dtos.base import DTOBase
from application.dtos.payments import MomoPaymentResult
from domain.order.entity import Order, OrderStatus, PaymentMethod, PaymentStatus


class OrderLineDTO(DTOBase):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class CreateOrderDTO(DTOBase):
    # emptiness is a business error, not a schema error
    items: list[OrderLineDTO] = Field(default_factory=list)
    payment_method: PaymentMethod
    shipping_address: str = Field(..., min_length=1, max_length=500)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=6, max_length=30)
    voucher_code: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)
    # cart lines to clear after purchase; defaults to the purchased products
    selected_product_ids: Optional[list[str]] = None

    @field_validator("voucher_code")
    @classmethod
    def _blank_voucher_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class OrderItemDTO(DTOBase):
    id: Optional[str] = None
    product_id: str
    product_name: str
    product_sku: str
    price: int
    quantity: int
    subtotal: int


class OrderDTO(DTOBase):
    id: str
    order_number: str
    user_id: str
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    subtotal: int
    discount: int
    shipping_fee: int
    total: int
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    notes: Optional[str] = None
    voucher_code: Optional[str] = None
    items: list[OrderItemDTO] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_entity(cls, order: Order) -> "OrderDTO":
        return cls(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            subtotal=int(order.subtotal),
            discount=int(order.discount),
            shipping_fee=int(order.shipping_fee),
            total=int(order.total),
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            shipping_address=order.shipping_address,
            notes=order.notes,
            voucher_code=order.voucher_code,
            items=[
                OrderItemDTO(
                    id=item.id,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    price=int(item.price),
                    quantity=item.quantity,
                    subtotal=int(item.subtotal),
                )
                for item in order.items
            ],
            created_at=order.created_at,
            updated_at=order.updated_at,
            completed_at=order.completed_at,
            cancelled_at=order.cancelled_at,
            cancel_reason=order.cancel_reason,
        )


class OrderWithPaymentDTO(DTOBase):
    """create-order / momo-pay result; momo is None for COD and bank transfer."""

    order: OrderDTO
    momo: Optional[MomoPaymentResult] = None


class CancelOrderDTO(DTOBase):
    reason: Optional[str] = Field(None, max_length=500)


class UpdateOrderStatusDTO(DTOBase):
    status: OrderStatus
    reason: Optional[str] = Field(None, max_length=500)


class SweepExpiredDTO(DTOBase):
    timeout_minutes: Optional[int] = Field(
        None, ge=1, validation_alias=AliasChoices("timeoutMinutes", "timeout_minutes")
    )


class SweepResultDTO(DTOBase):
    cancelled_count: int
    timeout_minutes: int


class ReorderLineDTO(DTOBase):
    product_id: str
    product_name: str
    quantity: int


class ReorderResultDTO(DTOBase):
    added: list[ReorderLineDTO]
    skipped: list[str] = Field(default_factory=list, description="product ids not carried over")
