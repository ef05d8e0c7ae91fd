"""
Order tables - SQLAlchemy ORM models

Mapping only; the rules live in domain.order.entity.Order.
"""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid

from .base import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = Column(String(40), unique=True, nullable=False, index=True, comment="ORD<ms><4 digits>")
    user_id = Column(String(36), nullable=False, index=True)

    status = Column(String(20), nullable=False, default="PENDING", index=True,
                    comment="PENDING/PROCESSING/SHIPPING/COMPLETED/CANCELLED")
    payment_status = Column(String(20), nullable=False, default="UNPAID", comment="UNPAID/PAID")
    payment_method = Column(String(20), nullable=False, comment="COD/BANK_TRANSFER/MOMO")

    subtotal = Column(Numeric(precision=15, scale=0), nullable=False)
    discount = Column(Numeric(precision=15, scale=0), nullable=False, default=0)
    shipping_fee = Column(Numeric(precision=15, scale=0), nullable=False, default=0)
    total = Column(Numeric(precision=15, scale=0), nullable=False)

    # Snapshot of the customer at checkout time
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(30), nullable=False)
    shipping_address = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)

    voucher_code = Column(String(50), nullable=True)
    voucher_id = Column(String(36), ForeignKey("vouchers.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(Text, nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )

    __table_args__ = (
        Index("ix_orders_user_created", "user_id", "created_at"),
        # timeout sweep predicate
        Index("ix_orders_sweep", "payment_method", "status", "payment_status", "created_at"),
    )

    def __repr__(self):
        return (
            f"<OrderModel(id='{self.id}', order_number='{self.order_number}', "
            f"status='{self.status}', payment_status='{self.payment_status}')>"
        )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    product_name = Column(String(255), nullable=False)
    product_sku = Column(String(100), nullable=False)
    price = Column(Numeric(precision=15, scale=0), nullable=False, comment="Unit price at purchase")
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Numeric(precision=15, scale=0), nullable=False)

    order = relationship("OrderModel", back_populates="items")
