"""
Voucher table - SQLAlchemy ORM model
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text
from datetime import datetime, timezone
import uuid

from .base import Base


class VoucherModel(Base):
    __tablename__ = "vouchers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(50), unique=True, nullable=False, index=True, comment="Case-sensitive code")
    description = Column(Text, nullable=True)
    discount_type = Column(String(20), nullable=False, comment="PERCENTAGE/FIXED")
    discount_value = Column(Numeric(precision=15, scale=2), nullable=False)
    min_order_value = Column(Numeric(precision=15, scale=0), nullable=True)
    max_discount = Column(Numeric(precision=15, scale=0), nullable=True, comment="Caps PERCENTAGE discounts")
    usage_limit = Column(Integer, nullable=True, comment="NULL = unlimited")
    used_count = Column(Integer, nullable=False, default=0)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self):
        return f"<VoucherModel(code='{self.code}', used={self.used_count}/{self.usage_limit})>"
