"""
Product table (ordering view) - SQLAlchemy ORM model
"""
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String
from datetime import datetime, timezone
import uuid

from .base import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, comment="Product name")
    sku = Column(String(100), unique=True, nullable=False, index=True, comment="Stock keeping unit")
    price = Column(Numeric(precision=15, scale=0), nullable=False, comment="Regular price (VND)")
    sale_price = Column(Numeric(precision=15, scale=0), nullable=True, comment="Sale price (VND)")
    stock = Column(Integer, nullable=False, default=0, comment="Units on hand")
    sales = Column(Integer, nullable=False, default=0, comment="Units sold")
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("sales >= 0", name="ck_products_sales_non_negative"),
    )

    def __repr__(self):
        return f"<ProductModel(id='{self.id}', sku='{self.sku}', stock={self.stock})>"
