"""Infrastructure models package exports."""
from .base import Base, metadata
from .product import ProductModel
from .voucher import VoucherModel
from .order import OrderModel, OrderItemModel
from .cart import CartModel, CartItemModel

__all__ = [
    "Base",
    "metadata",
    "ProductModel",
    "VoucherModel",
    "OrderModel",
    "OrderItemModel",
    "CartModel",
    "CartItemModel",
]
