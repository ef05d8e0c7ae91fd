"""
Shopping cart line
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class CartItem:
    id: Optional[str]
    cart_id: str
    product_id: str
    quantity: int
