"""
Product entity as seen by the ordering core.

Catalog management lives elsewhere; only the fields needed for pricing and
inventory bookkeeping are modelled here.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class Product:
    id: str
    name: str
    sku: str
    price: Decimal
    sale_price: Optional[Decimal] = None
    stock: int = 0
    sales: int = 0
    is_active: bool = True

    @property
    def effective_price(self) -> Decimal:
        """Sale price when set, regular price otherwise."""
        if self.sale_price is not None and self.sale_price > 0:
            return self.sale_price
        return self.price

    def can_supply(self, quantity: int) -> bool:
        return self.is_active and self.stock >= quantity
