"""
Pricing calculator - subtotal, voucher discount, shipping fee and total.

Pure functions only; the voucher preview endpoint and order creation both
go through PricingCalculator so they agree on every amount.
"""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Protocol

from domain.voucher.entity import Voucher
from domain.voucher.service import VoucherEvaluator


_VND = Decimal("1")
ZERO = Decimal("0")


def to_vnd(amount) -> Decimal:
    """Quantize to whole VND."""
    return Decimal(amount).quantize(_VND, rounding=ROUND_HALF_UP)


def strip_diacritics(value: str) -> str:
    # đ/Đ are standalone letters, not composed characters
    value = value.replace("đ", "d").replace("Đ", "D")
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_address(address: Optional[str], strip_accents: bool = True) -> str:
    if not address:
        return ""
    normalized = "".join(address.split()).casefold()
    if strip_accents:
        normalized = strip_diacritics(normalized)
    return normalized


def is_shop_pickup(
    shipping_address: Optional[str],
    shop_address: Optional[str],
    strip_accents: bool = True,
) -> bool:
    shop = normalize_address(shop_address, strip_accents)
    if not shop:
        return False
    return normalize_address(shipping_address, strip_accents) == shop


@dataclass(frozen=True)
class ShippingPolicy:
    free_shipping_threshold: Decimal = Decimal("1000000")
    flat_fee: Decimal = Decimal("30000")
    shop_address: Optional[str] = None
    strip_diacritics: bool = True

    @classmethod
    def from_settings(cls, settings) -> "ShippingPolicy":
        return cls(
            free_shipping_threshold=Decimal(settings.order.free_shipping_threshold),
            flat_fee=Decimal(settings.order.flat_shipping_fee),
            shop_address=settings.shop.address,
            strip_diacritics=settings.order.strip_address_diacritics,
        )


def calculate_shipping_fee(subtotal: Decimal, pickup: bool, policy: ShippingPolicy) -> Decimal:
    if pickup:
        return ZERO
    if subtotal >= policy.free_shipping_threshold:
        return ZERO
    return to_vnd(policy.flat_fee)


class PricedLine(Protocol):
    quantity: int

    @property
    def unit_price(self) -> Decimal: ...


@dataclass(frozen=True)
class PriceQuote:
    subtotal: Decimal
    discount: Decimal
    shipping_fee: Decimal
    total: Decimal
    is_pickup: bool


class PricingCalculator:
    def __init__(self, policy: ShippingPolicy, voucher_evaluator: Optional[VoucherEvaluator] = None):
        self.policy = policy
        self.voucher_evaluator = voucher_evaluator or VoucherEvaluator()

    @staticmethod
    def subtotal(lines: Iterable[PricedLine]) -> Decimal:
        return to_vnd(sum((line.unit_price * line.quantity for line in lines), ZERO))

    def discount_for(self, voucher: Optional[Voucher], subtotal: Decimal) -> Decimal:
        if voucher is None:
            return ZERO
        return self.voucher_evaluator.compute_discount(voucher, subtotal)

    def quote(
        self,
        lines: Iterable[PricedLine],
        shipping_address: Optional[str],
        voucher: Optional[Voucher] = None,
    ) -> PriceQuote:
        subtotal = self.subtotal(lines)
        discount = self.discount_for(voucher, subtotal)
        pickup = is_shop_pickup(shipping_address, self.policy.shop_address, self.policy.strip_diacritics)
        shipping_fee = calculate_shipping_fee(subtotal, pickup, self.policy)
        total = max(subtotal - discount, ZERO) + shipping_fee
        return PriceQuote(
            subtotal=subtotal,
            discount=discount,
            shipping_fee=shipping_fee,
            total=to_vnd(total),
            is_pickup=pickup,
        )
