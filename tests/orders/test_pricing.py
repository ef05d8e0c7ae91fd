from dataclasses import dataclass
from decimal import Decimal

from domain.order.pricing import (
    PricingCalculator,
    ShippingPolicy,
    calculate_shipping_fee,
    is_shop_pickup,
    normalize_address,
)
from domain.voucher.entity import DiscountType, Voucher
from datetime import datetime, timedelta, timezone


SHOP = "123 Nguyễn Huệ, Quận 1, TP.HCM"


@dataclass
class _Line:
    unit_price: Decimal
    quantity: int


def _voucher(**kw) -> Voucher:
    now = datetime.now(timezone.utc)
    base = dict(
        id="v1",
        code="SALE10",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal(10),
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=1),
    )
    base.update(kw)
    return Voucher(**base)


def test_shipping_fee_below_threshold_is_flat():
    policy = ShippingPolicy()
    assert calculate_shipping_fee(Decimal("999999"), False, policy) == Decimal("30000")


def test_shipping_fee_free_from_threshold():
    policy = ShippingPolicy()
    assert calculate_shipping_fee(Decimal("1000000"), False, policy) == 0


def test_pickup_is_free_even_for_small_orders():
    policy = ShippingPolicy(shop_address=SHOP)
    assert calculate_shipping_fee(Decimal("100000"), True, policy) == 0


def test_pickup_match_ignores_case_spacing_and_diacritics():
    assert is_shop_pickup("123 nguyen hue,  quan 1, tp.hcm", SHOP)
    assert is_shop_pickup("  123 NGUYỄN HUỆ, QUẬN 1, TP.HCM ", SHOP)
    assert not is_shop_pickup("456 Lê Lợi, Quận 1, TP.HCM", SHOP)


def test_pickup_never_matches_without_shop_address():
    assert not is_shop_pickup("anything", None)
    assert not is_shop_pickup("", "")


def test_pickup_keeps_diacritics_when_disabled():
    assert not is_shop_pickup("123 nguyen hue, quan 1, tp.hcm", SHOP, strip_accents=False)
    assert normalize_address("Đường Số 1") == "duongso1"


def test_quote_cod_order_over_threshold():
    calc = PricingCalculator(ShippingPolicy(shop_address=SHOP))
    quote = calc.quote([_Line(Decimal("1000000"), 2)], "12 Trần Hưng Đạo, Hà Nội")
    assert quote.subtotal == Decimal("2000000")
    assert quote.shipping_fee == 0
    assert quote.discount == 0
    assert quote.total == Decimal("2000000")
    assert not quote.is_pickup


def test_quote_small_order_pays_shipping():
    calc = PricingCalculator(ShippingPolicy(shop_address=SHOP))
    quote = calc.quote([_Line(Decimal("250000"), 2)], "12 Trần Hưng Đạo, Hà Nội")
    assert quote.shipping_fee == Decimal("30000")
    assert quote.total == Decimal("530000")


def test_quote_percentage_voucher_capped():
    calc = PricingCalculator(ShippingPolicy())
    voucher = _voucher(max_discount=Decimal(300000))
    quote = calc.quote([_Line(Decimal("5000000"), 1)], "somewhere", voucher)
    assert quote.discount == Decimal("300000")
    assert quote.total == Decimal("4700000")


def test_shipping_threshold_uses_subtotal_before_discount():
    calc = PricingCalculator(ShippingPolicy())
    voucher = _voucher(discount_type=DiscountType.FIXED, discount_value=Decimal(200000))
    quote = calc.quote([_Line(Decimal("1100000"), 1)], "somewhere", voucher)
    assert quote.shipping_fee == 0
    assert quote.total == Decimal("900000")


def test_total_identity_holds():
    calc = PricingCalculator(ShippingPolicy())
    voucher = _voucher(discount_type=DiscountType.FIXED, discount_value=Decimal(50000))
    quote = calc.quote([_Line(Decimal("120000"), 3), _Line(Decimal("45000"), 1)], "somewhere", voucher)
    assert quote.total == quote.subtotal - quote.discount + quote.shipping_fee
