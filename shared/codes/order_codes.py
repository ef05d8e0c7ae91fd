"""
Order, catalog and voucher specific business codes (7xxxx).
"""
from __future__ import annotations

from enum import IntEnum


class OrderCode(IntEnum):
    # Order lifecycle (70xxx)
    ORDER_NOT_FOUND = 70000
    ORDER_EMPTY = 70001
    ORDER_NOT_OWNED = 70002
    ORDER_NOT_CANCELLABLE = 70003
    ORDER_ALREADY_PAID = 70004
    ORDER_INVALID_TRANSITION = 70005
    ORDER_PAYMENT_METHOD_MISMATCH = 70006
    REORDER_NOTHING_ADDED = 70007

    # Catalog / inventory (71xxx)
    PRODUCT_NOT_FOUND = 71000
    PRODUCT_INACTIVE = 71001
    INSUFFICIENT_STOCK = 71002

    # Vouchers (72xxx)
    VOUCHER_NOT_FOUND = 72000
    VOUCHER_INACTIVE = 72001
    VOUCHER_EXPIRED = 72002
    VOUCHER_USAGE_LIMIT_REACHED = 72003
    VOUCHER_MIN_ORDER_VALUE = 72004


__all__ = ["OrderCode"]
