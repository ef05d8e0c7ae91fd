"""Business exceptions raised by the domain and application layers.

The core layer only maps them to HTTP responses; nothing here imports core.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional
from shared.codes import BusinessCode
from shared.codes.order_codes import OrderCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """Base class for business errors"""

    # HTTP status class used by the global handler
    http_status: int = 400

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
        message_key: Optional[str] = None,
        format_params: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        self.message_key = message_key
        self.format_params = format_params
        super().__init__(self.message)


class NotFoundException(BusinessException):
    http_status = 404


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
        message_key: str | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
            message_key=message_key or "validation.domain",
        )


# ---------------------------------------------------------------- orders

class OrderNotFoundException(NotFoundException):
    def __init__(self, order_ref: Optional[str] = None):
        super().__init__(
            code=OrderCode.ORDER_NOT_FOUND,
            message="Order not found",
            error_type="OrderNotFound",
            details={"order": order_ref} if order_ref else None,
            message_key="order.not_found",
        )


class EmptyOrderException(BusinessException):
    def __init__(self):
        super().__init__(
            code=OrderCode.ORDER_EMPTY,
            message="No items selected",
            error_type="EmptyOrder",
            field="items",
            message_key="order.items.empty",
        )


class OrderAccessDeniedException(BusinessException):
    """The order belongs to someone else."""

    http_status = 403

    def __init__(self, order_id: str):
        super().__init__(
            code=OrderCode.ORDER_NOT_OWNED,
            message="Not allowed",
            error_type="OrderAccessDenied",
            details={"order_id": order_id},
            message_key="order.not_owned",
        )


class OrderNotCancellableException(BusinessException):
    def __init__(self, order_id: str, status: str):
        super().__init__(
            code=OrderCode.ORDER_NOT_CANCELLABLE,
            message="Only pending orders can be cancelled",
            error_type="OrderNotCancellable",
            details={"order_id": order_id, "status": status},
            message_key="order.cancel.not_pending",
        )


class OrderAlreadyPaidException(BusinessException):
    http_status = 409

    def __init__(self, order_id: str):
        super().__init__(
            code=OrderCode.ORDER_ALREADY_PAID,
            message="Order already paid",
            error_type="OrderAlreadyPaid",
            details={"order_id": order_id},
            message_key="order.already_paid",
        )


class InvalidOrderTransitionException(BusinessException):
    http_status = 409

    def __init__(self, order_id: Optional[str], current: str, target: str):
        super().__init__(
            code=OrderCode.ORDER_INVALID_TRANSITION,
            message=f"Order cannot move from {current} to {target}",
            error_type="InvalidOrderTransition",
            details={"order_id": order_id, "from": current, "to": target},
            message_key="order.transition.invalid",
        )


class PaymentMethodMismatchException(BusinessException):
    def __init__(self, order_id: str, method: str):
        super().__init__(
            code=OrderCode.ORDER_PAYMENT_METHOD_MISMATCH,
            message="Order payment method is not MoMo",
            error_type="PaymentMethodMismatch",
            details={"order_id": order_id, "payment_method": method},
            message_key="order.payment_method.not_momo",
        )


class NothingToReorderException(BusinessException):
    def __init__(self, order_id: str):
        super().__init__(
            code=OrderCode.REORDER_NOTHING_ADDED,
            message="None of the products could be added back to the cart",
            error_type="NothingToReorder",
            details={"order_id": order_id},
            message_key="order.reorder.nothing_added",
        )


# ---------------------------------------------------------------- catalog

class ProductNotFoundException(BusinessException):
    """Raised as a 400: stale cart data is a client-correctable problem."""

    def __init__(self, product_ids: list[str]):
        super().__init__(
            code=OrderCode.PRODUCT_NOT_FOUND,
            message="Some products do not exist",
            error_type="ProductNotFound",
            details={"product_ids": product_ids},
            field="items",
            message_key="product.not_found",
        )


class ProductInactiveException(BusinessException):
    def __init__(self, product_id: str, name: str):
        super().__init__(
            code=OrderCode.PRODUCT_INACTIVE,
            message=f"Product {name} is not available",
            error_type="ProductInactive",
            details={"product_id": product_id},
            field="items",
            message_key="product.inactive",
        )


class InsufficientStockException(BusinessException):
    def __init__(self, product_id: str, name: str, available: int, requested: int):
        super().__init__(
            code=OrderCode.INSUFFICIENT_STOCK,
            message=f"Product {name} is out of stock (only {available} left)",
            error_type="InsufficientStock",
            details={"product_id": product_id, "available": available, "requested": requested},
            field="items",
            message_key="product.out_of_stock",
        )


# ---------------------------------------------------------------- vouchers

class VoucherNotFoundException(BusinessException):
    def __init__(self, code: str):
        super().__init__(
            code=OrderCode.VOUCHER_NOT_FOUND,
            message="Invalid voucher code",
            error_type="VoucherNotFound",
            details={"voucher_code": code},
            field="voucher_code",
            message_key="voucher.not_found",
        )


class VoucherInactiveException(BusinessException):
    def __init__(self, code: str):
        super().__init__(
            code=OrderCode.VOUCHER_INACTIVE,
            message="Voucher is not active",
            error_type="VoucherInactive",
            details={"voucher_code": code},
            field="voucher_code",
            message_key="voucher.inactive",
        )


class VoucherExpiredException(BusinessException):
    def __init__(self, code: str):
        super().__init__(
            code=OrderCode.VOUCHER_EXPIRED,
            message="Voucher is expired",
            error_type="VoucherExpired",
            details={"voucher_code": code},
            field="voucher_code",
            message_key="voucher.expired",
        )


class VoucherUsageLimitReachedException(BusinessException):
    def __init__(self, code: str):
        super().__init__(
            code=OrderCode.VOUCHER_USAGE_LIMIT_REACHED,
            message="Voucher usage limit reached",
            error_type="VoucherUsageLimitReached",
            details={"voucher_code": code},
            field="voucher_code",
            message_key="voucher.usage_limit",
        )


class VoucherMinOrderValueException(BusinessException):
    def __init__(self, code: str, min_order_value: Decimal):
        super().__init__(
            code=OrderCode.VOUCHER_MIN_ORDER_VALUE,
            message=f"Minimum order value of {min_order_value} required",
            error_type="VoucherMinOrderValue",
            details={"voucher_code": code, "min_order_value": str(min_order_value)},
            field="voucher_code",
            message_key="voucher.min_order_value",
        )


# ---------------------------------------------------------------- payments

class PaymentInitiationFailedException(BusinessException):
    """Wallet provider refused (or could not be reached for) a payment request."""

    def __init__(self, message: str, *, result_code: Optional[int] = None, order_id: Optional[str] = None):
        super().__init__(
            code=PaymentCode.INITIATION_FAILED,
            message=f"MoMo payment init failed: {message}",
            error_type="PaymentInitiationFailed",
            details={"result_code": result_code, "order_id": order_id},
            message_key="payment.initiation_failed",
        )


class PaymentGatewayNotConfiguredException(BusinessException):
    def __init__(self, provider: str = "momo"):
        super().__init__(
            code=PaymentCode.NOT_CONFIGURED,
            message="MoMo is not configured",
            error_type="PaymentGatewayNotConfigured",
            details={"provider": provider},
            message_key="payment.not_configured",
        )


class PaymentIntegrityException(BusinessException):
    """Structural rejection of a provider callback; never mutates state."""


class PartnerCodeMismatchException(PaymentIntegrityException):
    def __init__(self, partner_code: Optional[str]):
        super().__init__(
            code=PaymentCode.PARTNER_MISMATCH,
            message="Invalid partnerCode",
            error_type="PartnerCodeMismatch",
            details={"partner_code": partner_code},
            message_key="payment.ipn.partner_mismatch",
        )


class SignatureMismatchException(PaymentIntegrityException):
    def __init__(self):
        super().__init__(
            code=PaymentCode.SIGNATURE_ERROR,
            message="Invalid signature",
            error_type="SignatureMismatch",
            message_key="payment.ipn.signature_invalid",
        )


class AmountMismatchException(PaymentIntegrityException):
    def __init__(self, order_id: str, reported: str, expected: str):
        super().__init__(
            code=PaymentCode.AMOUNT_MISMATCH,
            message="Amount mismatch",
            error_type="AmountMismatch",
            details={"order_id": order_id, "reported": reported, "expected": expected},
            message_key="payment.ipn.amount_mismatch",
        )


class OrderExpiredException(PaymentIntegrityException):
    def __init__(self, order_id: str):
        super().__init__(
            code=PaymentCode.ORDER_EXPIRED,
            message="Order expired",
            error_type="OrderExpired",
            details={"order_id": order_id},
            message_key="payment.ipn.order_expired",
        )
