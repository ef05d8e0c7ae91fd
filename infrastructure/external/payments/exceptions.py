"""
Exceptions raised by wallet provider clients.

Both are payment-initiation failures from the caller's point of view.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import PaymentInitiationFailedException
from shared.codes.payment_codes import PaymentCode


class PaymentProviderError(PaymentInitiationFailedException):
    """Provider answered with something we cannot use."""

    def __init__(self, message: str, *, provider: str, order_id: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, order_id=order_id)
        self.code = PaymentCode.PROVIDER_ERROR
        self.error_type = "PaymentProviderError"
        self.details = {**(self.details or {}), "provider": provider, **(details or {})}


class PaymentRecoverableError(PaymentInitiationFailedException):
    """Transport failure or timeout after retries; paying again later may work."""

    def __init__(self, message: str, *, provider: str, order_id: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, order_id=order_id)
        self.code = PaymentCode.PROVIDER_RECOVERABLE
        self.error_type = "PaymentRecoverableError"
        self.details = {**(self.details or {}), "provider": provider, **(details or {})}
