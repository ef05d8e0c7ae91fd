"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from application.dtos.payments import MomoIpnPayload, MomoPaymentRequest, MomoPaymentResult


@runtime_checkable
class PaymentGateway(Protocol):
    """Wallet provider contract.

    create_payment performs IO; everything else is pure.
    """

    provider: str
    partner_code: str

    async def create_payment(self, req: MomoPaymentRequest) -> MomoPaymentResult: ...

    def verify_ipn(self, payload: MomoIpnPayload) -> bool: ...

    def decode_extra_data(self, token: Optional[str]) -> Optional[str]: ...

    def order_number_from_provider_id(self, provider_order_id: str) -> Optional[str]: ...
