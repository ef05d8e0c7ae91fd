"""
MoMo payment DTOs (Pydantic v2) used at application boundaries.

Wire models keep MoMo's camelCase field names through aliases; Python code
uses snake_case.
"""
from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic.types import condecimal

from shared.codes.payment_codes import MOMO_RESULT_SUCCESS


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MomoPaymentRequest(BaseModel):
    """What the order flows hand to the gateway for one payment attempt."""

    order_id: str
    order_number: str
    amount: condecimal(gt=0)  # type: ignore[valid-type]
    order_info: Optional[str] = None


class MomoPaymentResult(_CamelModel):
    result_code: int
    message: str = ""
    pay_url: Optional[str] = None
    deeplink: Optional[str] = None
    qr_code_url: Optional[str] = None
    # attempt-scoped identifiers sent to MoMo
    provider_order_id: str
    request_id: str
    amount: int

    @property
    def is_success(self) -> bool:
        return self.result_code == MOMO_RESULT_SUCCESS


class MomoIpnPayload(_CamelModel):
    """Server-to-server notification body."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    partner_code: str
    order_id: str
    request_id: str
    amount: int
    order_info: str = ""
    order_type: str = ""
    trans_id: Union[int, str, None] = None
    result_code: int
    message: str = ""
    pay_type: str = ""
    response_time: Union[int, str, None] = None
    extra_data: str = ""
    signature: str = ""

    def signature_values(self) -> dict[str, str]:
        """camelCase field -> string value, as MoMo renders them when signing."""
        values = self.model_dump(by_alias=True, exclude={"signature"})
        return {key: "" if value is None else str(value) for key, value in values.items()}


class MomoIpnAck(_CamelModel):
    """Acknowledgement envelope MoMo expects back."""

    partner_code: str
    order_id: str
    request_id: str
    error_code: int = 0
    message: str


class MomoReturnOutcome(_CamelModel):
    """Interpretation of the browser return redirect. Never authoritative."""

    order_id: Optional[str] = None
    result_code: int
    message: str = ""
    should_confirm: bool = False
