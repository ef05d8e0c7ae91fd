"""
MoMo e-wallet adapter (v2 gateway, ``payWithMethod``).

Builds signed initiation requests, posts them with httpx and verifies IPN
signatures. Business decisions on the result live in the application layer.
"""
from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from application.dtos.payments import MomoIpnPayload, MomoPaymentRequest, MomoPaymentResult
from core.logging_config import get_logger
from core.settings import MomoSettings, payment_settings
from infrastructure.external.payments import signing
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
)
from shared.codes.payment_codes import describe_momo_result


logger = get_logger(__name__)


class MomoClient(BasePaymentClient):
    provider = "momo"

    def __init__(
        self,
        config: Optional[MomoSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            timeouts=payment_settings.timeouts.model_dump(),
            retry={"max": payment_settings.retry.max, "base": payment_settings.retry.base_backoff},
            transport=transport,
        )
        cfg = config or payment_settings.momo
        if not (cfg.partner_code and cfg.access_key and cfg.secret_key):
            raise RuntimeError("MOMO configuration incomplete (partner_code/access_key/secret_key)")
        self.config = cfg

    @property
    def partner_code(self) -> str:
        return self.config.partner_code

    def build_payment_request(self, req: MomoPaymentRequest, now_ms: Optional[int] = None) -> dict[str, Any]:
        """Signed JSON body for one attempt. Identifiers are unique per attempt."""
        millis = now_ms if now_ms is not None else int(time.time() * 1000)
        cfg = self.config
        values = {
            "accessKey": cfg.access_key,
            "amount": str(int(req.amount)),
            "extraData": signing.encode_extra_data(req.order_id),
            "ipnUrl": cfg.ipn_url,
            "orderId": f"{req.order_number}{signing.PROVIDER_ORDER_ID_SEPARATOR}{millis}",
            "orderInfo": req.order_info or f"Thanh toán đơn hàng {req.order_number}",
            "partnerCode": cfg.partner_code,
            "redirectUrl": cfg.redirect_url,
            "requestId": f"{req.order_id}-{millis}",
            "requestType": cfg.request_type,
        }
        signature = signing.sign(
            signing.ordered_fields(signing.INITIATION_SIGNATURE_FIELDS, values),
            cfg.secret_key,
        )
        return {
            "partnerCode": values["partnerCode"],
            "partnerName": cfg.partner_name,
            "storeId": cfg.store_id,
            "requestId": values["requestId"],
            "amount": values["amount"],
            "orderId": values["orderId"],
            "orderInfo": values["orderInfo"],
            "redirectUrl": values["redirectUrl"],
            "ipnUrl": values["ipnUrl"],
            "lang": cfg.lang,
            "requestType": values["requestType"],
            "autoCapture": cfg.auto_capture,
            "extraData": values["extraData"],
            "orderGroupId": "",
            "signature": signature,
        }

    async def create_payment(self, req: MomoPaymentRequest) -> MomoPaymentResult:
        payload = self.build_payment_request(req)
        self._log(
            "momo_create_request",
            order_id=req.order_id,
            provider_order_id=payload["orderId"],
            amount=payload["amount"],
        )

        async def _send() -> httpx.Response:
            async with self.client() as c:
                return await c.post(self.config.endpoint, json=payload)

        try:
            response = await self._retry(_send)
        except httpx.HTTPError as exc:
            logger.error("momo_create_transport_error", order_id=req.order_id, error=str(exc))
            raise PaymentRecoverableError(
                "MoMo is unreachable", provider=self.provider, order_id=req.order_id
            ) from exc

        # MoMo answers 4xx with a JSON body carrying resultCode
        try:
            body = response.json()
        except ValueError as exc:
            raise PaymentProviderError(
                "Malformed MoMo response",
                provider=self.provider,
                order_id=req.order_id,
                details={"http_status": response.status_code},
            ) from exc
        if not isinstance(body, dict) or "resultCode" not in body:
            raise PaymentProviderError(
                "MoMo response without resultCode",
                provider=self.provider,
                order_id=req.order_id,
                details={"http_status": response.status_code},
            )

        result_code = int(body["resultCode"])
        result = MomoPaymentResult(
            result_code=result_code,
            message=body.get("message") or describe_momo_result(result_code),
            pay_url=body.get("payUrl"),
            deeplink=body.get("deeplink"),
            qr_code_url=body.get("qrCodeUrl"),
            provider_order_id=payload["orderId"],
            request_id=payload["requestId"],
            amount=int(payload["amount"]),
        )
        self._log(
            "momo_create_response",
            order_id=req.order_id,
            provider_order_id=result.provider_order_id,
            result_code=result.result_code,
            http_status=response.status_code,
        )
        return result

    def verify_ipn(self, payload: MomoIpnPayload) -> bool:
        values = payload.signature_values()
        values["accessKey"] = self.config.access_key
        return signing.verify(
            signing.ordered_fields(signing.IPN_SIGNATURE_FIELDS, values),
            self.config.secret_key,
            payload.signature,
        )

    def decode_extra_data(self, token: Optional[str]) -> Optional[str]:
        return signing.decode_extra_data(token)

    def order_number_from_provider_id(self, provider_order_id: str) -> Optional[str]:
        return signing.order_number_from_provider_id(provider_order_id)
