"""
Payments API routes.

MoMo webhook and return-redirect endpoints. Keep this thin: signature and
order reconciliation live in the application service.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import Principal, get_optional_principal, get_order_service, get_payment_service
from application.dtos.payments import MomoIpnPayload
from application.services.order_service import OrderApplicationService
from application.services.payment_service import PaymentApplicationService
from core.i18n import t
from core.logging_config import get_logger
from core.response import success_response
from domain.common.exceptions import OrderAlreadyPaidException


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


@router.post("/momo/ipn", summary="MoMo IPN webhook")
async def momo_ipn(
    payload: MomoIpnPayload,
    service: PaymentApplicationService = Depends(get_payment_service),
):
    """
    Server-to-server notification from MoMo.

    The acknowledgement uses MoMo's own shape, not the response envelope.
    Integrity failures (partner, signature, amount, unknown or expired order)
    are answered with 4xx through the global handlers.
    """
    ack = await service.handle_ipn(payload)
    return ack.model_dump(by_alias=True)


@router.get("/momo/return", summary="MoMo return redirect")
async def momo_return(
    result_code: int = Query(..., alias="resultCode"),
    message: str = Query("", alias="message"),
    extra_data: Optional[str] = Query(None, alias="extraData"),
    principal: Optional[Principal] = Depends(get_optional_principal),
    payments: PaymentApplicationService = Depends(get_payment_service),
    orders: OrderApplicationService = Depends(get_order_service),
):
    """
    Interpret the browser redirect. The query string is unsigned here, so it
    only triggers the owner's confirm call; the IPN stays authoritative.
    """
    outcome = payments.parse_return(result_code, message, extra_data)
    data = outcome.model_dump(by_alias=True)
    data["confirmed"] = False

    if outcome.should_confirm and principal is not None:
        try:
            order = await orders.confirm_payment(outcome.order_id, principal.user_id)
            data["order"] = order.model_dump()
        except OrderAlreadyPaidException:
            # the IPN got there first
            logger.info("momo_return_already_paid", order_id=outcome.order_id)
        data["confirmed"] = True

    if outcome.should_confirm:
        return success_response(data=data, message=t("Payment successful"))
    return success_response(data=data, message=t("Payment was not completed"))
