"""
Order API routes
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Security

from api.dependencies import Principal, get_current_principal, get_order_service, get_payment_service, require_admin
from application.dtos.orders import (
    CancelOrderDTO,
    CreateOrderDTO,
    OrderDTO,
    OrderWithPaymentDTO,
    ReorderResultDTO,
    SweepExpiredDTO,
    SweepResultDTO,
    UpdateOrderStatusDTO,
)
from application.services.order_service import OrderApplicationService
from application.services.payment_service import PaymentApplicationService
from core.config import settings
from core.i18n import t
from core.response import PaginatedData, Response as ApiResponse, paginated_response, success_response


router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", summary="Place an order", response_model=ApiResponse[OrderWithPaymentDTO], status_code=201)
async def create_order(
    payload: CreateOrderDTO,
    principal: Principal = Depends(get_current_principal),
    service: OrderApplicationService = Depends(get_order_service),
):
    """
    Create an order from the selected cart lines.

    Stock, voucher usage and cart cleanup commit together. For MoMo the
    response also carries the wallet payment URL; if MoMo rejects the request
    the order stays PENDING and can be paid later via /momo-pay.
    """
    result = await service.create_order(principal.user_id, payload)
    return success_response(data=result, message=t("Order created"))


@router.get("/my-orders", summary="List my orders", response_model=ApiResponse[PaginatedData[OrderDTO]])
async def list_my_orders(
    page: int = Query(1, ge=1),
    size: int = Query(settings.order.default_page_size, ge=1, le=settings.MAX_PAGE_SIZE),
    principal: Principal = Depends(get_current_principal),
    service: OrderApplicationService = Depends(get_order_service),
):
    orders, total = await service.list_orders(principal.user_id, page=page, size=size)
    return paginated_response(items=orders, total=total, page=page, size=size)


@router.post(
    "/auto-cancel-expired-momo",
    summary="Cancel expired MoMo orders",
    response_model=ApiResponse[SweepResultDTO],
)
async def auto_cancel_expired_momo(
    payload: Optional[SweepExpiredDTO] = Body(None),
    timeout_minutes: Optional[int] = Query(None, ge=1, alias="timeoutMinutes"),
    _admin: Principal = Security(require_admin),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    """Same job the scheduler runs; exposed for operators."""
    timeout = timeout_minutes if timeout_minutes is not None else (payload.timeout_minutes if payload else None)
    result = await service.sweep_expired_momo_orders(timeout_minutes=timeout)
    return success_response(data=result, message=t("Expired MoMo orders cancelled"))


@router.get("/{order_id}", summary="Order detail", response_model=ApiResponse[OrderDTO])
async def get_order(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.get_order(order_id, principal.user_id, is_admin=principal.is_admin)
    return success_response(data=order)


@router.put("/{order_id}/cancel", summary="Cancel my order", response_model=ApiResponse[OrderDTO])
async def cancel_order(
    order_id: str,
    payload: Optional[CancelOrderDTO] = Body(None),
    principal: Principal = Depends(get_current_principal),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.cancel_order(order_id, principal.user_id, payload.reason if payload else None)
    return success_response(data=order, message=t("Order cancelled"))


@router.post("/{order_id}/confirm-payment", summary="Confirm payment", response_model=ApiResponse[OrderDTO])
async def confirm_payment(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.confirm_payment(order_id, principal.user_id)
    return success_response(data=order, message=t("Payment confirmed"))


@router.post("/{order_id}/momo-pay", summary="Pay an existing order with MoMo", response_model=ApiResponse[OrderWithPaymentDTO])
async def momo_pay(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    service: OrderApplicationService = Depends(get_order_service),
):
    result = await service.create_momo_payment(order_id, principal.user_id)
    return success_response(data=result)


@router.post("/{order_id}/reorder", summary="Copy order items to cart", response_model=ApiResponse[ReorderResultDTO])
async def reorder(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    service: OrderApplicationService = Depends(get_order_service),
):
    result = await service.reorder(order_id, principal.user_id)
    return success_response(data=result, message=t("Items added to cart"))


@router.put("/{order_id}/status", summary="Update order status (admin)", response_model=ApiResponse[OrderDTO])
async def update_status(
    order_id: str,
    payload: UpdateOrderStatusDTO,
    _admin: Principal = Security(require_admin),
    service: OrderApplicationService = Depends(get_order_service),
):
    order = await service.update_status(order_id, payload.status, payload.reason)
    return success_response(data=order, message=t("Order status updated"))
