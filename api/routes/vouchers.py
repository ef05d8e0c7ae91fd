"""
Voucher API routes
"""
from fastapi import APIRouter, Depends

from api.dependencies import Principal, get_current_principal, get_voucher_service
from application.dtos.vouchers import ValidateVoucherDTO, VoucherPreviewDTO
from application.services.voucher_service import VoucherApplicationService
from core.i18n import t
from core.response import Response as ApiResponse, success_response


router = APIRouter(prefix="/vouchers", tags=["Vouchers"])


@router.post("/validate", summary="Preview a voucher", response_model=ApiResponse[VoucherPreviewDTO])
async def validate_voucher(
    payload: ValidateVoucherDTO,
    _principal: Principal = Depends(get_current_principal),
    service: VoucherApplicationService = Depends(get_voucher_service),
):
    """Discount the voucher would give on this subtotal. Does not consume a use."""
    preview = await service.validate(payload)
    return success_response(data=preview, message=t("Voucher applied"))
