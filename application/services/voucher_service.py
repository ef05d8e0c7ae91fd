"""
Voucher application service - side-effect-free checkout preview
"""
from __future__ import annotations

from typing import Callable

from application.dtos.vouchers import ValidateVoucherDTO, VoucherDTO, VoucherPreviewDTO
from core.logging_config import get_logger
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.pricing import PricingCalculator, to_vnd


logger = get_logger(__name__)


class VoucherApplicationService:

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork], pricing: PricingCalculator):
        self._uow_factory = uow_factory
        self._pricing = pricing

    async def validate(self, dto: ValidateVoucherDTO) -> VoucherPreviewDTO:
        """Same evaluator and rounding as order creation; never redeems."""
        order_total = to_vnd(dto.order_total)
        async with self._uow_factory(readonly=True) as uow:
            voucher = await uow.voucher_repository.get_by_code(dto.code)
        evaluator = self._pricing.voucher_evaluator
        evaluator.validate(voucher, dto.code, order_total)
        discount = self._pricing.discount_for(voucher, order_total)
        final_total = max(order_total - discount, 0)
        logger.info("voucher_previewed", code=dto.code, order_total=str(order_total), discount=str(discount))
        return VoucherPreviewDTO(
            voucher=VoucherDTO.from_entity(voucher),
            discount=int(discount),
            final_total=int(final_total),
        )
