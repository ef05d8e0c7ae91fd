"""
Voucher repository - SQLAlchemy implementation
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.voucher.entity import DiscountType, Voucher
from domain.voucher.repository import VoucherRepository
from infrastructure.models.voucher import VoucherModel


logger = get_logger(__name__)


def _decimal_or_none(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


class SQLAlchemyVoucherRepository(VoucherRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: VoucherModel) -> Voucher:
        return Voucher(
            id=model.id,
            code=model.code,
            description=model.description,
            discount_type=DiscountType(model.discount_type),
            discount_value=Decimal(str(model.discount_value)),
            min_order_value=_decimal_or_none(model.min_order_value),
            max_discount=_decimal_or_none(model.max_discount),
            usage_limit=model.usage_limit,
            used_count=model.used_count,
            start_date=model.start_date,
            end_date=model.end_date,
            is_active=model.is_active,
        )

    async def get_by_code(self, code: str) -> Optional[Voucher]:
        result = await self.session.execute(
            select(VoucherModel)
            .where(VoucherModel.code == code)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def redeem(self, voucher_id: str) -> bool:
        result = await self.session.execute(
            update(VoucherModel)
            .where(
                VoucherModel.id == voucher_id,
                or_(
                    VoucherModel.usage_limit.is_(None),
                    VoucherModel.used_count < VoucherModel.usage_limit,
                ),
            )
            .values(used_count=VoucherModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        redeemed = result.rowcount == 1
        if redeemed:
            logger.info("voucher_redeemed", voucher_id=voucher_id)
        else:
            logger.warning("voucher_redeem_conflict", voucher_id=voucher_id)
        return redeemed
