"""
API dependencies - authentication and service wiring
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from application.ports.notifier import Notifier
from application.ports.payment_gateway import PaymentGateway
from application.services.order_service import OrderApplicationService
from application.services.payment_service import PaymentApplicationService
from application.services.voucher_service import VoucherApplicationService
from core.config import settings
from core.exceptions import ForbiddenException, TokenExpiredException, UnauthorizedException
from core.logging_config import get_logger
from domain.order.pricing import PricingCalculator, ShippingPolicy
from infrastructure.external.payments import get_payment_gateway
from infrastructure.notifications import CeleryNotifier
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


logger = get_logger(__name__)

http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT issued by the account service",
    auto_error=False,
)


@dataclass(frozen=True)
class Principal:
    """Caller identity taken from the access token."""

    user_id: str
    email: Optional[str] = None
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def decode_access_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredException()
    except jwt.PyJWTError as e:
        logger.warning("invalid_access_token", error=str(e))
        raise UnauthorizedException("Invalid authentication credentials")

    user_id = payload.get("sub") or payload.get("userId")
    if not user_id:
        raise UnauthorizedException("Token has no subject")
    return Principal(
        user_id=str(user_id),
        email=payload.get("email"),
        role=str(payload.get("role") or "user").lower(),
    )


async def get_optional_principal(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Optional[Principal]:
    if bearer_token is None or not bearer_token.credentials:
        return None
    return decode_access_token(bearer_token.credentials)


async def get_current_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise UnauthorizedException("No authentication credentials provided")
    return principal


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenException()
    return principal


# ---------------------------------------------------------------- services

@lru_cache(maxsize=1)
def get_pricing_calculator() -> PricingCalculator:
    return PricingCalculator(ShippingPolicy.from_settings(settings))


def get_notifier() -> Notifier:
    return CeleryNotifier()


@lru_cache(maxsize=1)
def _momo_gateway() -> PaymentGateway:
    # one client per process so the httpx connection pool is reused
    return get_payment_gateway("momo")


def get_gateway() -> Optional[PaymentGateway]:
    """MoMo client, or None while credentials are missing (MoMo flows then fail with 400)."""
    try:
        return _momo_gateway()
    except RuntimeError as exc:
        logger.warning("momo_gateway_unavailable", error=str(exc))
        return None


async def close_gateway() -> None:
    """Release the cached MoMo client's connection pool (application shutdown)."""
    if _momo_gateway.cache_info().currsize == 0:
        return
    gateway = _momo_gateway()
    _momo_gateway.cache_clear()
    aclose = getattr(gateway, "aclose", None)
    if aclose is not None:
        await aclose()
        logger.info("momo_gateway_closed")


async def get_order_service(
    notifier: Notifier = Depends(get_notifier),
    gateway: Optional[PaymentGateway] = Depends(get_gateway),
) -> OrderApplicationService:
    return OrderApplicationService(
        uow_factory=SQLAlchemyUnitOfWork,
        pricing=get_pricing_calculator(),
        notifier=notifier,
        gateway=gateway,
    )


async def get_payment_service(
    notifier: Notifier = Depends(get_notifier),
    gateway: Optional[PaymentGateway] = Depends(get_gateway),
) -> PaymentApplicationService:
    return PaymentApplicationService(
        uow_factory=SQLAlchemyUnitOfWork,
        gateway=gateway,
        notifier=notifier,
        default_timeout_minutes=settings.order.momo_payment_timeout_minutes,
    )


async def get_voucher_service() -> VoucherApplicationService:
    return VoucherApplicationService(uow_factory=SQLAlchemyUnitOfWork, pricing=get_pricing_calculator())
