"""
Payment-related settings using pydantic-settings v2 with nested env keys.

This module is isolated so core.config.Settings stays free of provider
credentials. Env keys look like ``MOMO__PARTNER_CODE`` or
``TIMEOUTS__READ``.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 3.0
    read: float = 10.0
    write: float = 10.0
    total: float = 30.0


class PaymentRetry(BaseModel):
    max: int = 2
    base_backoff: float = 0.2


class MomoSettings(BaseModel):
    partner_code: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    endpoint: str = "https://test-payment.momo.vn/v2/gateway/api/create"
    redirect_url: str = "http://localhost:3001/payment/momo/return"
    ipn_url: str = "http://localhost:8000/api/v1/payments/momo/ipn"
    partner_name: str = "Furniture Shop"
    store_id: str = "FurnitureStore"
    lang: str = "vi"
    request_type: str = "payWithMethod"
    auto_capture: bool = True


class PaymentSettings(BaseSettings):
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    momo: MomoSettings = Field(default_factory=MomoSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
