"""
Payment specific codes and MoMo result-code helpers.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002
    TIMEOUT = 60003
    RATE_LIMITED = 60004
    PARTNER_MISMATCH = 60005
    AMOUNT_MISMATCH = 60006
    ORDER_EXPIRED = 60007
    INITIATION_FAILED = 60008
    NOT_CONFIGURED = 60009


# MoMo resultCode 0 means "success" both for initiation and for IPN.
MOMO_RESULT_SUCCESS = 0

# Human readable descriptions for the result codes MoMo documents most often;
# used for logging and cancel reasons only.
MOMO_RESULT_MESSAGES = {
    0: "Successful.",
    9000: "Transaction is authorized successfully.",
    1000: "Transaction is initiated, waiting for user confirmation.",
    1001: "Insufficient funds.",
    1003: "Transaction cancelled after successfully authorized.",
    1004: "Amount exceeds payment limit.",
    1005: "URL or QR code expired.",
    1006: "User denied the payment.",
    1007: "Account inactive.",
    1026: "Restricted by promotion rules.",
    41: "Duplicated orderId.",
    42: "Invalid orderId or orderId not found.",
    98: "QR code generation failed.",
    99: "Unknown error.",
}


def describe_momo_result(code: int) -> str:
    return MOMO_RESULT_MESSAGES.get(int(code), f"MoMo result code {code}")
