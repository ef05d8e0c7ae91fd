"""
MoMo request signing and extraData codec.

MoMo signs ``key1=value1&key2=value2...`` with HMAC-SHA256 over a fixed field
list. Payment initiation and the IPN use different lists; the order of each
tuple below is part of MoMo's contract.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from typing import Mapping, Optional, Sequence, Tuple


INITIATION_SIGNATURE_FIELDS: Tuple[str, ...] = (
    "accessKey",
    "amount",
    "extraData",
    "ipnUrl",
    "orderId",
    "orderInfo",
    "partnerCode",
    "redirectUrl",
    "requestId",
    "requestType",
)

IPN_SIGNATURE_FIELDS: Tuple[str, ...] = (
    "accessKey",
    "amount",
    "extraData",
    "message",
    "orderId",
    "orderInfo",
    "orderType",
    "partnerCode",
    "payType",
    "requestId",
    "responseTime",
    "resultCode",
    "transId",
)

PROVIDER_ORDER_ID_SEPARATOR = "-"


def ordered_fields(names: Sequence[str], values: Mapping[str, object]) -> list[tuple[str, str]]:
    """Pick ``names`` from ``values`` in order; missing or None become ""."""
    pairs = []
    for name in names:
        value = values.get(name)
        pairs.append((name, "" if value is None else str(value)))
    return pairs


def canonicalize(fields: Sequence[tuple[str, object]]) -> str:
    return "&".join(f"{name}={'' if value is None else value}" for name, value in fields)


def sign(fields: Sequence[tuple[str, object]], secret_key: str) -> str:
    return hmac.new(
        secret_key.encode("utf-8"),
        canonicalize(fields).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify(fields: Sequence[tuple[str, object]], secret_key: str, signature: Optional[str]) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign(fields, secret_key), signature.lower())


def encode_extra_data(order_id: str) -> str:
    raw = json.dumps({"orderId": order_id}, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_extra_data(token: Optional[str]) -> Optional[str]:
    """Internal order id carried in extraData, or None when unreadable."""
    if not token:
        return None
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
        data = json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    order_id = data.get("orderId")
    return str(order_id) if order_id else None


def order_number_from_provider_id(provider_order_id: Optional[str]) -> Optional[str]:
    """``ORD...-<ms>`` -> ``ORD...``"""
    if not provider_order_id:
        return None
    head = provider_order_id.split(PROVIDER_ORDER_ID_SEPARATOR, 1)[0]
    return head or None
