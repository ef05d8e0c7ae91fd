from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from core.i18n import DEFAULT_LOCALE, set_locale


def _pick_from_accept_language(al: str) -> str:
    """Best language tag by q weight, e.g. 'vi-VN,vi;q=0.9,en;q=0.8' -> 'vi-VN'."""
    items = []
    for part in al.split(','):
        p = part.strip()
        if not p:
            continue
        seg = p.split(';', 1)
        q = 1.0
        if len(seg) == 2 and seg[1].strip().startswith('q='):
            try:
                q = float(seg[1].strip()[2:])
            except ValueError:
                q = 0.0
        items.append((seg[0].strip(), q))
    if not items:
        return DEFAULT_LOCALE
    # stable sort keeps header order for ties
    items.sort(key=lambda x: x[1], reverse=True)
    return items[0][0]


def _normalize(lang: str) -> str:
    return (lang or DEFAULT_LOCALE).replace('_', '-').split('-')[0].lower()


class LocaleMiddleware(BaseHTTPMiddleware):
    """Priority: ?lang=xx > X-Lang > Accept-Language > 'en'."""

    async def dispatch(self, request: Request, call_next):
        lang = request.query_params.get("lang") or request.headers.get("X-Lang")
        if not lang:
            al = request.headers.get("Accept-Language", "")
            lang = _pick_from_accept_language(al) if al else DEFAULT_LOCALE
        set_locale(_normalize(lang))
        request.state.locale = _normalize(lang)
        return await call_next(request)
