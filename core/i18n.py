"""
Message translation for API responses.

Catalogues live in locales/<lang>/LC_MESSAGES/messages.mo; a missing catalogue
or entry falls back to the message id, so English ids double as defaults.
"""
from __future__ import annotations

import gettext
from contextvars import ContextVar
from pathlib import Path

from core.logging_config import get_logger

DEFAULT_LOCALE = "en"
SUPPORTED_LOCALES = frozenset({"en", "vi"})

_current_locale: ContextVar[str] = ContextVar("current_locale", default=DEFAULT_LOCALE)
_translators: dict[str, gettext.NullTranslations] = {}
_logger = get_logger(__name__)


def set_locale(locale: str) -> None:
    _current_locale.set(locale if locale in SUPPORTED_LOCALES else DEFAULT_LOCALE)


def get_locale() -> str:
    return _current_locale.get()


def _get_translator(locale: str) -> gettext.NullTranslations:
    tr = _translators.get(locale)
    if tr is None:
        localedir = Path(__file__).resolve().parent.parent / "locales"
        tr = gettext.translation(
            domain="messages",
            localedir=str(localedir),
            languages=[locale],
            fallback=True,
        )
        _translators[locale] = tr
    return tr


def t(msgid: str, **params) -> str:
    """Translate msgid for the current locale and format it with params."""
    text = _get_translator(get_locale()).gettext(msgid)
    if not params:
        return text
    try:
        return text.format(**params)
    except (KeyError, IndexError, ValueError) as exc:
        _logger.warning("i18n_format_failed", msgid=msgid, params=list(params), error=str(exc))
        return text
