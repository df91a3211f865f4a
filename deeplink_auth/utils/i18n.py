from __future__ import annotations

"""
Internationalization (i18n) utility module for user-facing messages.

This module provides functionality for:
- Loading translations for every supported language
- Translating message keys based on user preferences
- Determining user language from request headers or query parameters
- Fallback to the default language, then to the key itself

The module uses Python's built-in gettext. Compiled *.mo* files are optional:
the *.po* catalogues are parsed at startup and used as a secondary lookup so
that freshly added messages are never shipped untranslated.
"""

import gettext
import os
from typing import Dict, Optional

from fastapi import Request

from deeplink_auth.core.config.settings import settings
from deeplink_auth.core.logging import logger

_translations: Dict[str, gettext.NullTranslations] = {}
_fallback_catalogs: Dict[str, Dict[str, str]] = {}

LOCALES_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "locales"))


def _parse_po_file(po_path: str) -> Dict[str, str]:
    """Parse single-line ``msgid``/``msgstr`` pairs from a .po file."""
    catalog: Dict[str, str] = {}
    current_msgid: Optional[str] = None
    with open(po_path, "r", encoding="utf-8") as po_file:
        for raw_line in po_file:
            line = raw_line.strip()
            if line.startswith("msgid "):
                current_msgid = line[6:].strip().strip('"')
            elif line.startswith("msgstr ") and current_msgid is not None:
                msgstr = line[7:].strip().strip('"')
                if current_msgid:
                    catalog[current_msgid] = msgstr or current_msgid
                current_msgid = None
    return catalog


def setup_i18n(locales_path: str = LOCALES_PATH) -> None:
    """
    Initialize the internationalization system by loading translations.

    Raises:
        FileNotFoundError: If the locales directory is not found.
    """
    if not os.path.exists(locales_path):
        raise FileNotFoundError(f"Locales directory not found: {locales_path}")

    for lang in settings.SUPPORTED_LANGUAGES:
        _translations[lang] = gettext.translation(
            domain="messages",
            localedir=locales_path,
            languages=[lang],
            fallback=True,
        )

        po_path = os.path.join(locales_path, lang, "LC_MESSAGES", "messages.po")
        catalog: Dict[str, str] = {}
        if os.path.exists(po_path):
            try:
                catalog = _parse_po_file(po_path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("i18n_po_parse_failed", lang=lang, error=str(exc))

        _fallback_catalogs[lang] = catalog
        logger.debug("i18n_initialized", language=lang, entries=len(catalog))

    logger.info("i18n_setup_complete", default_locale=settings.DEFAULT_LANGUAGE)


def get_translated_message(key: str, locale: str = settings.DEFAULT_LANGUAGE) -> str:
    """
    Retrieve a translated message for the given key and locale.

    Falls back to the default language, then to the key itself.

    Args:
        key: The message key to translate.
        locale: The target language code.

    Returns:
        The translated message or the original key if translation fails.
    """
    if not _translations:
        setup_i18n()

    if locale not in _translations:
        locale = settings.DEFAULT_LANGUAGE

    translation = _translations.get(locale)
    if translation is None:
        logger.error("translation_missing_for_locale", locale=locale)
        return key

    translated = translation.gettext(key)
    if translated == key:
        translated = _fallback_catalogs.get(locale, {}).get(key, key)
    if translated == key and locale != settings.DEFAULT_LANGUAGE:
        translated = _fallback_catalogs.get(settings.DEFAULT_LANGUAGE, {}).get(key, key)
    if translated == key:
        logger.warning("translation_key_not_found", key=key, locale=locale)

    return translated


def get_request_language(request: Request) -> str:
    """
    Determine the preferred language from a request.

    Checks the ``lang`` query parameter, then the Accept-Language header, then
    the configured default.
    """
    lang = request.query_params.get("lang")
    if lang and lang in settings.SUPPORTED_LANGUAGES:
        return lang

    accept_language = request.headers.get("Accept-Language", settings.DEFAULT_LANGUAGE)
    for lang in accept_language.split(","):
        lang = lang.split(";")[0].strip().split("-")[0]
        if lang in settings.SUPPORTED_LANGUAGES:
            return lang

    return settings.DEFAULT_LANGUAGE
