"""
AdminPanel message catalog lookup.

Resolution chain: explicit lang → user's preferred_language → "en" → key name.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from adminpanel.engine.context import get_preferred_language
from adminpanel.translations.messages import MESSAGES


def resolve_translation(
    translations_data: Dict[str, Dict[str, str]],
    key: str,
    lang: Optional[str] = None,
    **format_params: Any,
) -> str:
    """
    Resolve a translation key with the full fallback chain.

    Args:
        translations_data: Full catalog {key: {lang: text}}
        key: Dotted message key, e.g. "product.listing.tableName"
        lang: Override language (if None, uses the execution context)
        **format_params: Named params for str.format

    Returns:
        The translated string, or the key itself when it is unknown.
    """
    if lang is None:
        lang = get_preferred_language()

    key_translations = translations_data.get(key)
    if not key_translations:
        return key

    text = key_translations.get(lang)
    if text is None:
        text = key_translations.get("en")
    if text is None:
        return key

    if format_params:
        try:
            text = text.format(**format_params)
        except (KeyError, IndexError, ValueError):
            pass  # unformatted on param mismatch

    return text


def trans(key: str, lang: Optional[str] = None, **params: Any) -> str:
    """Translate ``key`` from the panel catalog."""
    return resolve_translation(MESSAGES, key, lang=lang, **params)


def available_languages() -> list:
    langs = set()
    for texts in MESSAGES.values():
        langs.update(texts)
    return sorted(langs)
