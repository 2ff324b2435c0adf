"""Message catalogs for recovery outcomes.

Outcome codes and policy violation keys are rendered through gettext
``messages.po`` catalogs under ``passreset/locales/<lang>/LC_MESSAGES``.
Catalogs are parsed with Babel once, at construction time.

Lookup falls back from the requested language to the default language and
finally to the key itself.
"""

import os
from typing import Dict, Iterable, Optional

import structlog
from babel.messages.pofile import read_po

from passreset.core.exceptions import ConfigurationError
from passreset.domain.interfaces.collaborators import ILocalizer

logger = structlog.get_logger(__name__)

LOCALES_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "locales"))
MAX_CATALOG_BYTES = 1024 * 1024


def load_catalog(locales_path: str, language: str) -> Dict[str, str]:
    """Parses ``<locales_path>/<language>/LC_MESSAGES/messages.po``.

    Returns an empty catalog when the file does not exist. Untranslated
    entries are left out so lookups fall through to the next language.
    """
    po_path = os.path.join(locales_path, language, "LC_MESSAGES", "messages.po")
    if not os.path.exists(po_path):
        logger.warning("i18n_catalog_missing", language=language, path=po_path)
        return {}

    size = os.path.getsize(po_path)
    if size > MAX_CATALOG_BYTES:
        logger.warning("i18n_po_file_too_large", language=language, size=size)
        return {}

    with open(po_path, "rb") as po_file:
        catalog = read_po(po_file, locale=language)

    entries = {
        message.id: message.string
        for message in catalog
        if message.id and isinstance(message.id, str) and message.string
    }
    logger.info("i18n_initialized", language=language, entries=len(entries))
    return entries


class CatalogLocalizer(ILocalizer):
    """Renders message keys from gettext catalogs.

    Args:
        supported_languages: Languages to load.
        default_language: Fallback language; must be among the supported ones.
        locales_path: Root of the catalog tree.

    Raises:
        ConfigurationError: If the default language is not supported.
    """

    def __init__(
        self,
        supported_languages: Iterable[str] = ("en",),
        default_language: str = "en",
        locales_path: str = LOCALES_PATH,
    ):
        languages = list(supported_languages)
        if default_language not in languages:
            raise ConfigurationError(
                f"Default language '{default_language}' is not in supported languages {languages}"
            )
        self._default_language = default_language
        self._catalogs: Dict[str, Dict[str, str]] = {
            language: load_catalog(locales_path, language) for language in languages
        }

    @property
    def languages(self) -> list:
        return list(self._catalogs)

    def message(self, code: str, language: Optional[str] = None) -> str:
        locale = language or self._default_language
        if locale not in self._catalogs:
            logger.warning(
                "unsupported_locale_requested",
                requested_locale=locale,
                fallback_locale=self._default_language,
            )
            locale = self._default_language

        translated = self._catalogs[locale].get(code)
        if translated is None and locale != self._default_language:
            translated = self._catalogs[self._default_language].get(code)
        if translated is None:
            logger.warning("translation_key_not_found", key=code, locale=locale)
            return code
        return translated
