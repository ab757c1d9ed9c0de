"""
Localization sections: parsing, per-component embedding, aggregation.

An ``<i18n>`` section is a JSON object keyed by locale code::

    {
      "en": {"welcome": "Welcome"},
      "de": {"welcome": "Willkommen"}
    }

Components merge their own table into the runtime's localization store when
instantiated (see ``sfcforge.core.assembler``). The exporter unions the
tables of all components into one ``LocalizationTable``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .errors import LocalizationParseError

logger = logging.getLogger(__name__)

Messages = dict[str, str]
LocaleMapping = dict[str, Messages]


def parse_localization(text: str, source: Path | None = None) -> LocaleMapping:
    """
    Parse the text of an ``<i18n>`` section.

    Args:
        text: Section content (``"{}"`` when the component has none)
        source: Component path, used in error messages

    Returns:
        Mapping of locale code to flat message mapping

    Raises:
        LocalizationParseError: If the text is not valid JSON or does not
            have the locale -> {key: string} shape
    """
    label = f"'{source.name}'" if source else "<i18n>"
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise LocalizationParseError(
            f"The <i18n> section of {label} is not valid JSON: {e.msg} "
            f"(line {e.lineno}, column {e.colno})"
        ) from e

    if not isinstance(data, dict):
        raise LocalizationParseError(f"The <i18n> section of {label} must be a JSON object.")

    for locale, messages in data.items():
        if not isinstance(messages, dict):
            raise LocalizationParseError(
                f"Locale '{locale}' in the <i18n> section of {label} must map to an object."
            )
        for key, value in messages.items():
            if not isinstance(value, str):
                raise LocalizationParseError(
                    f"Message '{locale}.{key}' in the <i18n> section of {label} must be a string."
                )
    return data


def to_js_literal(mapping: LocaleMapping, indent: int = 2) -> str:
    """Serialize a locale mapping as a JSON (and therefore JS) object literal."""
    if not mapping:
        return "{}"
    return json.dumps(mapping, indent=indent, ensure_ascii=False)


class LocalizationTable:
    """
    Consolidated messages of every component in a pass.

    The first component with a non-empty section sets the reference locale
    set. Later components may add locales or omit some; both are merged
    (the consolidated table is the union) and logged as a warning. Duplicate
    keys are resolved last-write-wins without notice.
    """

    def __init__(self) -> None:
        self._messages: LocaleMapping = {}
        self._reference: tuple[str, ...] | None = None

    @property
    def locales(self) -> list[str]:
        return list(self._messages)

    @property
    def reference_locales(self) -> tuple[str, ...]:
        return self._reference or ()

    def merge(self, component: str, mapping: LocaleMapping) -> None:
        """Merge one component's localization table."""
        if not mapping:
            return

        if self._reference is None:
            self._reference = tuple(mapping)
        else:
            added = [cc for cc in mapping if cc not in self._reference]
            missing = [cc for cc in self._reference if cc not in mapping]
            if added:
                logger.warning("%s declares locales not in %s: %s", component, self._reference, added)
            if missing:
                logger.warning("%s has no messages for locales: %s", component, missing)

        for locale, messages in mapping.items():
            self._messages.setdefault(locale, {}).update(messages)

    def consolidated(self) -> LocaleMapping:
        """All locales with all keys."""
        return {locale: dict(messages) for locale, messages in self._messages.items()}

    def for_locale(self, locale: str) -> LocaleMapping:
        """A single-locale projection, ``{locale: messages}``."""
        return {locale: dict(self._messages.get(locale, {}))}

    def __len__(self) -> int:
        return len(self._messages)
