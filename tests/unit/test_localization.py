"""Tests for localization parsing and aggregation."""

import logging
from pathlib import Path

import pytest

from sfcforge.core.errors import LocalizationParseError
from sfcforge.core.localization import LocalizationTable, parse_localization, to_js_literal


class TestParseLocalization:
    def test_valid(self):
        text = '{"en": {"hi": "Hi"}, "de": {"hi": "Hallo"}}'

        assert parse_localization(text) == {"en": {"hi": "Hi"}, "de": {"hi": "Hallo"}}

    def test_empty_object(self):
        assert parse_localization("{}") == {}

    def test_invalid_json(self):
        with pytest.raises(LocalizationParseError, match="'Card.vue' is not valid JSON"):
            parse_localization('{"en": {"hi": "Hi",}}', Path("/x/Card.vue"))

    def test_top_level_must_be_object(self):
        with pytest.raises(LocalizationParseError, match="must be a JSON object"):
            parse_localization('["en"]')

    def test_locale_must_map_to_object(self):
        with pytest.raises(LocalizationParseError, match="Locale 'en'"):
            parse_localization('{"en": "Hi"}')

    def test_messages_must_be_strings(self):
        with pytest.raises(LocalizationParseError, match="Message 'en.count'"):
            parse_localization('{"en": {"count": 3}}')


class TestLocalizationTable:
    def test_union_of_locales(self, caplog: pytest.LogCaptureFixture):
        table = LocalizationTable()

        with caplog.at_level(logging.WARNING, logger="sfcforge.core.localization"):
            table.merge("Hello", {"en": {"hi": "Hi"}})
            table.merge("World", {"en": {"bye": "Bye"}, "de": {"bye": "Tschüss"}})

        assert table.consolidated() == {
            "en": {"hi": "Hi", "bye": "Bye"},
            "de": {"bye": "Tschüss"},
        }
        assert table.locales == ["en", "de"]
        assert table.reference_locales == ("en",)
        assert "World declares locales not in" in caplog.text

    def test_missing_locale_is_logged(self, caplog: pytest.LogCaptureFixture):
        table = LocalizationTable()

        with caplog.at_level(logging.WARNING, logger="sfcforge.core.localization"):
            table.merge("Hello", {"en": {"hi": "Hi"}, "de": {"hi": "Hallo"}})
            table.merge("World", {"en": {"bye": "Bye"}})

        assert "World has no messages for locales: ['de']" in caplog.text
        assert table.for_locale("de") == {"de": {"hi": "Hallo"}}

    def test_last_write_wins(self):
        table = LocalizationTable()
        table.merge("A", {"en": {"ok": "OK"}})
        table.merge("B", {"en": {"ok": "Okay"}})

        assert table.consolidated() == {"en": {"ok": "Okay"}}

    def test_empty_components_do_not_set_reference(self):
        table = LocalizationTable()
        table.merge("Empty", {})
        table.merge("Hello", {"fr": {"hi": "Salut"}})

        assert table.reference_locales == ("fr",)
        assert len(table) == 1

    def test_for_unknown_locale(self):
        assert LocalizationTable().for_locale("it") == {"it": {}}

    def test_consolidated_is_a_copy(self):
        table = LocalizationTable()
        table.merge("A", {"en": {"a": "A"}})

        table.consolidated()["en"]["a"] = "changed"

        assert table.consolidated() == {"en": {"a": "A"}}


class TestToJsLiteral:
    def test_empty(self):
        assert to_js_literal({}) == "{}"

    def test_keeps_non_ascii(self):
        literal = to_js_literal({"de": {"bye": "Tschüss"}})

        assert '"bye": "Tschüss"' in literal
        assert "\\u00fc" not in literal
