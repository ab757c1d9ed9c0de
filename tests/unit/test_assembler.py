"""Tests for component module assembly."""

from pathlib import Path

import pytest

from sfcforge.core.assembler import (
    ModuleAssembler,
    RuntimeNames,
    embedded_template,
    escape_template_literal,
    strip_script_wrapper,
    unescape_template_literal,
)
from sfcforge.core.errors import StructuralParseError
from sfcforge.core.reconcile import ReconciledRender
from sfcforge.core.render import ConstantDeclaration

PATH = Path("/project/vue/Hello.vue")

SCRIPT = """\
export default {
  data() {
    return { count: 0 }
  }
}"""

SCRIPT_WITH_TRAILING_COMMA = """\
export default {
  data() {
    return { count: 0 }
  },
}"""

LOCALIZATION = {"en": {"hi": "Hi"}, "de": {"hi": "Hallo"}}


@pytest.fixture
def assembler() -> ModuleAssembler:
    return ModuleAssembler()


@pytest.fixture
def reconciled() -> ReconciledRender:
    return ReconciledRender(
        constants=(ConstantDeclaration("r_itm_1", '{ class: "hello" }'),),
        exposed=("r_itm_1",),
        params="_ctx, _cache",
        body='\n  return (Vue.openBlock(), Vue.createElementBlock("div", this.r_itm_1))\n',
    )


class TestTemplateLiteral:
    def test_escape(self):
        literal = escape_template_literal("<p>a</p>\n<b>it's</b>")

        assert literal == "'\\\n    <p>a</p>\\\n    <b>it\\'s</b>'"

    def test_round_trip_of_awkward_markup(self):
        template = "<p title='a\\b'>\n  {{ x }}\\\n    <i> </i>\n</p>"

        assert unescape_template_literal(escape_template_literal(template)) == template

    def test_line_endings_are_normalized(self):
        literal = escape_template_literal("<p>\r\n</p>\r<i/>")

        assert "\r" not in literal
        assert unescape_template_literal(literal) == "<p>\n</p>\n<i/>"

    def test_unescape_rejects_other_literals(self):
        with pytest.raises(ValueError):
            unescape_template_literal('"<p/>"')


class TestStripScriptWrapper:
    def test_body(self):
        assert strip_script_wrapper(SCRIPT, PATH) == "data() {\n    return { count: 0 }\n  }"

    def test_trailing_semicolon(self):
        assert strip_script_wrapper("export default { props: ['a'] };", PATH) == "props: ['a']"

    def test_trailing_comma(self):
        body = strip_script_wrapper(SCRIPT_WITH_TRAILING_COMMA, PATH)

        assert body == "data() {\n    return { count: 0 }\n  }"

    def test_only_one_trailing_comma_is_dropped(self):
        assert strip_script_wrapper("export default { props: ['a'],, }", PATH) == "props: ['a'],"

    def test_empty_object(self):
        assert strip_script_wrapper("export default {}", PATH) == ""

    def test_not_a_default_export(self):
        with pytest.raises(StructuralParseError, match="'Hello.vue' must consist of one"):
            strip_script_wrapper("module.exports = { data() {} }", PATH)


class TestAssembleDebug:
    def test_module_layout(self, assembler: ModuleAssembler):
        module = assembler.assemble_debug("Hello", PATH, SCRIPT, "<p>{{ t('hi') }}</p>", LOCALIZATION)

        assert module.startswith("app.component('Hello', {\n  name: 'Hello',\n  setup() {\n")
        assert module.endswith("\n})\n")
        assert "    const { t } = VueI18n.useI18n({});\n" in module
        assert '    const mergeI18nLang = {\n      "en": {\n        "hi": "Hi"\n      },' in module
        assert "      i18n.global.mergeLocaleMessage(cc, mergeI18nLang[cc])\n" in module
        assert "    return {\n      t\n    }\n  },\n" in module
        assert "  data() {\n    return { count: 0 }\n  },\n" in module
        assert "render(" not in module

    def test_template_round_trip(self, assembler: ModuleAssembler):
        template = "<div class='box'>\n  <p>{{ t('hi') }}</p>\n</div>"

        module = assembler.assemble_debug("Hello", PATH, SCRIPT, template, LOCALIZATION)

        assert embedded_template(module) == template

    def test_without_localization(self, assembler: ModuleAssembler):
        module = assembler.assemble_debug("Hello", PATH, "export default {}", "<p/>", {})

        assert "    const mergeI18nLang = {}\n" in module
        # Empty script body adds no property
        assert ",\n,\n" not in module
        assert embedded_template(module) == "<p/>"

    def test_trailing_comma_in_script(self, assembler: ModuleAssembler):
        module = assembler.assemble_debug("Hello", PATH, SCRIPT_WITH_TRAILING_COMMA, "<p/>", LOCALIZATION)

        assert ",," not in module
        assert "  data() {\n    return { count: 0 }\n  },\n  template: '" in module
        assert embedded_template(module) == "<p/>"

    def test_custom_runtime_names(self):
        runtime = RuntimeNames(app_object="site", namespace="V", i18n_instance="messages", i18n_namespace="I18n")

        module = ModuleAssembler(runtime).assemble_debug("Hello", PATH, SCRIPT, "<p/>", LOCALIZATION)

        assert module.startswith("site.component('Hello', {")
        assert "I18n.useI18n({})" in module
        assert "messages.global.mergeLocaleMessage(cc" in module


class TestAssembleRelease:
    def test_module_layout(self, assembler: ModuleAssembler, reconciled: ReconciledRender):
        module = assembler.assemble_release("Hello", PATH, SCRIPT, reconciled, LOCALIZATION)

        assert module.startswith("app.component('Hello', {\n  name: 'Hello',\n  setup() {\n")
        assert "    // Render consts\n    const r_itm_1 = { class: \"hello\" }\n" in module
        assert "    return {\n      t, r_itm_1\n    }\n" in module
        assert "  render(_ctx, _cache) {\n" in module
        assert 'Vue.createElementBlock("div", this.r_itm_1)' in module
        assert "template:" not in module

    def test_property_order(self, assembler: ModuleAssembler, reconciled: ReconciledRender):
        module = assembler.assemble_release("Hello", PATH, SCRIPT, reconciled, LOCALIZATION)

        positions = [module.index(p) for p in ("name: 'Hello'", "setup() {", "render(", "data() {")]
        assert positions == sorted(positions)

    def test_trailing_comma_in_script(self, assembler: ModuleAssembler, reconciled: ReconciledRender):
        module = assembler.assemble_release("Hello", PATH, SCRIPT_WITH_TRAILING_COMMA, reconciled, LOCALIZATION)

        assert ",," not in module
        assert module.endswith("  data() {\n    return { count: 0 }\n  }\n})\n")

    def test_script_without_wrapper(self, assembler: ModuleAssembler, reconciled: ReconciledRender):
        with pytest.raises(StructuralParseError):
            assembler.assemble_release("Hello", PATH, "const x = 1", reconciled, {})


def test_embedded_template_requires_property():
    with pytest.raises(ValueError):
        embedded_template("app.component('Hello', {\n  name: 'Hello'\n})\n")
