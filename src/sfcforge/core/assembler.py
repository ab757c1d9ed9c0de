"""
Module assembly: turn a component's parts into a self-registering module.

The generated module registers the component on the host's app object::

    app.component('Card', {
      name: 'Card',
      setup() {
        // Render consts            (release only)
        const r_itm_1 = { class: "card" }
        // Merge i18n language strings of the component into the global i18n object
        const { t } = VueI18n.useI18n({});
        const mergeI18nLang = {...}
        ...
        return {
          t, r_itm_1
        }
      },
      render(_ctx, _cache) {...},   (release)  or  template: '...'  (debug)
      data() {...}                  (script section, wrapper stripped)
    })
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from .errors import StructuralParseError
from .localization import LocaleMapping, to_js_literal
from .reconcile import ReconciledRender

INDENT = "  "

# A '\' line continuation plus the indentation of the following line
TEMPLATE_CONTINUATION = "\\\n" + INDENT * 2

_EXPORT_DEFAULT_RE = re.compile(
    r"\A\s*export\s+default\s*\{\s*(?P<body>.*?)\s*\}\s*;?\s*\Z",
    re.DOTALL,
)
_LITERAL_ESCAPE_RE = re.compile(r"\\(\n" + INDENT * 2 + r"|\\|'|u2028|u2029)")
_LITERAL_UNESCAPES = {"\\": "\\", "'": "'", "u2028": "\u2028", "u2029": "\u2029"}


@dataclass(frozen=True)
class RuntimeNames:
    """Globals the generated module expects from the host page."""

    app_object: str = "app"
    namespace: str = "Vue"
    i18n_instance: str = "i18n"
    i18n_namespace: str = "VueI18n"


def indent(text: str, level: int = 1) -> str:
    """Indent every non-blank line of ``text`` by ``level`` indentation steps."""
    prefix = INDENT * level
    return "\n".join(prefix + line if line.strip() else line for line in text.split("\n"))


def escape_template_literal(template: str) -> str:
    """
    Embed template markup as a single-quoted JS string literal.

    Backslashes and quotes are escaped and every newline becomes a ``\\``
    line continuation, so the markup keeps its line layout in the module.
    """
    text = template.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\\", "\\\\").replace("'", "\\'")
    text = text.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")
    return "'" + TEMPLATE_CONTINUATION + text.replace("\n", TEMPLATE_CONTINUATION) + "'"


def unescape_template_literal(literal: str) -> str:
    """Inverse of ``escape_template_literal``."""
    if len(literal) < 2 or not (literal.startswith("'") and literal.endswith("'")):
        raise ValueError("not a single-quoted template literal")
    inner = literal[1:-1]
    if inner.startswith(TEMPLATE_CONTINUATION):
        inner = inner[len(TEMPLATE_CONTINUATION) :]

    def _unescape(match: re.Match[str]) -> str:
        escaped = match.group(1)
        if escaped.startswith("\n"):
            return "\n"
        return _LITERAL_UNESCAPES[escaped]

    return _LITERAL_ESCAPE_RE.sub(_unescape, inner)


def strip_script_wrapper(script: str, path: Path) -> str:
    """
    Return the properties inside the script's ``export default { ... }``.

    A trailing comma after the last property is dropped so the body can be
    joined with further properties.

    Raises:
        StructuralParseError: If the script is not a single default export
            of an object literal
    """
    match = _EXPORT_DEFAULT_RE.match(script)
    if match is None:
        raise StructuralParseError(
            f"The <script> section of '{path.name}' must consist of one "
            "'export default { ... }' object."
        )
    body = match.group("body").rstrip()
    if body.endswith(","):
        body = body[:-1].rstrip()
    return body


class ModuleAssembler:
    """Builds component module text for the configured host runtime."""

    def __init__(self, runtime: RuntimeNames | None = None):
        self.runtime = runtime or RuntimeNames()

    def _setup(self, constants: str, exposed: tuple[str, ...], localization: LocaleMapping) -> str:
        rt = self.runtime
        lines = ["setup() {"]
        if constants:
            lines.append(f"{INDENT}// Render consts")
            lines.append(indent(constants))
        lines += [
            f"{INDENT}// Merge i18n language strings of the component into the global i18n object",
            f"{INDENT}const {{ t }} = {rt.i18n_namespace}.useI18n({{}});",
            f"{INDENT}const mergeI18nLang = {indent(to_js_literal(localization)).lstrip()}",
            f"{INDENT}Object.keys(mergeI18nLang).forEach(cc => {{",
            f"{INDENT * 2}{rt.i18n_instance}.global.mergeLocaleMessage(cc, mergeI18nLang[cc])",
            f"{INDENT}}});",
            f"{INDENT}// Return section",
            f"{INDENT}return {{",
            f"{INDENT * 2}{', '.join(('t', *exposed))}",
            f"{INDENT}}}",
            "}",
        ]
        return indent("\n".join(lines))

    def _script(self, script: str, path: Path) -> str:
        # Lines after the first keep their own indentation
        body = strip_script_wrapper(script, path)
        return INDENT + body if body else ""

    def _module(self, name: str, properties: list[str]) -> str:
        body = ",\n".join(prop for prop in properties if prop)
        return f"{self.runtime.app_object}.component('{name}', {{\n{body}\n}})\n"

    def assemble_release(
        self,
        name: str,
        path: Path,
        script: str,
        render: ReconciledRender,
        localization: LocaleMapping,
    ) -> str:
        """Module with constants in ``setup()`` and a precompiled render method."""
        return self._module(
            name,
            [
                f"{INDENT}name: '{name}'",
                self._setup(render.constants_source(), render.exposed, localization),
                indent(render.function_source()),
                self._script(script, path),
            ],
        )

    def assemble_debug(
        self,
        name: str,
        path: Path,
        script: str,
        template: str,
        localization: LocaleMapping,
    ) -> str:
        """Module that ships the raw template for runtime compilation."""
        return self._module(
            name,
            [
                f"{INDENT}name: '{name}'",
                self._setup("", (), localization),
                self._script(script, path),
                f"{INDENT}template: {escape_template_literal(template)}",
            ],
        )


_TEMPLATE_PROPERTY_RE = re.compile(r"^\s*template: ('(?:\\.|[^'\\])*')\s*$", re.MULTILINE | re.DOTALL)


def embedded_template(module_text: str) -> str:
    """Recover the template markup from a debug-mode module."""
    matches = list(_TEMPLATE_PROPERTY_RE.finditer(module_text))
    if not matches:
        raise ValueError("module has no embedded template property")
    return unescape_template_literal(matches[-1].group(1))
