"""
Structured model of a compiled render artifact.

The template compiler emits, per component, text of the shape::

    import { createElementVNode as _createElementVNode, ... } from "vue"

    const _hoisted_1 = { class: "card" }
    const _hoisted_2 = /*#__PURE__*/_createElementVNode("h1", null, "Hi", -1)

    export function render(_ctx, _cache) {
      return (_openBlock(), _createElementBlock("div", _hoisted_1, [_hoisted_2]))
    }

``parse_render_artifact`` splits that text on the two markers
``from "vue"`` and ``export function render`` and turns each part into a
field, so later stages rewrite declarations and the function body as
separate values instead of searching the whole text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from .errors import ExternalCompilerError

IMPORT_MARKER = 'from "vue"'
RENDER_MARKER = "export function render"

_IMPORT_RE = re.compile(r"import\s*\{(?P<names>[^}]*)\}\s*$", re.DOTALL)
_DECLARATION_RE = re.compile(
    r"^(?:const|let|var)\s+(?P<name>[A-Za-z_$][\w$]*)\s*=\s*",
    re.MULTILINE,
)
_FUNCTION_RE = re.compile(r"^\s*\((?P<params>[^)]*)\)\s*\{(?P<body>.*)\}\s*$", re.DOTALL)


@dataclass(frozen=True)
class RuntimeImport:
    """A runtime API function the render code imports, and its local alias."""

    name: str
    alias: str


@dataclass(frozen=True)
class ConstantDeclaration:
    """A constant hoisted out of the render function."""

    name: str
    expression: str

    def render(self) -> str:
        return f"const {self.name} = {self.expression}"


@dataclass(frozen=True)
class RenderArtifact:
    """Compiled template of one component, split into its parts."""

    imports: tuple[RuntimeImport, ...]
    constants: tuple[ConstantDeclaration, ...]
    params: str
    body: str

    @property
    def import_names(self) -> frozenset[str]:
        return frozenset(imp.name for imp in self.imports)


def _malformed(path: Path, what: str) -> ExternalCompilerError:
    return ExternalCompilerError(f"Malformed render artifact for '{path.name}': {what}")


def _parse_imports(head: str, path: Path) -> tuple[RuntimeImport, ...]:
    head = head.strip()
    if not head:
        return ()
    match = _IMPORT_RE.search(head)
    if match is None:
        raise _malformed(path, "unreadable import line")

    imports = []
    for item in match.group("names").split(","):
        parts = item.split()
        if not parts:
            continue
        if len(parts) == 3 and parts[1] == "as":
            imports.append(RuntimeImport(name=parts[0], alias=parts[2]))
        elif len(parts) == 1:
            imports.append(RuntimeImport(name=parts[0], alias=parts[0]))
        else:
            raise _malformed(path, f"unreadable import specifier {item.strip()!r}")
    return tuple(imports)


def _parse_constants(block: str, path: Path) -> tuple[ConstantDeclaration, ...]:
    matches = list(_DECLARATION_RE.finditer(block))
    leading = block[: matches[0].start()] if matches else block
    if leading.strip():
        raise _malformed(path, "unexpected text before constant declarations")

    constants = []
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(block)
        expression = block[match.end() : end].strip()
        if expression.endswith(";"):
            expression = expression[:-1].rstrip()
        constants.append(ConstantDeclaration(name=match.group("name"), expression=expression))
    return tuple(constants)


def parse_render_artifact(text: str, path: Path) -> RenderArtifact:
    """
    Parse compiler output into a RenderArtifact.

    Args:
        text: Raw artifact text as written by the template compiler
        path: Component the artifact belongs to (for error messages)

    Raises:
        ExternalCompilerError: If the text is not import line, constants
            and render function in that order
    """
    if RENDER_MARKER not in text:
        raise _malformed(path, f"missing '{RENDER_MARKER}'")

    if IMPORT_MARKER in text:
        head, rest = text.split(IMPORT_MARKER, 1)
    else:
        head, rest = "", text
    constants_block, function_part = rest.split(RENDER_MARKER, 1)

    function = _FUNCTION_RE.match(function_part)
    if function is None:
        raise _malformed(path, "unreadable render function")

    return RenderArtifact(
        imports=_parse_imports(head, path),
        constants=_parse_constants(constants_block, path),
        params=function.group("params").strip(),
        body=function.group("body"),
    )
