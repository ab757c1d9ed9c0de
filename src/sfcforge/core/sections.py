"""
Section extraction for single-file components.

A component source holds, in any order, a handful of top-level blocks::

    <template> ... </template>     exactly one
    <script> ... </script>         exactly one
    <style> ... </style>           zero or one
    <i18n> ... </i18n>             zero or one

The scanner walks the source once and only looks for tags at the top level:

- ``<script>``, ``<style>`` and ``<i18n>`` are raw-text blocks; their content
  runs to the first matching close tag, so markup inside script strings is
  never taken for a section boundary.
- ``<template>`` tracks nested ``<template>`` open/close tags, so
  ``<template v-if>`` blocks inside the markup do not end the section. Tags
  inside quoted attribute values or ``{{ }}`` interpolations are not counted.
- HTML comments are skipped, both at top level and inside templates.
- Any other top-level block (custom blocks such as ``<docs>``) is skipped
  whole.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import ComponentIOError, SectionCountError, context_at, make_structural_error
from .fileset import component_name

logger = logging.getLogger(__name__)

TEMPLATE = "template"
SCRIPT = "script"
STYLE = "style"
I18N = "i18n"

RAW_TEXT_TAGS = frozenset({SCRIPT, STYLE, I18N})

EMPTY_LOCALIZATION = "{}"

# Opening tag with optional attributes; quoted values may contain '>'
_OPEN_TAG_RE = re.compile(
    r"""<(?P<name>[A-Za-z][A-Za-z0-9_-]*)(?P<attrs>(?:"[^"]*"|'[^']*'|[^'">])*)>""",
)


@dataclass(frozen=True)
class ComponentSource:
    """A component file as read for one build pass."""

    path: Path
    text: str
    extension: str = ".vue"

    @property
    def name(self) -> str:
        return component_name(self.path, self.extension)

    @classmethod
    def read(cls, path: Path, extension: str = ".vue") -> ComponentSource:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ComponentIOError(f"cannot read component source: {e}", path) from e
        return cls(path=path, text=text, extension=extension)


@dataclass(frozen=True)
class ComponentSections:
    """The four logical sections of a component, whitespace-stripped."""

    template: str
    script: str
    style: str = ""
    localization: str = EMPTY_LOCALIZATION


@dataclass(frozen=True)
class _Block:
    name: str
    content: str
    offset: int


# Template markup token: comment, interpolation or whole tag with quoted attributes
_MARKUP_TOKEN_RE = re.compile(
    r"""<!--.*?-->|\{\{.*?\}\}|<(?P<close>/?)(?P<name>[A-Za-z][A-Za-z0-9_-]*)(?P<attrs>(?:"[^"]*"|'[^']*'|[^'">])*)>""",
    re.DOTALL,
)


def _find_raw_close(text: str, name: str, start: int) -> re.Match[str] | None:
    return re.compile(rf"</{re.escape(name)}\s*>", re.IGNORECASE).search(text, start)


def _find_nested_close(text: str, name: str, start: int) -> re.Match[str] | None:
    """Find the close tag matching an already-open ``name`` element."""
    depth = 1
    for match in _MARKUP_TOKEN_RE.finditer(text, start):
        tag = match.group("name")
        if tag is None or tag.lower() != name:
            continue
        if match.group("close"):
            depth -= 1
            if depth == 0:
                return match
        elif not match.group("attrs").rstrip().endswith("/"):
            depth += 1
    return None


def scan_blocks(text: str, path: Path) -> list[_Block]:
    """
    Split a component source into its top-level blocks.

    Raises:
        StructuralParseError: If a comment or block is never closed
    """
    blocks: list[_Block] = []
    pos = 0
    while True:
        lt = text.find("<", pos)
        if lt == -1:
            return blocks

        if text.startswith("<!--", lt):
            end = text.find("-->", lt + 4)
            if end == -1:
                raise make_structural_error(
                    f"The component '{path.name}' has an unterminated comment.", path, text, lt
                )
            pos = end + 3
            continue

        match = _OPEN_TAG_RE.match(text, lt)
        if match is None:
            # Stray '<' or a close tag at top level
            pos = lt + 1
            continue

        name = match.group("name").lower()
        if match.group("attrs").rstrip().endswith("/"):
            blocks.append(_Block(name=name, content="", offset=lt))
            pos = match.end()
            continue

        if name in RAW_TEXT_TAGS:
            close = _find_raw_close(text, name, match.end())
        else:
            close = _find_nested_close(text, name, match.end())
        if close is None:
            raise make_structural_error(
                f"The component '{path.name}' has an unterminated <{name}> section.",
                path,
                text,
                lt,
            )

        blocks.append(_Block(name=name, content=text[match.end() : close.start()], offset=lt))
        pos = close.end()


def _check_count(
    path: Path,
    text: str,
    name: str,
    blocks: list[_Block],
    *,
    exactly_one: bool,
) -> None:
    if exactly_one:
        if len(blocks) == 1:
            return
        rule = "exactly one"
    else:
        if len(blocks) <= 1:
            return
        rule = "no or one"

    message = (
        f"The component '{path.name}' must contain {rule} <{name}> root element "
        f"(found {len(blocks)})."
    )
    if len(blocks) > 1:
        raise SectionCountError(message, context_at(path, text, blocks[1].offset))
    raise SectionCountError(message)


def extract_sections(source: ComponentSource) -> ComponentSections:
    """
    Extract template, script, style and localization from a component.

    Args:
        source: Component source text and path

    Returns:
        ComponentSections with every section stripped; the localization
        section defaults to ``"{}"``

    Raises:
        SectionCountError: If a section appears the wrong number of times
        StructuralParseError: If a block is never closed
    """
    blocks = scan_blocks(source.text, source.path)
    by_name: dict[str, list[_Block]] = {TEMPLATE: [], SCRIPT: [], STYLE: [], I18N: []}
    for block in blocks:
        if block.name in by_name:
            by_name[block.name].append(block)
        else:
            logger.debug("Skipping custom block <%s> in %s", block.name, source.path.name)

    for name in (TEMPLATE, SCRIPT):
        _check_count(source.path, source.text, name, by_name[name], exactly_one=True)
    for name in (STYLE, I18N):
        _check_count(source.path, source.text, name, by_name[name], exactly_one=False)

    style = by_name[STYLE]
    i18n = by_name[I18N]
    return ComponentSections(
        template=by_name[TEMPLATE][0].content.strip(),
        script=by_name[SCRIPT][0].content.strip(),
        style=style[0].content.strip() if style else "",
        localization=_localization_text(i18n),
    )


def _localization_text(blocks: list[_Block]) -> str:
    if not blocks:
        return EMPTY_LOCALIZATION
    return blocks[0].content.strip() or EMPTY_LOCALIZATION


def extract_localization(source: ComponentSource) -> str:
    """
    Extract only the localization section of a component.

    Used by the localization exporter, which must not fail on components
    whose other sections are still being edited.

    Raises:
        SectionCountError: If there is more than one <i18n> section
        StructuralParseError: If a block is never closed
    """
    blocks = [b for b in scan_blocks(source.text, source.path) if b.name == I18N]
    _check_count(source.path, source.text, I18N, blocks, exactly_one=False)
    return _localization_text(blocks)
