"""
Identifier reconciliation for compiled render artifacts (release mode).

Template compiler output uses names that do not work once the render code
is moved into a registered component object:

- hoisted constants are called ``_hoisted_N``, but the runtime does not
  expose setup bindings that start with ``_``; they are renamed to the
  configured prefix (``r_itm_N`` by default);
- runtime API functions are imported under aliases (``_name`` in practice),
  but the generated module has no imports; call sites become ``Vue.name``.

The constants end up as locals of ``setup()`` and are exposed through the
component instance, so the two parts are rewritten differently: inside the
constants block hoisted references stay bare, inside the render function
body they become ``this.<name>``.

Rewrites only touch whole identifiers: ``_createElement`` never matches
inside ``_createElementVNode`` and ``_ctx._hoisted_1`` is left alone.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from .render import ConstantDeclaration, RenderArtifact

logger = logging.getLogger(__name__)

HOISTED_PREFIX = "_hoisted_"


class ImportSet:
    """Runtime API names imported by any render artifact of a build pass.

    Built once, from every artifact, before any artifact is reconciled: a
    ``_name`` in one component is only known to be a runtime call once
    ``name`` has been seen as an import somewhere in the batch.

    Each name is reachable through its ``_name`` alias and through every
    alias an artifact actually imported it under.
    """

    def __init__(self, names: Iterable[str] = (), aliases: Mapping[str, str] | None = None):
        self._names = frozenset(names) | frozenset((aliases or {}).values())
        self._aliases = {f"_{name}": name for name in self._names}
        self._aliases.update(aliases or {})

    @classmethod
    def from_artifacts(cls, artifacts: Iterable[RenderArtifact]) -> ImportSet:
        aliases: dict[str, str] = {}
        for artifact in artifacts:
            for imp in artifact.imports:
                previous = aliases.setdefault(imp.alias, imp.name)
                if previous != imp.name:
                    logger.warning(
                        "Alias %s imports both %s and %s; keeping %s", imp.alias, previous, imp.name, previous
                    )
        imports = cls(aliases=aliases)
        logger.debug("Global runtime imports: %s", ", ".join(imports))
        return imports

    @property
    def aliases(self) -> Mapping[str, str]:
        """Local alias to runtime API name."""
        return self._aliases

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"ImportSet({sorted(self._names)!r})"


@dataclass(frozen=True)
class NamingOptions:
    """Names chosen by the application for reconciled identifiers."""

    hoisted_prefix: str = "r_itm_"
    namespace: str = "Vue"


@dataclass(frozen=True)
class ReconciledRender:
    """Render artifact with every identifier rewritten for the module."""

    constants: tuple[ConstantDeclaration, ...]
    exposed: tuple[str, ...]
    params: str
    body: str

    def constants_source(self) -> str:
        return "\n".join(const.render() for const in self.constants)

    def function_source(self) -> str:
        return f"render({self.params}) {{{self.body}}}"


def _substitute(text: str, replacements: Mapping[str, str]) -> str:
    """Replace whole identifiers in one pass; replaced text is never rescanned."""
    if not replacements:
        return text
    alternatives = "|".join(re.escape(name) for name in sorted(replacements, key=len, reverse=True))
    pattern = re.compile(rf"(?<![\w$.])(?:{alternatives})(?![\w$])")
    return pattern.sub(lambda m: replacements[m.group(0)], text)


def constant_name(name: str, options: NamingOptions) -> str:
    """Name a hoisted constant gets in the generated module.

    Examples:
        >>> constant_name("_hoisted_3", NamingOptions())
        'r_itm_3'
        >>> constant_name("_withScopeId", NamingOptions())
        'r_itm_withScopeId'
    """
    if name.startswith(HOISTED_PREFIX):
        return options.hoisted_prefix + name[len(HOISTED_PREFIX) :]
    if name.startswith("_"):
        return options.hoisted_prefix + name.lstrip("_")
    return name


def reconcile(
    artifact: RenderArtifact,
    imports: ImportSet,
    options: NamingOptions | None = None,
) -> ReconciledRender:
    """
    Rewrite a render artifact's identifiers for use inside a component module.

    Args:
        artifact: Parsed compiler output of one component
        imports: Runtime API names imported anywhere in the pass
        options: Hoisted-constant prefix and runtime namespace

    Returns:
        ReconciledRender with renamed constants, the names to expose from
        ``setup()`` and the rewritten render function
    """
    options = options or NamingOptions()

    renamed = {const.name: constant_name(const.name, options) for const in artifact.constants}
    runtime_calls = {alias: f"{options.namespace}.{name}" for alias, name in imports.aliases.items()}

    # Constants block: hoisted references stay bare
    const_map = {**runtime_calls, **{old: new for old, new in renamed.items() if old != new}}
    # Function body: hoisted references go through the component instance
    body_map = {**runtime_calls, **{old: f"this.{new}" for old, new in renamed.items()}}

    constants = tuple(
        ConstantDeclaration(name=renamed[const.name], expression=_substitute(const.expression, const_map))
        for const in artifact.constants
    )

    exposed: list[str] = []
    for const in constants:
        if const.name not in exposed:
            exposed.append(const.name)

    return ReconciledRender(
        constants=constants,
        exposed=tuple(exposed),
        params=artifact.params,
        body=_substitute(artifact.body, body_map),
    )
