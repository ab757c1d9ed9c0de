"""
Build pass orchestration.

A ``BuildPass`` turns every component below the components directory into
a module (and stylesheet) in these stages::

    discover -> extract (parallel)
             -> [release] compile batch          barrier: one node process
             -> [release] scan runtime imports   barrier: needs every artifact
             -> reconcile / assemble / write (parallel)

Component errors (bad structure, bad localization JSON, unreadable or
unwritable files) fail only that component. A template compiler failure
aborts the whole pass, since none of the batch's artifacts can be trusted.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from .compiler import CompileJob, CompileRequest, NodeTemplateCompiler, TemplateCompiler
from .core.assembler import ModuleAssembler, RuntimeNames
from .core.config import BuildConfig
from .core.environment import BuildMode, resolve_build_mode
from .core.errors import SfcError
from .core.fileset import component_name, discover_components
from .core.localization import LocaleMapping, LocalizationTable, parse_localization
from .core.reconcile import ImportSet, NamingOptions, reconcile
from .core.render import RenderArtifact, parse_render_artifact
from .core.results import BuildResult, ComponentResult, ComponentState, ExportResult
from .core.sections import (
    ComponentSections,
    ComponentSource,
    extract_localization,
    extract_sections,
)
from .core.writer import remove_stale, write_if_changed

logger = logging.getLogger(__name__)

LANGUAGES_JSON = "languages.json"
LANGUAGES_JS = "languages.js"
LANGUAGES_JS_GLOBAL = "GLOBAL_Language"


@dataclass
class _Unit:
    """A component moving through one pass."""

    source: ComponentSource
    result: ComponentResult
    sections: ComponentSections | None = None
    localization: LocaleMapping | None = None
    artifact: RenderArtifact | None = None


class BuildPass:
    """
    One build of every component in a project.

    Example:
        config = load_config(project_root)
        result = BuildPass(project_root, config).run()
        for component in result.failed:
            print(component.name, component.error)
    """

    def __init__(
        self,
        project_root: Path,
        config: BuildConfig | None = None,
        mode: BuildMode | None = None,
        compiler: TemplateCompiler | None = None,
    ):
        """
        Initialize a build pass.

        Args:
            project_root: Directory that relative config paths resolve against
            config: Build configuration (defaults if not provided)
            mode: Explicit mode override (else SFCFORGE_MODE, else config)
            compiler: Template compiler for release builds (node bridge if not provided)
        """
        self.project_root = project_root
        self.config = config or BuildConfig()
        self.mode = resolve_build_mode(self.config.build.mode, mode)
        self.components_dir = self.config.components_path(project_root)

        if compiler is None:
            compiler = NodeTemplateCompiler(
                work_dir=self.config.work_path(project_root),
                node=self.config.compiler.node,
                timeout=self.config.compiler.timeout,
            )
        self.compiler = compiler
        self.assembler = ModuleAssembler(RuntimeNames(**self.config.runtime.model_dump()))
        self.naming = NamingOptions(
            hoisted_prefix=self.config.compiler.hoisted_prefix,
            namespace=self.config.runtime.namespace,
        )

    def discover(self) -> list[Path]:
        """Component sources of this pass, sorted by path."""
        return discover_components(self.components_dir, self.config.build.extension)

    def module_path(self, source: Path) -> Path:
        return source.with_name(source.name + self.config.build.module_suffix)

    def style_path(self, source: Path) -> Path:
        return source.with_name(source.name + self.config.build.style_suffix)

    def run(self, paths: list[Path] | None = None) -> BuildResult:
        """
        Build components.

        Args:
            paths: Component sources to build (all discovered ones if None)

        Returns:
            BuildResult with one ComponentResult per source

        Raises:
            ExternalCompilerError: If the release-mode template compiler fails
        """
        if paths is None:
            paths = self.discover()
        logger.info(
            "Building %d component(s) in %s mode from %s",
            len(paths),
            self.mode.value,
            self.components_dir,
        )

        result = BuildResult()
        if not paths:
            result.add_warning(f"No {self.config.build.extension} files found in {self.components_dir}")
            return result

        with ThreadPoolExecutor(max_workers=self.config.build.workers) as executor:
            units = list(executor.map(self._extract, paths))
            result.components.extend(unit.result for unit in units)

            ready = [unit for unit in units if unit.result.state != ComponentState.FAILED]
            imports = ImportSet()
            if self.mode == BuildMode.RELEASE and ready:
                imports = self._render(ready)

            list(executor.map(lambda unit: self._finish(unit, imports), ready))

        for component in result.failed:
            logger.error("%s: %s", component.source.name, component.error)
        return result

    def _extract(self, path: Path) -> _Unit:
        extension = self.config.build.extension
        unit = _Unit(
            source=ComponentSource(path=path, text="", extension=extension),
            result=ComponentResult(source=path, name=component_name(path, extension)),
        )
        try:
            unit.source = ComponentSource.read(path, extension)
            unit.sections = extract_sections(unit.source)
            unit.localization = parse_localization(unit.sections.localization, path)
        except SfcError as e:
            unit.result.fail(e)
            return unit
        logger.debug("Extracted %s", path.name)
        return unit

    def _render(self, units: list[_Unit]) -> ImportSet:
        """Compile every template in one batch and collect the runtime imports."""
        request = CompileRequest(
            jobs=tuple(CompileJob(path=u.source.path, source=u.sections.template) for u in units)
        )
        response = self.compiler.compile_batch(request)

        for unit in units:
            unit.artifact = parse_render_artifact(response.artifact_for(unit.source.path), unit.source.path)
            unit.result.state = ComponentState.RENDERED

        return ImportSet.from_artifacts(unit.artifact for unit in units)

    def _assemble(self, unit: _Unit, imports: ImportSet) -> str:
        sections = unit.sections
        if unit.artifact is not None:
            render = reconcile(unit.artifact, imports, self.naming)
            unit.result.state = ComponentState.RECONCILED
            return self.assembler.assemble_release(
                unit.result.name, unit.source.path, sections.script, render, unit.localization
            )

        unit.result.state = ComponentState.TEMPLATE_EMBEDDED
        return self.assembler.assemble_debug(
            unit.result.name, unit.source.path, sections.script, sections.template, unit.localization
        )

    def _finish(self, unit: _Unit, imports: ImportSet) -> None:
        path = unit.source.path
        try:
            module = self._assemble(unit, imports)
            unit.result.state = ComponentState.ASSEMBLED

            module_path = self.module_path(path)
            unit.result.add_output(module_path, write_if_changed(module_path, module))
            style_path = self.style_path(path)
            if unit.sections.style:
                unit.result.add_output(style_path, write_if_changed(style_path, unit.sections.style))
            else:
                remove_stale(style_path)
        except SfcError as e:
            unit.result.fail(e)
            return

        unit.result.state = ComponentState.WRITTEN
        logger.info("%s -> %s", path.name, ", ".join(p.name for p in unit.result.outputs))


def _relative_name(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def _json_text(data: LocaleMapping) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def export_languages(
    project_root: Path,
    config: BuildConfig | None = None,
    paths: list[Path] | None = None,
) -> ExportResult:
    """
    Collect the ``<i18n>`` sections of all components into language files.

    Writes ``languages.json`` (all locales), ``language_<code>.json`` per
    locale and, unless disabled, ``languages.js`` defining a
    ``GLOBAL_Language`` constant. Nothing is written if any component's
    localization cannot be read, so the files never miss a component.

    Args:
        project_root: Directory that relative config paths resolve against
        config: Build configuration (defaults if not provided)
        paths: Component sources to read (all discovered ones if None)

    Returns:
        ExportResult with locales, written files and per-component errors
    """
    config = config or BuildConfig()
    extension = config.build.extension
    components_root = config.components_path(project_root)
    if paths is None:
        paths = discover_components(components_root, extension)

    def _read(path: Path) -> LocaleMapping:
        source = ComponentSource.read(path, extension)
        return parse_localization(extract_localization(source), path)

    result = ExportResult()
    table = LocalizationTable()
    with ThreadPoolExecutor(max_workers=config.build.workers) as executor:
        futures = [(path, executor.submit(_read, path)) for path in paths]
        # Merge in path order so duplicate keys resolve deterministically
        for path, future in futures:
            try:
                mapping = future.result()
            except SfcError as e:
                name = _relative_name(path, components_root)
                logger.error("%s: %s", name, e)
                result.add_error(name, e)
                continue
            table.merge(component_name(path, extension), mapping)

    result.locales = table.locales
    if not result.success:
        return result

    json_dir = config.json_path(project_root)
    outputs = {json_dir / LANGUAGES_JSON: _json_text(table.consolidated())}
    for locale in table.locales:
        outputs[json_dir / f"language_{locale}.json"] = _json_text(table.for_locale(locale))
    if config.i18n.js_export:
        js_text = f"const {LANGUAGES_JS_GLOBAL} = {_json_text(table.consolidated())}"
        outputs[config.js_path(project_root) / LANGUAGES_JS] = js_text

    for path, content in outputs.items():
        try:
            result.add_output(path, write_if_changed(path, content))
        except SfcError as e:
            result.add_error(_relative_name(path, project_root), e)
            continue
        logger.info("Language file: %s", path)
    return result
