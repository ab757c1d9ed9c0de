"""
Build configuration models.

Parses sfcforge.toml and provides typed configuration for the component
compiler, the external template compiler bridge, the host runtime names
embedded in generated modules, and the localization exporter.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .environment import BuildMode
from .errors import ConfigError

CONFIG_FILENAME = "sfcforge.toml"

_JS_IDENTIFIER = r"^[A-Za-z_$][A-Za-z0-9_$]*$"


class BuildSection(BaseModel):
    """Component discovery and output naming."""

    model_config = ConfigDict(extra="forbid")

    mode: BuildMode = BuildMode.DEBUG
    components_dir: str = "website/vue"
    extension: str = ".vue"
    module_suffix: str = ".js"
    style_suffix: str = ".css"
    workers: int = Field(default=4, ge=1)

    @field_validator("extension", "module_suffix", "style_suffix")
    @classmethod
    def _dotted(cls, value: str) -> str:
        if not value.startswith("."):
            raise ValueError(f"must start with '.', got {value!r}")
        return value


class CompilerSection(BaseModel):
    """External template compiler settings (release mode)."""

    model_config = ConfigDict(extra="forbid")

    node: str = "node"
    timeout: float = Field(default=120.0, gt=0)
    work_dir: str = ".sfcforge"
    hoisted_prefix: str = Field(default="r_itm_", pattern=_JS_IDENTIFIER)

    @field_validator("hoisted_prefix")
    @classmethod
    def _not_reserved(cls, value: str) -> str:
        # The runtime does not proxy "_" or "$" prefixed setup bindings
        if value[0] in "_$":
            raise ValueError("must not start with '_' or '$'")
        return value


class RuntimeSection(BaseModel):
    """Global names the generated modules expect from the host page."""

    model_config = ConfigDict(extra="forbid")

    app_object: str = Field(default="app", pattern=_JS_IDENTIFIER)
    namespace: str = Field(default="Vue", pattern=_JS_IDENTIFIER)
    i18n_instance: str = Field(default="i18n", pattern=_JS_IDENTIFIER)
    i18n_namespace: str = Field(default="VueI18n", pattern=_JS_IDENTIFIER)


class I18nSection(BaseModel):
    """Localization export targets."""

    model_config = ConfigDict(extra="forbid")

    json_dir: str = "website/json"
    js_dir: str = "website/js"
    js_export: bool = True


class BuildConfig(BaseModel):
    """Complete sfcforge configuration."""

    build: BuildSection = Field(default_factory=BuildSection)
    compiler: CompilerSection = Field(default_factory=CompilerSection)
    runtime: RuntimeSection = Field(default_factory=RuntimeSection)
    i18n: I18nSection = Field(default_factory=I18nSection)

    def _resolve(self, project_root: Path, value: str) -> Path:
        path = Path(value)
        if path.is_absolute():
            return path
        return project_root / path

    def components_path(self, project_root: Path) -> Path:
        """Get absolute component directory path."""
        return self._resolve(project_root, self.build.components_dir)

    def work_path(self, project_root: Path) -> Path:
        """Get absolute working directory of the template compiler."""
        return self._resolve(project_root, self.compiler.work_dir)

    def json_path(self, project_root: Path) -> Path:
        """Get absolute directory for JSON language files."""
        return self._resolve(project_root, self.i18n.json_dir)

    def js_path(self, project_root: Path) -> Path:
        """Get absolute directory for the languages.js export."""
        return self._resolve(project_root, self.i18n.js_dir)


def config_from_dict(data: dict[str, Any]) -> BuildConfig:
    """
    Build a BuildConfig from already-parsed TOML data.

    Raises:
        ConfigError: If a section or value is invalid
    """
    try:
        return BuildConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e


def load_config(project_root: Path) -> BuildConfig:
    """
    Load configuration from ``<project_root>/sfcforge.toml``.

    Args:
        project_root: Directory containing sfcforge.toml

    Returns:
        BuildConfig with parsed values, or defaults if the file is missing

    Raises:
        ConfigError: If the file is not valid TOML or holds invalid values
    """
    toml_path = project_root / CONFIG_FILENAME
    if not toml_path.exists():
        return BuildConfig()

    try:
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{toml_path}: {e}") from e

    return config_from_dict(data)
