"""Shared pytest fixtures for sfcforge tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from sfcforge.compiler import CompileRequest, CompileResponse
from sfcforge.core.config import BuildConfig, config_from_dict
from sfcforge.core.environment import SFCFORGE_MODE_VAR
from sfcforge.core.errors import ExternalCompilerError

DEFAULT_SCRIPT = """\
export default {
  data() {
    return { count: 0 }
  }
}"""


def render_artifact_for(template: str) -> str:
    """Compiler-shaped render artifact that renders ``template`` as text."""
    return (
        "import { openBlock as _openBlock, createElementBlock as _createElementBlock } "
        'from "vue"\n'
        "\n"
        'const _hoisted_1 = { class: "component" }\n'
        "\n"
        "export function render(_ctx, _cache) {\n"
        f'  return (_openBlock(), _createElementBlock("div", _hoisted_1, {json.dumps(template)}))\n'
        "}\n"
    )


class FakeTemplateCompiler:
    """In-process stand-in for the node template compiler."""

    def __init__(self, artifacts: dict[str, str] | None = None, error: str | None = None):
        # Artifact text by component file name; others get render_artifact_for()
        self.artifacts = artifacts or {}
        self.error = error
        self.requests: list[CompileRequest] = []

    def compile_batch(self, request: CompileRequest) -> CompileResponse:
        self.requests.append(request)
        if self.error:
            raise ExternalCompilerError(self.error)
        response = CompileResponse()
        for job in request.jobs:
            text = self.artifacts.get(job.path.name) or render_artifact_for(job.source)
            response.artifacts[job.path] = text
        return response


@pytest.fixture(autouse=True)
def clear_mode_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's SFCFORGE_MODE out of the tests."""
    monkeypatch.delenv(SFCFORGE_MODE_VAR, raising=False)


@pytest.fixture
def fake_compiler() -> FakeTemplateCompiler:
    return FakeTemplateCompiler()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Return an empty project with a components directory."""
    (tmp_path / "website" / "vue").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def components_dir(project_dir: Path) -> Path:
    return project_dir / "website" / "vue"


@pytest.fixture
def project_config() -> BuildConfig:
    return config_from_dict({"build": {"workers": 2}})


@pytest.fixture
def write_component(components_dir: Path) -> Callable[..., Path]:
    """Return a function that writes a component source file."""

    def _write(
        name: str,
        template: str = "<p>{{ count }}</p>",
        script: str = DEFAULT_SCRIPT,
        style: str | None = None,
        i18n: dict | str | None = None,
        directory: Path | None = None,
    ) -> Path:
        parts = [f"<template>\n  {template}\n</template>", f"<script>\n{script}\n</script>"]
        if style is not None:
            parts.append(f"<style>\n{style}\n</style>")
        if i18n is not None:
            body = i18n if isinstance(i18n, str) else json.dumps(i18n, indent=2, ensure_ascii=False)
            parts.append(f"<i18n>\n{body}\n</i18n>")

        path = (directory or components_dir) / f"{name}.vue"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n\n".join(parts) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def compiler_factory() -> type[FakeTemplateCompiler]:
    """Return the fake compiler class, for tests that need canned artifacts."""
    return FakeTemplateCompiler
