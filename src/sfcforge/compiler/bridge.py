"""Batched template compilation through ``node`` and ``@vue/compiler-sfc``."""

from __future__ import annotations

import hashlib
import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from sfcforge.core.errors import ExternalCompilerError

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".render"
MANIFEST_NAME = "compile_batch.json"
SCRIPT_NAME = "node_vue3_sfc_compiler_script.js"

# Max stderr characters kept in error messages
STDERR_TRUNCATE = 2000

COMPILER_SCRIPT = """\
const { compileTemplate } = require('@vue/compiler-sfc');
const fs = require('fs');
const path = require('path');

const manifestPath = process.argv[2];
const outDir = path.dirname(manifestPath);
const batch = JSON.parse(fs.readFileSync(manifestPath, 'utf8'));

let failed = 0;
for (const job of batch.jobs) {
  const result = compileTemplate({
    source: job.source,
    filename: job.path,
    id: job.id,
    isProd: batch.isProd,
    compilerOptions: { comments: batch.comments }
  });
  if (result.errors && result.errors.length) {
    failed++;
    result.errors.forEach(err => console.error(job.path + ': ' + (err.message || err)));
    continue;
  }
  fs.writeFileSync(path.join(outDir, job.id + '.render'), result.code, 'utf8');
}
process.exit(failed ? 1 : 0);
"""


def stable_id(path: Path) -> str:
    """Deterministic component id: MD5 hex digest of the path string."""
    return hashlib.md5(str(path).encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CompileJob:
    """One template to compile."""

    path: Path
    source: str
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(self, "id", stable_id(self.path))


@dataclass(frozen=True)
class CompileRequest:
    """A whole pass worth of templates, compiled in one invocation."""

    jobs: tuple[CompileJob, ...]
    production: bool = True
    comments: bool = False


@dataclass
class CompileResponse:
    """Raw render artifact text per component path."""

    artifacts: dict[Path, str] = field(default_factory=dict)

    def artifact_for(self, path: Path) -> str:
        try:
            return self.artifacts[path]
        except KeyError:
            raise ExternalCompilerError(
                f"Template compiler produced no artifact for '{path.name}'"
            ) from None


class TemplateCompiler(Protocol):
    """Anything that turns a batch of templates into render artifacts."""

    def compile_batch(self, request: CompileRequest) -> CompileResponse:
        """Compile every job or raise ExternalCompilerError for the whole batch."""
        ...


class NodeTemplateCompiler:
    """
    Runs ``@vue/compiler-sfc`` in a single ``node`` process per batch.

    The batch is handed over as a JSON manifest in ``work_dir``; the script
    writes one ``<id>.render`` file per job next to it. ``@vue/compiler-sfc``
    is resolved by node from ``work_dir`` upwards, so the work directory
    should live inside the project that has it installed.
    """

    def __init__(self, work_dir: Path, node: str = "node", timeout: float = 120.0):
        self.work_dir = work_dir
        self.node = node
        self.timeout = timeout

    def _clear_artifacts(self) -> None:
        for stale in self.work_dir.glob(f"*{ARTIFACT_SUFFIX}"):
            stale.unlink()

    def _prepare(self, request: CompileRequest) -> tuple[Path, Path]:
        self.work_dir.mkdir(parents=True, exist_ok=True)
        self._clear_artifacts()

        script = self.work_dir / SCRIPT_NAME
        script.write_text(COMPILER_SCRIPT, encoding="utf-8")

        manifest = self.work_dir / MANIFEST_NAME
        batch = {
            "isProd": request.production,
            "comments": request.comments,
            "jobs": [
                {"path": str(job.path), "id": job.id, "source": job.source} for job in request.jobs
            ],
        }
        manifest.write_text(json.dumps(batch, ensure_ascii=False), encoding="utf-8")
        return script, manifest

    def _run(self, script: Path, manifest: Path) -> None:
        cmd = [self.node, str(script), str(manifest)]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.work_dir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalCompilerError(
                f"Template compiler timed out after {self.timeout:g} seconds"
            ) from e
        except FileNotFoundError as e:
            raise ExternalCompilerError(
                f"Template compiler runtime '{self.node}' not found. Install Node.js and "
                "run 'npm install @vue/compiler-sfc' in the project."
            ) from e

        if result.stdout.strip():
            logger.debug("Template compiler output:\n%s", result.stdout.strip())
        if result.returncode != 0:
            stderr = result.stderr.strip()[-STDERR_TRUNCATE:]
            raise ExternalCompilerError(
                f"Template compiler failed (rc={result.returncode}): {stderr}"
            )

    def _collect(self, request: CompileRequest) -> CompileResponse:
        response = CompileResponse()
        missing = []
        for job in request.jobs:
            artifact = self.work_dir / f"{job.id}{ARTIFACT_SUFFIX}"
            try:
                response.artifacts[job.path] = artifact.read_text(encoding="utf-8")
            except FileNotFoundError:
                missing.append(job.path.name)
                continue
            artifact.unlink()
        if missing:
            raise ExternalCompilerError(
                f"Template compiler produced no artifact for: {', '.join(missing)}"
            )
        return response

    def compile_batch(self, request: CompileRequest) -> CompileResponse:
        """
        Compile every template of a pass in one node invocation.

        Raises:
            ExternalCompilerError: If node is missing, fails, times out, or
                leaves any job without an artifact
        """
        if not request.jobs:
            return CompileResponse()

        script, manifest = self._prepare(request)
        logger.info("Compiling %d template(s) with %s", len(request.jobs), self.node)
        try:
            self._run(script, manifest)
            return self._collect(request)
        finally:
            manifest.unlink(missing_ok=True)
            self._clear_artifacts()
