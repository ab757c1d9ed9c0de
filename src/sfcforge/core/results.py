"""
Result records for build passes.

A pass produces one ``ComponentResult`` per component source. Failures are
recorded against the component and never stop the other components of the
pass; the ``BuildResult`` collects them for reporting.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from .writer import WriteOutcome


class ComponentState(StrEnum):
    """Last state a component reached in the pass."""

    EXTRACTED = "extracted"
    RENDERED = "rendered"
    TEMPLATE_EMBEDDED = "template-embedded"
    RECONCILED = "reconciled"
    ASSEMBLED = "assembled"
    WRITTEN = "written"
    FAILED = "failed"


@dataclass
class ComponentResult:
    """
    Outcome of building one component.

    Attributes:
        source: Component source path
        name: Registration name of the component
        state: Last state reached
        outputs: Written (or unchanged) files and what happened to each
        error: Error message if the component failed
    """

    source: Path
    name: str
    state: ComponentState = ComponentState.EXTRACTED
    outputs: dict[Path, WriteOutcome] = field(default_factory=dict)
    error: str | None = None

    @property
    def success(self) -> bool:
        """Whether the component was built and written."""
        return self.state == ComponentState.WRITTEN

    def fail(self, error: Exception | str) -> None:
        """Mark the component as failed."""
        self.state = ComponentState.FAILED
        self.error = str(error)

    def add_output(self, path: Path, outcome: WriteOutcome) -> None:
        """Record an output file."""
        self.outputs[path] = outcome


@dataclass
class BuildResult:
    """
    Result of a complete build pass.

    Attributes:
        components: Per-component results, in discovery order
        warnings: Non-fatal issues to display to the user
    """

    components: list[ComponentResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Whether every component was built."""
        return all(c.success for c in self.components)

    @property
    def failed(self) -> list[ComponentResult]:
        return [c for c in self.components if not c.success]

    @property
    def files_written(self) -> list[Path]:
        return [
            path
            for component in self.components
            for path, outcome in component.outputs.items()
            if outcome.written
        ]

    def add_warning(self, warning: str) -> None:
        """Record a warning."""
        self.warnings.append(warning)


@dataclass
class ExportResult:
    """
    Result of a localization export.

    Attributes:
        locales: Locale codes found across all components
        outputs: Written (or unchanged) files and what happened to each
        errors: Components whose localization could not be read, by path
            relative to the components directory
    """

    locales: list[str] = field(default_factory=list)
    outputs: dict[Path, WriteOutcome] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors

    def add_output(self, path: Path, outcome: WriteOutcome) -> None:
        self.outputs[path] = outcome

    def add_error(self, component: str, error: Exception | str) -> None:
        self.errors[component] = str(error)
