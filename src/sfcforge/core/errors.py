"""
Error types for component extraction, compilation, and output.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class SfcError(Exception):
    """Base exception for all sfcforge errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class StructuralParseError(SfcError):
    """
    Raised when a component source does not have the expected shape.

    Examples:
    - Unterminated <template> or <script> section
    - Script section without an ``export default { ... }`` wrapper
    """

    pass


class SectionCountError(StructuralParseError):
    """
    Raised when a component has the wrong number of top-level sections.

    Examples:
    - Zero or two <template> sections
    - Zero or two <script> sections
    - More than one <style> or <i18n> section
    """

    pass


class LocalizationParseError(SfcError):
    """
    Raised when an <i18n> section is not a valid localization table.

    Examples:
    - Malformed JSON
    - Top level is not an object
    - Locale entry is not a flat string-to-string object
    """

    pass


class ExternalCompilerError(SfcError):
    """
    Raised when the batched template compiler fails.

    This error is pass-global: the batch is all-or-nothing, so no render
    artifact from a failed invocation is trusted.

    Examples:
    - Compiler binary not found
    - Non-zero exit status or timeout
    - No artifact produced for a requested component
    - Artifact that cannot be split into imports, constants and render function
    """

    pass


class ComponentIOError(SfcError):
    """Raised when a component source or output artifact cannot be read or written."""

    def __init__(self, message: str, path: Path):
        self.path = path
        super().__init__(f"{path}: {message}")


class ConfigError(SfcError):
    """Raised when sfcforge.toml or an override holds an invalid value."""

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the component source where the error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source line showing the error location
    """

    file: Path
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "Comp.vue:10:5"
        """
        location = f"{self.file.name}:{self.line}:{self.column}"
        if self.snippet:
            marker = " " * (self.column - 1) + "^^^"
            return f"{location}\n    {self.snippet}\n    {marker}"
        return location


def context_at(file: Path, text: str, offset: int) -> ErrorContext:
    """
    Build an ErrorContext for a character offset into a source text.

    Args:
        file: Source file path
        text: Full source text
        offset: 0-based character offset of the error

    Returns:
        ErrorContext with line, column and the offending line as snippet
    """
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    line_end = text.find("\n", offset)
    if line_end == -1:
        line_end = len(text)
    return ErrorContext(
        file=file,
        line=line,
        column=offset - line_start + 1,
        snippet=text[line_start:line_end],
    )


def make_structural_error(
    message: str,
    file: Path,
    text: str | None = None,
    offset: int | None = None,
) -> StructuralParseError:
    """
    Helper to create a StructuralParseError with optional location.

    Args:
        message: Error description
        file: Component source path
        text: Optional source text used to compute the location
        offset: Optional 0-based offset into ``text``

    Returns:
        StructuralParseError with context attached when a location is known
    """
    if text is not None and offset is not None:
        return StructuralParseError(message, context_at(file, text, offset))
    return StructuralParseError(message)
