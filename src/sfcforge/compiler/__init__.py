"""Template compiler bridge used by release builds."""

from .bridge import (
    CompileJob,
    CompileRequest,
    CompileResponse,
    NodeTemplateCompiler,
    TemplateCompiler,
    stable_id,
)

__all__ = [
    "CompileJob",
    "CompileRequest",
    "CompileResponse",
    "NodeTemplateCompiler",
    "TemplateCompiler",
    "stable_id",
]
