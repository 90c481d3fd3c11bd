"""External stylesheet compiler contract and the lessc adapter."""

from .lessc import LesscCompiler
from .types import CompileOutput, CompileRequest, SourceMapOptions, StylesheetCompiler

__all__ = [
    "CompileOutput",
    "CompileRequest",
    "LesscCompiler",
    "SourceMapOptions",
    "StylesheetCompiler",
]
