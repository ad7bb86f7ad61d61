"""freecoq - compiles a small Haskell-like language to Coq's Gallina."""

from __future__ import annotations

from .backend import to_gallina
from .config import Options
from .converter import ConversionResult, convert_module
from .frontend import parse

__all__ = ["ConversionResult", "Options", "compile_source", "convert", "parse", "to_gallina"]


def convert(source: str, options: Options | None = None) -> ConversionResult:
    """Parse IR source text and convert it."""
    return convert_module(parse(source), options)


def compile_source(source: str, options: Options | None = None) -> tuple[str, ConversionResult]:
    """Parse, convert and render IR source text as Coq source."""
    result = convert(source, options)
    return to_gallina(result.sentences), result
