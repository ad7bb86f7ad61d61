"""Frontend package - converts IR source text to an IR Module."""

from __future__ import annotations

from ..config import extract_pragmas
from ..ir import Module
from .parse import ParseError as ParseError, Parser
from .tokens import TokenizeError as TokenizeError, tokenize


def parse(source: str) -> Module:
    """Parse IR source code into a Module, including its pragmas."""
    pragmas = extract_pragmas(source)
    tokens = tokenize(source)
    parser = Parser(tokens)
    module = parser.parse_module()
    module.pragmas = pragmas
    return module
