"""Tests for converter options and pragma extraction."""

from freecoq.config import Options, extract_pragmas
from freecoq.ir import DecArgPragma


def test_default_options():
    options = Options()
    assert options.module_name == "Main"
    assert options.fail_fast is False
    assert options.use_sections is True
    assert options.emit_comments is True


def test_extract_pragmas():
    source = """-- pragma decreasing f n
-- a plain comment

-- pragma decreasing g xs
f n = n
"""
    assert extract_pragmas(source) == [DecArgPragma("f", "n"), DecArgPragma("g", "xs")]


def test_pragma_location():
    pragmas = extract_pragmas("\n  -- pragma decreasing f n\nf n = n")
    assert pragmas[0].loc.line == 2
    assert pragmas[0].loc.col == 3


def test_pragmas_after_code_are_ignored():
    source = "f n = n\n-- pragma decreasing f n\n"
    assert extract_pragmas(source) == []


def test_malformed_pragmas_are_ignored():
    source = "-- pragma decreasing f\n-- pragma inline f n\n"
    assert extract_pragmas(source) == []
