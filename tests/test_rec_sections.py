"""Tests for recursive functions with constant arguments converted via sections."""

import pytest

from freecoq import compile_source
from freecoq.config import Options
from freecoq.converter import new_environment
from freecoq.converter.func_decl import func_entry
from freecoq.converter.rec_sections import (
    const_arg_types,
    convert_rec_func_decls_with_section,
    used_const_args,
)
from freecoq.errors import ConversionError
from freecoq.fresh import rename_and_define
from freecoq.frontend import parse
from freecoq.ir import FuncType, TypeVar
from freecoq.middleend.recursion import ConstArg, identify_const_args

MAP = """
map :: (a -> b) -> [a] -> [b]
map f xs = case xs of
  [] -> []
  y : ys -> f y : map f ys
"""


def _coq(source: str, options: Options | None = None) -> str:
    text, result = compile_source(source, options)
    assert result.ok, [str(e) for e in result.errors]
    return text


def _env_with(source: str):
    module = parse(source)
    env = new_environment()
    for sig in module.type_sigs:
        for name in sig.names:
            env.define_type_sig(name, sig.typ)
    for decl in module.func_decls:
        rename_and_define(env, func_entry(env, decl))
    return env, module.func_decls


# ── Constant argument types ──


def test_const_arg_types_from_signature():
    env, decls = _env_with(MAP)
    assert const_arg_types(env, [ConstArg(0, "f")], decls) == [
        FuncType(TypeVar("a"), TypeVar("b"))
    ]


def test_const_arg_types_unknown():
    env, decls = _env_with("f n xs = case xs of { [] -> n; y : ys -> f n ys }")
    assert const_arg_types(env, [ConstArg(0, "n")], decls) is None


def test_section_needs_types():
    env, decls = _env_with("f n xs = case xs of { [] -> n; y : ys -> f n ys }")
    with pytest.raises(ConversionError):
        convert_rec_func_decls_with_section(env, identify_const_args(decls), decls)


# ── Coq output ──


@pytest.mark.parametrize(
    "fragment",
    [
        "Section section_0.",
        "  Variable Shape : Type.",
        "  Variable Pos : Shape -> Type.",
        "  Variable a b : Type.",
        "  Variable f_0 : a -> b.",
        "  Fixpoint map_1 (xs : List Shape Pos a) {struct xs} :=",
        "cons (f_0 y) (map_1 ys)",
        "  Definition map_0 (xs : List Shape Pos a) : List Shape Pos b :=\n    map_1 xs.",
        "End section_0.",
        "Definition map {a b : Type} (Shape : Type) (Pos : Shape -> Type) "
        "(f : a -> b) (xs : List Shape Pos a) : List Shape Pos b :=\n"
        "  map_0 Shape Pos a b f xs.",
    ],
)
def test_map_with_section(fragment: str):
    assert fragment in _coq(MAP)


def test_wrapper_after_section():
    text = _coq(MAP)
    assert text.index("End section_0.") < text.index("Definition map {a b : Type}")


def test_sections_disabled():
    text = _coq(MAP, Options(use_sections=False))
    assert "Section" not in text
    assert "(* Helper functions for map *)" in text
    assert "Fixpoint map_0" in text


def test_mutual_group_shares_section():
    text = _coq("""
evens :: (Integer -> Integer) -> [Integer] -> [Integer]
evens p xs = case xs of { [] -> []; y : ys -> odds p ys }
odds :: (Integer -> Integer) -> [Integer] -> [Integer]
odds p xs = case xs of { [] -> []; y : ys -> p y : evens p ys }
""")
    assert text.count("Section ") == 1
    assert "  Variable p_0 : Integer Shape Pos -> Integer Shape Pos." in text
    assert "Definition evens (Shape : Type) (Pos : Shape -> Type)" in text
    assert "Definition odds (Shape : Type) (Pos : Shape -> Type)" in text


# ── Unused constant arguments ──

PASS_ON = """
f :: Integer -> [Integer] -> Integer
f c xs = case xs of { [] -> 0; y : ys -> f c ys }
"""

MIXED = """
g :: Integer -> Integer -> [Integer] -> [Integer]
g c d xs = case xs of { [] -> []; y : ys -> c : g c d ys }
"""


def test_used_const_args():
    _, decls = _env_with(PASS_ON)
    assert used_const_args(identify_const_args(decls), decls) == []
    _, decls = _env_with(MIXED)
    assert identify_const_args(decls) == [ConstArg(0, "c"), ConstArg(1, "d")]
    assert used_const_args(identify_const_args(decls), decls) == [ConstArg(0, "c")]


def test_argument_only_passed_on_uses_helpers():
    text = _coq(PASS_ON)
    assert "Section" not in text
    assert "Fixpoint f_0" in text


def test_only_used_arguments_become_section_variables():
    text = _coq(MIXED)
    assert "  Variable c_0 : Integer Shape Pos." in text
    assert "Variable d" not in text
    assert "  g_0 Shape Pos c d xs." in text


def test_section_without_used_arguments_rejected():
    env, decls = _env_with(PASS_ON)
    with pytest.raises(ConversionError):
        convert_rec_func_decls_with_section(env, identify_const_args(decls), decls)
