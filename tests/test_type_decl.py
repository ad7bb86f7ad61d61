"""Tests for data type and type synonym conversion."""

import pytest

from freecoq import compile_source
from freecoq.converter import new_environment
from freecoq.converter.type_decl import (
    convert_type_component,
    define_type_decl,
    expand_type_synonyms,
)
from freecoq.errors import TypeSynonymCycleError
from freecoq.frontend import parse
from freecoq.ir import TypeApp, TypeCon, TypeVar
from freecoq.middleend import group_type_decls


def _coq(source: str) -> str:
    text, result = compile_source(source)
    assert result.ok, [str(e) for e in result.errors]
    return text


def test_simple_data_type():
    text = _coq("data Color = Red | Green")
    assert "Inductive Color (Shape : Type) (Pos : Shape -> Type) : Type :=" in text
    assert "  | Red : Color Shape Pos\n" in text
    assert "  | Green : Color Shape Pos." in text
    assert "Arguments Red {Shape} {Pos}." in text


def test_data_type_with_fields():
    text = _coq("data Pair a b = MkPair a b")
    assert "Inductive Pair (Shape : Type) (Pos : Shape -> Type) (a b : Type) : Type :=" in text
    assert "  | MkPair : a -> b -> Pair Shape Pos a b." in text
    assert "Arguments MkPair {Shape} {Pos} {a} {b}." in text


def test_type_synonym():
    text = _coq("type Name = [Integer]")
    assert (
        "Definition Name (Shape : Type) (Pos : Shape -> Type) : Type :=\n"
        "  List Shape Pos (Integer Shape Pos)."
    ) in text


def test_data_type_and_synonym_cycle():
    text = _coq("data Tree a = Leaf | Node (Forest a) a\ntype Forest a = [Tree a]")
    assert (
        "Inductive Tree (Shape : Type) (Pos : Shape -> Type) (a : Type) : Type :=\n"
        "  | Leaf : Tree Shape Pos a\n"
        "  | Node : List Shape Pos (Tree Shape Pos a) -> a -> Tree Shape Pos a.\n"
    ) in text
    assert "Arguments Leaf {Shape} {Pos} {a}." in text
    assert "Arguments Node {Shape} {Pos} {a}." in text
    assert (
        "Definition Forest (Shape : Type) (Pos : Shape -> Type) (a : Type) : Type :=\n"
        "  List Shape Pos (Tree Shape Pos a)."
    ) in text
    assert text.index("Inductive Tree") < text.index("Definition Forest")


def test_mutual_data_types():
    text = _coq("data A = A1 B | A0\ndata B = B1 A")
    assert "Inductive A (Shape : Type) (Pos : Shape -> Type) : Type :=" in text
    assert "with B (Shape : Type) (Pos : Shape -> Type) : Type :=" in text


def test_type_synonym_cycle_is_reported():
    _, result = compile_source("type T = U\ntype U = T\nf = 1")
    assert len(result.errors) == 1
    err = result.errors[0]
    assert isinstance(err, TypeSynonymCycleError)
    assert err.msg == "type synonym cycle: T, U"


def test_type_synonym_cycle_raised_by_component():
    module = parse("type T = U\ntype U = T")
    env = new_environment()
    for decl in module.type_decls:
        define_type_decl(env, decl)
    [component] = group_type_decls(module.type_decls)
    with pytest.raises(TypeSynonymCycleError):
        convert_type_component(env, component)


def test_constructor_renamed_away_from_type():
    env = new_environment()
    for decl in parse("data Foo = Foo").type_decls:
        define_type_decl(env, decl)
    assert env.lookup_ident("type", "Foo") == "Foo"
    assert env.lookup_ident("value", "Foo") == "Foo0"


def test_expand_type_synonyms():
    module = parse("type Forest a = [Tree a]")
    syn_map = {d.name: d for d in module.type_decls}
    typ = TypeApp(TypeCon("Forest"), TypeVar("b"))
    expanded = expand_type_synonyms(typ, syn_map)
    assert expanded == TypeApp(TypeCon("List"), TypeApp(TypeCon("Tree"), TypeVar("b")))
