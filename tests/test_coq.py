"""Tests for the Coq emitter."""

import pytest

from freecoq.backend import render_term, to_gallina
from freecoq.backend.gallina import (
    App,
    Arguments,
    Arrow,
    Binder,
    Comment,
    ConPattern,
    Constructor,
    Definition,
    Equation,
    FixBody,
    Fixpoint,
    Fun,
    IndBody,
    Inductive,
    Match,
    Num,
    Qualid,
    Require,
    Section,
    Sort,
    StringLit,
    Variable,
    WildPattern,
)


def _q(name: str) -> Qualid:
    return Qualid(name)


# ── Terms ──


@pytest.mark.parametrize(
    "term,expected",
    [
        (App(_q("f"), [App(_q("g"), [_q("x")]), _q("y")]), "f (g x) y"),
        (Arrow(Arrow(_q("a"), _q("b")), _q("c")), "(a -> b) -> c"),
        (Arrow(_q("a"), Arrow(_q("b"), _q("c"))), "a -> b -> c"),
        (Fun([Binder(["x"])], _q("x")), "fun x => x"),
        (App(_q("f"), [Fun([Binder(["x"])], _q("x"))]), "f (fun x => x)"),
        (StringLit('say "hi"'), '"say ""hi"""%string'),
        (Num(-1), "(-1)"),
        (App(_q("List"), [_q("Shape"), _q("Pos"), _q("a")]), "List Shape Pos a"),
    ],
)
def test_render_term(term, expected: str):
    assert render_term(term) == expected


def test_render_match():
    term = Match(
        _q("xs"),
        [
            Equation(ConPattern("nil"), Num(0)),
            Equation(ConPattern("cons", ["y", "ys"]), _q("y")),
            Equation(WildPattern(), Num(1)),
        ],
    )
    assert render_term(term) == (
        "match xs with\n| nil => 0\n| cons y ys => y\n| _ => 1\nend"
    )


# ── Sentences ──


def test_definition():
    assert to_gallina([Definition("x", [], None, Num(1))]) == "Definition x :=\n  1.\n"


def test_definition_with_binders():
    s = Definition(
        "id",
        [Binder(["a"], Sort(), implicit=True), Binder(["x"], _q("a"))],
        _q("a"),
        _q("x"),
    )
    assert to_gallina([s]) == "Definition id {a : Type} (x : a) : a :=\n  x.\n"


def test_mutual_inductive():
    s = Inductive(
        [
            IndBody("A", [], Sort(), [Constructor("a1", _q("A"))]),
            IndBody("B", [], Sort(), [Constructor("b1", _q("B"))]),
        ]
    )
    assert to_gallina([s]) == (
        "Inductive A : Type :=\n  | a1 : A\nwith B : Type :=\n  | b1 : B.\n"
    )


def test_mutual_fixpoint():
    s = Fixpoint(
        [
            FixBody("f", [Binder(["x"])], "x", None, App(_q("g"), [_q("x")])),
            FixBody("g", [Binder(["x"])], "x", None, App(_q("f"), [_q("x")])),
        ]
    )
    assert to_gallina([s]) == (
        "Fixpoint f x {struct x} :=\n  g x\nwith g x {struct x} :=\n  f x.\n"
    )


def test_comment_sticks_to_next_sentence():
    out = to_gallina([Comment("c"), Definition("x", [], None, Num(1))])
    assert out == "(* c *)\nDefinition x :=\n  1.\n"


def test_sentences_separated_by_blank_line():
    out = to_gallina(
        [Definition("x", [], None, Num(1)), Definition("y", [], None, Num(2))]
    )
    assert out == "Definition x :=\n  1.\n\nDefinition y :=\n  2.\n"


def test_section():
    s = Section(
        "s",
        [Variable(["A"], Sort()), Definition("x", [], None, _q("A"))],
    )
    assert to_gallina([s]) == (
        "Section s.\n  Variable A : Type.\n\n  Definition x :=\n    A.\nEnd s.\n"
    )


def test_arguments():
    out = to_gallina([Arguments("cons", ["Shape", "Pos", "a"])])
    assert out == "Arguments cons {Shape} {Pos} {a}.\n"


def test_require():
    out = to_gallina([Require("Base", ["Free", "Prelude"])])
    assert out == "From Base Require Import Free Prelude.\n"


def test_empty():
    assert to_gallina([]) == ""
