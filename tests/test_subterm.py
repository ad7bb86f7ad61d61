"""Tests for subterm positions."""

from freecoq.frontend import parse
from freecoq.ir import Case, Con, IntLiteral, Var
from freecoq.middleend.subterm import (
    ROOT_POS,
    above,
    all_pos,
    below,
    bound_vars_at,
    find_subterm_pos,
    find_subterms,
    replace_subterm,
    replace_subterms,
    select_subterm,
)


def _rhs(source: str):
    return parse(source).func_decls[0].rhs


EXPR = _rhs(
    "f c a d b = \\x -> if c then a else if d then b "
    "else case x of { [] -> 0; y : ys -> y }"
)


def test_find_case_position():
    assert find_subterm_pos(lambda e: isinstance(e, Case), EXPR) == [(0, 2, 2)]


def test_select_subterm():
    assert select_subterm(EXPR, ROOT_POS) is EXPR
    assert select_subterm(EXPR, (0, 0)) == Var("c")
    assert select_subterm(EXPR, (0, 2, 2, 0)) == Var("x")
    assert select_subterm(EXPR, (0, 2, 2, 1)) == IntLiteral(0)
    assert select_subterm(EXPR, (0, 2, 2, 2)) == Var("y")


def test_select_invalid_position():
    assert select_subterm(EXPR, (1,)) is None
    assert select_subterm(EXPR, (0, 0, 0)) is None


def test_all_positions_in_preorder():
    positions = all_pos(EXPR)
    assert len(positions) == 11
    assert positions[0] == ROOT_POS
    assert positions[1] == (0,)
    assert positions.index((0, 2)) < positions.index((0, 2, 2))


def test_replace_subterm():
    replaced = replace_subterm(EXPR, (0, 2, 2, 2), Con("[]"))
    assert replaced is not None
    assert select_subterm(replaced, (0, 2, 2, 2)) == Con("[]")
    # the original is left untouched
    assert select_subterm(EXPR, (0, 2, 2, 2)) == Var("y")


def test_replace_root():
    assert replace_subterm(EXPR, ROOT_POS, Var("z")) == Var("z")


def test_replace_invalid_position():
    assert replace_subterm(EXPR, (5,), Var("z")) is None
    assert replace_subterms(EXPR, [((0, 0), Var("z")), ((7,), Var("z"))]) is None


def test_replace_several_subterms():
    replaced = replace_subterms(EXPR, [((0, 0), Var("p")), ((0, 1), Var("q"))])
    assert replaced is not None
    assert select_subterm(replaced, (0, 0)) == Var("p")
    assert select_subterm(replaced, (0, 1)) == Var("q")


def test_find_subterms():
    found = find_subterms(lambda e: isinstance(e, Var) and e.name in ("a", "b"), EXPR)
    assert found == [Var("a"), Var("b")]


def test_above_and_below():
    assert above((0,), (0, 2))
    assert above((0, 2), (0, 2))
    assert not above((0, 2), (0,))
    assert below((0, 2), (0,))
    assert below((0, 2), (0, 2))
    assert not below((0,), (0, 2))
    assert not below((1,), (0,))


def test_bound_vars():
    assert bound_vars_at(EXPR, ROOT_POS) == set()
    assert bound_vars_at(EXPR, (0,)) == {"x"}
    assert bound_vars_at(EXPR, (0, 2, 2, 1)) == {"x"}
    assert bound_vars_at(EXPR, (0, 2, 2, 2)) == {"x", "y", "ys"}
