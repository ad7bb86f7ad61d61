"""Positions of subterms within expressions.

A position is the path of child indices from the root of an expression to a
subterm; the root position is (). Child indices by node kind:

    App          0 = function, 1 = argument
    TypeAppExpr  0 = expression
    If           0 = condition, 1 = then branch, 2 = else branch
    Case         0 = scrutinee, i + 1 = right-hand side of alternative i
    Lambda       0 = body

Variables, constructors, literals and error terms have no children.
"""

from __future__ import annotations

from typing import Callable

from ..ir import (
    Alt,
    App,
    Case,
    Con,
    ErrorExpr,
    Expr,
    If,
    IntLiteral,
    Lambda,
    TypeAppExpr,
    Undefined,
    Var,
)

Pos = tuple[int, ...]

ROOT_POS: Pos = ()


def children(expr: Expr) -> list[Expr]:
    """Direct subterms of expr, in child index order."""
    if isinstance(expr, App):
        return [expr.func, expr.arg]
    if isinstance(expr, TypeAppExpr):
        return [expr.expr]
    if isinstance(expr, If):
        return [expr.cond, expr.then_expr, expr.else_expr]
    if isinstance(expr, Case):
        return [expr.scrutinee] + [alt.rhs for alt in expr.alts]
    if isinstance(expr, Lambda):
        return [expr.body]
    if isinstance(expr, (Var, Con, IntLiteral, Undefined, ErrorExpr)):
        return []
    raise TypeError("unknown expression node: " + type(expr).__name__)


def with_children(expr: Expr, new: list[Expr]) -> Expr:
    """Copy of expr with its direct subterms replaced."""
    if isinstance(expr, App):
        return App(new[0], new[1], loc=expr.loc)
    if isinstance(expr, TypeAppExpr):
        return TypeAppExpr(new[0], expr.typ, loc=expr.loc)
    if isinstance(expr, If):
        return If(new[0], new[1], new[2], loc=expr.loc)
    if isinstance(expr, Case):
        alts: list[Alt] = []
        for alt, rhs in zip(expr.alts, new[1:]):
            alts.append(Alt(alt.pattern, alt.var_pats, rhs, loc=alt.loc))
        return Case(new[0], alts, loc=expr.loc)
    if isinstance(expr, Lambda):
        return Lambda(expr.args, new[0], loc=expr.loc)
    return expr


def child_binders(expr: Expr, index: int) -> set[str]:
    """Variables bound by expr for its child at index."""
    if isinstance(expr, Lambda):
        return {a.name for a in expr.args}
    if isinstance(expr, Case) and index > 0:
        return {v.name for v in expr.alts[index - 1].var_pats}
    return set()


# ============================================================
# SELECTION AND REPLACEMENT
# ============================================================


def select_subterm(expr: Expr, pos: Pos) -> Expr | None:
    """Subterm at pos, or None if pos is not a position of expr."""
    for i in pos:
        kids = children(expr)
        if i < 0 or i >= len(kids):
            return None
        expr = kids[i]
    return expr


def replace_subterm(expr: Expr, pos: Pos, new: Expr) -> Expr | None:
    """Copy of expr with the subterm at pos replaced, or None if pos is invalid."""
    if len(pos) == 0:
        return new
    kids = children(expr)
    i = pos[0]
    if i < 0 or i >= len(kids):
        return None
    replaced = replace_subterm(kids[i], pos[1:], new)
    if replaced is None:
        return None
    kids[i] = replaced
    return with_children(expr, kids)


def replace_subterms(expr: Expr, replacements: list[tuple[Pos, Expr]]) -> Expr | None:
    """Replace several subterms; positions must not be below one another."""
    for pos, new in replacements:
        replaced = replace_subterm(expr, pos, new)
        if replaced is None:
            return None
        expr = replaced
    return expr


# ============================================================
# SEARCH
# ============================================================


def all_pos(expr: Expr) -> list[Pos]:
    """Every position of expr in pre-order."""
    return find_subterm_pos(lambda _: True, expr)


def find_subterm_pos(pred: Callable[[Expr], bool], expr: Expr) -> list[Pos]:
    """Positions of subterms satisfying pred, in pre-order."""
    out: list[Pos] = []
    _find(pred, expr, ROOT_POS, out)
    return out


def _find(pred: Callable[[Expr], bool], expr: Expr, pos: Pos, out: list[Pos]) -> None:
    if pred(expr):
        out.append(pos)
    for i, kid in enumerate(children(expr)):
        _find(pred, kid, pos + (i,), out)


def find_subterms(pred: Callable[[Expr], bool], expr: Expr) -> list[Expr]:
    out: list[Expr] = []
    for pos in find_subterm_pos(pred, expr):
        sub = select_subterm(expr, pos)
        if sub is not None:
            out.append(sub)
    return out


def above(p: Pos, q: Pos) -> bool:
    """p is a (not necessarily proper) prefix of q."""
    return len(p) <= len(q) and q[: len(p)] == p


def below(p: Pos, q: Pos) -> bool:
    """p lies within the subterm at q (or is q itself)."""
    return above(q, p)


def bound_vars_at(expr: Expr, pos: Pos) -> set[str]:
    """Variables bound by lambdas and case alternatives enclosing pos."""
    bound: set[str] = set()
    for i in pos:
        kids = children(expr)
        if i < 0 or i >= len(kids):
            break
        bound |= child_binders(expr, i)
        expr = kids[i]
    return bound
