"""Capture-avoiding substitution of expressions for variables."""

from __future__ import annotations

from ..environment import Environment
from ..fresh import fresh_ident
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
    VarPat,
)

Subst = dict[str, Expr]


def single_subst(name: str, expr: Expr) -> Subst:
    return {name: expr}


def compose_substs(env: Environment, first: Subst, second: Subst) -> Subst:
    """Substitution that applies first, then second."""
    out: Subst = {}
    for name, expr in first.items():
        out[name] = apply_subst(env, second, expr)
    for name, expr in second.items():
        if name not in out:
            out[name] = expr
    return out


# ============================================================
# FREE VARIABLES
# ============================================================


def free_vars(expr: Expr) -> set[str]:
    """Names of variables occurring free in expr. Constructors are excluded."""
    out: set[str] = set()
    _free(expr, set(), out)
    return out


def _free(expr: Expr, bound: set[str], out: set[str]) -> None:
    if isinstance(expr, Var):
        if expr.name not in bound:
            out.add(expr.name)
    elif isinstance(expr, (Con, IntLiteral, Undefined, ErrorExpr)):
        pass
    elif isinstance(expr, App):
        _free(expr.func, bound, out)
        _free(expr.arg, bound, out)
    elif isinstance(expr, TypeAppExpr):
        _free(expr.expr, bound, out)
    elif isinstance(expr, If):
        _free(expr.cond, bound, out)
        _free(expr.then_expr, bound, out)
        _free(expr.else_expr, bound, out)
    elif isinstance(expr, Case):
        _free(expr.scrutinee, bound, out)
        for alt in expr.alts:
            _free(alt.rhs, bound | {v.name for v in alt.var_pats}, out)
    elif isinstance(expr, Lambda):
        _free(expr.body, bound | {a.name for a in expr.args}, out)
    else:
        raise TypeError("unknown expression node: " + type(expr).__name__)


# ============================================================
# APPLICATION
# ============================================================


def apply_subst(env: Environment, subst: Subst, expr: Expr) -> Expr:
    """Apply subst to expr without capturing free variables.

    Binders that shadow a substituted name remove it from the substitution
    for their scope. Binders whose name occurs free in a substituted
    expression are renamed to fresh variables first. Terms that mention no
    substituted name are returned unchanged.
    """
    if len(subst) == 0 or free_vars(expr).isdisjoint(subst.keys()):
        return expr
    return _apply(env, subst, expr)


def _apply(env: Environment, subst: Subst, expr: Expr) -> Expr:
    if isinstance(expr, Var):
        return subst.get(expr.name, expr)
    if isinstance(expr, (Con, IntLiteral, Undefined, ErrorExpr)):
        return expr
    if isinstance(expr, App):
        return App(_apply(env, subst, expr.func), _apply(env, subst, expr.arg), loc=expr.loc)
    if isinstance(expr, TypeAppExpr):
        return TypeAppExpr(_apply(env, subst, expr.expr), expr.typ, loc=expr.loc)
    if isinstance(expr, If):
        return If(
            _apply(env, subst, expr.cond),
            _apply(env, subst, expr.then_expr),
            _apply(env, subst, expr.else_expr),
            loc=expr.loc,
        )
    if isinstance(expr, Case):
        scrutinee = _apply(env, subst, expr.scrutinee)
        alts: list[Alt] = []
        for alt in expr.alts:
            var_pats, rhs = _apply_under(env, subst, alt.var_pats, alt.rhs)
            alts.append(Alt(alt.pattern, var_pats, rhs, loc=alt.loc))
        return Case(scrutinee, alts, loc=expr.loc)
    if isinstance(expr, Lambda):
        args, body = _apply_under(env, subst, expr.args, expr.body)
        return Lambda(args, body, loc=expr.loc)
    raise TypeError("unknown expression node: " + type(expr).__name__)


def _apply_under(
    env: Environment, subst: Subst, binders: list[VarPat], body: Expr
) -> tuple[list[VarPat], Expr]:
    """Apply subst to body within the scope of binders."""
    names = {b.name for b in binders}
    inner: Subst = {}
    for name, e in subst.items():
        if name not in names:
            inner[name] = e
    if len(inner) == 0 or free_vars(body).isdisjoint(inner.keys()):
        return binders, body
    captured: set[str] = set()
    for e in inner.values():
        captured |= free_vars(e)
    new_binders: list[VarPat] = []
    for b in binders:
        if b.name in captured:
            renamed = fresh_ident(env, b.name)
            inner[b.name] = Var(renamed, loc=b.loc)
            new_binders.append(VarPat(renamed, b.typ, loc=b.loc))
        else:
            new_binders.append(b)
    return new_binders, _apply(env, inner, body)
