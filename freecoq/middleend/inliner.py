"""Inlining of function declarations into expressions.

Used by the recursive-function transformer to inline the non-recursive main
functions into their recursive helpers, so that helpers call each other
directly.
"""

from __future__ import annotations

from ..environment import Environment
from ..errors import InlineError
from ..fresh import fresh_ident
from ..ir import (
    Alt,
    App,
    Case,
    Con,
    ErrorExpr,
    Expr,
    FuncDecl,
    If,
    IntLiteral,
    Lambda,
    TypeAppExpr,
    Undefined,
    Var,
    VarPat,
)
from .subst import Subst, apply_subst, single_subst


def inline_func_decl(env: Environment, decls: list[FuncDecl], decl: FuncDecl) -> FuncDecl:
    """Inline the right-hand sides of decls into the right-hand side of decl.

    The parameters of decl shadow functions of the same name.
    """
    rhs = _Inliner(env, decls).inline_and_bind(decl.rhs, frozenset(decl.arg_names))
    return FuncDecl(
        decl.name, decl.type_args, decl.args, rhs, decl.return_type, loc=decl.loc
    )


def inline_expr(env: Environment, decls: list[FuncDecl], expr: Expr) -> Expr:
    """Inline the right-hand sides of decls into expr.

    Occurrences applied to fewer arguments than the function's arity are
    eta-expanded with a lambda for the missing arguments.
    """
    return _Inliner(env, decls).inline_and_bind(expr)


class _Inliner:
    """Arity-tracking inliner for one set of declarations."""

    def __init__(self, env: Environment, decls: list[FuncDecl]):
        self.env = env
        self.decl_map: dict[str, FuncDecl] = {}
        for decl in decls:
            if not isinstance(decl, FuncDecl):
                raise InlineError("cannot inline " + type(decl).__name__)
            self.decl_map[decl.name] = decl

    def inline_and_bind(self, expr: Expr, bound: frozenset[str] = frozenset()) -> Expr:
        """Inline in expr and bind the arguments still missing with a lambda."""
        remaining, inlined = self.inline(expr, bound)
        if len(remaining) == 0:
            return inlined
        return Lambda([VarPat(name, None) for name in remaining], inlined, loc=expr.loc)

    def inline(self, expr: Expr, bound: frozenset[str]) -> tuple[list[str], Expr]:
        """Inline in expr.

        bound holds the local variables in scope; they shadow the inlined
        functions. Returns the fresh argument names of an inlined function
        that are not yet bound by an application, and the resulting expression.
        """
        if isinstance(expr, Var):
            decl = self.decl_map.get(expr.name)
            if decl is None or expr.name in bound:
                return [], expr
            return self.rename_args(decl)
        if isinstance(expr, TypeAppExpr):
            remaining, inner = self.inline(expr.expr, bound)
            if len(remaining) > 0:
                # Type arguments of an inlined function are erased.
                return remaining, inner
            return [], TypeAppExpr(inner, expr.typ, loc=expr.loc)
        if isinstance(expr, App):
            remaining, func = self.inline(expr.func, bound)
            arg = self.inline_and_bind(expr.arg, bound)
            if len(remaining) == 0:
                return [], App(func, arg, loc=expr.loc)
            subst: Subst = single_subst(remaining[0], arg)
            return remaining[1:], apply_subst(self.env, subst, func)
        if isinstance(expr, If):
            return [], If(
                self.inline_and_bind(expr.cond, bound),
                self.inline_and_bind(expr.then_expr, bound),
                self.inline_and_bind(expr.else_expr, bound),
                loc=expr.loc,
            )
        if isinstance(expr, Case):
            scrutinee = self.inline_and_bind(expr.scrutinee, bound)
            alts: list[Alt] = []
            for alt in expr.alts:
                alt_bound = bound | {v.name for v in alt.var_pats}
                rhs = self.inline_and_bind(alt.rhs, alt_bound)
                alts.append(Alt(alt.pattern, alt.var_pats, rhs, loc=alt.loc))
            return [], Case(scrutinee, alts, loc=expr.loc)
        if isinstance(expr, Lambda):
            body_bound = bound | {a.name for a in expr.args}
            return [], Lambda(expr.args, self.inline_and_bind(expr.body, body_bound), loc=expr.loc)
        if isinstance(expr, (Con, IntLiteral, Undefined, ErrorExpr)):
            return [], expr
        raise InlineError("unknown expression node: " + type(expr).__name__)

    def rename_args(self, decl: FuncDecl) -> tuple[list[str], Expr]:
        """Right-hand side of decl with its parameters renamed to fresh names."""
        names: list[str] = []
        subst: Subst = {}
        for arg in decl.args:
            fresh = fresh_ident(self.env, arg.name)
            names.append(fresh)
            subst[arg.name] = Var(fresh, loc=arg.loc)
        return names, apply_subst(self.env, subst, decl.rhs)
