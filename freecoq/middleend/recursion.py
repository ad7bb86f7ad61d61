"""Recursion analysis: decreasing arguments and constant arguments.

Both analyses look at the calls between the members of one recursive
declaration group. A call site records, for each actual argument, whether it
is one of the caller's parameters (unshadowed) or a structural subterm of
one: a variable bound by a pattern of a `case` on that parameter, or on
another subterm of it, with no binder re-binding either name in between.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field

from ..environment import Environment
from ..errors import DecArgError
from ..ir import (
    App,
    Case,
    Con,
    ErrorExpr,
    Expr,
    FuncDecl,
    If,
    IntLiteral,
    Lambda,
    Loc,
    TypeAppExpr,
    Undefined,
    Var,
    VarPat,
    call_target,
    loc_unknown,
)

logger = logging.getLogger(__name__)


@dataclass
class CallSite:
    """A call of a group member from within the group.

    param_of[k] is the caller's parameter index passed unchanged as the k-th
    argument, subterm_of[k] the parameter index the k-th argument is a strict
    structural subterm of; None where neither applies.
    """

    caller: str
    callee: str
    param_of: list[int | None]
    subterm_of: list[int | None]
    loc: Loc = field(default_factory=loc_unknown, compare=False)

    @property
    def num_args(self) -> int:
        return len(self.param_of)


@dataclass
class ConstArg:
    """A parameter passed unchanged by every call within a recursive group.

    index is its position, arg_name the formal parameter name shared by all
    functions of the group.
    """

    index: int
    arg_name: str


# ============================================================
# CALL SITES
# ============================================================


class _CallCollector:
    """Collects the call sites of group members in one declaration."""

    def __init__(self, decl: FuncDecl, group: set[str]):
        self.decl = decl
        self.group = group
        self.sites: list[CallSite] = []

    def collect(self) -> list[CallSite]:
        params: dict[str, int] = {}
        for i, name in enumerate(self.decl.arg_names):
            params[name] = i
        self.visit(self.decl.rhs, set(), params, {})
        return self.sites

    def visit(
        self,
        expr: Expr,
        bound: set[str],
        params: dict[str, int],
        smaller: dict[str, int],
    ) -> None:
        if isinstance(expr, (Var, App, TypeAppExpr)):
            name, args = call_target(expr)
            if name is not None and name in self.group and name not in bound:
                self.record(name, args, params, smaller, expr.loc)
                for a in args:
                    self.visit(a, bound, params, smaller)
                return
            if isinstance(expr, App):
                self.visit(expr.func, bound, params, smaller)
                self.visit(expr.arg, bound, params, smaller)
            elif isinstance(expr, TypeAppExpr):
                self.visit(expr.expr, bound, params, smaller)
            return
        if isinstance(expr, If):
            self.visit(expr.cond, bound, params, smaller)
            self.visit(expr.then_expr, bound, params, smaller)
            self.visit(expr.else_expr, bound, params, smaller)
            return
        if isinstance(expr, Case):
            self.visit(expr.scrutinee, bound, params, smaller)
            origin: int | None = None
            if isinstance(expr.scrutinee, Var):
                s = expr.scrutinee.name
                if s in params:
                    origin = params[s]
                elif s in smaller:
                    origin = smaller[s]
            for alt in expr.alts:
                inner_params, inner_smaller = _shadow(alt.var_pats, params, smaller)
                if origin is not None:
                    for v in alt.var_pats:
                        inner_smaller[v.name] = origin
                inner_bound = bound | {v.name for v in alt.var_pats}
                self.visit(alt.rhs, inner_bound, inner_params, inner_smaller)
            return
        if isinstance(expr, Lambda):
            inner_params, inner_smaller = _shadow(expr.args, params, smaller)
            inner_bound = bound | {a.name for a in expr.args}
            self.visit(expr.body, inner_bound, inner_params, inner_smaller)
            return
        if isinstance(expr, (Con, IntLiteral, Undefined, ErrorExpr)):
            return
        raise TypeError("unknown expression node: " + type(expr).__name__)

    def record(
        self,
        callee: str,
        args: list[Expr],
        params: dict[str, int],
        smaller: dict[str, int],
        loc: Loc,
    ) -> None:
        param_of: list[int | None] = []
        subterm_of: list[int | None] = []
        for a in args:
            if isinstance(a, Var):
                param_of.append(params.get(a.name))
                subterm_of.append(smaller.get(a.name))
            else:
                param_of.append(None)
                subterm_of.append(None)
        self.sites.append(CallSite(self.decl.name, callee, param_of, subterm_of, loc=loc))


def _shadow(
    binders: list[VarPat], params: dict[str, int], smaller: dict[str, int]
) -> tuple[dict[str, int], dict[str, int]]:
    names = {b.name for b in binders}
    inner_params = {k: v for k, v in params.items() if k not in names}
    inner_smaller = {k: v for k, v in smaller.items() if k not in names}
    return inner_params, inner_smaller


def call_sites(decls: list[FuncDecl]) -> list[CallSite]:
    """Calls between the members of decls, in source order."""
    group = {d.name for d in decls}
    sites: list[CallSite] = []
    for decl in decls:
        sites.extend(_CallCollector(decl, group).collect())
    return sites


# ============================================================
# DECREASING ARGUMENTS
# ============================================================


def _self_call_candidates(decl: FuncDecl, sites: list[CallSite]) -> set[int]:
    """Positions that decrease at every direct self-call of decl."""
    candidates = set(range(decl.arity))
    for site in sites:
        if site.caller != decl.name or site.callee != decl.name:
            continue
        ok: set[int] = set()
        for k in range(site.num_args):
            if site.subterm_of[k] == k:
                ok.add(k)
        candidates &= ok
    return candidates


def identify_dec_arg(decl: FuncDecl) -> int | None:
    """Index of the only argument that decreases at every self-call of decl."""
    sites = call_sites([decl])
    candidates = _self_call_candidates(decl, sites)
    if len(candidates) == 1:
        return next(iter(candidates))
    return None


def identify_dec_args(env: Environment, decls: list[FuncDecl]) -> list[int]:
    """Decreasing argument index of every function of a recursive group.

    Functions with a decreasing-argument pragma keep the annotated argument;
    neither inference nor call-site checks apply to them. For the other
    functions exactly one combination of candidates must agree with all
    calls within the group.
    """
    fixed: dict[str, int] = {}
    for decl in decls:
        annotated = env.lookup_dec_arg(decl.name)
        if annotated is None:
            continue
        _, arg_name = annotated
        if arg_name not in decl.arg_names:
            raise DecArgError(
                "function " + decl.name + " has no argument " + arg_name + " to decrease on",
                decl.loc,
            )
        fixed[decl.name] = decl.arg_names.index(arg_name)

    sites = [
        s
        for s in call_sites(decls)
        if s.caller not in fixed and s.callee not in fixed
    ]
    inferred = [d for d in decls if d.name not in fixed]
    candidate_lists: list[list[int]] = []
    for decl in inferred:
        candidate_lists.append(sorted(_self_call_candidates(decl, sites)))

    valid: list[tuple[int, ...]] = []
    for combo in itertools.product(*candidate_lists):
        chosen: dict[str, int] = {}
        for decl, index in zip(inferred, combo):
            chosen[decl.name] = index
        if _agrees_with_calls(chosen, sites):
            valid.append(combo)

    if len(valid) != 1:
        raise _dec_arg_failure(inferred, candidate_lists, valid)

    result: list[int] = []
    chosen_by_name: dict[str, int] = dict(fixed)
    for decl, index in zip(inferred, valid[0]):
        chosen_by_name[decl.name] = index
    for decl in decls:
        index = chosen_by_name[decl.name]
        logger.debug(f"decreasing argument of {decl.name}: {decl.arg_names[index]}")
        result.append(index)
    return result


def _agrees_with_calls(chosen: dict[str, int], sites: list[CallSite]) -> bool:
    for site in sites:
        if site.caller == site.callee:
            continue
        target = chosen[site.callee]
        if target >= site.num_args:
            return False
        if site.subterm_of[target] != chosen[site.caller]:
            return False
    return True


def _dec_arg_failure(
    inferred: list[FuncDecl],
    candidate_lists: list[list[int]],
    valid: list[tuple[int, ...]],
) -> DecArgError:
    if len(valid) == 0:
        culprit = inferred[0]
        for decl, candidates in zip(inferred, candidate_lists):
            if len(candidates) == 0:
                culprit = decl
                break
        return DecArgError(
            "could not identify decreasing argument of " + culprit.name, culprit.loc
        )
    culprit = inferred[0]
    for i, decl in enumerate(inferred):
        if len({combo[i] for combo in valid}) > 1:
            culprit = decl
            break
    return DecArgError(
        "ambiguous decreasing argument of " + culprit.name, culprit.loc
    )


# ============================================================
# CONSTANT ARGUMENTS
# ============================================================


def identify_const_args(decls: list[FuncDecl]) -> list[ConstArg]:
    """Arguments every call within the group passes on unchanged."""
    if len(decls) == 0:
        return []
    sites = call_sites(decls)
    min_arity = min(d.arity for d in decls)
    result: list[ConstArg] = []
    for p in range(min_arity):
        name = decls[0].arg_names[p]
        if any(d.arg_names[p] != name for d in decls):
            continue
        constant = True
        for site in sites:
            if p >= site.num_args or site.param_of[p] != p:
                constant = False
                break
        if constant:
            result.append(ConstArg(p, name))
    if len(result) > 0:
        names = ", ".join(c.arg_name for c in result)
        logger.debug(f"constant arguments of {decls[0].name}: {names}")
    return result
