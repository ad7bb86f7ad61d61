"""Recursive function declarations via recursive helpers.

Each function of a recursive group is split into recursive helper functions,
one per outermost `case` expression on the function's decreasing argument,
and a non-recursive main function that calls the helpers. The main functions
are inlined into the helpers, so the helpers form one Fixpoint whose
recursion is structural on their decreasing arguments.
"""

from __future__ import annotations

import logging

from ..backend.gallina import Comment, FixBody, Fixpoint, Sentence
from ..environment import VALUE_SCOPE, Environment, FuncEntry
from ..errors import ConversionError
from ..fresh import fresh_ident, rename_and_define
from ..ir import (
    Case,
    Expr,
    FuncDecl,
    Type,
    TypeVar,
    Var,
    VarPat,
    app,
    type_app_expr,
)
from ..middleend.inliner import inline_func_decl
from ..middleend.recursion import identify_dec_args
from ..middleend.subst import free_vars
from ..middleend.subterm import (
    ROOT_POS,
    Pos,
    below,
    bound_vars_at,
    find_subterm_pos,
    replace_subterms,
    select_subterm,
)
from .expr import convert_expr
from .func_decl import convert_func_head, convert_non_rec_func_decl

logger = logging.getLogger(__name__)


def convert_rec_func_decls_with_helpers(
    env: Environment, decls: list[FuncDecl]
) -> list[Sentence]:
    """Sentences for a recursive group: a Fixpoint of helpers, then the mains."""
    helpers, mains = convert_rec_func_decls_with_helpers_split(env, decls)
    names = ", ".join(d.name for d in decls)
    return [Comment("Helper functions for " + names)] + helpers + mains


def convert_rec_func_decls_with_helpers_split(
    env: Environment, decls: list[FuncDecl]
) -> tuple[list[Sentence], list[Sentence]]:
    """Like convert_rec_func_decls_with_helpers, helpers and mains separately."""
    dec_args = identify_dec_args(env, decls)
    helper_decls: list[FuncDecl] = []
    main_decls: list[FuncDecl] = []
    for decl, dec_arg in zip(decls, dec_args):
        helpers, main = transform_rec_func_decl(env, decl, dec_arg)
        helper_decls.extend(helpers)
        main_decls.append(main)

    # Inlining introduces fresh variables; keep them local to each helper.
    bodies: list[FixBody] = []
    for helper in helper_decls:
        with env.local():
            inlined = inline_func_decl(env, main_decls, helper)
            bodies.append(convert_rec_helper_func_decl(env, inlined))
    mains: list[Sentence] = []
    for main in main_decls:
        mains.append(convert_non_rec_func_decl(env, main))
    return [Fixpoint(bodies)], mains


# ============================================================
# SPLITTING
# ============================================================


def transform_rec_func_decl(
    env: Environment, decl: FuncDecl, dec_arg_index: int
) -> tuple[list[FuncDecl], FuncDecl]:
    """Split decl into helper declarations and a non-recursive main."""
    dec_arg = decl.arg_names[dec_arg_index]
    positions = _case_positions(decl.rhs, dec_arg)
    helpers: list[FuncDecl] = []
    replacements: list[tuple[Pos, Expr]] = []
    if len(positions) == 0:
        helper, call = _generate_whole_helper(env, decl, dec_arg_index)
        helpers.append(helper)
        replacements.append((ROOT_POS, call))
    else:
        for pos in positions:
            helper, call = _generate_helper(env, decl, dec_arg, pos)
            helpers.append(helper)
            replacements.append((pos, call))
    main_rhs = replace_subterms(decl.rhs, replacements)
    if main_rhs is None:
        raise ConversionError("invalid subterm position in " + decl.name, decl.loc)
    main = FuncDecl(
        decl.name, decl.type_args, decl.args, main_rhs, decl.return_type, loc=decl.loc
    )
    # The main function is not recursive anymore.
    env.remove_dec_arg(decl.name)
    helper_names = ", ".join(h.name for h in helpers)
    logger.debug(f"helpers of {decl.name} on {dec_arg}: {helper_names}")
    return helpers, main


def _case_positions(rhs: Expr, dec_arg: str) -> list[Pos]:
    """Outermost positions of case expressions on the unshadowed dec_arg."""

    def is_case_on_dec_arg(e: Expr) -> bool:
        return isinstance(e, Case) and isinstance(e.scrutinee, Var) and e.scrutinee.name == dec_arg

    ps = [
        p
        for p in find_subterm_pos(is_case_on_dec_arg, rhs)
        if dec_arg not in bound_vars_at(rhs, p)
    ]
    return [p for p in ps if not any(q != p and below(p, q) for q in ps)]


def _generate_helper(
    env: Environment, decl: FuncDecl, dec_arg: str, pos: Pos
) -> tuple[FuncDecl, Expr]:
    case_expr = select_subterm(decl.rhs, pos)
    if case_expr is None:
        raise ConversionError("invalid subterm position in " + decl.name, decl.loc)
    # Variables bound at the case expression and used within it are passed
    # on; shadowed parameters are not.
    non_arg_vars = bound_vars_at(decl.rhs, pos)
    bound = non_arg_vars | set(decl.arg_names)
    arg_names = sorted(free_vars(case_expr) & bound)
    known_types: dict[str, Type | None] = {}
    entry_types = env.lookup_arg_types(decl.name)
    for i, name in enumerate(decl.arg_names):
        if name not in non_arg_vars and i < len(entry_types):
            known_types[name] = entry_types[i]
    arg_types = [known_types.get(n) for n in arg_names]
    return _register_helper(env, decl, arg_names, arg_types, arg_names.index(dec_arg), case_expr)


def _generate_whole_helper(
    env: Environment, decl: FuncDecl, dec_arg_index: int
) -> tuple[FuncDecl, Expr]:
    """Helper for the whole right-hand side, taking all parameters."""
    arg_types = list(env.lookup_arg_types(decl.name))
    while len(arg_types) < decl.arity:
        arg_types.append(None)
    return _register_helper(env, decl, decl.arg_names, arg_types, dec_arg_index, decl.rhs)


def _register_helper(
    env: Environment,
    decl: FuncDecl,
    arg_names: list[str],
    arg_types: list[Type | None],
    dec_arg_index: int,
    body: Expr,
) -> tuple[FuncDecl, Expr]:
    """Define the helper in env; return its declaration and a call of it."""
    name = fresh_ident(env, decl.name)
    original = env.lookup_func(decl.name)
    type_args = list(decl.type_args)
    needs_free_args = True
    is_partial = False
    if original is not None:
        type_args = list(original.type_args)
        needs_free_args = original.needs_free_args
        is_partial = original.is_partial
    rename_and_define(
        env,
        FuncEntry(
            name=name,
            loc=decl.loc,
            arity=len(arg_names),
            type_args=type_args,
            arg_types=arg_types,
            return_type=None,
            needs_free_args=needs_free_args,
            is_partial=is_partial,
        ),
    )
    env.define_dec_arg(name, dec_arg_index, arg_names[dec_arg_index])
    # Argument types live in the entry.
    args = [VarPat(n, None, loc=decl.loc) for n in arg_names]
    helper = FuncDecl(name, type_args, args, body, None, loc=decl.loc)
    call = app(
        type_app_expr(Var(name, loc=decl.loc), [TypeVar(a) for a in type_args]),
        [Var(n, loc=decl.loc) for n in arg_names],
    )
    return helper, call


# ============================================================
# CONVERSION
# ============================================================


def convert_rec_helper_func_decl(env: Environment, decl: FuncDecl) -> FixBody:
    """Body of the Fixpoint sentence for a helper function."""
    with env.local():
        ident, binders, return_type = convert_func_head(env, decl)
        body = convert_expr(env, decl.rhs)
        dec_index = env.lookup_dec_arg_index(decl.name)
        if dec_index is None:
            raise ConversionError("helper " + decl.name + " has no decreasing argument", decl.loc)
        struct_arg = env.lookup_ident(VALUE_SCOPE, decl.arg_names[dec_index])
    return FixBody(ident, binders, struct_arg, return_type, body)
