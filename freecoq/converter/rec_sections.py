"""Recursive function declarations with constant arguments via sections.

Arguments every recursive call passes on unchanged become section variables.
The group is converted inside a Section without them (using recursive
helpers), and after the Section is closed a wrapper per function restores
the original parameter list. Coq abstracts the section variables as leading
parameters of the closed functions, so the wrappers apply them first.
"""

from __future__ import annotations

import logging

from ..backend.gallina import (
    Arrow,
    Definition,
    Qualid,
    Section,
    Sentence,
    Sort,
    Term,
    Variable,
    app as gapp,
)
from ..environment import TYPE_SCOPE, VALUE_SCOPE, Environment, FuncEntry, VarEntry
from ..errors import ConversionError
from ..fresh import FRESH_SECTION_PREFIX, fresh_coq_ident, fresh_ident, rename_and_define
from ..ir import (
    Expr,
    FuncDecl,
    Type,
    Var,
    call_target,
    type_var_names,
)
from ..ir import app as ir_app
from ..middleend.recursion import ConstArg
from ..middleend.subst import apply_subst, free_vars
from ..middleend.subterm import child_binders, children, with_children
from .base import PARTIAL_IDENT, POS_IDENT, SHAPE_IDENT, free_arg_terms, partial_class
from .expr import convert_type, define_type_vars
from .func_decl import convert_func_head
from .rec_helpers import convert_rec_func_decls_with_helpers_split

logger = logging.getLogger(__name__)


def const_arg_types(
    env: Environment, const_args: list[ConstArg], decls: list[FuncDecl]
) -> list[Type] | None:
    """Type of each constant argument, or None unless all are known.

    A type is known when every function of the group annotates the argument
    with the same type.
    """
    out: list[Type] = []
    for c in const_args:
        found: Type | None = None
        for decl in decls:
            arg_types = env.lookup_arg_types(decl.name)
            typ = arg_types[c.index] if c.index < len(arg_types) else None
            if typ is None:
                return None
            if found is not None and typ != found:
                return None
            found = typ
        if found is None:
            return None
        out.append(found)
    return out


def used_const_args(const_args: list[ConstArg], decls: list[FuncDecl]) -> list[ConstArg]:
    """Constant arguments some function of the group uses other than by
    passing them on to the group.

    Coq closes a section function only over the section variables it uses,
    so an argument that is only passed on stays an ordinary parameter.
    """
    const_indices = {c.index for c in const_args}
    group = {d.name: d.name for d in decls}
    used: set[str] = set()
    for decl in decls:
        used |= free_vars(_rewrite_calls(decl.rhs, const_indices, group, set()))
    return [c for c in const_args if c.arg_name in used]


def convert_rec_func_decls_with_section(
    env: Environment, const_args: list[ConstArg], decls: list[FuncDecl]
) -> list[Sentence]:
    const_args = used_const_args(const_args, decls)
    if len(const_args) == 0:
        raise ConversionError(
            "constant arguments of " + decls[0].name + " are never used", decls[0].loc
        )
    types = const_arg_types(env, const_args, decls)
    if types is None:
        raise ConversionError(
            "constant arguments of " + decls[0].name + " need type annotations",
            decls[0].loc,
        )
    section_name = fresh_coq_ident(env, FRESH_SECTION_PREFIX)
    const_indices = {c.index for c in const_args}
    section_vars: dict[str, str] = {}
    for c in const_args:
        section_vars[c.arg_name] = fresh_ident(env, c.arg_name)
    inner_names: dict[str, str] = {}
    for decl in decls:
        inner_names[decl.name] = fresh_ident(env, decl.name)

    section_type_vars: list[str] = []
    for t in types:
        for v in type_var_names(t):
            if v not in section_type_vars:
                section_type_vars.append(v)
    needs_free_args = any(env.needs_free_args(d.name) for d in decls)
    is_partial = any(env.is_partial(d.name) for d in decls)

    reduced = [
        _remove_const_args(env, d, const_indices, section_vars, inner_names)
        for d in decls
    ]
    logger.debug(
        f"section {section_name} for {', '.join(d.name for d in decls)}: "
        + ", ".join(c.arg_name for c in const_args)
    )

    inner_idents: dict[str, str] = {}
    with env.local():
        variables: list[Sentence] = []
        if needs_free_args:
            variables.append(Variable([SHAPE_IDENT], Sort("Type")))
            variables.append(Variable([POS_IDENT], Arrow(Qualid(SHAPE_IDENT), Sort("Type"))))
        if is_partial:
            variables.append(Variable([PARTIAL_IDENT], partial_class()))
        type_idents = define_type_vars(env, section_type_vars)
        if len(type_idents) > 0:
            variables.append(Variable(type_idents, Sort("Type")))
        for c, typ in zip(const_args, types):
            var_entry = rename_and_define(env, VarEntry(name=section_vars[c.arg_name]))
            variables.append(Variable([var_entry.ident], convert_type(env, typ)))

        for decl, red in zip(decls, reduced):
            entry = rename_and_define(env, _inner_entry(env, decl, red, const_indices, section_type_vars))
            inner_idents[decl.name] = entry.ident
            annotated = env.lookup_dec_arg(decl.name)
            if annotated is not None:
                env.define_dec_arg(red.name, -1, annotated[1])

        helpers, mains = convert_rec_func_decls_with_helpers_split(env, reduced)

    for decl in decls:
        env.remove_dec_arg(decl.name)
    sentences: list[Sentence] = [Section(section_name, variables + helpers + mains)]
    for decl in decls:
        sentences.append(
            _convert_wrapper(
                env, decl, inner_idents[decl.name], const_args, section_type_vars,
                needs_free_args, is_partial,
            )
        )
    return sentences


# ============================================================
# REMOVING CONSTANT ARGUMENTS
# ============================================================


def _remove_const_args(
    env: Environment,
    decl: FuncDecl,
    const_indices: set[int],
    section_vars: dict[str, str],
    inner_names: dict[str, str],
) -> FuncDecl:
    """decl without its constant parameters, calling the inner functions."""
    args = [a for i, a in enumerate(decl.args) if i not in const_indices]
    rhs = _rewrite_calls(decl.rhs, const_indices, inner_names, set())
    subst: dict[str, Expr] = {}
    for i, a in enumerate(decl.args):
        if i in const_indices:
            subst[a.name] = Var(section_vars[a.name], loc=a.loc)
    rhs = apply_subst(env, subst, rhs)
    return FuncDecl(
        inner_names[decl.name], decl.type_args, args, rhs, decl.return_type, loc=decl.loc
    )


def _rewrite_calls(
    expr: Expr, const_indices: set[int], inner_names: dict[str, str], bound: set[str]
) -> Expr:
    """Drop the constant arguments of calls to group members."""
    name, args = call_target(expr)
    if name is not None and name in inner_names and name not in bound:
        kept = [
            _rewrite_calls(a, const_indices, inner_names, bound)
            for i, a in enumerate(args)
            if i not in const_indices
        ]
        return ir_app(Var(inner_names[name], loc=expr.loc), kept)
    kids = children(expr)
    if len(kids) == 0:
        return expr
    new: list[Expr] = []
    for i, kid in enumerate(kids):
        inner_bound = bound | child_binders(expr, i)
        new.append(_rewrite_calls(kid, const_indices, inner_names, inner_bound))
    return with_children(expr, new)


def _inner_entry(
    env: Environment,
    decl: FuncDecl,
    reduced: FuncDecl,
    const_indices: set[int],
    section_type_vars: list[str],
) -> FuncEntry:
    """Entry of the function inside the section.

    Shape, Pos and the Partial instance are section variables there.
    """
    original = env.lookup_func(decl.name)
    arg_types: list[Type | None] = []
    type_args: list[str] = []
    return_type: Type | None = None
    if original is not None:
        arg_types = [t for i, t in enumerate(original.arg_types) if i not in const_indices]
        type_args = [a for a in original.type_args if a not in section_type_vars]
        return_type = original.return_type
    return FuncEntry(
        name=reduced.name,
        loc=decl.loc,
        arity=reduced.arity,
        type_args=type_args,
        arg_types=arg_types,
        return_type=return_type,
        needs_free_args=False,
        is_partial=False,
    )


# ============================================================
# WRAPPERS
# ============================================================


def _convert_wrapper(
    env: Environment,
    decl: FuncDecl,
    inner_ident: str,
    const_args: list[ConstArg],
    section_type_vars: list[str],
    needs_free_args: bool,
    is_partial: bool,
) -> Definition:
    """Definition with the original signature applying the closed function."""
    const_indices = {c.index for c in const_args}
    with env.local():
        ident, binders, return_type = convert_func_head(env, decl)
        args: list[Term] = []
        if needs_free_args:
            args.extend(free_arg_terms())
        if is_partial:
            args.append(Qualid(PARTIAL_IDENT))
        for v in section_type_vars:
            type_ident = env.lookup_ident(TYPE_SCOPE, v)
            args.append(Qualid(type_ident if type_ident is not None else v))
        names = decl.arg_names
        for c in const_args:
            args.append(_var_term(env, names[c.index]))
        for i, n in enumerate(names):
            if i not in const_indices:
                args.append(_var_term(env, n))
    return Definition(ident, binders, return_type, gapp(Qualid(inner_ident), args))


def _var_term(env: Environment, name: str) -> Qualid:
    ident = env.lookup_ident(VALUE_SCOPE, name)
    if ident is None:
        raise ConversionError("unknown variable " + name)
    return Qualid(ident)
