"""Conversion of function declarations: entries, heads and non-recursive
definitions."""

from __future__ import annotations

from ..backend.gallina import Binder, Definition, Sort, Term
from ..environment import TYPE_SCOPE, Environment, FuncEntry, TypeVarEntry
from ..errors import ConversionError
from ..ir import FuncDecl, Type, split_func_type, type_var_names
from .base import free_args, partial_arg
from .expr import convert_expr, convert_type, define_type_vars, define_var


def func_entry(env: Environment, decl: FuncDecl) -> FuncEntry:
    """Entry for decl, with types from its annotations or type signature.

    Argument annotations take precedence over the type signature.
    """
    sig = env.lookup_type_sig(decl.name)
    sig_args: list[Type] = []
    sig_result: Type | None = None
    if sig is not None:
        sig_args, result = split_func_type(sig, decl.arity)
        if len(sig_args) == decl.arity:
            sig_result = result
    arg_types: list[Type | None] = []
    for i, arg in enumerate(decl.args):
        if arg.typ is not None:
            arg_types.append(arg.typ)
        elif i < len(sig_args):
            arg_types.append(sig_args[i])
        else:
            arg_types.append(None)
    return_type = decl.return_type if decl.return_type is not None else sig_result
    type_args = list(decl.type_args)
    if len(type_args) == 0 and sig is not None:
        type_args = type_var_names(sig)
    return FuncEntry(
        name=decl.name,
        loc=decl.loc,
        arity=decl.arity,
        type_args=type_args,
        arg_types=arg_types,
        return_type=return_type,
    )


def _binder_type_vars(env: Environment, entry: FuncEntry) -> list[str]:
    """Type variables the function binds itself, in order of appearance."""
    names = list(entry.type_args)
    types: list[Type] = [t for t in entry.arg_types if t is not None]
    if entry.return_type is not None:
        types.append(entry.return_type)
    for t in types:
        for v in type_var_names(t):
            if v not in names:
                names.append(v)
    # Section variables are already bound.
    return [
        n
        for n in names
        if not isinstance(env.lookup_entry(TYPE_SCOPE, n), TypeVarEntry)
    ]


def convert_func_head(
    env: Environment, decl: FuncDecl
) -> tuple[str, list[Binder], Term | None]:
    """Coq identifier, binders and return type of decl.

    Defines the type variables and parameters in env; call it within
    `env.local()`.
    """
    entry = env.lookup_func(decl.name)
    if entry is None:
        raise ConversionError("unknown function " + decl.name, decl.loc)
    binders: list[Binder] = []
    type_idents = define_type_vars(env, _binder_type_vars(env, entry))
    if len(type_idents) > 0:
        binders.append(Binder(type_idents, Sort("Type"), implicit=True))
    if entry.needs_free_args:
        binders.extend(free_args())
    if entry.is_partial:
        binders.append(partial_arg())
    for i, arg in enumerate(decl.args):
        typ: Type | None = None
        if i < len(entry.arg_types):
            typ = entry.arg_types[i]
        ident = define_var(env, arg)
        if typ is None:
            binders.append(Binder([ident]))
        else:
            binders.append(Binder([ident], convert_type(env, typ)))
    return_type: Term | None = None
    if entry.return_type is not None:
        return_type = convert_type(env, entry.return_type)
    return entry.ident, binders, return_type


def convert_non_rec_func_decl(env: Environment, decl: FuncDecl) -> Definition:
    with env.local():
        ident, binders, return_type = convert_func_head(env, decl)
        body = convert_expr(env, decl.rhs)
    return Definition(ident, binders, return_type, body)
