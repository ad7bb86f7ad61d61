"""Conversion of data type and type synonym declarations."""

from __future__ import annotations

import logging

from ..backend.gallina import (
    Arguments,
    Binder,
    Constructor,
    Definition,
    IndBody,
    Inductive,
    Sentence,
    Sort,
    arrows,
)
from ..environment import (
    TYPE_SCOPE,
    VALUE_SCOPE,
    ConEntry,
    DataEntry,
    Environment,
    TypeSynEntry,
)
from ..errors import ConversionError, TypeSynonymCycleError
from ..fresh import rename_and_define
from ..ir import (
    ConDecl,
    DataDecl,
    Decl,
    FuncType,
    Type,
    TypeApp,
    TypeCon,
    TypeSynDecl,
    TypeVar,
    type_app,
)
from ..middleend.components import (
    DependencyComponent,
    NonRecursive,
    Recursive,
    group_type_decls,
)
from .base import POS_IDENT, SHAPE_IDENT, free_args
from .expr import convert_type, define_type_vars

logger = logging.getLogger(__name__)


def define_type_decl(env: Environment, decl: Decl) -> None:
    """Add entries for a type declaration and its constructors."""
    if isinstance(decl, DataDecl):
        rename_and_define(
            env, DataEntry(name=decl.name, loc=decl.loc, arity=len(decl.type_args))
        )
        result = type_app(
            TypeCon(decl.name, loc=decl.loc), [TypeVar(a) for a in decl.type_args]
        )
        for con in decl.con_decls:
            rename_and_define(
                env,
                ConEntry(
                    name=con.name,
                    loc=con.loc,
                    arity=len(con.fields),
                    type_args=list(decl.type_args),
                    arg_types=list(con.fields),
                    return_type=result,
                ),
            )
    elif isinstance(decl, TypeSynDecl):
        rename_and_define(
            env,
            TypeSynEntry(
                name=decl.name, loc=decl.loc, type_args=list(decl.type_args), rhs=decl.rhs
            ),
        )


def convert_type_component(
    env: Environment, component: DependencyComponent
) -> list[Sentence]:
    if isinstance(component, NonRecursive):
        decl = component.decl
        if isinstance(decl, DataDecl):
            return convert_data_decls(env, [decl])
        if isinstance(decl, TypeSynDecl):
            return [convert_type_syn_decl(env, decl)]
        raise TypeError("not a type declaration: " + type(decl).__name__)
    if isinstance(component, Recursive):
        return _convert_rec_type_decls(env, component.decls)
    raise TypeError("unknown component: " + type(component).__name__)


def _convert_rec_type_decls(env: Environment, decls: list[Decl]) -> list[Sentence]:
    """Mutually recursive data types with the synonyms they use.

    Synonyms of the component are expanded inside the data declarations and
    defined after the data types.
    """
    synonyms = [d for d in decls if isinstance(d, TypeSynDecl)]
    data_decls = [d for d in decls if isinstance(d, DataDecl)]
    sorted_synonyms: list[TypeSynDecl] = []
    for comp in group_type_decls(list(synonyms)):
        if isinstance(comp, Recursive):
            names = ", ".join(getattr(d, "name") for d in comp.decls)
            raise TypeSynonymCycleError("type synonym cycle: " + names, comp.decls[0].loc)
        if isinstance(comp, NonRecursive) and isinstance(comp.decl, TypeSynDecl):
            sorted_synonyms.append(comp.decl)
    syn_map = {s.name: s for s in synonyms}
    logger.debug(
        "mutual data types " + ", ".join(d.name for d in data_decls)
        + " expand synonyms " + ", ".join(syn_map)
    )
    expanded: list[DataDecl] = []
    for d in data_decls:
        expanded.append(_expand_data_decl(d, syn_map))
    sentences = convert_data_decls(env, expanded)
    for s in sorted_synonyms:
        sentences.append(convert_type_syn_decl(env, s))
    return sentences


# ============================================================
# DATA TYPES
# ============================================================


def convert_data_decls(env: Environment, decls: list[DataDecl]) -> list[Sentence]:
    """One (mutual) Inductive sentence and an Arguments sentence per constructor."""
    bodies: list[IndBody] = []
    arguments: list[Sentence] = []
    for decl in decls:
        body, args = _convert_data_decl(env, decl)
        bodies.append(body)
        arguments.extend(args)
    return [Inductive(bodies)] + arguments


def _convert_data_decl(env: Environment, decl: DataDecl) -> tuple[IndBody, list[Sentence]]:
    entry = env.lookup_entry(TYPE_SCOPE, decl.name)
    if not isinstance(entry, DataEntry):
        raise ConversionError("unknown data type " + decl.name, decl.loc)
    with env.local():
        type_idents = define_type_vars(env, decl.type_args)
        binders = free_args()
        if len(type_idents) > 0:
            binders.append(Binder(type_idents, Sort("Type")))
        result = convert_type(
            env, type_app(TypeCon(decl.name, loc=decl.loc), [TypeVar(a) for a in decl.type_args])
        )
        constructors: list[Constructor] = []
        arguments: list[Sentence] = []
        for con in decl.con_decls:
            con_ident = env.lookup_ident(VALUE_SCOPE, con.name)
            if con_ident is None:
                raise ConversionError("unknown data constructor " + con.name, con.loc)
            fields = [convert_type(env, f) for f in con.fields]
            constructors.append(Constructor(con_ident, arrows(fields, result)))
            arguments.append(Arguments(con_ident, [SHAPE_IDENT, POS_IDENT] + type_idents))
    return IndBody(entry.ident, binders, Sort("Type"), constructors), arguments


def convert_type_syn_decl(env: Environment, decl: TypeSynDecl) -> Definition:
    entry = env.lookup_entry(TYPE_SCOPE, decl.name)
    if not isinstance(entry, TypeSynEntry):
        raise ConversionError("unknown type synonym " + decl.name, decl.loc)
    with env.local():
        type_idents = define_type_vars(env, decl.type_args)
        binders = free_args()
        if len(type_idents) > 0:
            binders.append(Binder(type_idents, Sort("Type")))
        rhs = convert_type(env, decl.rhs)
    return Definition(entry.ident, binders, Sort("Type"), rhs)


# ============================================================
# SYNONYM EXPANSION
# ============================================================


def _expand_data_decl(decl: DataDecl, syn_map: dict[str, TypeSynDecl]) -> DataDecl:
    con_decls = []
    for con in decl.con_decls:
        fields = [expand_type_synonyms(f, syn_map) for f in con.fields]
        con_decls.append(ConDecl(con.name, fields, loc=con.loc))
    return DataDecl(decl.name, decl.type_args, con_decls, loc=decl.loc)


def expand_type_synonyms(typ: Type, syn_map: dict[str, TypeSynDecl]) -> Type:
    """Expand the synonyms of syn_map in typ. The synonyms must be acyclic."""
    if isinstance(typ, FuncType):
        return FuncType(
            expand_type_synonyms(typ.arg, syn_map),
            expand_type_synonyms(typ.result, syn_map),
            loc=typ.loc,
        )
    if isinstance(typ, TypeVar):
        return typ
    head = typ
    args: list[Type] = []
    while isinstance(head, TypeApp):
        args.append(head.arg)
        head = head.func
    args.reverse()
    args = [expand_type_synonyms(a, syn_map) for a in args]
    if isinstance(head, TypeCon) and head.name in syn_map:
        syn = syn_map[head.name]
        if len(args) >= len(syn.type_args):
            bindings: dict[str, Type] = {}
            for param, arg in zip(syn.type_args, args):
                bindings[param] = arg
            body = _subst_type_vars(syn.rhs, bindings)
            expanded = type_app(body, args[len(syn.type_args):])
            return expand_type_synonyms(expanded, syn_map)
    return type_app(head, args)


def _subst_type_vars(typ: Type, bindings: dict[str, Type]) -> Type:
    if isinstance(typ, TypeVar):
        return bindings.get(typ.name, typ)
    if isinstance(typ, TypeCon):
        return typ
    if isinstance(typ, TypeApp):
        return TypeApp(
            _subst_type_vars(typ.func, bindings), _subst_type_vars(typ.arg, bindings), loc=typ.loc
        )
    if isinstance(typ, FuncType):
        return FuncType(
            _subst_type_vars(typ.arg, bindings),
            _subst_type_vars(typ.result, bindings),
            loc=typ.loc,
        )
    raise TypeError("unknown type node: " + type(typ).__name__)
