"""Predefined names of the Coq Base library.

The Base library provides the Free monad, the Partial type class and the
Prelude types, constructors and functions every module can use.
"""

from __future__ import annotations

from ..backend.gallina import Arrow, Binder, Qualid, Require, Sort, Term, qualid_app
from ..environment import ConEntry, DataEntry, Environment, FuncEntry
from ..ir import FuncType, Type, TypeApp, TypeCon, TypeVar, func_type

BASE_LIBRARY: str = "Base"
BASE_MODULES: list[str] = ["Free", "Prelude"]

SHAPE_IDENT: str = "Shape"
POS_IDENT: str = "Pos"
PARTIAL_IDENT: str = "P"
PARTIAL_CLASS: str = "Partial"
UNDEFINED_IDENT: str = "undefined"
ERROR_IDENT: str = "error"


def imports() -> Require:
    return Require(BASE_LIBRARY, list(BASE_MODULES))


def free_args() -> list[Binder]:
    """(Shape : Type) (Pos : Shape -> Type)"""
    return [
        Binder([SHAPE_IDENT], Sort("Type")),
        Binder([POS_IDENT], Arrow(Qualid(SHAPE_IDENT), Sort("Type"))),
    ]


def free_arg_terms() -> list[Qualid]:
    return [Qualid(SHAPE_IDENT), Qualid(POS_IDENT)]


def partial_arg() -> Binder:
    """(P : Partial Shape Pos)"""
    return Binder([PARTIAL_IDENT], partial_class())


def partial_class() -> Term:
    return qualid_app(PARTIAL_CLASS, [Qualid(SHAPE_IDENT), Qualid(POS_IDENT)])


# ============================================================
# PRELUDE
# ============================================================

_INT: Type = TypeCon("Integer")
_BOOL: Type = TypeCon("Bool")
_A: Type = TypeVar("a")
_LIST_A: Type = TypeApp(TypeCon("List"), _A)

# (IR name, Coq identifier, arity)
_TYPES: list[tuple[str, str, int]] = [
    ("Bool", "Bool", 0),
    ("Integer", "Integer", 0),
    ("Int", "Integer", 0),
    ("List", "List", 1),
]

# (IR name, Coq identifier, type arguments, field types, result type)
_CONSTRUCTORS: list[tuple[str, str, list[str], list[Type], Type]] = [
    ("True", "true", [], [], _BOOL),
    ("False", "false", [], [], _BOOL),
    ("[]", "nil", ["a"], [], _LIST_A),
    (":", "cons", ["a"], [_A, _LIST_A], _LIST_A),
]

# (IR name, Coq identifier, type arguments, type)
_FUNCTIONS: list[tuple[str, str, list[str], Type]] = [
    ("&&", "andBool", [], func_type([_BOOL, _BOOL], _BOOL)),
    ("||", "orBool", [], func_type([_BOOL, _BOOL], _BOOL)),
    ("+", "addInteger", [], func_type([_INT, _INT], _INT)),
    ("-", "subInteger", [], func_type([_INT, _INT], _INT)),
    ("*", "mulInteger", [], func_type([_INT, _INT], _INT)),
    ("<=", "leInteger", [], func_type([_INT, _INT], _BOOL)),
    ("<", "ltInteger", [], func_type([_INT, _INT], _BOOL)),
    ("==", "eqInteger", [], func_type([_INT, _INT], _BOOL)),
    ("/=", "neqInteger", [], func_type([_INT, _INT], _BOOL)),
    (">=", "geInteger", [], func_type([_INT, _INT], _BOOL)),
    (">", "gtInteger", [], func_type([_INT, _INT], _BOOL)),
    ("negate", "negate", [], FuncType(_INT, _INT)),
    ("++", "append", ["a"], func_type([_LIST_A, _LIST_A], _LIST_A)),
]


def define_prelude(env: Environment) -> None:
    """Add the predefined types, constructors and functions to env."""
    for name, ident, arity in _TYPES:
        env.add_entry(DataEntry(name=name, ident=ident, arity=arity))
    for name, ident, type_args, fields, result in _CONSTRUCTORS:
        env.add_entry(
            ConEntry(
                name=name,
                ident=ident,
                arity=len(fields),
                type_args=list(type_args),
                arg_types=list(fields),
                return_type=result,
            )
        )
    for name, ident, type_args, typ in _FUNCTIONS:
        arg_types: list[Type | None] = []
        t = typ
        while isinstance(t, FuncType):
            arg_types.append(t.arg)
            t = t.result
        env.add_entry(
            FuncEntry(
                name=name,
                ident=ident,
                arity=len(arg_types),
                type_args=list(type_args),
                arg_types=arg_types,
                return_type=t,
            )
        )
