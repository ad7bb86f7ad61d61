"""Conversion of IR types and expressions to Gallina terms.

Expressions are rendered structurally: functions are applied to the Shape
and Pos arguments of the Free monad (and partial functions to the Partial
instance P), constructors rely on implicit arguments, and visible type
applications are erased because type arguments are bound implicitly.
"""

from __future__ import annotations

from ..backend.gallina import (
    Arrow,
    Binder,
    ConPattern,
    Equation,
    Fun,
    If as GIf,
    Match,
    Num,
    NumPattern,
    Pattern as GPattern,
    Qualid,
    StringLit,
    Term,
    WildPattern,
    app as gapp,
)
from ..environment import (
    TYPE_SCOPE,
    VALUE_SCOPE,
    ConEntry,
    DataEntry,
    Environment,
    FuncEntry,
    TypeSynEntry,
    TypeVarEntry,
    VarEntry,
)
from ..errors import ConversionError
from ..fresh import rename_and_define
from ..ir import (
    Alt,
    App,
    Case,
    Con,
    ConPat,
    ErrorExpr,
    Expr,
    FuncType,
    If,
    IntLiteral,
    IntPat,
    Lambda,
    Type,
    TypeApp,
    TypeAppExpr,
    TypeCon,
    TypeVar,
    Undefined,
    Var,
    VarPat,
    WildcardPat,
    split_app,
    strip_type_apps,
)
from .base import ERROR_IDENT, PARTIAL_IDENT, UNDEFINED_IDENT, free_arg_terms


# ============================================================
# TYPES
# ============================================================


def convert_type(env: Environment, typ: Type) -> Term:
    """Gallina type of an IR type. Type constructors take Shape and Pos."""
    if isinstance(typ, TypeVar):
        entry = env.lookup_entry(TYPE_SCOPE, typ.name)
        if not isinstance(entry, TypeVarEntry):
            raise ConversionError("unknown type variable " + typ.name, typ.loc)
        return Qualid(entry.ident)
    if isinstance(typ, TypeCon):
        return gapp(_type_con(env, typ), list(free_arg_terms()))
    if isinstance(typ, TypeApp):
        head = typ
        args: list[Type] = []
        while isinstance(head, TypeApp):
            args.append(head.arg)
            head = head.func
        args.reverse()
        converted = [convert_type(env, a) for a in args]
        return gapp(convert_type(env, head), converted)
    if isinstance(typ, FuncType):
        return Arrow(convert_type(env, typ.arg), convert_type(env, typ.result))
    raise TypeError("unknown type node: " + type(typ).__name__)


def _type_con(env: Environment, typ: TypeCon) -> Qualid:
    entry = env.lookup_entry(TYPE_SCOPE, typ.name)
    if not isinstance(entry, (DataEntry, TypeSynEntry)):
        raise ConversionError("unknown type constructor " + typ.name, typ.loc)
    return Qualid(entry.ident)


def define_type_vars(env: Environment, names: list[str]) -> list[str]:
    """Define type variables and return their Coq identifiers."""
    idents: list[str] = []
    for name in names:
        entry = rename_and_define(env, TypeVarEntry(name=name))
        idents.append(entry.ident)
    return idents


def define_var(env: Environment, pat: VarPat) -> str:
    """Define a local variable and return its Coq identifier."""
    if pat.name == "_":
        return "_"
    return rename_and_define(env, VarEntry(name=pat.name, loc=pat.loc)).ident


# ============================================================
# EXPRESSIONS
# ============================================================


def convert_expr(env: Environment, expr: Expr) -> Term:
    if isinstance(expr, (Var, Con, App, TypeAppExpr)):
        head, args = split_app(expr)
        head, _ = strip_type_apps(head)
        converted = [convert_expr(env, a) for a in args]
        if isinstance(head, (Var, Con)):
            return gapp(_convert_head(env, head), converted)
        return gapp(convert_expr(env, head), converted)
    if isinstance(expr, If):
        return GIf(
            convert_expr(env, expr.cond),
            convert_expr(env, expr.then_expr),
            convert_expr(env, expr.else_expr),
        )
    if isinstance(expr, Case):
        scrutinee = convert_expr(env, expr.scrutinee)
        equations = [_convert_alt(env, alt) for alt in expr.alts]
        return Match(scrutinee, equations)
    if isinstance(expr, Lambda):
        with env.local():
            idents = [define_var(env, a) for a in expr.args]
            body = convert_expr(env, expr.body)
        return Fun([Binder(idents)], body)
    if isinstance(expr, IntLiteral):
        return Num(expr.value)
    if isinstance(expr, Undefined):
        return Qualid(UNDEFINED_IDENT)
    if isinstance(expr, ErrorExpr):
        return gapp(Qualid(ERROR_IDENT), [StringLit(expr.message)])
    raise TypeError("unknown expression node: " + type(expr).__name__)


def _convert_head(env: Environment, head: Var | Con) -> Term:
    entry = env.lookup_entry(VALUE_SCOPE, head.name)
    if isinstance(head, Con):
        if not isinstance(entry, ConEntry):
            raise ConversionError("unknown data constructor " + head.name, head.loc)
        return Qualid(entry.ident)
    if isinstance(entry, VarEntry):
        return Qualid(entry.ident)
    if isinstance(entry, FuncEntry):
        args: list[Term] = []
        if entry.needs_free_args:
            args.extend(free_arg_terms())
        if entry.is_partial:
            args.append(Qualid(PARTIAL_IDENT))
        return gapp(Qualid(entry.ident), args)
    if isinstance(entry, ConEntry):
        return Qualid(entry.ident)
    raise ConversionError("unknown identifier " + head.name, head.loc)


def _convert_alt(env: Environment, alt: Alt) -> Equation:
    with env.local():
        pattern = _convert_pattern(env, alt)
        rhs = convert_expr(env, alt.rhs)
    return Equation(pattern, rhs)


def _convert_pattern(env: Environment, alt: Alt) -> GPattern:
    p = alt.pattern
    if isinstance(p, ConPat):
        entry = env.lookup_entry(VALUE_SCOPE, p.name)
        if not isinstance(entry, ConEntry):
            raise ConversionError("unknown data constructor " + p.name, p.loc)
        if len(alt.var_pats) != entry.arity:
            raise ConversionError(
                "constructor "
                + p.name
                + " expects "
                + str(entry.arity)
                + " arguments, got "
                + str(len(alt.var_pats)),
                p.loc,
            )
        idents = [define_var(env, v) for v in alt.var_pats]
        return ConPattern(entry.ident, idents)
    if isinstance(p, IntPat):
        return NumPattern(p.value)
    if isinstance(p, WildcardPat):
        return WildPattern()
    raise TypeError("unknown pattern node: " + type(p).__name__)
