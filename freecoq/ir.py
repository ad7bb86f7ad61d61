"""freecoq IR - the intermediate representation of source programs.

This module defines the complete IR syntax and serves as its reference.
Each node's docstring documents its semantics and invariants.

Architecture:
    Source -> Frontend (tokens, parse) -> [IR] -> Middleend (dependency
    analysis, recursion analysis, inlining) -> Converter -> Gallina AST -> Coq

The IR is a small, purely functional, Haskell-like core language. Names are
plain strings. Operators are ordinary names spelled by their symbol ("+",
":"). Identifiers introduced by the compiler contain INTERNAL_IDENT_CHAR and
can never clash with user identifiers.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# SOURCE LOCATIONS
# ============================================================


@dataclass(unsafe_hash=True)
class Loc:
    """Source location for error messages.

    Invariants:
    - line >= 1 for valid locations (0 indicates unknown)
    - col >= 1 for valid locations
    - end_line >= line
    """

    line: int  # 1-indexed, 0 = unknown
    col: int  # 1-indexed
    end_line: int
    end_col: int


def loc_unknown() -> Loc:
    """Factory for unknown source location."""
    return Loc(0, 0, 0, 0)


# ============================================================
# NAMES
# ============================================================

INTERNAL_IDENT_CHAR: str = "@"
"""Marks identifiers generated by the compiler (see fresh.py).

The character cannot occur in a user identifier, so fresh names never clash
with user names. The renamer replaces it by "_" in Coq identifiers.
"""

# Names of the built-in error terms. Functions using them depend on these keys
# in the function dependency graph.
ERROR_NAME: str = "error"
UNDEFINED_NAME: str = "undefined"


def is_internal_ident(name: str) -> bool:
    return INTERNAL_IDENT_CHAR in name


def is_symbol(name: str) -> bool:
    """Operator names ("+", ":", "++") as opposed to identifiers."""
    if name == "" or name == "[]":
        return False
    c = name[0]
    return not (c.isalpha() or c == "_")


# ============================================================
# TYPES
# ============================================================


@dataclass(kw_only=True)
class Type:
    """Base for all type expressions. Abstract."""

    loc: Loc = field(default_factory=loc_unknown, compare=False)


@dataclass
class TypeVar(Type):
    """Type variable: a, b."""

    name: str


@dataclass
class TypeCon(Type):
    """Type constructor reference: Int, List, Bool."""

    name: str


@dataclass
class TypeApp(Type):
    """Type constructor application: List a.

    Multi-argument applications are left-nested: (Pair a) b.
    """

    func: Type
    arg: Type


@dataclass
class FuncType(Type):
    """Function type: a -> b. Right-nested for several arguments."""

    arg: Type
    result: Type


def type_app(head: Type, args: list[Type]) -> Type:
    """Left-nested application of a type constructor to arguments."""
    result = head
    for a in args:
        result = TypeApp(result, a, loc=head.loc)
    return result


def func_type(args: list[Type], result: Type) -> Type:
    """Right-nested function type a1 -> ... -> an -> result."""
    for a in reversed(args):
        result = FuncType(a, result, loc=a.loc)
    return result


def split_func_type(typ: Type, arity: int) -> tuple[list[Type], Type]:
    """Split up to `arity` argument types off a function type."""
    args: list[Type] = []
    while len(args) < arity and isinstance(typ, FuncType):
        args.append(typ.arg)
        typ = typ.result
    return args, typ


def type_con_names(typ: Type) -> list[str]:
    """Names of type constructors used by a type, in order of occurrence."""
    if isinstance(typ, TypeCon):
        return [typ.name]
    if isinstance(typ, TypeVar):
        return []
    if isinstance(typ, TypeApp):
        return type_con_names(typ.func) + type_con_names(typ.arg)
    if isinstance(typ, FuncType):
        return type_con_names(typ.arg) + type_con_names(typ.result)
    raise TypeError("unknown type node: " + type(typ).__name__)


def type_var_names(typ: Type) -> list[str]:
    """Names of type variables used by a type, in order of first occurrence."""
    out: list[str] = []
    _collect_type_vars(typ, out)
    return out


def _collect_type_vars(typ: Type, out: list[str]) -> None:
    if isinstance(typ, TypeVar):
        if typ.name not in out:
            out.append(typ.name)
    elif isinstance(typ, TypeApp):
        _collect_type_vars(typ.func, out)
        _collect_type_vars(typ.arg, out)
    elif isinstance(typ, FuncType):
        _collect_type_vars(typ.arg, out)
        _collect_type_vars(typ.result, out)


# ============================================================
# PATTERNS
# ============================================================


@dataclass
class VarPat:
    """Variable binder: function parameter, lambda argument or the variable
    of a constructor pattern.

    typ is the optional type annotation `(x :: t)`.
    """

    name: str
    typ: Type | None = None
    loc: Loc = field(default_factory=loc_unknown, compare=False)


@dataclass(kw_only=True)
class Pattern:
    """Base for the head of a case alternative. Abstract."""

    loc: Loc = field(default_factory=loc_unknown, compare=False)


@dataclass
class ConPat(Pattern):
    """Constructor pattern. The constructor's fields are bound by Alt.var_pats."""

    name: str


@dataclass
class IntPat(Pattern):
    """Integer literal pattern. Binds no variables."""

    value: int


@dataclass
class WildcardPat(Pattern):
    """Catch-all pattern `_`. Binds no variables."""


@dataclass
class Alt:
    """Case alternative: pattern var_pats -> rhs.

    Invariants:
    - var_pats is empty unless pattern is a ConPat
    - the names in var_pats are distinct
    """

    pattern: Pattern
    var_pats: list[VarPat]
    rhs: Expr
    loc: Loc = field(default_factory=loc_unknown, compare=False)


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(kw_only=True)
class Expr:
    """Base for all expressions. Abstract.

    Locations do not take part in equality, so structurally equal
    expressions compare equal regardless of where they come from.
    """

    loc: Loc = field(default_factory=loc_unknown, compare=False)


@dataclass
class Var(Expr):
    """Reference to a function, parameter or local variable."""

    name: str


@dataclass
class Con(Expr):
    """Reference to a data constructor. Constructors are never local."""

    name: str


@dataclass
class App(Expr):
    """Application of a function to one argument. Curried: f x y = (f x) y."""

    func: Expr
    arg: Expr


@dataclass
class TypeAppExpr(Expr):
    """Visible type application: f @a.

    Type applications always precede the value arguments of a function.
    """

    expr: Expr
    typ: Type


@dataclass
class If(Expr):
    """if cond then then_expr else else_expr."""

    cond: Expr
    then_expr: Expr
    else_expr: Expr


@dataclass
class Case(Expr):
    """case scrutinee of { alts }.

    Semantics: Evaluate the scrutinee and select the first matching
    alternative. Variables of a constructor pattern are bound to the
    constructor's fields, which are structurally smaller than the scrutinee.
    """

    scrutinee: Expr
    alts: list[Alt]


@dataclass
class Lambda(Expr):
    """Lambda abstraction: \\x y -> body.

    Invariants:
    - args is non-empty
    """

    args: list[VarPat]
    body: Expr


@dataclass
class IntLiteral(Expr):
    """Integer literal."""

    value: int


@dataclass
class Undefined(Expr):
    """The error term `undefined`."""


@dataclass
class ErrorExpr(Expr):
    """The error term `error "message"`."""

    message: str


def var(name: str) -> Var:
    return Var(name)


def app(func: Expr, args: list[Expr]) -> Expr:
    """Left-nested application of func to args."""
    result = func
    for a in args:
        result = App(result, a, loc=func.loc)
    return result


def type_app_expr(expr: Expr, types: list[Type]) -> Expr:
    """Visible type applications of expr to each of types."""
    result = expr
    for t in types:
        result = TypeAppExpr(result, t, loc=expr.loc)
    return result


def split_app(expr: Expr) -> tuple[Expr, list[Expr]]:
    """Split `f e1 ... en` into (f, [e1, ..., en]).

    The head keeps its visible type applications.
    """
    args: list[Expr] = []
    while isinstance(expr, App):
        args.append(expr.arg)
        expr = expr.func
    args.reverse()
    return expr, args


def strip_type_apps(expr: Expr) -> tuple[Expr, list[Type]]:
    """Split `f @t1 ... @tn` into (f, [t1, ..., tn])."""
    types: list[Type] = []
    while isinstance(expr, TypeAppExpr):
        types.append(expr.typ)
        expr = expr.expr
    types.reverse()
    return expr, types


def call_target(expr: Expr) -> tuple[str | None, list[Expr]]:
    """Name of the variable applied in expr and its value arguments.

    Returns (None, args) if the head of the application is not a variable.
    """
    head, args = split_app(expr)
    head, _ = strip_type_apps(head)
    if isinstance(head, Var):
        return head.name, args
    return None, args


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class ConDecl:
    """Constructor of a data type: Cons a (List a)."""

    name: str
    fields: list[Type]
    loc: Loc = field(default_factory=loc_unknown, compare=False)


@dataclass(kw_only=True)
class Decl:
    """Base for all top-level declarations. Abstract."""

    loc: Loc = field(default_factory=loc_unknown, compare=False)


@dataclass
class DataDecl(Decl):
    """data List a = Nil | Cons a (List a)."""

    name: str
    type_args: list[str]
    con_decls: list[ConDecl]


@dataclass
class TypeSynDecl(Decl):
    """type Name a = rhs.

    Invariants:
    - synonyms never form a cycle (reported as TypeSynonymCycleError)
    """

    name: str
    type_args: list[str]
    rhs: Type


@dataclass
class FuncDecl(Decl):
    """f @a (x :: t) y :: r = rhs.

    Semantics: A (possibly recursive) top-level function. type_args are the
    function's type parameters in the order visible type applications
    instantiate them.

    Invariants:
    - parameter names are distinct
    - return_type is None when no annotation is given
    """

    name: str
    type_args: list[str]
    args: list[VarPat]
    rhs: Expr
    return_type: Type | None = None

    @property
    def arity(self) -> int:
        return len(self.args)

    @property
    def arg_names(self) -> list[str]:
        return [a.name for a in self.args]


@dataclass
class TypeSig(Decl):
    """f, g :: forall a. t -- type annotation for one or more functions."""

    names: list[str]
    typ: Type


TypeDecl = DataDecl | TypeSynDecl


@dataclass
class DecArgPragma:
    """User annotation fixing the decreasing argument of a recursive function.

    Written as a leading comment: -- pragma decreasing f xs
    """

    func_name: str
    arg_name: str
    loc: Loc = field(default_factory=loc_unknown, compare=False)


@dataclass
class Module:
    """A complete compilation unit.

    name is None when the source has no module header; the converter then
    uses the configured default name.
    """

    name: str | None
    decls: list[Decl]
    pragmas: list[DecArgPragma] = field(default_factory=list)

    @property
    def type_decls(self) -> list[Decl]:
        return [d for d in self.decls if isinstance(d, (DataDecl, TypeSynDecl))]

    @property
    def func_decls(self) -> list[FuncDecl]:
        return [d for d in self.decls if isinstance(d, FuncDecl)]

    @property
    def type_sigs(self) -> list[TypeSig]:
        return [d for d in self.decls if isinstance(d, TypeSig)]
