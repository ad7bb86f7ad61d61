"""Gallina AST - the subset of Coq's vernacular and term language the
converter generates.

Identifiers in this tree are final Coq identifiers (already renamed).
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# TERMS
# ============================================================


@dataclass
class Term:
    """Base for all Gallina terms. Abstract."""


@dataclass
class Qualid(Term):
    """Identifier reference: x, List, op_plus__."""

    name: str


@dataclass
class App(Term):
    """Application of a term to one or more arguments."""

    func: Term
    args: list[Term]


@dataclass
class Arrow(Term):
    """Function type: arg -> result."""

    arg: Term
    result: Term


@dataclass
class Binder:
    """Binder of a definition, fixpoint or fun.

    typ None renders the bare names. Implicit binders render in braces.
    """

    names: list[str]
    typ: Term | None = None
    implicit: bool = False


@dataclass
class Fun(Term):
    """fun x y => body."""

    binders: list[Binder]
    body: Term


@dataclass
class Pattern:
    """Base for match patterns. Abstract."""


@dataclass
class ConPattern(Pattern):
    """Constructor applied to variables: cons x xs."""

    con: str
    vars: list[str] = field(default_factory=list)


@dataclass
class NumPattern(Pattern):
    value: int


@dataclass
class WildPattern(Pattern):
    pass


@dataclass
class Equation:
    """One branch of a match: | pattern => rhs."""

    pattern: Pattern
    rhs: Term


@dataclass
class Match(Term):
    scrutinee: Term
    equations: list[Equation]


@dataclass
class If(Term):
    cond: Term
    then_term: Term
    else_term: Term


@dataclass
class Num(Term):
    value: int


@dataclass
class StringLit(Term):
    value: str


@dataclass
class Sort(Term):
    """Sort: Type, Set or Prop."""

    name: str = "Type"


def app(func: Term, args: list[Term]) -> Term:
    """Application that collapses when there are no arguments."""
    if len(args) == 0:
        return func
    if isinstance(func, App):
        return App(func.func, func.args + args)
    return App(func, args)


def qualid_app(name: str, args: list[Term]) -> Term:
    return app(Qualid(name), args)


def arrows(args: list[Term], result: Term) -> Term:
    for a in reversed(args):
        result = Arrow(a, result)
    return result


# ============================================================
# SENTENCES
# ============================================================


@dataclass
class Sentence:
    """Base for all vernacular sentences. Abstract."""


@dataclass
class Comment(Sentence):
    text: str


@dataclass
class Require(Sentence):
    """From library Require Import modules."""

    library: str | None
    modules: list[str]
    import_: bool = True


@dataclass
class Definition(Sentence):
    name: str
    binders: list[Binder]
    return_type: Term | None
    body: Term


@dataclass
class FixBody:
    """One function of a (mutual) Fixpoint with its {struct x} annotation."""

    name: str
    binders: list[Binder]
    struct_arg: str | None
    return_type: Term | None
    body: Term


@dataclass
class Fixpoint(Sentence):
    """Fixpoint f ... with g ... ."""

    bodies: list[FixBody]


@dataclass
class Constructor:
    name: str
    typ: Term


@dataclass
class IndBody:
    """One type of a (mutual) Inductive sentence."""

    name: str
    binders: list[Binder]
    typ: Term
    constructors: list[Constructor]


@dataclass
class Inductive(Sentence):
    bodies: list[IndBody]


@dataclass
class Arguments(Sentence):
    """Arguments name {Shape} {Pos} {a}. Marks the listed arguments implicit."""

    name: str
    implicit_args: list[str]


@dataclass
class Variable(Sentence):
    """Section variable: Variable x : T."""

    names: list[str]
    typ: Term


@dataclass
class Section(Sentence):
    """Section name. sentences End name."""

    name: str
    sentences: list[Sentence]


@dataclass
class LocalModule(Sentence):
    """Module name. sentences End name."""

    name: str
    sentences: list[Sentence]
