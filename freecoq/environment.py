"""Converter state: entries for declarations, type signatures, decreasing
arguments and fresh identifier counters.

One Environment lives for the conversion of one module. It is mutated in
place by every pass; scoped computations use `Environment.local()`, which
restores entries, type signatures and decreasing arguments on exit but never
rolls back the fresh identifier counters.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Iterator

from .ir import Loc, Type, loc_unknown

VALUE_SCOPE: str = "value"
TYPE_SCOPE: str = "type"


# ============================================================
# ENTRIES
# ============================================================


@dataclass(kw_only=True)
class Entry:
    """Base for environment entries. Abstract.

    name is the IR name, ident the Coq identifier chosen by the renamer.
    """

    name: str
    ident: str = ""
    loc: Loc = field(default_factory=loc_unknown)

    scope = VALUE_SCOPE


@dataclass(kw_only=True)
class DataEntry(Entry):
    """Data type constructor."""

    arity: int
    scope = TYPE_SCOPE


@dataclass(kw_only=True)
class TypeSynEntry(Entry):
    """Type synonym and its expansion."""

    type_args: list[str]
    rhs: Type
    scope = TYPE_SCOPE


@dataclass(kw_only=True)
class TypeVarEntry(Entry):
    """Type variable bound by the declaration being converted."""

    scope = TYPE_SCOPE


@dataclass(kw_only=True)
class ConEntry(Entry):
    """Data constructor."""

    arity: int
    type_args: list[str]
    arg_types: list[Type]
    return_type: Type


@dataclass(kw_only=True)
class FuncEntry(Entry):
    """Top-level function, including generated helper functions.

    arg_types and return_type hold None where the type is not known (helper
    functions get the types of captured variables only when they were
    annotated on the original function).
    """

    arity: int
    type_args: list[str] = field(default_factory=list)
    arg_types: list[Type | None] = field(default_factory=list)
    return_type: Type | None = None
    needs_free_args: bool = True
    is_partial: bool = False


@dataclass(kw_only=True)
class VarEntry(Entry):
    """Local variable or section variable."""


# ============================================================
# ENVIRONMENT
# ============================================================


class Environment:
    """Mutable state of the converter for one compilation unit."""

    def __init__(self) -> None:
        self.entries: dict[tuple[str, str], Entry] = {}
        self.type_sigs: dict[str, Type] = {}
        # function name -> (index, name) of its decreasing argument
        self.dec_args: dict[str, tuple[int, str]] = {}
        # prefix -> number of fresh identifiers generated with that prefix
        self.fresh_counts: dict[str, int] = {}

    # ── Scopes ────────────────────────────────────────────────

    def snapshot(
        self,
    ) -> tuple[dict[tuple[str, str], Entry], dict[str, Type], dict[str, tuple[int, str]]]:
        return (dict(self.entries), dict(self.type_sigs), dict(self.dec_args))

    def restore(
        self,
        snap: tuple[
            dict[tuple[str, str], Entry], dict[str, Type], dict[str, tuple[int, str]]
        ],
    ) -> None:
        entries, type_sigs, dec_args = snap
        self.entries = dict(entries)
        self.type_sigs = dict(type_sigs)
        self.dec_args = dict(dec_args)

    @contextmanager
    def local(self) -> Iterator[Environment]:
        """Run a block in a local scope; definitions made inside are discarded."""
        snap = self.snapshot()
        try:
            yield self
        finally:
            self.restore(snap)

    # ── Entries ───────────────────────────────────────────────

    def add_entry(self, entry: Entry) -> None:
        self.entries[(entry.scope, entry.name)] = entry

    def lookup_entry(self, scope: str, name: str) -> Entry | None:
        return self.entries.get((scope, name))

    def lookup_func(self, name: str) -> FuncEntry | None:
        entry = self.entries.get((VALUE_SCOPE, name))
        if isinstance(entry, FuncEntry):
            return entry
        return None

    def is_function(self, name: str) -> bool:
        return self.lookup_func(name) is not None

    def is_constructor(self, name: str) -> bool:
        return isinstance(self.entries.get((VALUE_SCOPE, name)), ConEntry)

    def is_variable(self, name: str) -> bool:
        return isinstance(self.entries.get((VALUE_SCOPE, name)), VarEntry)

    def lookup_ident(self, scope: str, name: str) -> str | None:
        entry = self.entries.get((scope, name))
        if entry is None:
            return None
        return entry.ident

    def used_idents(self) -> set[str]:
        return {e.ident for e in self.entries.values() if e.ident != ""}

    def lookup_arity(self, name: str) -> int | None:
        entry = self.entries.get((VALUE_SCOPE, name))
        if isinstance(entry, (FuncEntry, ConEntry)):
            return entry.arity
        return None

    def lookup_type_args(self, name: str) -> list[str]:
        entry = self.entries.get((VALUE_SCOPE, name))
        if isinstance(entry, (FuncEntry, ConEntry)):
            return entry.type_args
        return []

    def lookup_arg_types(self, name: str) -> list[Type | None]:
        entry = self.lookup_func(name)
        if entry is None:
            return []
        return entry.arg_types

    def lookup_return_type(self, name: str) -> Type | None:
        entry = self.entries.get((VALUE_SCOPE, name))
        if isinstance(entry, (FuncEntry, ConEntry)):
            return entry.return_type
        return None

    def needs_free_args(self, name: str) -> bool:
        """Whether the function takes the Shape and Pos arguments of Free."""
        entry = self.lookup_func(name)
        return entry is not None and entry.needs_free_args

    def is_partial(self, name: str) -> bool:
        entry = self.lookup_func(name)
        return entry is not None and entry.is_partial

    def mark_partial(self, name: str) -> None:
        entry = self.lookup_func(name)
        if entry is not None and not entry.is_partial:
            self.add_entry(replace(entry, is_partial=True))

    def lookup_type_synonym(self, name: str) -> tuple[list[str], Type] | None:
        entry = self.entries.get((TYPE_SCOPE, name))
        if isinstance(entry, TypeSynEntry):
            return entry.type_args, entry.rhs
        return None

    # ── Type signatures ───────────────────────────────────────

    def define_type_sig(self, name: str, typ: Type) -> None:
        self.type_sigs[name] = typ

    def lookup_type_sig(self, name: str) -> Type | None:
        return self.type_sigs.get(name)

    # ── Decreasing arguments ──────────────────────────────────

    def define_dec_arg(self, name: str, index: int, arg_name: str) -> None:
        self.dec_args[name] = (index, arg_name)

    def remove_dec_arg(self, name: str) -> None:
        self.dec_args.pop(name, None)

    def lookup_dec_arg(self, name: str) -> tuple[int, str] | None:
        return self.dec_args.get(name)

    def lookup_dec_arg_index(self, name: str) -> int | None:
        found = self.dec_args.get(name)
        if found is None:
            return None
        return found[0]
