"""Dependency graphs of type and function declarations.

A DependencyGraph is built from one homogeneous batch of declarations. Every
declaration is a node keyed by its declared name and carries the ordered,
duplicate-free list of keys it references. References to keys that have no
node (built-ins, imported names, "error") are kept in the entry but produce
no edge. The graph is immutable after construction.
"""

from __future__ import annotations

from ..ir import (
    Alt,
    App,
    Case,
    Con,
    DataDecl,
    Decl,
    ERROR_NAME,
    ErrorExpr,
    Expr,
    FuncDecl,
    If,
    IntLiteral,
    Lambda,
    TypeAppExpr,
    TypeSynDecl,
    UNDEFINED_NAME,
    Undefined,
    Var,
    is_symbol,
    type_con_names,
)

# Keys of the built-in error terms
ERROR_KEY: str = ERROR_NAME
UNDEFINED_KEY: str = UNDEFINED_NAME


class DependencyGraph:
    """Nodes of one declaration batch and the keys each node references."""

    def __init__(self, entries: list[tuple[Decl, str, list[str]]]):
        self._decls: dict[str, Decl] = {}
        self._deps: dict[str, tuple[str, ...]] = {}
        self._order: list[str] = []
        for decl, key, deps in entries:
            if key in self._decls:
                continue
            self._decls[key] = decl
            self._deps[key] = tuple(_dedupe(deps))
            self._order.append(key)

    def keys(self) -> list[str]:
        """Keys in source order."""
        return list(self._order)

    def __contains__(self, key: str) -> bool:
        return key in self._decls

    def __len__(self) -> int:
        return len(self._order)

    def decl(self, key: str) -> Decl:
        return self._decls[key]

    def source_index(self, key: str) -> int:
        return self._order.index(key)

    def dependencies(self, key: str) -> list[str]:
        """All keys referenced by the node, including those without a node."""
        return list(self._deps.get(key, ()))

    def successors(self, key: str) -> list[str]:
        """Keys referenced by the node that are nodes of this graph."""
        return [d for d in self._deps.get(key, ()) if d in self._decls]

    def has_edge(self, src: str, dst: str) -> bool:
        return dst in self._decls and dst in self._deps.get(src, ())

    def has_self_loop(self, key: str) -> bool:
        return self.has_edge(key, key)

    def to_dot(self) -> str:
        """Graphviz DOT rendering. Nodes are numbered in key order."""
        keys = sorted(self._order)
        vertex: dict[str, int] = {}
        for i, key in enumerate(keys):
            vertex[key] = i
        lines: list[str] = ["digraph {"]
        for key in keys:
            lines.append("  " + str(vertex[key]) + ' [label="' + _dot_label(key) + '"];')
        for key in keys:
            targets = [str(vertex[d]) for d in self.successors(key)]
            if len(targets) > 0:
                lines.append("  " + str(vertex[key]) + " -> {" + ",".join(targets) + "};")
        lines.append("}")
        return "\n".join(lines) + "\n"


def _dot_label(key: str) -> str:
    if is_symbol(key):
        return "(" + key + ")"
    return key


def _dedupe(names: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for n in names:
        if n not in seen:
            seen.add(n)
            out.append(n)
    return out


# ============================================================
# TYPE DECLARATIONS
# ============================================================


def type_dependency_graph(decls: list[Decl]) -> DependencyGraph:
    """Graph of the data and type synonym declarations in decls."""
    entries: list[tuple[Decl, str, list[str]]] = []
    for decl in decls:
        if isinstance(decl, DataDecl):
            refs: list[str] = []
            for con in decl.con_decls:
                for field_type in con.fields:
                    refs.extend(type_con_names(field_type))
            entries.append((decl, decl.name, refs))
        elif isinstance(decl, TypeSynDecl):
            entries.append((decl, decl.name, type_con_names(decl.rhs)))
    return DependencyGraph(entries)


# ============================================================
# FUNCTION DECLARATIONS
# ============================================================


def func_dependency_graph(decls: list[Decl]) -> DependencyGraph:
    """Graph of the function declarations in decls."""
    entries: list[tuple[Decl, str, list[str]]] = []
    for decl in decls:
        if isinstance(decl, FuncDecl):
            entries.append((decl, decl.name, func_dependencies(decl)))
    return DependencyGraph(entries)


def func_dependencies(decl: FuncDecl) -> list[str]:
    """Names referenced by the right-hand side, parameters excluded."""
    refs: list[str] = []
    _collect_refs(decl.rhs, set(decl.arg_names), refs)
    return _dedupe(refs)


def _collect_refs(expr: Expr, bound: set[str], refs: list[str]) -> None:
    if isinstance(expr, Var):
        if expr.name not in bound:
            refs.append(expr.name)
    elif isinstance(expr, ErrorExpr):
        refs.append(ERROR_KEY)
    elif isinstance(expr, Undefined):
        refs.append(UNDEFINED_KEY)
    elif isinstance(expr, (Con, IntLiteral)):
        pass
    elif isinstance(expr, App):
        _collect_refs(expr.func, bound, refs)
        _collect_refs(expr.arg, bound, refs)
    elif isinstance(expr, TypeAppExpr):
        _collect_refs(expr.expr, bound, refs)
    elif isinstance(expr, If):
        _collect_refs(expr.cond, bound, refs)
        _collect_refs(expr.then_expr, bound, refs)
        _collect_refs(expr.else_expr, bound, refs)
    elif isinstance(expr, Case):
        _collect_refs(expr.scrutinee, bound, refs)
        for alt in expr.alts:
            _collect_alt_refs(alt, bound, refs)
    elif isinstance(expr, Lambda):
        inner = bound | {a.name for a in expr.args}
        _collect_refs(expr.body, inner, refs)
    else:
        raise TypeError("unknown expression node: " + type(expr).__name__)


def _collect_alt_refs(alt: Alt, bound: set[str], refs: list[str]) -> None:
    inner = bound | {v.name for v in alt.var_pats}
    _collect_refs(alt.rhs, inner, refs)
