"""Strongly connected components of dependency graphs.

Components are returned in reverse topological order: a component comes
before every component that depends on it, so declarations can be converted
front to back. Tarjan's algorithm visits roots and successors in reverse
name order; independent components therefore come out in reverse
alphabetical order. Declarations inside a recursive component keep their
source order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..ir import Decl, FuncDecl
from .depgraph import DependencyGraph, func_dependency_graph, type_dependency_graph

logger = logging.getLogger(__name__)


@dataclass
class DependencyComponent:
    """Base for strongly connected components. Abstract."""

    @property
    def decls(self) -> list[Decl]:
        raise NotImplementedError


@dataclass
class NonRecursive(DependencyComponent):
    """A single declaration that does not depend on itself."""

    decl: Decl

    @property
    def decls(self) -> list[Decl]:
        return [self.decl]


@dataclass
class Recursive(DependencyComponent):
    """Mutually recursive declarations, or one directly recursive declaration."""

    members: list[Decl]

    @property
    def decls(self) -> list[Decl]:
        return list(self.members)


def component_names(component: DependencyComponent) -> list[str]:
    names: list[str] = []
    for decl in component.decls:
        names.append(getattr(decl, "name"))
    return names


# ============================================================
# TARJAN'S ALGORITHM
# ============================================================


class _TarjanState:
    """Mutable state for Tarjan's SCC algorithm."""

    def __init__(self, graph: DependencyGraph) -> None:
        self.graph = graph
        self.index: int = 0
        self.stack: list[str] = []
        self.on_stack: set[str] = set()
        self.indices: dict[str, int] = {}
        self.lowlinks: dict[str, int] = {}
        self.result: list[list[str]] = []


def _strongconnect(v: str, st: _TarjanState) -> None:
    st.indices[v] = st.index
    st.lowlinks[v] = st.index
    st.index += 1
    st.stack.append(v)
    st.on_stack.add(v)
    for w in sorted(st.graph.successors(v), reverse=True):
        if w not in st.indices:
            _strongconnect(w, st)
            st.lowlinks[v] = min(st.lowlinks[v], st.lowlinks[w])
        elif w in st.on_stack:
            st.lowlinks[v] = min(st.lowlinks[v], st.indices[w])
    if st.lowlinks[v] == st.indices[v]:
        scc: list[str] = []
        while True:
            w = st.stack.pop()
            st.on_stack.discard(w)
            scc.append(w)
            if w == v:
                break
        st.result.append(scc)


def _compute_sccs(graph: DependencyGraph) -> list[list[str]]:
    """Tarjan's SCC algorithm. Returns SCCs in reverse topological order."""
    st = _TarjanState(graph)
    for v in sorted(graph.keys(), reverse=True):
        if v not in st.indices:
            _strongconnect(v, st)
    return st.result


# ============================================================
# GROUPING
# ============================================================


def group_dependencies(graph: DependencyGraph) -> list[DependencyComponent]:
    """Components of graph, dependencies first."""
    components: list[DependencyComponent] = []
    for scc in _compute_sccs(graph):
        if len(scc) == 1 and not graph.has_self_loop(scc[0]):
            components.append(NonRecursive(graph.decl(scc[0])))
            continue
        keys = sorted(scc, key=graph.source_index)
        components.append(Recursive([graph.decl(k) for k in keys]))
    groups = " ".join("{" + ",".join(component_names(c)) + "}" for c in components)
    logger.debug(f"components: {groups}")
    return components


def group_type_decls(decls: list[Decl]) -> list[DependencyComponent]:
    return group_dependencies(type_dependency_graph(decls))


def group_func_decls(decls: list[Decl] | list[FuncDecl]) -> list[DependencyComponent]:
    return group_dependencies(func_dependency_graph(list(decls)))
