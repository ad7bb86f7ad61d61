"""Partiality analysis.

A function is partial if it uses `error` or `undefined`, or depends on a
partial function. Partial functions take the `Partial` instance argument.
"""

from __future__ import annotations

import logging

from ..environment import Environment
from .depgraph import ERROR_KEY, UNDEFINED_KEY, DependencyGraph

logger = logging.getLogger(__name__)


def partial_functions(graph: DependencyGraph, env: Environment) -> list[str]:
    """Keys of graph that are partial, in source order.

    Dependencies without a node count as partial when the environment
    already marks them so (e.g. predefined functions).
    """
    partial: set[str] = set()
    for key in graph.keys():
        for dep in graph.dependencies(key):
            if dep == ERROR_KEY or dep == UNDEFINED_KEY:
                partial.add(key)
            elif dep not in graph and env.is_partial(dep):
                partial.add(key)
    changed = True
    while changed:
        changed = False
        for key in graph.keys():
            if key in partial:
                continue
            for dep in graph.successors(key):
                if dep in partial:
                    partial.add(key)
                    changed = True
                    break
    result = [k for k in graph.keys() if k in partial]
    if len(result) > 0:
        logger.debug(f"partial functions: {', '.join(result)}")
    return result


def mark_partial_functions(graph: DependencyGraph, env: Environment) -> list[str]:
    """Run the analysis and record the result in the environment."""
    result = partial_functions(graph, env)
    for name in result:
        env.mark_partial(name)
    return result
