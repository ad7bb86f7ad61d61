"""IR analysis and transformation passes used by the converter."""

from .components import (
    DependencyComponent as DependencyComponent,
    NonRecursive as NonRecursive,
    Recursive as Recursive,
    group_dependencies as group_dependencies,
    group_func_decls as group_func_decls,
    group_type_decls as group_type_decls,
)
from .depgraph import (
    ERROR_KEY as ERROR_KEY,
    UNDEFINED_KEY as UNDEFINED_KEY,
    DependencyGraph as DependencyGraph,
    func_dependency_graph as func_dependency_graph,
    type_dependency_graph as type_dependency_graph,
)
