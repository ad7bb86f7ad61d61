"""Module driver: converts a whole IR module to Gallina sentences.

Declarations are converted in dependency order, one strongly connected
component at a time. A component is converted atomically: when it fails,
the environment is restored to its state before the component, the error is
recorded and conversion continues with the next component (unless
fail_fast is set).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..backend.gallina import Comment, LocalModule, Section, Sentence
from ..config import Options
from ..environment import Environment
from ..errors import ConversionError
from ..fresh import rename_and_define
from ..ir import DataDecl, Decl, FuncDecl, Module, TypeSynDecl
from ..middleend.components import (
    DependencyComponent,
    NonRecursive,
    Recursive,
    component_names,
    group_dependencies,
    group_type_decls,
)
from ..middleend.depgraph import func_dependency_graph
from ..middleend.partiality import mark_partial_functions
from ..middleend.recursion import identify_const_args
from .base import define_prelude, imports
from .func_decl import convert_non_rec_func_decl, func_entry
from .rec_helpers import convert_rec_func_decls_with_helpers
from .rec_sections import (
    const_arg_types,
    convert_rec_func_decls_with_section,
    used_const_args,
)
from .type_decl import convert_type_component, define_type_decl

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Sentences of the converted module and the errors of failed components."""

    sentences: list[Sentence]
    errors: list[ConversionError] = field(default_factory=list)
    env: Environment = field(default_factory=Environment)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0


def new_environment() -> Environment:
    """Environment with the predefined names of the Base library."""
    env = Environment()
    define_prelude(env)
    return env


class _ModuleConverter:
    """Converts one module; collects sentences and errors."""

    def __init__(self, module: Module, options: Options, env: Environment):
        self.module = module
        self.options = options
        self.env = env
        self.sentences: list[Sentence] = []
        self.errors: list[ConversionError] = []
        self.stopped: bool = False

    def report(self, err: ConversionError) -> None:
        logger.debug(f"conversion error: {err}")
        self.errors.append(err)
        if self.options.fail_fast:
            self.stopped = True

    # ── Declarations ────────────────────────────────────────

    def unique_decls(self) -> tuple[list[Decl], list[FuncDecl]]:
        """Type and function declarations, reporting duplicates."""
        type_decls: list[Decl] = []
        func_decls: list[FuncDecl] = []
        seen_types: set[str] = set()
        seen_values: set[str] = set()
        for decl in self.module.decls:
            if isinstance(decl, (DataDecl, TypeSynDecl)):
                if decl.name in seen_types:
                    self.report(ConversionError("multiple declarations of " + decl.name, decl.loc))
                    continue
                seen_types.add(decl.name)
                type_decls.append(decl)
            elif isinstance(decl, FuncDecl):
                if decl.name in seen_values:
                    self.report(ConversionError("multiple declarations of " + decl.name, decl.loc))
                    continue
                seen_values.add(decl.name)
                func_decls.append(decl)
        return type_decls, func_decls

    def register_type_sigs(self, func_decls: list[FuncDecl]) -> None:
        names = {d.name for d in func_decls}
        for sig in self.module.type_sigs:
            for name in sig.names:
                if name not in names:
                    self.report(
                        ConversionError(
                            "type signature for " + name + " lacks an accompanying binding",
                            sig.loc,
                        )
                    )
                    continue
                self.env.define_type_sig(name, sig.typ)

    def register_pragmas(self, func_decls: list[FuncDecl]) -> None:
        by_name = {d.name: d for d in func_decls}
        for pragma in self.module.pragmas:
            decl = by_name.get(pragma.func_name)
            if decl is None:
                logger.warning(f"pragma for unknown function {pragma.func_name} ignored")
                continue
            index = -1
            if pragma.arg_name in decl.arg_names:
                index = decl.arg_names.index(pragma.arg_name)
            self.env.define_dec_arg(pragma.func_name, index, pragma.arg_name)

    # ── Components ──────────────────────────────────────────

    def convert_components(self, components: list[DependencyComponent], is_type: bool) -> None:
        for component in components:
            if self.stopped:
                return
            snap = self.env.snapshot()
            try:
                if is_type:
                    converted = convert_type_component(self.env, component)
                else:
                    converted = convert_func_component(self.env, component, self.options)
            except ConversionError as err:
                self.env.restore(snap)
                self.report(err)
                continue
            self.sentences.extend(converted)

    def run(self) -> ConversionResult:
        type_decls, func_decls = self.unique_decls()
        self.register_type_sigs(func_decls)
        self.register_pragmas(func_decls)
        for decl in type_decls:
            define_type_decl(self.env, decl)
        for decl in func_decls:
            rename_and_define(self.env, func_entry(self.env, decl))

        self.convert_components(group_type_decls(type_decls), True)
        graph = func_dependency_graph(list(func_decls))
        mark_partial_functions(graph, self.env)
        self.convert_components(group_dependencies(graph), False)

        body = self.sentences
        if not self.options.emit_comments:
            body = strip_comments(body)
        name = self.module.name if self.module.name is not None else self.options.module_name
        sentences: list[Sentence] = [imports(), LocalModule(name, body)]
        return ConversionResult(sentences, self.errors, self.env)


def convert_module(module: Module, options: Options | None = None) -> ConversionResult:
    """Convert module to Gallina sentences, collecting per-component errors."""
    if options is None:
        options = Options()
    return _ModuleConverter(module, options, new_environment()).run()


def convert_func_component(
    env: Environment, component: DependencyComponent, options: Options
) -> list[Sentence]:
    if isinstance(component, NonRecursive):
        decl = component.decl
        if not isinstance(decl, FuncDecl):
            raise TypeError("not a function declaration: " + type(decl).__name__)
        return [convert_non_rec_func_decl(env, decl)]
    if isinstance(component, Recursive):
        decls = [d for d in component.decls if isinstance(d, FuncDecl)]
        const_args = identify_const_args(decls) if options.use_sections else []
        const_args = used_const_args(const_args, decls)
        if len(const_args) > 0 and const_arg_types(env, const_args, decls) is not None:
            logger.debug(f"converting {', '.join(component_names(component))} with a section")
            return convert_rec_func_decls_with_section(env, const_args, decls)
        if len(const_args) > 0:
            logger.debug("constant argument types unknown, using helper functions")
        return convert_rec_func_decls_with_helpers(env, decls)
    raise TypeError("unknown component: " + type(component).__name__)


def strip_comments(sentences: list[Sentence]) -> list[Sentence]:
    out: list[Sentence] = []
    for s in sentences:
        if isinstance(s, Comment):
            continue
        if isinstance(s, Section):
            s = Section(s.name, strip_comments(s.sentences))
        out.append(s)
    return out
