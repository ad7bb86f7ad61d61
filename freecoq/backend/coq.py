"""Coq emitter - renders Gallina sentences as Coq source text.

Total over the Gallina AST in `gallina.py`: a new node type needs a case here.
"""

from __future__ import annotations

from .gallina import (
    App,
    Arguments,
    Arrow,
    Binder,
    Comment,
    ConPattern,
    Definition,
    Fixpoint,
    Fun,
    If,
    Inductive,
    LocalModule,
    Match,
    Num,
    NumPattern,
    Pattern,
    Qualid,
    Require,
    Section,
    Sentence,
    Sort,
    StringLit,
    Term,
    Variable,
    WildPattern,
)


def to_gallina(sentences: list[Sentence]) -> str:
    """Render sentences as the text of a Coq source file."""
    return _Emitter().emit_sentences(sentences)


def render_term(term: Term) -> str:
    return _Emitter().render_term(term)


def _indent_tail(text: str, indent: str) -> str:
    """Indent every line of text but the first."""
    return text.replace("\n", "\n" + indent)


class _Emitter:
    _INDENT: str = "  "

    # Term precedence (higher binds tighter)
    _PREC_LOW: int = 0
    _PREC_ARROW: int = 1
    _PREC_APP: int = 2
    _PREC_ATOM: int = 3

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._indent_level: int = 0
        self._last_sentence: Sentence | None = None

    # ── Public ──────────────────────────────────────────────

    def emit_sentences(self, sentences: list[Sentence]) -> str:
        self._lines = []
        self._indent_level = 0
        self._emit_block(sentences)
        text = "\n".join(self._lines)
        if text == "":
            return ""
        if not text.endswith("\n"):
            text += "\n"
        return text

    # ── Lines / Blocks ──────────────────────────────────────

    def _emit_line(self, line: str) -> None:
        prefix = self._INDENT * self._indent_level
        for part in line.split("\n"):
            if part == "":
                self._lines.append("")
            else:
                self._lines.append(prefix + part)

    def _emit_block(self, sentences: list[Sentence]) -> None:
        first = True
        for s in sentences:
            # Comments stick to the sentence that follows them.
            if not first and not isinstance(self._last_sentence, Comment):
                self._lines.append("")
            first = False
            self._emit_sentence(s)
            self._last_sentence = s

    # ── Sentences ───────────────────────────────────────────

    def _emit_sentence(self, s: Sentence) -> None:
        if isinstance(s, Comment):
            self._emit_line("(* " + s.text + " *)")
            return
        if isinstance(s, Require):
            head = "Require Import " if s.import_ else "Require "
            if s.library is not None:
                head = "From " + s.library + " " + head
            self._emit_line(head + " ".join(s.modules) + ".")
            return
        if isinstance(s, Definition):
            self._emit_definition(s)
            return
        if isinstance(s, Fixpoint):
            self._emit_fixpoint(s)
            return
        if isinstance(s, Inductive):
            self._emit_inductive(s)
            return
        if isinstance(s, Arguments):
            args = " ".join("{" + a + "}" for a in s.implicit_args)
            self._emit_line("Arguments " + s.name + " " + args + ".")
            return
        if isinstance(s, Variable):
            self._emit_line(
                "Variable " + " ".join(s.names) + " : " + self.render_term(s.typ) + "."
            )
            return
        if isinstance(s, Section):
            self._emit_line("Section " + s.name + ".")
            self._indent_level += 1
            self._last_sentence = None
            self._emit_block(s.sentences)
            self._indent_level -= 1
            self._emit_line("End " + s.name + ".")
            return
        if isinstance(s, LocalModule):
            self._emit_line("Module " + s.name + ".")
            self._lines.append("")
            self._last_sentence = None
            self._emit_block(s.sentences)
            self._lines.append("")
            self._emit_line("End " + s.name + ".")
            return
        raise TypeError("unhandled sentence type: " + type(s).__name__)

    def _emit_definition(self, s: Definition) -> None:
        head = "Definition " + s.name + self._render_binders(s.binders)
        if s.return_type is not None:
            head += " : " + self.render_term(s.return_type)
        self._emit_line(head + " :=")
        self._emit_body(s.body, ".")

    def _emit_fixpoint(self, s: Fixpoint) -> None:
        for i, body in enumerate(s.bodies):
            keyword = "Fixpoint " if i == 0 else "with "
            head = keyword + body.name + self._render_binders(body.binders)
            if body.struct_arg is not None:
                head += " {struct " + body.struct_arg + "}"
            if body.return_type is not None:
                head += " : " + self.render_term(body.return_type)
            self._emit_line(head + " :=")
            self._emit_body(body.body, "." if i == len(s.bodies) - 1 else "")

    def _emit_inductive(self, s: Inductive) -> None:
        for i, body in enumerate(s.bodies):
            keyword = "Inductive " if i == 0 else "with "
            head = keyword + body.name + self._render_binders(body.binders)
            self._emit_line(head + " : " + self.render_term(body.typ) + " :=")
            self._indent_level += 1
            for con in body.constructors:
                self._emit_line("| " + con.name + " : " + self.render_term(con.typ))
            self._indent_level -= 1
        self._lines[-1] = self._lines[-1] + "."

    def _emit_body(self, body: Term, terminator: str) -> None:
        self._indent_level += 1
        self._emit_line(self.render_term(body) + terminator)
        self._indent_level -= 1

    # ── Binders ─────────────────────────────────────────────

    def _render_binders(self, binders: list[Binder]) -> str:
        out = ""
        for b in binders:
            out += " " + self._render_binder(b)
        return out

    def _render_binder(self, b: Binder) -> str:
        names = " ".join(b.names)
        if b.typ is None:
            if b.implicit:
                return "{" + names + "}"
            return names
        inner = names + " : " + self.render_term(b.typ)
        if b.implicit:
            return "{" + inner + "}"
        return "(" + inner + ")"

    # ── Terms ───────────────────────────────────────────────

    def render_term(self, term: Term) -> str:
        return self._render(term, self._PREC_LOW)

    def _render(self, term: Term, prec: int) -> str:
        text, own = self._render_raw(term)
        if own < prec:
            return "(" + text + ")"
        return text

    def _render_raw(self, term: Term) -> tuple[str, int]:
        if isinstance(term, Qualid):
            return term.name, self._PREC_ATOM
        if isinstance(term, Num):
            if term.value < 0:
                return "(" + str(term.value) + ")", self._PREC_ATOM
            return str(term.value), self._PREC_ATOM
        if isinstance(term, StringLit):
            return '"' + term.value.replace('"', '""') + '"%string', self._PREC_ATOM
        if isinstance(term, Sort):
            return term.name, self._PREC_ATOM
        if isinstance(term, App):
            parts = [self._render(term.func, self._PREC_APP)]
            for a in term.args:
                parts.append(self._render(a, self._PREC_ATOM))
            return " ".join(parts), self._PREC_APP
        if isinstance(term, Arrow):
            left = self._render(term.arg, self._PREC_APP)
            right = self._render(term.result, self._PREC_ARROW)
            return left + " -> " + right, self._PREC_ARROW
        if isinstance(term, Fun):
            text = "fun" + self._render_binders(term.binders) + " => "
            return text + _indent_tail(self.render_term(term.body), self._INDENT), self._PREC_LOW
        if isinstance(term, If):
            cond = self.render_term(term.cond)
            then_text = _indent_tail(self.render_term(term.then_term), self._INDENT)
            else_text = _indent_tail(self.render_term(term.else_term), self._INDENT)
            text = "if " + cond + "\n" + self._INDENT + "then " + then_text
            text += "\n" + self._INDENT + "else " + else_text
            return text, self._PREC_LOW
        if isinstance(term, Match):
            lines = ["match " + self.render_term(term.scrutinee) + " with"]
            for eq in term.equations:
                rhs = _indent_tail(self.render_term(eq.rhs), self._INDENT)
                lines.append("| " + self._render_pattern(eq.pattern) + " => " + rhs)
            lines.append("end")
            return "\n".join(lines), self._PREC_ATOM
        raise TypeError("unhandled term type: " + type(term).__name__)

    def _render_pattern(self, p: Pattern) -> str:
        if isinstance(p, ConPattern):
            return " ".join([p.con] + p.vars)
        if isinstance(p, NumPattern):
            return str(p.value)
        if isinstance(p, WildPattern):
            return "_"
        raise TypeError("unhandled pattern type: " + type(p).__name__)
