"""IR parser - recursive descent, one method per grammar production.

Grammar (top-level declarations start in column 1):

    Module   = ( 'module' CONID 'where' )? TopDecl*
    TopDecl  = DataDecl | TypeDecl | TypeSig | FuncDecl
    DataDecl = 'data' CONID IDENT* '=' ConDecl ( '|' ConDecl )*
    TypeDecl = 'type' CONID IDENT* '=' Type
    TypeSig  = Name ( ',' Name )* '::' ( 'forall' IDENT+ '.' )? Type
    FuncDecl = Name ( '@' IDENT )* Param* ( '::' Type )? '=' Expr
    Expr     = '\\' Param+ '->' Expr | 'if' Expr 'then' Expr 'else' Expr
             | 'case' Expr 'of' Alts | OpExpr
    Alts     = '{' Alt ( ';' Alt )* '}' | Alt+ (aligned on one column)
    Alt      = Pattern '->' Expr

Case alternatives without braces follow a simple layout rule: every
alternative starts in the column of the first one, and a token on a new line
at or left of that column ends the current expression.
"""

from __future__ import annotations

from ..ir import (
    Alt,
    App,
    Case,
    Con,
    ConDecl,
    ConPat,
    DataDecl,
    Decl,
    ErrorExpr,
    Expr,
    FuncDecl,
    FuncType,
    If,
    IntLiteral,
    IntPat,
    Lambda,
    Loc,
    Module,
    Pattern,
    Type,
    TypeApp,
    TypeAppExpr,
    TypeCon,
    TypeSig,
    TypeSynDecl,
    TypeVar,
    Undefined,
    Var,
    VarPat,
    WildcardPat,
    app,
)
from .tokens import TK_CONID, TK_EOF, TK_IDENT, TK_INT, TK_OP, TK_STRING, Token

# (precedence, associativity) of infix operators; unknown operators are infixl 9
FIXITIES: dict[str, tuple[int, str]] = {
    "||": (2, "right"),
    "&&": (3, "right"),
    "==": (4, "none"),
    "/=": (4, "none"),
    "<": (4, "none"),
    "<=": (4, "none"),
    ">": (4, "none"),
    ">=": (4, "none"),
    ":": (5, "right"),
    "++": (5, "right"),
    "+": (6, "left"),
    "-": (6, "left"),
    "*": (7, "left"),
}

# Tokens that can never continue an expression
EXPR_STOP: set[str] = {
    ")",
    "]",
    "}",
    ",",
    ";",
    "then",
    "else",
    "of",
    "->",
    "=",
    "|",
    "::",
}

LIST_TYPE_NAME: str = "List"


class ParseError(Exception):
    """Parse error with location info."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class Parser:
    """Recursive descent parser for the IR."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        # Column at or left of which a token on a new line ends an expression
        self.layout: list[int] = [1]

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        if self.pos == 0:
            return self.tokens[0]
        return self.tokens[self.pos - 1]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.type == TK_OP and tok.value == value

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def expect(self, value: str) -> Token:
        tok = self.current()
        if tok.type != TK_OP or tok.value != value:
            raise self.error("expected '" + value + "', got '" + tok.value + "'")
        return self.advance()

    def expect_type(self, type_: str, what: str) -> Token:
        tok = self.current()
        if tok.type != type_:
            raise self.error("expected " + what + ", got '" + tok.value + "'")
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    def _loc(self, tok: Token) -> Loc:
        end = self.previous()
        if end.line < tok.line or (end.line == tok.line and end.col < tok.col):
            end = tok
        return Loc(tok.line, tok.col, end.end_line, end.end_col)

    def at_layout_break(self) -> bool:
        """A token on a new line at or left of the layout column."""
        tok = self.current()
        if tok.type == TK_EOF:
            return True
        return tok.line > self.previous().line and tok.col <= self.layout[-1]

    def at_expr_end(self) -> bool:
        tok = self.current()
        if tok.type == TK_EOF:
            return True
        if tok.type == TK_OP and tok.value in EXPR_STOP:
            return True
        return self.at_layout_break()

    # ── Top Level ────────────────────────────────────────────

    def parse_module(self) -> Module:
        name: str | None = None
        if self.at("module"):
            self.advance()
            name = self.expect_type(TK_CONID, "module name").value
            self.expect("where")
        decls: list[Decl] = []
        while not self.at_type(TK_EOF):
            tok = self.current()
            if tok.col != 1:
                raise self.error("top-level declaration must start in column 1")
            decls.append(self.parse_top_decl())
        return Module(name, decls)

    def parse_top_decl(self) -> Decl:
        if self.at("data"):
            return self.parse_data_decl()
        if self.at("type"):
            return self.parse_type_syn_decl()
        if self.at_type(TK_IDENT) or self.at("("):
            return self.parse_func_or_sig()
        raise self.error("expected declaration, got '" + self.current().value + "'")

    def parse_data_decl(self) -> DataDecl:
        start = self.expect("data")
        name = self.expect_type(TK_CONID, "type constructor").value
        type_args = self.parse_type_var_decls()
        self.expect("=")
        con_decls: list[ConDecl] = [self.parse_con_decl()]
        while self.at("|"):
            self.advance()
            con_decls.append(self.parse_con_decl())
        return DataDecl(name, type_args, con_decls, loc=self._loc(start))

    def parse_con_decl(self) -> ConDecl:
        start = self.expect_type(TK_CONID, "constructor")
        fields: list[Type] = []
        while not self.at_layout_break() and self.at_atype_start():
            fields.append(self.parse_atype())
        return ConDecl(start.value, fields, loc=self._loc(start))

    def parse_type_syn_decl(self) -> TypeSynDecl:
        start = self.expect("type")
        name = self.expect_type(TK_CONID, "type constructor").value
        type_args = self.parse_type_var_decls()
        self.expect("=")
        rhs = self.parse_type()
        return TypeSynDecl(name, type_args, rhs, loc=self._loc(start))

    def parse_type_var_decls(self) -> list[str]:
        names: list[str] = []
        while self.at_type(TK_IDENT):
            names.append(self.advance().value)
        return names

    def parse_decl_name(self) -> str:
        """Name = IDENT | '(' OP ')'"""
        if self.at("("):
            self.advance()
            tok = self.expect_type(TK_OP, "operator")
            self.expect(")")
            return tok.value
        return self.expect_type(TK_IDENT, "identifier").value

    def parse_func_or_sig(self) -> Decl:
        start = self.current()
        name = self.parse_decl_name()
        if self.at(","):
            names = [name]
            while self.at(","):
                self.advance()
                names.append(self.parse_decl_name())
            self.expect("::")
            return TypeSig(names, self.parse_sig_type(), loc=self._loc(start))
        type_args: list[str] = []
        while self.at("@"):
            self.advance()
            type_args.append(self.expect_type(TK_IDENT, "type variable").value)
        args: list[VarPat] = []
        while self.at_type(TK_IDENT) or self.at("("):
            args.append(self.parse_param())
        return_type: Type | None = None
        if self.at("::"):
            self.advance()
            typ = self.parse_sig_type()
            if not self.at("="):
                if len(type_args) > 0 or len(args) > 0:
                    raise self.error("expected '=' after return type annotation")
                return TypeSig([name], typ, loc=self._loc(start))
            return_type = typ
        self.expect("=")
        rhs = self.parse_expr()
        return FuncDecl(name, type_args, args, rhs, return_type, loc=self._loc(start))

    def parse_param(self) -> VarPat:
        """Param = IDENT | '(' IDENT '::' Type ')'"""
        start = self.current()
        if self.at("("):
            self.advance()
            name = self.expect_type(TK_IDENT, "parameter").value
            self.expect("::")
            typ = self.parse_type()
            self.expect(")")
            return VarPat(name, typ, loc=self._loc(start))
        name = self.expect_type(TK_IDENT, "parameter").value
        return VarPat(name, None, loc=self._loc(start))

    # ── Types ────────────────────────────────────────────────

    def parse_sig_type(self) -> Type:
        """Type with an optional (ignored) explicit 'forall a b.' prefix."""
        if self.at("forall"):
            self.advance()
            while self.at_type(TK_IDENT):
                self.advance()
            self.expect(".")
        return self.parse_type()

    def parse_type(self) -> Type:
        """Type = BType ( '->' Type )?"""
        left = self.parse_btype()
        if self.at("->"):
            self.advance()
            right = self.parse_type()
            return FuncType(left, right, loc=left.loc)
        return left

    def parse_btype(self) -> Type:
        """BType = AType+"""
        typ = self.parse_atype()
        while not self.at_layout_break() and self.at_atype_start():
            arg = self.parse_atype()
            typ = TypeApp(typ, arg, loc=typ.loc)
        return typ

    def at_atype_start(self) -> bool:
        return self.at_type(TK_CONID) or self.at_type(TK_IDENT) or self.at("(") or self.at("[")

    def parse_atype(self) -> Type:
        start = self.current()
        if self.at_type(TK_CONID):
            self.advance()
            return TypeCon(start.value, loc=self._loc(start))
        if self.at_type(TK_IDENT):
            self.advance()
            return TypeVar(start.value, loc=self._loc(start))
        if self.at("["):
            self.advance()
            elem = self.parse_type()
            self.expect("]")
            return TypeApp(TypeCon(LIST_TYPE_NAME, loc=self._loc(start)), elem, loc=self._loc(start))
        if self.at("("):
            self.advance()
            typ = self.parse_type()
            self.expect(")")
            return typ
        raise self.error("expected type, got '" + start.value + "'")

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        start = self.current()
        if self.at("\\"):
            self.advance()
            args: list[VarPat] = [self.parse_param()]
            while not self.at("->"):
                args.append(self.parse_param())
            self.expect("->")
            body = self.parse_expr()
            return Lambda(args, body, loc=self._loc(start))
        if self.at("if"):
            self.advance()
            cond = self.parse_expr()
            self.expect("then")
            then_expr = self.parse_expr()
            self.expect("else")
            else_expr = self.parse_expr()
            return If(cond, then_expr, else_expr, loc=self._loc(start))
        if self.at("case"):
            return self.parse_case()
        return self.parse_op_expr(0)

    def parse_case(self) -> Case:
        start = self.expect("case")
        scrutinee = self.parse_expr()
        self.expect("of")
        alts: list[Alt] = []
        if self.at("{"):
            self.advance()
            self.layout.append(0)
            alts.append(self.parse_alt())
            while self.at(";"):
                self.advance()
                if self.at("}"):
                    break
                alts.append(self.parse_alt())
            self.layout.pop()
            self.expect("}")
            return Case(scrutinee, alts, loc=self._loc(start))
        alt_col = self.current().col
        if alt_col <= self.layout[-1]:
            raise self.error("case alternatives must be indented")
        self.layout.append(alt_col)
        alts.append(self.parse_alt())
        while (
            not self.at_type(TK_EOF)
            and self.current().col == alt_col
            and self.current().line > self.previous().line
        ):
            alts.append(self.parse_alt())
        self.layout.pop()
        return Case(scrutinee, alts, loc=self._loc(start))

    def parse_alt(self) -> Alt:
        start = self.current()
        pattern, var_pats = self.parse_pattern()
        self.expect("->")
        # The right-hand side of an alternative may continue on lines
        # indented further than the alternative itself. Braces disable layout.
        if self.layout[-1] == 0:
            self.layout.append(0)
        else:
            self.layout.append(max(self.layout[-1], start.col))
        rhs = self.parse_expr()
        self.layout.pop()
        return Alt(pattern, var_pats, rhs, loc=self._loc(start))

    def parse_pattern(self) -> tuple[Pattern, list[VarPat]]:
        """Pattern = CONID Var* | '[' ']' | Var ':' Var | INT | '_' | '(' Pattern ')'"""
        start = self.current()
        if self.at("("):
            self.advance()
            result = self.parse_pattern()
            self.expect(")")
            return result
        if self.at_type(TK_CONID):
            self.advance()
            var_pats: list[VarPat] = []
            while self.at_type(TK_IDENT):
                tok = self.advance()
                var_pats.append(VarPat(tok.value, None, loc=self._loc(tok)))
            return ConPat(start.value, loc=self._loc(start)), var_pats
        if self.at("["):
            self.advance()
            self.expect("]")
            return ConPat("[]", loc=self._loc(start)), []
        if self.at_type(TK_INT):
            self.advance()
            return IntPat(int(start.value), loc=self._loc(start)), []
        if self.at_type(TK_IDENT):
            head = self.advance()
            if self.at(":"):
                op = self.advance()
                tail = self.expect_type(TK_IDENT, "variable")
                return ConPat(":", loc=self._loc(op)), [
                    VarPat(head.value, None, loc=self._loc(head)),
                    VarPat(tail.value, None, loc=self._loc(tail)),
                ]
            if head.value == "_":
                return WildcardPat(loc=self._loc(head)), []
            raise ParseError("variable patterns are not supported", head.line, head.col)
        raise self.error("expected pattern, got '" + start.value + "'")

    def parse_op_expr(self, min_prec: int) -> Expr:
        """Precedence climbing over infix operators."""
        left = self.parse_operand()
        while not self.at_expr_end() and self.at_type(TK_OP) and self.is_infix_op(self.current().value):
            op_tok = self.current()
            prec, assoc = FIXITIES.get(op_tok.value, (9, "left"))
            if prec < min_prec:
                break
            self.advance()
            if assoc == "left" or assoc == "none":
                next_min = prec + 1
            else:
                next_min = prec
            right = self.parse_op_expr(next_min)
            op: Expr
            if op_tok.value == ":":
                op = Con(":", loc=self._loc(op_tok))
            else:
                op = Var(op_tok.value, loc=self._loc(op_tok))
            left = App(App(op, left, loc=left.loc), right, loc=left.loc)
            if assoc == "none" and self.at_type(TK_OP) and FIXITIES.get(self.current().value, (9, ""))[0] == prec:
                raise self.error("non-associative operators cannot be chained")
        return left

    def is_infix_op(self, value: str) -> bool:
        if value in EXPR_STOP or value in ("\\", "@", "(", "[", "{", "`"):
            return False
        if value in ("case", "if", "data", "type", "module", "where", "forall"):
            return False
        return True

    def parse_operand(self) -> Expr:
        if self.at("\\") or self.at("if") or self.at("case"):
            return self.parse_expr()
        return self.parse_fexpr()

    def parse_fexpr(self) -> Expr:
        """FExpr = AExpr ( AExpr | '@' AType )*"""
        expr = self.parse_aexpr()
        while not self.at_expr_end():
            if self.at("@"):
                self.advance()
                typ = self.parse_atype()
                expr = TypeAppExpr(expr, typ, loc=expr.loc)
            elif self.at_aexpr_start():
                arg = self.parse_aexpr()
                expr = App(expr, arg, loc=expr.loc)
            else:
                break
        return expr

    def at_aexpr_start(self) -> bool:
        tok = self.current()
        if tok.type in (TK_IDENT, TK_CONID, TK_INT):
            return True
        return tok.type == TK_OP and tok.value in ("(", "[")

    def parse_aexpr(self) -> Expr:
        start = self.current()
        if self.at_type(TK_IDENT):
            self.advance()
            if start.value == "undefined":
                return Undefined(loc=self._loc(start))
            if start.value == "error":
                msg = self.expect_type(TK_STRING, "error message")
                return ErrorExpr(msg.value, loc=self._loc(start))
            return Var(start.value, loc=self._loc(start))
        if self.at_type(TK_CONID):
            self.advance()
            return Con(start.value, loc=self._loc(start))
        if self.at_type(TK_INT):
            self.advance()
            return IntLiteral(int(start.value), loc=self._loc(start))
        if self.at("["):
            self.advance()
            elems: list[Expr] = []
            if not self.at("]"):
                self.layout.append(0)
                elems.append(self.parse_expr())
                while self.at(","):
                    self.advance()
                    elems.append(self.parse_expr())
                self.layout.pop()
            self.expect("]")
            result: Expr = Con("[]", loc=self._loc(start))
            for e in reversed(elems):
                result = app(Con(":", loc=e.loc), [e, result])
            return result
        if self.at("("):
            self.advance()
            if self.at_type(TK_OP) and self.is_infix_op(self.current().value) and self.peek(1).value == ")":
                op_tok = self.advance()
                self.expect(")")
                if op_tok.value == ":":
                    return Con(":", loc=self._loc(start))
                return Var(op_tok.value, loc=self._loc(start))
            self.layout.append(0)
            expr = self.parse_expr()
            self.layout.pop()
            self.expect(")")
            return expr
        raise self.error("expected expression, got '" + start.value + "'")
