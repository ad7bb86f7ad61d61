"""Tests for the IR tokenizer and parser."""

import pytest

from freecoq.frontend import ParseError, TokenizeError, parse, tokenize
from freecoq.frontend.tokens import TK_CONID, TK_EOF, TK_IDENT, TK_INT, TK_OP, TK_STRING
from freecoq.ir import (
    Alt,
    App,
    Case,
    Con,
    ConDecl,
    ConPat,
    DataDecl,
    DecArgPragma,
    ErrorExpr,
    FuncDecl,
    FuncType,
    If,
    IntLiteral,
    IntPat,
    Lambda,
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


def _decl(source: str, index: int = 0):
    return parse(source).decls[index]


def _rhs(source: str):
    decl = _decl(source)
    assert isinstance(decl, FuncDecl)
    return decl.rhs


def _op(name: str, left, right):
    return app(Var(name), [left, right])


# ── Tokens ──


def test_tokenize_kinds():
    tokens = tokenize('f Cons 12 "hi" ++')
    kinds = [(t.type, t.value) for t in tokens]
    assert kinds == [
        (TK_IDENT, "f"),
        (TK_CONID, "Cons"),
        (TK_INT, "12"),
        (TK_STRING, "hi"),
        (TK_OP, "++"),
        (TK_EOF, ""),
    ]


def test_tokenize_positions():
    tokens = tokenize("f x =\n  x")
    last = tokens[3]
    assert last.value == "x"
    assert (last.line, last.col) == (2, 3)


def test_tokenize_skips_comments():
    tokens = tokenize("-- a comment\nf = 1 -- trailing")
    assert [t.value for t in tokens] == ["f", "=", "1", ""]


def test_tokenize_keywords_are_ops():
    tokens = tokenize("case x of")
    assert tokens[0].type == TK_OP
    assert tokens[2].type == TK_OP


def test_tokenize_unterminated_string():
    with pytest.raises(TokenizeError) as exc:
        tokenize('f = error "abc')
    assert exc.value.msg == "unterminated string literal"
    assert (exc.value.line, exc.value.col) == (1, 11)


def test_tokenize_unexpected_character():
    with pytest.raises(TokenizeError):
        tokenize("f = 1 ¬ 2")


# ── Declarations ──


def test_simple_function():
    assert _decl("f x = x") == FuncDecl("f", [], [VarPat("x")], Var("x"))


def test_module_header():
    module = parse("module Foo where\nf = 1")
    assert module.name == "Foo"
    assert len(module.decls) == 1


def test_module_without_header():
    assert parse("f = 1").name is None


def test_data_decl():
    decl = _decl("data Tree a = Leaf | Node (Tree a) a (Tree a)")
    tree_a = TypeApp(TypeCon("Tree"), TypeVar("a"))
    assert decl == DataDecl(
        "Tree",
        ["a"],
        [ConDecl("Leaf", []), ConDecl("Node", [tree_a, TypeVar("a"), tree_a])],
    )


def test_data_decl_continued_lines():
    decl = _decl("""
data Peano = Zero
           | Succ Peano
""")
    assert isinstance(decl, DataDecl)
    assert [c.name for c in decl.con_decls] == ["Zero", "Succ"]
    assert decl.con_decls[1].fields == [TypeCon("Peano")]


def test_type_synonym():
    decl = _decl("type Pair a = [a]")
    assert decl == TypeSynDecl("Pair", ["a"], TypeApp(TypeCon("List"), TypeVar("a")))


def test_type_sig_several_names():
    decl = _decl("f, g :: Integer -> Integer\nf x = x\ng x = x")
    assert decl == TypeSig(["f", "g"], FuncType(TypeCon("Integer"), TypeCon("Integer")))


def test_type_sig_forall_ignored():
    decl = _decl("f :: forall a. a -> a\nf x = x")
    assert decl == TypeSig(["f"], FuncType(TypeVar("a"), TypeVar("a")))


def test_annotated_function():
    decl = _decl("f @a (x :: a) :: a = x")
    assert decl == FuncDecl("f", ["a"], [VarPat("x", TypeVar("a"))], Var("x"), TypeVar("a"))


def test_operator_definition():
    decl = _decl("(+++) xs ys = xs ++ ys")
    assert isinstance(decl, FuncDecl)
    assert decl.name == "+++"
    assert decl.arg_names == ["xs", "ys"]


def test_declaration_locations():
    module = parse("f = 1\n\ng x = x")
    assert module.decls[0].loc.line == 1
    assert module.decls[1].loc.line == 3
    assert module.decls[1].loc.col == 1


def test_pragmas():
    module = parse("-- pragma decreasing f n\nf n = n")
    assert module.pragmas == [DecArgPragma("f", "n")]


# ── Expressions ──


def test_operator_precedence():
    assert _rhs("f x y = x + y * 2") == _op(
        "+", Var("x"), _op("*", Var("y"), IntLiteral(2))
    )


def test_left_associative_minus():
    assert _rhs("f x = x - 1 - 2") == _op(
        "-", _op("-", Var("x"), IntLiteral(1)), IntLiteral(2)
    )


def test_cons_is_right_associative():
    cons = Con(":")
    assert _rhs("f x = x : x : []") == app(
        cons, [Var("x"), app(cons, [Var("x"), Con("[]")])]
    )


def test_list_literal():
    cons = Con(":")
    assert _rhs("f = [1, 2]") == app(
        cons, [IntLiteral(1), app(cons, [IntLiteral(2), Con("[]")])]
    )


def test_application_binds_tighter():
    assert _rhs("f n = n * g (n - 1)") == _op(
        "*", Var("n"), App(Var("g"), _op("-", Var("n"), IntLiteral(1)))
    )


def test_operator_section():
    assert _rhs("f = (+) 1 2") == _op("+", IntLiteral(1), IntLiteral(2))


def test_lambda_and_if():
    rhs = _rhs("f = \\x -> if x then 1 else 2")
    assert rhs == Lambda([VarPat("x")], If(Var("x"), IntLiteral(1), IntLiteral(2)))


def test_visible_type_application():
    rhs = _rhs("f = g @Integer 1")
    assert rhs == App(TypeAppExpr(Var("g"), TypeCon("Integer")), IntLiteral(1))


def test_error_terms():
    assert _rhs('f = error "boom"') == ErrorExpr("boom")
    assert _rhs("f = undefined") == Undefined()


def test_case_with_layout():
    rhs = _rhs("""
len xs = case xs of
  [] -> 0
  y : ys -> 1 + len ys
""")
    assert rhs == Case(
        Var("xs"),
        [
            Alt(ConPat("[]"), [], IntLiteral(0)),
            Alt(
                ConPat(":"),
                [VarPat("y"), VarPat("ys")],
                _op("+", IntLiteral(1), App(Var("len"), Var("ys"))),
            ),
        ],
    )


def test_case_with_braces():
    rhs = _rhs("f n = case n of { 0 -> 1; _ -> n }")
    assert rhs == Case(
        Var("n"),
        [Alt(IntPat(0), [], IntLiteral(1)), Alt(WildcardPat(), [], Var("n"))],
    )


def test_nested_case_layout():
    module = parse("""
zip2 xs ys = case xs of
  [] -> []
  a : as' -> case ys of
    [] -> []
    b : bs -> a : zip2 as' bs
g = 1
""")
    assert [d.name for d in module.decls] == ["zip2", "g"]
    outer = module.decls[0].rhs
    assert isinstance(outer, Case)
    assert len(outer.alts) == 2
    inner = outer.alts[1].rhs
    assert isinstance(inner, Case)
    assert len(inner.alts) == 2


def test_constructor_pattern_in_parens():
    rhs = _rhs("f t = case t of { (Node l x r) -> x; Leaf -> 0 }")
    assert isinstance(rhs, Case)
    assert rhs.alts[0].var_pats == [VarPat("l"), VarPat("x"), VarPat("r")]


# ── Errors ──


@pytest.mark.parametrize(
    "source,message",
    [
        ("f x = case x of\n  y -> y", "variable patterns are not supported"),
        ("  f = 1", "top-level declaration must start in column 1"),
        ("f = (1", "expected ')', got ''"),
        ("f = x == y == z", "non-associative operators cannot be chained"),
        ("f = )", "expected expression, got ')'"),
        ("data t = A", "expected type constructor, got 't'"),
    ],
)
def test_parse_errors(source: str, message: str):
    with pytest.raises(ParseError) as exc:
        parse(source)
    assert exc.value.msg == message


def test_parse_error_location():
    with pytest.raises(ParseError) as exc:
        parse("f = 1\ng = )")
    assert (exc.value.line, exc.value.col) == (2, 5)
    assert str(exc.value) == "expected expression, got ')' at line 2 col 5"
