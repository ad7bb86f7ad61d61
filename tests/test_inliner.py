"""Tests for the arity-tracking inliner."""

import pytest

from freecoq.environment import Environment
from freecoq.errors import InlineError
from freecoq.frontend import parse
from freecoq.ir import App, Case, DataDecl, IntLiteral, Lambda, Var, VarPat, app
from freecoq.middleend.inliner import inline_expr, inline_func_decl


def _decls(source: str):
    return parse(source).func_decls


def _rhs(source: str):
    return parse(source).func_decls[0].rhs


def _plus(left, right):
    return app(Var("+"), [left, right])


ADD = _decls("add a b = a + b")


def test_saturated_call_is_inlined():
    result = inline_expr(Environment(), ADD, _rhs("f = add 1 2"))
    assert result == _plus(IntLiteral(1), IntLiteral(2))


def test_under_saturated_call_is_eta_expanded():
    result = inline_expr(Environment(), ADD, _rhs("f = add 1"))
    assert result == Lambda([VarPat("b@0")], _plus(IntLiteral(1), Var("b@0")))


def test_unapplied_function_becomes_lambda():
    result = inline_expr(Environment(), ADD, Var("add"))
    assert result == Lambda(
        [VarPat("a@0"), VarPat("b@0")], _plus(Var("a@0"), Var("b@0"))
    )


def test_over_saturated_call_keeps_extra_arguments():
    decls = _decls("k x = x")
    result = inline_expr(Environment(), decls, _rhs("f = k g 1"))
    assert result == App(Var("g"), IntLiteral(1))


def test_other_functions_untouched():
    expr = _rhs("f = g 1")
    assert inline_expr(Environment(), ADD, expr) == expr


def test_type_application_of_inlined_function_erased():
    result = inline_expr(Environment(), ADD, _rhs("f = add @Integer 1 2"))
    assert result == _plus(IntLiteral(1), IntLiteral(2))


def test_inline_inside_case():
    result = inline_expr(Environment(), ADD, _rhs("f = case xs of { [] -> add 1 2; y : ys -> y }"))
    assert isinstance(result, Case)
    assert result.alts[0].rhs == _plus(IntLiteral(1), IntLiteral(2))
    assert result.alts[1].rhs == Var("y")


def test_inlined_argument_does_not_capture():
    decls = _decls("twice g x = \\y -> g x y")
    result = inline_expr(Environment(), decls, _rhs("f = twice h y"))
    # the lambda's binder is renamed so the argument y stays free
    assert isinstance(result, Lambda)
    assert result.args[0].name != "y"
    assert result.body == app(Var("h"), [Var("y"), Var(result.args[0].name)])


def test_inline_func_decl():
    decl = _decls("double n = add n n")[0]
    result = inline_func_decl(Environment(), ADD, decl)
    assert result.name == "double"
    assert result.args == decl.args
    assert result.rhs == _plus(Var("n"), Var("n"))


def test_non_function_declarations_rejected():
    with pytest.raises(InlineError):
        inline_expr(Environment(), [DataDecl("T", [], [])], Var("x"))


# ── Shadowing ──


def test_lambda_binder_shadows_inlined_function():
    expr = _rhs("f = (\\g -> g) 1")
    assert inline_expr(Environment(), _decls("g x = x"), expr) == expr


def test_case_binder_shadows_inlined_function():
    expr = _rhs("f = case xs of { [] -> g 1; g : ys -> g 1 }")
    result = inline_expr(Environment(), _decls("g x = x"), expr)
    assert isinstance(result, Case)
    assert result.alts[0].rhs == IntLiteral(1)
    assert result.alts[1].rhs == App(Var("g"), IntLiteral(1))


def test_parameter_shadows_inlined_function():
    decl = _decls("h add = add 1 2")[0]
    assert inline_func_decl(Environment(), ADD, decl).rhs == decl.rhs
