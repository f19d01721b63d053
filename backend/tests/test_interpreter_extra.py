"""Functions, closures, tracebacks and session persistence."""

from backend.blazescript.interpreter import Session, run


def value_of(code, session=None):
    res = run("<test>", code, session=session)
    assert res["errors"] is None and res["error"] is None, res
    return res["value"]


def error_of(code, session=None):
    res = run("<test>", code, session=session)
    assert res["error"] is not None, res
    return res["error"]


def test_add_across_session_runs():
    session = Session()
    func = value_of("fun add(a: Int, b: Int) => a + b", session)
    assert func.represent() == "<function add>"
    result = value_of("add(2,3)", session)
    assert result.value == 5
    assert result.type == "Int"


def test_named_function_is_a_constant():
    err = error_of("fun f() => 1\nf = fun () => 2")
    assert err.details == "Cannot reassign constant 'f'"


def test_anonymous_function_value():
    assert value_of("val twice = fun (n: Int) => n * 2\ntwice(21)").value == 42
    assert value_of("(fun (s: String) => s + \"!\")(\"hi\")").represent() == "hi!"


def test_function_type_name():
    assert value_of("fun () => 1.5").type == "Function: Float"
    assert value_of("fun (a: Int) => a").type == "Function: Identifier"


def test_function_typed_parameter():
    code = (
        "fun apply(f: Function: Int, x: Int) => f(x)\n"
        "fun inc(n: Int) => n + 1\n"
        "apply(inc, 41)"
    )
    assert value_of(code).value == 42


def test_too_many_and_too_few_args():
    assert error_of("fun f(a: Int) => a\nf(1, 2)").details == "1 too many args passed into 'f'"
    assert error_of("fun f(a: Int, b: Int) => a\nf()").details == "2 too few args passed into 'f'"


def test_argument_runtime_type_mismatch():
    err = error_of("val g = fun (a: Int) => a\ng(1.5)")
    assert err.details == "Argument 'a' of '<anonymous>' expects Int, got Float"


def test_parameters_are_constants():
    err = error_of("fun f(a: Int) => a = 2\nf(1)")
    assert err.details == "Cannot reassign constant 'a'"


def test_calling_a_number_fails():
    err = error_of("val n = 3\nn(1)")
    assert err.details == "Int value is not callable"


def test_recursion():
    code = "fun fact(n: Int) => if n == 0 then 1 else n * fact(n - 1)\nfact(10)"
    assert value_of(code).value == 3628800


def test_innermost_binding_wins():
    assert value_of("val x = 1\nfun f(x: Int) => x\nf(2)").value == 2


def test_scoping_is_lexical_not_dynamic():
    code = (
        "val x = 1\n"
        "fun f() => x\n"
        "fun g(x: Int) => f()\n"
        "g(99)"
    )
    assert value_of(code).value == 1


def test_closures_capture_defining_scope():
    code = (
        "fun make_adder(n: Int) => fun (m: Int) => n + m\n"
        "val add5 = make_adder(5)\n"
        "val add7 = make_adder(7)\n"
        "add5(10) * 100 + add7(1)"
    )
    assert value_of(code).value == 1508


def test_unbound_name_inside_function():
    err = error_of("fun f() => missing\nf()")
    assert err.details == "'missing' is not defined"


def test_val_reassigned_from_nested_scope():
    err = error_of("val x = 1\nfun f() => x = 2\nf()")
    assert err.details == "Cannot reassign constant 'x'"


def test_var_reassigned_in_nested_scope_is_local():
    session = Session()
    assert value_of("var x = 1\nfun f() => x = 5\nf()", session).value == 5
    assert session.lookup("x").value == 1


def test_runtime_traceback_lists_frames_outermost_first():
    code = (
        "fun inner(n: Int) => n / 0\n"
        "fun outer(n: Int) => inner(n)\n"
        "outer(1)"
    )
    err = error_of(code)
    frames = err.frames()
    assert [f["frame"] for f in frames] == ["<Global>", "outer", "inner"]
    assert [f["line"] for f in frames] == [3, 2, 1]

    text = err.as_string()
    assert text.startswith("Traceback (most recent call last):\n")
    assert "  File <test>, line 3, in <Global>\n" in text
    assert "  File <test>, line 2, in outer\n" in text
    assert "  File <test>, line 1, in inner\n" in text
    assert "Runtime Error: Division by zero" in text


def test_session_persists_between_runs():
    session = Session()
    value_of("var counter = 0", session)
    value_of("counter = counter + 1", session)
    assert value_of("counter", session).value == 1


def test_runs_without_session_are_isolated():
    value_of("val leaked = 1")
    err = error_of("leaked")
    assert err.details == "'leaked' is not defined"


def test_session_keeps_bindings_made_before_an_error():
    session = Session()
    res = run("<test>", "val a = 1\nval b = a / 0", session=session)
    assert res["error"] is not None
    assert session.lookup("a").value == 1
    assert session.lookup("b") is None


def test_parameter_named_like_a_function_is_called_as_passed():
    code = 'fun f(a: Int) => a\nfun g(f: Function: String) => f("x")\ng(fun (s: String) => s)'
    assert value_of(code).value == "x"


def test_nested_function_does_not_replace_outer_one():
    code = 'fun f(a: String) => a\nfun g() => fun f(a: Int) => a\nf("x")'
    assert value_of(code).value == "x"
