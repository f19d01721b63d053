"""Tests for interpreter runtime limits (loops, steps, call depth)."""

from backend.blazescript.interpreter import DEFAULT_SETTINGS, Interpreter, run


def test_defaults():
    it = Interpreter()
    assert it.max_call_depth == DEFAULT_SETTINGS["max_call_depth"]
    assert it.max_loop == DEFAULT_SETTINGS["max_loop"]
    assert it.max_steps == DEFAULT_SETTINGS["max_steps"]


def test_settings_override_defaults():
    it = Interpreter({"max_loop": 7})
    assert it.max_loop == 7
    assert it.max_steps == DEFAULT_SETTINGS["max_steps"]


def test_step_limit():
    res = run("<test>", "1 + 2 + 3 + 4 + 5 + 6", settings={"max_steps": 5})
    assert res["error"] is not None
    assert res["error"].details == "Step limit exceeded"


def test_for_loop_cap():
    res = run("<test>", "for i = 0 to 10 then i", settings={"max_loop": 3})
    assert res["error"].details == "Loop iteration limit exceeded"


def test_loop_cap_allows_exact_count():
    res = run("<test>", "for i = 0 to 3 then i", settings={"max_loop": 3})
    assert res["error"] is None
    assert res["value"].value == 2


def test_infinite_while_is_stopped():
    res = run("<test>", "while 1 then 1", settings={"max_loop": 1000})
    assert res["error"].details == "Loop iteration limit exceeded"


def test_zero_step_for_is_stopped():
    res = run("<test>", "for i = 0 to 1 step 0 then i", settings={"max_loop": 50})
    assert res["error"].details == "Loop iteration limit exceeded"


def test_call_depth_limit():
    code = "fun f(n: Int) => if n == 0 then 0 else f(n - 1)\nf({})"
    assert run("<test>", code.format(2), settings={"max_call_depth": 3})["value"].value == 0
    res = run("<test>", code.format(3), settings={"max_call_depth": 3})
    assert res["error"].details == "Maximum call depth exceeded"


def test_unbounded_recursion_is_reported():
    res = run("<test>", "fun f(n: Int) => f(n + 1)\nf(0)")
    assert res["error"].details == "Maximum call depth exceeded"
    assert [frame["frame"] for frame in res["error"].frames()][:2] == ["<Global>", "f"]


def test_host_recursion_limit_is_converted():
    # a call depth cap far above what the Python stack allows
    res = run("<test>", "fun f(n: Int) => f(n + 1)\nf(0)", settings={"max_call_depth": 1_000_000})
    assert res["error"].details == "Maximum call depth exceeded"


def test_deeply_nested_source_is_a_syntax_error():
    res = run("<test>", "(" * 5000 + "1" + ")" * 5000)
    assert res["error"] is not None
    assert res["error"].details == "Expression is nested too deeply"


def test_counters_reset_per_run():
    settings = {"max_steps": 50}
    for _ in range(5):
        res = run("<test>", "1 + 1", settings=settings)
        assert res["value"].value == 2
