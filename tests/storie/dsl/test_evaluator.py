"""
Tests for the tree-walking evaluator.
"""

from typing import Optional

import pytest

from storie.dsl import (
    Environment,
    EvaluationContext,
    EvaluationError,
    Evaluator,
    LimitExceededError,
    NativeError,
    NativeFunction,
    OperandTypeError,
    ScriptLimits,
    execute,
    parse,
)


def run(source: str, env: Optional[Environment] = None, limits: Optional[ScriptLimits] = None):
    """Helper that executes source and returns the top-level return value."""
    env = env if env is not None else Environment()
    context = EvaluationContext(environment=env, limits=limits, source=source)
    result = execute(parse(source), context)
    if not result.success:
        raise RuntimeError(result.error)
    return result.value


def run_raising(
    source: str, env: Optional[Environment] = None, limits: Optional[ScriptLimits] = None
):
    """Helper that executes source and lets script errors propagate."""
    env = env if env is not None else Environment()
    evaluator = Evaluator(EvaluationContext(environment=env, limits=limits))
    return evaluator.execute(parse(source))


def native(name: str, fn) -> NativeFunction:
    return NativeFunction(name=name, fn=fn)


class TestArithmetic:
    """Tests for arithmetic operators."""

    def test_addition_yields_float(self):
        value = run("return 3 + 4")
        assert value == 7.0
        assert isinstance(value, float)

    def test_int_literal_is_not_coerced(self):
        value = run("return 5")
        assert value == 5
        assert isinstance(value, int)

    def test_division_is_true_division(self):
        assert run("return 7 / 2") == 3.5

    def test_modulo(self):
        assert run("return 7 % 3") == 1.0

    def test_modulo_sign_follows_dividend(self):
        assert run("return -7 % 3") == -1.0

    def test_unary_minus_yields_float(self):
        value = run("return -5")
        assert value == -5.0
        assert isinstance(value, float)

    def test_precedence(self):
        assert run("return 2 + 3 * 4") == 14.0
        assert run("return (2 + 3) * 4") == 20.0

    def test_mixed_int_and_float(self):
        assert run("return 1 + 0.5") == 1.5

    def test_division_by_zero(self):
        with pytest.raises(EvaluationError, match="Division by zero"):
            run_raising("return 1 / 0")

    def test_modulo_by_zero(self):
        with pytest.raises(EvaluationError, match="Modulo by zero"):
            run_raising("return 1 % 0")

    def test_string_operand_is_rejected(self):
        with pytest.raises(OperandTypeError) as exc_info:
            run_raising('return "a" + 1')
        assert exc_info.value.operator == "+"
        assert exc_info.value.actual == "string"

    def test_bool_operand_is_rejected(self):
        with pytest.raises(OperandTypeError, match="got bool"):
            run_raising("return true * 2")

    def test_nil_operand_is_rejected(self):
        env = Environment()
        env.define("nothing", None)
        with pytest.raises(OperandTypeError, match="got nil"):
            run_raising("return nothing - 1", env)

    def test_unary_minus_on_string_is_rejected(self):
        with pytest.raises(OperandTypeError, match="'-'"):
            run_raising('return -"a"')


class TestComparisonAndLogic:
    """Tests for comparison and logical operators."""

    def test_comparisons_return_bools(self):
        assert run("return 1 < 2") is True
        assert run("return 2 <= 1") is False
        assert run("return 3 > 2") is True
        assert run("return 3 >= 4") is False

    def test_equality_compares_as_numbers(self):
        assert run("return 2 == 2.0") is True
        assert run("return 1 != 1") is False

    def test_string_comparison_is_rejected(self):
        with pytest.raises(OperandTypeError):
            run_raising('return "a" == "a"')

    def test_and_or_return_bools(self):
        assert run("return 1 and 2") is True
        assert run('return 0 or ""') is False

    def test_and_short_circuits(self):
        assert run("return false and missing") is False

    def test_or_short_circuits(self):
        assert run("return true or missing()") is True

    def test_not(self):
        assert run("return not 0") is True
        assert run('return not "a"') is False

    @pytest.mark.parametrize(
        "expr,expected",
        [
            ("0", False),
            ("0.0", False),
            ('""', False),
            ("false", False),
            ("nothing", False),
            ("1", True),
            ("-0.5", True),
            ('"x"', True),
            ("true", True),
            ("f", True),
        ],
    )
    def test_truthiness(self, expr, expected):
        env = Environment()
        env.define("nothing", None)
        env.define("f", native("f", lambda _env, _args: None))
        source = f"if {expr}:\n  return true\nreturn false"
        assert run(source, env) is expected


class TestVariables:
    """Tests for declarations, assignment and lookup."""

    def test_var_declaration(self):
        env = Environment()
        run("var a = 1\nlet b = 2.5", env)
        assert env.get("a") == 1
        assert env.get("b") == 2.5

    def test_assignment_updates_binding(self):
        env = Environment()
        run("var a = 1\na = a + 1", env)
        assert env.get("a") == 2.0

    def test_assignment_creates_binding_when_missing(self):
        env = Environment()
        run("b = 5", env)
        assert env.get("b") == 5

    def test_let_can_be_reassigned(self):
        env = Environment()
        run("let a = 1\na = 2", env)
        assert env.get("a") == 2

    def test_undefined_variable(self):
        with pytest.raises(EvaluationError, match="Undefined variable 'missing'") as exc_info:
            run_raising("var a = 1\nvar b = missing")
        assert exc_info.value.line == 2
        assert exc_info.value.column == 9

    def test_error_keeps_earlier_effects(self):
        env = Environment()
        context = EvaluationContext(environment=env)
        result = execute(parse("var a = 1\nvar b = missing\nvar c = 3"), context)
        assert result.success is False
        assert "a" in env
        assert "c" not in env

    def test_result_error_has_context(self):
        source = "var a = 1\nvar b = missing"
        result = execute(parse(source), EvaluationContext(environment=Environment()))
        assert result.success is False
        assert isinstance(result.exception, EvaluationError)
        assert "(line 2, column 9)" in result.error
        assert "var b = missing" in result.error


class TestControlFlow:
    """Tests for if, for and return."""

    def test_if_elif_else_picks_first_true_branch(self):
        source = (
            "if x < 0:\n"
            "    return \"negative\"\n"
            "elif x == 0:\n"
            "    return \"zero\"\n"
            "elif x > 0:\n"
            "    return \"positive\"\n"
            "else:\n"
            "    return \"unreachable\"\n"
        )
        for x, expected in ((-3, "negative"), (0, "zero"), (2, "positive")):
            env = Environment()
            env.define("x", x)
            assert run(source, env) == expected

    def test_if_without_true_branch_does_nothing(self):
        env = Environment()
        run("var hit = false\nif 0:\n  hit = true", env)
        assert env.get("hit") is False

    def test_for_range_is_half_open(self):
        env = Environment()
        run("var total = 0\nfor i in range(0, 5):\n  total = total + i", env)
        assert env.get("total") == 10.0

    def test_loop_variable_stays_bound(self):
        env = Environment()
        run("for i in range(0, 5):\n  x = i", env)
        assert env.get("i") == 4
        assert isinstance(env.get("i"), int)

    def test_empty_range_does_not_run_body(self):
        env = Environment()
        run("var ran = false\nfor i in range(5, 0):\n  ran = true", env)
        assert env.get("ran") is False

    def test_range_bounds_truncate_floats(self):
        env = Environment()
        run("var n = 0\nfor i in range(0, 2.9):\n  n = n + 1", env)
        assert env.get("n") == 2.0

    def test_range_bounds_must_be_numbers(self):
        with pytest.raises(EvaluationError, match="range\\(\\) bounds must be numbers, got string"):
            run_raising('for i in range(0, "3"):\n  x = i')

    def test_top_level_return_stops_program(self):
        env = Environment()
        assert run("return 1\nx = missing", env) == 1
        assert "x" not in env

    def test_bare_return_is_nil(self):
        assert run("return") is None

    def test_program_without_return_is_nil(self):
        assert run("var a = 1") is None

    def test_return_escapes_loop(self):
        source = "for i in range(0, 100):\n  if i == 3:\n    return i\nreturn -1"
        assert run(source) == 3


class TestUserFunctions:
    """Tests for proc declarations and calls."""

    def test_inline_proc(self):
        value = run("proc add(a:int, b:int): return a + b\nreturn add(3,7)")
        assert value == 10.0
        assert isinstance(value, float)

    def test_proc_with_block_body(self):
        source = "proc area(w: float, h: float):\n  var a = w * h\n  return a\nreturn area(2, 3)"
        assert run(source) == 6.0

    def test_proc_without_return_is_nil(self):
        assert run("proc noop():\n  var a = 1\nreturn noop()") is None

    def test_missing_arguments_are_nil(self):
        assert run("proc second(a: int, b: int): return b\nreturn second(1)") is None

    def test_extra_arguments_are_ignored(self):
        assert run("proc first(a: int): return a\nreturn first(1, 2, 3)") == 1

    def test_parameter_types_are_not_checked(self):
        assert run('proc ident(a: int): return a\nreturn ident("text")') == "text"

    def test_return_inside_loop_inside_proc(self):
        source = (
            "proc firstOver(limit: int):\n"
            "    for i in range(0, 100):\n"
            "        if i > limit:\n"
            "            return i\n"
            "    return -1\n"
            "return firstOver(3)\n"
        )
        assert run(source) == 4

    def test_recursion(self):
        source = (
            "proc fact(n: int):\n"
            "    if n <= 1:\n"
            "        return 1\n"
            "    return n * fact(n - 1)\n"
            "return fact(5)\n"
        )
        assert run(source) == 120.0

    def test_assignment_in_proc_updates_global(self):
        env = Environment()
        source = "var count = 0\nproc bump():\n  count = count + 1\nbump()\nbump()"
        run(source, env)
        assert env.get("count") == 2.0

    def test_new_name_in_proc_stays_local(self):
        env = Environment()
        run("proc setLocal():\n  fresh = 1\nsetLocal()", env)
        assert "fresh" not in env

    def test_var_in_proc_shadows_global(self):
        env = Environment()
        source = "var x = 1\nproc f():\n  var x = 2\n  return x\nvar y = f()"
        run(source, env)
        assert env.get("x") == 1
        assert env.get("y") == 2

    def test_callee_sees_caller_locals(self):
        source = (
            "proc readLevel():\n"
            "    return level\n"
            "proc withLevel():\n"
            "    var level = 5\n"
            "    return readLevel()\n"
            "return withLevel()\n"
        )
        assert run(source) == 5

    def test_callee_does_not_see_locals_of_finished_calls(self):
        source = (
            "proc readLevel():\n"
            "    return level\n"
            "proc setLevel():\n"
            "    var level = 5\n"
            "setLevel()\n"
            "return readLevel()\n"
        )
        with pytest.raises(EvaluationError, match="Undefined variable 'level'"):
            run_raising(source)

    def test_functions_are_values(self):
        assert run("proc f(): return 1\nvar g = f\nreturn g()") == 1

    def test_undefined_function(self):
        with pytest.raises(EvaluationError, match="Undefined function 'nope'") as exc_info:
            run_raising("nope()")
        assert exc_info.value.line == 1

    def test_calling_non_function(self):
        with pytest.raises(EvaluationError, match="'x' is not callable \\(got int\\)"):
            run_raising("var x = 1\nx()")

    def test_call_depth_limit(self):
        limits = ScriptLimits(max_call_depth=10)
        with pytest.raises(LimitExceededError) as exc_info:
            run_raising("proc spin(): return spin()\nspin()", limits=limits)
        assert exc_info.value.limit_name == "max_call_depth"
        assert exc_info.value.actual == 11

    def test_runaway_recursion_hits_default_limit(self):
        context = EvaluationContext(environment=Environment())
        result = execute(parse("proc spin(): return spin()\nspin()"), context)
        assert result.success is False
        assert isinstance(result.exception, LimitExceededError)

    def test_recursion_of_sixty_calls_fits_defaults(self):
        source = (
            "proc down(n: int):\n"
            "    if n <= 0:\n"
            "        return 0\n"
            "    return down(n - 1)\n"
            "return down(60)"
        )
        assert run(source) == 0

    def test_interpreter_stack_exhaustion_is_a_limit_error(self):
        limits = ScriptLimits(max_call_depth=100000)
        context = EvaluationContext(environment=Environment(), limits=limits)
        result = execute(parse("proc spin(): return spin()\nspin()"), context)

        assert result.success is False
        assert isinstance(result.exception, LimitExceededError)
        assert result.exception.limit_name == "call_stack"
        assert "spin()" in result.error

        evaluator = Evaluator(context)
        assert evaluator.execute(parse("proc one(): return 1\nreturn one()")) == 1

    def test_call_depth_resets_after_error(self):
        env = Environment()
        limits = ScriptLimits(max_call_depth=3)
        evaluator = Evaluator(EvaluationContext(environment=env, limits=limits))
        evaluator.execute(parse("proc spin(): return spin()"))
        with pytest.raises(LimitExceededError):
            evaluator.execute(parse("spin()"))
        assert evaluator.execute(parse("proc one(): return 1\nreturn one()")) == 1

    def test_call_user_function_directly(self):
        env = Environment()
        run("proc add(a: int, b: int): return a + b", env)
        evaluator = Evaluator(EvaluationContext(environment=env))
        assert evaluator.call_user_function(env.get("add"), [1, 2], env) == 3.0


class TestNativeCalls:
    """Tests for calling host functions."""

    def test_calls_native_with_evaluated_arguments(self):
        calls = []
        env = Environment()
        env.define("record", native("record", lambda _env, args: calls.append(args)))
        run('record(1 + 1, "a", true)', env)
        assert calls == [[2.0, "a", True]]

    def test_native_return_value(self):
        env = Environment()
        env.define("double", native("double", lambda _env, args: args[0] * 2))
        assert run("return double(4)", env) == 8

    def test_native_receives_caller_environment(self):
        env = Environment()
        env.define("peek", native("peek", lambda caller, _args: caller.get("secret")))
        source = "proc inner():\n  var secret = 42\n  return peek()\nreturn inner()"
        assert run(source, env) == 42

    def test_native_error_gets_call_site(self):
        def fail(_env, _args):
            raise NativeError("fail", "boom")

        env = Environment()
        env.define("fail", native("fail", fail))
        source = "var a = 1\nfail()"
        result = execute(parse(source), EvaluationContext(environment=env, source=source))
        assert result.success is False
        assert result.exception.line == 2
        assert result.exception.column == 1
        assert result.error.startswith("fail: boom (line 2, column 1)")
        assert result.exception.source == source

    def test_native_unsupported_return_value(self):
        env = Environment()
        env.define("bad", native("bad", lambda _env, _args: [1, 2]))
        with pytest.raises(NativeError, match="returned unsupported value of type list"):
            run_raising("bad()", env)

    def test_native_host_bug_propagates(self):
        def broken(_env, _args):
            raise ValueError("host bug")

        env = Environment()
        env.define("broken", native("broken", broken))
        with pytest.raises(ValueError, match="host bug"):
            execute(parse("broken()"), EvaluationContext(environment=env))
