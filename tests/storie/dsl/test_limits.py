"""
Tests for script limits and error formatting.
"""

import pytest

from storie.dsl import (
    LimitExceededError,
    NativeError,
    OperandTypeError,
    ScriptError,
    ScriptLimits,
    check_ast_depth,
    check_block_depth,
    check_call_depth,
    check_expression_depth,
    check_function_arg_count,
    check_source_length,
)


class TestScriptLimits:
    """Tests for ScriptLimits construction."""

    def test_defaults(self):
        limits = ScriptLimits()
        assert limits.max_source_length == 65536
        assert limits.max_expression_depth == 64
        assert limits.max_ast_depth == 100
        assert limits.max_block_depth == 32
        assert limits.max_function_args == 32
        assert limits.max_call_depth == 100

    def test_from_dict_accepts_both_key_styles(self):
        limits = ScriptLimits.from_dict({"maxSourceLength": 10, "max_call_depth": 3})
        assert limits.max_source_length == 10
        assert limits.max_call_depth == 3
        assert limits.max_function_args == 32

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown limit fields: bogus"):
            ScriptLimits.from_dict({"bogus": 1})

    def test_limits_are_immutable(self):
        limits = ScriptLimits()
        with pytest.raises(AttributeError):
            limits.max_call_depth = 1


class TestChecks:
    """Tests for the limit check functions."""

    def test_source_length(self):
        limits = ScriptLimits(max_source_length=3)
        check_source_length("abc", limits)
        with pytest.raises(LimitExceededError) as exc_info:
            check_source_length("abcd", limits)
        assert exc_info.value.limit == 3
        assert exc_info.value.actual == 4

    def test_expression_depth_carries_position(self):
        with pytest.raises(LimitExceededError) as exc_info:
            check_expression_depth(65, None, 2, 7)
        assert exc_info.value.line == 2
        assert exc_info.value.column == 7

    def test_ast_depth(self):
        limits = ScriptLimits(max_ast_depth=4)
        check_ast_depth(4, limits)
        with pytest.raises(LimitExceededError) as exc_info:
            check_ast_depth(5, limits, 1, 9)
        assert exc_info.value.limit_name == "max_ast_depth"
        assert exc_info.value.column == 9

    def test_block_depth(self):
        check_block_depth(32)
        with pytest.raises(LimitExceededError, match="max_block_depth"):
            check_block_depth(33)

    def test_function_args(self):
        check_function_arg_count(32)
        with pytest.raises(LimitExceededError, match="max_function_args"):
            check_function_arg_count(33)

    def test_call_depth(self):
        check_call_depth(100)
        with pytest.raises(
            LimitExceededError,
            match=r"Limit exceeded: max_call_depth \(limit: 100, actual: 101\)",
        ):
            check_call_depth(101)


class TestErrorFormatting:
    """Tests for ScriptError.format_with_context."""

    def test_message_only(self):
        assert ScriptError("boom").format_with_context() == "boom"

    def test_position_without_source(self):
        assert ScriptError("boom", 3, 5).format_with_context() == "boom (line 3, column 5)"

    def test_position_with_source_points_at_column(self):
        error = ScriptError("boom", 2, 5, "var a = 1\nvar b = )")
        assert error.format_with_context() == (
            "boom (line 2, column 5)\n  var b = )\n      ^"
        )

    def test_line_out_of_range_omits_context(self):
        error = ScriptError("boom", 9, 1, "one line")
        assert error.format_with_context() == "boom (line 9, column 1)"

    def test_with_source_keeps_existing_source(self):
        error = ScriptError("boom", 1, 1, "first")
        error.with_source("second")
        assert error.source == "first"
        assert ScriptError("boom").with_source("new").source == "new"

    def test_operand_error_message(self):
        error = OperandTypeError("*", "string")
        assert error.message == "Unsupported operand for '*': expected number, got string"
        assert isinstance(error, ScriptError)

    def test_native_error_message(self):
        assert str(NativeError("drawText", "bad color")) == "drawText: bad color"
