"""
Resource limits for script parsing and evaluation.

These limits keep a malformed or runaway script from exhausting the
Python stack of the host process.

The parser and the evaluator both recurse over the tree, so every shape
of nesting is bounded before a program runs: parenthesis/unary nesting
(max_expression_depth), the depth of the expression tree including long
left-associative operator chains (max_ast_depth), and block nesting
(max_block_depth). With the defaults a single statement costs at most a
few hundred interpreter frames.

User-function calls are bounded by max_call_depth. A call costs about
five frames plus whatever its body nests, so 100 nested calls of an
ordinary body fit CPython's default recursion limit of 1000. A body deep
enough to exhaust the interpreter stack before that still fails with
LimitExceededError (limit name ``call_stack``) rather than RecursionError.
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from .errors import LimitExceededError


@dataclass(frozen=True)
class ScriptLimits:
    """Script limits configuration."""

    # Maximum source length in characters
    max_source_length: int = 65536

    # Maximum expression nesting depth
    max_expression_depth: int = 64

    # Maximum depth of an expression tree
    max_ast_depth: int = 100

    # Maximum nesting of indented blocks
    max_block_depth: int = 32

    # Maximum call arguments
    max_function_args: int = 32

    # Maximum nested user-function calls
    max_call_depth: int = 100

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScriptLimits":
        """Builds limits from a mapping with snake_case or camelCase keys."""
        values = {}
        for f in fields(cls):
            camel = _to_camel(f.name)
            if f.name in data:
                values[f.name] = int(data[f.name])
            elif camel in data:
                values[f.name] = int(data[camel])

        known = {f.name for f in fields(cls)} | {_to_camel(f.name) for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown limit fields: {', '.join(unknown)}")

        return cls(**values)


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


# Default script limits.
DEFAULT_SCRIPT_LIMITS = ScriptLimits()


def check_source_length(source: str, limits: Optional[ScriptLimits] = None) -> None:
    """Validates that source length is within limits."""
    limits = limits or DEFAULT_SCRIPT_LIMITS
    if len(source) > limits.max_source_length:
        raise LimitExceededError(
            "max_source_length", limits.max_source_length, len(source)
        )


def check_expression_depth(
    depth: int,
    limits: Optional[ScriptLimits] = None,
    line: Optional[int] = None,
    column: Optional[int] = None,
) -> None:
    """Validates expression nesting depth during parsing."""
    limits = limits or DEFAULT_SCRIPT_LIMITS
    if depth > limits.max_expression_depth:
        raise LimitExceededError(
            "max_expression_depth", limits.max_expression_depth, depth, line, column
        )


def check_ast_depth(
    depth: int,
    limits: Optional[ScriptLimits] = None,
    line: Optional[int] = None,
    column: Optional[int] = None,
) -> None:
    """Validates expression tree depth during parsing."""
    limits = limits or DEFAULT_SCRIPT_LIMITS
    if depth > limits.max_ast_depth:
        raise LimitExceededError("max_ast_depth", limits.max_ast_depth, depth, line, column)


def check_block_depth(
    depth: int,
    limits: Optional[ScriptLimits] = None,
    line: Optional[int] = None,
    column: Optional[int] = None,
) -> None:
    """Validates block nesting during parsing."""
    limits = limits or DEFAULT_SCRIPT_LIMITS
    if depth > limits.max_block_depth:
        raise LimitExceededError(
            "max_block_depth", limits.max_block_depth, depth, line, column
        )


def check_function_arg_count(
    count: int,
    limits: Optional[ScriptLimits] = None,
    line: Optional[int] = None,
    column: Optional[int] = None,
) -> None:
    """Validates function argument count."""
    limits = limits or DEFAULT_SCRIPT_LIMITS
    if count > limits.max_function_args:
        raise LimitExceededError(
            "max_function_args", limits.max_function_args, count, line, column
        )


def check_call_depth(
    depth: int,
    limits: Optional[ScriptLimits] = None,
    line: Optional[int] = None,
    column: Optional[int] = None,
) -> None:
    """Validates user-function call nesting during evaluation."""
    limits = limits or DEFAULT_SCRIPT_LIMITS
    if depth > limits.max_call_depth:
        raise LimitExceededError(
            "max_call_depth", limits.max_call_depth, depth, line, column
        )
