"""
Helpers for exposing host functions to scripts.

Native functions receive the caller's environment and the evaluated
positional arguments. The ``expect_*`` helpers pull typed arguments out
of that list; ``native_function`` builds a NativeFunction straight from
an annotated Python callable, converting each argument according to its
annotation.

Conversion rules:
- int parameters accept int or float (floats truncate toward zero).
- float parameters accept int or float.
- str and bool parameters accept only their own type.
- Unannotated parameters receive the raw script value.
- A missing argument or a wrong type raises NativeError.
"""

import inspect
import typing
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import NativeError
from .values import NativeFunction, Value, get_type_name, is_number


def check_arity(args: Sequence[Value], expected: int, function_name: str) -> None:
    """Validates that at least `expected` arguments were passed."""
    if len(args) < expected:
        raise NativeError(
            function_name, f"expects {expected} arguments, got {len(args)}"
        )


def expect_arg(args: Sequence[Value], index: int, function_name: str) -> Value:
    """Returns the argument at `index` or raises if it is missing."""
    if index >= len(args):
        raise NativeError(function_name, f"missing argument at index {index}")
    return args[index]


def expect_int(args: Sequence[Value], index: int, function_name: str) -> int:
    """Returns the argument at `index` as an int."""
    value = expect_arg(args, index, function_name)
    if not is_number(value):
        raise NativeError(
            function_name,
            f"argument {index} must be int, got {get_type_name(value)}",
        )
    return int(value)


def expect_float(args: Sequence[Value], index: int, function_name: str) -> float:
    """Returns the argument at `index` as a float."""
    value = expect_arg(args, index, function_name)
    if not is_number(value):
        raise NativeError(
            function_name,
            f"argument {index} must be float, got {get_type_name(value)}",
        )
    return float(value)


def expect_string(args: Sequence[Value], index: int, function_name: str) -> str:
    """Returns the argument at `index`, which must be a string."""
    value = expect_arg(args, index, function_name)
    if not isinstance(value, str):
        raise NativeError(
            function_name,
            f"argument {index} must be string, got {get_type_name(value)}",
        )
    return value


def expect_bool(args: Sequence[Value], index: int, function_name: str) -> bool:
    """Returns the argument at `index`, which must be a bool."""
    value = expect_arg(args, index, function_name)
    if not isinstance(value, bool):
        raise NativeError(
            function_name,
            f"argument {index} must be bool, got {get_type_name(value)}",
        )
    return value


ArgConverter = Callable[[Sequence[Value], int, str], Any]

CONVERTERS: Dict[Any, ArgConverter] = {
    int: expect_int,
    float: expect_float,
    str: expect_string,
    bool: expect_bool,
}


def native_function(fn: Callable[..., Any], name: Optional[str] = None) -> NativeFunction:
    """
    Wraps an annotated Python callable as a NativeFunction.

    Args:
        fn: The Python callable; positional parameters map to script arguments
        name: Script-visible name (defaults to ``fn.__name__``)

    Returns:
        A NativeFunction that converts arguments and validates the result

    Raises:
        ValueError: If the callable has keyword-only parameters without defaults
    """
    function_name = name or fn.__name__
    signature = inspect.signature(fn)
    hints = typing.get_type_hints(fn)

    params: List[Tuple[Optional[ArgConverter], bool]] = []
    accepts_varargs = False
    for param in signature.parameters.values():
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            accepts_varargs = True
            continue
        if param.kind in (inspect.Parameter.KEYWORD_ONLY, inspect.Parameter.VAR_KEYWORD):
            if param.kind == inspect.Parameter.KEYWORD_ONLY and param.default is param.empty:
                raise ValueError(
                    f"Cannot expose {function_name}: keyword-only parameter "
                    f"'{param.name}' has no default"
                )
            continue
        converter = CONVERTERS.get(hints.get(param.name))
        params.append((converter, param.default is not param.empty))

    required = sum(1 for _, has_default in params if not has_default)

    def call(_env: Any, args: Sequence[Value]) -> Value:
        values: List[Any] = []
        for index, (converter, has_default) in enumerate(params):
            if index >= len(args):
                if has_default:
                    break
                raise NativeError(
                    function_name, f"expects {required} arguments, got {len(args)}"
                )
            values.append(converter(args, index, function_name) if converter else args[index])

        if accepts_varargs:
            values.extend(args[len(params) :])

        return fn(*values)

    return NativeFunction(name=function_name, fn=call)
