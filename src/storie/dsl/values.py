"""
Runtime values for the Storie scripting language.

Values use the natural Python representation:

- None is nil
- int, float, bool and str are themselves
- functions are NativeFunction or UserFunction instances

Note that bool is a subclass of int in Python; every numeric check in
this package excludes bool explicitly.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Tuple, Union

from .ast import StmtNode
from .errors import NativeError

if TYPE_CHECKING:
    from .environment import Environment


@dataclass(frozen=True)
class NativeFunction:
    """A host-supplied function callable from scripts."""

    name: str
    fn: "NativeCallable"

    def __call__(self, env: "Environment", args: Sequence["Value"]) -> "Value":
        return self.fn(env, list(args))


@dataclass(frozen=True)
class UserFunction:
    """A function declared in a script with `proc`."""

    name: str
    params: Tuple[str, ...]
    body: Tuple[StmtNode, ...]
    source: Optional[str] = field(default=None, compare=False, repr=False)


Function = Union[NativeFunction, UserFunction]

Value = Union[None, bool, int, float, str, NativeFunction, UserFunction]

# Signature of a native function: receives the caller's environment and
# the evaluated positional arguments.
NativeCallable = Callable[["Environment", Sequence[Value]], Value]


def is_function(value: Any) -> bool:
    """Checks if a value is callable from scripts."""
    return isinstance(value, (NativeFunction, UserFunction))


def is_number(value: Any) -> bool:
    """Checks if a value is an int or float (but not a bool)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_value(value: Any) -> bool:
    """Checks if a Python object is a valid script value."""
    if value is None:
        return True
    if isinstance(value, (bool, int, float, str)):
        return True
    return is_function(value)


def is_truthy(value: Value) -> bool:
    """
    Truthiness used by `if`, `not`, `and` and `or`.

    nil, false, zero and the empty string are false; everything else,
    including every function, is true.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return len(value) > 0
    return True


def get_type_name(value: Any) -> str:
    """Gets the type name of a value for error messages."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if is_function(value):
        return "function"
    return type(value).__name__


def format_value(value: Value) -> str:
    """Renders a value the way scripts see it printed."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if is_function(value):
        return f"<function {value.name}>"
    return str(value)


def normalize_value(value: Any, function_name: str) -> Value:
    """
    Validates a value returned by a native function.

    Raises:
        NativeError: If the value is not a valid script value
    """
    if is_value(value):
        return value
    raise NativeError(
        function_name, f"returned unsupported value of type {get_type_name(value)}"
    )
