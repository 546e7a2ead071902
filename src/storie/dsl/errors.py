"""
Error types for the Storie scripting language.

All script errors extend ScriptError for consistent handling.
"""

from typing import Optional


class ScriptError(Exception):
    """
    Base error class for all script-related errors.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.source = source

    def format_with_context(self) -> str:
        """
        Returns a formatted error message with line context.
        """
        if self.line is None:
            return self.message

        header = f"{self.message} (line {self.line}"
        if self.column is not None:
            header += f", column {self.column}"
        header += ")"

        if self.source is None:
            return header

        lines = self.source.splitlines()
        if not 1 <= self.line <= len(lines):
            return header

        text = lines[self.line - 1]
        if self.column is None:
            return f"{header}\n  {text}"

        pointer = " " * (self.column - 1) + "^"
        return f"{header}\n  {text}\n  {pointer}"

    def with_source(self, source: Optional[str]) -> "ScriptError":
        """Attaches source text for diagnostics if none is set yet; returns self."""
        if self.source is None:
            self.source = source
        return self


class TokenizerError(ScriptError):
    """
    Error raised during tokenization (lexical analysis).
    """

    pass


class ParseError(ScriptError):
    """
    Error raised during parsing (syntax analysis).
    """

    pass


class EvaluationError(ScriptError):
    """
    Error raised during evaluation (runtime error).
    """

    pass


class OperandTypeError(EvaluationError):
    """
    Error raised when an operator receives operands it cannot handle.
    """

    def __init__(
        self,
        operator: str,
        actual: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source: Optional[str] = None,
    ):
        message = f"Unsupported operand for '{operator}': expected number, got {actual}"
        super().__init__(message, line, column, source)
        self.operator = operator
        self.actual = actual


class NativeError(EvaluationError):
    """
    Error raised when a native (host) function fails.
    """

    def __init__(
        self,
        function_name: str,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source: Optional[str] = None,
    ):
        full_message = f"{function_name}: {message}"
        super().__init__(full_message, line, column, source)
        self.function_name = function_name


class LimitExceededError(ScriptError):
    """
    Error raised when a script exceeds a configured resource limit.
    """

    def __init__(
        self,
        limit_name: str,
        limit: int,
        actual: int,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        message = f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        super().__init__(message, line, column)
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual
