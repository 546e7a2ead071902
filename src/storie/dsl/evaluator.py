"""
Tree-walking evaluator for the Storie scripting language.

Executes a Program (or a statement sequence) against an Environment.

Evaluation semantics:
- Arithmetic (`+ - * / %` and unary `-`) coerces operands to float; the
  result is always a float, so `3 + 4` is `7.0`.
- Comparisons coerce to float and return a bool.
- `and` / `or` short-circuit and return a bool.
- A user function runs in a fresh frame whose parent is the *caller's*
  environment, not the environment it was declared in.
- `return` surfaces a ReturnValue through blocks and loops until the
  nearest call frame (or the top of the program) takes it.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, cast

from .ast import (
    AssignNode,
    BinaryOperator,
    BinaryOpNode,
    BooleanLiteralNode,
    CallNode,
    ExprNode,
    ExprStmtNode,
    FloatLiteralNode,
    ForNode,
    IdentifierNode,
    IfNode,
    IntLiteralNode,
    ProcNode,
    Program,
    ReturnNode,
    StmtNode,
    StringLiteralNode,
    UnaryOpNode,
    VarDeclNode,
)
from .environment import Environment
from .errors import EvaluationError, LimitExceededError, OperandTypeError, ScriptError
from .limits import DEFAULT_SCRIPT_LIMITS, ScriptLimits, check_call_depth
from .values import (
    NativeFunction,
    UserFunction,
    Value,
    get_type_name,
    is_function,
    is_number,
    is_truthy,
    normalize_value,
)


@dataclass
class EvaluationContext:
    """Evaluation context with the environment to execute against."""

    environment: Environment
    """Frame that top-level statements read and write."""

    limits: Optional[ScriptLimits] = None
    """Script limits."""

    source: Optional[str] = None
    """Source text for error reporting."""


@dataclass
class EvaluationResult:
    """Result of executing a program at the host boundary."""

    value: Value
    """Value of a top-level `return`, or None."""

    success: bool
    """Whether execution completed without error."""

    error: Optional[str] = None
    """Formatted error message if execution failed."""

    exception: Optional[ScriptError] = None
    """The error that aborted execution, if any."""


@dataclass(frozen=True)
class ReturnValue:
    """Signals that a `return` statement executed."""

    value: Value


class Evaluator:
    """Executes statements and evaluates expressions."""

    def __init__(self, context: EvaluationContext):
        self._context = context
        self._limits = context.limits or DEFAULT_SCRIPT_LIMITS
        self._source = context.source
        self._call_depth = 0

    # ============================================================
    # Programs and Blocks
    # ============================================================

    def execute(self, program: Program) -> Value:
        """Executes a program; returns the value of a top-level `return`."""
        saved_source = self._source
        if program.source is not None:
            self._source = program.source
        try:
            result = self.execute_block(program.statements, self._context.environment)
        finally:
            self._source = saved_source
        return result.value if result is not None else None

    def execute_block(
        self, statements: Sequence[StmtNode], env: Environment
    ) -> Optional[ReturnValue]:
        """Executes statements in order, stopping at the first `return`."""
        for stmt in statements:
            result = self.execute_statement(stmt, env)
            if result is not None:
                return result
        return None

    # ============================================================
    # Statements
    # ============================================================

    def execute_statement(self, stmt: StmtNode, env: Environment) -> Optional[ReturnValue]:
        """Executes a single statement."""
        stmt_type = stmt.type

        if stmt_type == "ExprStmt":
            self.evaluate(cast(ExprStmtNode, stmt).expr, env)
            return None

        if stmt_type == "VarDecl":
            node = cast(VarDeclNode, stmt)
            env.define(node.name, self.evaluate(node.value, env))
            return None

        if stmt_type == "Assign":
            node = cast(AssignNode, stmt)
            env.set(node.target, self.evaluate(node.value, env))
            return None

        if stmt_type == "If":
            return self._execute_if(cast(IfNode, stmt), env)

        if stmt_type == "For":
            return self._execute_for(cast(ForNode, stmt), env)

        if stmt_type == "Proc":
            node = cast(ProcNode, stmt)
            env.define(
                node.name,
                UserFunction(
                    name=node.name,
                    params=tuple(p.name for p in node.params),
                    body=node.body,
                    source=self._source,
                ),
            )
            return None

        if stmt_type == "Return":
            node = cast(ReturnNode, stmt)
            value = None if node.value is None else self.evaluate(node.value, env)
            return ReturnValue(value)

        raise EvaluationError(
            f"Unknown statement type: {stmt_type}", stmt.line, stmt.column, self._source
        )

    def _execute_if(self, node: IfNode, env: Environment) -> Optional[ReturnValue]:
        if is_truthy(self.evaluate(node.branch.condition, env)):
            return self.execute_block(node.branch.body, env)

        for branch in node.elif_branches:
            if is_truthy(self.evaluate(branch.condition, env)):
                return self.execute_block(branch.body, env)

        if node.else_body is not None:
            return self.execute_block(node.else_body, env)
        return None

    def _execute_for(self, node: ForNode, env: Environment) -> Optional[ReturnValue]:
        start = self._to_int(self.evaluate(node.start, env), node.start)
        end = self._to_int(self.evaluate(node.end, env), node.end)

        for i in range(start, end):
            env.define(node.variable, i)
            result = self.execute_block(node.body, env)
            if result is not None:
                return result

        return None

    def _to_int(self, value: Value, node: ExprNode) -> int:
        if not is_number(value):
            raise EvaluationError(
                f"range() bounds must be numbers, got {get_type_name(value)}",
                node.line,
                node.column,
                self._source,
            )
        return int(value)

    # ============================================================
    # Expressions
    # ============================================================

    def evaluate(self, node: ExprNode, env: Environment) -> Value:
        """Evaluates an expression node and returns the value."""
        node_type = node.type

        if node_type == "IntLiteral":
            return cast(IntLiteralNode, node).value

        if node_type == "FloatLiteral":
            return cast(FloatLiteralNode, node).value

        if node_type == "StringLiteral":
            return cast(StringLiteralNode, node).value

        if node_type == "BooleanLiteral":
            return cast(BooleanLiteralNode, node).value

        if node_type == "Identifier":
            n = cast(IdentifierNode, node)
            return self._evaluate_identifier(n, env)

        if node_type == "UnaryOp":
            return self._evaluate_unary_op(cast(UnaryOpNode, node), env)

        if node_type == "BinaryOp":
            return self._evaluate_binary_op(cast(BinaryOpNode, node), env)

        if node_type == "Call":
            return self._evaluate_call(cast(CallNode, node), env)

        raise EvaluationError(
            f"Unknown expression type: {node_type}", node.line, node.column, self._source
        )

    def _evaluate_identifier(self, node: IdentifierNode, env: Environment) -> Value:
        scope = env.resolve(node.name)
        if scope is None:
            raise EvaluationError(
                f"Undefined variable '{node.name}'", node.line, node.column, self._source
            )
        return scope.get(node.name)

    def _evaluate_unary_op(self, node: UnaryOpNode, env: Environment) -> Value:
        value = self.evaluate(node.operand, env)

        if node.operator == "not":
            return not is_truthy(value)

        return -self._to_float(value, "-", node)

    def _evaluate_binary_op(self, node: BinaryOpNode, env: Environment) -> Value:
        operator: BinaryOperator = node.operator

        # Short-circuit evaluation for logical operators
        if operator == "and":
            if not is_truthy(self.evaluate(node.left, env)):
                return False
            return is_truthy(self.evaluate(node.right, env))

        if operator == "or":
            if is_truthy(self.evaluate(node.left, env)):
                return True
            return is_truthy(self.evaluate(node.right, env))

        left = self._to_float(self.evaluate(node.left, env), operator, node.left)
        right = self._to_float(self.evaluate(node.right, env), operator, node.right)

        if operator == "+":
            return left + right
        if operator == "-":
            return left - right
        if operator == "*":
            return left * right
        if operator == "/":
            if right == 0:
                raise EvaluationError("Division by zero", node.line, node.column, self._source)
            return left / right
        if operator == "%":
            if right == 0:
                raise EvaluationError("Modulo by zero", node.line, node.column, self._source)
            # Sign follows the dividend
            return math.fmod(left, right)

        if operator == "==":
            return left == right
        if operator == "!=":
            return left != right
        if operator == "<":
            return left < right
        if operator == "<=":
            return left <= right
        if operator == ">":
            return left > right
        if operator == ">=":
            return left >= right

        raise EvaluationError(
            f"Unknown binary operator: {operator}", node.line, node.column, self._source
        )

    def _to_float(self, value: Value, operator: str, node: ExprNode) -> float:
        if not is_number(value):
            raise OperandTypeError(
                operator, get_type_name(value), node.line, node.column, self._source
            )
        return float(value)

    # ============================================================
    # Calls
    # ============================================================

    def _evaluate_call(self, node: CallNode, env: Environment) -> Value:
        scope = env.resolve(node.name)
        if scope is None:
            raise EvaluationError(
                f"Undefined function '{node.name}'", node.line, node.column, self._source
            )

        callee = scope.get(node.name)
        if not is_function(callee):
            raise EvaluationError(
                f"'{node.name}' is not callable (got {get_type_name(callee)})",
                node.line,
                node.column,
                self._source,
            )

        args = [self.evaluate(arg, env) for arg in node.args]

        if isinstance(callee, NativeFunction):
            return self._call_native(callee, args, env, node)

        return self.call_user_function(cast(UserFunction, callee), args, env, node)

    def _call_native(
        self,
        fn: NativeFunction,
        args: Sequence[Value],
        env: Environment,
        node: CallNode,
    ) -> Value:
        try:
            return normalize_value(fn(env, args), fn.name)
        except ScriptError as error:
            # Natives do not know where they were called from
            if error.line is None:
                error.line = node.line
                error.column = node.column
            raise error.with_source(self._source)

    def call_user_function(
        self,
        fn: UserFunction,
        args: Sequence[Value],
        env: Environment,
        node: Optional[CallNode] = None,
    ) -> Value:
        """
        Calls a user function from the given (caller) environment.

        Parameters bind positionally; missing trailing arguments are nil
        and extra arguments are ignored.

        Raises:
            LimitExceededError: If calls nest deeper than max_call_depth,
                or deeper than the interpreter stack allows
        """
        line = node.line if node is not None else None
        column = node.column if node is not None else None
        try:
            check_call_depth(self._call_depth + 1, self._limits, line, column)
        except LimitExceededError as error:
            raise error.with_source(self._source)

        frame = env.child()
        for index, name in enumerate(fn.params):
            frame.define(name, args[index] if index < len(args) else None)

        saved_source = self._source
        if fn.source is not None:
            self._source = fn.source
        self._call_depth += 1
        try:
            result = self.execute_block(fn.body, frame)
        except RecursionError:
            # The interpreter stack ran out before max_call_depth did
            raise LimitExceededError(
                "call_stack", self._call_depth - 1, self._call_depth, line, column
            ).with_source(saved_source) from None
        finally:
            self._call_depth -= 1
            self._source = saved_source

        return result.value if result is not None else None


def execute(program: Program, context: EvaluationContext) -> EvaluationResult:
    """
    Executes a program against a context and returns the result.

    The first error aborts execution; statements already executed keep
    their effects on the environment.

    Args:
        program: The program to execute
        context: The evaluation context with the target environment

    Returns:
        The evaluation result with value and success status
    """
    try:
        evaluator = Evaluator(context)
        value = evaluator.execute(program)
        return EvaluationResult(value=value, success=True)
    except ScriptError as error:
        error.with_source(program.source or context.source)
        return EvaluationResult(
            value=None,
            success=False,
            error=error.format_with_context(),
            exception=error,
        )
