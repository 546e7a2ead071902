"""
Storie scripting language.

This module provides a small indentation-based scripting language for
embedding in a host application: a tokenizer, a parser, a tree-walking
evaluator, and a runtime that stores parsed programs as named events
and runs them against a shared global environment with host-supplied
native functions.
"""

# Core types and utilities
from .ast import (
    AssignNode,
    AstNode,
    AstNodeBase,
    BinaryOperator,
    BinaryOpNode,
    BooleanLiteralNode,
    CallNode,
    ExprNode,
    ExprStmtNode,
    FloatLiteralNode,
    ForNode,
    IdentifierNode,
    IfBranch,
    IfNode,
    IntLiteralNode,
    Param,
    ProcNode,
    Program,
    ReturnNode,
    StmtNode,
    StringLiteralNode,
    UnaryOperator,
    UnaryOpNode,
    VarDeclNode,
    ast_to_string,
    calculate_ast_depth,
    count_ast_nodes,
)
from .config import RuntimeConfig, load_config
from .environment import Environment
from .errors import (
    EvaluationError,
    LimitExceededError,
    NativeError,
    OperandTypeError,
    ParseError,
    ScriptError,
    TokenizerError,
)

# Evaluator
from .evaluator import (
    EvaluationContext,
    EvaluationResult,
    Evaluator,
    ReturnValue,
    execute,
)
from .limits import (
    DEFAULT_SCRIPT_LIMITS,
    ScriptLimits,
    check_ast_depth,
    check_block_depth,
    check_call_depth,
    check_expression_depth,
    check_function_arg_count,
    check_source_length,
)

# Natives
from .natives import (
    check_arity,
    expect_arg,
    expect_bool,
    expect_float,
    expect_int,
    expect_string,
    native_function,
)

# Parser
from .parser import (
    Parser,
    parse,
)

# Runtime
from .runtime import (
    Runtime,
    init_runtime,
)

# Tokenizer
from .tokenizer import (
    Token,
    Tokenizer,
    TokenType,
    tokenize,
)
from .values import (
    Function,
    NativeCallable,
    NativeFunction,
    UserFunction,
    Value,
    format_value,
    get_type_name,
    is_function,
    is_number,
    is_truthy,
    is_value,
    normalize_value,
)

__all__ = [
    # AST types
    "AstNode",
    "AstNodeBase",
    "ExprNode",
    "StmtNode",
    "IntLiteralNode",
    "FloatLiteralNode",
    "StringLiteralNode",
    "BooleanLiteralNode",
    "IdentifierNode",
    "UnaryOpNode",
    "BinaryOpNode",
    "CallNode",
    "ExprStmtNode",
    "VarDeclNode",
    "AssignNode",
    "IfBranch",
    "IfNode",
    "ForNode",
    "Param",
    "ProcNode",
    "ReturnNode",
    "Program",
    "UnaryOperator",
    "BinaryOperator",
    "count_ast_nodes",
    "calculate_ast_depth",
    "ast_to_string",
    # Errors
    "ScriptError",
    "TokenizerError",
    "ParseError",
    "EvaluationError",
    "OperandTypeError",
    "NativeError",
    "LimitExceededError",
    # Limits
    "ScriptLimits",
    "DEFAULT_SCRIPT_LIMITS",
    "check_source_length",
    "check_expression_depth",
    "check_ast_depth",
    "check_block_depth",
    "check_function_arg_count",
    "check_call_depth",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    # Values
    "Value",
    "Function",
    "NativeCallable",
    "NativeFunction",
    "UserFunction",
    "format_value",
    "get_type_name",
    "is_function",
    "is_number",
    "is_truthy",
    "is_value",
    "normalize_value",
    # Environment
    "Environment",
    # Evaluator
    "EvaluationContext",
    "EvaluationResult",
    "Evaluator",
    "ReturnValue",
    "execute",
    # Natives
    "check_arity",
    "expect_arg",
    "expect_int",
    "expect_float",
    "expect_string",
    "expect_bool",
    "native_function",
    # Runtime
    "Runtime",
    "init_runtime",
    # Config
    "RuntimeConfig",
    "load_config",
]
