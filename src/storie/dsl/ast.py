"""
Abstract Syntax Tree (AST) node types for the Storie scripting language.

The AST is produced by the parser and consumed by the evaluator.
Nodes are immutable; sequences are stored as tuples.
"""

from abc import ABC
from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple, Union

# ============================================================
# Operator Types
# ============================================================

UnaryOperator = Literal["-", "not"]

BinaryOperator = Literal[
    "*",
    "/",
    "%",
    "+",
    "-",
    "<",
    "<=",
    ">",
    ">=",
    "==",
    "!=",
    "and",
    "or",
]


# ============================================================
# Base
# ============================================================


@dataclass(frozen=True)
class AstNodeBase(ABC):
    """Base class for all AST nodes."""

    line: int
    """Source line (1-based, for error reporting)."""

    column: int
    """Source column (1-based, for error reporting)."""


# ============================================================
# Expression Nodes
# ============================================================


@dataclass(frozen=True)
class IntLiteralNode(AstNodeBase):
    """Integer literal node."""

    value: int

    @property
    def type(self) -> Literal["IntLiteral"]:
        return "IntLiteral"


@dataclass(frozen=True)
class FloatLiteralNode(AstNodeBase):
    """Float literal node."""

    value: float

    @property
    def type(self) -> Literal["FloatLiteral"]:
        return "FloatLiteral"


@dataclass(frozen=True)
class StringLiteralNode(AstNodeBase):
    """String literal node."""

    value: str

    @property
    def type(self) -> Literal["StringLiteral"]:
        return "StringLiteral"


@dataclass(frozen=True)
class BooleanLiteralNode(AstNodeBase):
    """Boolean literal node."""

    value: bool

    @property
    def type(self) -> Literal["BooleanLiteral"]:
        return "BooleanLiteral"


@dataclass(frozen=True)
class IdentifierNode(AstNodeBase):
    """Identifier (variable reference) node."""

    name: str

    @property
    def type(self) -> Literal["Identifier"]:
        return "Identifier"


@dataclass(frozen=True)
class UnaryOpNode(AstNodeBase):
    """Unary operator node."""

    operator: UnaryOperator
    operand: "ExprNode"

    @property
    def type(self) -> Literal["UnaryOp"]:
        return "UnaryOp"


@dataclass(frozen=True)
class BinaryOpNode(AstNodeBase):
    """Binary operator node."""

    operator: BinaryOperator
    left: "ExprNode"
    right: "ExprNode"

    @property
    def type(self) -> Literal["BinaryOp"]:
        return "BinaryOp"


@dataclass(frozen=True)
class CallNode(AstNodeBase):
    """Function call node."""

    name: str
    args: Tuple["ExprNode", ...]

    @property
    def type(self) -> Literal["Call"]:
        return "Call"


# Union type for all expression nodes
ExprNode = Union[
    IntLiteralNode,
    FloatLiteralNode,
    StringLiteralNode,
    BooleanLiteralNode,
    IdentifierNode,
    UnaryOpNode,
    BinaryOpNode,
    CallNode,
]


# ============================================================
# Statement Nodes
# ============================================================


@dataclass(frozen=True)
class ExprStmtNode(AstNodeBase):
    """Expression evaluated for its side effects."""

    expr: ExprNode

    @property
    def type(self) -> Literal["ExprStmt"]:
        return "ExprStmt"


@dataclass(frozen=True)
class VarDeclNode(AstNodeBase):
    """`var` or `let` declaration."""

    name: str
    value: ExprNode
    is_let: bool = False

    @property
    def type(self) -> Literal["VarDecl"]:
        return "VarDecl"


@dataclass(frozen=True)
class AssignNode(AstNodeBase):
    """Assignment to an existing or new name."""

    target: str
    value: ExprNode

    @property
    def type(self) -> Literal["Assign"]:
        return "Assign"


@dataclass(frozen=True)
class IfBranch:
    """One condition/body pair of an if chain."""

    condition: ExprNode
    body: Tuple["StmtNode", ...]


@dataclass(frozen=True)
class IfNode(AstNodeBase):
    """if / elif / else chain."""

    branch: IfBranch
    elif_branches: Tuple[IfBranch, ...] = ()
    else_body: Optional[Tuple["StmtNode", ...]] = None

    @property
    def type(self) -> Literal["If"]:
        return "If"


@dataclass(frozen=True)
class ForNode(AstNodeBase):
    """for <variable> in range(<start>, <end>) loop."""

    variable: str
    start: ExprNode
    end: ExprNode
    body: Tuple["StmtNode", ...]

    @property
    def type(self) -> Literal["For"]:
        return "For"


@dataclass(frozen=True)
class Param:
    """Procedure parameter. The type name is never checked."""

    name: str
    type_name: str


@dataclass(frozen=True)
class ProcNode(AstNodeBase):
    """Procedure declaration."""

    name: str
    params: Tuple[Param, ...]
    body: Tuple["StmtNode", ...]

    @property
    def type(self) -> Literal["Proc"]:
        return "Proc"


@dataclass(frozen=True)
class ReturnNode(AstNodeBase):
    """return statement; a bare `return` has no value."""

    value: Optional[ExprNode] = None

    @property
    def type(self) -> Literal["Return"]:
        return "Return"


# Union type for all statement nodes
StmtNode = Union[
    ExprStmtNode,
    VarDeclNode,
    AssignNode,
    IfNode,
    ForNode,
    ProcNode,
    ReturnNode,
]

AstNode = Union[ExprNode, StmtNode]


@dataclass(frozen=True)
class Program:
    """A parsed script: an ordered sequence of top-level statements."""

    statements: Tuple[StmtNode, ...]

    source: Optional[str] = field(default=None, compare=False, repr=False)
    """Source text the program was parsed from (for diagnostics)."""

    def __len__(self) -> int:
        return len(self.statements)

    def __iter__(self):
        return iter(self.statements)


# ============================================================
# AST Utilities
# ============================================================

_LEAF_TYPES = ("IntLiteral", "FloatLiteral", "StringLiteral", "BooleanLiteral", "Identifier")


def _children(node: AstNode) -> Tuple[AstNode, ...]:
    """Returns the direct child nodes of an AST node, in source order."""
    node_type = node.type

    if node_type in _LEAF_TYPES:
        return ()

    if node_type == "UnaryOp":
        return (node.operand,)

    if node_type == "BinaryOp":
        return (node.left, node.right)

    if node_type == "Call":
        return tuple(node.args)

    if node_type == "ExprStmt":
        return (node.expr,)

    if node_type in ("VarDecl", "Assign"):
        return (node.value,)

    if node_type == "If":
        children = [node.branch.condition, *node.branch.body]
        for branch in node.elif_branches:
            children.append(branch.condition)
            children.extend(branch.body)
        if node.else_body is not None:
            children.extend(node.else_body)
        return tuple(children)

    if node_type == "For":
        return (node.start, node.end, *node.body)

    if node_type == "Proc":
        return tuple(node.body)

    if node_type == "Return":
        return () if node.value is None else (node.value,)

    return ()


def count_ast_nodes(node: Union[AstNode, Program]) -> int:
    """Counts the total number of nodes in an AST or program."""
    if isinstance(node, Program):
        return sum(count_ast_nodes(stmt) for stmt in node.statements)

    count = 1
    for child in _children(node):
        count += count_ast_nodes(child)
    return count


def calculate_ast_depth(node: AstNode) -> int:
    """Calculates the maximum depth of an AST."""
    max_child_depth = 0
    for child in _children(node):
        max_child_depth = max(max_child_depth, calculate_ast_depth(child))
    return 1 + max_child_depth


def _block_to_string(label: str, body: Tuple[StmtNode, ...], indent: int) -> str:
    prefix = "  " * indent
    lines = [f"{prefix}{label}:"]
    lines.extend(ast_to_string(stmt, indent + 1) for stmt in body)
    return "\n".join(lines)


def ast_to_string(node: Union[AstNode, Program], indent: int = 0) -> str:
    """Returns a human-readable representation of an AST node for debugging."""
    prefix = "  " * indent

    if isinstance(node, Program):
        return "\n".join(ast_to_string(stmt, indent) for stmt in node.statements)

    node_type = node.type

    if node_type == "IntLiteral":
        return f"{prefix}Int: {node.value}"

    if node_type == "FloatLiteral":
        return f"{prefix}Float: {node.value}"

    if node_type == "StringLiteral":
        return f'{prefix}String: "{node.value}"'

    if node_type == "BooleanLiteral":
        return f"{prefix}Boolean: {node.value}"

    if node_type == "Identifier":
        return f"{prefix}Identifier: {node.name}"

    if node_type == "UnaryOp":
        return f"{prefix}UnaryOp: {node.operator}\n{ast_to_string(node.operand, indent + 1)}"

    if node_type == "BinaryOp":
        return (
            f"{prefix}BinaryOp: {node.operator}\n"
            f"{ast_to_string(node.left, indent + 1)}\n"
            f"{ast_to_string(node.right, indent + 1)}"
        )

    if node_type == "Call":
        if not node.args:
            return f"{prefix}Call: {node.name}"
        args_str = "\n".join(ast_to_string(a, indent + 1) for a in node.args)
        return f"{prefix}Call: {node.name}\n{args_str}"

    if node_type == "ExprStmt":
        return f"{prefix}ExprStmt:\n{ast_to_string(node.expr, indent + 1)}"

    if node_type == "VarDecl":
        keyword = "Let" if node.is_let else "Var"
        return f"{prefix}{keyword}: {node.name}\n{ast_to_string(node.value, indent + 1)}"

    if node_type == "Assign":
        return f"{prefix}Assign: {node.target}\n{ast_to_string(node.value, indent + 1)}"

    if node_type == "If":
        parts = [
            f"{prefix}If:",
            f"{prefix}  condition:\n{ast_to_string(node.branch.condition, indent + 2)}",
            _block_to_string("then", node.branch.body, indent + 1),
        ]
        for branch in node.elif_branches:
            parts.append(
                f"{prefix}  elif:\n{ast_to_string(branch.condition, indent + 2)}"
            )
            parts.append(_block_to_string("then", branch.body, indent + 1))
        if node.else_body is not None:
            parts.append(_block_to_string("else", node.else_body, indent + 1))
        return "\n".join(parts)

    if node_type == "For":
        return (
            f"{prefix}For: {node.variable}\n"
            f"{prefix}  start:\n{ast_to_string(node.start, indent + 2)}\n"
            f"{prefix}  end:\n{ast_to_string(node.end, indent + 2)}\n"
            f"{_block_to_string('body', node.body, indent + 1)}"
        )

    if node_type == "Proc":
        params = ", ".join(f"{p.name}: {p.type_name}" for p in node.params)
        return f"{prefix}Proc: {node.name}({params})\n" + "\n".join(
            ast_to_string(stmt, indent + 1) for stmt in node.body
        )

    if node_type == "Return":
        if node.value is None:
            return f"{prefix}Return"
        return f"{prefix}Return:\n{ast_to_string(node.value, indent + 1)}"

    return f"{prefix}Unknown: {node}"
