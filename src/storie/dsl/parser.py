"""
Parser for the Storie scripting language.

Parses a stream of tokens into a Program. Statements are parsed by
recursive descent, dispatching on the leading identifier. Expressions
use precedence climbing.

Precedence (lowest to highest):
1. Logical OR: or
2. Logical AND: and
3. Equality and comparison: ==, !=, <, <=, >, >=
4. Additive: +, -
5. Multiplicative: *, /, %
6. Unary: -, not (operand parsed at UNARY_PRECEDENCE)
7. Primary: literals, identifiers, calls, parentheses

All binary operators are left-associative.
"""

from typing import Dict, List, Optional, Tuple

from .ast import (
    AssignNode,
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
    UnaryOpNode,
    VarDeclNode,
)
from .errors import ParseError
from .limits import (
    DEFAULT_SCRIPT_LIMITS,
    ScriptLimits,
    check_ast_depth,
    check_block_depth,
    check_expression_depth,
    check_function_arg_count,
)
from .tokenizer import Token, TokenType, tokenize

BINARY_PRECEDENCE: Dict[str, int] = {
    "or": 1,
    "and": 2,
    "==": 3,
    "!=": 3,
    "<": 3,
    "<=": 3,
    ">": 3,
    ">=": 3,
    "+": 4,
    "-": 4,
    "*": 5,
    "/": 5,
    "%": 5,
}

# Ceiling used for the operand of a prefix operator; higher than any
# binary precedence so `-a * b` is `(-a) * b`.
UNARY_PRECEDENCE = 100

KEYWORD_OPERATORS = ("and", "or")


class Parser:
    """Parser for script token streams."""

    def __init__(
        self,
        tokens: List[Token],
        source: str = "",
        limits: ScriptLimits = DEFAULT_SCRIPT_LIMITS,
    ):
        self._tokens = tokens
        self._source = source
        self._limits = limits
        self._current = 0
        self._depth = 0
        self._block_depth = 0

    def parse(self) -> Program:
        """Parses the token stream into a Program."""
        statements: List[StmtNode] = []

        while not self._is_at_end():
            if self._match(TokenType.NEWLINE):
                continue
            if self._check(TokenType.INDENT):
                raise self._error("Unexpected indent", self._peek())
            statements.append(self._parse_statement())

        return Program(statements=tuple(statements), source=self._source or None)

    # ============================================================
    # Token Helpers
    # ============================================================

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._current + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _previous(self) -> Token:
        return self._tokens[self._current - 1]

    def _advance(self) -> Token:
        if not self._is_at_end():
            self._current += 1
        return self._previous()

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().type == token_type

    def _check_keyword(self, keyword: str) -> bool:
        token = self._peek()
        return token.type == TokenType.IDENTIFIER and token.value == keyword

    def _match(self, *types: TokenType) -> bool:
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._error(message, self._peek())

    def _consume_keyword(self, keyword: str, message: str) -> Token:
        if self._check_keyword(keyword):
            return self._advance()
        raise self._error(message, self._peek())

    def _consume_operator(self, operator: str, message: str) -> Token:
        token = self._peek()
        if token.type == TokenType.OPERATOR and token.value == operator:
            return self._advance()
        raise self._error(message, token)

    def _error(self, message: str, token: Token) -> ParseError:
        return ParseError(message, token.line, token.column, self._source)

    @staticmethod
    def _describe(token: Token) -> str:
        return token.value or token.type.value

    # ============================================================
    # Statements
    # ============================================================

    def _parse_statement(self) -> StmtNode:
        token = self._peek()

        if token.type == TokenType.IDENTIFIER:
            keyword = token.value
            if keyword in ("var", "let"):
                return self._finish_simple(self._parse_var_decl(keyword == "let"))
            if keyword == "if":
                return self._parse_if()
            if keyword == "for":
                return self._parse_for()
            if keyword == "proc":
                return self._parse_proc()
            if keyword == "return":
                return self._finish_simple(self._parse_return())
            if keyword in ("elif", "else"):
                raise self._error(f"'{keyword}' without matching 'if'", token)

            next_token = self._peek(1)
            if next_token.type == TokenType.OPERATOR and next_token.value == "=":
                return self._finish_simple(self._parse_assign())

        expr = self._parse_expression()
        return self._finish_simple(
            ExprStmtNode(line=token.line, column=token.column, expr=expr)
        )

    def _finish_simple(self, stmt: StmtNode) -> StmtNode:
        """A simple statement must end its line."""
        if not self._match(TokenType.NEWLINE):
            token = self._peek()
            raise self._error(
                f"Expected end of line, got {self._describe(token)}", token
            )
        return stmt

    def _parse_var_decl(self, is_let: bool) -> VarDeclNode:
        keyword = self._advance()
        name = self._consume(TokenType.IDENTIFIER, "Expected identifier")
        self._consume_operator("=", f"Expected '=' after '{name.value}'")
        value = self._parse_expression()
        return VarDeclNode(
            line=keyword.line,
            column=keyword.column,
            name=name.value,
            value=value,
            is_let=is_let,
        )

    def _parse_assign(self) -> AssignNode:
        target = self._advance()
        self._consume_operator("=", "Expected '='")
        value = self._parse_expression()
        return AssignNode(
            line=target.line, column=target.column, target=target.value, value=value
        )

    def _parse_return(self) -> ReturnNode:
        keyword = self._advance()
        value: Optional[ExprNode] = None
        if not self._check(TokenType.NEWLINE):
            value = self._parse_expression()
        return ReturnNode(line=keyword.line, column=keyword.column, value=value)

    def _parse_if(self) -> IfNode:
        keyword = self._advance()
        branch = self._parse_branch()

        elif_branches: List[IfBranch] = []
        while self._check_keyword("elif"):
            self._advance()
            elif_branches.append(self._parse_branch())

        else_body: Optional[Tuple[StmtNode, ...]] = None
        if self._check_keyword("else"):
            self._advance()
            self._consume(TokenType.COLON, "Expected ':' after 'else'")
            else_body = self._parse_block()

        return IfNode(
            line=keyword.line,
            column=keyword.column,
            branch=branch,
            elif_branches=tuple(elif_branches),
            else_body=else_body,
        )

    def _parse_branch(self) -> IfBranch:
        condition = self._parse_expression()
        self._consume(TokenType.COLON, "Expected ':' after condition")
        return IfBranch(condition=condition, body=self._parse_block())

    def _parse_for(self) -> ForNode:
        keyword = self._advance()
        variable = self._consume(TokenType.IDENTIFIER, "Expected loop variable name")
        self._consume_keyword("in", "Expected 'in' after for variable")
        self._consume_keyword("range", "Expected 'range' after 'in'")
        self._consume(TokenType.LPAREN, "Expected '(' after 'range'")
        start = self._parse_expression()
        self._consume(TokenType.COMMA, "Expected ',' in range(start, end)")
        end = self._parse_expression()
        self._consume(TokenType.RPAREN, "Expected ')' after range arguments")
        self._consume(TokenType.COLON, "Expected ':' after range(...)")
        body = self._parse_block()

        return ForNode(
            line=keyword.line,
            column=keyword.column,
            variable=variable.value,
            start=start,
            end=end,
            body=body,
        )

    def _parse_proc(self) -> ProcNode:
        keyword = self._advance()
        name = self._consume(TokenType.IDENTIFIER, "Expected proc name")
        self._consume(TokenType.LPAREN, "Expected '(' after proc name")

        params: List[Param] = []
        if not self._check(TokenType.RPAREN):
            while True:
                param_name = self._consume(TokenType.IDENTIFIER, "Expected parameter name")
                self._consume(TokenType.COLON, "Expected ':' after parameter name")
                type_name = self._consume(TokenType.IDENTIFIER, "Expected parameter type")
                params.append(Param(name=param_name.value, type_name=type_name.value))
                if not self._match(TokenType.COMMA):
                    break

        self._consume(TokenType.RPAREN, "Expected ')' after parameters")
        self._consume(TokenType.COLON, "Expected ':' after parameter list")
        body = self._parse_block()

        return ProcNode(
            line=keyword.line,
            column=keyword.column,
            name=name.value,
            params=tuple(params),
            body=body,
        )

    def _parse_block(self) -> Tuple[StmtNode, ...]:
        """Parses NEWLINE INDENT statement* DEDENT (the ':' is already consumed).

        A single statement on the same line as the ':' is accepted as a
        one-statement block, e.g. ``proc add(a: int, b: int): return a + b``.
        """
        self._block_depth += 1
        start = self._previous()
        check_block_depth(self._block_depth, self._limits, start.line, start.column)

        try:
            if not self._check(TokenType.NEWLINE):
                if self._is_at_end():
                    raise self._error("Expected statement after ':'", self._peek())
                return (self._parse_statement(),)

            self._consume(TokenType.NEWLINE, "Expected newline after ':'")
            self._consume(TokenType.INDENT, "Expected indented block")

            statements: List[StmtNode] = []
            while not self._match(TokenType.DEDENT):
                if self._is_at_end():
                    raise self._error("Unexpected end of input in block", self._peek())
                if self._match(TokenType.NEWLINE):
                    continue
                if self._check(TokenType.INDENT):
                    raise self._error("Unexpected indent", self._peek())
                statements.append(self._parse_statement())

            return tuple(statements)
        finally:
            self._block_depth -= 1

    # ============================================================
    # Expressions (precedence climbing)
    # ============================================================

    def _parse_expression(self, precedence: int = 0) -> ExprNode:
        return self._parse_expression_with_depth(precedence)[0]

    def _parse_expression_with_depth(self, precedence: int = 0) -> Tuple[ExprNode, int]:
        """Parses an expression; also returns the depth of the tree built."""
        self._depth += 1
        start = self._peek()
        check_expression_depth(self._depth, self._limits, start.line, start.column)

        try:
            left, left_depth = self._parse_prefix()

            while True:
                operator = self._binary_operator(self._peek())
                if operator is None:
                    break
                operator_precedence = BINARY_PRECEDENCE[operator]
                if operator_precedence <= precedence:
                    break
                token = self._advance()
                right, right_depth = self._parse_expression_with_depth(operator_precedence)
                left = BinaryOpNode(
                    line=token.line,
                    column=token.column,
                    operator=operator,
                    left=left,
                    right=right,
                )
                # Left-associative chains grow one level per operator
                left_depth = self._node_depth(token, left_depth, right_depth)

            return left, left_depth
        finally:
            self._depth -= 1

    def _node_depth(self, token: Token, *child_depths: int) -> int:
        depth = 1 + max(child_depths, default=0)
        check_ast_depth(depth, self._limits, token.line, token.column)
        return depth

    @staticmethod
    def _binary_operator(token: Token) -> Optional[str]:
        if token.type == TokenType.OPERATOR and token.value in BINARY_PRECEDENCE:
            return token.value
        if token.type == TokenType.IDENTIFIER and token.value in KEYWORD_OPERATORS:
            return token.value
        return None

    def _parse_prefix(self) -> Tuple[ExprNode, int]:
        token = self._peek()

        if self._match(TokenType.INT):
            return IntLiteralNode(line=token.line, column=token.column, value=int(token.value)), 1

        if self._match(TokenType.FLOAT):
            return (
                FloatLiteralNode(line=token.line, column=token.column, value=float(token.value)),
                1,
            )

        if self._match(TokenType.STRING):
            return StringLiteralNode(line=token.line, column=token.column, value=token.value), 1

        if token.type == TokenType.OPERATOR and token.value == "-":
            self._advance()
            operand, operand_depth = self._parse_expression_with_depth(UNARY_PRECEDENCE)
            node = UnaryOpNode(line=token.line, column=token.column, operator="-", operand=operand)
            return node, self._node_depth(token, operand_depth)

        if self._match(TokenType.LPAREN):
            result = self._parse_expression_with_depth()
            self._consume(TokenType.RPAREN, "Expected ')' after expression")
            return result

        if token.type == TokenType.IDENTIFIER:
            return self._parse_identifier()

        raise self._error(f"Unexpected token: {self._describe(token)}", token)

    def _parse_identifier(self) -> Tuple[ExprNode, int]:
        token = self._advance()

        if token.value == "true":
            return BooleanLiteralNode(line=token.line, column=token.column, value=True), 1
        if token.value == "false":
            return BooleanLiteralNode(line=token.line, column=token.column, value=False), 1
        if token.value == "not":
            operand, operand_depth = self._parse_expression_with_depth(UNARY_PRECEDENCE)
            node = UnaryOpNode(
                line=token.line, column=token.column, operator="not", operand=operand
            )
            return node, self._node_depth(token, operand_depth)

        if not self._match(TokenType.LPAREN):
            return IdentifierNode(line=token.line, column=token.column, name=token.value), 1

        args: List[ExprNode] = []
        arg_depths: List[int] = []
        if not self._check(TokenType.RPAREN):
            while True:
                arg, arg_depth = self._parse_expression_with_depth()
                args.append(arg)
                arg_depths.append(arg_depth)
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RPAREN, "Expected ')' after function arguments")
        check_function_arg_count(len(args), self._limits, token.line, token.column)

        node = CallNode(line=token.line, column=token.column, name=token.value, args=tuple(args))
        return node, self._node_depth(token, *arg_depths)


def parse(source: str, limits: ScriptLimits = DEFAULT_SCRIPT_LIMITS) -> Program:
    """
    Parses script source into a Program.

    Args:
        source: The script source to parse
        limits: Optional script limits

    Returns:
        The parsed program

    Raises:
        TokenizerError: If tokenization fails
        ParseError: If parsing fails
        LimitExceededError: If the source exceeds a limit
    """
    tokens = tokenize(source, limits)
    parser = Parser(tokens, source, limits)
    return parser.parse()
