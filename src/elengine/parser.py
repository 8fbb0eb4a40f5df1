"""Parser for the expression language.

Converts a stream of tokens into an Abstract Syntax Tree (AST).
Uses recursive descent parsing with operator precedence.

Operator Precedence (lowest to highest):
1. ? : (conditional, right-associative)
2. || (or)
3. && (and)
4. == != (eq ne) ~= - non-associative
5. < <= > >= (lt le gt ge)
6. + - #
7. * / % (div mod)
8. ! (not) - (unary) empty
9. . (member access) [] (index) () (function call)

Names are stored as strings; nothing is resolved while parsing. The match
(~=) and join (#) operators are only accepted when ParserOptions enables
them.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from elengine.config import ParserOptions
from elengine.errors import ParseError
from elengine.lexer import Token, TokenType, tokenize
from elengine.nodes import (
    ASTNode,
    BinaryOp,
    Conditional,
    FunctionCall,
    Identifier,
    Literal,
    MemberAccess,
    UnaryOp,
)

EQUALITY_OPS = {
    TokenType.EQ: "==",
    TokenType.NEQ: "!=",
    TokenType.MATCH: "~=",
}

RELATIONAL_OPS = {
    TokenType.LT: "<",
    TokenType.LTE: "<=",
    TokenType.GT: ">",
    TokenType.GTE: ">=",
}

ADDITIVE_OPS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.JOIN: "#",
}

MULTIPLICATIVE_OPS = {
    TokenType.MULTIPLY: "*",
    TokenType.DIVIDE: "/",
    TokenType.MODULO: "%",
}

UNARY_OPS = {
    TokenType.NOT: "!",
    TokenType.MINUS: "-",
    TokenType.EMPTY: "empty",
}

LITERAL_TYPES = (TokenType.NUMBER, TokenType.STRING, TokenType.BOOLEAN, TokenType.NULL)


class Parser:
    """Recursive descent parser for the expression language.

    Accepts either source text or an iterable of tokens. Tokens are pulled
    one at a time, so a lexical error surfaces at the point the parser
    reaches it.

    Usage:
        parser = Parser('user.age ge 18 ? "adult" : "minor"')
        ast = parser.parse()
    """

    def __init__(
        self,
        source: str | Iterable[Token],
        options: ParserOptions | None = None,
    ):
        self.options = options or ParserOptions()
        self._tokens: Iterator[Token] = (
            tokenize(source) if isinstance(source, str) else iter(source)
        )
        self._depth = 0
        self._token = self._pull()

    def parse(self) -> ASTNode:
        """Parse the expression and return the AST root."""
        if self._is_at_end():
            raise ParseError("Empty expression", self._current())

        ast = self._parse_expression()

        if not self._is_at_end():
            raise ParseError(
                f"Unexpected token '{self._current().lexeme}'",
                self._current(),
            )

        return ast

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _pull(self) -> Token:
        """Take the next token from the stream, synthesizing EOF when exhausted."""
        token = next(self._tokens, None)
        if token is None:
            previous = getattr(self, "_token", None)
            position = 0
            if previous is not None:
                position = previous.position + len(previous.lexeme)
            return Token(TokenType.EOF, None, position)
        return token

    def _current(self) -> Token:
        """Get current token."""
        return self._token

    def _is_at_end(self) -> bool:
        """Check if we've consumed all tokens."""
        return self._token.type == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._token
        if token.type != TokenType.EOF:
            self._token = self._pull()
        return token

    def _match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self._token.type in types

    def _consume(self, token_type: TokenType, message: str) -> Token:
        """Consume a token of the expected type, or raise error."""
        if self._token.type == token_type:
            return self._advance()
        raise ParseError(message, self._token)

    def _operator(self, table: dict[TokenType, str]) -> str:
        """Consume a binary operator token and return its canonical text."""
        token = self._advance()
        enabled = {
            TokenType.MATCH: self.options.match_allowed,
            TokenType.JOIN: self.options.join_allowed,
        }
        if not enabled.get(token.type, True):
            raise ParseError(f"Operator '{token.lexeme}' is not allowed", token)
        return table[token.type]

    @contextmanager
    def _nested(self):
        """Track sub-expression depth against the configured limit."""
        self._depth += 1
        try:
            if self._depth > self.options.max_depth:
                raise ParseError("Expression nested too deeply", self._token)
            yield
        finally:
            self._depth -= 1

    # -------------------------------------------------------------------------
    # Parsing methods (in order of precedence, lowest to highest)
    # -------------------------------------------------------------------------

    def _parse_expression(self) -> ASTNode:
        """Parse a complete sub-expression, conditional included."""
        with self._nested():
            return self._parse_conditional()

    def _parse_conditional(self) -> ASTNode:
        """Parse conditional expression (right-associative)."""
        condition = self._parse_or()

        if not self._match(TokenType.QUESTION):
            return condition

        question = self._advance()
        if not self.options.conditional_allowed:
            raise ParseError("Conditional expressions are not allowed", question)

        then_branch = self._parse_expression()
        self._consume(TokenType.COLON, "Expected ':' in conditional expression")
        else_branch = self._parse_expression()

        return Conditional(condition, then_branch, else_branch)

    def _parse_or(self) -> ASTNode:
        """Parse OR expression."""
        left = self._parse_and()

        while self._match(TokenType.OR):
            self._advance()
            right = self._parse_and()
            left = BinaryOp("||", left, right)

        return left

    def _parse_and(self) -> ASTNode:
        """Parse AND expression."""
        left = self._parse_equality()

        while self._match(TokenType.AND):
            self._advance()
            right = self._parse_equality()
            left = BinaryOp("&&", left, right)

        return left

    def _parse_equality(self) -> ASTNode:
        """Parse equality expression (==, !=, ~=). Chaining is rejected."""
        left = self._parse_relational()

        if self._token.type in EQUALITY_OPS:
            op = self._operator(EQUALITY_OPS)
            right = self._parse_relational()
            left = BinaryOp(op, left, right)

            if self._token.type in EQUALITY_OPS:
                raise ParseError(
                    "Chained equality comparison requires parentheses",
                    self._token,
                )

        return left

    def _parse_relational(self) -> ASTNode:
        """Parse relational expression (<, <=, >, >=)."""
        left = self._parse_additive()

        while self._token.type in RELATIONAL_OPS:
            op = self._operator(RELATIONAL_OPS)
            right = self._parse_additive()
            left = BinaryOp(op, left, right)

        return left

    def _parse_additive(self) -> ASTNode:
        """Parse additive expression (+, -, #)."""
        left = self._parse_multiplicative()

        while self._token.type in ADDITIVE_OPS:
            op = self._operator(ADDITIVE_OPS)
            right = self._parse_multiplicative()
            left = BinaryOp(op, left, right)

        return left

    def _parse_multiplicative(self) -> ASTNode:
        """Parse multiplicative expression (*, /, %)."""
        left = self._parse_unary()

        while self._token.type in MULTIPLICATIVE_OPS:
            op = self._operator(MULTIPLICATIVE_OPS)
            right = self._parse_unary()
            left = BinaryOp(op, left, right)

        return left

    def _parse_unary(self) -> ASTNode:
        """Parse unary expression (!, not, -, empty)."""
        if self._token.type in UNARY_OPS:
            op = UNARY_OPS[self._advance().type]
            with self._nested():
                operand = self._parse_unary()
            return UnaryOp(op, operand)

        return self._parse_postfix()

    def _parse_postfix(self) -> ASTNode:
        """Parse postfix expressions (member access, index)."""
        expr = self._parse_primary()

        while True:
            if self._match(TokenType.DOT):
                self._advance()
                member_token = self._consume(
                    TokenType.IDENTIFIER, "Expected identifier after '.'"
                )
                expr = MemberAccess(expr, str(member_token.value))

            elif self._match(TokenType.LBRACKET):
                self._advance()
                index = self._parse_expression()
                self._consume(TokenType.RBRACKET, "Expected ']' after index")
                expr = MemberAccess(expr, index)

            elif self._match(TokenType.LPAREN):
                raise ParseError(
                    "Function call requires a function name", self._token
                )

            else:
                break

        return expr

    def _parse_primary(self) -> ASTNode:
        """Parse primary expression (literals, names, grouped expressions)."""
        token = self._token

        if token.type in LITERAL_TYPES:
            self._advance()
            return Literal(token.value)

        # Variable reference or unprefixed function call
        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._match(TokenType.LPAREN):
                return self._parse_function_call(str(token.value))
            return Identifier(str(token.value))

        # prefix:name is only lexed as one token when a call follows
        if token.type == TokenType.QUALIFIED_NAME:
            self._advance()
            prefix, name = token.value
            return self._parse_function_call(name, prefix)

        # Grouped expression
        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "Expected ')' after expression")
            return expr

        if token.type == TokenType.RESERVED:
            raise ParseError(f"Reserved word '{token.lexeme}' is not allowed", token)

        if token.type == TokenType.EOF:
            raise ParseError("Unexpected end of expression", token)

        raise ParseError(f"Expected expression but found '{token.lexeme}'", token)

    def _parse_function_call(self, name: str, prefix: str | None = None) -> FunctionCall:
        """Parse a function call (arguments in parentheses)."""
        self._consume(TokenType.LPAREN, "Expected '(' after function name")

        arguments: list[ASTNode] = []

        if not self._match(TokenType.RPAREN):
            arguments.append(self._parse_expression())

            while self._match(TokenType.COMMA):
                self._advance()
                arguments.append(self._parse_expression())

        self._consume(TokenType.RPAREN, "Expected ')' after arguments")

        return FunctionCall(name, tuple(arguments), prefix)


def parse(
    source: str | Iterable[Token],
    options: ParserOptions | None = None,
) -> ASTNode:
    """Convenience function to parse an expression.

    Args:
        source: The expression string, or tokens produced by the lexer
        options: Parser options (defaults to ``ParserOptions()``)

    Returns:
        The AST root node
    """
    return Parser(source, options).parse()
