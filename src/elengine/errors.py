"""Exception types for the expression language.

Lexing and parsing failures carry a source position. Evaluation failures
carry an ``ErrorKind`` so callers can branch on the category without
matching on class names.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from elengine.lexer import Token


def qualified_name(prefix: str | None, name: str) -> str:
    """Render a function name the way it is written in an expression."""
    return f"{prefix}:{name}" if prefix else name


class ExpressionError(Exception):
    """Base class for every error raised by the engine."""


class LexerError(ExpressionError):
    """Error during lexical analysis."""

    def __init__(self, message: str, position: int, line: int = 1, column: int = 1):
        self.message = message
        self.position = position
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, column {column}")


class ParseError(ExpressionError):
    """Error during parsing."""

    def __init__(self, message: str, token: "Token"):
        self.message = message
        self.token = token
        super().__init__(f"{message} at position {token.position}")

    @property
    def position(self) -> int:
        return self.token.position

    @property
    def line(self) -> int:
        return self.token.line

    @property
    def column(self) -> int:
        return self.token.column


class ErrorKind(Enum):
    """Categories of evaluation failure."""

    TYPE_COERCION = "type_coercion"
    INVALID_ACCESS = "invalid_access"
    UNKNOWN_FUNCTION = "unknown_function"
    FUNCTION_INVOCATION = "function_invocation"
    RESOLVER = "resolver"
    ARITHMETIC = "arithmetic"


class EvaluationError(ExpressionError):
    """Error during expression evaluation."""

    kind: ErrorKind

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TypeCoercionError(EvaluationError):
    """A value could not be converted to the type an operator needs."""

    kind = ErrorKind.TYPE_COERCION


class InvalidAccessError(EvaluationError):
    """Member or index access on a value that does not support it."""

    kind = ErrorKind.INVALID_ACCESS


class ArithmeticEvaluationError(EvaluationError):
    """Division or modulo by zero."""

    kind = ErrorKind.ARITHMETIC


class UnknownFunctionError(EvaluationError):
    """The resolver has no function registered under the called name."""

    kind = ErrorKind.UNKNOWN_FUNCTION

    def __init__(self, prefix: str | None, name: str):
        self.prefix = prefix
        self.name = name
        super().__init__(f"Unknown function: {qualified_name(prefix, name)}")


class FunctionInvocationError(EvaluationError):
    """A resolved function raised while being called.

    The wrapped exception is kept on ``cause`` and chained as ``__cause__``.
    """

    kind = ErrorKind.FUNCTION_INVOCATION

    def __init__(self, prefix: str | None, name: str, cause: BaseException):
        self.prefix = prefix
        self.name = name
        self.cause = cause
        super().__init__(f"Error calling {qualified_name(prefix, name)}: {cause}")


class ResolverError(EvaluationError):
    """The resolver failed while looking up a variable.

    Not to be confused with an undefined variable, which evaluates to null.
    """

    kind = ErrorKind.RESOLVER

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"Error resolving '{name}': {cause}")
