"""Embeddable expression language engine.

This package provides:
- Lexer: Tokenizes expression strings
- Parser: Produces an immutable AST from tokens
- Evaluator: Evaluates an AST against a Resolver
- FunctionRegistry: Registry of host functions callable from expressions
- Template: Text with embedded ${...} expressions
"""

from elengine.builtins import register_builtins
from elengine.config import ParserOptions
from elengine.errors import (
    ArithmeticEvaluationError,
    ErrorKind,
    EvaluationError,
    ExpressionError,
    FunctionInvocationError,
    InvalidAccessError,
    LexerError,
    ParseError,
    ResolverError,
    TypeCoercionError,
    UnknownFunctionError,
)
from elengine.evaluator import Evaluator, evaluate, evaluate_bool
from elengine.functions import (
    FunctionCategory,
    FunctionDefinition,
    FunctionParameter,
    FunctionRegistry,
)
from elengine.lexer import Lexer, Token, TokenType, tokenize
from elengine.nodes import (
    ASTNode,
    BinaryOp,
    Conditional,
    FunctionCall,
    Identifier,
    Literal,
    MemberAccess,
    UnaryOp,
    to_source,
)
from elengine.parser import Parser, parse
from elengine.resolver import UNDEFINED, Resolver, SimpleResolver
from elengine.template import Template, parse_template, substitute
from elengine.values import (
    ValueKind,
    display,
    kind_of,
    to_boolean,
    to_double,
    to_long,
    to_string,
)

__all__ = [
    # Config
    "ParserOptions",
    # Errors
    "ArithmeticEvaluationError",
    "ErrorKind",
    "EvaluationError",
    "ExpressionError",
    "FunctionInvocationError",
    "InvalidAccessError",
    "LexerError",
    "ParseError",
    "ResolverError",
    "TypeCoercionError",
    "UnknownFunctionError",
    # Evaluator
    "Evaluator",
    "evaluate",
    "evaluate_bool",
    # Functions
    "FunctionCategory",
    "FunctionDefinition",
    "FunctionParameter",
    "FunctionRegistry",
    "register_builtins",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    # Nodes
    "ASTNode",
    "BinaryOp",
    "Conditional",
    "FunctionCall",
    "Identifier",
    "Literal",
    "MemberAccess",
    "UnaryOp",
    "to_source",
    # Parser
    "Parser",
    "parse",
    # Resolver
    "UNDEFINED",
    "Resolver",
    "SimpleResolver",
    # Templates
    "Template",
    "parse_template",
    "substitute",
    # Values
    "ValueKind",
    "display",
    "kind_of",
    "to_boolean",
    "to_double",
    "to_long",
    "to_string",
]
