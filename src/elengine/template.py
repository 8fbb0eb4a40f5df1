"""Template substitution: literal text with embedded ``${expression}`` sections.

Example:
    template = parse_template("Hello ${user.name}, you have ${count} items")
    template.render({"user": {"name": "Ann"}, "count": 3})
    # "Hello Ann, you have 3 items"
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from elengine.config import ParserOptions
from elengine.errors import LexerError, ParseError
from elengine.evaluator import Evaluator
from elengine.lexer import Token, TokenType
from elengine.nodes import ASTNode
from elengine.parser import parse
from elengine.resolver import Resolver
from elengine.values import to_string

logger = logging.getLogger(__name__)

OPEN = "${"
CLOSE = "}"


@dataclass(frozen=True)
class Template:
    """A parsed template: a sequence of literal strings and expression trees."""

    parts: tuple[str | ASTNode, ...]

    @property
    def expressions(self) -> list[ASTNode]:
        return [part for part in self.parts if not isinstance(part, str)]

    def evaluate(self, resolver: Resolver | Mapping[str, Any] | None = None) -> Any:
        """Evaluate the template.

        A template that is exactly one ``${...}`` section yields the raw value
        of that expression; anything else yields the concatenated string.
        """
        evaluator = Evaluator(resolver)
        if len(self.parts) == 1 and not isinstance(self.parts[0], str):
            return evaluator.evaluate(self.parts[0])

        pieces = []
        for part in self.parts:
            if isinstance(part, str):
                pieces.append(part)
            else:
                pieces.append(to_string(evaluator.evaluate(part)))
        return "".join(pieces)

    def render(self, resolver: Resolver | Mapping[str, Any] | None = None) -> str:
        """Evaluate the template and always return a string."""
        return to_string(self.evaluate(resolver))


def _find_close(source: str, start: int) -> int:
    """Index of the first ``}`` at or after ``start`` outside a string literal."""
    quote = None
    i = start
    while i < len(source):
        char = source[i]
        if quote is not None:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == CLOSE:
            return i
        i += 1
    return -1


def _location(source: str, position: int) -> tuple[int, int]:
    """1-indexed line and column of ``position`` within ``source``."""
    line = source.count("\n", 0, position) + 1
    column = position - source.rfind("\n", 0, position)
    return line, column


def _parse_section(
    source: str, start: int, end: int, options: ParserOptions | None
) -> ASTNode:
    """Parse ``source[start:end]``, reporting errors at template positions."""
    try:
        return parse(source[start:end], options)
    except ParseError as e:
        position = e.token.position + start
        line, column = _location(source, position)
        token = replace(e.token, position=position, line=line, column=column)
        raise ParseError(e.message, token) from e
    except LexerError as e:
        position = e.position + start
        line, column = _location(source, position)
        raise LexerError(e.message, position, line, column) from e


def parse_template(source: str, options: ParserOptions | None = None) -> Template:
    """Parse template text into a ``Template``.

    Raises:
        ParseError: For an unterminated ``${`` or an empty section
        LexerError: For invalid characters inside a section
    """
    parts: list[str | ASTNode] = []
    position = 0

    while position < len(source):
        start = source.find(OPEN, position)
        if start < 0:
            parts.append(source[position:])
            break

        if start > position:
            parts.append(source[position:start])

        body_start = start + len(OPEN)
        end = _find_close(source, body_start)
        if end < 0:
            raise ParseError(
                "Unterminated '${' in template", Token(TokenType.EOF, None, start)
            )

        if not source[body_start:end].strip():
            raise ParseError(
                "Empty expression in template", Token(TokenType.EOF, None, start)
            )

        parts.append(_parse_section(source, body_start, end, options))
        position = end + len(CLOSE)

    logger.debug(
        "Parsed template with %d part(s), %d expression(s)",
        len(parts),
        sum(1 for part in parts if not isinstance(part, str)),
    )
    return Template(tuple(parts))


def substitute(
    source: str,
    resolver: Resolver | Mapping[str, Any] | None = None,
    options: ParserOptions | None = None,
) -> str:
    """Replace every ``${...}`` in ``source`` with its evaluated string form."""
    return parse_template(source, options).render(resolver)
