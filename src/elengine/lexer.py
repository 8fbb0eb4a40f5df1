"""Lexer/tokenizer for the expression language.

Converts expression strings into a stream of tokens for the parser.

Token types:
- Literals: NUMBER, STRING, BOOLEAN, NULL
- Names: IDENTIFIER, QUALIFIED_NAME (``prefix:name`` of a function call)
- Operators: comparison, logical, arithmetic, conditional, plus the keyword
  spellings (eq ne lt gt le ge and or not div mod empty) and the optional
  match (~=) and join (#) operators
- Punctuation: LPAREN, RPAREN, LBRACKET, RBRACKET, COMMA, DOT

Keywords are case-sensitive and reserved: they are never produced as
IDENTIFIER tokens. ``instanceof`` is reserved without being an operator and
comes out as RESERVED so the parser can reject it with a position.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator

from elengine.errors import LexerError


class TokenType(Enum):
    """Types of tokens in the expression language."""

    # Literals
    NUMBER = auto()
    STRING = auto()
    BOOLEAN = auto()
    NULL = auto()

    # Names
    IDENTIFIER = auto()
    QUALIFIED_NAME = auto()  # prefix:name

    # Comparison operators
    EQ = auto()          # == or eq
    NEQ = auto()         # != or ne
    LT = auto()          # < or lt
    LTE = auto()         # <= or le
    GT = auto()          # > or gt
    GTE = auto()         # >= or ge

    # Logical operators
    AND = auto()         # && or and
    OR = auto()          # || or or
    NOT = auto()         # ! or not
    EMPTY = auto()       # empty

    # Arithmetic operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    MULTIPLY = auto()    # *
    DIVIDE = auto()      # / or div
    MODULO = auto()      # % or mod

    # Optional operators, accepted only when enabled in ParserOptions
    MATCH = auto()       # ~=
    JOIN = auto()        # #

    # Conditional
    QUESTION = auto()    # ?
    COLON = auto()       # :

    # Punctuation
    LPAREN = auto()      # (
    RPAREN = auto()      # )
    LBRACKET = auto()    # [
    RBRACKET = auto()    # ]
    COMMA = auto()       # ,
    DOT = auto()         # .

    # Reserved word with no meaning in an expression
    RESERVED = auto()

    # End of input
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token from the lexer.

    Attributes:
        type: The token type
        value: The decoded value (number, string content, identifier name,
            ``(prefix, name)`` for qualified names, operator text)
        position: Character position in the source string
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        lexeme: The raw source text of the token
    """

    type: TokenType
    value: str | int | float | bool | tuple[str, str] | None
    position: int
    line: int = 1
    column: int = 1
    lexeme: str = field(default="", compare=False)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, pos={self.position})"


# Operator and punctuation patterns (order matters - longer matches first)
TOKEN_PATTERNS = [
    # Multi-character operators (before single character)
    (r"==", TokenType.EQ),
    (r"!=", TokenType.NEQ),
    (r"<=", TokenType.LTE),
    (r">=", TokenType.GTE),
    (r"&&", TokenType.AND),
    (r"\|\|", TokenType.OR),
    (r"~=", TokenType.MATCH),

    # Single character operators
    (r"<", TokenType.LT),
    (r">", TokenType.GT),
    (r"!", TokenType.NOT),
    (r"\+", TokenType.PLUS),
    (r"-", TokenType.MINUS),
    (r"\*", TokenType.MULTIPLY),
    (r"/", TokenType.DIVIDE),
    (r"%", TokenType.MODULO),
    (r"#", TokenType.JOIN),
    (r"\?", TokenType.QUESTION),
    (r":", TokenType.COLON),

    # Punctuation
    (r"\(", TokenType.LPAREN),
    (r"\)", TokenType.RPAREN),
    (r"\[", TokenType.LBRACKET),
    (r"\]", TokenType.RBRACKET),
    (r",", TokenType.COMMA),
    (r"\.", TokenType.DOT),
]

NUMBER_PATTERN = re.compile(r"[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
IDENTIFIER_PATTERN = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
CALL_LOOKAHEAD = re.compile(r"\s*\(")

# Keywords that map to specific token types
KEYWORDS = {
    "true": (TokenType.BOOLEAN, True),
    "false": (TokenType.BOOLEAN, False),
    "null": (TokenType.NULL, None),
    "and": (TokenType.AND, "and"),
    "or": (TokenType.OR, "or"),
    "not": (TokenType.NOT, "not"),
    "empty": (TokenType.EMPTY, "empty"),
    "div": (TokenType.DIVIDE, "div"),
    "mod": (TokenType.MODULO, "mod"),
    "eq": (TokenType.EQ, "eq"),
    "ne": (TokenType.NEQ, "ne"),
    "lt": (TokenType.LT, "lt"),
    "gt": (TokenType.GT, "gt"),
    "le": (TokenType.LTE, "le"),
    "ge": (TokenType.GTE, "ge"),
    "instanceof": (TokenType.RESERVED, "instanceof"),
}

RESERVED_WORDS = frozenset(KEYWORDS)

ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}


class Lexer:
    """Tokenizer for the expression language.

    Iterating a lexer is lazy and forward-only; a fresh ``Lexer`` is needed
    to tokenize the same text again.

    Usage:
        lexer = Lexer('fn:contains(name, "x") && count gt 0')
        for token in lexer:
            print(token)
    """

    def __init__(self, source: str):
        self.source = source
        self.position = 0
        self.line = 1
        self.column = 1
        self._compiled_patterns = [
            (re.compile(pattern), token_type)
            for pattern, token_type in TOKEN_PATTERNS
        ]

    def __iter__(self) -> Iterator[Token]:
        """Iterate over all tokens in the source."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def next_token(self) -> Token:
        """Get the next token from the source."""
        self._skip_whitespace()

        if self.position >= len(self.source):
            return Token(TokenType.EOF, None, self.position, self.line, self.column)

        char = self.source[self.position]

        if char in "\"'":
            return self._read_string(char)

        if "0" <= char <= "9":
            return self._read_number()

        if IDENTIFIER_PATTERN.match(char):
            return self._read_name()

        for pattern, token_type in self._compiled_patterns:
            match = pattern.match(self.source, self.position)
            if match:
                return self._make_token(token_type, match.group(), match.group())

        raise LexerError(
            f"Unexpected character '{char}'",
            self.position,
            self.line,
            self.column,
        )

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source and return list of tokens."""
        return list(self)

    # -------------------------------------------------------------------------
    # Token readers
    # -------------------------------------------------------------------------

    def _read_number(self) -> Token:
        match = NUMBER_PATTERN.match(self.source, self.position)
        assert match is not None
        text = match.group()
        end = match.end()

        # A number is never directly followed by a name character or a dot:
        # "12abc", "1.", "1.5.3" and "2..3" are all malformed literals
        if end < len(self.source) and (
            self.source[end].isalnum() or self.source[end] in "_."
        ):
            raise LexerError(
                f"Invalid numeric literal '{text}{self.source[end]}'",
                self.position,
                self.line,
                self.column,
            )

        value: int | float
        if "." in text or "e" in text or "E" in text:
            value = float(text)
        else:
            try:
                value = int(text)
            except ValueError:
                # Beyond the interpreter's integer string conversion limit
                raise LexerError(
                    f"Invalid numeric literal '{text[:20]}...' ({len(text)} digits)",
                    self.position,
                    self.line,
                    self.column,
                ) from None

        return self._make_token(TokenType.NUMBER, value, text)

    def _read_string(self, quote: str) -> Token:
        """Read a quoted string literal, decoding escape sequences."""
        start = self.position
        i = start + 1
        chars = []

        while i < len(self.source):
            char = self.source[i]
            if char == quote:
                lexeme = self.source[start:i + 1]
                return self._make_token(TokenType.STRING, "".join(chars), lexeme)
            if char == "\\":
                if i + 1 >= len(self.source):
                    break
                escaped = self.source[i + 1]
                if escaped not in ESCAPES:
                    line, column = self._location_of(i)
                    raise LexerError(
                        f"Invalid escape sequence '\\{escaped}'", i, line, column
                    )
                chars.append(ESCAPES[escaped])
                i += 2
                continue
            chars.append(char)
            i += 1

        raise LexerError(
            "Unterminated string literal", start, self.line, self.column
        )

    def _read_name(self) -> Token:
        """Read an identifier, keyword, or ``prefix:name`` function name."""
        match = IDENTIFIER_PATTERN.match(self.source, self.position)
        assert match is not None
        name = match.group()

        if name in KEYWORDS:
            keyword_type, keyword_value = KEYWORDS[name]
            return self._make_token(keyword_type, keyword_value, name)

        # prefix:name is only a single token when a call follows
        end = match.end()
        if end < len(self.source) and self.source[end] == ":":
            local = IDENTIFIER_PATTERN.match(self.source, end + 1)
            if (
                local is not None
                and local.group() not in KEYWORDS
                and CALL_LOOKAHEAD.match(self.source, local.end())
            ):
                lexeme = self.source[self.position:local.end()]
                return self._make_token(
                    TokenType.QUALIFIED_NAME, (name, local.group()), lexeme
                )

        return self._make_token(TokenType.IDENTIFIER, name, name)

    # -------------------------------------------------------------------------
    # Position bookkeeping
    # -------------------------------------------------------------------------

    def _make_token(self, token_type: TokenType, value, lexeme: str) -> Token:
        token = Token(
            token_type, value, self.position, self.line, self.column, lexeme
        )
        self._advance(len(lexeme))
        return token

    def _skip_whitespace(self) -> None:
        while self.position < len(self.source) and self.source[self.position].isspace():
            self._advance(1)

    def _advance(self, count: int) -> None:
        """Advance position by count characters, updating line/column."""
        for _ in range(count):
            if self.position < len(self.source):
                if self.source[self.position] == "\n":
                    self.line += 1
                    self.column = 1
                else:
                    self.column += 1
                self.position += 1

    def _location_of(self, offset: int) -> tuple[int, int]:
        """Line and column of an offset at or after the current position."""
        line, column = self.line, self.column
        for char in self.source[self.position:offset]:
            if char == "\n":
                line += 1
                column = 1
            else:
                column += 1
        return line, column


def tokenize(source: str) -> Iterator[Token]:
    """Lazily tokenize an expression string.

    The returned iterator ends with an EOF token. Lexical errors are raised
    when the offending text is reached.
    """
    return iter(Lexer(source))
