"""
Token types for the treelox lexer.

Tokens carry a SourceSpan so every later stage can point diagnostics at the
original source text.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals ---
    NUMBER = auto()             # 42, 3.14
    STRING = auto()             # "hello"

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    AND = auto()                # and
    CLASS = auto()              # class (reserved)
    ELSE = auto()               # else
    FALSE = auto()              # false
    FUN = auto()                # fun
    FOR = auto()                # for
    IF = auto()                 # if
    NIL = auto()                # nil
    OR = auto()                 # or
    PRINT = auto()              # print
    RETURN = auto()             # return
    SUPER = auto()              # super (reserved)
    THIS = auto()               # this (reserved)
    TRUE = auto()               # true
    VAR = auto()                # var
    WHILE = auto()              # while

    # --- Single-character delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    COMMA = auto()              # ,
    DOT = auto()                # .
    SEMICOLON = auto()          # ;

    # --- Operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    BANG = auto()               # !
    ASSIGN = auto()             # =
    EQ = auto()                 # ==
    NE = auto()                 # !=
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=

    # --- Special ---
    EOF = auto()                # End of file


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # float for NUMBER, str for STRING/IDENTIFIER
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER, TokenType.STRING, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "and": TokenType.AND,
    "class": TokenType.CLASS,
    "else": TokenType.ELSE,
    "false": TokenType.FALSE,
    "fun": TokenType.FUN,
    "for": TokenType.FOR,
    "if": TokenType.IF,
    "nil": TokenType.NIL,
    "or": TokenType.OR,
    "print": TokenType.PRINT,
    "return": TokenType.RETURN,
    "super": TokenType.SUPER,
    "this": TokenType.THIS,
    "true": TokenType.TRUE,
    "var": TokenType.VAR,
    "while": TokenType.WHILE,
}

# Keywords reserved for object support, rejected by the parser
RESERVED_KEYWORDS = frozenset({TokenType.CLASS, TokenType.SUPER, TokenType.THIS})

# Keywords that begin a statement (parser error recovery resumes here)
STATEMENT_KEYWORDS = frozenset({
    TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR,
    TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
})


def is_reserved_keyword(token_type: TokenType) -> bool:
    """Check if a token type is a reserved but unsupported keyword."""
    return token_type in RESERVED_KEYWORDS


# Placeholder span for errors raised without a source position
NO_SPAN = SourceSpan(SourceLocation(0, 0, 0), SourceLocation(0, 0, 0))
