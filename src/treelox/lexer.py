"""
Lexer for treelox.

Converts source text into a stream of tokens for the parser.
Supports:
- Single-line comments (//)
- Double-quoted string literals (no escape sequences, single line)
- Number literals (123, 4.5), all read as floats
- Keywords, identifiers and the one- and two-character operators
"""

from typing import List, Optional, Iterator
from .tokens import Token, TokenType, SourceLocation, SourceSpan, KEYWORDS
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
)


# Single-character tokens that never start a two-character operator
_SINGLE_CHAR_TOKENS = {
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    ';': TokenType.SEMICOLON,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
}

# First character -> (token when followed by '=', token otherwise)
_EQUALS_PAIRS = {
    '!': (TokenType.NE, TokenType.BANG),
    '=': (TokenType.EQ, TokenType.ASSIGN),
    '<': (TokenType.LE, TokenType.LT),
    '>': (TokenType.GE, TokenType.GT),
}


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


class Lexer:
    """
    Tokenizer for treelox source.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _skip_whitespace_and_comments(self) -> None:
        """Skip whitespace, newlines and // comments."""
        while not self._is_at_end():
            ch = self._peek()
            if ch in ' \t\r\n':
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
            else:
                break

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _scan_string(self) -> Token:
        """Scan a string literal."""
        start = self._location()
        self._advance()  # consume opening quote

        while not self._is_at_end() and self._peek() != '"':
            if self._peek() == '\n':
                raise error_unterminated_string(
                    self._span(start),
                    self.get_source_line(start.line)
                )
            self._advance()

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start),
                self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        value = self.source[start.offset + 1:self.pos - 1]
        return self._make_token(TokenType.STRING, value, start)

    def _scan_number(self) -> Token:
        """Scan a numeric literal. All numbers are floats."""
        start = self._location()

        while _is_digit(self._peek()):
            self._advance()

        # A trailing '.' without digits is left for the DOT token
        if self._peek() == '.' and _is_digit(self._peek(1)):
            self._advance()  # consume '.'
            while _is_digit(self._peek()):
                self._advance()

        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.NUMBER, float(lexeme), start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]

        if lexeme in KEYWORDS:
            return self._make_token(KEYWORDS[lexeme], lexeme, start, lexeme)

        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_and_comments()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        start = self._location()
        ch = self._peek()

        if ch == '"':
            return self._scan_string()

        if _is_digit(ch):
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword()

        self._advance()

        if ch in _EQUALS_PAIRS:
            with_equals, alone = _EQUALS_PAIRS[ch]
            if self._match('='):
                return self._make_token(with_equals, ch + '=', start)
            return self._make_token(alone, ch, start)

        if ch in _SINGLE_CHAR_TOKENS:
            return self._make_token(_SINGLE_CHAR_TOKENS[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        tokens = []
        while True:
            token = self._scan_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens, ending with an EOF token

    Raises:
        LexerError: If tokenization fails
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
