"""
Recursive descent parser for treelox.

Converts a token stream into an Abstract Syntax Tree (AST). Syntax errors are
collected per declaration; after an error the parser skips ahead to the next
statement boundary and keeps going, so one run reports every error it can.
Nesting deeper than the host stack allows is reported as E106 and ends the
parse.
"""

from typing import List, Optional
from .tokens import Token, TokenType, SourceSpan, STATEMENT_KEYWORDS, is_reserved_keyword
from .ast import (
    # Expressions
    Expression, Literal, Variable, Assign, Unary, Binary, Logical, Call, Grouping,
    # Statements
    Statement, ExpressionStatement, PrintStatement, VarDecl, Block,
    IfStatement, WhileStatement, FunctionDecl, ReturnStatement, Parameter,
    Program,
)
from .errors import (
    ParserError,
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_assignment_target,
    error_too_many_arguments,
    error_reserved_keyword,
    error_nesting_too_deep,
    DiagnosticCollector,
)


# Maximum number of call arguments and function parameters
MAX_ARGUMENTS = 255


class Parser:
    """
    Recursive descent parser for treelox.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()
        if parser.diagnostics.has_errors:
            ...

    Expression precedence, lowest to highest:
        assignment   (right-associative)
        or
        and
        == !=
        < > <= >=
        + -
        * /
        unary        (! -)
        call
        primary
    """

    def __init__(self, tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.source = source  # Original source code for diagnostics
        self.pos = 0
        self.diagnostics = DiagnosticCollector()
        self._lines: Optional[List[str]] = source.splitlines() if source is not None else None

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _previous(self) -> Token:
        """Get the most recently consumed token."""
        return self.tokens[max(0, self.pos - 1)]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        """Check if current token is any of given types."""
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _source_line(self, line_num: int) -> Optional[str]:
        if self._lines is not None and 1 <= line_num <= len(self._lines):
            return self._lines[line_num - 1]
        return None

    def _error(self, expected: str) -> None:
        """Raise a parser error."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        found = repr(token.lexeme) if token.lexeme else token.type.name
        raise error_unexpected_token(
            expected, found, token.span, self._source_line(token.span.start.line)
        )

    def _report(self, error: ParserError) -> None:
        """Record an error without unwinding."""
        self.diagnostics.add_error(error)

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        return SourceSpan(start.span.start, self._previous().span.end)

    @staticmethod
    def _join(first, last) -> SourceSpan:
        """Span covering two nodes."""
        return SourceSpan(first.span.start, last.span.end)

    def _synchronize(self) -> None:
        """Skip tokens until a likely statement boundary."""
        self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._current().type in STATEMENT_KEYWORDS:
                return
            self._advance()

    # =========================================================================
    # Program and Declarations
    # =========================================================================

    def parse_program(self) -> Program:
        """Parse a complete program, collecting syntax errors."""
        start = self._current()
        statements = []
        while not self._is_at_end():
            try:
                stmt = self._parse_declaration()
            except RecursionError:
                # Nothing after this point can be parsed reliably
                token = self._current()
                self._report(error_nesting_too_deep(
                    token.span, self._source_line(token.span.start.line)))
                break
            if stmt is not None:
                statements.append(stmt)
            if self.diagnostics.should_stop:
                break
        return Program(span=self._span_from(start), statements=statements)

    def _parse_declaration(self) -> Optional[Statement]:
        """Parse one declaration, recovering from a syntax error."""
        try:
            if self._match(TokenType.FUN):
                return self._parse_function(self._previous())
            if self._match(TokenType.VAR):
                return self._parse_var_declaration(self._previous())
            return self._parse_statement()
        except ParserError as e:
            self._report(e)
            self._synchronize()
            return None

    def _parse_function(self, start: Token) -> FunctionDecl:
        """Parse: fun name(params) { body }"""
        name = self._consume(TokenType.IDENTIFIER, "function name").value
        self._consume(TokenType.LPAREN, "'(' after function name")
        params = []
        if not self._check(TokenType.RPAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    token = self._current()
                    self._report(error_too_many_arguments(
                        "parameters", MAX_ARGUMENTS, token.span,
                        self._source_line(token.span.start.line)))
                token = self._consume(TokenType.IDENTIFIER, "parameter name")
                params.append(Parameter(span=token.span, name=token.value))
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RPAREN, "')' after parameters")
        self._consume(TokenType.LBRACE, "'{' before function body")
        body = self._parse_block_statements()
        return FunctionDecl(span=self._span_from(start), name=name, params=params, body=body)

    def _parse_var_declaration(self, start: Token) -> VarDecl:
        """Parse: var name (= initializer)? ;"""
        name = self._consume(TokenType.IDENTIFIER, "variable name").value
        initializer = None
        if self._match(TokenType.ASSIGN):
            initializer = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after variable declaration")
        return VarDecl(span=self._span_from(start), name=name, initializer=initializer)

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement."""
        token = self._current()
        if is_reserved_keyword(token.type):
            raise error_reserved_keyword(
                token.lexeme, token.span, self._source_line(token.span.start.line))
        if self._match(TokenType.PRINT):
            return self._parse_print_statement(token)
        if self._match(TokenType.RETURN):
            return self._parse_return_statement(token)
        if self._match(TokenType.IF):
            return self._parse_if_statement(token)
        if self._match(TokenType.WHILE):
            return self._parse_while_statement(token)
        if self._match(TokenType.FOR):
            return self._parse_for_statement(token)
        if self._match(TokenType.LBRACE):
            statements = self._parse_block_statements()
            return Block(span=self._span_from(token), statements=statements)
        expr = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after expression")
        return ExpressionStatement(span=self._span_from(token), expression=expr)

    def _parse_block_statements(self) -> List[Statement]:
        """Parse declarations up to the closing brace (opening brace consumed)."""
        statements = []
        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            stmt = self._parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        self._consume(TokenType.RBRACE, "'}' after block")
        return statements

    def _parse_print_statement(self, start: Token) -> PrintStatement:
        value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after value")
        return PrintStatement(span=self._span_from(start), expression=value)

    def _parse_return_statement(self, start: Token) -> ReturnStatement:
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after return value")
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_if_statement(self, start: Token) -> IfStatement:
        self._consume(TokenType.LPAREN, "'(' after 'if'")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after if condition")
        then_branch = self._parse_statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_statement()
        return IfStatement(
            span=self._span_from(start),
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def _parse_while_statement(self, start: Token) -> WhileStatement:
        self._consume(TokenType.LPAREN, "'(' after 'while'")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after condition")
        body = self._parse_statement()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_for_statement(self, start: Token) -> Statement:
        """Parse a for loop and desugar it into a while loop.

            for (init; cond; incr) body
        becomes
            { init; while (cond) { body; incr; } }
        """
        self._consume(TokenType.LPAREN, "'(' after 'for'")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._parse_var_declaration(self._previous())
        else:
            init_start = self._current()
            expr = self._parse_expression()
            self._consume(TokenType.SEMICOLON, "';' after loop initializer")
            initializer = ExpressionStatement(span=self._span_from(init_start), expression=expr)

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after loop condition")

        increment = None
        if not self._check(TokenType.RPAREN):
            increment = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after for clauses")

        body = self._parse_statement()
        span = self._span_from(start)

        if increment is not None:
            body = Block(
                span=span,
                statements=[body, ExpressionStatement(span=increment.span, expression=increment)],
            )
        if condition is None:
            condition = Literal(span=start.span, value=True)
        loop = WhileStatement(span=span, condition=condition, body=body)
        if initializer is not None:
            return Block(span=span, statements=[initializer, loop])
        return loop

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression."""
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """Parse assignment (right-associative)."""
        expr = self._parse_or()

        if self._match(TokenType.ASSIGN):
            equals = self._previous()
            value = self._parse_assignment()
            if isinstance(expr, Variable):
                return Assign(span=self._join(expr, value), name=expr.name, value=value)
            # Report but keep parsing; the statement is still well-formed
            self._report(error_invalid_assignment_target(
                equals.span, self._source_line(equals.span.start.line)))

        return expr

    def _parse_or(self) -> Expression:
        expr = self._parse_and()
        while self._match(TokenType.OR):
            right = self._parse_and()
            expr = Logical(span=self._join(expr, right), left=expr, operator=TokenType.OR, right=right)
        return expr

    def _parse_and(self) -> Expression:
        expr = self._parse_equality()
        while self._match(TokenType.AND):
            right = self._parse_equality()
            expr = Logical(span=self._join(expr, right), left=expr, operator=TokenType.AND, right=right)
        return expr

    def _parse_binary_level(self, operand, *operators: TokenType) -> Expression:
        """Parse a left-associative binary precedence level."""
        expr = operand()
        while self._check_any(*operators):
            operator = self._advance().type
            right = operand()
            expr = Binary(span=self._join(expr, right), left=expr, operator=operator, right=right)
        return expr

    def _parse_equality(self) -> Expression:
        return self._parse_binary_level(self._parse_comparison, TokenType.EQ, TokenType.NE)

    def _parse_comparison(self) -> Expression:
        return self._parse_binary_level(
            self._parse_term, TokenType.LT, TokenType.LE, TokenType.GT, TokenType.GE)

    def _parse_term(self) -> Expression:
        return self._parse_binary_level(self._parse_factor, TokenType.PLUS, TokenType.MINUS)

    def _parse_factor(self) -> Expression:
        return self._parse_binary_level(self._parse_unary, TokenType.STAR, TokenType.SLASH)

    def _parse_unary(self) -> Expression:
        if self._check_any(TokenType.BANG, TokenType.MINUS):
            start = self._advance()
            operand = self._parse_unary()
            return Unary(span=self._span_from(start), operator=start.type, operand=operand)
        return self._parse_call()

    def _parse_call(self) -> Expression:
        """Parse a primary followed by any number of argument lists."""
        expr = self._parse_primary()
        while self._match(TokenType.LPAREN):
            arguments = []
            if not self._check(TokenType.RPAREN):
                while True:
                    if len(arguments) >= MAX_ARGUMENTS:
                        token = self._current()
                        self._report(error_too_many_arguments(
                            "arguments", MAX_ARGUMENTS, token.span,
                            self._source_line(token.span.start.line)))
                    arguments.append(self._parse_expression())
                    if not self._match(TokenType.COMMA):
                        break
            paren = self._consume(TokenType.RPAREN, "')' after arguments")
            expr = Call(
                span=SourceSpan(expr.span.start, paren.span.end),
                callee=expr,
                arguments=arguments,
            )
        return expr

    def _parse_primary(self) -> Expression:
        """Parse literals, variables and parenthesized expressions."""
        token = self._current()

        if self._match(TokenType.FALSE):
            return Literal(span=token.span, value=False)
        if self._match(TokenType.TRUE):
            return Literal(span=token.span, value=True)
        if self._match(TokenType.NIL):
            return Literal(span=token.span, value=None)
        if self._match(TokenType.NUMBER, TokenType.STRING):
            return Literal(span=token.span, value=token.value)
        if self._match(TokenType.IDENTIFIER):
            return Variable(span=token.span, name=token.value)
        if self._match(TokenType.LPAREN):
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')' after expression")
            return Grouping(span=self._span_from(token), expression=expr)
        if is_reserved_keyword(token.type):
            raise error_reserved_keyword(
                token.lexeme, token.span, self._source_line(token.span.start.line))

        self._error("expression")


def parse(tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for error messages
        source: Optional original source code for error messages

    Returns:
        Parsed Program AST

    Raises:
        ParserError: If any syntax error was found. The exception reports the
            first error; ``diagnostics`` lists all of them.
    """
    parser = Parser(tokens, filename, source)
    program = parser.parse_program()
    if parser.diagnostics.has_errors:
        diagnostics = list(parser.diagnostics.diagnostics)
        raise ParserError(diagnostics[0], diagnostics)
    return program
