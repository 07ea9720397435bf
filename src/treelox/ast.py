"""
Abstract Syntax Tree (AST) node definitions for treelox.

Nodes are plain dataclasses declared with ``eq=False``: they compare and hash
by identity, so a node can key the resolver's binding table. No pass mutates
a node after parsing; later passes annotate nodes in side tables instead.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Any
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass(eq=False)
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(eq=False)
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass(eq=False)
class Literal(Expression):
    """A literal: None (nil), bool, float or str."""
    value: Any


@dataclass(eq=False)
class Variable(Expression):
    """A reference to a variable by name."""
    name: str


@dataclass(eq=False)
class Assign(Expression):
    """Assignment to an existing variable (name = value)."""
    name: str
    value: Expression


@dataclass(eq=False)
class Unary(Expression):
    """A unary operation (-x, !x)."""
    operator: TokenType
    operand: Expression


@dataclass(eq=False)
class Binary(Expression):
    """An arithmetic, comparison or equality operation."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass(eq=False)
class Logical(Expression):
    """A short-circuiting 'and' / 'or'."""
    left: Expression
    operator: TokenType  # AND or OR
    right: Expression


@dataclass(eq=False)
class Call(Expression):
    """A call: callee(arg1, arg2, ...)."""
    callee: Expression
    arguments: List[Expression] = field(default_factory=list)


@dataclass(eq=False)
class Grouping(Expression):
    """A parenthesized expression."""
    expression: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(eq=False)
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass(eq=False)
class ExpressionStatement(Statement):
    """An expression evaluated for its side effects."""
    expression: Expression


@dataclass(eq=False)
class PrintStatement(Statement):
    """print expr;"""
    expression: Expression


@dataclass(eq=False)
class VarDecl(Statement):
    """Variable declaration: var name = initializer;

    A missing initializer declares the variable as nil.
    """
    name: str
    initializer: Optional[Expression] = None


@dataclass(eq=False)
class Block(Statement):
    """A braced block of statements with its own scope."""
    statements: List[Statement] = field(default_factory=list)


@dataclass(eq=False)
class IfStatement(Statement):
    """if (condition) then_branch else else_branch"""
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass(eq=False)
class WhileStatement(Statement):
    """while (condition) body

    'for' loops are desugared into this node by the parser.
    """
    condition: Expression
    body: Statement


@dataclass(eq=False)
class Parameter(AstNode):
    """A function parameter."""
    name: str


@dataclass(eq=False)
class FunctionDecl(Statement):
    """Function declaration: fun name(params) { body }"""
    name: str
    params: List[Parameter] = field(default_factory=list)
    body: List[Statement] = field(default_factory=list)


@dataclass(eq=False)
class ReturnStatement(Statement):
    """return value; (value is None for a bare return)."""
    value: Optional[Expression] = None


@dataclass(eq=False)
class Program(AstNode):
    """A complete program: top-level statements in source order."""
    statements: List[Statement] = field(default_factory=list)


# =============================================================================
# Visitor Helpers
# =============================================================================

_OPERATOR_TEXT = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.BANG: "!",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.AND: "and",
    TokenType.OR: "or",
}


def operator_text(operator: TokenType) -> str:
    """Source text of an operator token type."""
    return _OPERATOR_TEXT.get(operator, operator.name)


class SexpVisitor(AstVisitor):
    """Render a tree as a parenthesized prefix expression, for debugging and tests."""

    def _wrap(self, head: str, *parts: Any) -> str:
        rendered = [p.accept(self) if isinstance(p, AstNode) else str(p) for p in parts]
        return "(" + " ".join([head] + rendered) + ")"

    def visit_Literal(self, node: Literal) -> str:
        if node.value is None:
            return "nil"
        if isinstance(node.value, bool):
            return "true" if node.value else "false"
        if isinstance(node.value, str):
            return f'"{node.value}"'
        if float(node.value).is_integer():
            return str(int(node.value))
        return repr(node.value)

    def visit_Variable(self, node: Variable) -> str:
        return node.name

    def visit_Assign(self, node: Assign) -> str:
        return self._wrap("=", node.name, node.value)

    def visit_Unary(self, node: Unary) -> str:
        return self._wrap(operator_text(node.operator), node.operand)

    def visit_Binary(self, node: Binary) -> str:
        return self._wrap(operator_text(node.operator), node.left, node.right)

    def visit_Logical(self, node: Logical) -> str:
        return self._wrap(operator_text(node.operator), node.left, node.right)

    def visit_Call(self, node: Call) -> str:
        return self._wrap("call", node.callee, *node.arguments)

    def visit_Grouping(self, node: Grouping) -> str:
        return self._wrap("group", node.expression)

    def visit_ExpressionStatement(self, node: ExpressionStatement) -> str:
        return self._wrap(";", node.expression)

    def visit_PrintStatement(self, node: PrintStatement) -> str:
        return self._wrap("print", node.expression)

    def visit_VarDecl(self, node: VarDecl) -> str:
        if node.initializer is None:
            return self._wrap("var", node.name)
        return self._wrap("var", node.name, node.initializer)

    def visit_Block(self, node: Block) -> str:
        return self._wrap("block", *node.statements)

    def visit_IfStatement(self, node: IfStatement) -> str:
        if node.else_branch is None:
            return self._wrap("if", node.condition, node.then_branch)
        return self._wrap("if", node.condition, node.then_branch, node.else_branch)

    def visit_WhileStatement(self, node: WhileStatement) -> str:
        return self._wrap("while", node.condition, node.body)

    def visit_FunctionDecl(self, node: FunctionDecl) -> str:
        params = "(" + " ".join(p.name for p in node.params) + ")"
        return self._wrap("fun", node.name, params, *node.body)

    def visit_ReturnStatement(self, node: ReturnStatement) -> str:
        if node.value is None:
            return "(return)"
        return self._wrap("return", node.value)

    def visit_Program(self, node: Program) -> str:
        return "\n".join(stmt.accept(self) for stmt in node.statements)


def format_ast(node: AstNode) -> str:
    """Format an AST node as a prefix expression string."""
    return node.accept(SexpVisitor())
