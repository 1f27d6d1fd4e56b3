"""
Kestrel Abstract Syntax Tree

Defines AST node classes for the Kestrel language.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .tokens import Token


# =============================================================================
# Base Classes
# =============================================================================

class ASTNode(ABC):
    """Base class for all AST nodes."""

    @abstractmethod
    def accept(self, visitor: 'ASTVisitor') -> Any:
        """Accept a visitor for traversal."""
        pass


class Expression(ASTNode):
    """Base class for expression nodes."""
    pass


class Statement(ASTNode):
    """Base class for statement nodes."""
    pass


# =============================================================================
# Expressions
# =============================================================================

@dataclass
class Identifier(Expression):
    name: str
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_identifier(self)

    def __str__(self) -> str:
        return self.name


@dataclass
class IntegerLiteral(Expression):
    value: int
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_integer(self)

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class BooleanLiteral(Expression):
    value: bool
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_boolean(self)

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass
class StringLiteral(Expression):
    """String literal without its surrounding quotes."""
    value: str
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_string(self)

    def __str__(self) -> str:
        return f'"{self.value}"'


@dataclass
class PrefixExpression(Expression):
    """Prefix operator expression (!, -)."""
    operator: str
    right: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_prefix(self)

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


@dataclass
class InfixExpression(Expression):
    """Binary operator expression."""
    left: Expression
    operator: str
    right: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_infix(self)

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass
class IfExpression(Expression):
    """Conditional expression; yields the value of the branch taken."""
    condition: Expression
    consequence: 'BlockStatement'
    alternative: Optional['BlockStatement'] = None
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_if(self)

    def __str__(self) -> str:
        text = f"if {self.condition} {self.consequence}"
        if self.alternative is not None:
            text += f" else {self.alternative}"
        return text


@dataclass
class FunctionLiteral(Expression):
    parameters: List[Identifier]
    body: 'BlockStatement'
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_function(self)

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"


@dataclass
class CallExpression(Expression):
    function: Expression
    arguments: List[Expression]
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_call(self)

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.function}({args})"


@dataclass
class ArrayLiteral(Expression):
    elements: List[Expression]
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_array(self)

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass
class IndexExpression(Expression):
    """Index/subscript expression (a[b])."""
    left: Expression
    index: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_index(self)

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


@dataclass
class MapLiteral(Expression):
    """Map literal; pairs keep their source order."""
    pairs: List[Tuple[Expression, Expression]]
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_map(self)

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.pairs) + "}"


# =============================================================================
# Statements
# =============================================================================

@dataclass
class LetStatement(Statement):
    name: Identifier
    value: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_let(self)

    def __str__(self) -> str:
        return f"let {self.name} = {self.value};"


@dataclass
class ReturnStatement(Statement):
    value: Optional[Expression] = None
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_return(self)

    def __str__(self) -> str:
        if self.value is None:
            return "return;"
        return f"return {self.value};"


@dataclass
class ExpressionStatement(Statement):
    expression: Expression
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_expression_statement(self)

    def __str__(self) -> str:
        return str(self.expression)


@dataclass
class BlockStatement(Statement):
    statements: List[Statement] = field(default_factory=list)
    token: Optional[Token] = field(default=None, compare=False, repr=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_block(self)

    def __str__(self) -> str:
        return "{ " + " ".join(str(s) for s in self.statements) + " }"


@dataclass
class Program(ASTNode):
    """Root node: the statements of a compilation unit."""
    statements: List[Statement] = field(default_factory=list)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_program(self)

    def __str__(self) -> str:
        return " ".join(str(s) for s in self.statements)


# =============================================================================
# Visitor Interface
# =============================================================================

class ASTVisitor(ABC):
    """Visitor interface for AST traversal."""

    @abstractmethod
    def visit_program(self, node: Program) -> Any:
        pass

    # Statements
    @abstractmethod
    def visit_let(self, node: LetStatement) -> Any:
        pass

    @abstractmethod
    def visit_return(self, node: ReturnStatement) -> Any:
        pass

    @abstractmethod
    def visit_expression_statement(self, node: ExpressionStatement) -> Any:
        pass

    @abstractmethod
    def visit_block(self, node: BlockStatement) -> Any:
        pass

    # Expressions
    @abstractmethod
    def visit_identifier(self, node: Identifier) -> Any:
        pass

    @abstractmethod
    def visit_integer(self, node: IntegerLiteral) -> Any:
        pass

    @abstractmethod
    def visit_boolean(self, node: BooleanLiteral) -> Any:
        pass

    @abstractmethod
    def visit_string(self, node: StringLiteral) -> Any:
        pass

    @abstractmethod
    def visit_prefix(self, node: PrefixExpression) -> Any:
        pass

    @abstractmethod
    def visit_infix(self, node: InfixExpression) -> Any:
        pass

    @abstractmethod
    def visit_if(self, node: IfExpression) -> Any:
        pass

    @abstractmethod
    def visit_function(self, node: FunctionLiteral) -> Any:
        pass

    @abstractmethod
    def visit_call(self, node: CallExpression) -> Any:
        pass

    @abstractmethod
    def visit_array(self, node: ArrayLiteral) -> Any:
        pass

    @abstractmethod
    def visit_index(self, node: IndexExpression) -> Any:
        pass

    @abstractmethod
    def visit_map(self, node: MapLiteral) -> Any:
        pass
