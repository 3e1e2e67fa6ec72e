"""
Abstract Syntax Tree (AST) node definitions for plclang.

The tree has three layers: declarations (Source, Field, Method),
statements and expressions. Nodes are built once by the parser. The only
later mutation is the analyzer filling each node's annotation slots
(resolved types and bindings), each of which may be written once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Optional, Union

from plclang.utils.errors import AnnotationError, SourceLocation

if TYPE_CHECKING:
    from plclang.compiler.environment import Function as FunctionBinding
    from plclang.compiler.environment import Type, Variable


class ASTNode(ABC):
    """Base class for all AST nodes."""

    location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass


class ASTVisitor(ABC):
    """
    Visitor pattern base class for AST traversal.

    Implemented by the analyzer, interpreter and code generator.
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


def _read_slot(node: ASTNode, slot: str) -> Any:
    value = getattr(node, slot)
    if value is None:
        raise AnnotationError(
            f"{type(node).__name__} has no '{slot}' annotation; was it analyzed?",
            node.location,
        )
    return value


def _write_slot(node: ASTNode, slot: str, value: Any) -> None:
    current = getattr(node, slot)
    if current is not None and current is not value:
        raise AnnotationError(
            f"{type(node).__name__} '{slot}' annotation is already set",
            node.location,
        )
    object.__setattr__(node, slot, value)


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class Expression(ASTNode):
    """Base class for expressions; carries the resolved static type."""

    resolved_type: Optional[Type] = field(default=None, init=False, repr=False, compare=False)

    @property
    def type(self) -> Type:
        return _read_slot(self, "resolved_type")

    @type.setter
    def type(self, value: Type) -> None:
        _write_slot(self, "resolved_type", value)


class LiteralKind(Enum):
    """The host kinds a literal can take."""

    BOOLEAN = auto()
    STRING = auto()
    CHARACTER = auto()
    NIL = auto()
    INTEGER = auto()
    DECIMAL = auto()


LiteralValue = Union[bool, str, int, Decimal, None]


@dataclass(slots=True)
class Literal(Expression):
    """
    A literal value.

    Examples:
        TRUE, NIL, 42, -1.5, 'c', "text"
    """

    kind: LiteralKind
    value: LiteralValue
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_literal(self)


@dataclass(slots=True)
class Group(Expression):
    """A parenthesized expression: (a + b)."""

    expression: Expression
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_group(self)


@dataclass(slots=True)
class Binary(Expression):
    """A binary operation: left op right."""

    operator: str
    left: Expression
    right: Expression
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_binary(self)


@dataclass(slots=True)
class Access(Expression):
    """
    A variable or field read.

    Examples:
        name, receiver.name
    """

    receiver: Optional[Expression]
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False)
    bound_variable: Optional[Variable] = field(default=None, init=False, repr=False, compare=False)

    @property
    def variable(self) -> Variable:
        return _read_slot(self, "bound_variable")

    @variable.setter
    def variable(self, value: Variable) -> None:
        _write_slot(self, "bound_variable", value)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_access(self)


@dataclass(slots=True)
class Function(Expression):
    """
    A function or method call.

    Examples:
        print(x), receiver.method(a, b)
    """

    receiver: Optional[Expression]
    name: str
    arguments: list[Expression] = field(default_factory=list)
    location: Optional[SourceLocation] = field(default=None, compare=False)
    bound_function: Optional[FunctionBinding] = field(default=None, init=False, repr=False, compare=False)

    @property
    def function(self) -> FunctionBinding:
        return _read_slot(self, "bound_function")

    @function.setter
    def function(self, value: FunctionBinding) -> None:
        _write_slot(self, "bound_function", value)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_function(self)


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


class Statement(ASTNode):
    """Base class for statements."""

    pass


@dataclass(slots=True)
class ExpressionStatement(Statement):
    """An expression evaluated for its side effect: print(x);"""

    expression: Expression
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_expression_statement(self)


@dataclass(slots=True)
class Declaration(Statement):
    """
    A local variable declaration.

    Examples:
        LET x: Integer;
        LET y = 1.0;
    """

    name: str
    type_name: Optional[str] = None
    value: Optional[Expression] = None
    location: Optional[SourceLocation] = field(default=None, compare=False)
    bound_variable: Optional[Variable] = field(default=None, init=False, repr=False, compare=False)

    @property
    def variable(self) -> Variable:
        return _read_slot(self, "bound_variable")

    @variable.setter
    def variable(self, value: Variable) -> None:
        _write_slot(self, "bound_variable", value)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_declaration(self)


@dataclass(slots=True)
class Assignment(Statement):
    """An assignment to a variable or field: receiver = value;"""

    receiver: Expression
    value: Expression
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_assignment(self)


@dataclass(slots=True)
class If(Statement):
    """IF condition DO then_statements [ELSE else_statements] END"""

    condition: Expression
    then_statements: list[Statement] = field(default_factory=list)
    else_statements: list[Statement] = field(default_factory=list)
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_if(self)


@dataclass(slots=True)
class For(Statement):
    """FOR ( [initialization] ; condition ; [increment] ) statements END"""

    initialization: Optional[Statement]
    condition: Expression
    increment: Optional[Statement]
    statements: list[Statement] = field(default_factory=list)
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_for(self)


@dataclass(slots=True)
class While(Statement):
    """WHILE condition DO statements END"""

    condition: Expression
    statements: list[Statement] = field(default_factory=list)
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_while(self)


@dataclass(slots=True)
class Return(Statement):
    """RETURN value;"""

    value: Expression
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_return(self)


# -----------------------------------------------------------------------------
# Declarations
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class Field(ASTNode):
    """
    A top-level field.

    Examples:
        LET x: Integer;
        LET CONST limit: Integer = 10;
    """

    name: str
    type_name: str
    constant: bool = False
    value: Optional[Expression] = None
    location: Optional[SourceLocation] = field(default=None, compare=False)
    bound_variable: Optional[Variable] = field(default=None, init=False, repr=False, compare=False)

    @property
    def variable(self) -> Variable:
        return _read_slot(self, "bound_variable")

    @variable.setter
    def variable(self, value: Variable) -> None:
        _write_slot(self, "bound_variable", value)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_field(self)


@dataclass(slots=True)
class Method(ASTNode):
    """
    A method definition.

    Example:
        DEF add(a: Integer, b: Integer): Integer DO RETURN a + b; END
    """

    name: str
    parameters: list[str] = field(default_factory=list)
    parameter_type_names: list[str] = field(default_factory=list)
    return_type_name: Optional[str] = None
    statements: list[Statement] = field(default_factory=list)
    location: Optional[SourceLocation] = field(default=None, compare=False)
    bound_function: Optional[FunctionBinding] = field(default=None, init=False, repr=False, compare=False)

    @property
    def function(self) -> FunctionBinding:
        return _read_slot(self, "bound_function")

    @function.setter
    def function(self, value: FunctionBinding) -> None:
        _write_slot(self, "bound_function", value)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_method(self)


@dataclass(slots=True)
class Source(ASTNode):
    """The root node: all fields followed by all methods."""

    fields: list[Field] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_source(self)
