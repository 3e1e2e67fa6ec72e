"""
plclang semantic analyzer.

A single pre-order pass over the AST that resolves every name to a
Variable or Function binding, computes every expression's static type and
rejects ill-formed programs. Results are written into the nodes'
annotation slots for the interpreter and code generator.
"""

from decimal import Decimal
from typing import Optional

from plclang.compiler.ast_nodes import (
    Access,
    ASTNode,
    ASTVisitor,
    Assignment,
    Binary,
    Declaration,
    ExpressionStatement,
    Field,
    For,
    Function,
    Group,
    If,
    Literal,
    LiteralKind,
    Method,
    Return,
    Source,
    Statement,
    While,
)
from plclang.compiler.environment import (
    ANY_TYPE,
    BOOLEAN_TYPE,
    CHARACTER_TYPE,
    COMPARABLE_TYPE,
    DECIMAL_TYPE,
    INTEGER_TYPE,
    NIL,
    NIL_TYPE,
    STRING_TYPE,
    Scope,
    Type,
    get_type,
    require_assignable,
)
from plclang.utils.errors import (
    LiteralRangeError,
    PlcError,
    StructuralError,
    TypeMismatchError,
)

INTEGER_MIN = -(2**31)
INTEGER_MAX = 2**31 - 1
# Largest finite IEEE 754 double
DECIMAL_MAX = Decimal("1.7976931348623157E+308")

LITERAL_TYPES: dict[LiteralKind, Type] = {
    LiteralKind.BOOLEAN: BOOLEAN_TYPE,
    LiteralKind.STRING: STRING_TYPE,
    LiteralKind.CHARACTER: CHARACTER_TYPE,
    LiteralKind.NIL: NIL_TYPE,
    LiteralKind.INTEGER: INTEGER_TYPE,
    LiteralKind.DECIMAL: DECIMAL_TYPE,
}

ARITHMETIC_OPERATORS = frozenset({"+", "-", "*", "/"})
LOGICAL_OPERATORS = frozenset({"AND", "OR"})
COMPARISON_OPERATORS = frozenset({"<", "<=", ">", ">=", "==", "!="})


def _static_builtin(arguments):
    # Analysis never calls functions
    return NIL


def builtin_scope() -> Scope:
    """Create the outermost analysis scope holding the built-in functions."""
    scope = Scope(None)
    scope.define_function("print", "System.out.println", [ANY_TYPE], NIL_TYPE, _static_builtin)
    return scope


class Analyzer(ASTVisitor):
    """
    Resolves names and checks types, failing on the first problem.

    Usage:
        analyzer = Analyzer()
        analyzer.analyze(source_node)
    """

    def __init__(self, scope: Optional[Scope] = None) -> None:
        """
        Initialize the analyzer.

        Args:
            scope: Enclosing scope for analysis. A fresh scope whose
                parent holds the built-ins is used when omitted.
        """
        self.scope = scope if scope is not None else Scope(builtin_scope())
        # Declared return type of the method being analyzed
        self._return_type: Optional[Type] = None

    def analyze(self, node: ASTNode) -> None:
        """
        Analyze a Source or any single node against the current scope.

        Raises:
            SemanticError: On the first semantic problem found
        """
        self.visit(node)

    def _enter_scope(self) -> None:
        self.scope = Scope(self.scope)

    def _exit_scope(self) -> None:
        self.scope = self.scope.parent

    def _visit_block(self, statements: list[Statement]) -> None:
        """Visit statements in a fresh child scope."""
        self._enter_scope()
        try:
            for statement in statements:
                self.visit(statement)
        finally:
            self._exit_scope()

    def _resolve_type(self, name: str, node: ASTNode) -> Type:
        try:
            return get_type(name)
        except PlcError as e:
            raise self._locate(e, node)

    @staticmethod
    def _locate(error: PlcError, node: ASTNode) -> PlcError:
        """Attach a node's location to an error raised without one."""
        if error.location is None and node.location is not None:
            error.location = node.location
            error.args = (error._format_message(),)
        return error

    def _require_assignable(self, target: Type, source: Type, node: ASTNode) -> None:
        try:
            require_assignable(target, source)
        except TypeMismatchError as e:
            raise self._locate(e, node)

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def visit_source(self, node: Source) -> None:
        for field in node.fields:
            self.visit(field)
        # Declare every signature first so methods can call later ones
        for method in node.methods:
            self._declare_method(method)
        for method in node.methods:
            self.visit(method)

        try:
            main = self.scope.lookup_function("main", 0)
        except PlcError as e:
            raise self._locate(e, node)
        self._require_assignable(INTEGER_TYPE, main.return_type, node)

    def visit_field(self, node: Field) -> None:
        field_type = self._resolve_type(node.type_name, node)

        if node.value is not None:
            self.visit(node.value)
            self._require_assignable(field_type, node.value.type, node.value)
        elif node.constant:
            raise StructuralError(
                f"Constant field '{node.name}' must have an initial value", node.location
            )

        node.variable = self.scope.define_variable(
            node.name, node.name, field_type, node.constant, NIL
        )

    def _declare_method(self, node: Method) -> None:
        """Register a method's signature in the current scope."""
        parameter_types = [self._resolve_type(name, node) for name in node.parameter_type_names]
        return_type = NIL_TYPE
        if node.return_type_name is not None:
            return_type = self._resolve_type(node.return_type_name, node)

        node.function = self.scope.define_function(
            node.name, node.name, parameter_types, return_type, _static_builtin
        )

    def visit_method(self, node: Method) -> None:
        if node.bound_function is None:
            self._declare_method(node)
        parameter_types = node.function.parameter_types
        return_type = node.function.return_type

        enclosing_return_type = self._return_type
        self._return_type = return_type
        self._enter_scope()
        try:
            for name, parameter_type in zip(node.parameters, parameter_types):
                self.scope.define_variable(name, name, parameter_type, False, NIL)
            for statement in node.statements:
                self.visit(statement)
        finally:
            self._exit_scope()
            self._return_type = enclosing_return_type

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def visit_expression_statement(self, node: ExpressionStatement) -> None:
        if not isinstance(node.expression, Function):
            raise StructuralError("Expression statements must be function calls", node.location)
        self.visit(node.expression)

    def visit_declaration(self, node: Declaration) -> None:
        if node.type_name is None and node.value is None:
            raise StructuralError(
                f"Declaration of '{node.name}' needs a type or an initial value", node.location
            )

        declared_type = None
        if node.type_name is not None:
            declared_type = self._resolve_type(node.type_name, node)

        if node.value is not None:
            self.visit(node.value)
            if declared_type is None:
                declared_type = node.value.type
            else:
                self._require_assignable(declared_type, node.value.type, node.value)

        node.variable = self.scope.define_variable(
            node.name, node.name, declared_type, False, NIL
        )

    def visit_assignment(self, node: Assignment) -> None:
        if not isinstance(node.receiver, Access):
            raise StructuralError("Assignment target must be a variable or field", node.location)

        self.visit(node.receiver)
        self.visit(node.value)

        variable = node.receiver.variable
        if variable.constant:
            raise StructuralError(f"Cannot assign to constant '{variable.name}'", node.location)
        self._require_assignable(node.receiver.type, node.value.type, node.value)

    def visit_if(self, node: If) -> None:
        self.visit(node.condition)
        self._require_assignable(BOOLEAN_TYPE, node.condition.type, node.condition)

        if not node.then_statements:
            raise StructuralError("If statement must have a non-empty then branch", node.location)

        self._visit_block(node.then_statements)
        self._visit_block(node.else_statements)

    def visit_for(self, node: For) -> None:
        counter_type: Optional[Type] = None
        if node.initialization is not None:
            self._require_loop_assignment(node.initialization)
            self.visit(node.initialization)
            counter_type = node.initialization.receiver.type
            if not counter_type.is_comparable_leaf:
                raise TypeMismatchError(COMPARABLE_TYPE, counter_type, location=node.location)

        self.visit(node.condition)
        self._require_assignable(BOOLEAN_TYPE, node.condition.type, node.condition)

        if node.increment is not None:
            self._require_loop_assignment(node.increment)
            self.visit(node.increment)
            if counter_type is not None:
                self._require_assignable(
                    counter_type, node.increment.receiver.type, node.increment
                )

        if not node.statements:
            raise StructuralError("For loop must have a non-empty body", node.location)
        self._visit_block(node.statements)

    @staticmethod
    def _require_loop_assignment(statement: Statement) -> None:
        if not isinstance(statement, Assignment):
            raise StructuralError(
                "For loop initialization and increment must be assignments", statement.location
            )

    def visit_while(self, node: While) -> None:
        self.visit(node.condition)
        self._require_assignable(BOOLEAN_TYPE, node.condition.type, node.condition)

        if not node.statements:
            raise StructuralError("While loop must have a non-empty body", node.location)
        self._visit_block(node.statements)

    def visit_return(self, node: Return) -> None:
        if self._return_type is None:
            raise StructuralError("Return outside of a method", node.location)
        self.visit(node.value)
        self._require_assignable(self._return_type, node.value.type, node.value)

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def visit_literal(self, node: Literal) -> None:
        if node.kind is LiteralKind.INTEGER and not INTEGER_MIN <= node.value <= INTEGER_MAX:
            raise LiteralRangeError(
                f"Integer literal {node.value} is outside the range "
                f"[{INTEGER_MIN}, {INTEGER_MAX}]",
                node.location,
            )
        if node.kind is LiteralKind.DECIMAL and abs(node.value) > DECIMAL_MAX:
            raise LiteralRangeError(
                f"Decimal literal {node.value} is outside the double-precision range",
                node.location,
            )
        node.type = LITERAL_TYPES[node.kind]

    def visit_group(self, node: Group) -> None:
        if not isinstance(node.expression, Binary):
            raise StructuralError("Grouped expression must be a binary expression", node.location)
        self.visit(node.expression)
        node.type = node.expression.type

    def visit_binary(self, node: Binary) -> None:
        self.visit(node.left)
        self.visit(node.right)
        left, right = node.left.type, node.right.type
        operator = node.operator

        if operator in LOGICAL_OPERATORS:
            self._require_assignable(BOOLEAN_TYPE, left, node.left)
            self._require_assignable(BOOLEAN_TYPE, right, node.right)
            node.type = BOOLEAN_TYPE
        elif operator in COMPARISON_OPERATORS:
            self._require_assignable(COMPARABLE_TYPE, left, node.left)
            self._require_assignable(COMPARABLE_TYPE, right, node.right)
            node.type = BOOLEAN_TYPE
        elif operator == "+" and STRING_TYPE in (left, right):
            node.type = STRING_TYPE
        elif operator in ARITHMETIC_OPERATORS:
            if left == INTEGER_TYPE or left == DECIMAL_TYPE:
                self._require_assignable(left, right, node.right)
                node.type = left
            else:
                raise TypeMismatchError(INTEGER_TYPE, left, location=node.left.location)
        else:
            raise StructuralError(f"Unknown binary operator '{operator}'", node.location)

    def visit_access(self, node: Access) -> None:
        try:
            if node.receiver is not None:
                self.visit(node.receiver)
                node.variable = node.receiver.type.get_field(node.name)
            else:
                node.variable = self.scope.lookup_variable(node.name)
        except PlcError as e:
            raise self._locate(e, node)
        node.type = node.variable.type

    def visit_function(self, node: Function) -> None:
        try:
            if node.receiver is not None:
                self.visit(node.receiver)
                function = node.receiver.type.get_method(node.name, len(node.arguments))
                # Skip the implicit receiver parameter
                parameter_types = function.parameter_types[1:]
            else:
                function = self.scope.lookup_function(node.name, len(node.arguments))
                parameter_types = function.parameter_types
        except PlcError as e:
            raise self._locate(e, node)

        for argument, parameter_type in zip(node.arguments, parameter_types):
            self.visit(argument)
            self._require_assignable(parameter_type, argument.type, argument)

        node.function = function
        node.type = function.return_type


def analyze(node: ASTNode, scope: Optional[Scope] = None) -> None:
    """
    Convenience function to analyze a node.

    Args:
        node: Source or any single node to analyze
        scope: Optional enclosing scope

    Raises:
        SemanticError: On the first semantic problem found
    """
    Analyzer(scope).analyze(node)
