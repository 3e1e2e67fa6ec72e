"""
plclang tree-walking interpreter.

Executes an analyzed AST. Statements return an outcome: ``None`` when they
complete normally, or a ``Returning`` carrying the value of a RETURN that
must travel outward to the nearest method invocation.
"""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Context, Decimal, DecimalException, localcontext
from typing import Iterator, Optional, TextIO

from plclang.compiler.ast_nodes import (
    Access,
    ASTVisitor,
    Assignment,
    Binary,
    Declaration,
    Expression,
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
    DECIMAL_TYPE,
    INTEGER_TYPE,
    NIL,
    NIL_TYPE,
    STRING_TYPE,
    PlcObject,
    Scope,
    Type,
)
from plclang.utils.errors import ArithmeticError, RuntimeError as PlcRuntimeError, TypeViolation

logger = logging.getLogger(__name__)

# Wide enough that decimal +, - and * never round
EXACT_CONTEXT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)


@dataclass(frozen=True, slots=True)
class Returning:
    """Outcome of a statement that executed RETURN."""

    value: PlcObject


# None means the statement completed normally
Outcome = Optional[Returning]

TRUE = PlcObject(BOOLEAN_TYPE, True)
FALSE = PlcObject(BOOLEAN_TYPE, False)


def _boolean(value: bool) -> PlcObject:
    return TRUE if value else FALSE


def _truncating_divide(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def _unscaled(value: Decimal) -> tuple[int, int]:
    """Split a decimal into (unscaled integer, scale), so value == unscaled * 10**-scale."""
    sign, digits, exponent = value.as_tuple()
    unscaled = int("".join(map(str, digits)) or "0")
    return (-unscaled if sign else unscaled), -exponent


def _divide_half_even(left: Decimal, right: Decimal) -> Decimal:
    """
    Divide exactly, rounding half-to-even to the dividend's scale.

    Works on unscaled integers so no intermediate result is rounded:
    1.0 / 3.0 is 0.3 and 7.0 / 2.0 is 3.5.
    """
    left_unscaled, scale = _unscaled(left)
    right_unscaled, right_scale = _unscaled(right)

    numerator = abs(left_unscaled)
    denominator = abs(right_unscaled)
    # quotient * 10**-scale == left / right
    if right_scale >= 0:
        numerator *= 10**right_scale
    else:
        denominator *= 10**-right_scale

    quotient, remainder = divmod(numerator, denominator)
    if 2 * remainder > denominator or (2 * remainder == denominator and quotient % 2 == 1):
        quotient += 1

    negative = quotient != 0 and (left_unscaled < 0) != (right_unscaled < 0)
    return Decimal((int(negative), tuple(int(digit) for digit in str(quotient)), -scale))


class Interpreter(ASTVisitor):
    """
    Evaluates analyzed plclang programs.

    Usage:
        interpreter = Interpreter()
        result = interpreter.run(source_node)
    """

    def __init__(
        self,
        scope: Optional[Scope] = None,
        stdout: Optional[TextIO] = None,
    ) -> None:
        """
        Initialize the interpreter.

        Args:
            scope: Enclosing scope. A fresh scope whose parent holds the
                built-ins is used when omitted.
            stdout: Stream that print writes to (default: sys.stdout)
        """
        self.stdout = stdout
        self.scope = scope if scope is not None else Scope(self._builtin_scope())
        # Runtime error caught at the top-level main invocation, if any
        self.last_error: Optional[PlcRuntimeError] = None

    def _builtin_scope(self) -> Scope:
        scope = Scope(None)
        scope.define_function("print", "System.out.println", [ANY_TYPE], NIL_TYPE, self._print)
        return scope

    def _print(self, arguments: list[PlcObject]) -> PlcObject:
        stream = self.stdout if self.stdout is not None else sys.stdout
        stream.write(f"{arguments[0]}\n")
        return NIL

    @contextmanager
    def _child_scope(self, parent: Optional[Scope] = None) -> Iterator[Scope]:
        """
        Run a block in a new scope, restoring the previous scope on exit.

        Args:
            parent: Parent of the new scope (default: the current scope)
        """
        previous = self.scope
        self.scope = Scope(parent if parent is not None else previous)
        try:
            yield self.scope
        finally:
            self.scope = previous

    def _execute_block(self, statements: list[Statement]) -> Outcome:
        """Execute statements in a fresh child scope, stopping at RETURN."""
        with self._child_scope():
            for statement in statements:
                outcome = self.execute(statement)
                if outcome is not None:
                    return outcome
        return None

    def _require_type(self, expected: Type, value: PlcObject) -> PlcObject:
        if value.type != expected:
            raise TypeViolation(f"Expected {expected}, received {value.type} ({value})")
        return value

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def run(self, source: Source) -> PlcObject:
        """
        Register fields and methods, then invoke main().

        A runtime error raised by a field initializer or by main is
        logged, stored on last_error and the run yields NIL.

        Returns:
            The value main returned, or NIL
        """
        return self.visit(source)

    def execute(self, statement: Statement) -> Outcome:
        return self.visit(statement)

    def evaluate(self, expression: Expression) -> PlcObject:
        return self.visit(expression)

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def visit_source(self, node: Source) -> PlcObject:
        self.last_error = None
        try:
            for field in node.fields:
                self.visit(field)
            for method in node.methods:
                self.visit(method)
            return self.scope.lookup_function("main", 0).invoke([])
        except PlcRuntimeError as e:
            # Reported by the host; last_error carries it
            logger.info("Runtime error: %s", e)
            self.last_error = e
            return NIL

    def visit_field(self, node: Field) -> None:
        value = self.evaluate(node.value) if node.value is not None else NIL
        self.scope.define_variable(node.name, node.name, ANY_TYPE, node.constant, value)

    def visit_method(self, node: Method) -> None:
        defining_scope = self.scope

        def invoke(arguments: list[PlcObject]) -> PlcObject:
            logger.debug("Invoking %s/%d", node.name, len(arguments))
            with self._child_scope(defining_scope):
                for name, argument in zip(node.parameters, arguments):
                    self.scope.define_variable(name, name, ANY_TYPE, False, argument)
                for statement in node.statements:
                    outcome = self.execute(statement)
                    if outcome is not None:
                        return outcome.value
            return NIL

        self.scope.define_function(
            node.name, node.name, [ANY_TYPE] * len(node.parameters), ANY_TYPE, invoke
        )

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def visit_expression_statement(self, node: ExpressionStatement) -> Outcome:
        self.evaluate(node.expression)
        return None

    def visit_declaration(self, node: Declaration) -> Outcome:
        value = self.evaluate(node.value) if node.value is not None else NIL
        self.scope.define_variable(node.name, node.name, ANY_TYPE, False, value)
        return None

    def visit_assignment(self, node: Assignment) -> Outcome:
        if not isinstance(node.receiver, Access):
            raise TypeViolation("Assignment target must be a variable or field")

        value = self.evaluate(node.value)
        receiver = node.receiver
        if receiver.receiver is not None:
            self.evaluate(receiver.receiver).set_field(receiver.name, value)
        else:
            self.scope.lookup_variable(receiver.name).value = value
        return None

    def visit_if(self, node: If) -> Outcome:
        condition = self._require_type(BOOLEAN_TYPE, self.evaluate(node.condition))
        if condition.value:
            return self._execute_block(node.then_statements)
        return self._execute_block(node.else_statements)

    def visit_for(self, node: For) -> Outcome:
        if node.initialization is not None:
            self.execute(node.initialization)

        while self._require_type(BOOLEAN_TYPE, self.evaluate(node.condition)).value:
            outcome = self._execute_block(node.statements)
            if outcome is not None:
                return outcome
            if node.increment is not None:
                self.execute(node.increment)
        return None

    def visit_while(self, node: While) -> Outcome:
        while self._require_type(BOOLEAN_TYPE, self.evaluate(node.condition)).value:
            outcome = self._execute_block(node.statements)
            if outcome is not None:
                return outcome
        return None

    def visit_return(self, node: Return) -> Outcome:
        return Returning(self.evaluate(node.value))

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def visit_literal(self, node: Literal) -> PlcObject:
        if node.kind is LiteralKind.NIL:
            return NIL
        if node.kind is LiteralKind.BOOLEAN:
            return _boolean(node.value)
        if node.kind is LiteralKind.CHARACTER:
            return PlcObject(CHARACTER_TYPE, node.value)
        if node.kind is LiteralKind.STRING:
            return PlcObject(STRING_TYPE, node.value)
        if node.kind is LiteralKind.INTEGER:
            return PlcObject(INTEGER_TYPE, node.value)
        return PlcObject(DECIMAL_TYPE, node.value)

    def visit_group(self, node: Group) -> PlcObject:
        return self.evaluate(node.expression)

    def visit_binary(self, node: Binary) -> PlcObject:
        operator = node.operator

        if operator == "OR":
            if self._require_type(BOOLEAN_TYPE, self.evaluate(node.left)).value:
                return TRUE
            return self._require_type(BOOLEAN_TYPE, self.evaluate(node.right))

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if operator == "AND":
            self._require_type(BOOLEAN_TYPE, left)
            self._require_type(BOOLEAN_TYPE, right)
            return _boolean(left.value and right.value)
        if operator == "==":
            return _boolean(left == right)
        if operator == "!=":
            return _boolean(left != right)
        if operator in ("<", "<=", ">", ">="):
            return self._compare(operator, left, right)
        if operator == "+" and STRING_TYPE in (left.type, right.type):
            return PlcObject(STRING_TYPE, f"{left}{right}")
        if operator in ("+", "-", "*", "/"):
            return self._arithmetic(operator, left, right)
        raise TypeViolation(f"Unknown binary operator '{operator}'")

    def _compare(self, operator: str, left: PlcObject, right: PlcObject) -> PlcObject:
        if not left.type.is_comparable_leaf:
            raise TypeViolation(f"{left.type} values are not comparable")
        self._require_type(left.type, right)

        if left.value < right.value:
            order = -1
        elif left.value > right.value:
            order = 1
        else:
            order = 0

        return _boolean(
            {
                "<": order < 0,
                "<=": order <= 0,
                ">": order > 0,
                ">=": order >= 0,
            }[operator]
        )

    def _arithmetic(self, operator: str, left: PlcObject, right: PlcObject) -> PlcObject:
        if left.type not in (INTEGER_TYPE, DECIMAL_TYPE):
            raise TypeViolation(f"Operator '{operator}' is not defined for {left.type}")
        self._require_type(left.type, right)
        a, b = left.value, right.value

        if operator == "/":
            if b == 0:
                raise ArithmeticError("Division by zero")
            if left.type == INTEGER_TYPE:
                return PlcObject(INTEGER_TYPE, _truncating_divide(a, b))
            return PlcObject(DECIMAL_TYPE, _divide_half_even(a, b))

        try:
            with localcontext(EXACT_CONTEXT):
                if operator == "+":
                    result = a + b
                elif operator == "-":
                    result = a - b
                else:
                    result = a * b
        except DecimalException as e:
            raise ArithmeticError(f"Decimal {operator} overflowed: {e}") from e
        return PlcObject(left.type, result)

    def visit_access(self, node: Access) -> PlcObject:
        if node.receiver is not None:
            return self.evaluate(node.receiver).get_field(node.name)
        return self.scope.lookup_variable(node.name).value

    def visit_function(self, node: Function) -> PlcObject:
        if node.receiver is not None:
            receiver = self.evaluate(node.receiver)
            arguments = [self.evaluate(argument) for argument in node.arguments]
            return receiver.call_method(node.name, arguments)

        arguments = [self.evaluate(argument) for argument in node.arguments]
        return self.scope.lookup_function(node.name, len(arguments)).invoke(arguments)


def run(source: Source, stdout: Optional[TextIO] = None) -> PlcObject:
    """
    Convenience function to run an analyzed Source node.

    Args:
        source: An analyzed Source node
        stdout: Stream that print writes to

    Returns:
        The value main returned, or NIL after a runtime error
    """
    return Interpreter(stdout=stdout).run(source)
