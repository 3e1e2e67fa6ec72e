"""
plclang Java code generator.

Renders an analyzed AST as Java source. The program becomes a single
``Main`` class whose static entry point exits with the value returned by
the plclang ``main`` method. Names and types come from the bindings the
analyzer attached, so ``print`` renders as ``System.out.println``.
"""

from __future__ import annotations

from typing import Any

from plclang.compiler.ast_nodes import (
    Access,
    ASTNode,
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

JAVA_OPERATORS = {"AND": "&&", "OR": "||"}

_JAVA_ESCAPES = {
    "\b": "\\b",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\\": "\\\\",
}


def java_escape(text: str, quote: str) -> str:
    """Escape text for a Java literal delimited by quote."""
    escaped = []
    for char in text:
        if char == quote:
            escaped.append("\\" + quote)
        else:
            escaped.append(_JAVA_ESCAPES.get(char, char))
    return "".join(escaped)


class JavaGenerator(ASTVisitor):
    """
    Generates Java source from an analyzed AST.

    Statements and declarations emit lines; expressions return their text.
    """

    def __init__(self, indent_size: int = 4) -> None:
        self.indent_size = indent_size
        self._indent_level = 0
        self._output: list[str] = []

    def generate(self, node: ASTNode) -> str:
        """
        Generate Java code for a Source, declaration, statement or expression.

        Args:
            node: An analyzed AST node

        Returns:
            Generated Java source code, lines joined with newlines
        """
        self._indent_level = 0
        self._output = []
        if isinstance(node, Expression):
            return self._expr(node)
        self.visit(node)
        return "\n".join(self._output)

    def _emit(self, text: str) -> None:
        """Emit a line of code with current indentation."""
        if text:
            indent = " " * (self._indent_level * self.indent_size)
            self._output.append(f"{indent}{text}")
        else:
            self._output.append("")

    def _indent(self) -> None:
        """Increase indentation level."""
        self._indent_level += 1

    def _dedent(self) -> None:
        """Decrease indentation level."""
        self._indent_level = max(0, self._indent_level - 1)

    def _expr(self, node: Expression) -> str:
        return self.visit(node)

    def _emit_block(self, statements: list[Statement]) -> None:
        self._indent()
        for statement in statements:
            self.visit(statement)
        self._dedent()

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def visit_source(self, node: Source) -> None:
        self._emit("public class Main {")
        self._emit("")
        self._indent()

        if node.fields:
            for field in node.fields:
                self.visit(field)
            self._emit("")

        self._emit("public static void main(String[] args) {")
        self._indent()
        self._emit("System.exit(new Main().main());")
        self._dedent()
        self._emit("}")
        self._emit("")

        for method in node.methods:
            self.visit(method)
            self._emit("")

        self._dedent()
        self._emit("}")

    def visit_field(self, node: Field) -> None:
        variable = node.variable
        text = f"{variable.type.jvm_name} {variable.jvm_name}"
        if node.constant:
            text = f"final {text}"
        if node.value is not None:
            text += f" = {self._expr(node.value)}"
        self._emit(f"{text};")

    def visit_method(self, node: Method) -> None:
        function = node.function
        parameters = ", ".join(
            f"{parameter_type.jvm_name} {name}"
            for parameter_type, name in zip(function.parameter_types, node.parameters)
        )
        header = f"{function.return_type.jvm_name} {function.jvm_name}({parameters}) {{"

        if not node.statements:
            self._emit(f"{header}}}")
            return

        self._emit(header)
        self._emit_block(node.statements)
        self._emit("}")

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def visit_expression_statement(self, node: ExpressionStatement) -> None:
        self._emit(f"{self._expr(node.expression)};")

    def visit_declaration(self, node: Declaration) -> None:
        variable = node.variable
        text = f"{variable.type.jvm_name} {variable.jvm_name}"
        if node.value is not None:
            text += f" = {self._expr(node.value)}"
        self._emit(f"{text};")

    def _assignment_text(self, node: Assignment) -> str:
        return f"{self._expr(node.receiver)} = {self._expr(node.value)}"

    def visit_assignment(self, node: Assignment) -> None:
        self._emit(f"{self._assignment_text(node)};")

    def visit_if(self, node: If) -> None:
        self._emit(f"if ({self._expr(node.condition)}) {{")
        self._emit_block(node.then_statements)
        if node.else_statements:
            self._emit("} else {")
            self._emit_block(node.else_statements)
        self._emit("}")

    def visit_for(self, node: For) -> None:
        header = "for ( "
        if node.initialization is not None:
            header += f"{self._assignment_text(node.initialization)};"
        else:
            header += ";"
        header += f" {self._expr(node.condition)};"
        if node.increment is not None:
            header += f" {self._assignment_text(node.increment)}"
        self._emit(f"{header} ) {{")
        self._emit_block(node.statements)
        self._emit("}")

    def visit_while(self, node: While) -> None:
        self._emit(f"while ({self._expr(node.condition)}) {{")
        self._emit_block(node.statements)
        self._emit("}")

    def visit_return(self, node: Return) -> None:
        self._emit(f"return {self._expr(node.value)};")

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def visit_literal(self, node: Literal) -> str:
        if node.kind is LiteralKind.NIL:
            return "null"
        if node.kind is LiteralKind.BOOLEAN:
            return "true" if node.value else "false"
        if node.kind is LiteralKind.CHARACTER:
            return "'" + java_escape(node.value, "'") + "'"
        if node.kind is LiteralKind.STRING:
            return '"' + java_escape(node.value, '"') + '"'
        return str(node.value)

    def visit_group(self, node: Group) -> str:
        return f"({self._expr(node.expression)})"

    def visit_binary(self, node: Binary) -> str:
        operator = JAVA_OPERATORS.get(node.operator, node.operator)
        return f"{self._expr(node.left)} {operator} {self._expr(node.right)}"

    def visit_access(self, node: Access) -> str:
        name = node.variable.jvm_name
        if node.receiver is not None:
            return f"{self._expr(node.receiver)}.{name}"
        return name

    def visit_function(self, node: Function) -> str:
        arguments = ", ".join(self._expr(argument) for argument in node.arguments)
        name = node.function.jvm_name
        if node.receiver is not None:
            return f"{self._expr(node.receiver)}.{name}({arguments})"
        return f"{name}({arguments})"


def generate(node: Any) -> str:
    """
    Convenience function to render an analyzed node as Java.

    Args:
        node: An analyzed AST node

    Returns:
        Generated Java source code
    """
    return JavaGenerator().generate(node)
