"""Tests for Java code generation."""

import pytest

from plclang.compiler.analyzer import Analyzer
from plclang.compiler.codegen import JavaGenerator, java_escape


def method_body(java: str) -> list[str]:
    """Lines between the user main's header and its closing brace."""
    lines = java.splitlines()
    start = lines.index("    int main() {") + 1
    end = lines.index("    }", start)
    return lines[start:end]


class TestSource:
    """Whole-program rendering."""

    def test_hello_world(self, generate):
        java = generate('DEF main(): Integer DO print("Hello, World!"); RETURN 0; END')
        assert java == "\n".join(
            [
                "public class Main {",
                "",
                "    public static void main(String[] args) {",
                "        System.exit(new Main().main());",
                "    }",
                "",
                "    int main() {",
                '        System.out.println("Hello, World!");',
                "        return 0;",
                "    }",
                "",
                "}",
            ]
        )

    def test_fields(self, generate):
        java = generate(
            "LET x: Integer; LET CONST pi: Decimal = 3.14; LET name: String = \"plc\"; "
            "DEF main(): Integer DO RETURN 0; END"
        )
        lines = java.splitlines()
        assert lines[2:6] == [
            "    int x;",
            "    final double pi = 3.14;",
            '    String name = "plc";',
            "",
        ]
        assert lines[6] == "    public static void main(String[] args) {"

    def test_method_signature(self, generate):
        java = generate(
            "DEF main(): Integer DO RETURN add(1, 2); END "
            "DEF add(a: Integer, b: Integer): Integer DO RETURN a + b; END "
            "DEF show(c: Character, s: String) DO print(c); END"
        )
        assert "    int add(int a, int b) {" in java.splitlines()
        assert "    Void show(char c, String s) {" in java.splitlines()
        assert "        return add(1, 2);" in java.splitlines()

    def test_empty_method(self, generate):
        java = generate("DEF main(): Integer DO RETURN 0; END DEF noop() DO END")
        assert "    Void noop() {}" in java.splitlines()


class TestStatements:
    """Statement rendering inside a method body."""

    def test_declarations(self, generate):
        java = generate(
            "DEF main(): Integer DO LET a: Integer; LET b = 1.5; LET c: Boolean = TRUE; RETURN 0; END"
        )
        assert method_body(java) == [
            "        int a;",
            "        double b = 1.5;",
            "        boolean c = true;",
            "        return 0;",
        ]

    def test_if_else(self, generate):
        java = generate(
            "DEF main(): Integer DO IF 1 < 2 AND TRUE DO print(1); ELSE print(2); END RETURN 0; END"
        )
        assert method_body(java)[:5] == [
            "        if (1 < 2 && true) {",
            "            System.out.println(1);",
            "        } else {",
            "            System.out.println(2);",
            "        }",
        ]

    def test_if_without_else(self, generate):
        java = generate("DEF main(): Integer DO IF FALSE OR TRUE DO print(1); END RETURN 0; END")
        assert method_body(java)[:3] == [
            "        if (false || true) {",
            "            System.out.println(1);",
            "        }",
        ]

    def test_for(self, generate):
        java = generate(
            "DEF main(): Integer DO LET num: Integer; "
            "FOR (num = 0; num < 5; num = num + 1) print(num); END RETURN 0; END"
        )
        assert method_body(java)[1:4] == [
            "        for ( num = 0; num < 5; num = num + 1 ) {",
            "            System.out.println(num);",
            "        }",
        ]

    def test_for_without_assignments(self, generate):
        java = generate(
            "DEF main(): Integer DO LET i = 0; FOR (; i < 3;) i = i + 1; END RETURN i; END"
        )
        assert method_body(java)[1] == "        for ( ; i < 3; ) {"
        assert method_body(java)[2] == "            i = i + 1;"

    def test_while_with_group(self, generate):
        java = generate(
            "DEF main(): Integer DO LET i = 0; WHILE i < 10 DO i = (i + 1) * 2; END RETURN i; END"
        )
        assert method_body(java)[1:4] == [
            "        while (i < 10) {",
            "            i = (i + 1) * 2;",
            "        }",
        ]


class TestExpressions:
    """Expression rendering."""

    @pytest.mark.parametrize(
        "literal,expected",
        [
            ("NIL", "null"),
            ("'a'", "'a'"),
            ("'\\''", "'\\''"),
            ('"say \\"hi\\""', '"say \\"hi\\""'),
            ('"line\\n"', '"line\\n"'),
            ("-5", "-5"),
            ("2.50", "2.50"),
        ],
    )
    def test_literals(self, generate, literal, expected):
        java = generate(f"DEF main(): Integer DO print({literal}); RETURN 0; END")
        assert method_body(java)[0] == f"        System.out.println({expected});"

    def test_expression_returns_text(self, parse_expression):
        expression = parse_expression('"n = " + 1')
        Analyzer().analyze(expression)
        assert JavaGenerator().generate(expression) == '"n = " + 1'

    def test_custom_indent(self, analyze):
        tree = analyze("DEF main(): Integer DO RETURN 0; END")
        java = JavaGenerator(indent_size=2).generate(tree)
        assert "  int main() {" in java.splitlines()
        assert "    return 0;" in java.splitlines()


class TestJavaEscape:
    def test_quotes(self):
        assert java_escape('a"b', '"') == 'a\\"b'
        assert java_escape("a'b", '"') == "a'b"
        assert java_escape("'", "'") == "\\'"

    def test_control_characters(self):
        assert java_escape("\b\r\t\n\\", '"') == "\\b\\r\\t\\n\\\\"
