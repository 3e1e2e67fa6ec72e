"""Tests for Rust-like diagnostic rendering."""

import pytest

from plclang.compiler import compile_source
from plclang.utils.diagnostics import (
    ERROR_DESCRIPTIONS,
    Diagnostic,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    diagnostic_from_error,
    error_code_for,
    levenshtein_distance,
    render_error,
    suggest_similar,
)
from plclang.utils.errors import (
    AnnotationError,
    ArithmeticError as PlcArithmeticError,
    LexError,
    LiteralRangeError,
    ParseError,
    PlcError,
    StructuralError,
    TypeMismatchError,
    TypeViolation,
    UnboundNameError,
)

COUNTER = """LET count: Integer = 0;
DEF main(): Integer DO
    RETURN cuont;
END
"""


def compile_error(source: str, filename: str = "counter.plc") -> PlcError:
    with pytest.raises(PlcError) as exc_info:
        compile_source(source, filename)
    return exc_info.value


class TestErrorCodes:
    @pytest.mark.parametrize(
        "error,code",
        [
            (LexError("bad"), ErrorCode.E0101),
            (ParseError("bad"), ErrorCode.E0201),
            (UnboundNameError("x"), ErrorCode.E0301),
            (TypeMismatchError("Integer", "String"), ErrorCode.E0302),
            (StructuralError("bad"), ErrorCode.E0303),
            (LiteralRangeError("bad"), ErrorCode.E0304),
            (AnnotationError("bad"), ErrorCode.E0305),
            (TypeViolation("bad"), ErrorCode.E0401),
            (PlcArithmeticError("bad"), ErrorCode.E0402),
            (PlcError("bad"), ""),
        ],
    )
    def test_error_code_for(self, error, code):
        assert error_code_for(error) == code


class TestDiagnosticFromError:
    def test_unbound_name_suggestion(self):
        diagnostic = diagnostic_from_error(compile_error(COUNTER))
        assert diagnostic.code == "E0301"
        assert diagnostic.level is DiagnosticLevel.ERROR
        assert diagnostic.message == "Unbound variable 'cuont'"
        assert diagnostic.span == SourceSpan(3, 12, 17, "counter.plc")
        assert diagnostic.helps == ["did you mean 'count'?"]

    def test_no_suggestion_for_distant_names(self):
        error = compile_error("DEF main(): Integer DO RETURN somethingelse; END")
        assert diagnostic_from_error(error).helps == []

    def test_type_mismatch_note(self):
        error = compile_error("DEF main(): Integer DO RETURN 1.5; END")
        diagnostic = diagnostic_from_error(error)
        assert diagnostic.code == "E0302"
        assert diagnostic.notes == ["expected Integer, found Decimal"]
        assert diagnostic.span.start_col == 31
        assert diagnostic.span.length == 3

    def test_error_without_location(self):
        diagnostic = diagnostic_from_error(TypeViolation("Expected Integer, received Nil (nil)"))
        assert diagnostic.span is None
        assert diagnostic.code == "E0401"

    def test_lex_error(self):
        error = compile_error('DEF main(): Integer DO print("open); RETURN 0; END')
        assert isinstance(error, LexError)
        assert diagnostic_from_error(error).code == "E0101"

    def test_parse_error(self):
        error = compile_error("DEF main(): Integer DO RETURN 0 END")
        assert isinstance(error, ParseError)
        diagnostic = diagnostic_from_error(error)
        assert diagnostic.code == "E0201"
        assert diagnostic.span.line == 1


class TestRender:
    def test_render_plain(self):
        rendered = render_error(compile_error(COUNTER), COUNTER, use_color=False)
        assert rendered.splitlines() == [
            "error[E0301]: Unbound variable 'cuont'",
            "  --> counter.plc:3:12",
            "   |",
            "  3 |     RETURN cuont;",
            "   |            ^^^^^",
            "   |",
            "   = help: did you mean 'count'?",
        ]

    def test_render_color(self):
        rendered = render_error(compile_error(COUNTER), COUNTER, use_color=True)
        assert "\033[91m" in rendered
        assert "\033[0m" in rendered

    def test_render_note(self):
        diagnostic = Diagnostic(
            code="E0302",
            level=DiagnosticLevel.ERROR,
            message="Expected type Integer, received Decimal",
            notes=["expected Integer, found Decimal"],
        )
        assert diagnostic.render("", use_color=False).splitlines() == [
            "error[E0302]: Expected type Integer, received Decimal",
            "   = note: expected Integer, found Decimal",
        ]

    def test_render_without_code(self):
        diagnostic = Diagnostic(code="", level=DiagnosticLevel.WARNING, message="careful")
        assert diagnostic.render("", use_color=False) == "warning: careful"

    def test_render_uncatalogued_code(self):
        """Only codes with a catalog description appear in the header."""
        diagnostic = Diagnostic(code="E9999", level=DiagnosticLevel.ERROR, message="odd")
        assert diagnostic.render("", use_color=False) == "error: odd"
        assert ERROR_DESCRIPTIONS["E0402"] == "division by zero"

    def test_span_outside_source(self):
        """A span past the end of the source renders only the location."""
        diagnostic = Diagnostic(
            code="E0201",
            level=DiagnosticLevel.ERROR,
            message="Unexpected end of input",
            span=SourceSpan(9, 1, 2, "short.plc"),
        )
        assert diagnostic.render("one line", use_color=False).splitlines() == [
            "error[E0201]: Unexpected end of input",
            "  --> short.plc:9:1",
        ]

    def test_simple_message(self):
        diagnostic = diagnostic_from_error(compile_error(COUNTER))
        assert diagnostic.to_simple_message() == "[E0301] Unbound variable 'cuont'"


class TestSimilarity:
    @pytest.mark.parametrize(
        "left,right,distance",
        [
            ("", "", 0),
            ("abc", "", 3),
            ("count", "count", 0),
            ("count", "cuont", 2),
            ("kitten", "sitting", 3),
        ],
    )
    def test_levenshtein(self, left, right, distance):
        assert levenshtein_distance(left, right) == distance
        assert levenshtein_distance(right, left) == distance

    def test_suggest_closest_first(self):
        assert suggest_similar("prnt", ["print", "pront", "main", "prnt"]) == ["print", "pront"]

    def test_suggest_limit(self):
        assert suggest_similar("a", ["b", "c", "d", "e"], max_suggestions=2) == ["b", "c"]

    def test_suggest_ignores_case(self):
        assert suggest_similar("COUNT", ["count"]) == ["count"]

    def test_suggest_nothing(self):
        assert suggest_similar("x", []) == []
