"""
Tests for compiler.py - the bundled compiler behind the compiler capability.
"""
import pytest

from compiler import RuneCompiler, compile_source
from core.diagnostics import Severity
from core.unit import Op, Unit


class TestSyntaxErrors:
    """Only the first syntax error is reported, with its location."""

    def test_unexpected_token(self):
        unit, diagnostics = compile_source('fn main() {\n    let x = ;\n}')
        assert unit is None
        assert len(diagnostics) == 1
        d = diagnostics[0]
        assert d.severity == Severity.ERROR
        assert d.message.startswith("syntax error: unexpected `;`")
        assert (d.span.line, d.span.column) == (2, 13)

    def test_expected_tokens_listed(self):
        _, diagnostics = compile_source('fn main( { }')
        assert "expected one of" in diagnostics[0].message

    def test_unexpected_character(self):
        _, diagnostics = compile_source('fn main() { 1 $ 2 }')
        d = diagnostics[0]
        assert d.message.startswith("syntax error: unexpected character `$`")
        assert (d.span.line, d.span.column) == (1, 15)

    def test_unexpected_end_of_input(self):
        _, diagnostics = compile_source('fn main() {\n  1 +')
        d = diagnostics[0]
        assert d.message.startswith("syntax error: unexpected end of input")
        assert d.span.line == 2


class TestCompileSource:
    def test_valid_program(self):
        unit, diagnostics = compile_source('fn main() { 1 + 1 }')
        assert isinstance(unit, Unit)
        assert diagnostics == []
        assert unit.lookup('main') is not None

    def test_literal_and_name_errors_are_all_reported(self):
        """Problems from every phase after parsing are reported together."""
        source = 'fn main() {\n  "\\q";\n  y\n}'
        unit, diagnostics = compile_source(source)
        messages = [d.message for d in diagnostics]
        assert messages == [
            "unknown character escape `\\q`",
            "cannot find value `y` in this scope",
        ]
        # A unit is still produced; the caller decides it is unusable.
        assert unit is not None

    def test_nesting_too_deep(self):
        """A very long chained expression is reported, not raised."""
        source = 'fn main() {\n    ' + ' + '.join(['1'] * 3000) + '\n}'
        unit, diagnostics = compile_source(source)
        assert unit is None
        (d,) = diagnostics
        assert d.severity == Severity.ERROR
        assert d.message == "expression nesting too deep"
        assert (d.span.line, d.span.column) == (2, 5)

    def test_long_flat_program_still_compiles(self):
        """Many statements side by side do not count as nesting."""
        body = ''.join(f'let x{i} = {i};\n' for i in range(2000))
        unit, _ = compile_source('fn main() {\n' + body + '}')
        assert unit is not None


class TestRuneCompiler:
    """The compiler capability returns Ok(unit) or Err(diagnostics)."""

    def test_ok(self):
        result = RuneCompiler().compile('fn main() { 2 }')
        assert result.is_ok()
        assert result.value.instructions[-1].op == Op.RETURN

    def test_ok_carries_warnings(self):
        result = RuneCompiler().compile('fn main() { let x = 1; }')
        assert result.is_ok()
        assert [d.message for d in result.value.diagnostics] == ["unused variable: `x`"]

    def test_err_on_syntax_error(self):
        result = RuneCompiler().compile('fn main() {')
        assert result.is_err()
        assert len(result.error) == 1

    def test_err_keeps_warnings_in_order(self):
        result = RuneCompiler().compile('fn main() {\n  let x = 1;\n  nope()\n}')
        assert result.is_err()
        severities = [d.severity for d in result.error]
        assert severities == [Severity.ERROR, Severity.WARNING]

    @pytest.mark.parametrize("source", ['', 'fn helper() {}'])
    def test_compiles_without_main(self, source):
        """A missing `main` is found when the unit is run, not at compile time."""
        assert RuneCompiler().compile(source).is_ok()
