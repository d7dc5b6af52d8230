import re

from lark import Lark, Tree
from lark.exceptions import (
    UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError,
)

from core.capabilities import CompilerCapability
from core.codegen import generate
from core.diagnostics import Diagnostic, Span, has_errors
from core.grammar import rune_grammar
from core.log import debug_log, set_verbose
from core.runtime.result import Err, Ok
from core.transformer import RuneTransformer

__all__ = ["RuneCompiler", "compile_source", "get_parser", "set_verbose"]

_PARSER = None


def get_parser():
    """Build the LALR parser once and reuse it."""
    global _PARSER
    if _PARSER is None:
        _PARSER = Lark(rune_grammar, parser='lalr', lexer='basic', propagate_positions=True)
    return _PARSER


def _describe_expected(parser, expected):
    names = []
    for name in sorted(expected):
        if name == "$END":
            names.append("end of input")
            continue
        try:
            pattern = parser.get_terminal(name).pattern
        except KeyError:
            names.append(name)
            continue
        if pattern.type == "str":
            names.append(f"`{pattern.value}`")
        else:
            names.append(name.lower())
    return ", ".join(names)


def syntax_diagnostic(error, text, parser=None):
    """Turn a Lark parse error into a Diagnostic with a span."""
    parser = parser or get_parser()
    expected = getattr(error, "expected", None) or getattr(error, "allowed", None) or ()

    if isinstance(error, UnexpectedToken) and error.token.type != "$END":
        token = error.token
        message = f"unexpected `{token}`"
        span = Span.from_meta(token)
    elif isinstance(error, UnexpectedCharacters):
        message = f"unexpected character `{error.char}`"
        span = Span.at_offset(text, error.pos_in_stream, 1)
    else:
        message = "unexpected end of input"
        span = Span.at_offset(text, len(text))

    if expected:
        message += f", expected one of {_describe_expected(parser, expected)}"
    return Diagnostic.error(f"syntax error: {message}", span)


def _deepest_span(tree):
    """Span of the leftmost most deeply nested node, found without recursing."""
    deepest, deepest_level = tree, 0
    todo = [(tree, 0)]
    while todo:
        node, level = todo.pop()
        if level > deepest_level:
            deepest, deepest_level = node, level
        todo.extend((child, level + 1) for child in reversed(node.children) if isinstance(child, Tree))
    return Span.from_meta(deepest.meta)


def compile_source(text):
    """
    Compile Rune source text.

    Returns:
        (unit, diagnostics): ``unit`` is None when the source did not parse
        or is nested too deeply to compile
    """
    parser = get_parser()
    try:
        tree = parser.parse(text)
    except (UnexpectedToken, UnexpectedCharacters, UnexpectedEOF) as e:
        return None, [syntax_diagnostic(e, text, parser)]
    except UnexpectedInput as e:
        # Any other parse failure still points at a position in the input.
        match = re.search(r'line (\d+) col (\d+)', str(e))
        span = Span(line=int(match.group(1)), column=int(match.group(2))) if match else None
        return None, [Diagnostic.error("syntax error", span)]

    transformer = RuneTransformer(text)
    try:
        program = transformer.transform(tree)
        unit, diagnostics = generate(program)
    except VisitError as e:
        if not isinstance(e.orig_exc, RecursionError):
            raise
        return None, [Diagnostic.error("expression nesting too deep", _deepest_span(tree))]
    except RecursionError:
        return None, [Diagnostic.error("expression nesting too deep", _deepest_span(tree))]
    return unit, transformer.diagnostics + diagnostics


class RuneCompiler(CompilerCapability):
    """The bundled compiler: Lark parser, syntax tree transformer, bytecode generator."""

    def compile(self, text):
        unit, diagnostics = compile_source(text)
        debug_log(f"Compiler reported {len(diagnostics)} diagnostic(s)")
        if unit is None or has_errors(diagnostics):
            return Err(diagnostics)
        return Ok(unit)
