"""
Rune Transformer - builds the syntax tree from the Lark parse tree.

Literal problems (bad escapes, numbers that do not fit in 64 bits) do not
stop the transformation; they are collected in ``diagnostics`` so that one
compile run reports all of them.
"""
import re

from lark import Transformer, v_args

from .diagnostics import Diagnostic, Span
from .nodes import (
    Assign, Binary, Block, Break, Call, Continue, Expr, ExprStmt, FnDef, If,
    Index, Let, Literal, Logical, Loop, Param, Program, Return, Stmt, Unary,
    Var, VecLit, While,
)
from .runtime.values import I64_MAX

SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
}
UNICODE_ESCAPE = re.compile(r"\\u\{([0-9a-fA-F]{1,6})\}")
RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def parse_int_literal(text):
    """Parse an integer literal (``_`` separators, ``0x``/``0o``/``0b`` prefixes)."""
    digits = text.replace("_", "")
    base = RADIX_PREFIXES.get(digits[:2], 10)
    if base != 10:
        digits = digits[2:]
    if not digits:
        raise ValueError(f"invalid number literal `{text}`")
    return int(digits, base)


def unescape(body):
    """
    Resolve escape sequences in the body of a string literal.

    Returns:
        (value, problems) where problems is a list of (message, offset, length)
        with offsets relative to ``body``
    """
    out = []
    problems = []
    i = 0
    n = len(body)
    while i < n:
        c = body[i]
        if c != "\\":
            out.append(c)
            i += 1
            continue
        e = body[i + 1] if i + 1 < n else ""
        if e in SIMPLE_ESCAPES:
            out.append(SIMPLE_ESCAPES[e])
            i += 2
        elif e == "\n":
            # Line continuation: drop the newline and the next line's indentation.
            i += 2
            while i < n and body[i] in " \t\r\n":
                i += 1
        elif e == "u":
            m = UNICODE_ESCAPE.match(body, i)
            if m is None:
                problems.append(("invalid unicode escape, expected `\\u{...}`", i, 2))
                i += 2
                continue
            code = int(m.group(1), 16)
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                problems.append((f"invalid unicode character escape `{m.group(0)}`", i, m.end() - i))
            else:
                out.append(chr(code))
            i = m.end()
        else:
            problems.append((f"unknown character escape `\\{e}`", i, 2))
            i += 2
    return "".join(out), problems


def _binary(op):
    @v_args(meta=True)
    def build(self, meta, children):
        left, right = children
        return Binary(op, left, right, Span.from_meta(meta))
    return build


def _logical(op):
    @v_args(meta=True)
    def build(self, meta, children):
        left, right = children
        return Logical(op, left, right, Span.from_meta(meta))
    return build


def _compound(op):
    @v_args(meta=True)
    def build(self, meta, children):
        name, value = children
        return Assign(str(name), value, op=op, span=Span.from_meta(meta))
    return build


class RuneTransformer(Transformer):
    def __init__(self, source=""):
        super().__init__()
        self.source = source
        self.diagnostics = []

    def _error(self, message, span):
        self.diagnostics.append(Diagnostic.error(message, span))

    # --- Items ---
    def start(self, items):
        return Program(functions=list(items))

    def fn_def(self, children):
        name, params, body = children
        return FnDef(str(name), params or [], body, Span.from_meta(name))

    def params(self, items):
        return [Param(str(t), Span.from_meta(t)) for t in items if t is not None]

    @v_args(meta=True)
    def block(self, meta, children):
        stmts = [c for c in children if isinstance(c, Stmt)]
        tail = children[-1] if children and isinstance(children[-1], Expr) else None
        return Block(stmts, tail, Span.from_meta(meta))

    # --- Statements ---
    @v_args(meta=True)
    def let_stmt(self, meta, children):
        name, value = children
        return Let(str(name), value, Span.from_meta(meta))

    @v_args(meta=True)
    def assign_stmt(self, meta, children):
        name, value = children
        return Assign(str(name), value, span=Span.from_meta(meta))

    add_assign = _compound("+")
    sub_assign = _compound("-")
    mul_assign = _compound("*")
    div_assign = _compound("/")

    @v_args(meta=True)
    def expr_stmt(self, meta, children):
        return ExprStmt(children[0], Span.from_meta(meta))

    @v_args(meta=True)
    def return_stmt(self, meta, children):
        value = children[0] if children else None
        return Return(value, Span.from_meta(meta))

    @v_args(meta=True)
    def if_stmt(self, meta, children):
        cond, then = children[0], children[1]
        otherwise = children[2] if len(children) > 2 else None
        if isinstance(otherwise, If):
            otherwise = Block([otherwise], None, otherwise.span)
        return If(cond, then, otherwise, Span.from_meta(meta))

    @v_args(meta=True)
    def while_stmt(self, meta, children):
        cond, body = children
        return While(cond, body, Span.from_meta(meta))

    @v_args(meta=True)
    def loop_stmt(self, meta, children):
        return Loop(children[0], Span.from_meta(meta))

    @v_args(meta=True)
    def break_stmt(self, meta, children):
        return Break(Span.from_meta(meta))

    @v_args(meta=True)
    def continue_stmt(self, meta, children):
        return Continue(Span.from_meta(meta))

    # --- Expressions ---
    or_op = _logical("||")
    and_op = _logical("&&")

    eq = _binary("==")
    ne = _binary("!=")
    lt = _binary("<")
    le = _binary("<=")
    gt = _binary(">")
    ge = _binary(">=")
    add = _binary("+")
    sub = _binary("-")
    mul = _binary("*")
    div = _binary("/")
    rem = _binary("%")

    @v_args(meta=True)
    def neg(self, meta, children):
        operand = children[0]
        # Fold `-<int literal>` so that the smallest 64-bit integer can be written.
        if isinstance(operand, Literal) and type(operand.value) is int and operand.value == I64_MAX + 1:
            return Literal(-operand.value, Span.from_meta(meta))
        return Unary("-", operand, Span.from_meta(meta))

    @v_args(meta=True)
    def not_op(self, meta, children):
        return Unary("!", children[0], Span.from_meta(meta))

    @v_args(meta=True)
    def index(self, meta, children):
        target, index = children
        return Index(target, index, Span.from_meta(meta))

    @v_args(meta=True)
    def call(self, meta, children):
        name, args = children
        return Call(str(name), args or [], Span.from_meta(meta))

    @v_args(meta=True)
    def vec_lit(self, meta, children):
        items = children[0] if children else None
        return VecLit(items or [], Span.from_meta(meta))

    def args(self, items):
        return [i for i in items if i is not None]

    def var(self, children):
        token = children[0]
        return Var(str(token), Span.from_meta(token))

    # --- Literals ---
    def int_lit(self, children):
        token = children[0]
        span = Span.from_meta(token)
        try:
            value = parse_int_literal(str(token))
        except ValueError as e:
            self._error(str(e), span)
            return Literal(0, span)
        # I64_MAX + 1 is only valid under unary minus; codegen rejects it elsewhere.
        if value > I64_MAX + 1:
            self._error(f"number literal `{token}` is out of bounds for a 64-bit integer", span)
            return Literal(0, span)
        return Literal(value, span)

    def float_lit(self, children):
        token = children[0]
        return Literal(float(str(token).replace("_", "")), Span.from_meta(token))

    def str_lit(self, children):
        token = children[0]
        value, problems = unescape(str(token)[1:-1])
        for message, offset, length in problems:
            start = token.start_pos + 1 + offset
            if self.source:
                span = Span.at_offset(self.source, start, length)
            else:
                span = Span.from_meta(token)
            self._error(message, span)
        return Literal(value, Span.from_meta(token))

    @v_args(meta=True)
    def true_lit(self, meta, children):
        return Literal(True, Span.from_meta(meta))

    @v_args(meta=True)
    def false_lit(self, meta, children):
        return Literal(False, Span.from_meta(meta))

    @v_args(meta=True)
    def unit_lit(self, meta, children):
        return Literal(None, Span.from_meta(meta))
