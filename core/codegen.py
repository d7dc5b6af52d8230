"""
Bytecode generation for the bundled Rune language.

Walks the syntax tree, resolves names and emits a flat instruction list. All
name-resolution problems are reported as diagnostics rather than raised, so
one compilation reports every problem it can find.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional

from . import nodes as N
from .diagnostics import Diagnostic
from .log import debug_log
from .runtime.builtins import BUILTINS
from .runtime.values import I64_MAX
from .unit import FunctionInfo, Instruction, Op, Unit

BINARY_OPS = {
    "+": Op.ADD,
    "-": Op.SUB,
    "*": Op.MUL,
    "/": Op.DIV,
    "%": Op.REM,
    "==": Op.EQ,
    "!=": Op.NE,
    "<": Op.LT,
    "<=": Op.LE,
    ">": Op.GT,
    ">=": Op.GE,
}
UNARY_OPS = {"-": Op.NEG, "!": Op.NOT}


def _plural(count, word):
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class Local:
    def __init__(self, name, slot, span, warn_unused=True):
        self.name = name
        self.slot = slot
        self.span = span
        self.warn_unused = warn_unused
        self.used = False


class Scope:
    def __init__(self):
        self.names: Dict[str, Local] = {}
        self.declared: List[Local] = []


class LoopContext:
    def __init__(self, start):
        self.start = start
        self.breaks: List[int] = []


class CodeGen:
    def __init__(self, builtins=None):
        self.builtins = BUILTINS if builtins is None else builtins
        self.instructions: List[Instruction] = []
        self.constants = []
        self._constant_slots = {}
        self.functions: Dict[str, FunctionInfo] = {}
        self.diagnostics: List[Diagnostic] = []
        self._signatures: Dict[str, N.FnDef] = {}
        # Per-function state
        self._scopes: List[Scope] = []
        self._loops: List[LoopContext] = []
        self._next_slot = 0

    # --- Diagnostics ---
    def _error(self, message, span):
        self.diagnostics.append(Diagnostic.error(message, span))

    def _warning(self, message, span):
        self.diagnostics.append(Diagnostic.warning(message, span))

    # --- Emission ---
    def _emit(self, op, arg=None, span=None):
        self.instructions.append(Instruction(op, arg, span))
        return len(self.instructions) - 1

    def _here(self):
        return len(self.instructions)

    def _patch(self, index, target):
        self.instructions[index] = replace(self.instructions[index], arg=target)

    def _constant(self, value):
        key = (type(value), value)
        slot = self._constant_slots.get(key)
        if slot is None:
            slot = len(self.constants)
            self.constants.append(value)
            self._constant_slots[key] = slot
        return slot

    # --- Scopes ---
    def _push_scope(self):
        self._scopes.append(Scope())

    def _pop_scope(self):
        scope = self._scopes.pop()
        for local in scope.declared:
            if local.warn_unused and not local.used and not local.name.startswith("_"):
                self._warning(f"unused variable: `{local.name}`", local.span)

    def _declare(self, name, span, warn_unused=True):
        local = Local(name, self._next_slot, span, warn_unused)
        self._next_slot += 1
        scope = self._scopes[-1]
        scope.names[name] = local
        scope.declared.append(local)
        return local

    def _resolve(self, name):
        for scope in reversed(self._scopes):
            if name in scope.names:
                return scope.names[name]
        return None

    # --- Program ---
    def generate(self, program: N.Program) -> Unit:
        """
        Compile ``program`` into a ``Unit``.

        The unit is always returned; check ``self.diagnostics`` for errors
        before executing it. Warnings are attached to the unit.
        """
        for fn in program.functions:
            if fn.name in self._signatures:
                self._error(f"the name `{fn.name}` is defined multiple times", fn.span)
                continue
            self._signatures[fn.name] = fn

        for fn in program.functions:
            if self._signatures.get(fn.name) is fn:
                self._function(fn)

        debug_log(
            f"Generated {len(self.instructions)} instructions for "
            f"{len(self.functions)} function(s)"
        )
        warnings = [d for d in self.diagnostics if not d.is_error]
        return Unit(self.instructions, self.functions, self.constants, warnings)

    def _function(self, fn: N.FnDef):
        self._scopes = []
        self._loops = []
        self._next_slot = 0

        info = FunctionInfo(fn.name, self._here(), len(fn.params), 0, fn.span)
        self.functions[fn.name] = info

        self._push_scope()
        seen = set()
        for param in fn.params:
            if param.name in seen:
                self._error(
                    f"identifier `{param.name}` is bound more than once in this parameter list",
                    param.span,
                )
            seen.add(param.name)
            self._declare(param.name, param.span, warn_unused=False)

        self._block(fn.body)
        self._emit(Op.RETURN)
        self._pop_scope()
        info.locals = self._next_slot

    # --- Statements ---
    def _block(self, block: N.Block):
        """Compile ``block``, leaving its value on the stack."""
        self._push_scope()
        diverged = False
        warned = False
        for stmt in block.stmts:
            if diverged and not warned:
                self._warning("unreachable statement", stmt.span)
                warned = True
            self._stmt(stmt)
            if isinstance(stmt, (N.Return, N.Break, N.Continue)):
                diverged = True
        if block.tail is not None:
            if diverged and not warned:
                self._warning("unreachable expression", block.tail.span)
            self._expr(block.tail)
        else:
            self._emit(Op.UNIT)
        self._pop_scope()

    def _stmt(self, stmt):
        if isinstance(stmt, N.Let):
            self._expr(stmt.value)
            local = self._declare(stmt.name, stmt.span)
            self._emit(Op.STORE, local.slot, stmt.span)
        elif isinstance(stmt, N.Assign):
            self._assign(stmt)
        elif isinstance(stmt, N.ExprStmt):
            self._expr(stmt.expr)
            self._emit(Op.POP)
        elif isinstance(stmt, N.Return):
            if stmt.value is not None:
                self._expr(stmt.value)
            else:
                self._emit(Op.UNIT)
            self._emit(Op.RETURN, span=stmt.span)
        elif isinstance(stmt, N.If):
            self._if(stmt)
        elif isinstance(stmt, N.While):
            self._loop(stmt.body, cond=stmt.cond)
        elif isinstance(stmt, N.Loop):
            self._loop(stmt.body)
        elif isinstance(stmt, N.Break):
            if not self._loops:
                self._error("`break` outside of a loop", stmt.span)
                return
            self._loops[-1].breaks.append(self._emit(Op.JUMP, None, stmt.span))
        elif isinstance(stmt, N.Continue):
            if not self._loops:
                self._error("`continue` outside of a loop", stmt.span)
                return
            self._emit(Op.JUMP, self._loops[-1].start, stmt.span)
        else:
            raise TypeError(f"unknown statement node {stmt!r}")

    def _assign(self, stmt: N.Assign):
        local = self._resolve(stmt.name)
        if local is None:
            self._error(f"cannot find value `{stmt.name}` in this scope", stmt.span)
            self._expr(stmt.value)
            self._emit(Op.POP)
            return
        if stmt.op is None:
            self._expr(stmt.value)
        else:
            self._emit(Op.LOAD, local.slot, stmt.span)
            self._expr(stmt.value)
            self._emit(BINARY_OPS[stmt.op], span=stmt.span)
        self._emit(Op.STORE, local.slot, stmt.span)

    def _if(self, stmt: N.If):
        self._expr(stmt.cond)
        to_else = self._emit(Op.JUMP_IF_NOT, None, stmt.cond.span)
        self._block(stmt.then)
        self._emit(Op.POP)
        if stmt.otherwise is None:
            self._patch(to_else, self._here())
            return
        to_end = self._emit(Op.JUMP)
        self._patch(to_else, self._here())
        self._block(stmt.otherwise)
        self._emit(Op.POP)
        self._patch(to_end, self._here())

    def _loop(self, body: N.Block, cond: Optional[N.Expr] = None):
        context = LoopContext(self._here())
        exit_jump = None
        if cond is not None:
            self._expr(cond)
            exit_jump = self._emit(Op.JUMP_IF_NOT, None, cond.span)
        self._loops.append(context)
        self._block(body)
        self._emit(Op.POP)
        self._emit(Op.JUMP, context.start)
        self._loops.pop()
        end = self._here()
        if exit_jump is not None:
            self._patch(exit_jump, end)
        for index in context.breaks:
            self._patch(index, end)

    # --- Expressions ---
    def _expr(self, expr):
        if isinstance(expr, N.Literal):
            self._literal(expr)
        elif isinstance(expr, N.Var):
            local = self._resolve(expr.name)
            if local is None:
                self._error(f"cannot find value `{expr.name}` in this scope", expr.span)
                self._emit(Op.UNIT)
                return
            local.used = True
            self._emit(Op.LOAD, local.slot, expr.span)
        elif isinstance(expr, N.Unary):
            self._expr(expr.operand)
            self._emit(UNARY_OPS[expr.op], span=expr.span)
        elif isinstance(expr, N.Binary):
            self._expr(expr.left)
            self._expr(expr.right)
            self._emit(BINARY_OPS[expr.op], span=expr.span)
        elif isinstance(expr, N.Logical):
            self._logical(expr)
        elif isinstance(expr, N.Call):
            self._call(expr)
        elif isinstance(expr, N.Index):
            self._expr(expr.target)
            self._expr(expr.index)
            self._emit(Op.INDEX, span=expr.span)
        elif isinstance(expr, N.VecLit):
            for item in expr.items:
                self._expr(item)
            self._emit(Op.VEC, len(expr.items), expr.span)
        else:
            raise TypeError(f"unknown expression node {expr!r}")

    def _literal(self, expr: N.Literal):
        value = expr.value
        if value is None:
            self._emit(Op.UNIT, span=expr.span)
            return
        if type(value) is int and value > I64_MAX:
            self._error(f"number literal `{value}` is out of bounds for a 64-bit integer", expr.span)
            value = 0
        self._emit(Op.PUSH, self._constant(value), expr.span)

    def _logical(self, expr: N.Logical):
        # Both operands must be booleans; the result is always a boolean.
        jump = Op.JUMP_IF_NOT if expr.op == "&&" else Op.JUMP_IF
        short_circuit = expr.op == "||"
        self._expr(expr.left)
        first = self._emit(jump, None, expr.left.span)
        self._expr(expr.right)
        second = self._emit(jump, None, expr.right.span)
        self._emit(Op.PUSH, self._constant(not short_circuit))
        to_end = self._emit(Op.JUMP)
        target = self._here()
        self._patch(first, target)
        self._patch(second, target)
        self._emit(Op.PUSH, self._constant(short_circuit))
        self._patch(to_end, self._here())

    def _call(self, expr: N.Call):
        count = len(expr.args)
        fn = self._signatures.get(expr.name)
        builtin = self.builtins.get(expr.name)

        if fn is not None:
            if len(fn.params) != count:
                self._error(
                    f"function `{expr.name}` takes {_plural(len(fn.params), 'argument')} "
                    f"but {count} {'was' if count == 1 else 'were'} supplied",
                    expr.span,
                )
        elif builtin is not None:
            if not builtin.accepts(count):
                self._error(
                    f"function `{expr.name}` takes {builtin.describe_arity()} argument(s) "
                    f"but {count} {'was' if count == 1 else 'were'} supplied",
                    expr.span,
                )
        else:
            self._error(f"cannot find function `{expr.name}` in this scope", expr.span)

        for arg in expr.args:
            self._expr(arg)

        if fn is not None:
            self._emit(Op.CALL, (expr.name, count), expr.span)
        elif builtin is not None:
            self._emit(Op.CALL_BUILTIN, (expr.name, count), expr.span)
        else:
            self._emit(Op.UNIT, span=expr.span)


def generate(program, builtins=None):
    """Compile ``program``; returns ``(unit, diagnostics)``."""
    codegen = CodeGen(builtins)
    unit = codegen.generate(program)
    return unit, list(codegen.diagnostics)
