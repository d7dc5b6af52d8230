"""
Compiled unit: the bytecode produced by the compiler and consumed by the VM.

A unit can only be executed once.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

from .diagnostics import Span
from .errors import VmError


class Op(Enum):
    # Stack and locals
    PUSH = auto()          # operand: constant index
    UNIT = auto()
    LOAD = auto()          # operand: local slot
    STORE = auto()         # operand: local slot
    POP = auto()

    # Arithmetic
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    REM = auto()
    NEG = auto()
    NOT = auto()

    # Comparisons
    EQ = auto()
    NE = auto()
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()

    # Control flow
    JUMP = auto()          # operand: target ip
    JUMP_IF = auto()       # operand: target ip (pop bool; jump if true)
    JUMP_IF_NOT = auto()   # operand: target ip (pop bool; jump if false)

    # Calls
    CALL = auto()          # operand: (function name, argument count)
    CALL_BUILTIN = auto()  # operand: (builtin name, argument count)
    RETURN = auto()

    # Vectors
    VEC = auto()           # operand: item count
    INDEX = auto()


@dataclass(frozen=True)
class Instruction:
    op: Op
    arg: Any = None
    span: Optional[Span] = None

    def __str__(self):
        if self.arg is None:
            return self.op.name
        if isinstance(self.arg, tuple):
            return f"{self.op.name} " + ", ".join(str(a) for a in self.arg)
        return f"{self.op.name} {self.arg}"


@dataclass
class FunctionInfo:
    name: str
    entry: int
    arity: int
    locals: int
    span: Optional[Span] = None


class Unit:
    """Bytecode, constants and function table for one compiled script."""

    def __init__(self, instructions, functions, constants, diagnostics=()):
        self.instructions: List[Instruction] = list(instructions)
        self.functions: Dict[str, FunctionInfo] = dict(functions)
        self.constants: List[Any] = list(constants)
        # Warnings the compiler attached to a successful compilation.
        self.diagnostics: Tuple = tuple(diagnostics)
        self.consumed = False

    def lookup(self, name):
        return self.functions.get(name)

    def function_range(self, info):
        """Instruction index range ``[start, end)`` belonging to ``info``."""
        entries = sorted(f.entry for f in self.functions.values())
        later = [e for e in entries if e > info.entry]
        return info.entry, (later[0] if later else len(self.instructions))

    def consume(self):
        if self.consumed:
            raise VmError("unit has already been executed")
        self.consumed = True

    def __repr__(self):
        return f"<Unit functions={list(self.functions)} instructions={len(self.instructions)}>"
