"""
Stack virtual machine for compiled Rune units.

The VM is the bundled implementation of the VM capability: ``run`` never
raises for script errors; it returns ``Err((message, backtrace))`` with the
backtrace ordered innermost frame first.
"""
import sys
from typing import List

from ..capabilities import VmCapability
from ..errors import VmError
from ..log import debug_log
from ..unit import Op
from . import values
from .builtins import BUILTINS
from .result import Err, Ok

DEFAULT_MAX_CALL_DEPTH = 1024

BINARY = {
    Op.ADD: values.add,
    Op.SUB: values.sub,
    Op.MUL: values.mul,
    Op.DIV: values.div,
    Op.REM: values.rem,
    Op.LT: values.lt,
    Op.LE: values.le,
    Op.GT: values.gt,
    Op.GE: values.ge,
}


class CallFrame:
    """A running function: its locals and where to continue in the caller."""
    __slots__ = ("function", "locals", "return_ip", "stack_top")

    def __init__(self, function, locals, return_ip, stack_top):
        self.function = function
        self.locals = locals
        # ip in the caller just after the CALL; None for the entry point
        self.return_ip = return_ip
        # stack height at entry, so a callee never sees the caller's values
        self.stack_top = stack_top


class Vm(VmCapability):
    def __init__(self, stdout=None, stderr=None, fuel=None,
                 max_call_depth=DEFAULT_MAX_CALL_DEPTH, trace=False, builtins=None):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.fuel = fuel
        self.max_call_depth = max_call_depth
        self.trace = trace
        self.builtins = BUILTINS if builtins is None else builtins
        self.clear()

    def clear(self):
        """Reset all execution state."""
        self.ip = 0
        self.stack: List = []
        self.frames: List[CallFrame] = []
        self.executed = 0
        self.unit = None

    def describe(self, value):
        return values.debug(value)

    def run(self, unit, args=()):
        """
        Run the ``main`` function of ``unit``.

        ``main()`` ignores ``args``; ``main(args)`` receives them as a vector
        of strings.

        Returns:
            Ok(value) on success, Err((message, backtrace)) on a fault
        """
        self.clear()
        try:
            value = self._execute(unit, [str(a) for a in args])
        except RecursionError:
            error = VmError("value nesting too deep")
        except VmError as e:
            error = e
        else:
            debug_log(f"Finished after {self.executed} instruction(s)")
            return Ok(value)
        backtrace = self._backtrace(error)
        debug_log(f"Fault after {self.executed} instruction(s): {error.message}")
        return Err((error.message, backtrace))

    # --- Frames ---
    def _backtrace(self, error):
        """(name, span) pairs, innermost first."""
        frames = []
        code = self.unit.instructions if self.unit is not None else []
        for depth, frame in enumerate(reversed(self.frames)):
            if depth == 0:
                span = error.span
                if span is None and 0 < self.ip <= len(code):
                    span = code[self.ip - 1].span
            else:
                # The caller is paused on its CALL instruction.
                callee = self.frames[len(self.frames) - depth]
                span = code[callee.return_ip - 1].span
            frames.append((frame.function.name, span))
        return frames

    def _push_frame(self, function, args, return_ip):
        if len(self.frames) >= self.max_call_depth:
            raise VmError(f"call depth limit of {self.max_call_depth} exceeded")
        slots = list(args) + [None] * (function.locals - len(args))
        self.frames.append(CallFrame(function, slots, return_ip, len(self.stack)))
        self.ip = function.entry

    def _pop(self, count):
        if count == 0:
            return []
        items = self.stack[-count:]
        del self.stack[-count:]
        return items

    # --- Execution ---
    def _execute(self, unit, args):
        unit.consume()
        self.unit = unit

        main = unit.lookup("main")
        if main is None:
            raise VmError("missing function `main`")
        if main.arity == 0:
            call_args = []
        elif main.arity == 1:
            call_args = [list(args)]
        else:
            raise VmError(f"wrong number of arguments `1`, expected `{main.arity}`")
        self._push_frame(main, call_args, None)

        code = unit.instructions
        constants = unit.constants
        stack = self.stack

        while True:
            if self.fuel is not None and self.executed >= self.fuel:
                raise VmError(f"execution budget exhausted after {self.executed} instructions")
            self.executed += 1

            inst = code[self.ip]
            self.ip += 1
            op = inst.op
            frame = self.frames[-1]

            if self.trace:
                debug_log(f"{frame.function.name}:{self.ip - 1:04} {inst}")

            if op is Op.PUSH:
                stack.append(constants[inst.arg])
            elif op is Op.UNIT:
                stack.append(None)
            elif op is Op.LOAD:
                stack.append(frame.locals[inst.arg])
            elif op is Op.STORE:
                frame.locals[inst.arg] = stack.pop()
            elif op is Op.POP:
                stack.pop()
            elif op in BINARY:
                b = stack.pop()
                a = stack.pop()
                stack.append(BINARY[op](a, b))
            elif op is Op.EQ:
                b = stack.pop()
                a = stack.pop()
                stack.append(values.equals(a, b))
            elif op is Op.NE:
                b = stack.pop()
                a = stack.pop()
                stack.append(not values.equals(a, b))
            elif op is Op.NEG:
                stack.append(values.negate(stack.pop()))
            elif op is Op.NOT:
                stack.append(values.logical_not(stack.pop()))
            elif op is Op.JUMP:
                self.ip = inst.arg
            elif op is Op.JUMP_IF:
                if values.truthy(stack.pop()):
                    self.ip = inst.arg
            elif op is Op.JUMP_IF_NOT:
                if not values.truthy(stack.pop()):
                    self.ip = inst.arg
            elif op is Op.CALL:
                name, count = inst.arg
                function = unit.lookup(name)
                if function is None:
                    raise VmError(f"missing function `{name}`")
                if function.arity != count:
                    raise VmError(
                        f"wrong number of arguments `{count}`, expected `{function.arity}`"
                    )
                self._push_frame(function, self._pop(count), self.ip)
            elif op is Op.CALL_BUILTIN:
                name, count = inst.arg
                builtin = self.builtins.get(name)
                if builtin is None:
                    raise VmError(f"missing function `{name}`")
                stack.append(builtin.func(self, self._pop(count)))
            elif op is Op.RETURN:
                value = stack.pop()
                finished = self.frames.pop()
                del stack[finished.stack_top:]
                if not self.frames:
                    return value
                self.ip = finished.return_ip
                stack.append(value)
            elif op is Op.VEC:
                stack.append(self._pop(inst.arg))
            elif op is Op.INDEX:
                index = stack.pop()
                target = stack.pop()
                stack.append(values.index_get(target, index))
            else:
                raise VmError(f"unsupported instruction `{op.name}`")
