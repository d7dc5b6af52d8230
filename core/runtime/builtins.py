"""
Builtin functions available to every Rune script.

Each builtin receives the running ``Vm`` (for its output streams) and the
evaluated arguments, and returns a value. Argument counts are checked at
compile time against ``min_args``/``max_args``.
"""
from dataclasses import dataclass
from typing import Callable, Dict

from ..errors import VmError
from .values import debug, display, type_name


@dataclass(frozen=True)
class Builtin:
    name: str
    min_args: int
    max_args: int
    func: Callable

    def accepts(self, count):
        return self.min_args <= count <= self.max_args

    def describe_arity(self):
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args} to {self.max_args}"


def _print(vm, args):
    vm.stdout.write(display(args[0]))


def _println(vm, args):
    vm.stdout.write((display(args[0]) if args else "") + "\n")


def _dbg(vm, args):
    vm.stderr.write(debug(args[0]) + "\n")
    return args[0]


def _panic(vm, args):
    raise VmError(f"panicked `{display(args[0])}`")


def _assert(vm, args):
    cond = args[0]
    if not isinstance(cond, bool):
        raise VmError(f"expected `bool` condition, but found `{type_name(cond)}`")
    if not cond:
        if len(args) > 1:
            raise VmError(f"assertion failed: {display(args[1])}")
        raise VmError("assertion failed")


def _len(vm, args):
    value = args[0]
    if isinstance(value, (str, list)):
        return len(value)
    raise VmError(f"`len` is not supported on `{type_name(value)}`")


def _push(vm, args):
    target, value = args
    if not isinstance(target, list):
        raise VmError(f"`push` is not supported on `{type_name(target)}`")
    target.append(value)


def _str(vm, args):
    return display(args[0])


BUILTINS: Dict[str, Builtin] = {
    b.name: b for b in (
        Builtin("print", 1, 1, _print),
        Builtin("println", 0, 1, _println),
        Builtin("dbg", 1, 1, _dbg),
        Builtin("panic", 1, 1, _panic),
        Builtin("assert", 1, 2, _assert),
        Builtin("len", 1, 1, _len),
        Builtin("push", 2, 2, _push),
        Builtin("str", 1, 1, _str),
    )
}
