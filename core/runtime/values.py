"""
Value operations for the Rune VM.

Rune values map onto Python objects: ``None`` is unit ``()``, ``bool``,
``int`` (kept within 64 bits), ``float``, ``str`` and ``list`` (vectors).
"""
import math

from ..errors import VmError

I64_MIN = -(2 ** 63)
I64_MAX = 2 ** 63 - 1


def type_name(value):
    # bool before int: True is an int in Python
    if value is None:
        return "unit"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "vec"
    return type(value).__name__


def check_int(value):
    if value > I64_MAX:
        raise VmError("numerical overflow")
    if value < I64_MIN:
        raise VmError("numerical underflow")
    return value


def _both(a, b, name):
    return type_name(a) == name and type_name(b) == name


def unsupported(op, *operands):
    if len(operands) == 1:
        return VmError(f"unsupported vm operation `{op}{type_name(operands[0])}`")
    a, b = operands
    return VmError(f"unsupported vm operation `{type_name(a)} {op} {type_name(b)}`")


def _trunc_div(a, b):
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


def add(a, b):
    if _both(a, b, "int"):
        return check_int(a + b)
    if _both(a, b, "float") or _both(a, b, "string"):
        return a + b
    if _both(a, b, "vec"):
        return a + b
    raise unsupported("+", a, b)


def sub(a, b):
    if _both(a, b, "int"):
        return check_int(a - b)
    if _both(a, b, "float"):
        return a - b
    raise unsupported("-", a, b)


def mul(a, b):
    if _both(a, b, "int"):
        return check_int(a * b)
    if _both(a, b, "float"):
        return a * b
    raise unsupported("*", a, b)


def div(a, b):
    if _both(a, b, "int"):
        if b == 0:
            raise VmError("division by zero")
        return check_int(_trunc_div(a, b))
    if _both(a, b, "float"):
        if b == 0.0:
            if a == 0.0 or math.isnan(a):
                return math.nan
            return math.copysign(math.inf, a) * math.copysign(1.0, b)
        return a / b
    raise unsupported("/", a, b)


def rem(a, b):
    if _both(a, b, "int"):
        if b == 0:
            raise VmError("division by zero")
        return a - b * _trunc_div(a, b)
    if _both(a, b, "float"):
        if b == 0.0:
            return math.nan
        return math.fmod(a, b)
    raise unsupported("%", a, b)


def equals(a, b):
    """Structural equality. Vectors that contain themselves compare without looping."""
    pending = [(a, b)]
    seen = set()
    while pending:
        x, y = pending.pop()
        if type_name(x) != type_name(y):
            return False
        if isinstance(x, list):
            if len(x) != len(y):
                return False
            # a pair already being compared is assumed equal
            if (id(x), id(y)) in seen:
                continue
            seen.add((id(x), id(y)))
            pending.extend(zip(x, y))
        elif x != y:
            return False
    return True


def _ordering(op, compare):
    def check(a, b):
        if _both(a, b, "int") or _both(a, b, "float") or _both(a, b, "string"):
            return compare(a, b)
        raise unsupported(op, a, b)
    return check


lt = _ordering("<", lambda a, b: a < b)
le = _ordering("<=", lambda a, b: a <= b)
gt = _ordering(">", lambda a, b: a > b)
ge = _ordering(">=", lambda a, b: a >= b)


def negate(a):
    if type_name(a) == "int":
        return check_int(-a)
    if type_name(a) == "float":
        return -a
    raise unsupported("-", a)


def logical_not(a):
    if isinstance(a, bool):
        return not a
    if type_name(a) == "int":
        return ~a
    raise unsupported("!", a)


def index_get(target, index):
    if type_name(target) == "vec" and type_name(index) == "int":
        if 0 <= index < len(target):
            return target[index]
        raise VmError(f"missing index `{index}` in vector")
    raise VmError(
        f"the index get operation `{type_name(target)}[{type_name(index)}]` is not supported"
    )


def truthy(value):
    """Conditions must be booleans; anything else is a fault."""
    if isinstance(value, bool):
        return value
    raise VmError(f"expected `bool` condition, but found `{type_name(value)}`")


def _escape(text):
    out = []
    for c in text:
        if c == "\\":
            out.append("\\\\")
        elif c == '"':
            out.append('\\"')
        elif c == "\n":
            out.append("\\n")
        elif c == "\r":
            out.append("\\r")
        elif c == "\t":
            out.append("\\t")
        elif c == "\0":
            out.append("\\0")
        elif ord(c) < 0x20 or ord(c) == 0x7F:
            out.append(f"\\u{{{ord(c):x}}}")
        else:
            out.append(c)
    return "".join(out)


_CLOSE = object()
_SEP = object()


def _debug_scalar(value):
    if value is None:
        return "()"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
    return str(value)


def debug(value):
    """
    Debug form: strings quoted and escaped. Used for printed results and ``dbg``.

    A vector nested inside itself is shown as ``[...]``.
    """
    out = []
    todo = [value]
    open_ids = []
    while todo:
        item = todo.pop()
        if item is _CLOSE:
            out.append("]")
            open_ids.pop()
        elif item is _SEP:
            out.append(", ")
        elif isinstance(item, list):
            if id(item) in open_ids:
                out.append("[...]")
                continue
            open_ids.append(id(item))
            out.append("[")
            todo.append(_CLOSE)
            for i in reversed(range(len(item))):
                todo.append(item[i])
                if i:
                    todo.append(_SEP)
        else:
            out.append(_debug_scalar(item))
    return "".join(out)


def display(value):
    """Display form: strings as-is, everything else as in ``debug``."""
    if isinstance(value, str):
        return value
    return debug(value)
