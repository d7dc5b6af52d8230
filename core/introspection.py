"""
Rune unit introspection.

Human-readable listings of a compiled unit, used by the ``--dump-unit`` and
``--dump-functions`` flags.
"""
from .unit import Unit


def describe_functions(unit):
    """Extract the function table as a list of dicts (name, arity, locals, entry, line)."""
    functions = []
    for info in unit.functions.values():
        functions.append({
            "name": info.name,
            "arity": info.arity,
            "locals": info.locals,
            "entry": info.entry,
            "line": info.span.line if info.span is not None else None,
        })
    return functions


def dump_functions(unit):
    if not isinstance(unit, Unit):
        return repr(unit)
    lines = []
    for fn in describe_functions(unit):
        where = f" (line {fn['line']})" if fn["line"] is not None else ""
        lines.append(f"fn {fn['name']}/{fn['arity']} @ {fn['entry']:04}, {fn['locals']} local(s){where}")
    return "\n".join(lines)


def dump_unit(unit):
    """Disassemble ``unit``: each function followed by its instructions."""
    if not isinstance(unit, Unit):
        return repr(unit)
    lines = []
    for info in sorted(unit.functions.values(), key=lambda f: f.entry):
        lines.append(f"fn {info.name}({info.arity}):")
        start, end = unit.function_range(info)
        for ip in range(start, end):
            inst = unit.instructions[ip]
            text = str(inst)
            if inst.op.name == "PUSH":
                text += f"  // {unit.constants[inst.arg]!r}"
            lines.append(f"  {ip:04} {text}")
    return "\n".join(lines)
