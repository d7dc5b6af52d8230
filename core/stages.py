"""
Compile and execute stages.

Each stage adapts a capability's result into the pipeline's own records
(``Diagnostic``, ``Frame``, ``Value``, ``Fault``) and decides whether the
pipeline may continue.
"""
from typing import Any, Tuple, Union

from pydantic import BaseModel, ConfigDict

from .diagnostics import Diagnostic, Frame, Span, has_errors
from .errors import CompileError
from .log import debug_log


class CompileReport(BaseModel):
    """A successful compilation: the unit plus any (non-fatal) warnings."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    unit: Any
    diagnostics: Tuple[Diagnostic, ...] = ()


class Value(BaseModel):
    """The script finished; ``result`` is ``None`` when it produced no value."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    result: Any = None


class Fault(BaseModel):
    """The script faulted. ``backtrace`` lists frames innermost first."""
    model_config = ConfigDict(frozen=True)

    diagnostic: Diagnostic
    backtrace: Tuple[Frame, ...] = ()


ExecutionOutcome = Union[Value, Fault]


def compile_stage(source, compiler, strict=False) -> CompileReport:
    """
    Compile ``source`` with ``compiler``.

    Args:
        source: The loaded ``SourceUnit``
        compiler: A ``CompilerCapability``
        strict: Escalate warnings to errors

    Raises:
        CompileError: If any diagnostic has error severity, even when the
            compiler also produced a unit
    """
    result = compiler.compile(source.text)
    if result.is_ok():
        unit = result.value
        raw = getattr(unit, "diagnostics", ()) or ()
    else:
        unit = None
        raw = result.error or ()

    diagnostics = [Diagnostic.adapt(r) for r in raw]
    if strict:
        diagnostics = [d.escalated() for d in diagnostics]
    if result.is_err() and not has_errors(diagnostics):
        diagnostics.append(Diagnostic.error("compilation failed"))

    debug_log(f"Compiled {source.path}: {len(diagnostics)} diagnostic(s)")
    if has_errors(diagnostics):
        raise CompileError(diagnostics)
    return CompileReport(unit=unit, diagnostics=tuple(diagnostics))


def execute_stage(unit, args, vm) -> ExecutionOutcome:
    """Run ``unit`` on ``vm`` and adapt the result into a ``Value`` or ``Fault``."""
    result = vm.run(unit, list(args))
    if result.is_ok():
        return Value(result=result.value)

    message, backtrace = result.error
    frames = tuple(Frame(name=str(name), span=Span.coerce(span)) for name, span in backtrace)
    span = frames[0].span if frames else None
    return Fault(diagnostic=Diagnostic.error(str(message), span), backtrace=frames)
