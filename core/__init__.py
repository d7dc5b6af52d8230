# Rune Runner - Core Components
"""
Core modules for the Rune script runner:
- loader: Reads a script into a SourceUnit
- diagnostics: Severity, Span, Diagnostic and backtrace Frame records
- formatter: Renders diagnostics and faults as text
- capabilities: Compiler and VM interfaces the pipeline drives
- stages: Compile and execute stages
- pipeline: The load -> compile -> execute -> report state machine
- grammar / transformer / codegen: The bundled compiler
- runtime: The bundled stack VM and its values
"""

from .errors import CompileError, LoadError, LoadErrorKind, RuntimeFault, VmError
from .diagnostics import Diagnostic, Frame, Severity, Span
from .loader import SourceUnit, load
from .grammar import rune_grammar
from .transformer import RuneTransformer
from .pipeline import ExitCode, Pipeline, PipelineReport, Reporting, Stage

__all__ = [
    'CompileError',
    'LoadError',
    'LoadErrorKind',
    'RuntimeFault',
    'VmError',
    'Diagnostic',
    'Frame',
    'Severity',
    'Span',
    'SourceUnit',
    'load',
    'rune_grammar',
    'RuneTransformer',
    'ExitCode',
    'Pipeline',
    'PipelineReport',
    'Reporting',
    'Stage',
]
