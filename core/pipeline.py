"""
Script execution pipeline.

Loads a script, compiles it, runs it and reports the outcome. The pipeline is
a small state machine:

    LOADING -> COMPILING -> EXECUTING -> REPORTING
                         \\-> REPORTING (compile error)

Every failure is terminal for the invocation; nothing is retried. All
diagnostic and fault text goes to stderr, the result value to stdout.
"""
import sys
from enum import Enum, IntEnum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .config import RunConfig
from .diagnostics import Diagnostic
from .errors import CompileError, LoadError, RuntimeFault
from .formatter import format_diagnostic, format_diagnostics, format_fault
from .introspection import dump_functions, dump_unit
from .loader import load
from .log import debug_log
from .stages import Fault, compile_stage, execute_stage


class ExitCode(IntEnum):
    SUCCESS = 0
    LOAD_FAILURE = 1
    COMPILE_FAILURE = 2
    RUNTIME_FAULT = 3


class Stage(str, Enum):
    LOADING = "loading"
    COMPILING = "compiling"
    EXECUTING = "executing"
    REPORTING = "reporting"


class Reporting(str, Enum):
    """Which terminal report the pipeline ended in."""
    LOAD_ERROR = "load-error"
    COMPILE_ERROR = "compile-error"
    FAULT = "fault"
    SUCCESS = "success"


EXIT_CODES = {
    Reporting.SUCCESS: ExitCode.SUCCESS,
    Reporting.LOAD_ERROR: ExitCode.LOAD_FAILURE,
    Reporting.COMPILE_ERROR: ExitCode.COMPILE_FAILURE,
    Reporting.FAULT: ExitCode.RUNTIME_FAULT,
}


class PipelineReport(BaseModel):
    """What happened during one invocation."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: str
    reporting: Reporting
    exit_code: ExitCode
    transitions: Tuple[Stage, ...]
    diagnostics: Tuple[Diagnostic, ...] = ()
    outcome: Optional[Any] = None  # Value or Fault; None if execution never ran


class Pipeline:
    def __init__(self, compiler, vm, config=None, stdout=None, stderr=None, stdin=None):
        self.compiler = compiler
        self.vm = vm
        self.config = config or RunConfig()
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.stdin = stdin
        self.stage = None
        self._transitions: List[Stage] = []

    def _enter(self, stage):
        debug_log(f"Pipeline: {self.stage.value if self.stage else 'start'} -> {stage.value}")
        self.stage = stage
        self._transitions.append(stage)

    def _emit(self, text, stream=None):
        if text:
            print(text, file=stream or self.stderr)

    def run(self, path, args=()):
        """
        Run the script at ``path`` with ``args`` forwarded to its entry point.

        Returns:
            PipelineReport whose ``exit_code`` is the process exit status
        """
        self.stage = None
        self._transitions = []
        path = str(path)
        warnings = ()

        try:
            self._enter(Stage.LOADING)
            source = load(path, stdin=self.stdin)
            path = source.path

            self._enter(Stage.COMPILING)
            compiled = compile_stage(source, self.compiler, strict=self.config.strict)
            warnings = compiled.diagnostics
            self._emit(format_diagnostics(path, warnings))
            if self.config.dump_functions:
                self._emit(dump_functions(compiled.unit))
            if self.config.dump_unit:
                self._emit(dump_unit(compiled.unit))

            if self.config.check:
                return self._report(path, Reporting.SUCCESS, warnings)

            self._enter(Stage.EXECUTING)
            outcome = execute_stage(compiled.unit, args, self.vm)
            if isinstance(outcome, Fault):
                raise RuntimeFault(outcome)
        except LoadError as e:
            self._emit(format_diagnostic(e.path, Diagnostic.error(e.message)))
            return self._report(e.path, Reporting.LOAD_ERROR)
        except CompileError as e:
            self._emit(format_diagnostics(path, e.diagnostics))
            return self._report(path, Reporting.COMPILE_ERROR, e.diagnostics)
        except RuntimeFault as e:
            self._emit(format_fault(path, e.fault))
            return self._report(path, Reporting.FAULT, warnings + (e.fault.diagnostic,), e.fault)

        if self.config.print_result and outcome.result is not None:
            self._emit(self.vm.describe(outcome.result), self.stdout)
        return self._report(path, Reporting.SUCCESS, warnings, outcome)

    def _report(self, path, reporting, diagnostics=(), outcome=None):
        self._enter(Stage.REPORTING)
        exit_code = EXIT_CODES[reporting]
        debug_log(f"Pipeline finished: {reporting.value} (exit {int(exit_code)})")
        return PipelineReport(
            path=path,
            reporting=reporting,
            exit_code=exit_code,
            transitions=tuple(self._transitions),
            diagnostics=tuple(diagnostics),
            outcome=outcome,
        )
