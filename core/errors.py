"""
Error types for the Rune runner.

Each pipeline stage raises exactly one of these; the orchestrator turns them
into formatted text and an exit code. Nothing here is retried.
"""
from enum import Enum


class LoadErrorKind(str, Enum):
    NOT_FOUND = "not found"
    UNREADABLE = "unreadable"


class LoadError(Exception):
    """The script could not be read. ``kind`` tells missing from unreadable."""
    def __init__(self, kind, path, reason=None):
        self.kind = LoadErrorKind(kind)
        self.path = str(path)
        self.reason = reason
        super().__init__(self.message)

    @property
    def message(self):
        if self.kind == LoadErrorKind.NOT_FOUND:
            return "file not found"
        if self.reason:
            return f"could not read file: {self.reason}"
        return "could not read file"


class CompileError(Exception):
    """Compilation produced at least one error-severity diagnostic."""
    def __init__(self, diagnostics):
        self.diagnostics = tuple(diagnostics)
        errors = sum(1 for d in self.diagnostics if d.is_error)
        super().__init__(f"compilation failed with {errors} error(s)")


class RuntimeFault(Exception):
    """The script faulted while running. Wraps the ``Fault`` outcome."""
    def __init__(self, fault):
        self.fault = fault
        super().__init__(fault.diagnostic.message)


class VmError(Exception):
    """
    Raised inside the bundled VM when an instruction cannot complete.

    ``span`` is filled in by the VM with the location of the failing
    instruction if the raiser did not know it.
    """
    def __init__(self, message, span=None):
        self.message = message
        self.span = span
        super().__init__(message)
