"""
Diagnostic value records shared by the compile and execute stages.

Diagnostics are immutable and carry only what the formatter needs: a
severity, a message and an optional source span. Backtrace frames are
described the same way.
"""
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, NonNegativeInt, PositiveInt


class Severity(str, Enum):
    """How bad a diagnostic is. Only errors stop the pipeline."""
    ERROR = "error"
    WARNING = "warning"


class Span(BaseModel):
    """A location in the source: byte offset and length plus line/column (1-based)."""
    model_config = ConfigDict(frozen=True)

    start: NonNegativeInt = 0
    length: NonNegativeInt = 0
    line: PositiveInt = 1
    column: PositiveInt = 1

    @classmethod
    def from_meta(cls, meta):
        """Build a span from a Lark ``Meta`` or ``Token``; ``None`` if it has no position."""
        if getattr(meta, "empty", False):
            return None
        line = getattr(meta, "line", None)
        column = getattr(meta, "column", None)
        if line is None or column is None:
            return None
        start = getattr(meta, "start_pos", None) or 0
        end = getattr(meta, "end_pos", None) or start
        return cls(start=start, length=max(end - start, 0), line=line, column=column)

    @classmethod
    def at_offset(cls, text, offset, length=0):
        """Compute line/column for ``offset`` in ``text``."""
        offset = max(0, min(offset, len(text)))
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        return cls(start=offset, length=length, line=line, column=column)

    @classmethod
    def coerce(cls, value):
        """Accept a ``Span``, a ``(line, column)`` pair or ``None``."""
        if value is None or isinstance(value, Span):
            return value
        line, column = value
        return cls(line=line, column=column)

    def __str__(self):
        return f"{self.line}:{self.column}"


class Diagnostic(BaseModel):
    """A compiler or runtime message."""
    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    span: Optional[Span] = None

    @property
    def is_error(self):
        return self.severity == Severity.ERROR

    @classmethod
    def error(cls, message, span=None):
        return cls(severity=Severity.ERROR, message=message, span=span)

    @classmethod
    def warning(cls, message, span=None):
        return cls(severity=Severity.WARNING, message=message, span=span)

    @classmethod
    def adapt(cls, raw: Any) -> "Diagnostic":
        """
        Convert whatever a compiler capability reports into a ``Diagnostic``.

        Accepts ``Diagnostic`` instances unchanged and ``(severity, message, span)``
        triples, where severity is a ``Severity`` or its string value and span is
        a ``Span``, a ``(line, column)`` pair or ``None``.
        """
        if isinstance(raw, Diagnostic):
            return raw
        severity, message, span = raw
        return cls(severity=Severity(severity), message=str(message), span=Span.coerce(span))

    def escalated(self):
        """Return this diagnostic as an error (used by strict mode)."""
        if self.is_error:
            return self
        return self.model_copy(update={"severity": Severity.ERROR})


class Frame(BaseModel):
    """One backtrace entry: the function name and where it was executing."""
    model_config = ConfigDict(frozen=True)

    name: str
    span: Optional[Span] = None


def has_errors(diagnostics: Tuple[Diagnostic, ...]) -> bool:
    return any(d.is_error for d in diagnostics)
