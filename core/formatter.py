"""
Diagnostic formatting.

Pure functions: they build text and never write it. The caller decides which
stream the text goes to.
"""


def format_location(path, span):
    if span is None:
        return path
    return f"{path}:{span.line}:{span.column}"


def format_diagnostic(path, diagnostic):
    """``path:line:column: severity: message``, or ``path: severity: message`` without a span."""
    where = format_location(path, diagnostic.span)
    return f"{where}: {diagnostic.severity.value}: {diagnostic.message}"


def format_diagnostics(path, diagnostics):
    """One line per diagnostic, in the order given."""
    return "\n".join(format_diagnostic(path, d) for d in diagnostics)


def format_frame(path, frame):
    where = format_location(path, frame.span) if frame.span is not None else "unknown"
    return f"  at {frame.name} ({where})"


def format_backtrace(path, backtrace):
    # backtrace is already innermost-first
    return "\n".join(format_frame(path, frame) for frame in backtrace)


def format_fault(path, fault):
    lines = [format_diagnostic(path, fault.diagnostic)]
    if fault.backtrace:
        lines.append(format_backtrace(path, fault.backtrace))
    return "\n".join(lines)
