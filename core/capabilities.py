"""
Interfaces for the collaborators the pipeline drives.

The pipeline never looks inside a compiled unit or a VM value; it only
relies on the result shapes described here.
"""
from abc import ABC, abstractmethod
from typing import Sequence


class CompilerCapability(ABC):
    """Turns source text into an executable unit."""

    @abstractmethod
    def compile(self, text: str):
        """
        Returns:
            Ok(unit) on success. The unit may carry warnings in a
            ``diagnostics`` attribute.
            Err(messages) on failure, where each message is a Diagnostic or a
            ``(severity, message, span)`` triple, in detection order.
        """


class VmCapability(ABC):
    """Executes a compiled unit."""

    @abstractmethod
    def run(self, unit, args: Sequence[str]):
        """
        Returns:
            Ok(value) on success ("no value" is ``None``).
            Err((message, backtrace)) on a fault, where backtrace is a sequence
            of ``(frame_name, span)`` pairs, innermost frame first.
        """

    def describe(self, value) -> str:
        """Text used when the pipeline prints a result value."""
        return repr(value)
