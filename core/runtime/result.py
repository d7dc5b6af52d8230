"""
Result<T, E> model used at the capability boundaries.

Compilers return ``Ok(unit)`` or ``Err(messages)``; virtual machines return
``Ok(value)`` or ``Err((message, backtrace))``.
"""


class Result:
    """Base class for Result<T, E> (Ok or Err)."""

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def unwrap(self):
        """Get value or raise error."""
        if isinstance(self, Ok):
            return self.value
        raise RuntimeError(f"Called unwrap() on Err: {self.error!r}")

    def unwrap_or(self, default):
        """Get value or return default."""
        if isinstance(self, Ok):
            return self.value
        return default


class Ok(Result):
    """Success case: Ok<T>."""

    __match_args__ = ("value",)

    def __init__(self, value):
        self.value = value

    def __eq__(self, other):
        return isinstance(other, Ok) and self.value == other.value

    def __repr__(self):
        return f"Ok({self.value!r})"


class Err(Result):
    """Error case: Err<E>."""

    __match_args__ = ("error",)

    def __init__(self, error):
        self.error = error

    def __eq__(self, other):
        return isinstance(other, Err) and self.error == other.error

    def __repr__(self):
        return f"Err({self.error!r})"
