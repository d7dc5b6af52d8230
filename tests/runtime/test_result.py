"""
Unit tests for the Result type (Ok, Err).
"""
import pytest

from core.runtime.result import Err, Ok, Result


class TestResultType:
    """Tests for Ok and Err result types."""

    def test_ok_is_ok(self):
        """Ok.is_ok() should return True."""
        result = Ok("success")
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_err_is_err(self):
        """Err.is_err() should return True."""
        result = Err(("division by zero", []))
        assert result.is_err() is True
        assert result.is_ok() is False

    def test_both_are_results(self):
        assert isinstance(Ok(1), Result)
        assert isinstance(Err(1), Result)

    def test_ok_unwrap(self):
        """Ok.unwrap() should return the value."""
        assert Ok(42).unwrap() == 42

    def test_err_unwrap_raises(self):
        """Err.unwrap() should raise RuntimeError."""
        with pytest.raises(RuntimeError, match="Called unwrap"):
            Err("compilation failed").unwrap()

    def test_ok_unwrap_or(self):
        """Ok.unwrap_or() should return the value, not default."""
        assert Ok("value").unwrap_or("default") == "value"

    def test_err_unwrap_or(self):
        """Err.unwrap_or() should return the default."""
        assert Err("boom").unwrap_or("default") == "default"

    def test_ok_none_is_still_ok(self):
        """A script that returns nothing is a success with no value."""
        result = Ok(None)
        assert result.is_ok()
        assert result.unwrap() is None


class TestResultEquality:
    def test_equality(self):
        assert Ok(1) == Ok(1)
        assert Ok(1) != Ok(2)
        assert Ok(1) != Err(1)
        assert Err(("x", [])) == Err(("x", []))

    def test_repr(self):
        assert repr(Ok(1)) == "Ok(1)"
        assert repr(Err("bad")) == "Err('bad')"


class TestPatternMatching:
    """Results can be destructured with match statements."""

    def test_match_ok(self):
        match Ok(3):
            case Ok(value):
                assert value == 3
            case Err(_):
                pytest.fail("expected Ok")

    def test_match_err(self):
        match Err(("panicked", [("main", None)])):
            case Ok(_):
                pytest.fail("expected Err")
            case Err((message, backtrace)):
                assert message == "panicked"
                assert backtrace == [("main", None)]
