"""
Shared fixtures for the Rune test suite.
"""
import io
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from compiler import RuneCompiler  # noqa: E402
from core.config import RunConfig  # noqa: E402
from core.log import set_verbose  # noqa: E402
from core.runtime.vm import Vm  # noqa: E402


@pytest.fixture(autouse=True)
def quiet_logs():
    """Make sure a test that turns on verbose mode does not leak it."""
    set_verbose(False)
    yield
    set_verbose(False)


@pytest.fixture
def write_script(tmp_path):
    """Write a script into tmp_path and return its path as a string."""
    def write(source, name="script.rn"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return str(path)
    return write


@pytest.fixture
def streams():
    """A (stdout, stderr) pair of StringIO buffers."""
    return io.StringIO(), io.StringIO()


@pytest.fixture
def compile_ok():
    """Compile source with the bundled compiler and return the unit."""
    def compile_(source):
        result = RuneCompiler().compile(source)
        assert result.is_ok(), result
        return result.value
    return compile_


@pytest.fixture
def run_source(compile_ok):
    """Compile and run source; returns (result, stdout text, stderr text)."""
    def run(source, args=(), **vm_options):
        out, err = io.StringIO(), io.StringIO()
        vm = Vm(stdout=out, stderr=err, **vm_options)
        result = vm.run(compile_ok(source), list(args))
        return result, out.getvalue(), err.getvalue()
    return run


@pytest.fixture
def config():
    return RunConfig()
