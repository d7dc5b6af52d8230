"""
Unit tests for core/loader.py - reading scripts.
"""
import io
import os

import pytest

from core.errors import LoadError, LoadErrorKind
from core.loader import STDIN_NAME, SourceUnit, load


class TestLoad:
    def test_reads_file(self, write_script):
        path = write_script('fn main() { 1 }')
        source = load(path)
        assert source == SourceUnit(path=path, text='fn main() { 1 }')

    def test_text_is_not_interpreted(self, write_script):
        """Even nonsense loads; only the compiler judges content."""
        path = write_script('this is not rune')
        assert load(path).text == 'this is not rune'

    def test_accepts_path_objects(self, tmp_path):
        script = tmp_path / "p.rn"
        script.write_text("x")
        assert load(script).path == str(script)

    def test_empty_file(self, write_script):
        assert load(write_script('')).text == ''

    def test_source_unit_is_frozen(self, write_script):
        source = load(write_script('a'))
        with pytest.raises(ValueError):
            source.text = 'b'


class TestLoadErrors:
    def test_missing_file(self, tmp_path):
        path = str(tmp_path / "missing.rn")
        with pytest.raises(LoadError) as excinfo:
            load(path)
        assert excinfo.value.kind == LoadErrorKind.NOT_FOUND
        assert excinfo.value.path == path
        assert excinfo.value.message == "file not found"

    def test_directory(self, tmp_path):
        with pytest.raises(LoadError) as excinfo:
            load(str(tmp_path))
        assert excinfo.value.kind == LoadErrorKind.UNREADABLE
        assert excinfo.value.message == "could not read file: is a directory"

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "bin.rn"
        path.write_bytes(b'\xff\xfe\x00')
        with pytest.raises(LoadError) as excinfo:
            load(str(path))
        assert excinfo.value.kind == LoadErrorKind.UNREADABLE
        assert "not valid UTF-8" in excinfo.value.message

    @pytest.mark.skipif(os.name != "posix" or getattr(os, "geteuid", lambda: 0)() == 0,
                        reason="needs POSIX permissions and a non-root user")
    def test_permission_denied(self, tmp_path):
        path = tmp_path / "locked.rn"
        path.write_text("fn main() {}")
        path.chmod(0)
        try:
            with pytest.raises(LoadError) as excinfo:
                load(str(path))
        finally:
            path.chmod(0o644)
        assert excinfo.value.kind == LoadErrorKind.UNREADABLE


class TestStdin:
    def test_dash_reads_stdin(self):
        source = load("-", stdin=io.StringIO("fn main() { 3 }"))
        assert source.path == STDIN_NAME
        assert source.text == "fn main() { 3 }"
