"""
Tests for rune.py - the command-line front end.
"""
import io
import json

import pytest

import rune


@pytest.fixture(autouse=True)
def no_config_files(tmp_path, monkeypatch):
    """Keep a developer's rune.json or ~/.rune/config.json out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)


def run_cli(argv):
    out, err = io.StringIO(), io.StringIO()
    args = rune.build_parser().parse_args(argv)
    code = rune.cmd_run(args, stdout=out, stderr=err)
    return code, out.getvalue(), err.getvalue()


class TestArgumentParsing:
    def test_script_and_args(self):
        args = rune.build_parser().parse_args(["s.rn", "a", "--b", "-c"])
        assert args.script == "s.rn"
        assert args.args == ["a", "--b", "-c"]

    def test_flags_default_to_none(self):
        """Unset flags must not override config file values."""
        args = rune.build_parser().parse_args(["s.rn"])
        for name in rune.OVERRIDES:
            assert getattr(args, name) is None

    def test_quiet_sets_print_result(self):
        args = rune.build_parser().parse_args(["-q", "s.rn"])
        assert args.print_result is False

    def test_max_depth(self):
        args = rune.build_parser().parse_args(["--max-depth", "10", "s.rn"])
        assert args.max_call_depth == 10

    @pytest.mark.parametrize("value", ["0", "-5", "lots"])
    def test_fuel_must_be_positive(self, value, capsys):
        with pytest.raises(SystemExit) as excinfo:
            rune.build_parser().parse_args(["--fuel", value, "s.rn"])
        assert excinfo.value.code == rune.EXIT_USAGE

    def test_script_required(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            rune.build_parser().parse_args([])
        assert excinfo.value.code == rune.EXIT_USAGE
        assert "rune: error:" in capsys.readouterr().err

    def test_usage_status_differs_from_pipeline_statuses(self):
        assert rune.EXIT_USAGE not in (0, 1, 2, 3)

    def test_help_lists_exit_statuses(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            rune.build_parser().parse_args(["--help"])
        assert excinfo.value.code == 0
        out = capsys.readouterr().out
        assert "exit status:" in out
        assert "64  invalid command-line usage" in out


class TestRun:
    def test_ok(self, write_script):
        code, out, err = run_cli([write_script("fn main() { 1 + 1 }", "ok.rn")])
        assert code == 0
        assert out == "2\n"
        assert err == ""

    def test_missing(self):
        code, out, err = run_cli(["missing.rn"])
        assert code == 1
        assert err == "missing.rn: error: file not found\n"

    def test_compile_error(self, write_script):
        path = write_script("fn main() {\n\n    1 +\n}", "bad.rn")
        code, _, err = run_cli([path])
        assert code == 2
        assert err.startswith(f"{path}:4:1: error: syntax error")

    def test_fault(self, write_script):
        code, _, err = run_cli([write_script("fn main() { panic(\"stop\") }")])
        assert code == 3
        assert "error: panicked `stop`" in err
        assert "  at main (" in err

    def test_args_forwarded(self, write_script):
        path = write_script("fn main(args) { args }")
        code, out, _ = run_cli([path, "x", "--y"])
        assert code == 0
        assert out == '["x", "--y"]\n'

    def test_quiet(self, write_script):
        code, out, _ = run_cli(["-q", write_script("fn main() { 3 }")])
        assert code == 0
        assert out == ""

    def test_strict(self, write_script):
        path = write_script("fn main() { let x = 1; }")
        assert run_cli([path])[0] == 0
        code, _, err = run_cli(["--strict", path])
        assert code == 2
        assert "error: unused variable: `x`" in err

    def test_check(self, write_script):
        code, out, _ = run_cli(["--check", write_script('fn main() { println("side effect") }')])
        assert code == 0
        assert out == ""

    def test_fuel(self, write_script):
        code, _, err = run_cli(["--fuel", "50", write_script("fn main() { loop { } }")])
        assert code == 3
        assert "execution budget exhausted after 50 instructions" in err

    def test_max_depth(self, write_script):
        path = write_script("fn f() { f() }\nfn main() { f() }")
        code, _, err = run_cli(["--max-depth", "20", path])
        assert code == 3
        assert "call depth limit of 20 exceeded" in err

    def test_dump_unit(self, write_script):
        code, _, err = run_cli(["--dump-unit", "--check", write_script("fn main() { 1 }")])
        assert code == 0
        assert "fn main(0):" in err
        assert "RETURN" in err

    def test_dump_functions(self, write_script):
        code, _, err = run_cli(["--dump-functions", "--check", write_script("fn main() { 1 }")])
        assert code == 0
        assert "fn main/0 @ 0000" in err

    def test_verbose_logs_to_stderr(self, write_script, capsys):
        code, out, _ = run_cli(["--verbose", write_script("fn main() { 1 }")])
        assert code == 0
        assert out == "1\n"
        assert "DEBUG:" in capsys.readouterr().err


class TestConfigFile:
    def test_config_file_applies(self, write_script, tmp_path):
        config = tmp_path / "quiet.json"
        config.write_text(json.dumps({"print_result": False}))
        code, out, _ = run_cli(["--config", str(config), write_script("fn main() { 3 }")])
        assert code == 0
        assert out == ""

    def test_working_directory_config(self, write_script, tmp_path):
        (tmp_path / "rune.json").write_text(json.dumps({"strict": True}))
        code, _, _ = run_cli([write_script("fn main() { let x = 1; }")])
        assert code == 2

    def test_flags_override_config(self, write_script, tmp_path):
        (tmp_path / "rune.json").write_text(json.dumps({"fuel": 5}))
        path = write_script("fn main() { let i = 0; while i < 100 { i += 1; } i }")
        assert run_cli([path])[0] == 3
        assert run_cli(["--fuel", "100000", path]) == (0, "100\n", "")


class TestMain:
    def test_main_exits_with_code(self, write_script, capsys):
        with pytest.raises(SystemExit) as excinfo:
            rune.main([write_script("fn main() { 1 / 0 }")])
        assert excinfo.value.code == 3
        assert "division by zero" in capsys.readouterr().err

    def test_bad_flag_exits_with_usage_status(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            rune.main(["--no-such-flag", "s.rn"])
        assert excinfo.value.code == rune.EXIT_USAGE
