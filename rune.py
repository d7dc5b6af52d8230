import argparse
import sys

from compiler import RuneCompiler, set_verbose
from core.config import apply_overrides, load_config
from core.log import log
from core.pipeline import Pipeline
from core.runtime.vm import Vm


def positive_int(text):
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{text}'")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: '{text}'")
    return value


# sysexits EX_USAGE
EXIT_USAGE = 64

EXIT_STATUS_HELP = """\
exit status:
  0   the script ran (or compiled, with --check)
  1   the script could not be read
  2   the script failed to compile
  3   the script faulted while running
  64  invalid command-line usage
"""


class RuneArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser():
    parser = RuneArgumentParser(
        prog="rune",
        description="Compile and run a Rune script",
        epilog=EXIT_STATUS_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", action="store_true", default=None,
                        help="Enable verbose output (sent to stderr)")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="Treat warnings as errors")
    parser.add_argument("-q", "--quiet", action="store_false", dest="print_result", default=None,
                        help="Do not print the value returned by main")
    parser.add_argument("--check", action="store_true", default=None,
                        help="Compile only; report diagnostics without running")
    parser.add_argument("--fuel", type=positive_int, default=None,
                        help="Maximum number of instructions to execute")
    parser.add_argument("--max-depth", type=positive_int, dest="max_call_depth", default=None,
                        help="Maximum call depth")
    parser.add_argument("--trace", action="store_true", default=None,
                        help="Log every executed instruction (implies --verbose)")
    parser.add_argument("--dump-unit", action="store_true", default=None,
                        help="Print the disassembled unit to stderr before running")
    parser.add_argument("--dump-functions", action="store_true", default=None,
                        help="Print the function table to stderr before running")
    parser.add_argument("--config", help="Path to a rune.json config file")
    parser.add_argument("script", help="Script to run ('-' reads from stdin)")
    parser.add_argument("args", nargs=argparse.REMAINDER,
                        help="Arguments passed to the script's main(args)")
    return parser


OVERRIDES = (
    "verbose", "strict", "print_result", "check", "fuel",
    "max_call_depth", "trace", "dump_unit", "dump_functions",
)


def cmd_run(args, stdout=None, stderr=None, stdin=None):
    """Run the script named in parsed ``args`` and return the exit status."""
    config = load_config(args.config)
    config = apply_overrides(config, {name: getattr(args, name) for name in OVERRIDES})
    set_verbose(config.verbose or config.trace)

    vm = Vm(
        stdout=stdout,
        stderr=stderr,
        fuel=config.fuel,
        max_call_depth=config.max_call_depth,
        trace=config.trace,
    )
    pipeline = Pipeline(RuneCompiler(), vm, config, stdout=stdout, stderr=stderr, stdin=stdin)
    report = pipeline.run(args.script, args.args)
    if config.verbose:
        log(f"{report.path}: {report.reporting.value}")
    return int(report.exit_code)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(cmd_run(args))


if __name__ == "__main__":
    main()
