"""
Source loader for Rune scripts.

Reads the whole script into memory. The content is not interpreted here; a
missing or unreadable file is terminal for the invocation.
"""
import os
import sys

from pydantic import BaseModel, ConfigDict

from .errors import LoadError, LoadErrorKind
from .log import debug_log

STDIN_PATH = "-"
STDIN_NAME = "<stdin>"


class SourceUnit(BaseModel):
    """A loaded script: where it came from and its text."""
    model_config = ConfigDict(frozen=True)

    path: str
    text: str


def load(path, stdin=None):
    """
    Load ``path`` into a ``SourceUnit``.

    Args:
        path: Path to the script, or ``-`` to read standard input
        stdin: Stream used for ``-`` (defaults to ``sys.stdin``)

    Raises:
        LoadError: NOT_FOUND if the path does not exist, UNREADABLE if it
            exists but cannot be read as UTF-8 text
    """
    if path == STDIN_PATH:
        stream = stdin if stdin is not None else sys.stdin
        debug_log("Reading script from stdin")
        try:
            return SourceUnit(path=STDIN_NAME, text=stream.read())
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(LoadErrorKind.UNREADABLE, STDIN_NAME, str(e)) from e

    path = os.fspath(path)
    if not os.path.exists(path):
        raise LoadError(LoadErrorKind.NOT_FOUND, path)
    if os.path.isdir(path):
        raise LoadError(LoadErrorKind.UNREADABLE, path, "is a directory")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise LoadError(LoadErrorKind.UNREADABLE, path, "not valid UTF-8") from e
    except OSError as e:
        raise LoadError(LoadErrorKind.UNREADABLE, path, e.strerror or str(e)) from e

    debug_log(f"Loaded {path} ({len(text)} chars)")
    return SourceUnit(path=path, text=text)
