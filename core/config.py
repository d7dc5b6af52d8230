"""
Runner configuration.

Settings come from a JSON file (``--config PATH``, then ``rune.json`` in the
working directory, then ``~/.rune/config.json``); flags given on the command
line override them.
"""
import json
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, PositiveInt, ValidationError

from .log import debug_log, warn

CONFIG_FILE = "rune.json"
USER_CONFIG_FILE = os.path.join("~", ".rune", "config.json")


class RunConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    strict: bool = False
    print_result: bool = True
    check: bool = False
    fuel: Optional[PositiveInt] = None
    max_call_depth: PositiveInt = 1024
    trace: bool = False
    verbose: bool = False
    dump_unit: bool = False
    dump_functions: bool = False


def find_config_file(explicit=None):
    """Return the first config file that exists, or None."""
    if explicit:
        return explicit
    for path in (CONFIG_FILE, os.path.expanduser(USER_CONFIG_FILE)):
        if os.path.exists(path):
            return path
    return None


def load_config(path=None):
    """
    Load the runner configuration.

    An unreadable or invalid file is reported with a warning and the defaults
    are used instead.
    """
    path = find_config_file(path)
    if path is None:
        return RunConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = RunConfig.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        warn(f"Ignoring config file {path}: {e}")
        return RunConfig()
    debug_log(f"Loaded config from {path}")
    return config


def apply_overrides(config, overrides):
    """Return ``config`` with every override that is not None applied."""
    update = {k: v for k, v in overrides.items() if v is not None}
    if update.get("trace"):
        update["verbose"] = True
    if not update:
        return config
    return RunConfig.model_validate({**config.model_dump(), **update})
