"""
Command preparation utilities.

This module turns the command and environment of a process spec into the
arguments handed to subprocess.Popen.
"""

import logging
import os
import shlex
from typing import Dict, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)


def prepare_command(command: Union[str, List[str]]) -> List[str]:
    """Turn a spec command into an argument list.

    String commands are split with POSIX shell rules, so quoting works the
    same way it does on a command line. No shell is involved in running the
    result.

    Args:
        command: Command line string or argument list.

    Returns:
        The argument list to execute.

    Examples:
        >>> prepare_command("python -c 'print(1)'")
        ['python', '-c', 'print(1)']
        >>> prepare_command(["make", "test"])
        ['make', 'test']
    """
    if isinstance(command, str):
        return shlex.split(command)
    return list(command)


def describe_command(command: Union[str, List[str]]) -> str:
    """Render a command for log messages."""
    if isinstance(command, str):
        return command
    return shlex.join(command)


def build_environment(
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Derive a child environment from the current process.

    Args:
        overrides: Variables to add or replace.
        base: Starting environment, defaults to ``os.environ``.

    Returns:
        A new dictionary; the inputs are never modified.
    """
    environment = dict(os.environ if base is None else base)
    if overrides:
        environment.update(overrides)
    return environment
