"""
System interaction utilities.

This module provides the pieces that touch the operating system before a
process is spawned:

- Command preparation (string splitting, argument lists)
- Child environment derivation
- Environment dumping with redaction of private variables
"""

from .commands import build_environment, describe_command, prepare_command
from .environment import dump_environment

__all__ = [
    "build_environment",
    "describe_command",
    "dump_environment",
    "prepare_command",
]
