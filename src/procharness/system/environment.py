"""
Environment dumping with redaction.
"""

import logging
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


def dump_environment(
    environment: Mapping[str, str],
    process_id: str,
    private_names: Iterable[str] = (),
    log: Optional[logging.Logger] = None,
) -> int:
    """Log a process environment at DEBUG level, skipping private names.

    Args:
        environment: The environment the process is started with.
        process_id: Labelled id used as the log prefix.
        private_names: Variable names whose values must never be logged.
        log: Logger to write to (defaults to the module logger).

    Returns:
        Number of variables written.
    """
    effective_logger = log or logger
    if not effective_logger.isEnabledFor(logging.DEBUG):
        return 0

    hidden = set(private_names)
    effective_logger.debug(f"{process_id}: Environment configuration")
    written = 0
    for key in sorted(environment):
        if key in hidden:
            continue
        effective_logger.debug(f"     {key}={environment[key]}")
        written += 1
    return written
