"""
Log management for the orchestration module.

This module handles the optional log files of a run: one console capture
per spawned process and a summary of the verdict, all kept in a per-run
directory.
"""

import logging
import time
from pathlib import Path
from typing import IO, Any, Dict, Optional

from ..models.results import RunResult

logger = logging.getLogger(__name__)


class LogManager:
    """
    Handles all log file operations of a harness run.

    When no log directory is configured every method is a no-op, so the
    orchestrator can call it unconditionally.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.run_dir: Optional[Path] = None
        self.log_files: Dict[str, IO[Any]] = {}

    @property
    def enabled(self) -> bool:
        return self.log_dir is not None

    def prepare_run_directory(self, timestamp: Optional[str] = None) -> Optional[Path]:
        """
        Create the directory holding this run's logs.

        Returns:
            The run directory, or None when logging to files is disabled
        """
        if not self.enabled:
            return None
        timestamp = timestamp or time.strftime("%Y%m%d_%H%M%S")
        self.run_dir = self.log_dir / f"run_{timestamp}"
        self.run_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Logs for this run will be in {self.run_dir}")
        return self.run_dir

    def open_console_log(self, process_id: str) -> Optional[IO[Any]]:
        """
        Open the console capture file for a labelled process id.

        A file that cannot be opened is logged and skipped; capturing console
        output must never stop a run.
        """
        if self.run_dir is None:
            return None
        path = self.run_dir / f"{self._sanitize(process_id)}.log"
        try:
            handle = open(path, "w", encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to open console log for {process_id} at {path}: {e}")
            return None
        self.log_files[process_id] = handle
        logger.debug(f"Successfully opened log file: {process_id} -> {path}")
        return handle

    def write_summary_log(self, result: RunResult) -> Optional[Path]:
        """
        Write the verdict and per-tester outcomes to `summary.log`.
        """
        if self.run_dir is None:
            return None
        path = self.run_dir / "summary.log"
        with open(path, "w", encoding="utf-8") as summary_log:
            summary_log.write(f"success={result.success}\n")
            summary_log.write(f"failed_processes={', '.join(result.failed_processes)}\n\n")
            summary_log.write("--- Tester Outcomes ---\n")
            for outcome in result.tester_outcomes:
                status = "PASSED" if outcome.passed else "FAILED"
                summary_log.write(
                    f"{outcome.process_id}: {status} exit_code={outcome.exit_code} "
                    f"timed_out={outcome.timed_out} duration={outcome.duration:.3f}s\n"
                )
            if result.message:
                summary_log.write(f"\n{result.message}\n")
        return path

    def close_log_files(self) -> None:
        """Close all opened log files using safe cleanup."""
        if not self.log_files:
            logger.debug("No log files to close")
            return

        logger.debug(f"Closing {len(self.log_files)} log files")
        self._safe_close_files(self.log_files)
        self.log_files.clear()

    @staticmethod
    def _sanitize(process_id: str) -> str:
        return "".join(c if c.isalnum() or c in "-_." else "_" for c in process_id).strip("_")

    def _safe_close_files(self, files_dict: Dict[str, Any]) -> None:
        """
        Safely close a dictionary of file handles with individual error handling.
        """
        failed_count = 0
        for name, file_handle in files_dict.items():
            try:
                file_handle.close()
            except OSError as e:
                failed_count += 1
                logger.warning(f"Failed to close log file {name}: {e}")

        if failed_count > 0:
            logger.warning(f"Failed to close {failed_count} log files")
