"""
Tests for the run log directory, console captures and the summary log.
"""

import pytest

from procharness.models import RunResult, TesterOutcome
from procharness.orchestration.log_manager import LogManager


@pytest.mark.unit
class TestLogManager:
    """Test cases for LogManager."""

    def test_disabled_without_log_dir(self):
        manager = LogManager()

        assert not manager.enabled
        assert manager.prepare_run_directory() is None
        assert manager.open_console_log("TESTER[t1]") is None
        assert manager.write_summary_log(RunResult(success=True)) is None
        manager.close_log_files()

    def test_run_directory_and_console_log(self, temp_dir):
        manager = LogManager(temp_dir / "logs")

        run_dir = manager.prepare_run_directory("20240101_120000")
        sink = manager.open_console_log("CONTAINER[web server]")
        sink.write("hello\n")
        manager.close_log_files()

        assert run_dir == temp_dir / "logs" / "run_20240101_120000"
        assert (run_dir / "CONTAINER_web_server.log").read_text() == "hello\n"
        assert sink.closed
        assert manager.log_files == {}

    def test_summary_log(self, temp_dir):
        manager = LogManager(temp_dir)
        manager.prepare_run_directory("run1")
        result = RunResult(
            success=False,
            failed_processes=["TESTER[b]"],
            tester_outcomes=[
                TesterOutcome("TESTER[a]", 0, False, True, 0.25, True),
                TesterOutcome("TESTER[b]", None, True, True, 0.5, False),
            ],
            message="Failure text arrived on the following processes: [TESTER[b]]",
        )

        path = manager.write_summary_log(result)
        lines = path.read_text().splitlines()

        assert lines[0] == "success=False"
        assert lines[1] == "failed_processes=TESTER[b]"
        assert "TESTER[a]: PASSED exit_code=0 timed_out=False duration=0.250s" in lines
        assert "TESTER[b]: FAILED exit_code=None timed_out=True duration=0.500s" in lines
        assert lines[-1] == result.message

    def test_unopenable_console_log_is_skipped(self, temp_dir, caplog):
        manager = LogManager(temp_dir)
        manager.prepare_run_directory("run1")
        (manager.run_dir / "TESTER_t1.log").mkdir()

        assert manager.open_console_log("TESTER[t1]") is None
        assert "Failed to open console log" in caplog.text
