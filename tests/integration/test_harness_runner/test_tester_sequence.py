"""
Integration tests for the tester sequence, using real subprocesses.
"""

import time

import pytest

from procharness.models import HarnessConfig
from procharness.orchestration import HarnessRunner, HarnessRunnerConfig


def make_runner(containers, testers, terminator, **harness_kwargs):
    return HarnessRunner(
        HarnessRunnerConfig(
            containers=containers,
            testers=testers,
            harness=HarnessConfig(**harness_kwargs),
        ),
        terminator=terminator,
    )


@pytest.mark.integration
class TestTesterSequence:
    """Test cases for running and judging testers."""

    def test_testers_run_in_declared_order(self, make_tester, snippets, recording_terminator):
        testers = [
            make_tester("a", snippets["exit_zero"], completion_timeout_ms=5000),
            make_tester("b", snippets["passing_tester"], watch="PASS", completion_timeout_ms=5000),
            make_tester("c", snippets["exit_zero"], completion_timeout_ms=5000),
        ]

        result = make_runner([], testers, recording_terminator).run()

        assert result.success
        assert [o.process_id for o in result.tester_outcomes] == ["TESTER[a]", "TESTER[b]", "TESTER[c]"]
        assert recording_terminator.terminated == ["TESTER[a]", "TESTER[b]", "TESTER[c]"]

    def test_fail_fast_stops_after_first_failure(self, make_tester, snippets, recording_terminator):
        testers = [
            make_tester("a", snippets["exit_one"], completion_timeout_ms=5000),
            make_tester("b", snippets["exit_zero"], completion_timeout_ms=5000),
        ]

        result = make_runner([], testers, recording_terminator, fail_fast=True).run()

        assert not result.success
        assert result.failed_processes == ["TESTER[a]"]
        assert [o.process_id for o in result.tester_outcomes] == ["TESTER[a]"]
        assert recording_terminator.terminated == ["TESTER[a]"]

    def test_fail_fast_never_spawns_tester_after_failed_one(self, make_tester, snippets, recording_terminator):
        testers = [
            make_tester("A", snippets["exit_zero"], completion_timeout_ms=5000),
            make_tester("B", snippets["exit_one"], completion_timeout_ms=5000),
            make_tester("C", snippets["exit_zero"], completion_timeout_ms=5000),
        ]
        runner = make_runner([], testers, recording_terminator, fail_fast=True)

        result = runner.run()

        assert result.failed_processes == ["TESTER[B]"]
        assert [h.process_id for h in runner.process_manager.handles] == ["TESTER[A]", "TESTER[B]"]

    def test_without_fail_fast_every_tester_runs(self, make_tester, snippets, recording_terminator):
        testers = [
            make_tester("A", snippets["exit_one"], completion_timeout_ms=5000),
            make_tester("B", snippets["exit_one"], completion_timeout_ms=5000),
            make_tester("C", snippets["exit_zero"], completion_timeout_ms=5000),
        ]

        result = make_runner([], testers, recording_terminator, fail_fast=False).run()

        assert not result.success
        assert result.failed_processes == ["TESTER[A]", "TESTER[B]"]
        assert [o.passed for o in result.tester_outcomes] == [False, False, True]
        assert result.message == "Failure text arrived on the following processes: [TESTER[A], TESTER[B]]"

    def test_tester_timeout(self, make_tester, snippets, recording_terminator):
        testers = [make_tester("slow", snippets["hang"], completion_timeout_ms=500)]

        start = time.monotonic()
        result = make_runner([], testers, recording_terminator).run()
        elapsed = time.monotonic() - start

        assert not result.success
        outcome = result.tester_outcomes[0]
        assert outcome.timed_out
        assert outcome.exit_code is None
        assert 0.4 <= elapsed < 5
        assert result.failed_processes == ["TESTER[slow]"]

    def test_overall_budget_extends_short_tester_timeout(self, make_tester, recording_terminator):
        testers = [make_tester("steady", "import time; time.sleep(0.5)", completion_timeout_ms=100)]

        result = make_runner([], testers, recording_terminator, tests_completion_timeout_ms=10000).run()

        assert result.success
        assert result.tester_outcomes[0].exit_code == 0

    def test_no_timeout_configured_is_immediate_timeout(self, make_tester, snippets, recording_terminator, caplog):
        testers = [make_tester("unbounded", snippets["hang"])]

        start = time.monotonic()
        result = make_runner([], testers, recording_terminator).run()

        assert time.monotonic() - start < 5
        assert not result.success
        assert result.tester_outcomes[0].timed_out
        assert "No timeout available" in caplog.text

    def test_failure_text_fails_tester(self, make_tester, recording_terminator):
        testers = [
            make_tester(
                "noisy",
                """
                import time
                print("FAIL: assertion", flush=True)
                time.sleep(60)
                """,
                failure_watch="FAIL",
                completion_timeout_ms=5000,
            )
        ]

        start = time.monotonic()
        result = make_runner([], testers, recording_terminator).run()

        assert time.monotonic() - start < 5
        assert not result.success
        assert result.failed_processes == ["TESTER[noisy]"]
        assert not result.tester_outcomes[0].timed_out

    def test_watch_text_passes_running_tester(self, make_tester, recording_terminator):
        testers = [
            make_tester(
                "server_check",
                """
                import time
                print("all checks PASSED", flush=True)
                time.sleep(60)
                """,
                watch="PASSED",
                completion_timeout_ms=5000,
            )
        ]

        result = make_runner([], testers, recording_terminator).run()

        assert result.success
        outcome = result.tester_outcomes[0]
        assert outcome.passed
        assert outcome.exit_code is None
        assert recording_terminator.terminated == ["TESTER[server_check]"]

    def test_environment_reaches_tester(self, make_tester, recording_terminator):
        testers = [
            make_tester(
                "env",
                "import os, sys; sys.exit(0 if os.environ.get('HARNESS_MODE') == 'ci' else 3)",
                environment={"HARNESS_MODE": "ci"},
                completion_timeout_ms=5000,
            )
        ]

        result = make_runner([], testers, recording_terminator).run()

        assert result.success

    def test_every_process_terminated_exactly_once(
        self, make_container, make_tester, snippets, recording_terminator
    ):
        containers = [make_container("db", snippets["ready_container"], start_watch="READY")]
        testers = [
            make_tester("a", snippets["passing_tester"], watch="PASS", completion_timeout_ms=5000),
            make_tester("b", snippets["exit_one"], completion_timeout_ms=5000),
            make_tester("c", snippets["exit_zero"], completion_timeout_ms=5000),
        ]
        runner = make_runner(containers, testers, recording_terminator, fail_fast=False)

        runner.run()

        handles = runner.process_manager.handles
        assert len(handles) == 4
        assert all(h.termination_count == 1 for h in handles)
        assert sorted(recording_terminator.terminated) == sorted(h.process_id for h in handles)
        assert runner.process_manager.live_handles() == []

    def test_startup_delay_is_honoured(self, make_tester, snippets, recording_terminator):
        testers = [make_tester("late", snippets["exit_zero"], startup_delay_ms=300, completion_timeout_ms=5000)]

        start = time.monotonic()
        result = make_runner([], testers, recording_terminator).run()

        assert result.success
        assert time.monotonic() - start >= 0.3
