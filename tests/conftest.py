"""
Pytest configuration and shared fixtures for the procharness test suite.

This module provides common fixtures, process-spec factories and
configuration helpers for all test modules.
"""

import shutil
import sys
import tempfile
import textwrap
from pathlib import Path
from typing import List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from procharness.models import ContainerSpec, HarnessConfig, TesterSpec  # noqa: E402
from procharness.orchestration import ProcessTerminator  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


def python_command(code: str) -> List[str]:
    """Argument list running `code` in a fresh, unbuffered interpreter."""
    return [sys.executable, "-u", "-c", textwrap.dedent(code)]


@pytest.fixture
def py():
    """Build a command running a Python snippet."""
    return python_command


@pytest.fixture
def make_container(temp_dir):
    """Factory for container specs running a Python snippet."""

    def factory(process_id: str, code: str, **kwargs) -> ContainerSpec:
        return ContainerSpec(
            id=process_id,
            command=python_command(code),
            working_dir=str(temp_dir),
            **kwargs,
        )

    return factory


@pytest.fixture
def make_tester(temp_dir):
    """Factory for tester specs running a Python snippet."""

    def factory(process_id: str, code: str, **kwargs) -> TesterSpec:
        return TesterSpec(
            id=process_id,
            command=python_command(code),
            working_dir=str(temp_dir),
            **kwargs,
        )

    return factory


# Snippets shared by the integration and end-to-end tests.
READY_CONTAINER = """
    import time
    time.sleep(0.1)
    print("READY", flush=True)
    time.sleep(60)
"""

SILENT_CONTAINER = """
    import time
    time.sleep(60)
"""

PASSING_TESTER = """
    import time
    time.sleep(0.05)
    print("PASS", flush=True)
    time.sleep(0.03)
"""


@pytest.fixture
def snippets():
    """Common process snippets."""
    return {
        "ready_container": READY_CONTAINER,
        "silent_container": SILENT_CONTAINER,
        "passing_tester": PASSING_TESTER,
        "exit_zero": "import sys; sys.exit(0)",
        "exit_one": "import sys; sys.exit(1)",
        "hang": "import time; time.sleep(60)",
    }


@pytest.fixture
def harness_config():
    """Harness settings with fail-fast and no timeouts."""
    return HarnessConfig()


# ============================================================================
# Mock Fixtures
# ============================================================================


class RecordingTerminator(ProcessTerminator):
    """A real terminator that remembers which processes it terminated."""

    def __init__(self):
        super().__init__(reap_timeout=5.0)
        self.terminated: List[str] = []

    def terminate(self, handle):
        self.terminated.append(handle.process_id)
        super().terminate(handle)


@pytest.fixture
def recording_terminator():
    return RecordingTerminator()


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_harness_data(temp_dir):
    """Raw configuration data as it would appear in harness.toml."""
    return {
        "harness": {
            "containers_startup_timeout": 10000,
            "tests_completion_timeout": 20000,
            "fail_fast": True,
            "private_environment_variables": ["HARNESS_SECRET"],
        },
        "containers": [
            {
                "id": "server",
                "command": python_command(READY_CONTAINER),
                "working_dir": str(temp_dir),
                "start_watch": "READY",
                "failure_watch": "Traceback",
            }
        ],
        "testers": [
            {
                "id": "smoke",
                "command": python_command(PASSING_TESTER),
                "working_dir": str(temp_dir),
                "completion_timeout": 5000,
                "watch": "PASS",
                "failure_watch": "FAIL",
            }
        ],
    }


@pytest.fixture
def config_file(temp_dir, sample_harness_data):
    """Write sample_harness_data to a harness.toml file."""
    import toml

    path = temp_dir / "harness.toml"
    with open(path, "w") as f:
        toml.dump(sample_harness_data, f)
    return path


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield

    from procharness.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(Path("harness.toml"))
