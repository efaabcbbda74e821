"""
Unit tests for configuration loading and validation.
"""

from pathlib import Path

import pytest
import toml

from procharness.config import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config,
    set_config_path,
    validate_harness_config,
)
from procharness.validation import ConfigurationError, ValidationError


@pytest.mark.unit
class TestHarnessConfigValidation:
    """Test cases for the [harness] table."""

    def test_defaults(self):
        harness = validate_harness_config({})

        assert harness.containers_startup_timeout_ms is None
        assert harness.tests_completion_timeout_ms is None
        assert harness.fail_fast is True
        assert harness.private_environment_variables == []
        assert harness.log_dir is None

    def test_full_table(self, temp_dir):
        harness = validate_harness_config(
            {
                "containers_startup_timeout": "30000",
                "tests_completion_timeout": 600000,
                "fail_fast": False,
                "private_environment_variables": "API_TOKEN, DB_PASSWORD",
                "log_dir": "logs",
            },
            base_dir=temp_dir,
        )

        assert harness.containers_startup_timeout_ms == 30000
        assert harness.tests_completion_timeout_ms == 600000
        assert harness.fail_fast is False
        assert harness.private_environment_variables == ["API_TOKEN", "DB_PASSWORD"]
        assert harness.log_dir == temp_dir / "logs"

    def test_fail_fast_must_be_boolean(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_harness_config({"fail_fast": "yes"})

        assert "fail_fast" in str(exc_info.value)

    def test_non_numeric_timeout(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_harness_config({"tests_completion_timeout": "forever"})

        assert "tests_completion_timeout" in str(exc_info.value)


@pytest.mark.unit
class TestConfigFileLoading:
    """Test cases for loading harness.toml."""

    def test_load_config(self, config_file, temp_dir):
        config = load_config(config_file)

        assert [c.id for c in config.containers] == ["server"]
        assert [t.id for t in config.testers] == ["smoke"]
        assert config.harness.containers_startup_timeout_ms == 10000
        assert config.harness.private_environment_variables == ["HARNESS_SECRET"]
        assert config.testers[0].completion_timeout_ms == 5000

    def test_relative_working_dir_is_resolved(self, temp_dir, sample_harness_data):
        (temp_dir / "services").mkdir()
        sample_harness_data["containers"][0]["working_dir"] = "services"
        path = temp_dir / "harness.toml"
        path.write_text(toml.dumps(sample_harness_data))

        config = load_config(path)

        assert Path(config.containers[0].working_dir) == temp_dir.resolve() / "services"

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "missing.toml")

    def test_malformed_file(self, temp_dir):
        path = temp_dir / "harness.toml"
        path.write_text("[[containers]\nid = \n")

        with pytest.raises(ValidationError) as exc_info:
            load_config(path)

        assert "not valid TOML" in str(exc_info.value)

    def test_duplicate_ids_in_file(self, temp_dir, sample_harness_data):
        sample_harness_data["testers"].append(dict(sample_harness_data["testers"][0]))
        path = temp_dir / "harness.toml"
        path.write_text(toml.dumps(sample_harness_data))

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert "more than one test process with id 'smoke'" in exc_info.value.problems[0]

    def test_containers_must_be_array_of_tables(self, temp_dir):
        path = temp_dir / "harness.toml"
        path.write_text('containers = "server"\n')

        with pytest.raises(TypeError):
            load_config(path)

    def test_cached_config(self, config_file):
        set_config_path(config_file)
        assert not is_config_loaded()

        first = get_config()
        assert get_config() is first
        assert get_config_info()["containers_count"] == 1

        clear_config_cache()
        assert not is_config_loaded()
