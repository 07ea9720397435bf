"""
Tests for interpreter configuration loading.
"""

import pytest
import yaml

from treelox import InterpreterConfig, ConfigError, load_config, resolve_config
from treelox.config import apply_environment


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestInterpreterConfig:
    """Test defaults and validation."""

    def test_defaults(self):
        config = InterpreterConfig()
        assert config.max_errors == 20
        assert config.max_call_depth == 1000
        assert config.allow_local_redeclaration is False
        assert config.warn_undefined_globals is True
        assert config.natives is None
        assert config.log_level == "WARNING"

    def test_log_level_normalized(self):
        assert InterpreterConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("kwargs", [
        {"max_errors": 0},
        {"max_call_depth": -5},
        {"max_errors": True},
        {"allow_local_redeclaration": "yes"},
        {"natives": "clock"},
        {"log_level": "LOUD"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            InterpreterConfig(**kwargs)

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigError) as exc_info:
            InterpreterConfig.from_dict({"max_errors": 3, "colour": "blue"})
        assert "colour" in str(exc_info.value)

    def test_to_dict_round_trip(self):
        config = InterpreterConfig(max_errors=5, natives=["str"])
        assert InterpreterConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    """Test YAML configuration files."""

    def test_load(self, tmp_path):
        path = write_yaml(tmp_path / "treelox.yaml", {
            "max_errors": 3,
            "allow_local_redeclaration": True,
            "natives": ["str", "clock"],
        })
        config = load_config(path)
        assert config.max_errors == 3
        assert config.allow_local_redeclaration is True
        assert config.natives == ["str", "clock"]
        assert config.max_call_depth == 1000

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == InterpreterConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_bad_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("max_errors: [1, 2\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)


class TestEnvironmentOverrides:
    """Test TREELOX_* environment variables."""

    def test_overrides(self):
        config = apply_environment(InterpreterConfig(), {
            "TREELOX_MAX_ERRORS": "7",
            "TREELOX_WARN_UNDEFINED_GLOBALS": "off",
            "TREELOX_NATIVES": "str, clock",
            "TREELOX_LOG_LEVEL": "info",
        })
        assert config.max_errors == 7
        assert config.warn_undefined_globals is False
        assert config.natives == ["str", "clock"]
        assert config.log_level == "INFO"

    def test_no_overrides_returns_same_config(self):
        config = InterpreterConfig()
        assert apply_environment(config, {}) is config

    def test_bad_integer(self):
        with pytest.raises(ConfigError):
            apply_environment(InterpreterConfig(), {"TREELOX_MAX_CALL_DEPTH": "lots"})

    def test_bad_boolean(self):
        with pytest.raises(ConfigError):
            apply_environment(InterpreterConfig(), {"TREELOX_ALLOW_LOCAL_REDECLARATION": "maybe"})

    def test_environment_wins_over_file(self, tmp_path):
        path = write_yaml(tmp_path / "treelox.yaml", {"max_errors": 3})
        config = resolve_config(path, {"TREELOX_MAX_ERRORS": "9"})
        assert config.max_errors == 9
