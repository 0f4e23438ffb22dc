# pylint: disable=missing-docstring
# pylint: disable=protected-access
from copy import deepcopy
from unittest import mock

import pytest

from flowprep.factory_error import InvalidConfigurationError
from flowprep.util.configuration import (
    Configuration,
    InvalidConfigurationErrors,
    InvalidStreamRoleError,
    LoggerConfig,
    RequiredConfigurationKeyMissingError,
    yaml,
)
from flowprep.util.defaults import DEFAULT_LOG_CONFIG

CONFIG = {
    "version": "config-1.0",
    "source": {"input": {"type": "dummy_input", "chunks": ["a\n", "b\n"]}},
    "transforms": [{"lines": {"type": "line_splitter"}}],
    "sink": {"output": {"type": "dummy_output"}},
}


class TestConfiguration:
    def test_from_dict_creates_configuration(self):
        config = Configuration.from_dict(deepcopy(CONFIG))
        assert config.version == "config-1.0"
        assert config.source == CONFIG["source"]
        assert config.transforms == CONFIG["transforms"]
        assert config.sink == CONFIG["sink"]
        assert isinstance(config.logger, LoggerConfig)

    def test_transforms_default_to_empty_list(self):
        config_dict = deepcopy(CONFIG)
        del config_dict["transforms"]
        assert Configuration.from_dict(config_dict).transforms == []

    def test_version_defaults_to_unset(self):
        config_dict = deepcopy(CONFIG)
        del config_dict["version"]
        assert Configuration.from_dict(config_dict).version == "unset"

    def test_from_source_reads_yaml(self, tmp_path):
        config_path = tmp_path / "pipeline.yml"
        config_path.write_text(yaml.dump(deepcopy(CONFIG)), encoding="utf8")
        config = Configuration.from_source(str(config_path))
        assert config == Configuration.from_dict(deepcopy(CONFIG))

    def test_from_source_reads_json(self, tmp_path):
        config_path = tmp_path / "pipeline.json"
        config_path.write_text(
            '{"source": {"in": {"type": "dummy_input", "chunks": []}},'
            ' "sink": {"out": {"type": "dummy_output"}}}',
            encoding="utf8",
        )
        config = Configuration.from_source(str(config_path))
        assert list(config.source) == ["in"]

    def test_from_source_with_missing_file_raises(self, tmp_path):
        with pytest.raises(InvalidConfigurationError, match="does not exist"):
            Configuration.from_source(str(tmp_path / "missing.yml"))

    def test_from_source_with_invalid_yaml_raises(self, tmp_path):
        config_path = tmp_path / "pipeline.yml"
        config_path.write_text("source: [unclosed", encoding="utf8")
        with pytest.raises(InvalidConfigurationError, match="Invalid yaml or json file"):
            Configuration.from_source(str(config_path))

    def test_from_source_without_mapping_raises(self, tmp_path):
        config_path = tmp_path / "pipeline.yml"
        config_path.write_text("- just\n- a list\n", encoding="utf8")
        with pytest.raises(InvalidConfigurationError, match="has to contain a mapping"):
            Configuration.from_source(str(config_path))

    def test_unknown_key_raises(self):
        config_dict = deepcopy(CONFIG) | {"pipelines": []}
        with pytest.raises(InvalidConfigurationError, match="Invalid configuration"):
            Configuration.from_dict(config_dict)

    @pytest.mark.parametrize(
        "attribute, value",
        [
            ("source", ["not", "a", "mapping"]),
            ("transforms", {"not": "a list"}),
            ("sink", "output"),
        ],
    )
    def test_wrong_types_raise(self, attribute, value):
        config_dict = deepcopy(CONFIG) | {attribute: value}
        with pytest.raises(InvalidConfigurationError):
            Configuration.from_dict(config_dict)

    def test_missing_source_and_sink_are_reported_together(self):
        with pytest.raises(InvalidConfigurationErrors) as raised:
            Configuration.from_dict({"version": "1"})
        assert raised.value.errors == [
            RequiredConfigurationKeyMissingError("source"),
            RequiredConfigurationKeyMissingError("sink"),
        ]

    def test_verify_reports_every_problem(self):
        config_dict = {
            "source": {"output": {"type": "dummy_output"}},
            "transforms": [{"unknown": {"type": "does_not_exist"}}],
            "sink": {"input": {"type": "dummy_input", "chunks": []}},
        }
        with pytest.raises(InvalidConfigurationErrors) as raised:
            Configuration.from_dict(config_dict)
        messages = [str(error) for error in raised.value.errors]
        assert "source: component 'output' has to be readable" in messages
        assert "Unknown type 'does_not_exist' for 'unknown'" in messages
        assert "sink: component 'input' has to be writable" in messages

    def test_readable_only_stream_is_not_a_transform(self):
        config_dict = deepcopy(CONFIG)
        config_dict["transforms"] = [{"second_source": {"type": "dummy_input", "chunks": []}}]
        with pytest.raises(InvalidConfigurationErrors) as raised:
            Configuration.from_dict(config_dict)
        assert raised.value.errors == [
            InvalidStreamRoleError("transforms", "second_source", "writable")
        ]

    def test_verify_reports_invalid_component_configuration(self):
        config_dict = deepcopy(CONFIG)
        config_dict["sink"] = {"output": {"type": "dummy_output", "latency": -1}}
        with pytest.raises(InvalidConfigurationErrors, match="latency"):
            Configuration.from_dict(config_dict)

    def test_as_dict_returns_config(self):
        config_dict = Configuration.from_dict(deepcopy(CONFIG)).as_dict()
        assert config_dict["source"] == CONFIG["source"]
        assert config_dict["logger"]["level"] == "INFO"

    def test_as_yaml_is_a_valid_config(self, tmp_path):
        config = Configuration.from_dict(deepcopy(CONFIG))
        config_path = tmp_path / "generated.yml"
        config_path.write_text(config.as_yaml(), encoding="utf8")
        assert Configuration.from_source(str(config_path)) == config

    def test_configurations_are_equal_if_components_are_equal(self):
        first = Configuration.from_dict(deepcopy(CONFIG))
        second = Configuration.from_dict(deepcopy(CONFIG) | {"logger": {"level": "DEBUG"}})
        assert first == second


class TestInvalidConfigurationErrors:
    @pytest.mark.parametrize(
        "error_list, expected_error_list",
        [
            ([], []),
            (
                [InvalidConfigurationError("test"), InvalidConfigurationError("test")],
                [InvalidConfigurationError("test")],
            ),
            (
                [
                    InvalidConfigurationError("test"),
                    TypeError("typeerror"),
                    ValueError("valueerror"),
                ],
                [
                    InvalidConfigurationError("test"),
                    InvalidConfigurationError("typeerror"),
                    InvalidConfigurationError("valueerror"),
                ],
            ),
        ],
    )
    def test_only_unique_errors_are_kept(self, error_list, expected_error_list):
        error = InvalidConfigurationErrors(error_list)
        assert error.errors == expected_error_list

    def test_message_joins_errors(self):
        error = InvalidConfigurationErrors([ValueError("first"), ValueError("second")])
        assert str(error) == "first\nsecond"


class TestLoggerConfig:
    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "ERROR"])
    def test_logger_config_sets_global_level(self, level):
        config = LoggerConfig(level=level)
        assert config.loggers.get("root").get("level") == level
        assert config.loggers.get("Stream").get("level") == "INFO"

    def test_loggers_config_only_sets_level(self):
        config = LoggerConfig(loggers={"Stream": {"level": "DEBUG"}, "Pipe": {"level": "WARNING"}})
        assert config.loggers.get("root").get("level") == "INFO", "should be default"
        assert config.loggers.get("root").get("handlers") == ["console"], "should be default"
        assert config.loggers.get("Stream").get("level") == "DEBUG"
        assert config.loggers.get("Pipe").get("level") == "WARNING"
        assert config.loggers.get("Scheduler").get("level") == "INFO", "should be default"

    def test_does_not_modify_default_log_config(self):
        default = deepcopy(DEFAULT_LOG_CONFIG)
        LoggerConfig(level="DEBUG", format="%(message)s", loggers={"root": {"level": "ERROR"}})
        assert DEFAULT_LOG_CONFIG == default

    def test_format_and_datefmt_are_applied_to_formatter(self):
        config = LoggerConfig(format="%(hostname)s %(message)s", datefmt="%H:%M")
        assert config.formatters["flowprep"]["format"] == "%(hostname)s %(message)s"
        assert config.formatters["flowprep"]["datefmt"] == "%H:%M"

    def test_invalid_level_raises(self):
        with pytest.raises(ValueError):
            LoggerConfig(level="VERBOSE")

    @mock.patch("flowprep.util.configuration.dictConfig")
    def test_setup_logging_applies_dict_config(self, mock_dict_config):
        config = LoggerConfig(level="DEBUG")
        config.setup_logging()
        mock_dict_config.assert_called_once()
        applied = mock_dict_config.call_args.args[0]
        assert applied["loggers"]["root"]["level"] == "DEBUG"
        assert applied["formatters"] == DEFAULT_LOG_CONFIG["formatters"]
        assert applied["version"] == 1
