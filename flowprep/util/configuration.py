"""
Configuration
=============

A pipeline is configured via a YAML or JSON file. It consists of exactly one :code:`source`,
an optional list of :code:`transforms` and exactly one :code:`sink`. Every component is
defined as a mapping of its name to its configuration, the :code:`type` key selects the
component class. Chunks flow from the source through the transforms in the given order into
the sink.

..  code-block:: yaml
    :caption: Example of a pipeline configuration

    version: config-1.0
    logger:
      level: INFO
      loggers:
        "Pipe": {"level": "DEBUG"}
    source:
      events:
        type: file_input
        path: examples/events.jsonl
    transforms:
      - lines:
          type: line_splitter
          skip_empty: true
      - records:
          type: jsonl_decoder
      - json_lines:
          type: jsonl_encoder
    sink:
      copy:
        type: file_output
        path: /tmp/events.copy.jsonl

The configuration is verified on load. Every component is created once and its role is
checked: the source has to be readable, the transforms have to be duplex or transform streams
and the sink has to be writable. All problems are reported at once.
"""

import logging
from copy import deepcopy
from logging.config import dictConfig
from pathlib import Path
from typing import Any, List

from attrs import asdict, define, field, validators
from ruamel.yaml import YAML
from ruamel.yaml.compat import StringIO
from ruamel.yaml.error import YAMLError

from flowprep.abc.readable import ReadableRole
from flowprep.abc.writable import WritableRole
from flowprep.factory import Factory
from flowprep.factory_error import FactoryError, InvalidConfigurationError
from flowprep.util.defaults import DEFAULT_LOG_CONFIG

logger = logging.getLogger("Config")


class MyYAML(YAML):
    """helper class to dump yaml with ruamel.yaml"""

    def dump(self, data: Any, stream: Any | None = None, **kw: Any) -> Any:
        inefficient = False
        if stream is None:
            inefficient = True
            stream = StringIO()
        YAML.dump(self, data, stream, **kw)
        if inefficient:
            return stream.getvalue()
        return None


yaml = MyYAML(pure=True)


class InvalidConfigurationErrors(InvalidConfigurationError):
    """Raise for multiple Configuration related exceptions."""

    errors: List[InvalidConfigurationError]

    def __init__(self, errors: List[Exception]) -> None:
        unique_errors: List[InvalidConfigurationError] = []
        for error in errors:
            if not isinstance(error, InvalidConfigurationError):
                error = InvalidConfigurationError(*error.args)
            if error not in unique_errors:
                unique_errors.append(error)
        self.errors = unique_errors
        super().__init__("\n".join([str(error) for error in self.errors]))


class RequiredConfigurationKeyMissingError(InvalidConfigurationError):
    """Raise if required option is missing in configuration."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required option is missing: {key}")


class InvalidStreamRoleError(InvalidConfigurationError):
    """Raise if a component can not take the position it is configured for."""

    def __init__(self, key: str, name: str, role: str) -> None:
        super().__init__(f"{key}: component '{name}' has to be {role}")


@define(kw_only=True)
class LoggerConfig:
    """The logger config class used in Configuration.
    The schema for this class is derived from the python logging module:
    https://docs.python.org/3/library/logging.config.html#dictionary-schema-details
    """

    _LOG_LEVELS = (
        logging.NOTSET,  # 0
        logging.DEBUG,  # 10
        logging.INFO,  # 20
        logging.WARNING,  # 30
        logging.ERROR,  # 40
        logging.CRITICAL,  # 50
    )

    version: int = field(validator=validators.instance_of(int), default=1)
    formatters: dict = field(validator=validators.instance_of(dict), factory=dict)
    filters: dict = field(validator=validators.instance_of(dict), factory=dict)
    handlers: dict = field(validator=validators.instance_of(dict), factory=dict)
    disable_existing_loggers: bool = field(validator=validators.instance_of(bool), default=False)
    level: str = field(
        default="INFO",
        validator=[
            validators.instance_of(str),
            validators.in_([logging.getLevelName(level) for level in _LOG_LEVELS]),
        ],
        eq=False,
    )
    """The log level of the root logger. Defaults to :code:`INFO`."""
    format: str = field(default="", validator=validators.instance_of(str), eq=False)
    """The format of the log message as supported by the :code:`FlowprepFormatter`.
    Defaults to :code:`"%(asctime)-15s %(process)-6s %(name)-10s %(levelname)-8s: %(message)s"`.

    .. autoclass:: flowprep.util.logging.FlowprepFormatter
      :no-index:

    """
    datefmt: str = field(default="", validator=validators.instance_of(str), eq=False)
    """The date format of the log message. Defaults to :code:`"%Y-%m-%d %H:%M:%S"`."""
    loggers: dict = field(validator=validators.instance_of(dict), factory=dict)
    """The loggers loglevel configuration. Defaults to:

    .. csv-table::

        "root", "INFO"
        "Scheduler", "INFO"
        "Stream", "INFO"

    Flowprep opts out of hierarchical loggers. The named loggers are :code:`Scheduler`,
    :code:`Task`, :code:`Combinator`, :code:`Stream`, :code:`Pipe`, :code:`Pipeline` and
    :code:`Config`.

    .. code-block:: yaml
        :caption: Example of a custom logger configuration

        logger:
            level: ERROR
            format: "%(asctime)-15s %(hostname)-5s %(name)-10s %(levelname)-8s: %(message)s"
            datefmt: "%Y-%m-%d %H:%M:%S"
            loggers:
                "Pipe": {"level": "DEBUG"}
    """

    def __attrs_post_init__(self) -> None:
        """Merge the configured loggers into the default logger configuration."""
        self._set_defaults()
        if self.loggers:
            self._set_loggers_levels()
        self.loggers = deepcopy(DEFAULT_LOG_CONFIG["loggers"]) | self.loggers
        self.loggers.setdefault("root", {}).update({"level": self.level})
        if self.format:
            self.formatters["flowprep"]["format"] = self.format
        if self.datefmt:
            self.formatters["flowprep"]["datefmt"] = self.datefmt

    def setup_logging(self) -> None:
        """Apply the logging configuration with :code:`logging.config.dictConfig`."""
        dictConfig(asdict(self))

    def _set_loggers_levels(self) -> None:
        """sets the loggers levels to the default or to the given level."""
        for logger_name, logger_config in self.loggers.items():
            merged_config = deepcopy(DEFAULT_LOG_CONFIG["loggers"].get(logger_name, {}))
            merged_config.update(logger_config)
            self.loggers[logger_name] = merged_config

    def _set_defaults(self) -> None:
        """resets all keys to the defined defaults except :code:`loggers`."""
        for key, value in DEFAULT_LOG_CONFIG.items():
            if key == "loggers":
                continue
            setattr(self, key, deepcopy(value))


def _to_logger_config(value: Any) -> Any:
    if isinstance(value, dict):
        return LoggerConfig(**value)
    return value


@define(kw_only=True)
class Configuration:
    """the configuration class"""

    version: str = field(
        validator=validators.instance_of(str), converter=str, default="unset", eq=True
    )
    """It is optionally possible to set a version to your configuration file.
    It has no effect on the execution and is merely used for documentation purposes.
    Defaults to :code:`unset`."""

    logger: LoggerConfig = field(
        validator=validators.instance_of(LoggerConfig),
        converter=_to_logger_config,
        factory=LoggerConfig,
        eq=False,
    )
    """Logger configuration. See :code:`LoggerConfig`."""

    source: dict = field(validator=validators.instance_of(dict), factory=dict, eq=True)
    """The readable source of the pipeline, given as :code:`{name: {type: ..., ...}}`."""

    transforms: list = field(
        validator=validators.deep_iterable(
            member_validator=validators.instance_of(dict),
            iterable_validator=validators.instance_of(list),
        ),
        factory=list,
        eq=True,
    )
    """The duplex or transform streams the chunks pass in order. Defaults to no transforms."""

    sink: dict = field(validator=validators.instance_of(dict), factory=dict, eq=True)
    """The writable sink of the pipeline, given as :code:`{name: {type: ..., ...}}`."""

    @classmethod
    def from_source(cls, config_path: str) -> "Configuration":
        """Create and verify a configuration from a YAML or JSON file.

        Parameters
        ----------
        config_path : str
            path of the file to create the configuration from.

        Returns
        -------
        config : Configuration
            Configuration object attrs class.

        Raises
        ------
        InvalidConfigurationError
            If the file is missing, unreadable or not valid YAML or JSON.
        InvalidConfigurationErrors
            If the configuration fails verification.
        """
        try:
            config_dict = yaml.load(Path(config_path).read_text(encoding="utf8"))
        except FileNotFoundError as error:
            raise InvalidConfigurationError(
                f"The given config file does not exist: {config_path}"
            ) from error
        except YAMLError as error:
            raise InvalidConfigurationError(
                f"Invalid yaml or json file: {config_path} {error}"
            ) from error
        if not isinstance(config_dict, dict):
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} has to contain a mapping"
            )
        logger.debug("Loaded configuration from %s", config_path)
        return cls.from_dict(config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Configuration":
        """Create and verify a configuration from a mapping."""
        try:
            config = cls(**config_dict)
        except TypeError as error:
            raise InvalidConfigurationError(
                f"Invalid configuration: {error.args[0]}"
            ) from error
        except ValueError as error:
            raise InvalidConfigurationError(f"Invalid configuration: {error}") from error
        config.verify()
        return config

    def as_dict(self) -> dict:
        """Return the configuration as dict."""
        return asdict(self, recurse=True)

    def as_yaml(self) -> str:
        """Return the configuration as yaml string."""
        return yaml.dump(self.as_dict())

    def verify(self) -> None:
        """Verify the configuration by creating every component once.

        Raises
        ------
        InvalidConfigurationErrors
            Holding every problem found.
        """
        errors: list[Exception] = []
        if not self.source:
            errors.append(RequiredConfigurationKeyMissingError("source"))
        else:
            self._verify_component("source", self.source, errors, readable=True)
        for transform in self.transforms:
            self._verify_component("transforms", transform, errors, readable=True, writable=True)
        if not self.sink:
            errors.append(RequiredConfigurationKeyMissingError("sink"))
        else:
            self._verify_component("sink", self.sink, errors, writable=True)
        if errors:
            raise InvalidConfigurationErrors(errors)

    @staticmethod
    def _verify_component(
        key: str, definition: dict, errors: list, readable: bool = False, writable: bool = False
    ) -> None:
        try:
            component = Factory.create(deepcopy(definition))
        except (FactoryError, TypeError, ValueError) as error:
            errors.append(error)
            return
        if readable and not isinstance(component, ReadableRole):
            errors.append(InvalidStreamRoleError(key, component.name, "readable"))
        if writable and not isinstance(component, WritableRole):
            errors.append(InvalidStreamRoleError(key, component.name, "writable"))
