"""
Configuration for the command line interface is done via a YAML or JSON file.
All sections are optional, omitted values fall back to their defaults.

..  code-block:: yaml
    :caption: Example of a complete configuration file

    fetch:
        limit: 50
        offset: 0
        max_limit: 1000
        paged: false
        fetch_timeout: 300
    queue:
        request_limit: 1
        processing_limit: 2
        queue_limit: 150
        max_runtime_seconds: 3600
        process_timeout: 0
    logger:
        level: INFO
        loggers:
            "FetchScheduler": {"level": "DEBUG"}
    metrics:
        enabled: true
        port: 8000

The options under :code:`fetch` and :code:`queue` are described in
:code:`factoryqueue.engine.options`.
"""

import logging
from collections.abc import Mapping
from copy import deepcopy
from functools import partial
from logging.config import dictConfig
from pathlib import Path

from attrs import asdict, define, field, validators
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from factoryqueue.abc.exceptions import InvalidConfigurationError
from factoryqueue.engine.options import FetchOptions, QueueOptions, build_options
from factoryqueue.util.defaults import DEFAULT_LOG_CONFIG, DEFAULT_METRICS_PORT

logger = logging.getLogger("Config")

yaml = YAML(typ="safe", pure=True)


def _section(section_class: type, value):
    if isinstance(value, section_class):
        return value
    if value is None:
        return section_class()
    if not isinstance(value, Mapping):
        raise InvalidConfigurationError(f"{section_class.__name__} must be a mapping")
    return section_class(**value)


@define(kw_only=True, frozen=True)
class MetricsConfig:
    """the metrics config class used in Configuration"""

    enabled: bool = field(validator=validators.instance_of(bool), default=False)
    port: int = field(validator=validators.instance_of(int), default=DEFAULT_METRICS_PORT)


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
    """The format of the log message as supported by the :code:`FactoryQueueFormatter`.
    Defaults to :code:`"%(asctime)-15s %(name)-16s %(levelname)-8s: %(message)s"`."""
    datefmt: str = field(default="", validator=validators.instance_of(str), eq=False)
    """The date format of the log message. Defaults to :code:`"%Y-%m-%d %H:%M:%S"`."""
    loggers: dict = field(validator=validators.instance_of(dict), factory=dict)
    """The loggers loglevel configuration. Every component logs with its own
    logger (:code:`FactoryQueue`, :code:`FetchScheduler`, :code:`ProcessScheduler`,
    :code:`Watchdog`, :code:`Config`), so it is possible to set the root level to
    :code:`INFO` and get DEBUG messages of the fetch side only.

    .. code-block:: yaml
        :caption: Example of a custom logger configuration

        logger:
            level: ERROR
            format: "%(asctime)-15s %(hostname)-5s %(name)-10s %(levelname)-8s: %(message)s"
            datefmt: "%Y-%m-%d %H:%M:%S"
            loggers:
                "FetchScheduler": {"level": "DEBUG"}
    """

    def __attrs_post_init__(self) -> None:
        self._set_defaults()
        self.loggers = {**deepcopy(DEFAULT_LOG_CONFIG["loggers"]) | self.loggers}
        self.loggers.setdefault("root", {}).update({"level": self.level})
        formatter = self.formatters["factoryqueue"]
        if self.format:
            formatter["format"] = self.format
        if self.datefmt:
            formatter["datefmt"] = self.datefmt

    def setup_logging(self) -> None:
        """Apply the configuration to the python logging module."""
        log_config = asdict(self)
        for key in ("level", "format", "datefmt"):
            log_config.pop(key)
        dictConfig(log_config)

    def _set_defaults(self) -> None:
        """resets all keys to the defined defaults except :code:`loggers`."""
        for key, value in DEFAULT_LOG_CONFIG.items():
            if key == "loggers":
                continue
            setattr(self, key, deepcopy(value))


@define(kw_only=True)
class Configuration:
    """the configuration class"""

    fetch: FetchOptions = field(
        converter=partial(build_options, FetchOptions), factory=FetchOptions
    )
    """Options for the data source, see :code:`FetchOptions`."""
    queue: QueueOptions = field(
        converter=partial(build_options, QueueOptions), factory=QueueOptions
    )
    """Options for concurrency, backlog and runtime, see :code:`QueueOptions`."""
    logger: LoggerConfig = field(
        converter=partial(_section, LoggerConfig), factory=LoggerConfig, eq=False
    )
    """Logger configuration, see :code:`LoggerConfig`."""
    metrics: MetricsConfig = field(
        converter=partial(_section, MetricsConfig), factory=MetricsConfig
    )
    """Metrics configuration, see :code:`MetricsConfig`."""

    @classmethod
    def from_source(cls, config_path: str | Path) -> "Configuration":
        """Create configuration from a yaml or json file.

        Parameters
        ----------
        config_path : str | Path
            path of the file to create the configuration from.

        Returns
        -------
        config : Configuration
            Configuration object attrs class.

        Raises
        ------
        InvalidConfigurationError
            If the file does not exist, can not be parsed or contains invalid options.
        """
        try:
            config_dict = yaml.load(Path(config_path).read_text(encoding="utf8"))
        except FileNotFoundError as error:
            raise InvalidConfigurationError(
                f"Configuration file does not exist: {error.filename}"
            ) from error
        except YAMLError as error:
            raise InvalidConfigurationError(
                f"Invalid yaml or json file: {config_path} {error}"
            ) from error
        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise InvalidConfigurationError(f"Invalid configuration file: {config_path}")
        try:
            config = Configuration(**config_dict)
        except TypeError as error:
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} {error.args[0]}"
            ) from error
        except ValueError as error:
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} {str(error)}"
            ) from error
        logger.debug("Loaded configuration from %s", config_path)
        return config

    def as_dict(self) -> dict:
        """Return the configuration as dict."""
        return asdict(self)
