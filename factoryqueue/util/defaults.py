"""Default values for factoryqueue."""

from enum import IntEnum


class EXITCODES(IntEnum):
    """Exit codes for factoryqueue."""

    SUCCESS = 0
    """Successful execution."""
    ERROR = 1
    """General unspecified error."""
    CONFIGURATION_ERROR = 2
    """An error in the configuration."""
    PIPELINE_ERROR = 3
    """A fetch or process operation failed."""
    TIMEOUT = 4
    """The run exceeded its maximum runtime."""


DEFAULT_FETCH_LIMIT = 50
DEFAULT_FETCH_OFFSET = 0
DEFAULT_REQUEST_LIMIT = 1
DEFAULT_PROCESSING_LIMIT = 1
DEFAULT_QUEUE_LIMIT = 1000
DEFAULT_MAX_RUNTIME_SECONDS = 15000
DEFAULT_SHUTDOWN_TIMEOUT = 5.0  # seconds
DEFAULT_METRICS_PORT = 8000

DEFAULT_LOG_FORMAT = "%(asctime)-15s %(name)-16s %(levelname)-8s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# dictconfig as described in
# https://docs.python.org/3/library/logging.config.html#configuration-dictionary-schema
DEFAULT_LOG_CONFIG: dict = {
    "version": 1,
    "formatters": {
        "factoryqueue": {
            "class": "factoryqueue.util.logging.FactoryQueueFormatter",
            "format": DEFAULT_LOG_FORMAT,
            "datefmt": DEFAULT_LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "factoryqueue",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "root": {"level": "INFO", "handlers": ["console"]},
        "asyncio": {"level": "WARNING"},
    },
    "filters": {},
    "disable_existing_loggers": False,
}
