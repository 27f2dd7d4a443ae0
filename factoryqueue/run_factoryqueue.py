# pylint: disable=logging-fstring-interpolation
"""This module can be used to start a factoryqueue run from the command line."""

import asyncio
import json
import logging
import os
import sys

import click
from prometheus_client import CollectorRegistry, start_http_server

from factoryqueue.abc.exceptions import InvalidConfigurationError
from factoryqueue.engine import QueueError, QueueTimeoutError, fetch_and_process
from factoryqueue.engine.types import Progress
from factoryqueue.util.configuration import Configuration
from factoryqueue.util.defaults import EXITCODES
from factoryqueue.util.helper import get_versions_string, import_from_path

EPILOG_STR = "FETCH and PROCESS are import paths of the form 'module:attribute'."

logger = logging.getLogger("root")


def _get_configuration(config_path: str | None) -> Configuration:
    if config_path is None:
        return Configuration()
    try:
        return Configuration.from_source(config_path)
    except InvalidConfigurationError as error:
        logger.error("InvalidConfigurationError: %s", error)
        sys.exit(EXITCODES.CONFIGURATION_ERROR)


def _import(path: str):
    try:
        return import_from_path(path)
    except (ImportError, AttributeError, ValueError) as error:
        logger.error(f"Can not import '{path}': {error}")
        sys.exit(EXITCODES.CONFIGURATION_ERROR)


def _log_progress(progress: Progress) -> None:
    logger.info("notification: %s", progress.as_dict())


def _setup_metrics(configuration: Configuration, port: int | None) -> CollectorRegistry | None:
    if port is None and not configuration.metrics.enabled:
        return None
    port = port if port is not None else configuration.metrics.port
    registry = CollectorRegistry()
    start_http_server(port, registry=registry)
    logger.info(f"Metrics are exposed on port {port}")
    return registry


@click.group(name="factoryqueue")
@click.version_option(version=get_versions_string(), message="%(version)s")
def cli() -> None:
    """
    factoryqueue fetches items page by page from a source and processes them one at a time,
    with bounded concurrency and a throttled backlog.
    """


@cli.command(short_help="Fetch and process all items of a source", epilog=EPILOG_STR)
@click.argument("fetch")
@click.argument("process")
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=None,
    help="Path to a yaml or json file with fetch, queue, logger and metrics options",
)
@click.option(
    "--metrics-port",
    type=int,
    default=None,
    help="Expose prometheus metrics on this port",
)
def run(fetch: str, process: str, config_path: str | None, metrics_port: int | None) -> None:
    """
    Run a queue that fetches from FETCH and processes every item with PROCESS.

    FETCH is a fetch callable or a sequence of items, PROCESS a process callable.
    """
    configuration = _get_configuration(config_path)
    configuration.logger.setup_logging()
    source = _import(fetch)
    process_callable = _import(process)
    registry = _setup_metrics(configuration, metrics_port)
    try:
        result = asyncio.run(
            fetch_and_process(
                source,
                process_callable,
                fetch_options=configuration.fetch,
                queue_options=configuration.queue,
                on_progress=_log_progress,
                registry=registry,
            )
        )
    except InvalidConfigurationError as error:
        logger.error("InvalidConfigurationError: %s", error)
        sys.exit(EXITCODES.CONFIGURATION_ERROR)
    except QueueTimeoutError as error:
        click.echo(json.dumps(error.as_dict()))
        sys.exit(EXITCODES.TIMEOUT)
    except QueueError as error:
        click.echo(json.dumps({"error": repr(error.error), "meta": error.meta}))
        sys.exit(EXITCODES.PIPELINE_ERROR)
    # pylint: disable=broad-except
    except Exception as error:
        if os.environ.get("DEBUG", False):
            logger.exception(f"A critical error occurred: {error}")  # pragma: no cover
        else:
            logger.critical(f"A critical error occurred: {error}")
        sys.exit(EXITCODES.ERROR)
    # pylint: enable=broad-except
    click.echo(json.dumps(result.as_dict()))


if __name__ == "__main__":
    cli()
