"""
Logging configuration using loguru.

The library logs through loguru's global logger and never configures sinks
on import. Applications (and the gcp-metadata CLI) call setup_logging().

Records from the IP/DNS race are bound with ``path`` ("primary" or
"secondary"); both sinks show it next to the module name.
"""

import sys

from loguru import logger

from gcp_metadata.core.config import MetadataConfig, get_config

CONSOLE_FORMAT = "<level>[{level.name}]</level> <cyan>{name}</cyan>{path} {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}{path} | {message}"


def _with_path(template: str, path_fmt: str):
    def format_record(record) -> str:
        path = path_fmt if "path" in record["extra"] else ""
        return template.replace("{path}", path) + "\n{exception}"

    return format_record


def default_level(config: MetadataConfig | None = None) -> str:
    """DEBUG when ``DEBUG_AUTH`` is set, WARNING otherwise."""
    config = config or get_config()
    return "DEBUG" if config.debug else "WARNING"


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    config: MetadataConfig | None = None,
) -> None:
    """
    Configure loguru with console and optional file output.

    Args:
        level: Minimum log level. Defaults to :func:`default_level`.
        log_file: Path to log file. If None, only logs to stderr.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.
        config: Consulted for ``DEBUG_AUTH`` when ``level`` is None.
    """
    level = level or default_level(config)

    logger.remove()
    logger.add(sys.stderr, level=level, format=_with_path(CONSOLE_FORMAT, " <magenta>[{extra[path]}]</magenta>"))

    if log_file:
        logger.add(
            log_file,
            level=level,
            format=_with_path(FILE_FORMAT, " [{extra[path]}]"),
            rotation=rotation,
            retention=retention,
        )
