"""
Structured logging for logadmin tools.

Every module logs through structlog with keyword context so that a
migration run or a cost report can be shipped as JSON lines or read on a
terminal.
"""

import logging
import sys
from typing import Any, Mapping

import structlog
from structlog.types import EventDict, Processor


TOOL_NAME = "logadmin"


def tag_tool(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp entries with ``app=logadmin``."""
    event_dict.setdefault("app", TOOL_NAME)
    return event_dict


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    raise ValueError(f"Unknown log format: {log_format}")


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_output: str = "stdout",
) -> None:
    """
    Route migration and cost events through structlog.

    Migration runs are usually captured by a scheduler, so JSON lines are
    the default; ``console`` is meant for an operator at a terminal.

    Args:
        log_level: Threshold name, e.g. INFO or DEBUG
        log_format: json or console
        log_output: stdout or stderr

    Raises:
        ValueError: On an unknown level or format
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    renderer = _renderer(log_format)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr if log_output == "stderr" else sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            tag_tool,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from(config) -> None:
    """
    Configure logging from the ``logging`` section of a Config.

    Args:
        config: Config instance
    """
    configure_logging(
        log_level=config.get("logging.level", "INFO"),
        log_format=config.get("logging.format", "json"),
        log_output=config.get("logging.output", "stdout"),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def format_table(values: Mapping[Any, Any], key_header: str = "broker", value_header: str = "value") -> str:
    """
    Render a flat mapping as an aligned two-column table.

    Rows are sorted by key.
    """
    rows = [(str(k), str(values[k])) for k in sorted(values)]
    key_width = max([len(key_header)] + [len(k) for k, _ in rows])
    value_width = max([len(value_header)] + [len(v) for _, v in rows])

    lines = [f"{key_header:<{key_width}}  {value_header:>{value_width}}"]
    for k, v in rows:
        lines.append(f"{k:<{key_width}}  {v:>{value_width}}")
    return "\n".join(lines)
