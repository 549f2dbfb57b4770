"""
Logging for the Sui workflow tools.

Supports:
- Color output for interactive use (colorlog)
- JSON output for agents and log shippers (structlog)

Workflow records carry ``run_id``, ``route`` and ``network`` as extra
fields. The color format prints them inline and the JSON format emits
them as top-level keys.
"""

import logging
import os
import sys
from typing import Any, Literal, MutableMapping, Optional, Tuple

import colorlog
import structlog

LogFormat = Literal["color", "json"]

WORKFLOW_FIELDS = ("run_id", "route", "network")

_QUIET_LOGGERS = ("httpx", "httpcore", "langchain", "langchain_core")


def setup_logging(
    level: int | str | None = None,
    format_type: LogFormat | None = None,
    json_indent: int | None = None,
) -> logging.Logger:
    """Install a single stdout handler on the root logger and return it.

    ``level`` and ``format_type`` fall back to ``SUIFLOW_LOG_LEVEL`` (INFO)
    and ``SUIFLOW_LOG_FORMAT`` (color). An unknown format means color.
    ``json_indent`` only applies to the json format.
    """
    if format_type is None:
        format_type = os.getenv("SUIFLOW_LOG_FORMAT", "color").lower()
        if format_type not in ("color", "json"):
            format_type = "color"

    if level is None:
        level = os.getenv("SUIFLOW_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(WorkflowContextFilter())

    if format_type == "color":
        formatter = _create_color_formatter()
    else:
        formatter = _create_json_formatter(json_indent)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


class WorkflowContextFilter(logging.Filter):
    """Fill missing workflow fields with "-" so the color format never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in WORKFLOW_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, "-")
        return True


def _create_color_formatter() -> logging.Formatter:
    return colorlog.ColoredFormatter(
        fmt=(
            "%(log_color)s%(asctime)s | %(levelname)-8s | %(name)s | "
            "%(route)s/%(network)s/%(run_id)s | %(message)s"
        ),
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
        style="%",
    )


def _create_json_formatter(indent: int | None = None) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(indent=indent, ensure_ascii=False),
        ],
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ExtraAdder(allow=WORKFLOW_FIELDS),
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )


class WorkflowLoggerAdapter(logging.LoggerAdapter):
    """Attaches the workflow context of one run to every record."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def get_workflow_logger(
    name: str,
    *,
    run_id: Optional[str] = None,
    route: Optional[str] = None,
    network: Optional[str] = None,
) -> WorkflowLoggerAdapter:
    context = {"run_id": run_id or "-", "route": route or "-", "network": network or "-"}
    return WorkflowLoggerAdapter(logging.getLogger(name), context)
