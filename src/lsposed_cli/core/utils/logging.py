import logging
import sys
from typing import Optional

import structlog

from lsposed_cli.core.settings import Settings, settings as default_settings

_CONFIGURED = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def configure_logging(
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    settings_obj: Optional[Settings] = None,
) -> None:
    """Configure structured logging on stderr.

    stdout is reserved for command results, so every handler writes to stderr.
    Explicit arguments win over LSPCLI_LOG_LEVEL / LSPCLI_LOG_JSON.
    """
    global _CONFIGURED
    cfg = settings_obj or default_settings
    log_level = (level or cfg.LOG_LEVEL or "WARNING").upper()
    use_json = cfg.LOG_JSON if json_logs is None else json_logs

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level, logging.WARNING),
        force=_CONFIGURED,
    )

    processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True
