"""
Structured logging configuration using structlog.

Every tradechat module logs through the standard library; records are
rendered by structlog as JSON lines or, for local work, as console output.
Values under secret-looking keys (agent private keys, keystore passphrases,
API keys) are masked before rendering.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog

from .config import settings

SECRET_KEYS = ("private_key", "passphrase", "api_key", "authorization", "password")
REDACTED = "***"


def redact_secrets(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Mask values whose key names a secret."""
    for key in list(event_dict):
        if any(marker in key.lower() for marker in SECRET_KEYS):
            event_dict[key] = REDACTED
    return event_dict


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Override log level (default: settings.log_level)
        log_format: "json" or "console" (default: settings.log_format)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    fmt = (log_format or settings.log_format).lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # RPC and HTTP client chatter
    for name in ("uvicorn.access", "httpcore", "httpx", "web3", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)
