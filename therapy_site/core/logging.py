import logging
from typing import Any

from fastapi import Request
from rich.logging import RichHandler

from therapy_site.config.settings import LoggingConfig

logger = logging.getLogger("therapy_site")


def setup_logging(logging_config: LoggingConfig) -> None:
    """Configure root logging once at startup"""
    handlers = []
    if logging_config.enable_rich:
        handlers.append(RichHandler(rich_tracebacks=True, show_path=False))
    else:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=logging_config.level,
        format=logging_config.format,
        handlers=handlers,
        force=True,
    )


def log_with_context(
    request: Request,
    level: int,
    message: str,
    **kwargs: Any
) -> None:
    """
    Log with request context.
    Automatically includes request_id for tracing.
    """
    extra = {
        "request_id": getattr(request.state, "request_id", "unknown"),
        **kwargs
    }
    logger.log(level, f"[{extra['request_id']}] {message}", extra=extra)


def log_info(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.INFO, message, **kwargs)


def log_error(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.ERROR, message, **kwargs)


def log_warning(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.WARNING, message, **kwargs)
