"""Structured logging configuration for the metrics buffer"""
import logging
import os
import sys
from typing import Any, Dict
import structlog
from structlog.stdlib import LoggerFactory
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, StackInfoRenderer
from stackmetrics.config import Config


def setup_structured_logging(config: Config) -> None:
    """Setup structured logging with JSON format for production and console for development"""
    
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        TimeStamper(fmt="iso"),
        StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    
    # Use JSON renderer for production, console for development
    is_development = os.getenv("ENVIRONMENT", "production").lower() == "development"
    if is_development:
        processors.append(ConsoleRenderer())
    else:
        processors.append(JSONRenderer())
    
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    
    level = getattr(logging, config.log_level.upper())
    handlers = []
    
    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(config.log_file))
        file_handler.setLevel(level)
        handlers.append(file_handler)
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    handlers.append(console_handler)
    
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=handlers,
        force=True
    )
    
    # Transport libraries are chatty at INFO
    logging.getLogger('google').setLevel(logging.WARNING)
    logging.getLogger('grpc').setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)


def log_flush(logger: structlog.stdlib.BoundLogger, series_count: int, registered_count: int, flush_time: float) -> None:
    """Log a completed flush cycle with structured data"""
    logger.info(
        "Flush cycle completed",
        series_count=series_count,
        registered_count=registered_count,
        flush_time_seconds=round(flush_time, 3),
        event_type="flush_complete"
    )


def log_startup(logger: structlog.stdlib.BoundLogger, config: Config) -> None:
    """Log buffer startup with configuration details"""
    logger.info(
        "Metrics buffer starting up",
        project_id=config.project_id,
        app_name=config.app_name,
        env_name=config.env_name,
        metric_group_name=config.metric_group_name,
        send_interval_ms=config.send_interval,
        backend=config.backend,
        event_type="buffer_startup"
    )


def log_error(logger: structlog.stdlib.BoundLogger, error: Exception, context: Dict[str, Any] = None,
              message: str = "Error occurred", event_type: str = "error") -> None:
    """Log error with structured context"""
    logger.error(
        message,
        error=str(error),
        error_type=type(error).__name__,
        context=context or {},
        event_type=event_type,
        exc_info=True
    )
