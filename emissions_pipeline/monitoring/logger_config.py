"""
Structured logging configuration for the emissions pipeline.
"""

import os
import logging
import logging.handlers
import structlog
from typing import Any, Dict
from datetime import datetime


class EmissionsLogger:
    """Configures structured logging for ingestion runs and reports."""

    @staticmethod
    def setup_logging(
        log_level: str = None,
        log_format: str = None,
        log_file: str = None
    ) -> None:
        """Set up structured logging for the application."""

        log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')
        log_format = log_format or os.getenv('LOG_FORMAT', 'json')
        log_file = log_file or os.getenv('LOG_FILE')
        level = getattr(logging, log_level.upper())

        handlers = []

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        handlers.append(console_handler)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5
            )
            file_handler.setLevel(level)
            handlers.append(file_handler)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                EmissionsLogger._add_correlation_id,
                structlog.processors.UnicodeDecoder(),
                EmissionsLogger._get_renderer(log_format),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()
        for handler in handlers:
            handler.setFormatter(logging.Formatter('%(message)s'))
            root_logger.addHandler(handler)

        logger = structlog.get_logger()
        logger.info(
            "Logging initialized",
            log_level=log_level,
            log_format=log_format,
            log_file=log_file or "console"
        )

    @staticmethod
    def _add_correlation_id(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Drop an empty correlation ID so it does not clutter the output."""
        if not event_dict.get('correlation_id'):
            event_dict.pop('correlation_id', None)
        return event_dict

    @staticmethod
    def _get_renderer(log_format: str):
        """Get the final renderer for the configured format."""
        if log_format.lower() == 'json':
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer(colors=False)


class CorrelationLogger:
    """Logger with correlation ID support for tracing operations."""

    def __init__(self, correlation_id: str = None):
        self.correlation_id = correlation_id
        self.logger = structlog.get_logger()

        if correlation_id:
            self.logger = self.logger.bind(correlation_id=correlation_id)

    def info(self, message: str, **kwargs):
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(message, **kwargs)


class OperationLogger:
    """Context manager for logging operation lifecycle."""

    def __init__(self, operation_name: str, correlation_id: str = None, **context):
        self.operation_name = operation_name
        self.correlation_id = correlation_id
        self.context = context
        self.start_time = None
        self.logger = CorrelationLogger(correlation_id)

    def __enter__(self):
        self.start_time = datetime.now()

        self.logger.info(
            f"Operation started: {self.operation_name}",
            operation=self.operation_name,
            **self.context
        )

        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = (datetime.now() - self.start_time).total_seconds()

        # A generator closed by its consumer stopped normally.
        if exc_type is None or issubclass(exc_type, GeneratorExit):
            self.logger.info(
                f"Operation completed: {self.operation_name}",
                operation=self.operation_name,
                duration_seconds=duration,
                **self.context
            )
        else:
            self.logger.error(
                f"Operation failed: {self.operation_name}",
                operation=self.operation_name,
                duration_seconds=duration,
                error_type=exc_type.__name__,
                error_message=str(exc_val) if exc_val else None,
                **self.context
            )

        return False  # Don't suppress exceptions
