"""Structured logging and OpenTelemetry tracing for the bot."""
import inspect
import json
import logging
import os
import traceback
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
from opentelemetry.instrumentation.requests import RequestsInstrumentor


class StructuredLogger:
    """Structured logger writing one JSON object per record."""

    def __init__(self, service_name: str, level: int = logging.INFO):
        self.service_name = service_name
        self.logger = self._setup_logger(level)

    def _setup_logger(self, level: int):
        """Configure structured JSON logger."""
        logger = logging.getLogger(self.service_name)
        logger.setLevel(level)
        logger.handlers = []
        logger.propagate = False

        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

        return logger

    def _get_trace_context(self):
        """Get current trace context from OpenTelemetry."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span_context = span.get_span_context()
            return {
                "trace_id": format(span_context.trace_id, '032x'),
                "span_id": format(span_context.span_id, '016x')
            }
        return {}

    def _build_log_entry(self, message: str, level: str, **extra) -> Dict[str, Any]:
        """Build structured log entry with trace context."""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "severity": level,
            "service": self.service_name,
            "message": message,
        }
        entry.update(self._get_trace_context())
        entry.update(extra)
        return entry

    def info(self, message: str, **kwargs):
        """Log INFO level."""
        if self.logger.isEnabledFor(logging.INFO):
            self.logger.info(json.dumps(self._build_log_entry(message, "INFO", **kwargs), default=str))

    def warning(self, message: str, **kwargs):
        """Log WARNING level."""
        if self.logger.isEnabledFor(logging.WARNING):
            self.logger.warning(json.dumps(self._build_log_entry(message, "WARNING", **kwargs), default=str))

    def error(self, message: str, error: Optional[BaseException] = None, **kwargs):
        """Log ERROR level with exception details."""
        if error:
            kwargs["error"] = {
                "type": type(error).__name__,
                "message": str(error),
                "stacktrace": "".join(traceback.format_exception(type(error), error, error.__traceback__))
            }
        self.logger.error(json.dumps(self._build_log_entry(message, "ERROR", **kwargs), default=str))

    def debug(self, message: str, **kwargs):
        """Log DEBUG level."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(json.dumps(self._build_log_entry(message, "DEBUG", **kwargs), default=str))


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        """Format log record as JSON if not already formatted."""
        if isinstance(record.msg, str) and record.msg.startswith('{'):
            return record.msg

        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "severity": record.levelname,
            "message": record.getMessage(),
        }
        return json.dumps(log_obj)


def get_logger(service_name: str) -> StructuredLogger:
    """Return a structured logger honouring the LOG_LEVEL environment variable."""
    level = logging.getLevelName(os.getenv('LOG_LEVEL', 'INFO').upper())
    if not isinstance(level, int):
        level = logging.INFO
    return StructuredLogger(service_name, level)


class TracingManager:
    """OpenTelemetry tracing manager."""

    def __init__(self, service_name: str, environment: str = "production"):
        self.service_name = service_name
        self.environment = environment
        self.tracer = self._setup_tracer()

    def _setup_tracer(self):
        """Setup OpenTelemetry tracer, exporting to Cloud Trace when a project is configured."""
        resource = Resource.create({
            "service.name": self.service_name,
            "service.namespace": "discord-bot",
            "deployment.environment": self.environment,
        })

        tracer_provider = TracerProvider(resource=resource)

        project_id = os.getenv('GCP_PROJECT_ID')
        if project_id and not os.getenv("LOCAL_DEV"):
            try:
                cloud_trace_exporter = CloudTraceSpanExporter(project_id=project_id)
                tracer_provider.add_span_processor(BatchSpanProcessor(cloud_trace_exporter))
            except Exception as e:
                logging.getLogger(self.service_name).warning(
                    "Could not setup Cloud Trace exporter: %s", e
                )

        trace.set_tracer_provider(tracer_provider)
        return trace.get_tracer(self.service_name)

    def get_tracer(self):
        """Get the configured tracer."""
        return self.tracer

    def instrument_requests(self):
        """Auto-instrument requests library."""
        try:
            RequestsInstrumentor().instrument()
        except Exception as e:
            logging.getLogger(self.service_name).warning(
                "Could not instrument requests: %s", e
            )


def init_observability(service_name: str, environment: str = None):
    """Initialize logging and tracing for the bot process.

    Args:
        service_name: Name of the service
        environment: Environment name (auto-detected from env vars)

    Returns:
        tuple: (logger, tracing_manager)
    """
    if environment is None:
        environment = os.getenv('ENVIRONMENT', 'production')

    logger = get_logger(service_name)
    tracing = TracingManager(service_name, environment)
    tracing.instrument_requests()

    logger.info("Observability initialized", service=service_name, environment=environment)

    return logger, tracing


def _record_error(span, error: BaseException):
    span.set_attribute("function.status", "error")
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))
    span.record_exception(error)


def traced_function(operation_name: Optional[str] = None):
    """Decorator to trace a function or coroutine function with OpenTelemetry.

    Usage:
        @traced_function("post_command")
        async def post_command(...):
            ...
    """
    def decorator(func):
        op_name = operation_name or func.__name__

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                tracer = trace.get_tracer(__name__)
                with tracer.start_as_current_span(op_name, record_exception=False) as span:
                    span.set_attribute("function.name", func.__name__)
                    span.set_attribute("function.module", func.__module__)
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        _record_error(span, e)
                        raise
                    span.set_attribute("function.status", "success")
                    return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            tracer = trace.get_tracer(__name__)
            with tracer.start_as_current_span(op_name, record_exception=False) as span:
                span.set_attribute("function.name", func.__name__)
                span.set_attribute("function.module", func.__module__)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_error(span, e)
                    raise
                span.set_attribute("function.status", "success")
                return result

        return wrapper
    return decorator
