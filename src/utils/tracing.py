# src/utils/tracing.py

import functools
import inspect
import logging
import sys
import time

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor

from .logging import ColoredFormatter, get_log_level

_INSTRUMENTED = False

logger = logging.getLogger(__name__)


class TracingFormatter(ColoredFormatter):
    """Extends ColoredFormatter with the service name and short trace/span ids."""

    DARKER_GREEN = '\033[2;32m'
    BLUE = '\033[34m'

    def __init__(self, *args, service_name: str = "unknown", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def format(self, record):
        span_context = trace.get_current_span().get_span_context()

        if span_context.is_valid:
            trace_id = format(span_context.trace_id, '032x')[:8]
            span_id = format(span_context.span_id, '016x')[:8]
            record.trace_id = f"[{trace_id}:{span_id}]"
        else:
            record.trace_id = ""

        record.service_name = f"{self.BLUE}{self.service_name}{self.RESET}"

        # ColoredFormatter.format colours the level name
        return super().format(record)

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        s = time.strftime(datefmt or self.default_time_format, ct)
        s = self.default_msec_format % (s, record.msecs)
        return f"{self.DARKER_GREEN}[{s}]{self.RESET}"


def setup_tracing(service_name: str, enable_console_export: bool = False):
    """
    Install the OpenTelemetry tracer provider and botocore instrumentation.

    Safe to call from every module: only the first call has any effect.
    """
    global _INSTRUMENTED

    current_provider = trace.get_tracer_provider()
    if hasattr(current_provider, 'get_span_processor') or _INSTRUMENTED:
        return

    resource = Resource(attributes={"service.name": service_name})
    provider = TracerProvider(resource=resource)

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    try:
        BotocoreInstrumentor().instrument()
        logger.info(f"OTEL: instrumentation complete for {service_name}")
    except Exception as e:
        if "already instrumented" not in str(e).lower():
            logger.warning(f"OTEL instrumentation warning: {e}")
    _INSTRUMENTED = True


def setup_logger_with_tracing(name: str, level: int = None, service_name: str = "unknown") -> logging.Logger:
    level = level if level is not None else get_log_level()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = TracingFormatter(
        fmt='%(asctime)s [%(service_name)s] %(levelname)s:    %(trace_id)s %(filename)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        service_name=service_name
    )
    formatter.default_time_format = '%Y-%m-%d %H:%M:%S'
    formatter.default_msec_format = '%s.%03d'

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def traced(span_name: str = None):
    """Run the decorated function (sync or async) inside a span."""
    def decorator(func):
        name = span_name or func.__name__

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with trace.get_tracer(func.__module__).start_as_current_span(name):
                    return await func(*args, **kwargs)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with trace.get_tracer(func.__module__).start_as_current_span(name):
                return func(*args, **kwargs)
        return wrapper
    return decorator
