# src/utils/__init__.py

from .logging import (
    get_log_level,
    setup_global_logging
)

from .tracing import (
    setup_tracing,
    setup_logger_with_tracing,
    traced
)

__all__ = [
    'get_log_level',
    'setup_global_logging',
    'setup_tracing',
    'setup_logger_with_tracing',
    'traced'
]
