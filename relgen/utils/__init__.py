"""
Utilities package for relgen.

Shared logging helpers. Keep this package free of compiler logic.
"""

from relgen.utils.logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "get_logger",
]
