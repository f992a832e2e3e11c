"""
Utilities package for the domain existence service.

Exports shared logging helpers. Keep this package lightweight and free of
domain-specific logic.
"""

from domain_exists.utils.logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "get_logger",
]
