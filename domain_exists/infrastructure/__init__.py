"""
Infrastructure package for the domain existence service.

Centralizes database connectivity (pool lifecycle, pipelined batches). Keep
this layer focused on I/O and resource management, decoupled from the
checker and the HTTP handler.
"""

from domain_exists.infrastructure.db_factory import BatchResults, ExistencePool, mask_conninfo

__all__ = [
    "BatchResults",
    "ExistencePool",
    "mask_conninfo",
]
