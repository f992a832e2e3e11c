"""HTTP layer for the domain existence service."""

from domain_exists.api.app import create_app, normalize_domain

__all__ = ["create_app", "normalize_domain"]
