"""
Configuration for the domain existence service.

Two layers:

- `Settings` (Pydantic Settings) reads process-level knobs from the
  environment: where the lookup document comes from, the listen address,
  logging and pool sizing.
- `LookupConfig` is the lookup document itself, `{postgres_uri, one_of}`,
  sourced from the base64-encoded `CONFIG` environment value when set and from
  the JSON file at `CONFIG_PATH` otherwise.

Any problem with either layer raises `ConfigError`; the service never starts
with a partial configuration.
"""
from __future__ import annotations

import base64
import binascii
from functools import lru_cache
from pathlib import Path
from typing import List, Tuple

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain_exists.domain.models import TableColumn
from domain_exists.errors import ConfigError

DEFAULT_LISTEN_ADDRESS = ":8383"


class Settings(BaseSettings):
    # Lookup document sources, in precedence order
    config_blob: str = Field("", alias="CONFIG")
    config_path: str = Field("config.json", alias="CONFIG_PATH")

    # HTTP listener
    host: str = Field(DEFAULT_LISTEN_ADDRESS, alias="HOST")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Connection pool
    pool_min_size: int = Field(1, alias="POOL_MIN_SIZE", ge=0)
    pool_max_size: int = Field(10, alias="POOL_MAX_SIZE", ge=1)
    statement_timeout_ms: int = Field(0, alias="DB_STATEMENT_TIMEOUT_MS", ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class LookupConfig(BaseModel):
    """
    The lookup document: a connection string and the ordered checks to run.
    """

    postgres_uri: str = Field(..., min_length=1, description="libpq connection string.")
    one_of: List[TableColumn] = Field(
        ..., min_length=1, description="Table/column pairs, checked in this order."
    )

    model_config = {
        "frozen": True,
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def _read_document(settings: Settings) -> bytes:
    if settings.config_blob:
        try:
            return base64.b64decode(settings.config_blob, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ConfigError(f"CONFIG is not valid base64: {exc}") from exc

    path = Path(settings.config_path)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc


def load_lookup_config(settings: Settings | None = None) -> LookupConfig:
    """
    Load and validate the lookup document.

    Parameters
    ----------
    settings : Settings | None
        Source settings. Defaults to the cached process settings.

    Returns
    -------
    LookupConfig
        The validated document.

    Raises
    ------
    ConfigError
        If the document is missing, undecodable, malformed, has an empty
        `postgres_uri`, an empty `one_of`, or an entry with an empty
        `table_name`/`column`.
    """
    settings = settings or get_settings()
    raw = _read_document(settings)
    try:
        return LookupConfig.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid lookup configuration: {exc}") from exc


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    Split a `host:port` listen address. An empty host binds every interface.

    >>> parse_listen_address(":8383")
    ('0.0.0.0', 8383)
    """
    host, sep, port = address.strip().rpartition(":")
    if not sep:
        raise ConfigError(f"listen address {address!r} must be in host:port form")
    try:
        port_number = int(port)
    except ValueError as exc:
        raise ConfigError(f"listen address {address!r} has an invalid port") from exc
    if not 0 <= port_number <= 65535:
        raise ConfigError(f"listen address {address!r} has an out of range port")

    host = host.strip("[]") or "0.0.0.0"
    return host, port_number


__all__ = [
    "DEFAULT_LISTEN_ADDRESS",
    "LookupConfig",
    "Settings",
    "get_settings",
    "load_lookup_config",
    "parse_listen_address",
]
