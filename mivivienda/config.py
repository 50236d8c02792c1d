"""Environment-driven settings.

Values are read from the process environment after loading an optional
``.env`` file, so local development can keep the exchange-rate API key out of
the shell history.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_EXCHANGE_URL = "https://api.decolecta.com/v1/tipo-cambio/sbs/average"


@dataclass
class Settings:
    """Runtime configuration shared by the CLI and the web application."""

    exchange_api_url: str = DEFAULT_EXCHANGE_URL
    exchange_api_key: Optional[str] = None
    exchange_timeout: float = 10.0
    database_url: str = "sqlite:///mivivienda.sqlite3"
    max_simulations_per_owner: int = 50
    log_level: str = "INFO"
    log_format: str = "standard"
    secret_key: str = "dev-secret-key"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, *, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables.

        When ``environ`` is given it is used instead of ``os.environ`` and no
        ``.env`` file is loaded.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ
        return cls(
            exchange_api_url=environ.get("MIVIVIENDA_EXCHANGE_URL", DEFAULT_EXCHANGE_URL),
            exchange_api_key=environ.get("API_KEY_DECOLECTA") or None,
            exchange_timeout=_float(environ, "MIVIVIENDA_EXCHANGE_TIMEOUT", 10.0),
            database_url=environ.get("MIVIVIENDA_DATABASE_URL", "sqlite:///mivivienda.sqlite3"),
            max_simulations_per_owner=_int(environ, "MIVIVIENDA_MAX_SIMULATIONS", 50),
            log_level=environ.get("MIVIVIENDA_LOG_LEVEL", "INFO"),
            log_format=environ.get("MIVIVIENDA_LOG_FORMAT", "standard"),
            secret_key=environ.get("FLASK_SECRET_KEY", "dev-secret-key"),
        )


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number; got {raw!r}") from exc


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer; got {raw!r}") from exc
