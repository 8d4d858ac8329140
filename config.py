"""Configuration for the phishing URL checker."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    request_timeout: float = 6.0
    tls_timeout: float = 5.0
    whois_timeout: float = 6.0
    context_timeout: float = 10.0
    max_workers: int = 6
    user_agent: str = "PhishCheck/1.0 (+https://example.com)"
    log_level: str = "WARNING"


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def get_settings() -> Settings:
    """Load settings from environment variables with safe defaults."""
    return Settings(
        request_timeout=_env_float("PHISH_REQUEST_TIMEOUT", Settings.request_timeout),
        tls_timeout=_env_float("PHISH_TLS_TIMEOUT", Settings.tls_timeout),
        whois_timeout=_env_float("PHISH_WHOIS_TIMEOUT", Settings.whois_timeout),
        context_timeout=_env_float("PHISH_CONTEXT_TIMEOUT", Settings.context_timeout),
        max_workers=_env_int("PHISH_MAX_WORKERS", Settings.max_workers),
        user_agent=os.getenv("PHISH_USER_AGENT", Settings.user_agent),
        log_level=os.getenv("PHISH_LOG_LEVEL", Settings.log_level).upper(),
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Set up root logging for the command line entry points."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
