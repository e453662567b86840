"""Environment-driven settings for the CLI and the HTTP app."""

import logging
import math
import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from domain_hacks.dns_checker import DEFAULT_CONCURRENCY, DEFAULT_DOH_URL, DNS_TIMEOUT
from domain_hacks.errors import ConfigError
from domain_hacks.tld_catalog import DEFAULT_TLD_LIST_PATH
from domain_hacks.types import FailurePolicy, ResolverKind

DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"
DEFAULT_DNS_RETRIES = 0
DEFAULT_LOG_LEVEL = "WARNING"


def _getenv_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip()


def _getenv_int(name: str, default: int, *, minimum: int = 0) -> int:
    v = _getenv_str(name, str(default))
    try:
        value = int(v)
    except ValueError as err:
        raise ConfigError(f"Environment variable {name} must be an integer; got {v!r}") from err
    if value < minimum:
        raise ConfigError(f"Environment variable {name} must be >= {minimum}; got {value}")
    return value


def _getenv_float(name: str, default: float) -> float:
    v = _getenv_str(name, str(default))
    try:
        value = float(v)
    except ValueError as err:
        raise ConfigError(f"Environment variable {name} must be a number; got {v!r}") from err
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"Environment variable {name} must be a positive finite number; got {value}")
    return value


def _getenv_log_level(name: str, default: str) -> str:
    v = _getenv_str(name, default).upper()
    if v not in logging.getLevelNamesMapping():
        raise ConfigError(f"Environment variable {name} must be a logging level name; got {v!r}")
    return v


def _getenv_enum[E: Enum](name: str, enum_cls: type[E], default: E) -> E:
    v = _getenv_str(name, default.value).lower()
    try:
        return enum_cls(v)
    except ValueError as err:
        choices = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"Environment variable {name} must be one of {choices}; got {v!r}") from err


@dataclass(frozen=True)
class Settings:
    tld_list_path: Path = DEFAULT_TLD_LIST_PATH
    doh_url: str = DEFAULT_DOH_URL
    dns_timeout: float = DNS_TIMEOUT
    dns_retries: int = DEFAULT_DNS_RETRIES
    concurrency: int = DEFAULT_CONCURRENCY
    failure_policy: FailurePolicy = FailurePolicy.OMIT
    resolver: ResolverKind = ResolverKind.DOH
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        """Build settings from the environment, loading ./.env first if present."""
        if dotenv:
            load_dotenv(Path.cwd() / ".env", override=False)

        tld_list = _getenv_str("DOMAIN_HACKS_TLD_LIST", "")
        return cls(
            tld_list_path=Path(tld_list) if tld_list else DEFAULT_TLD_LIST_PATH,
            doh_url=_getenv_str("DOMAIN_HACKS_DOH_URL", DEFAULT_DOH_URL),
            dns_timeout=_getenv_float("DOMAIN_HACKS_DNS_TIMEOUT", DNS_TIMEOUT),
            dns_retries=_getenv_int("DOMAIN_HACKS_DNS_RETRIES", DEFAULT_DNS_RETRIES),
            concurrency=_getenv_int("DOMAIN_HACKS_CONCURRENCY", DEFAULT_CONCURRENCY, minimum=1),
            failure_policy=_getenv_enum("DOMAIN_HACKS_ON_ERROR", FailurePolicy, FailurePolicy.OMIT),
            resolver=_getenv_enum("DOMAIN_HACKS_RESOLVER", ResolverKind, ResolverKind.DOH),
            host=_getenv_str("HOST", DEFAULT_HOST),
            port=_getenv_int("PORT", DEFAULT_PORT, minimum=1),
            log_level=_getenv_log_level("DOMAIN_HACKS_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None values in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
