"""
Runtime configuration (``payday_kernel.config``).

Responsibility
--------------
Builds a ``PaydaySettings`` from an optional YAML file plus environment
overrides, and wires logging, the database engine and the immutability
listeners from it.

Architecture position
---------------------
**Kernel > Config** -- process bootstrap only.  Services receive their
collaborators (session factory, clock) explicitly and never read settings
themselves.

Invariants enforced
-------------------
* Unknown keys in the YAML file raise ``ValueError``; no silent defaults
  for misspelt settings.
* Environment overrides win over the file; the file wins over defaults.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Non-mapping YAML or bad value types  -> ``ValueError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy.engine import Engine

from payday_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
)
from payday_kernel.db.immutability import register_immutability_listeners
from payday_kernel.domain.clock import SystemClock
from payday_kernel.logging_config import configure_logging, get_logger
from payday_kernel.services.salary_cycle_service import SalaryCycleService

logger = get_logger("config")

ENV_CONFIG_PATH = "PAYDAY_CONFIG"
ENV_DATABASE_URL = "DATABASE_URL"
ENV_LOG_LEVEL = "PAYDAY_LOG_LEVEL"
ENV_TIMEZONE = "PAYDAY_TIMEZONE"


@dataclass(frozen=True)
class PaydaySettings:
    """Process-wide settings."""

    database_url: str = "sqlite:///payday.db"
    echo_sql: bool = False
    log_level: str = "INFO"
    timezone: str = "UTC"
    pay_interval_days: int = 14
    recent_cycles_limit: int = 6
    pool_size: int = 20
    max_overflow: int = 10

    def __post_init__(self) -> None:
        if self.pay_interval_days <= 0:
            raise ValueError("pay_interval_days must be positive")
        if self.recent_cycles_limit <= 0:
            raise ValueError("recent_cycles_limit must be positive")


_INT_FIELDS = {"pay_interval_days", "recent_cycles_limit", "pool_size", "max_overflow"}
_BOOL_FIELDS = {"echo_sql"}


def _coerce(name: str, value: Any) -> Any:
    if name in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("1", "true", "yes", "on"):
            return True
        if isinstance(value, str) and value.strip().lower() in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Setting {name!r} must be a boolean, got {value!r}")
    if name in _INT_FIELDS:
        if isinstance(value, bool):
            raise ValueError(f"Setting {name!r} must be an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Setting {name!r} must be an integer, got {value!r}") from exc
    return str(value)


def settings_from_mapping(data: Mapping[str, Any]) -> PaydaySettings:
    """
    Build settings from a parsed mapping (e.g. a YAML document).

    Raises:
        ValueError: On unknown keys or values of the wrong type.
    """
    known = {f.name for f in fields(PaydaySettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")
    return PaydaySettings(**{k: _coerce(k, v) for k, v in data.items()})


def load_yaml_settings(path: Path) -> dict[str, Any]:
    """Load a YAML settings file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return data


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> PaydaySettings:
    """
    Resolve settings: defaults, then the YAML file, then the environment.

    Args:
        path: YAML file.  Falls back to ``$PAYDAY_CONFIG``; no file is read
            when neither is given.
        environ: Environment mapping (defaults to ``os.environ``).
    """
    env = os.environ if environ is None else environ
    config_path = path or env.get(ENV_CONFIG_PATH)

    settings = PaydaySettings()
    if config_path:
        settings = settings_from_mapping(load_yaml_settings(Path(config_path)))

    overrides: dict[str, Any] = {}
    if env.get(ENV_DATABASE_URL):
        overrides["database_url"] = env[ENV_DATABASE_URL]
    if env.get(ENV_LOG_LEVEL):
        overrides["log_level"] = env[ENV_LOG_LEVEL].upper()
    if env.get(ENV_TIMEZONE):
        overrides["timezone"] = env[ENV_TIMEZONE]
    if overrides:
        settings = replace(settings, **overrides)

    return settings


def bootstrap(settings: PaydaySettings, create_schema: bool = False) -> Engine:
    """
    Configure logging, initialize the engine and register ORM listeners.

    Args:
        settings: Resolved settings.
        create_schema: Create missing tables (local runs and tests).

    Returns:
        The initialized engine.
    """
    configure_logging(level=settings.log_level)
    engine = init_engine_from_url(
        settings.database_url,
        echo=settings.echo_sql,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )
    register_immutability_listeners()
    if create_schema:
        create_tables()
    logger.info(
        "payday_bootstrapped",
        extra={"dialect": engine.dialect.name, "timezone": settings.timezone},
    )
    return engine


def build_salary_cycle_service(settings: PaydaySettings) -> SalaryCycleService:
    """A SalaryCycleService on the bootstrapped engine and a local-time clock."""
    return SalaryCycleService(
        get_session_factory(),
        clock=SystemClock(settings.timezone),
        pay_interval_days=settings.pay_interval_days,
        recent_cycles_limit=settings.recent_cycles_limit,
    )
