"""Runtime settings resolved from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "PYAUCTION_DB_PATH"
_PASSPHRASE_ENV = "PYAUCTION_ADMIN_PASSPHRASE"
_ACTIVITY_LIMIT_ENV = "PYAUCTION_ACTIVITY_LIMIT"
_RULES_ENV = "PYAUCTION_RULES"

_DB_PATH_DEFAULT = "pyauction.sqlite"
_PASSPHRASE_DEFAULT = "ABCD2026"
_ACTIVITY_LIMIT_DEFAULT = 20


@dataclass(frozen=True)
class Settings:
    db_path: Path
    admin_passphrase: str
    activity_limit: int
    rules_name: str


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def load_settings() -> Settings:
    passphrase = os.getenv(_PASSPHRASE_ENV)
    if not passphrase:
        passphrase = _PASSPHRASE_DEFAULT
    return Settings(
        db_path=Path(os.getenv(_DB_PATH_ENV) or _DB_PATH_DEFAULT),
        admin_passphrase=passphrase,
        activity_limit=_env_int(_ACTIVITY_LIMIT_ENV, _ACTIVITY_LIMIT_DEFAULT, min_value=1),
        rules_name=os.getenv(_RULES_ENV) or "default",
    )
