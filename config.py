# config.py
"""Settings loaded from environment variables (and an optional .env file)."""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASKS"

DEFAULT_DATA_DIR = "data"
DEFAULT_STATIC_DIR = "static"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_LOG_LEVEL = "INFO"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str) -> str:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        raise ValueError(f"{_k('PORT')} must be an integer, got {raw!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"{_k('PORT')} out of range: {port}")
    return port


def _parse_log_level(raw: str) -> str:
    level = raw.upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{_k('LOG_LEVEL')} is not a logging level: {raw!r}")
    return level


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    static_dir: Path = Path(DEFAULT_STATIC_DIR)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied (CLI flags win over env)."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "data_dir" in values:
            values["data_dir"] = Path(values["data_dir"])
        if "static_dir" in values:
            values["static_dir"] = Path(values["static_dir"])
        if "port" in values:
            values["port"] = _parse_port(str(values["port"]))
        if "log_level" in values:
            values["log_level"] = _parse_log_level(values["log_level"])
        return replace(self, **values)


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the process environment.

    A .env file (or ``env_file`` if given) is loaded first; variables already
    set in the environment take precedence over it.
    """
    load_dotenv(dotenv_path=env_file, override=False)
    return Settings(
        data_dir=Path(_env(_k("DATA_DIR"), DEFAULT_DATA_DIR)),
        static_dir=Path(_env(_k("STATIC_DIR"), DEFAULT_STATIC_DIR)),
        host=_env(_k("HOST"), DEFAULT_HOST),
        port=_parse_port(_env(_k("PORT"), str(DEFAULT_PORT))),
        log_level=_parse_log_level(_env(_k("LOG_LEVEL"), DEFAULT_LOG_LEVEL)),
    )
