from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import InvalidInput

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise InvalidInput(name, f"expected a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidInput(name, f"expected an integer, got {raw!r}") from None


def _env_positive(name: str, value):
    if value <= 0:
        raise InvalidInput(name, f"must be greater than 0, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_str(name, None)
    if raw is None:
        return default
    val = raw.lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    raise InvalidInput(name, f"expected a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    population_csv_path: Optional[str] = None
    geocoder_enabled: bool = True
    geocoder_url: str = NOMINATIM_REVERSE_URL
    geocoder_user_agent: str = "ImpactSim/1.0"
    geocoder_timeout_s: float = 5.0
    cache_ttl_s: float = 3600.0
    cache_max_entries: int = 1024
    cache_coord_precision: int = 2
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        load_dotenv(env_file)
        origins = _env_str("CORS_ORIGINS", "*")
        return cls(
            population_csv_path=_env_str("POPULATION_CSV_PATH", None),
            geocoder_enabled=_env_bool("GEOCODER_ENABLED", True),
            geocoder_url=_env_str("GEOCODER_URL", NOMINATIM_REVERSE_URL),
            geocoder_user_agent=_env_str("GEOCODER_USER_AGENT", "ImpactSim/1.0"),
            geocoder_timeout_s=_env_positive("GEOCODER_TIMEOUT_S", _env_float("GEOCODER_TIMEOUT_S", 5.0)),
            cache_ttl_s=_env_positive("CACHE_TTL_S", _env_float("CACHE_TTL_S", 3600.0)),
            cache_max_entries=_env_positive("CACHE_MAX_ENTRIES", _env_int("CACHE_MAX_ENTRIES", 1024)),
            cache_coord_precision=_env_int("CACHE_COORD_PRECISION", 2),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            api_host=_env_str("API_HOST", "0.0.0.0"),
            api_port=_env_int("API_PORT", 8000),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
