# pokematchup/config.py
# Settings from environment (+ optional .env file)

import os

from dotenv import load_dotenv

load_dotenv()

def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        _BAD_VALUES.append(f"{key}={raw!r}")
        return default

def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        _BAD_VALUES.append(f"{key}={raw!r}")
        return default

def _env_bool(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

# collected while reading; logged by setup_logging()
_BAD_VALUES: list[str] = []

# --------------------------------------------------------------------------- #
# Upstream API
# --------------------------------------------------------------------------- #

API_BASE = os.getenv("POKEAPI_BASE_URL", "https://pokeapi.co/api/v2").rstrip("/")
HTTP_TIMEOUT = _env_float("POKEAPI_TIMEOUT", 10.0)
HTTP_RETRIES = _env_int("POKEAPI_RETRIES", 3)
HTTP_BACKOFF = 0.3
MAX_WORKERS = max(1, _env_int("POKEAPI_MAX_WORKERS", 8))

# --------------------------------------------------------------------------- #
# Logging / web
# --------------------------------------------------------------------------- #

LOG_DIR = os.getenv("POKEMATCHUP_LOG_DIR", "logs")
LOG_LEVEL = os.getenv("POKEMATCHUP_LOG_LEVEL", "INFO").upper()
VERBOSE_CACHE = _env_bool("POKEMATCHUP_VERBOSE_CACHE")
SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-only-change-me")

def invalid_values() -> list[str]:
    """Env entries that failed to parse and were replaced by defaults."""
    return list(_BAD_VALUES)
