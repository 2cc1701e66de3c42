## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Runtime Configuration
## Description:
## Central place for tunable constants. Every value can be overridden through an
## environment variable of the same name so the console front end, the tests and a
## server deployment can share one code base.

import os
import logging


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ---- Remote data ----
# Base URL (or path prefix) that every row source file hangs off.
DRAW_DATA_BASE = os.environ.get("DRAW_DATA_BASE", "http://localhost:3000/api/file").rstrip("/")
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "15"))

# Open-data JSON API used as the last-resort source for the multi-state games.
OPEN_DATA_BASE = os.environ.get("OPEN_DATA_BASE", "https://data.ny.gov/resource").rstrip("/")
OPEN_DATA_TOKEN = os.environ.get("OPEN_DATA_TOKEN") or None
ALLOW_OPEN_DATA_FALLBACK = _env_bool("ALLOW_OPEN_DATA_FALLBACK", True)

# ---- Cache ----
CACHE_TTL_HOURS = float(os.environ.get("CACHE_TTL_HOURS", "6"))
CACHE_KEY_PREFIX = os.environ.get("CACHE_KEY_PREFIX", "draws.cache.v2.")
CACHE_FILE = os.environ.get("CACHE_FILE", "draw_cache.json")
DB_FILENAME = os.environ.get("DB_FILENAME", "draws.db")

# ---- Generation ----
MAX_PATTERN_RETRIES = int(os.environ.get("MAX_PATTERN_RETRIES", "50"))

# ---- Logging ----
LOG_LEVEL = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
