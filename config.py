"""
config.py
---------
Central configuration module. Loads environment variables from the .env
file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag ('1', 'true', 'yes', 'on' are truthy)."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("ORM_LOG_LEVEL", "INFO").upper()

# ── Serialization ─────────────────────────────────────────
JSON_INDENT: int = int(os.getenv("ORM_JSON_INDENT", "4"))
JSON_ENSURE_ASCII: bool = _env_bool("ORM_JSON_ENSURE_ASCII", True)
