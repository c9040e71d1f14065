"""
config.py – Environment-driven settings for the E-Library API.

Values are read once at import time (after loading a local ``.env``).
Code that must see test overrides reads them as ``config.NAME`` at call
time instead of copying them into module globals.
"""

from __future__ import annotations

import os
import re
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

_TRUE = {"1", "true", "yes", "on"}


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE


_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days", "w": "weeks"}


def parse_duration(value: str) -> timedelta:
    """Parse ``"7d"``, ``"12h"``, ``"30m"``, ``"45s"`` or plain seconds."""
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_UNITS[unit.lower()]: int(amount)})


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./elibrary.db")

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
SECRET_KEY: str = os.getenv("JWT_SECRET") or "change-me"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE: timedelta = parse_duration(os.getenv("JWT_EXPIRES_IN", "7d"))
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
ALLOW_ADMIN_SIGNUP: bool = env_bool("ALLOW_ADMIN_SIGNUP", default=True)
COOKIE_NAME = "token"
COOKIE_SECURE: bool = env_bool("COOKIE_SECURE", default=False)

# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------
UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
UPLOAD_URL_PREFIX = "uploads"
MAX_UPLOAD_BYTES: int = int(float(os.getenv("MAX_UPLOAD_MB", "20")) * 1024 * 1024)

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
PORT: int = int(os.getenv("PORT", "3000"))
CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
]
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
