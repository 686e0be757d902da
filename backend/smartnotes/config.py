"""
Configuration, logging and environment accessors.

Values are read from the environment on each call so tests can monkeypatch
them and reload the route modules.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# --- LOGGING ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("smartnotes")


def log_event(level: int, message: str, _logger: logging.Logger = logger, **data) -> None:
    """Structured-ish log line: `message | k=v | k=v`."""
    serialized = " | ".join(f"{k}={v}" for k, v in data.items())
    _logger.log(level, f"{message}{' | ' + serialized if serialized else ''}")


# --- PATHS ---
# repository_root/data (we are in backend/smartnotes/)
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"


def data_dir() -> Path:
    return Path(os.getenv("APP_DATA_DIR", str(DEFAULT_DATA_DIR)))


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


# --- AUTOSAVE ---
def autosave_debounce_seconds() -> float:
    return _int_env("AUTOSAVE_DEBOUNCE_MS", 1500) / 1000.0


def session_idle_seconds() -> float:
    return float(_int_env("SESSION_IDLE_SECONDS", 1800))


# --- AI GATEWAY ---
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"
DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def groq_api_key() -> str | None:
    # GROK_API_KEY is a common misspelling that older deployments still set
    return os.getenv("GROQ_API_KEY") or os.getenv("GROK_API_KEY") or None


def groq_model() -> str:
    return os.getenv("GROQ_MODEL", DEFAULT_GROQ_MODEL)


def groq_base_url() -> str:
    return os.getenv("GROQ_BASE_URL", DEFAULT_GROQ_BASE_URL).rstrip("/")


def ai_timeout_seconds() -> float:
    return _float_env("AI_TIMEOUT_SECONDS", 60.0)


# --- AUTH ---
def jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        # required in production; tests and demos set it in the environment
        raise RuntimeError("JWT_SECRET is not set")
    return secret


def jwt_algorithm() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def jwt_exp_minutes() -> int:
    return _int_env("JWT_EXP_MINUTES", 15)


def bcrypt_rounds() -> int | None:
    raw = os.getenv("BCRYPT_ROUNDS")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None
