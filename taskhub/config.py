# taskhub/config.py

import os

from dotenv import load_dotenv

# ---------------- ENV ----------------
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env"))
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------------- DATABASE ----------------
# If DATABASE_URL is NOT provided -> use local SQLite
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./taskhub.db")
SQL_ECHO = _env_bool("SQL_ECHO", False)

# ---------------- AUTH ----------------
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = _env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60)

# ---------------- WEB ----------------
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN")

# ---------------- LOGGING ----------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")

# ---------------- REMINDERS ----------------
REMINDER_SCANNER_ENABLED = _env_bool("REMINDER_SCANNER_ENABLED", True)
REMINDER_SCAN_INTERVAL_SECONDS = _env_float("REMINDER_SCAN_INTERVAL_SECONDS", 60.0)
REMINDER_WINDOW_MINUTES = _env_int("REMINDER_WINDOW_MINUTES", 5)

# ---------------- RETENTION / RETRIES ----------------
COMPLETED_RETENTION_DAYS = _env_int("COMPLETED_RETENTION_DAYS", 30)
SAFE_DELETE_MAX_RETRIES = _env_int("SAFE_DELETE_MAX_RETRIES", 3)
SAFE_DELETE_BASE_DELAY_SECONDS = _env_float("SAFE_DELETE_BASE_DELAY_SECONDS", 0.5)
SAFE_DELETE_MAX_DELAY_SECONDS = _env_float("SAFE_DELETE_MAX_DELAY_SECONDS", 2.0)

# ---------------- REVIEW ----------------
WEEKLY_GOAL_TASKS = _env_int("WEEKLY_GOAL_TASKS", 10)
