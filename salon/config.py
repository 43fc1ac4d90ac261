# salon/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Local snapshot database (SQLite by default)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salon.db")

# Shared document (JSONBin-compatible). Empty URL = local snapshot only
REMOTE_DOCUMENT_URL = os.getenv("REMOTE_DOCUMENT_URL", "")
REMOTE_DOCUMENT_API_KEY = os.getenv("REMOTE_DOCUMENT_API_KEY", "")
REMOTE_TIMEOUT_SECONDS = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "10"))

# Security
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "change-me")

# Wall clock of the salon. All "YYYY-MM-DD" / "HH:MM" values are read in this zone
SALON_TIMEZONE = os.getenv("SALON_TIMEZONE", "Asia/Jerusalem")

# Sync loop
SYNC_ENABLED = os.getenv("SYNC_ENABLED", "true").lower() == "true"
SYNC_INTERVAL_SECONDS = float(os.getenv("SYNC_INTERVAL_SECONDS", "5"))
# A local change younger than this suppresses an incoming sync
SYNC_GUARD_SECONDS = float(os.getenv("SYNC_GUARD_SECONDS", "5"))
