"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "reimbursement")
DB_USER: str = os.getenv("DB_USER", "reimbursement_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

DB_POOL_MIN_CONN: int = int(os.getenv("DB_POOL_MIN_CONN", "1"))
DB_POOL_MAX_CONN: int = int(os.getenv("DB_POOL_MAX_CONN", "5"))

# ── Encryption ────────────────────────────────────────────
# Fernet key (urlsafe base64, 32 bytes) for bank account numbers.
ENCRYPTION_KEY: str = os.getenv("ENCRYPTION_KEY", "")

# ── User identity ─────────────────────────────────────────
USER_ID_MIN: int = int(os.getenv("USER_ID_MIN", "100000"))
USER_ID_MAX: int = int(os.getenv("USER_ID_MAX", "999999"))
USER_ID_MAX_RETRIES: int = int(os.getenv("USER_ID_MAX_RETRIES", "5"))
USER_ID_RETRY_BACKOFF_SECONDS: float = float(
    os.getenv("USER_ID_RETRY_BACKOFF_SECONDS", "0")
)

# ── Enumerations ──────────────────────────────────────────
RECEIPT_STATUSES: tuple[str, ...] = ("under_review", "approved", "rejected")
DEFAULT_RECEIPT_STATUS: str = "under_review"

USER_ROLES: tuple[str, ...] = ("user", "admin")
DEFAULT_USER_ROLE: str = "user"

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
