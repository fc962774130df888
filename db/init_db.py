"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Departments a user or receipt belongs to
CREATE TABLE IF NOT EXISTS department (
    department_id   SERIAL PRIMARY KEY,
    department_name VARCHAR(100) NOT NULL
);

-- Banks referenced by bank accounts
CREATE TABLE IF NOT EXISTS bank (
    bank_id         SERIAL PRIMARY KEY,
    bank_name       VARCHAR(100) NOT NULL
);

-- Reimbursement target accounts; the number is Fernet-encrypted
CREATE TABLE IF NOT EXISTS bank_account (
    account_id               SERIAL PRIMARY KEY,
    account_title            VARCHAR(100),
    account_holder_name      VARCHAR(100) NOT NULL,
    account_number_encrypted TEXT NOT NULL,
    bank_id                  INT NOT NULL REFERENCES bank(bank_id)
);

-- Users: the 6-digit user_id is generated by the application
CREATE TABLE IF NOT EXISTS "user" (
    user_id           INT PRIMARY KEY,
    email             VARCHAR(255) NOT NULL UNIQUE,
    password_hashed   VARCHAR(255) NOT NULL,
    user_name         VARCHAR(100) NOT NULL,
    department_id     INT NOT NULL REFERENCES department(department_id),
    role              VARCHAR(20) NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
    profile_image_url TEXT,
    otp_code          VARCHAR(10),
    otp_expires_at    TIMESTAMPTZ
);

-- Receipts: approval columns stay NULL until an admin responds
CREATE TABLE IF NOT EXISTS receipt (
    receipt_id           SERIAL PRIMARY KEY,
    requester_id         INT NOT NULL REFERENCES "user"(user_id) ON DELETE CASCADE,
    department_id        INT NOT NULL REFERENCES department(department_id),
    account_id           INT NOT NULL REFERENCES bank_account(account_id),
    receipt_date         DATE NOT NULL,
    description          TEXT,
    amount               NUMERIC(12,2) NOT NULL,
    request_date         TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    status               VARCHAR(20) NOT NULL DEFAULT 'under_review'
                         CHECK (status IN ('under_review', 'approved', 'rejected')),
    receipt_image_url    TEXT,
    admin_id             INT REFERENCES "user"(user_id) ON DELETE SET NULL,
    response_date        TIMESTAMPTZ,
    response_description TEXT,
    transfer_image_url   TEXT
);

-- Indexes for the filtered receipt listing
CREATE INDEX IF NOT EXISTS idx_receipt_requester ON receipt(requester_id);
CREATE INDEX IF NOT EXISTS idx_receipt_status ON receipt(status);
CREATE INDEX IF NOT EXISTS idx_receipt_request_date ON receipt(request_date DESC);
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool, close_pool
    init_pool()
    try:
        create_tables()
    finally:
        close_pool()
