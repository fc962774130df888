"""
Shared pytest fixtures: a fake psycopg2 pool that records statements
and replays scripted results, plus a per-test Fernet key.
"""
from collections import deque
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from cryptography.fernet import Fernet

import db.connection
import security.encryption


class FakeDatabase:
    """Records every executed statement; answers with queued results in order."""

    def __init__(self):
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
        self.checked_out = 0
        self._results = deque()

    def push(self, rows=None, rowcount=None, error=None):
        self._results.append((list(rows or []), rowcount, error))

    def next_result(self):
        if self._results:
            return self._results.popleft()
        return [], None, None

    @property
    def last_sql(self):
        return self.executed[-1][0]

    @property
    def last_params(self):
        return self.executed[-1][1]


class FakeCursor:
    def __init__(self, database, cursor_factory=None):
        self._db = database
        self.cursor_factory = cursor_factory
        self._rows = []
        self.rowcount = -1

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self._db.executed.append((sql, list(params) if params is not None else []))
        rows, rowcount, error = self._db.next_result()
        if error is not None:
            raise error
        self._rows = rows
        self.rowcount = len(rows) if rowcount is None else rowcount

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows


class FakeConnection:
    def __init__(self, database):
        self._db = database

    def cursor(self, cursor_factory=None):
        return FakeCursor(self._db, cursor_factory)

    def commit(self):
        self._db.commits += 1

    def rollback(self):
        self._db.rollbacks += 1


class FakePool:
    def __init__(self, database):
        self._db = database

    def getconn(self):
        self._db.checked_out += 1
        return FakeConnection(self._db)

    def putconn(self, conn):
        self._db.checked_out -= 1

    def closeall(self):
        pass


@pytest.fixture()
def fake_db(monkeypatch):
    database = FakeDatabase()
    monkeypatch.setattr(db.connection, "_pool", FakePool(database))
    yield database
    assert database.checked_out == 0, "connection leaked"


@pytest.fixture(autouse=True)
def encryption_key(monkeypatch):
    key = Fernet.generate_key().decode()
    monkeypatch.setattr(security.encryption, "ENCRYPTION_KEY", key)
    return key


@pytest.fixture()
def receipt_row():
    """Flat joined row as returned by the receipt listing query."""
    def _make(**overrides):
        row = {
            "receipt_id": 17,
            "receipt_date": date(2024, 3, 1),
            "description": "Taxi to client site",
            "amount": Decimal("42.50"),
            "request_date": datetime(2024, 3, 2, 9, 30, tzinfo=timezone.utc),
            "status": "under_review",
            "receipt_image_url": "https://cdn.example.com/r/17.jpg",
            "user_id": 123456,
            "user_name": "Dana Putri",
            "email": "dana@example.com",
            "department_id": 3,
            "department_name": "Engineering",
            "account_id": 8,
            "account_title": "Payroll",
            "account_holder_name": "Dana Putri",
            "account_number_encrypted": security.encryption.encrypt("1234567890"),
            "bank_id": 2,
            "bank_name": "Bank Mandiri",
            "admin_id": None,
            "admin_name": None,
            "admin_email": None,
            "response_date": None,
            "transfer_image_url": None,
            "response_description": None,
        }
        row.update(overrides)
        return row
    return _make


@pytest.fixture()
def user_row():
    def _make(**overrides):
        row = {
            "user_id": 654321,
            "email": "ari@example.com",
            "user_name": "Ari Wibowo",
            "department_id": 3,
            "department_name": "Engineering",
            "role": "user",
            "profile_image_url": None,
        }
        row.update(overrides)
        return row
    return _make
