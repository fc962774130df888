"""
repositories/user_repo.py
--------------------------
Data access layer for user records.
All SQL queries related to the `"user"` table live here.
"""

import random
import time
from datetime import datetime
from typing import Optional

from config import (
    DEFAULT_USER_ROLE,
    USER_ID_MAX,
    USER_ID_MAX_RETRIES,
    USER_ID_MIN,
    USER_ID_RETRY_BACKOFF_SECONDS,
    USER_ROLES,
)
from db.connection import dict_cursor, get_connection, release_connection
from models.user import UserView, format_user
from repositories.query_builder import (
    EQUALS,
    IN_LIST,
    SEARCH,
    FilterField,
    SortSpec,
    build_query,
)
from utils.exceptions import InvalidRoleError, UserIdCollisionError
from utils.logger import get_logger

logger = get_logger(__name__)

_SELECT_USERS = """
    SELECT
        u.user_id, u.email, u.user_name,
        d.department_id, d.department_name,
        u.role, u.profile_image_url
    FROM "user" u
    JOIN department d ON u.department_id = d.department_id
"""

USER_FILTERS: tuple[FilterField, ...] = (
    FilterField("email", ("u.email",), EQUALS),
    FilterField("user_id", ("u.user_id",), EQUALS),
    FilterField("department_id", ("u.department_id",), EQUALS),
    FilterField("role", ("u.role",), IN_LIST),
    FilterField("search", ("u.user_name", "u.email"), SEARCH),
)

USER_SORT = SortSpec(
    allowed=("user_name", "email", "role"),
    default_column="user_name",
    default_direction="asc",
    prefix="u.",
)


def generate_user_id() -> int:
    """Random 6-digit user ID. Uniqueness is enforced by the primary key, not here."""
    return random.randint(USER_ID_MIN, USER_ID_MAX)


def _check_role(role: str) -> None:
    if role not in USER_ROLES:
        raise InvalidRoleError(f"Role must be one of {USER_ROLES}, got {role!r}")


class UserRepository:
    """
    Repository for CRUD operations on the user table.

    Args:
        max_retries: Extra insert attempts allowed when a generated
            user ID is already taken.
        backoff_seconds: Sleep before retry n is n * backoff_seconds.
    """

    def __init__(
        self,
        max_retries: int = USER_ID_MAX_RETRIES,
        backoff_seconds: float = USER_ID_RETRY_BACKOFF_SECONDS,
    ):
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    # ── CREATE ────────────────────────────────────────────

    def create_user(
        self,
        email: str,
        password_hashed: str,
        user_name: str,
        department_id: int,
        role: str = DEFAULT_USER_ROLE,
    ) -> int:
        """
        Insert a new user under a freshly generated 6-digit ID.

        A taken ID makes the insert return no row (ON CONFLICT on user_id),
        in which case a new ID is drawn and the insert repeated. Any other
        failure, including a duplicate email, is raised unchanged.

        Returns:
            The user_id assigned to the new user.

        Raises:
            InvalidRoleError: If the role is unknown.
            UserIdCollisionError: If every attempt hit an existing ID.
        """
        _check_role(role)
        sql = """
            INSERT INTO "user" (user_id, email, password_hashed, user_name, department_id, role)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (user_id) DO NOTHING
            RETURNING user_id;
        """
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            user_id = generate_user_id()
            conn = get_connection()
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, (user_id, email, password_hashed, user_name, department_id, role))
                    row = cur.fetchone()
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Failed to create user {email}: {e}")
                raise
            finally:
                release_connection(conn)

            if row is not None:
                logger.info(f"Created user {row[0]} ({role})")
                return row[0]

            logger.warning(f"User ID {user_id} already taken (attempt {attempt}/{attempts}). Retrying...")
            if attempt < attempts and self.backoff_seconds > 0:
                time.sleep(self.backoff_seconds * attempt)

        raise UserIdCollisionError(attempts)

    # ── READ ──────────────────────────────────────────────

    def get_hashed_password(self, user_id: int) -> Optional[str]:
        """Return the stored password hash, or None if the user doesn't exist."""
        sql = 'SELECT password_hashed FROM "user" WHERE user_id = %s;'
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (user_id,))
                row = cur.fetchone()
                return row[0] if row else None
        finally:
            release_connection(conn)

    def get_users(
        self,
        email: Optional[str] = None,
        user_id: Optional[int] = None,
        department_id: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        role: Optional[str] = None,
    ) -> list[UserView]:
        """
        List users matching every given filter.

        Args:
            email: Exact email address.
            user_id: Exact user ID.
            department_id: Members of this department.
            search: Case-insensitive substring of the name or email.
            sort_by: 'column:direction' with column in user_name, email, role.
                Defaults to name ascending.
            role: Comma-separated roles, e.g. 'admin' or 'user,admin'.
        """
        filters = {
            "email": email,
            "user_id": user_id,
            "department_id": department_id,
            "role": role,
            "search": search,
        }
        sql, params = build_query(_SELECT_USERS, filters, USER_FILTERS, USER_SORT, sort_by)

        conn = get_connection()
        try:
            with dict_cursor(conn) as cur:
                cur.execute(sql, params)
                return [format_user(row) for row in cur.fetchall()]
        finally:
            release_connection(conn)

    def get_user(self, user_id: int) -> Optional[UserView]:
        users = self.get_users(user_id=user_id)
        return users[0] if users else None

    def get_user_by_email(self, email: str) -> Optional[UserView]:
        users = self.get_users(email=email)
        return users[0] if users else None

    # ── OTP ───────────────────────────────────────────────

    def update_otp(self, user_id: int, otp_code: str, otp_expires_at: datetime) -> bool:
        """Store a one-time code and its expiry for a user."""
        return self._update_column(user_id, "otp_code = %s, otp_expires_at = %s", (otp_code, otp_expires_at))

    def verify_otp(self, user_id: int, otp_code: str) -> bool:
        """
        Check a one-time code against the stored one.

        True only if the user exists, the code matches and the expiry is
        strictly in the future (database clock). The code is not consumed.
        """
        sql = """
            SELECT 1 FROM "user"
            WHERE user_id = %s AND otp_code = %s AND otp_expires_at > NOW();
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (user_id, otp_code))
                return cur.fetchone() is not None
        finally:
            release_connection(conn)

    # ── UPDATE ────────────────────────────────────────────

    def update_password(self, user_id: int, password_hashed: str) -> bool:
        return self._update_column(user_id, "password_hashed = %s", (password_hashed,))

    def update_name(self, user_id: int, user_name: str) -> bool:
        return self._update_column(user_id, "user_name = %s", (user_name,))

    def update_department(self, user_id: int, department_id: int) -> bool:
        return self._update_column(user_id, "department_id = %s", (department_id,))

    def update_role(self, user_id: int, role: str) -> bool:
        """
        Raises:
            InvalidRoleError: If the role is unknown.
        """
        _check_role(role)
        return self._update_column(user_id, "role = %s", (role,))

    def update_profile_image(self, user_id: int, profile_image_url: str) -> bool:
        return self._update_column(user_id, "profile_image_url = %s", (profile_image_url,))

    def _update_column(self, user_id: int, assignments: str, values: tuple) -> bool:
        """
        Run `UPDATE "user" SET <assignments> WHERE user_id = %s`.

        `assignments` is always a literal from this class, never caller input.

        Returns:
            True if a row was updated, False otherwise.
        """
        sql = f'UPDATE "user" SET {assignments} WHERE user_id = %s;'
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (*values, user_id))
                updated = cur.rowcount > 0
            conn.commit()
            if updated:
                logger.info(f"Updated user {user_id}: {assignments}")
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update user {user_id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def delete_user(self, user_id: int) -> bool:
        """
        Delete a user by ID.

        Returns:
            True if a row was deleted, False otherwise.
        """
        return self._delete_where("user_id", user_id)

    def delete_user_by_email(self, email: str) -> bool:
        """
        Delete a user by email.

        Returns:
            True if a row was deleted, False otherwise.
        """
        return self._delete_where("email", email)

    def _delete_where(self, column: str, value) -> bool:
        sql = f'DELETE FROM "user" WHERE {column} = %s;'
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (value,))
                deleted = cur.rowcount > 0
            conn.commit()
            if deleted:
                logger.info(f"Deleted user where {column}={value}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete user where {column}={value}: {e}")
            raise
        finally:
            release_connection(conn)
