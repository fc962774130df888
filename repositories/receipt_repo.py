"""
repositories/receipt_repo.py
----------------------------
Data access layer for reimbursement receipts.
All SQL queries related to the `receipt` table live here.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from config import DEFAULT_RECEIPT_STATUS
from db.connection import dict_cursor, get_connection, release_connection
from models.receipt import Receipt, ReceiptApproval, ReceiptView, format_receipt
from repositories.query_builder import (
    EQUALS,
    IN_LIST,
    SEARCH,
    FilterField,
    SortSpec,
    build_query,
)
from security.encryption import decrypt as decrypt_account_number
from utils.exceptions import InvalidStatusError
from utils.logger import get_logger

logger = get_logger(__name__)

_SELECT_RECEIPTS = """
    SELECT
        r.receipt_id, r.receipt_date, r.description, r.amount, r.request_date,
        r.status, r.receipt_image_url,
        u.user_id, u.user_name, u.email,
        d.department_id, d.department_name,
        ba.account_id, ba.account_title, ba.account_holder_name, ba.account_number_encrypted,
        b.bank_id, b.bank_name,
        admin.user_id AS admin_id, admin.user_name AS admin_name, admin.email AS admin_email,
        r.response_date, r.transfer_image_url, r.response_description
    FROM receipt r
    JOIN "user" u ON r.requester_id = u.user_id
    JOIN department d ON r.department_id = d.department_id
    JOIN bank_account ba ON r.account_id = ba.account_id
    JOIN bank b ON ba.bank_id = b.bank_id
    LEFT JOIN "user" admin ON r.admin_id = admin.user_id
"""

RECEIPT_FILTERS: tuple[FilterField, ...] = (
    FilterField("receipt_id", ("r.receipt_id",)),
    FilterField("user_id", ("r.requester_id",)),
    FilterField("search", ("r.description", "u.user_name", "u.email"), SEARCH),
    FilterField("department_id", ("r.department_id",), EQUALS),
    FilterField("status", ("r.status",), IN_LIST),
)

RECEIPT_SORT = SortSpec(
    allowed=("request_date", "status", "amount"),
    default_column="request_date",
    default_direction="desc",
    prefix="r.",
)

# A receipt leaves 'under_review' only through an approval.
APPROVAL_STATUSES: tuple[str, ...] = ("approved", "rejected")


class ReceiptRepository:
    """Repository for CRUD operations and approvals on the receipt table."""

    def __init__(self, decrypt: Callable[[Optional[str]], Optional[str]] = decrypt_account_number):
        self._decrypt = decrypt

    # ── CREATE ────────────────────────────────────────────

    def create_receipt(self, receipt: Receipt) -> int:
        """
        Insert a new receipt as 'under_review', stamped with the current time.

        Args:
            receipt: Fields supplied by the requester.

        Returns:
            The generated receipt_id.
        """
        sql = """
            INSERT INTO receipt
                (requester_id, department_id, account_id, receipt_date, description,
                 amount, request_date, status, receipt_image_url)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING receipt_id;
        """
        request_date = datetime.now(timezone.utc)
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    receipt.requester_id, receipt.department_id, receipt.account_id,
                    receipt.receipt_date, receipt.description, receipt.amount,
                    request_date, DEFAULT_RECEIPT_STATUS, receipt.receipt_image_url,
                ))
                receipt_id = cur.fetchone()[0]
            conn.commit()
            logger.info(f"Created receipt #{receipt_id} for user {receipt.requester_id}")
            return receipt_id
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to create receipt for user {receipt.requester_id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def get_receipts(
        self,
        receipt_id: Optional[int] = None,
        user_id: Optional[int] = None,
        sort_by: Optional[str] = None,
        search: Optional[str] = None,
        department_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[ReceiptView]:
        """
        List receipts matching every given filter.

        Args:
            receipt_id: Exact receipt.
            user_id: Receipts requested by this user.
            sort_by: 'column:direction' with column in request_date, status, amount.
                Defaults to newest request first.
            search: Case-insensitive substring of the description, requester name or email.
            department_id: Receipts charged to this department.
            status: Comma-separated statuses, e.g. 'approved,rejected'.

        Returns:
            Nested ReceiptView objects with the account number decrypted.

        Raises:
            DecryptionError: If a stored account number can't be decrypted.
        """
        filters = {
            "receipt_id": receipt_id,
            "user_id": user_id,
            "search": search,
            "department_id": department_id,
            "status": status,
        }
        sql, params = build_query(_SELECT_RECEIPTS, filters, RECEIPT_FILTERS, RECEIPT_SORT, sort_by)

        conn = get_connection()
        try:
            with dict_cursor(conn) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
        finally:
            release_connection(conn)
        return [format_receipt(row, self._decrypt) for row in rows]

    def get_receipt(self, receipt_id: int) -> Optional[ReceiptView]:
        """Fetch a single receipt by ID, or None if it doesn't exist."""
        receipts = self.get_receipts(receipt_id=receipt_id)
        return receipts[0] if receipts else None

    # ── UPDATE ────────────────────────────────────────────

    def update_receipt(self, receipt_id: int, receipt: Receipt) -> bool:
        """
        Overwrite the requester-editable fields of a receipt.
        Status and approval fields are left untouched.

        Returns:
            True if a row was updated, False otherwise.
        """
        sql = """
            UPDATE receipt
            SET requester_id = %s, department_id = %s, account_id = %s, receipt_date = %s,
                description = %s, amount = %s, receipt_image_url = %s
            WHERE receipt_id = %s;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    receipt.requester_id, receipt.department_id, receipt.account_id,
                    receipt.receipt_date, receipt.description, receipt.amount,
                    receipt.receipt_image_url, receipt_id,
                ))
                updated = cur.rowcount > 0
            conn.commit()
            if updated:
                logger.info(f"Updated receipt #{receipt_id}")
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update receipt #{receipt_id}: {e}")
            raise
        finally:
            release_connection(conn)

    def update_receipt_approval(self, receipt_id: int, approval: ReceiptApproval) -> bool:
        """
        Record an admin's decision on a receipt.

        Status, admin, response date, response description and transfer
        image are written together in a single statement.

        Raises:
            InvalidStatusError: If the status is not 'approved' or 'rejected'.

        Returns:
            True if a row was updated, False otherwise.
        """
        if approval.status not in APPROVAL_STATUSES:
            raise InvalidStatusError(
                f"Approval status must be one of {APPROVAL_STATUSES}, got {approval.status!r}"
            )

        sql = """
            UPDATE receipt
            SET status = %s, admin_id = %s, response_date = %s,
                response_description = %s, transfer_image_url = %s
            WHERE receipt_id = %s;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    approval.status, approval.admin_id, approval.response_date,
                    approval.response_description, approval.transfer_image_url, receipt_id,
                ))
                updated = cur.rowcount > 0
            conn.commit()
            if updated:
                logger.info(f"Receipt #{receipt_id} {approval.status} by admin {approval.admin_id}")
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to record approval for receipt #{receipt_id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def delete_receipt(self, receipt_id: int) -> bool:
        """
        Delete a receipt by ID.

        Returns:
            True if a row was deleted, False otherwise.
        """
        sql = "DELETE FROM receipt WHERE receipt_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (receipt_id,))
                deleted = cur.rowcount > 0
            conn.commit()
            if deleted:
                logger.info(f"Deleted receipt #{receipt_id}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete receipt #{receipt_id}: {e}")
            raise
        finally:
            release_connection(conn)
