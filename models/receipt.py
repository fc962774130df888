"""
models/receipt.py
-----------------
Domain models for reimbursement receipts.

`Receipt` and `ReceiptApproval` carry the fields a caller writes;
`ReceiptView` is the nested read shape built from a joined row.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional

from models.user import DepartmentRef


@dataclass
class Receipt:
    """
    Fields supplied by the requester when creating or editing a receipt.

    Attributes:
        requester_id: User ID of the person asking for reimbursement.
        department_id: Department the expense is charged to.
        account_id: Bank account the refund is transferred to.
        receipt_date: Date printed on the receipt.
        description: Free-text note.
        amount: Amount to reimburse.
        receipt_image_url: Uploaded photo/scan of the receipt.
    """
    requester_id: int
    department_id: int
    account_id: int
    receipt_date: date
    amount: Decimal
    description: Optional[str] = None
    receipt_image_url: Optional[str] = None


@dataclass
class ReceiptApproval:
    """An admin's response to a receipt."""
    status: str  # 'approved' | 'rejected'
    admin_id: int
    response_date: datetime
    response_description: Optional[str] = None
    transfer_image_url: Optional[str] = None


@dataclass
class Requester:
    user_id: int
    user_name: str
    email: str

    def to_dict(self) -> dict:
        return {"userId": self.user_id, "userName": self.user_name, "email": self.email}


@dataclass
class BankRef:
    bank_id: int
    bank_name: str

    def to_dict(self) -> dict:
        return {"bankId": self.bank_id, "bankName": self.bank_name}


@dataclass
class AccountRef:
    account_id: int
    account_title: Optional[str]
    account_holder_name: str
    account_number: Optional[str]
    bank: BankRef

    def to_dict(self) -> dict:
        return {
            "accountId": self.account_id,
            "accountTitle": self.account_title,
            "accountHolderName": self.account_holder_name,
            "accountNumber": self.account_number,
            "bank": self.bank.to_dict(),
        }


@dataclass
class AdminRef:
    admin_id: int
    admin_name: str
    admin_email: str

    def to_dict(self) -> dict:
        return {"adminId": self.admin_id, "adminName": self.admin_name, "adminEmail": self.admin_email}


@dataclass
class Approval:
    """Approval sub-record. `admin` is None while the receipt is under review."""
    admin: Optional[AdminRef]
    response_date: Optional[datetime]
    transfer_image_url: Optional[str]
    response_description: Optional[str]

    def to_dict(self) -> dict:
        return {
            "admin": self.admin.to_dict() if self.admin else None,
            "responseDate": self.response_date,
            "transferImageUrl": self.transfer_image_url,
            "responseDescription": self.response_description,
        }


@dataclass
class ReceiptView:
    """A receipt joined with its requester, department, account, bank and admin."""
    receipt_id: int
    requester: Requester
    department: DepartmentRef
    account: AccountRef
    receipt_date: date
    description: Optional[str]
    amount: Decimal
    request_date: datetime
    status: str
    receipt_image_url: Optional[str]
    approval: Approval

    def is_under_review(self) -> bool:
        return self.status == "under_review"

    def to_dict(self) -> dict:
        """camelCase nested mapping for JSON responses."""
        return {
            "receiptId": self.receipt_id,
            "requester": self.requester.to_dict(),
            "department": self.department.to_dict(),
            "account": self.account.to_dict(),
            "receiptDate": self.receipt_date,
            "description": self.description,
            "amount": self.amount,
            "requestDate": self.request_date,
            "status": self.status,
            "receiptImageUrl": self.receipt_image_url,
            "approval": self.approval.to_dict(),
        }


def format_receipt(
    row: Mapping[str, Any],
    decrypt: Callable[[Optional[str]], Optional[str]],
) -> ReceiptView:
    """
    Shape a flat joined receipt row into a ReceiptView.

    Args:
        row: Column-name mapping as produced by a RealDictCursor.
        decrypt: Turns ``account_number_encrypted`` into plaintext.
            Its errors propagate unchanged.
    """
    admin = None
    if row["admin_id"] is not None:
        admin = AdminRef(
            admin_id=row["admin_id"],
            admin_name=row["admin_name"],
            admin_email=row["admin_email"],
        )

    return ReceiptView(
        receipt_id=row["receipt_id"],
        requester=Requester(
            user_id=row["user_id"],
            user_name=row["user_name"],
            email=row["email"],
        ),
        department=DepartmentRef(
            department_id=row["department_id"],
            department_name=row["department_name"],
        ),
        account=AccountRef(
            account_id=row["account_id"],
            account_title=row["account_title"],
            account_holder_name=row["account_holder_name"],
            account_number=decrypt(row["account_number_encrypted"]),
            bank=BankRef(bank_id=row["bank_id"], bank_name=row["bank_name"]),
        ),
        receipt_date=row["receipt_date"],
        description=row["description"],
        amount=row["amount"],
        request_date=row["request_date"],
        status=row["status"],
        receipt_image_url=row["receipt_image_url"],
        approval=Approval(
            admin=admin,
            response_date=row["response_date"],
            transfer_image_url=row["transfer_image_url"],
            response_description=row["response_description"],
        ),
    )
