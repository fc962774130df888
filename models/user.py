"""
models/user.py
--------------
Domain models for application users and the department lookup.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass
class DepartmentRef:
    department_id: int
    department_name: str

    def to_dict(self) -> dict:
        return {"departmentId": self.department_id, "departmentName": self.department_name}


@dataclass
class UserView:
    """
    Public view of a user. Password hash and OTP fields are never included.

    Attributes:
        user_id: Application-generated 6-digit ID.
        email: Unique login address.
        user_name: Display name.
        department: Department the user belongs to.
        role: 'user' or 'admin'.
        profile_image_url: Optional avatar URL.
    """
    user_id: int
    email: str
    user_name: str
    department: DepartmentRef
    role: str
    profile_image_url: Optional[str] = None

    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "email": self.email,
            "userName": self.user_name,
            "department": self.department.to_dict(),
            "role": self.role,
            "profileImageUrl": self.profile_image_url,
        }


def format_user(row: Mapping[str, Any]) -> UserView:
    """Shape a user row joined with its department into a UserView."""
    return UserView(
        user_id=row["user_id"],
        email=row["email"],
        user_name=row["user_name"],
        department=DepartmentRef(
            department_id=row["department_id"],
            department_name=row["department_name"],
        ),
        role=row["role"],
        profile_image_url=row["profile_image_url"],
    )
