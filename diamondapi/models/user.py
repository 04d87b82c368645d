from enum import Enum
from typing import Optional, Union

from sqlalchemy import Boolean, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from diamondapi.models.base import BaseModel, BigIntPK

"""User role enumeration for role-based access control."""


class UserRole(str, Enum):
    """사용자 역할 정의"""

    ADMIN = "ADMIN"  # 관리자 - 주문/공급자 생성, 삭제, 재배정
    SUPPLIER = "SUPPLIER"  # 공급자 - 본인에게 배정된 주문 상태 변경
    VIEWER = "VIEWER"  # 조회 전용

    @classmethod
    def is_admin(cls, role: Union[str, "UserRole"]) -> bool:
        """관리자 권한 확인"""
        if isinstance(role, cls):
            role = role.value
        return role == cls.ADMIN.value


class User(BaseModel):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role"), default=UserRole.VIEWER, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # 공급자 역할 사용자는 정확히 하나의 Supplier와 연결됨 (1:1)
    supplier: Mapped[Optional["Supplier"]] = relationship(  # noqa: F821
        "Supplier", back_populates="user", uselist=False
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(self.role)
