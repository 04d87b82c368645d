from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from diamondapi.models.user import UserRole


class User(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(self.role)


class UserSummary(BaseModel):
    """주문에 포함되는 배정 관리자 정보"""

    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class SupplierLink(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class UserProfile(BaseModel):
    name: str
    email: str
    role: UserRole
    supplier: Optional[SupplierLink] = None

    class Config:
        from_attributes = True


class UserProfileUpdate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    password: Optional[str] = Field(None, description="새 비밀번호 (빈 문자열이면 변경하지 않음)")
    supplier_name: Optional[str] = Field(None, max_length=100, description="공급자 표시 이름")

    @field_validator("password")
    @classmethod
    def password_length(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 6:
            raise ValueError("password must be at least 6 characters")
        return v or None
