from pydantic import BaseModel, EmailStr, Field, model_validator
from datetime import datetime
from typing import List, Optional
from enum import Enum

from diamondapi.models.user import UserRole
from diamondapi.models.order import OrderStatus


class BalanceHealth(str, Enum):
    HEALTHY = "healthy"
    LOW = "low"
    CRITICAL = "critical"

    @classmethod
    def evaluate(cls, balance: int, threshold: int) -> "BalanceHealth":
        """임계값 대비 잔액 상태 판정 (임계값의 50% 미만이면 critical)"""
        if threshold <= 0:
            return cls.HEALTHY
        if balance < threshold * 0.5:
            return cls.CRITICAL
        if balance < threshold:
            return cls.LOW
        return cls.HEALTHY


class SupplierSortField(str, Enum):
    CREATED_AT = "created_at"
    NAME = "name"
    DIAMOND_BALANCE = "diamond_balance"
    USER = "user"


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    diamond_balance: int = Field(0, ge=0, description="초기 잔액 (원장에 'Initial balance'로 기록)")
    low_balance_threshold: Optional[int] = Field(None, ge=0)
    google_sheet_id: Optional[str] = None
    google_sync_enabled: bool = False


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    low_balance_threshold: Optional[int] = Field(None, ge=0)
    google_sheet_id: Optional[str] = None
    google_sync_enabled: Optional[bool] = None


class BalanceAdjustmentRequest(BaseModel):
    """직접 잔액 조정 요청 - change_amount(증감) 또는 new_balance(목표 잔액) 중 하나"""

    change_amount: Optional[int] = Field(None, description="부호 있는 증감량")
    new_balance: Optional[int] = Field(None, ge=0, description="목표 절대 잔액")
    reason: str = Field(..., min_length=2, max_length=255, description="조정 사유")

    @model_validator(mode="after")
    def require_amount_or_target(self):
        if self.change_amount is None and self.new_balance is None:
            raise ValueError("Either change_amount or new_balance must be provided")
        return self


class SupplierUser(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole

    class Config:
        from_attributes = True


class SupplierRecentOrder(BaseModel):
    id: int
    skin_name: str
    diamond_price: int
    status: OrderStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SupplierResponse(BaseModel):
    id: int
    user_id: int
    name: str
    diamond_balance: int
    low_balance_threshold: int
    google_sheet_id: Optional[str] = None
    google_sync_enabled: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[SupplierUser] = None
    balance_health: BalanceHealth = BalanceHealth.HEALTHY
    orders: Optional[List[SupplierRecentOrder]] = None

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def derive_health(self):
        self.balance_health = BalanceHealth.evaluate(
            self.diamond_balance, self.low_balance_threshold
        )
        return self


class BalanceAdjustmentResponse(BaseModel):
    supplier: SupplierResponse
    change_amount: int = Field(..., description="실제 적용된 증감량 (0이면 아무것도 기록되지 않음)")
    log_id: Optional[int] = None
