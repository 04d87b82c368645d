from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import List, Optional
from enum import Enum

from diamondapi.models.order import OrderStatus
from diamondapi.schemas.user import UserSummary


class OrderSortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    DIAMOND_PRICE = "diamond_price"
    STATUS = "status"
    SKIN_NAME = "skin_name"
    SUPPLIER = "supplier"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class OrderCreate(BaseModel):
    player_account_id: str = Field(..., min_length=2, max_length=64, description="게임 계정 ID")
    server_id: str = Field(..., min_length=1, max_length=32, description="서버 ID")
    in_game_name: str = Field(..., min_length=1, max_length=100, description="인게임 닉네임")
    skin_name: str = Field(..., min_length=1, max_length=200)
    diamond_price: int = Field(..., gt=0, description="다이아몬드 가격 (양의 정수)")
    supplier_id: int = Field(..., gt=0)
    status: OrderStatus = OrderStatus.PENDING
    notes: Optional[str] = None
    release_date: Optional[date] = None

    @field_validator("player_account_id", "server_id", "in_game_name", "skin_name")
    @classmethod
    def strip_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class OrderUpdate(BaseModel):
    """주문 변경 요청 - 지정하지 않은 필드는 현재 값 유지"""

    status: Optional[OrderStatus] = None
    supplier_id: Optional[int] = Field(None, gt=0)
    ready_for_gifting: Optional[bool] = None
    notes: Optional[str] = None
    release_date: Optional[date] = None


class OrderSupplier(BaseModel):
    id: int
    name: str
    diamond_balance: int
    low_balance_threshold: int

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    player_account_id: str
    server_id: str
    in_game_name: str
    skin_name: str
    diamond_price: int
    supplier_id: int
    assigned_by_id: int
    status: OrderStatus
    ready_for_gifting: bool
    notes: Optional[str] = None
    release_date: Optional[date] = None
    followed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    balance_deducted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    supplier: OrderSupplier
    assigned_by: UserSummary

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    count: int


class OrderDeleteResponse(BaseModel):
    order_id: int
    refunded_amount: int = Field(0, description="삭제 시 환불된 다이아몬드 (차감 내역이 없으면 0)")
    message: str = "Order deleted"


class OrderSheetRow(BaseModel):
    """스프레드시트 미러에 추가되는 주문 스냅샷"""

    order_id: int
    created_date: date
    player_account_id: str
    server_id: str
    in_game_name: str
    skin_name: str
    diamond_price: int
    status_label: str

    def to_row(self) -> List:
        # Columns: Order ID | Date | Account ID | Server ID | IGN | Skin | Price | Status
        return [
            str(self.order_id),
            self.created_date.isoformat(),
            self.player_account_id,
            self.server_id,
            self.in_game_name,
            self.skin_name,
            self.diamond_price,
            self.status_label,
        ]
