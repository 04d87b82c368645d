from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class BalanceLogEntry(BaseModel):
    """잔액 원장 항목"""

    id: int = Field(..., description="원장 항목 ID")
    supplier_id: int = Field(..., description="공급자 ID")
    supplier_name: Optional[str] = Field(None, description="공급자 이름")
    change_amount: int = Field(..., description="잔액 변동량 (양수: 증가, 음수: 차감)")
    transaction_type: str = Field(..., description="CREDIT 또는 DEBIT")
    reason: str = Field(..., description="변동 사유")
    order_id: Optional[int] = Field(None, description="관련 주문 ID (삭제된 주문은 NULL)")
    order_skin_name: Optional[str] = Field(None, description="관련 주문 스킨 이름")
    created_at: Optional[datetime] = Field(None, description="생성 시간")

    class Config:
        from_attributes = True


class BalanceLogListResponse(BaseModel):
    logs: List[BalanceLogEntry]
    count: int


class LedgerIntegrityResponse(BaseModel):
    """원장 정합성 검증 응답"""

    status: str = Field(..., description="검증 상태 (OK, MISMATCH)")
    supplier_id: Optional[int] = Field(None, description="공급자 ID (단일 공급자 검증 시)")
    recorded_balance: Optional[int] = Field(None, description="suppliers.diamond_balance 값")
    calculated_balance: Optional[int] = Field(None, description="원장 change_amount 합계")
    entry_count: Optional[int] = Field(None, description="원장 항목 수")
    supplier_count: Optional[int] = Field(None, description="검증한 공급자 수 (전체 검증 시)")
    mismatched_supplier_ids: List[int] = Field(default_factory=list)
    verified_at: datetime = Field(..., description="검증 시간")
